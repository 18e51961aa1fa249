import os

# gamecore.core.database 가 import 시점에 엔진을 만들기 때문에 먼저 지정
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("DB_CREATE_ALL", "0")

from types import SimpleNamespace

import pytest
import pytest_asyncio
import fakeredis
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from gamecore import models
from gamecore.core.database import Base, get_db, get_redis
from gamecore.engine.experience import ExperienceCurve, SkillPointSchedule
from gamecore.repositories.character import CharacterRepository
from gamecore.repositories.item import ItemRepository, CharacterItemRepository, WarehouseRepository
from gamecore.repositories.job_class import JobClassRepository, CharacterJobClassRepository, ExperienceGrantRepository
from gamecore.repositories.skill import SkillLineRepository, SkillNodeRepository, InvestmentRepository
from gamecore.service.character import CharacterService
from gamecore.service.equipment import EquipmentService
from gamecore.service.experience import ExperienceService
from gamecore.service.inventory import InventoryService
from gamecore.service.item import ItemService
from gamecore.service.job_class import JobClassService
from gamecore.service.skill import SkillService


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def redis():
    client = fakeredis.FakeAsyncRedis(decode_responses=True)
    yield client
    await client.flushall()
    await client.aclose()


async def seed_world(session: AsyncSession) -> SimpleNamespace:
    warrior = models.JobClass(
        name="戦士", job_type="basic", max_level=50, experience_multiplier=1,
        base_hp=100, hp_multiplier=10, base_mp=20, mp_multiplier=2,
        base_attack=15, attack_multiplier=3, base_defense=12, defense_multiplier=2.5,
        base_magic_attack=5, magic_attack_multiplier=0.5, base_magic_defense=8, magic_defense_multiplier=1,
        base_agility=10, agility_multiplier=1.5, base_luck=5, luck_multiplier=0.5,
    )
    mage = models.JobClass(
        name="魔法使い", job_type="basic", max_level=50, experience_multiplier=1.2,
        base_hp=60, hp_multiplier=6, base_mp=80, mp_multiplier=8,
        base_attack=5, attack_multiplier=1, base_defense=6, defense_multiplier=1,
        base_magic_attack=20, magic_attack_multiplier=4, base_magic_defense=15, magic_defense_multiplier=3,
        base_agility=8, agility_multiplier=1, base_luck=7, luck_multiplier=1,
    )
    session.add_all([warrior, mage])
    await session.flush()

    sword_line = models.SkillLine(name="剣術", skill_line_type="weapon", unlock_level=1, job_classes=[warrior])
    sword_line.nodes = [
        models.SkillNode(name="攻撃力+5", node_type="stat_boost", points_required=5,
                         effects={"type": "stat_boost", "stat": "attack", "value": 5}, display_order=1),
        models.SkillNode(name="二段斬り", node_type="technique", points_required=5,
                         effects={"type": "technique", "name": "二段斬り", "damage_multiplier": 1.8}, display_order=2),
        models.SkillNode(name="封印", node_type="passive", points_required=1, active=False,
                         effects={"type": "passive", "effect": "critical", "value": 0.05}, display_order=3),
    ]
    magic_line = models.SkillLine(name="魔導", skill_line_type="job_specific", unlock_level=1, job_classes=[mage])
    magic_line.nodes = [
        models.SkillNode(name="魔力+3", node_type="stat_boost", points_required=1,
                         effects={"type": "stat_boost", "stat": "magic_attack", "value": 3}, display_order=1),
    ]
    elite_line = models.SkillLine(name="奥義", skill_line_type="job_specific", unlock_level=20, job_classes=[warrior])
    elite_line.nodes = [
        models.SkillNode(name="奥義", node_type="technique", points_required=1,
                         effects={"type": "technique", "name": "奥義", "damage_multiplier": 3}, display_order=1),
    ]
    session.add_all([sword_line, magic_line, elite_line])

    alice = models.Character(name="Alice")
    alice.job_classes = [
        models.CharacterJobClass(job_class=warrior, level=1, experience=0, skill_points=5,
                                 current_hp=30, is_current=True),
        models.CharacterJobClass(job_class=mage, level=1, experience=0, skill_points=0, is_current=False),
    ]
    alice.warehouses = [models.Warehouse(name="倉庫", max_slots=1, used_slots=0)]
    bob = models.Character(name="Bob")
    bob.job_classes = [
        models.CharacterJobClass(job_class=warrior, level=1, experience=0, skill_points=10, is_current=True),
    ]
    session.add_all([alice, bob])

    sword = models.Item(name="鋼の剣", item_type="weapon", rarity="rare", job_requirement=["戦士"],
                        effects=[{"type": "stat_boost", "stat": "attack", "value": 10}])
    helmet = models.Item(name="鉄の兜", item_type="armor",
                         effects=[{"type": "stat_boost", "stat": "defense", "value": 3}])
    staff = models.Item(name="樫の杖", item_type="weapon", job_requirement=["魔法使い"])
    axe = models.Item(name="大斧", item_type="weapon", level_requirement=30)
    ring = models.Item(name="銀の指輪", item_type="accessory")
    potion = models.Item(name="回復薬", item_type="consumable", max_stack=99,
                         effects=[{"type": "restore", "stat": "hp", "value": 50}])
    elixir = models.Item(name="エリクサー", item_type="consumable", max_stack=99,
                         effects=[{"type": "restore", "stat": "mp", "value": 30},
                                  {"type": "buff", "stat": "attack", "value": 5, "duration": 60}])
    session.add_all([sword, helmet, staff, axe, ring, potion, elixir])
    await session.flush()

    def owned(item, **kwargs):
        return models.CharacterItem(character_id=alice.id, item_id=item.id, item=item, **kwargs)

    items = SimpleNamespace(
        sword=owned(sword),
        spare_sword=owned(sword),
        helmet=owned(helmet),
        staff=owned(staff),
        axe=owned(axe),
        ring=owned(ring, locked=True),
        potion=owned(potion, quantity=1),
        elixir=owned(elixir, quantity=3),
    )
    session.add_all(vars(items).values())
    await session.commit()

    # 롤백되면 ORM 객체가 만료되므로 테스트에는 id만 넘긴다
    return SimpleNamespace(
        warrior=warrior.id,
        mage=mage.id,
        sword_line=sword_line.id,
        sword_nodes=[node.id for node in sword_line.nodes],
        magic_line=magic_line.id,
        magic_nodes=[node.id for node in magic_line.nodes],
        elite_line=elite_line.id,
        elite_nodes=[node.id for node in elite_line.nodes],
        alice=alice.id,
        bob=bob.id,
        warehouse=alice.warehouses[0].id,
        items=SimpleNamespace(**{name: ci.id for name, ci in vars(items).items()}),
    )


@pytest_asyncio.fixture
async def world(session):
    return await seed_world(session)


def build_services(session: AsyncSession, redis) -> SimpleNamespace:
    character_repo = CharacterRepository(session)
    job_repo = CharacterJobClassRepository(session)
    job_class_repo = JobClassRepository(session)
    investment_repo = InvestmentRepository(session)
    item_repo = CharacterItemRepository(session)
    curve = ExperienceCurve(base=100, exponent=1.5)

    return SimpleNamespace(
        curve=curve,
        character_repo=character_repo,
        job_repo=job_repo,
        item_repo=item_repo,
        warehouse_repo=WarehouseRepository(session),
        job_class=JobClassService(job_class_repo, redis, job_repo, curve),
        character=CharacterService(character_repo, job_repo, job_class_repo, investment_repo, item_repo, curve),
        experience=ExperienceService(
            job_repo, character_repo, ExperienceGrantRepository(session), curve, SkillPointSchedule(1)
        ),
        skill=SkillService(
            SkillLineRepository(session), SkillNodeRepository(session), investment_repo,
            character_repo, job_repo, job_class_repo
        ),
        equipment=EquipmentService(item_repo, character_repo, job_repo, investment_repo, job_class_repo),
        inventory=InventoryService(item_repo, WarehouseRepository(session), character_repo, job_repo, investment_repo),
        item=ItemService(ItemRepository(session), redis),
    )


@pytest.fixture
def services(session, redis):
    return build_services(session, redis)


@pytest.fixture
def make_services(redis):
    """세션마다 따로 서비스 묶음을 만든다 (동시 요청 재현용)"""
    return lambda session: build_services(session, redis)


@pytest_asyncio.fixture
async def client(session_factory, redis, world):
    from gamecore.main import app

    async def override_get_db():
        async with session_factory() as session:
            yield session

    async def override_get_redis():
        yield redis

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
