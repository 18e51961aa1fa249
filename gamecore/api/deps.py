from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession
from redis.asyncio import Redis

from gamecore.core.database import get_db, get_redis
from gamecore.engine.experience import ExperienceCurve, SkillPointSchedule

# Repositories
from gamecore.repositories.character import CharacterRepository
from gamecore.repositories.job_class import JobClassRepository, CharacterJobClassRepository, ExperienceGrantRepository
from gamecore.repositories.skill import SkillLineRepository, SkillNodeRepository, InvestmentRepository
from gamecore.repositories.item import ItemRepository, CharacterItemRepository, WarehouseRepository

# Services
from gamecore.service.character import CharacterService
from gamecore.service.equipment import EquipmentService
from gamecore.service.experience import ExperienceService
from gamecore.service.inventory import InventoryService
from gamecore.service.item import ItemService
from gamecore.service.job_class import JobClassService
from gamecore.service.skill import SkillService


# --- Game rules ---
def get_experience_curve() -> ExperienceCurve:
    return ExperienceCurve()

def get_skill_point_schedule() -> SkillPointSchedule:
    return SkillPointSchedule()

async def get_actor(x_admin_user: str = Header("admin", max_length=64)) -> str:
    """감사 로그에 남길 관리자 이름 (인증 자체는 외부 게이트웨이 담당)"""
    return x_admin_user


# --- Repositories ---
async def get_character_repo(db: AsyncSession = Depends(get_db)) -> CharacterRepository:
    return CharacterRepository(db)

async def get_job_class_repo(db: AsyncSession = Depends(get_db)) -> JobClassRepository:
    return JobClassRepository(db)

async def get_character_job_class_repo(db: AsyncSession = Depends(get_db)) -> CharacterJobClassRepository:
    return CharacterJobClassRepository(db)

async def get_experience_grant_repo(db: AsyncSession = Depends(get_db)) -> ExperienceGrantRepository:
    return ExperienceGrantRepository(db)

async def get_skill_line_repo(db: AsyncSession = Depends(get_db)) -> SkillLineRepository:
    return SkillLineRepository(db)

async def get_skill_node_repo(db: AsyncSession = Depends(get_db)) -> SkillNodeRepository:
    return SkillNodeRepository(db)

async def get_investment_repo(db: AsyncSession = Depends(get_db)) -> InvestmentRepository:
    return InvestmentRepository(db)

async def get_character_item_repo(db: AsyncSession = Depends(get_db)) -> CharacterItemRepository:
    return CharacterItemRepository(db)

async def get_warehouse_repo(db: AsyncSession = Depends(get_db)) -> WarehouseRepository:
    return WarehouseRepository(db)

async def get_item_repo(db: AsyncSession = Depends(get_db)) -> ItemRepository:
    return ItemRepository(db)


# --- Job Class DI ---
async def get_job_class_service(
    repo: JobClassRepository = Depends(get_job_class_repo),
    redis: Redis = Depends(get_redis),
    job_repo: CharacterJobClassRepository = Depends(get_character_job_class_repo),
    curve: ExperienceCurve = Depends(get_experience_curve)
) -> JobClassService:
    return JobClassService(repo, redis, job_repo, curve)

# --- Character DI ---
async def get_character_service(
    repo: CharacterRepository = Depends(get_character_repo),
    job_repo: CharacterJobClassRepository = Depends(get_character_job_class_repo),
    job_class_repo: JobClassRepository = Depends(get_job_class_repo),
    investment_repo: InvestmentRepository = Depends(get_investment_repo),
    item_repo: CharacterItemRepository = Depends(get_character_item_repo),
    curve: ExperienceCurve = Depends(get_experience_curve)
) -> CharacterService:
    return CharacterService(repo, job_repo, job_class_repo, investment_repo, item_repo, curve)

async def get_experience_service(
    repo: CharacterJobClassRepository = Depends(get_character_job_class_repo),
    character_repo: CharacterRepository = Depends(get_character_repo),
    grant_repo: ExperienceGrantRepository = Depends(get_experience_grant_repo),
    curve: ExperienceCurve = Depends(get_experience_curve),
    schedule: SkillPointSchedule = Depends(get_skill_point_schedule)
) -> ExperienceService:
    return ExperienceService(repo, character_repo, grant_repo, curve, schedule)

# --- Skill DI ---
async def get_skill_service(
    line_repo: SkillLineRepository = Depends(get_skill_line_repo),
    node_repo: SkillNodeRepository = Depends(get_skill_node_repo),
    investment_repo: InvestmentRepository = Depends(get_investment_repo),
    character_repo: CharacterRepository = Depends(get_character_repo),
    job_repo: CharacterJobClassRepository = Depends(get_character_job_class_repo),
    job_class_repo: JobClassRepository = Depends(get_job_class_repo)
) -> SkillService:
    return SkillService(line_repo, node_repo, investment_repo, character_repo, job_repo, job_class_repo)

# --- Item DI ---
async def get_equipment_service(
    repo: CharacterItemRepository = Depends(get_character_item_repo),
    character_repo: CharacterRepository = Depends(get_character_repo),
    job_repo: CharacterJobClassRepository = Depends(get_character_job_class_repo),
    investment_repo: InvestmentRepository = Depends(get_investment_repo),
    job_class_repo: JobClassRepository = Depends(get_job_class_repo)
) -> EquipmentService:
    return EquipmentService(repo, character_repo, job_repo, investment_repo, job_class_repo)

async def get_inventory_service(
    repo: CharacterItemRepository = Depends(get_character_item_repo),
    warehouse_repo: WarehouseRepository = Depends(get_warehouse_repo),
    character_repo: CharacterRepository = Depends(get_character_repo),
    job_repo: CharacterJobClassRepository = Depends(get_character_job_class_repo),
    investment_repo: InvestmentRepository = Depends(get_investment_repo)
) -> InventoryService:
    return InventoryService(repo, warehouse_repo, character_repo, job_repo, investment_repo)

async def get_item_service(
    repo: ItemRepository = Depends(get_item_repo),
    redis: Redis = Depends(get_redis)
) -> ItemService:
    return ItemService(repo, redis)
