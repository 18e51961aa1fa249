import logging
from typing import List, Optional

from gamecore.core.exceptions import AlreadyUnlocked
from gamecore.engine.effects import stat_boosts
from gamecore.engine.experience import ExperienceCurve, level_progress
from gamecore.engine.inventory import INVENTORY, EQUIPPED, WAREHOUSE
from gamecore.engine.stats import project_stats, stat_row
from gamecore.models.job_class import CharacterJobClass
from gamecore.repositories.character import CharacterRepository
from gamecore.repositories.item import CharacterItemRepository
from gamecore.repositories.job_class import JobClassRepository, CharacterJobClassRepository
from gamecore.repositories.skill import InvestmentRepository
from gamecore.schemas.character import (
    CharacterJobClassResponse,
    CharacterJobClassList,
    CharacterListItem,
    CharacterListResponse,
    CharacterDetailResponse,
    WarehouseResponse,
)
from gamecore.schemas.skill import CharacterInvestmentResponse
from gamecore.service.base import TransactionalService

logger = logging.getLogger(__name__)


async def collect_stat_boosts(
    investment_repo: InvestmentRepository,
    item_repo: CharacterItemRepository,
    character_id: int,
    job_class_id: Optional[int]
) -> dict[str, int]:
    """
    효과 적용 훅: 해당 직업에서 해금한 스킬 노드 + 장착 중인 장비의 stat_boost 합계
    (비활성 노드 / 다른 직업에서 투자한 노드는 제외, 직업이 없으면 장비만)
    """
    effects = []
    for investment in await investment_repo.list_for_character(character_id):
        if investment.node.active and investment.job_class_id == job_class_id:
            effects.append(investment.node.effect)
    for character_item in await item_repo.list_by_location(character_id, "equipped"):
        effects.extend(character_item.item.parsed_effects)
    return stat_boosts(effects)


def build_job_class_response(
    job: CharacterJobClass,
    character,
    boosts: Optional[dict] = None,
    curve: Optional[ExperienceCurve] = None
) -> CharacterJobClassResponse:
    job_class = job.job_class
    progress = level_progress(job.experience, float(job_class.experience_multiplier), job_class.max_level, curve)
    base, multipliers = job_class.base_stats, job_class.multipliers

    next_level_stats = None
    if job.level < job_class.max_level:
        next_level_stats = stat_row(base, multipliers, job.level + 1)

    return CharacterJobClassResponse(
        id=job.id,
        character={"id": character.id, "name": character.name},
        job_class={"id": job_class.id, "name": job_class.name, "job_type": job_class.job_type},
        max_level=job_class.max_level,
        level=job.level,
        experience=job.experience,
        skill_points=job.skill_points,
        exp_to_next_level=progress.exp_to_next_level,
        level_progress=progress.level_progress,
        max_level_reached=progress.max_level_reached,
        is_current=job.is_current,
        unlocked_at=job.unlocked_at,
        stats={"level": job.level, **project_stats(
            base, multipliers, job.level, job.current_hp, job.current_mp, boosts
        )},
        next_level_stats=next_level_stats,
    )


class CharacterService(TransactionalService):
    def __init__(
        self,
        repo: CharacterRepository,
        job_repo: CharacterJobClassRepository,
        job_class_repo: JobClassRepository,
        investment_repo: InvestmentRepository,
        item_repo: CharacterItemRepository,
        curve: Optional[ExperienceCurve] = None
    ):
        super().__init__(repo.db)
        self.repo = repo
        self.job_repo = job_repo
        self.job_class_repo = job_class_repo
        self.investment_repo = investment_repo
        self.item_repo = item_repo
        self.curve = curve or ExperienceCurve()

    async def _boosts_for(self, job: CharacterJobClass) -> Optional[dict]:
        # 스킬/장비 보너스는 현재 직업에만 적용
        if not job.is_current:
            return None
        return await collect_stat_boosts(self.investment_repo, self.item_repo, job.character_id, job.job_class_id)

    # --- 캐릭터 관리 화면 ---

    async def list_characters(self, name: Optional[str] = None) -> CharacterListResponse:
        characters = await self.repo.get_list(name=name)
        data = []
        for character in characters:
            current = character.current_job
            data.append(CharacterListItem(
                id=character.id,
                name=character.name,
                current_job_name=current.job_class.name if current else None,
                current_job_level=current.level if current else None,
                created_at=character.created_at,
            ))
        return CharacterListResponse(data=data, total_count=len(data))

    async def get_character(self, character_id: int) -> CharacterDetailResponse:
        character = await self.repo.get_or_404(character_id)
        jobs = [
            build_job_class_response(job, character, await self._boosts_for(job), self.curve)
            for job in sorted(character.job_classes, key=lambda j: j.id)
        ]
        counts = await self.item_repo.count_by_location(character_id)

        return CharacterDetailResponse(
            id=character.id,
            name=character.name,
            created_at=character.created_at,
            current_job_class=next((job for job in jobs if job.is_current), None),
            job_classes=jobs,
            warehouses=[WarehouseResponse.model_validate(w) for w in sorted(character.warehouses, key=lambda w: w.id)],
            inventory_count=counts.get(INVENTORY, 0),
            equipped_count=counts.get(EQUIPPED, 0),
            warehouse_item_count=counts.get(WAREHOUSE, 0),
        )

    async def get_character_job_class(self, character_id: int, job_class_id: int) -> CharacterJobClassResponse:
        character = await self.repo.get_or_404(character_id)
        job = await self.job_repo.get_for_character(character_id, job_class_id)
        return build_job_class_response(job, character, await self._boosts_for(job), self.curve)

    async def get_character_job_classes(self, character_id: int) -> CharacterJobClassList:
        character = await self.repo.get_or_404(character_id)
        jobs = []
        for job in sorted(character.job_classes, key=lambda j: j.id):
            jobs.append(build_job_class_response(job, character, await self._boosts_for(job), self.curve))
        return CharacterJobClassList(character={"id": character.id, "name": character.name}, job_classes=jobs)

    async def acquire_job_class(self, character_id: int, job_class_id: int, make_current: bool = False) -> CharacterJobClassResponse:
        """직업 습득 (Lv.1 / 경험치 0 / 스킬포인트 0). 첫 직업이면 자동으로 현재 직업이 된다."""

        async def operation():
            character = await self.repo.get_or_404(character_id, for_update=True)
            job_class = await self.job_class_repo.get_or_404(job_class_id)

            if any(job.job_class_id == job_class_id for job in character.job_classes):
                raise AlreadyUnlocked(f"Job class '{job_class.name}' is already unlocked")

            job = CharacterJobClass(
                job_class_id=job_class.id,
                job_class=job_class,
                level=1,
                experience=0,
                skill_points=0,
                is_current=False,
            )
            character.job_classes.append(job)
            await self.db.flush()

            if make_current or len(character.job_classes) == 1:
                await self.job_repo.set_current(character_id, job)

            logger.info(f"Character {character_id} acquired job class {job_class.name}")
            return build_job_class_response(job, character, await self._boosts_for(job), self.curve)

        return await self.run_serialized(character_id, operation)

    async def switch_current_job(self, character_id: int, job_class_id: int) -> CharacterJobClassResponse:
        """현재 직업 전환: 기존 플래그 해제와 새 플래그 설정을 한 트랜잭션에서"""

        async def operation():
            character = await self.repo.get_or_404(character_id)
            job = await self.job_repo.get_for_character(character_id, job_class_id, for_update=True)
            await self.job_repo.set_current(character_id, job)
            logger.info(f"Character {character_id} switched current job to {job.job_class.name}")
            return build_job_class_response(job, character, await self._boosts_for(job), self.curve)

        return await self.run_serialized(character_id, operation)

    async def get_skill_investments(self, character_id: int) -> List[CharacterInvestmentResponse]:
        await self.repo.get_or_404(character_id)
        investments = await self.investment_repo.list_for_character(character_id)
        return [CharacterInvestmentResponse.model_validate(inv) for inv in investments]
