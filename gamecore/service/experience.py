import logging
from typing import List, Optional

from gamecore.core.exceptions import InvalidAmount, NoCurrentJob, ValidationFailed
from gamecore.engine.experience import ExperienceCurve, SkillPointSchedule, apply_experience
from gamecore.models.job_class import ExperienceGrant
from gamecore.repositories.character import CharacterRepository
from gamecore.repositories.job_class import CharacterJobClassRepository, ExperienceGrantRepository
from gamecore.schemas.character import ExperienceGrantResponse, ExperienceGrantLog
from gamecore.service.base import TransactionalService

logger = logging.getLogger(__name__)


class ExperienceService(TransactionalService):
    """
    경험치 장부 (ExperienceLedger)

    관리자 지급은 반드시 감사 로그(experience_grants)와 함께 커밋된다.
    로그 INSERT가 실패하면 지급 자체가 롤백된다.
    """

    def __init__(
        self,
        repo: CharacterJobClassRepository,
        character_repo: CharacterRepository,
        grant_repo: ExperienceGrantRepository,
        curve: Optional[ExperienceCurve] = None,
        schedule: Optional[SkillPointSchedule] = None
    ):
        super().__init__(repo.db)
        self.repo = repo
        self.character_repo = character_repo
        self.grant_repo = grant_repo
        self.curve = curve or ExperienceCurve()
        self.schedule = schedule or SkillPointSchedule()

    async def grant_experience(
        self,
        character_id: int,
        amount: int,
        reason: str,
        actor: str,
        job_class_id: Optional[int] = None
    ) -> ExperienceGrantResponse:
        # 1. 입력 검증 (상태 변경 전에 거절)
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise InvalidAmount()
        if not reason or not reason.strip():
            raise ValidationFailed("A reason is required for experience adjustments")

        async def operation():
            await self.character_repo.get_or_404(character_id)

            if job_class_id is None:
                job = await self.repo.get_current(character_id, for_update=True)
                if job is None:
                    raise NoCurrentJob()
            else:
                job = await self.repo.get_for_character(character_id, job_class_id, for_update=True)

            job_class = job.job_class
            outcome = apply_experience(
                job.experience,
                amount,
                float(job_class.experience_multiplier),
                job_class.max_level,
                self.curve,
                self.schedule,
            )

            # 2. 상태 변경 + 감사 로그 (같은 트랜잭션)
            job.experience += amount
            job.level = outcome.new_level
            job.skill_points += outcome.skill_points_gained

            self.grant_repo.add(ExperienceGrant(
                character_id=character_id,
                character_job_class_id=job.id,
                amount=amount,
                reason=reason.strip(),
                actor=actor,
                level_before=outcome.old_level,
                level_after=outcome.new_level,
            ))
            await self.db.flush()

            logger.info(
                f"[EXP] character={character_id} job={job_class.name} +{amount} "
                f"Lv.{outcome.old_level}->{outcome.new_level} by {actor}: {reason.strip()}"
            )

            progress = outcome.progress
            return ExperienceGrantResponse(
                character_id=character_id,
                job_class_id=job_class.id,
                experience=job.experience,
                new_level=outcome.new_level,
                leveled_up=outcome.leveled_up,
                skill_points_gained=outcome.skill_points_gained,
                skill_points=job.skill_points,
                exp_to_next_level=progress.exp_to_next_level,
                level_progress=progress.level_progress,
                max_level_reached=progress.max_level_reached,
            )

        return await self.run_serialized(character_id, operation)

    async def list_grants(self, character_id: int, skip: int = 0, limit: int = 50) -> List[ExperienceGrantLog]:
        await self.character_repo.get_or_404(character_id)
        grants = await self.grant_repo.list_for_character(character_id, skip=skip, limit=limit)
        return [ExperienceGrantLog.model_validate(grant) for grant in grants]
