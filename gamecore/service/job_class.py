import logging
from typing import List, Optional

from sqlalchemy.orm.exc import StaleDataError

from gamecore.core import config
from gamecore.core.exceptions import ConcurrencyConflict, NotFound, ValidationFailed
from gamecore.engine.experience import ExperienceCurve
from gamecore.engine.stats import STAT_KEYS, stats_by_level, stat_row
from gamecore.repositories.job_class import JobClassRepository, CharacterJobClassRepository
from gamecore.schemas.job_class import (
    JobClassResponse,
    JobClassUpdateRequest,
    JobClassStatsResponse,
    JobClassWithStats,
    JobStatsOverviewResponse,
    LevelSamplesResponse,
    JobComparisonResponse,
)
from gamecore.service.base import BaseService

logger = logging.getLogger(__name__)

DEFAULT_STAT_LEVELS = (1, 10, 20, 30, 50)
MAX_COMPARE_JOBS = 6
# 경험치 곡선에 영향을 주는 필드 (바뀌면 보유 캐릭터 레벨 재계산)
CURVE_FIELDS = ("max_level", "experience_multiplier")


class JobClassService(BaseService):
    def __init__(
        self,
        repo: JobClassRepository,
        redis,
        job_repo: Optional[CharacterJobClassRepository] = None,
        curve: Optional[ExperienceCurve] = None
    ):
        super().__init__(redis)
        self.repo = repo
        self.job_repo = job_repo or CharacterJobClassRepository(repo.db)
        self.curve = curve or ExperienceCurve()

    # 1. 직업 목록 (자주 안 바뀌므로 캐시)
    async def get_job_class_list(self) -> List[JobClassResponse]:
        return await self.get_list_with_cache(
            key="job_class:list",
            fetch_func=lambda: self.repo.get_list(),
            schema_model=JobClassResponse,
            ttl=config.JOB_CLASS_CACHE_TTL
        )

    # 2. 직업 상세 (기초 스탯 + 성장치)
    async def get_job_class(self, job_class_id: int) -> JobClassResponse:
        job_class = await self.get_with_cache(
            key=f"job_class:detail:{job_class_id}",
            fetch_func=lambda: self.repo.get_by_id(job_class_id),
            schema_model=JobClassResponse,
            ttl=config.JOB_CLASS_CACHE_TTL
        )

        if not job_class:
            raise NotFound(f"JobClass {job_class_id} not found")
        return job_class

    async def update_job_class(self, job_class_id: int, payload: JobClassUpdateRequest) -> JobClassResponse:
        job_class = await self.repo.get_or_404(job_class_id, for_update=True)
        # description 외에는 null로 지울 수 없는 컬럼
        data = {
            field: value for field, value in payload.model_dump(exclude_unset=True).items()
            if value is not None or field == "description"
        }

        # 중첩 스탯도 exclude_unset 이 적용되므로 보낸 키만 반영한다
        base_stats = data.pop("base_stats", None) or {}
        multipliers = data.pop("multipliers", None) or {}
        for field, value in data.items():
            setattr(job_class, field, value)
        for key, value in base_stats.items():
            setattr(job_class, f"base_{key}", value)
        for key, value in multipliers.items():
            setattr(job_class, f"{key}_multiplier", value)

        try:
            releveled = 0
            if any(field in data for field in CURVE_FIELDS):
                releveled = await self._relevel_characters(job_class)
            await self.repo.db.commit()
        except StaleDataError as e:
            await self.repo.db.rollback()
            raise ConcurrencyConflict() from e
        except Exception:
            await self.repo.db.rollback()
            raise

        # 스탯 표/상세 캐시 무효화
        await self.invalidate(
            f"job_class:detail:{job_class_id}",
            "job_class:list",
        )
        logger.info(
            f"Job class {job_class_id} updated: {sorted(payload.model_fields_set)}"
            + (f", {releveled} character(s) re-leveled" if releveled else "")
        )
        return JobClassResponse.model_validate(job_class)

    async def _relevel_characters(self, job_class) -> int:
        """
        max_level / experience_multiplier 변경 후 level == level_from_experience(experience) 를 다시 맞춘다.
        경험치와 스킬 포인트는 그대로 둔다 (포인트는 경험치 지급으로만 생긴다).
        """
        multiplier = float(job_class.experience_multiplier)
        changed = 0
        for job in await self.job_repo.list_by_job_class(job_class.id, for_update=True):
            level = self.curve.level_from_experience(job.experience, multiplier, job_class.max_level)
            if level != job.level:
                job.level = level
                changed += 1
        await self.repo.db.flush()
        return changed

    # 3. 레벨별 스탯 (StatCurve)
    async def get_stats(self, job_class_id: int, levels: Optional[List[int]] = None) -> JobClassStatsResponse:
        """levels 생략 시 기본 레벨 중 max_level 이하만, 직접 지정한 레벨이 max_level을 넘으면 422"""
        job_class = await self.get_job_class(job_class_id)
        if not levels:
            levels = [level for level in DEFAULT_STAT_LEVELS if level <= job_class.max_level]
        over = [level for level in levels if level > job_class.max_level]
        if over:
            raise ValidationFailed(
                f"Levels {', '.join(map(str, over))} exceed max_level {job_class.max_level} of {job_class.name}"
            )

        return JobClassStatsResponse(
            job_class={"id": job_class.id, "name": job_class.name, "job_type": job_class.job_type},
            levels=levels,
            stats=stats_by_level(job_class.base_stats.model_dump(), job_class.multipliers.model_dump(), levels),
        )

    async def get_stats_overview(self, levels: Optional[List[int]] = None) -> JobStatsOverviewResponse:
        levels = sorted(set(levels or DEFAULT_STAT_LEVELS))
        job_classes = await self.get_job_class_list()

        result = []
        for job_class in job_classes:
            valid = [level for level in levels if level <= job_class.max_level]
            result.append(JobClassWithStats(
                **job_class.model_dump(),
                stats_by_level=stats_by_level(
                    job_class.base_stats.model_dump(), job_class.multipliers.model_dump(), valid
                ),
            ))

        return JobStatsOverviewResponse(levels=levels, job_classes=result)

    async def get_level_samples(self, level: int) -> LevelSamplesResponse:
        """
        특정 레벨에서 전 직업 스탯 + 스탯별 랭킹
        max_level 보다 높은 레벨은 해당 직업의 max_level로 계산
        """
        if level < 1:
            raise ValidationFailed("level must be >= 1")

        job_classes = await self.get_job_class_list()
        samples = []
        for job_class in job_classes:
            effective = min(level, job_class.max_level)
            samples.append({
                "id": job_class.id,
                "name": job_class.name,
                "job_type": job_class.job_type,
                "max_level": job_class.max_level,
                "level": effective,
                "stats": stat_row(job_class.base_stats.model_dump(), job_class.multipliers.model_dump(), effective),
                "multipliers": job_class.multipliers,
            })

        rankings = {
            key: sorted(
                ({"name": s["name"], "value": s["stats"][key]} for s in samples),
                key=lambda entry: -entry["value"],
            )
            for key in STAT_KEYS
        }
        return LevelSamplesResponse(level=level, job_stats=samples, rankings=rankings)

    async def compare(self, level: int, job_ids: List[int]) -> JobComparisonResponse:
        if not job_ids:
            raise ValidationFailed("Select at least one job class to compare")
        if len(set(job_ids)) > MAX_COMPARE_JOBS:
            raise ValidationFailed(f"Up to {MAX_COMPARE_JOBS} job classes can be compared")
        if level < 1:
            raise ValidationFailed("level must be >= 1")

        comparison = []
        for job_id in dict.fromkeys(job_ids):
            job_class = await self.get_job_class(job_id)
            effective = min(level, job_class.max_level)
            comparison.append({
                "id": job_class.id,
                "name": job_class.name,
                "job_type": job_class.job_type,
                "stats": stat_row(job_class.base_stats.model_dump(), job_class.multipliers.model_dump(), effective),
                "multipliers": job_class.multipliers,
            })

        return JobComparisonResponse(level=level, comparison=comparison)
