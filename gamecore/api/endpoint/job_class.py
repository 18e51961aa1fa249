from typing import List, Literal, Optional
from fastapi import APIRouter, Depends, Query

from gamecore.core.exceptions import ValidationFailed
from gamecore.engine.stats import parse_levels
from gamecore.schemas.job_class import (
    JobClassResponse,
    JobClassUpdateRequest,
    JobClassStatsResponse,
    JobStatsOverviewResponse,
    LevelSamplesResponse,
    JobComparisonResponse,
)
from gamecore.schemas.skill import JobClassSkillLinesResponse, SkillStatisticsResponse
from gamecore.service.job_class import JobClassService, DEFAULT_STAT_LEVELS
from gamecore.service.skill import SkillService
from gamecore.api import deps

MAX_QUERY_LEVEL = 999

router = APIRouter()
stats_router = APIRouter()


def _levels(raw: Optional[str], default=DEFAULT_STAT_LEVELS) -> List[int]:
    try:
        return parse_levels(raw, default, max_level=MAX_QUERY_LEVEL)
    except ValueError as e:
        raise ValidationFailed(str(e)) from e


@router.get("", response_model=List[JobClassResponse])
async def read_job_classes(
    service: JobClassService = Depends(deps.get_job_class_service)
):
    """
    **직업 목록**
    - Redis Cache: 1시간
    """
    return await service.get_job_class_list()

@router.get("/{job_class_id}", response_model=JobClassResponse)
async def read_job_class(
    job_class_id: int,
    service: JobClassService = Depends(deps.get_job_class_service)
):
    """
    **직업 상세**
    - base_stats / multipliers / max_level / experience_multiplier
    - Redis Cache: 1시간
    """
    return await service.get_job_class(job_class_id)

@router.put("/{job_class_id}", response_model=JobClassResponse)
async def update_job_class(
    job_class_id: int,
    payload: JobClassUpdateRequest,
    service: JobClassService = Depends(deps.get_job_class_service)
):
    """기획자 수정 (캐시 무효화)"""
    return await service.update_job_class(job_class_id, payload)

@router.get("/{job_class_id}/stats", response_model=JobClassStatsResponse)
async def read_job_class_stats(
    job_class_id: int,
    levels: Optional[str] = Query(None, description="예: 1,10,20"),
    service: JobClassService = Depends(deps.get_job_class_service)
):
    """레벨별 스탯 표"""
    return await service.get_stats(job_class_id, _levels(levels, default=()))

@router.get("/{job_class_id}/skill_lines", response_model=JobClassSkillLinesResponse)
async def read_job_class_skill_lines(
    job_class_id: int,
    skill_line_type: Optional[Literal["weapon", "job_specific"]] = Query(None, description="weapon: 무기 스킬 / job_specific: 직업 전용"),
    service: SkillService = Depends(deps.get_skill_service)
):
    return await service.get_job_class_skill_lines(job_class_id, skill_line_type)

@router.get("/{job_class_id}/skill_statistics", response_model=SkillStatisticsResponse)
async def read_skill_statistics(
    job_class_id: int,
    service: SkillService = Depends(deps.get_skill_service)
):
    """
    **스킬 포인트 사용률**
    - 전체 캐릭터 수 / 보유 포인트 / 사용 포인트 / 사용률
    - 스킬 라인별 투자 통계
    """
    return await service.get_skill_statistics(job_class_id)


# --- 직업 스탯 비교 화면 ---

@stats_router.get("/job_class_stats", response_model=JobStatsOverviewResponse)
async def read_job_class_stats_overview(
    levels: Optional[str] = Query(None, description="기본값: 1,10,20,30,50"),
    service: JobClassService = Depends(deps.get_job_class_service)
):
    return await service.get_stats_overview(_levels(levels))

@stats_router.get("/job_level_samples", response_model=LevelSamplesResponse)
async def read_job_level_samples(
    level: int = Query(1, ge=1, le=MAX_QUERY_LEVEL),
    service: JobClassService = Depends(deps.get_job_class_service)
):
    """특정 레벨에서의 전 직업 스탯 + 스탯별 랭킹"""
    return await service.get_level_samples(level)

@stats_router.get("/job_comparisons", response_model=JobComparisonResponse)
async def read_job_comparisons(
    level: int = Query(1, ge=1, le=MAX_QUERY_LEVEL),
    job_ids: str = Query(..., description="비교할 직업 ID (쉼표 구분, 최대 6개)"),
    service: JobClassService = Depends(deps.get_job_class_service)
):
    try:
        ids = [int(token) for token in job_ids.split(",") if token.strip()]
    except ValueError as e:
        raise ValidationFailed(f"job_ids must be comma separated integers: {job_ids}") from e
    return await service.compare(level, ids)
