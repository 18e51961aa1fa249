from typing import List, Literal, Optional, Dict
from pydantic import BaseModel, Field
from gamecore.schemas.common import BaseSchema, StatValues, StatMultipliers, StatRow

JobType = Literal["basic", "advanced", "special"]


class JobClassSummary(BaseSchema):
    id: int
    name: str
    job_type: str


class JobClassResponse(JobClassSummary):
    description: Optional[str] = None
    max_level: int
    experience_multiplier: float
    base_stats: StatValues
    multipliers: StatMultipliers


class JobClassUpdateRequest(BaseModel):
    """기획자 수정용 (보낸 필드만 반영)"""
    name: Optional[str] = Field(None, min_length=1, max_length=64)
    job_type: Optional[JobType] = None
    description: Optional[str] = None
    max_level: Optional[int] = Field(None, ge=1, le=999)
    experience_multiplier: Optional[float] = Field(None, gt=0)
    base_stats: Optional[StatValues] = None
    multipliers: Optional[StatMultipliers] = None


class JobClassStatsResponse(BaseSchema):
    """GET /job_classes/{id}/stats"""
    job_class: JobClassSummary
    levels: List[int]
    stats: List[StatRow]


class JobClassWithStats(JobClassResponse):
    stats_by_level: List[StatRow] = []


class JobStatsOverviewResponse(BaseSchema):
    levels: List[int]
    job_classes: List[JobClassWithStats]


class JobStatSample(JobClassSummary):
    max_level: int
    level: int
    stats: StatRow
    multipliers: StatMultipliers


class RankingEntry(BaseSchema):
    name: str
    value: int


class LevelSamplesResponse(BaseSchema):
    level: int
    job_stats: List[JobStatSample]
    rankings: Dict[str, List[RankingEntry]]


class JobComparison(JobClassSummary):
    stats: StatRow
    multipliers: StatMultipliers


class JobComparisonResponse(BaseSchema):
    level: int
    comparison: List[JobComparison]
