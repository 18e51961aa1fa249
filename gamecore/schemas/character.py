from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field
from gamecore.schemas.common import BaseSchema, CamelSchema, StatRow
from gamecore.schemas.job_class import JobClassSummary


class CharacterSummary(BaseSchema):
    id: int
    name: str


class CurrentJobSummary(BaseSchema):
    id: int
    name: str
    level: int


class WarehouseSummary(BaseSchema):
    id: int
    name: str


class WarehouseResponse(WarehouseSummary):
    max_slots: int
    used_slots: int


class AddExperienceRequest(BaseModel):
    # amount <= 0 은 서비스에서 InvalidAmount 로 처리 (에러 타입을 통일하기 위함)
    experience: int
    reason: str = Field(..., max_length=500)
    job_class_id: Optional[int] = Field(None, description="생략 시 현재 직업")


class ExperienceGrantResponse(CamelSchema):
    """PATCH /characters/{id}/add_experience 응답 (camelCase)"""
    character_id: int
    job_class_id: int
    experience: int
    new_level: int
    leveled_up: bool
    skill_points_gained: int
    skill_points: int
    exp_to_next_level: int
    level_progress: float
    max_level_reached: bool


class ExperienceGrantLog(BaseSchema):
    id: int
    character_job_class_id: int
    amount: int
    reason: str
    actor: str
    level_before: int
    level_after: int
    created_at: datetime


class AcquireJobClassRequest(BaseModel):
    job_class_id: int
    make_current: bool = False


class SwitchJobClassRequest(BaseModel):
    job_class_id: int


class CharacterJobClassResponse(BaseSchema):
    """캐릭터 직업 상세 (진행도 + 현재 스탯)"""
    id: int
    character: CharacterSummary
    job_class: JobClassSummary
    max_level: int
    level: int
    experience: int
    skill_points: int
    exp_to_next_level: int
    level_progress: float
    max_level_reached: bool
    is_current: bool
    unlocked_at: datetime
    stats: StatRow
    next_level_stats: Optional[StatRow] = None


class CharacterJobClassList(BaseSchema):
    character: CharacterSummary
    job_classes: List[CharacterJobClassResponse]


# --- 캐릭터 관리 화면 ---

class CharacterListItem(BaseSchema):
    id: int
    name: str
    current_job_name: Optional[str] = None
    current_job_level: Optional[int] = None
    created_at: datetime


class CharacterListResponse(BaseSchema):
    data: List[CharacterListItem]
    total_count: int


class CharacterDetailResponse(BaseSchema):
    id: int
    name: str
    created_at: datetime
    current_job_class: Optional[CharacterJobClassResponse] = None
    job_classes: List[CharacterJobClassResponse]
    warehouses: List[WarehouseResponse]
    inventory_count: int
    equipped_count: int
    warehouse_item_count: int
