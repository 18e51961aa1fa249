from datetime import datetime
from typing import List, Literal, Optional, Any, Dict
from pydantic import BaseModel, Field, model_validator
from gamecore.schemas.common import BaseSchema, CamelSchema
from gamecore.schemas.job_class import JobClassSummary
from gamecore.engine.effects import parse_node_effect

NodeType = Literal["stat_boost", "technique", "passive"]
SkillLineType = Literal["weapon", "job_specific"]


class SkillNodeResponse(BaseSchema):
    id: int
    skill_line_id: int
    name: str
    description: Optional[str] = None
    node_type: str
    node_type_name: str
    points_required: int
    effects: Dict[str, Any]
    position_x: int
    position_y: int
    display_order: int
    active: bool


class TopInvestor(BaseSchema):
    character_id: int
    character_name: str
    points_invested: int
    unlocked_nodes_count: int


class InvestmentSummary(CamelSchema):
    """스킬 라인 투자 집계 (camelCase)"""
    total_points: int
    character_count: int
    average_points: float
    max_investment: int
    top_investors: List[TopInvestor]


class SkillLineResponse(BaseSchema):
    id: int
    name: str
    description: Optional[str] = None
    skill_line_type: str
    skill_line_type_name: str
    unlock_level: int
    active: bool


class SkillLineListItem(SkillLineResponse):
    nodes_count: int


class SkillLineDetailResponse(SkillLineResponse):
    job_classes: List[JobClassSummary] = []
    skill_nodes: List[SkillNodeResponse] = []
    character_investments: InvestmentSummary


class SkillLineSummary(SkillLineListItem):
    """스킬 라인 관리 화면 (목록/생성/수정 응답)"""
    job_classes_count: int
    job_classes: List[JobClassSummary] = []
    created_at: datetime
    updated_at: datetime


class SkillLineListResponse(BaseSchema):
    skill_lines: List[SkillLineSummary]
    total_count: int


class SkillLineCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=64)
    description: Optional[str] = None
    skill_line_type: SkillLineType
    unlock_level: int = Field(1, ge=1)
    active: bool = True
    job_class_ids: List[int] = Field([], description="이 라인을 쓸 수 있는 직업")


class SkillLineUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=64)
    description: Optional[str] = None
    skill_line_type: Optional[SkillLineType] = None
    unlock_level: Optional[int] = Field(None, ge=1)
    active: Optional[bool] = None
    job_class_ids: Optional[List[int]] = Field(None, description="보내면 직업 연결을 통째로 교체")


class JobClassSkillLinesResponse(BaseSchema):
    job_class: JobClassSummary
    skill_lines: List[SkillLineListItem]
    total_count: int


class SkillNodeBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=64)
    description: Optional[str] = None
    node_type: NodeType
    points_required: int = Field(1, ge=1)
    effects: Dict[str, Any] = {}
    position_x: int = 0
    position_y: int = 0
    display_order: int = 0
    active: bool = True

    @model_validator(mode="after")
    def check_effects_shape(self):
        # node_type 별로 effects 모양이 다르다 (stat_boost: stat/value, technique: name/damage_multiplier ...)
        try:
            effect = parse_node_effect(self.node_type, self.effects)
        except ValueError as e:
            raise ValueError(f"Invalid effects for node_type '{self.node_type}': {e}") from None
        self.effects = effect.model_dump()
        return self


class SkillNodeCreateRequest(SkillNodeBase):
    pass


class SkillNodeUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=64)
    description: Optional[str] = None
    node_type: Optional[NodeType] = None
    points_required: Optional[int] = Field(None, ge=1)
    effects: Optional[Dict[str, Any]] = None
    position_x: Optional[int] = None
    position_y: Optional[int] = None
    display_order: Optional[int] = None
    active: Optional[bool] = None


class SkillNodeDetailResponse(BaseSchema):
    skill_node: SkillNodeResponse
    skill_line: SkillLineResponse
    job_classes: List[JobClassSummary]
    investment_count: int


class UnlockNodeRequest(BaseModel):
    character_id: int


class UnlockNodeResponse(CamelSchema):
    character_id: int
    skill_node_id: int
    job_class_id: int
    points_spent: int
    remaining_skill_points: int
    effect: Dict[str, Any]


class SkillLineStats(BaseSchema):
    id: int
    name: str
    skill_line_type: str
    total_investments: int
    character_count: int
    average_investment: float
    max_investment: int


class OverallSkillStats(BaseSchema):
    total_characters: int
    total_skill_points: int
    used_skill_points: int
    available_skill_points: int
    utilization_rate: float


class SkillStatisticsResponse(BaseSchema):
    job_class: JobClassSummary
    overall_stats: OverallSkillStats
    skill_line_stats: List[SkillLineStats]


class CharacterInvestmentResponse(BaseSchema):
    skill_node_id: int
    job_class_id: int
    points_spent: int
    unlocked_at: datetime
