from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class BaseSchema(BaseModel):
    """모든 스키마의 공통 부모"""
    model_config = ConfigDict(from_attributes=True)  # ORM 객체를 Pydantic으로 자동 변환


class CamelSchema(BaseSchema):
    """응답 키를 camelCase로 내보내는 스키마 (경험치/아이템 사용 등 액션 응답)"""
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)


class StatValues(BaseSchema):
    hp: int = 0
    mp: int = 0
    attack: int = 0
    defense: int = 0
    magic_attack: int = 0
    magic_defense: int = 0
    agility: int = 0
    luck: int = 0


class StatMultipliers(BaseSchema):
    hp: float = 0
    mp: float = 0
    attack: float = 0
    defense: float = 0
    magic_attack: float = 0
    magic_defense: float = 0
    agility: float = 0
    luck: float = 0


class StatRow(StatValues):
    """특정 레벨의 스탯 (hp/mp 는 현재값, max_hp/max_mp 는 최대치)"""
    level: int | None = None
    max_hp: int = 0
    max_mp: int = 0


class ErrorResponse(BaseModel):
    error: str
    message: str
    status: int
    success: bool = False
    data: object | None = None
