from datetime import datetime
from typing import List, Optional, Any, Dict, Literal
from pydantic import BaseModel, Field, field_validator
from gamecore.schemas.common import BaseSchema, CamelSchema
from gamecore.schemas.job_class import JobClassSummary
from gamecore.engine.effects import parse_item_effects
from gamecore.schemas.character import CharacterSummary, CurrentJobSummary, WarehouseSummary, WarehouseResponse

Location = Literal["inventory", "equipped", "warehouse"]


class ItemResponse(BaseSchema):
    id: int
    name: str
    description: Optional[str] = None
    item_type: str
    rarity: str
    rarity_color: str
    icon_path: Optional[str] = None
    max_stack: int
    level_requirement: int
    job_requirement: List[str] = []
    effects: List[Dict[str, Any]] = []


class CharacterItemResponse(BaseSchema):
    id: int
    quantity: int
    equipped: bool
    location: str
    equipment_slot: Optional[str] = None
    locked: bool
    durability: Optional[int] = None
    max_durability: Optional[int] = None
    enchantment_level: int
    obtained_at: datetime
    can_move: bool
    can_equip: bool
    can_use: bool
    item: ItemResponse
    warehouse: Optional[WarehouseSummary] = None


class CharacterItemListMeta(BaseSchema):
    location: Optional[str] = None
    warehouse_id: Optional[int] = None
    total_count: int
    character: CharacterSummary
    warehouses: List[WarehouseResponse] = []


class CharacterItemListResponse(BaseSchema):
    data: List[CharacterItemResponse]
    meta: CharacterItemListMeta


class MoveToWarehouseRequest(BaseModel):
    warehouse_id: int


class MoveResponse(BaseSchema):
    character_item: CharacterItemResponse
    warehouse: Optional[WarehouseResponse] = None


class UseItemResponse(CamelSchema):
    message: str
    effects: List[str]
    remaining_quantity: int


class EquipRequest(BaseModel):
    character_item_id: int
    slot: str = Field(..., min_length=1)


class UnequipRequest(BaseModel):
    character_item_id: int


class EquipResponse(BaseSchema):
    equipped: CharacterItemResponse
    displaced: Optional[CharacterItemResponse] = None


class EquipmentCharacter(CharacterSummary):
    current_job: Optional[CurrentJobSummary] = None


class EquipmentResponse(BaseSchema):
    character: EquipmentCharacter
    equipment_slots: Dict[str, str]
    equipped_items: Dict[str, Optional[CharacterItemResponse]]
    total_stats: Dict[str, int]
    available_items: List[CharacterItemResponse]


# --- 아이템 템플릿 (기획자 편집) ---

ItemType = Literal["weapon", "armor", "accessory", "consumable", "material", "quest"]
Rarity = Literal["common", "uncommon", "rare", "epic", "legendary"]
SaleType = Literal["shop", "bazaar", "both", "unsellable"]


def _check_item_effects(effects):
    # restore/buff/stat_boost 모양 검증 후 정규화된 dict 리스트로 저장
    try:
        return [effect.model_dump() for effect in parse_item_effects(effects)]
    except ValueError as e:
        raise ValueError(f"Invalid item effects: {e}") from None


class ItemTemplateFields(BaseModel):
    """item_type을 제외한 템플릿 필드 (무기/방어구 화면은 타입이 고정)"""
    name: str = Field(..., min_length=1, max_length=64)
    description: Optional[str] = None
    rarity: Rarity = "common"
    level_requirement: int = Field(1, ge=1)
    job_requirement: List[str] = []
    max_stack: int = Field(1, ge=1)
    buy_price: int = Field(0, ge=0)
    sell_price: int = Field(0, ge=0)
    sale_type: SaleType = "shop"
    effects: List[Dict[str, Any]] = []
    icon_path: Optional[str] = Field(None, max_length=128)
    active: bool = True

    @field_validator("effects")
    @classmethod
    def check_effects(cls, value):
        return _check_item_effects(value)


class ItemCreateRequest(ItemTemplateFields):
    item_type: ItemType


class ItemUpdateRequest(BaseModel):
    """보낸 필드만 반영"""
    name: Optional[str] = Field(None, min_length=1, max_length=64)
    description: Optional[str] = None
    item_type: Optional[ItemType] = None
    rarity: Optional[Rarity] = None
    level_requirement: Optional[int] = Field(None, ge=1)
    job_requirement: Optional[List[str]] = None
    max_stack: Optional[int] = Field(None, ge=1)
    buy_price: Optional[int] = Field(None, ge=0)
    sell_price: Optional[int] = Field(None, ge=0)
    sale_type: Optional[SaleType] = None
    effects: Optional[List[Dict[str, Any]]] = None
    icon_path: Optional[str] = Field(None, max_length=128)
    active: Optional[bool] = None

    @field_validator("effects")
    @classmethod
    def check_effects(cls, value):
        return None if value is None else _check_item_effects(value)


class ItemTemplateResponse(ItemResponse):
    buy_price: int
    sell_price: int
    sale_type: str
    active: bool
    created_at: datetime
    updated_at: datetime


class ItemListEntry(ItemTemplateResponse):
    players_count: int = 0


class ItemListResponse(BaseSchema):
    data: List[ItemListEntry]
    total_count: int


class ItemStatistics(BaseSchema):
    total_items: int
    characters_with_item: int
    average_per_player: float
    median_per_player: float
    max_per_player: int
    min_per_player: int


class ItemDetailResponse(ItemTemplateResponse):
    statistics: ItemStatistics


class EquipmentTemplateResponse(ItemTemplateResponse):
    """무기/방어구 화면용 (장착 가능 슬롯 + 보유 캐릭터 수)"""
    equipment_slots: List[str]
    character_count: int = 0


class EquipmentTemplateListMeta(BaseSchema):
    total_count: int
    rarity: Optional[str] = None


class ArmorListResponse(BaseSchema):
    armors: List[EquipmentTemplateResponse]
    meta: EquipmentTemplateListMeta


class ArmorResponse(BaseSchema):
    armor: EquipmentTemplateResponse


class WeaponListResponse(BaseSchema):
    weapons: List[EquipmentTemplateResponse]
    meta: EquipmentTemplateListMeta


class WeaponResponse(BaseSchema):
    weapon: EquipmentTemplateResponse


# --- 장비 현황 (전 캐릭터) ---

class EquippedSummary(BaseSchema):
    id: int
    name: str
    rarity: str
    enchantment_level: int
    durability: Optional[int] = None
    max_durability: Optional[int] = None


class EquipmentOverviewRow(BaseSchema):
    id: int
    name: str
    current_job: Optional[CurrentJobSummary] = None
    equipment: Dict[str, Optional[EquippedSummary]]
    equipped_count: int
    empty_slots: List[str]


class EquipmentOverviewMeta(BaseSchema):
    total_characters: int
    equipment_slots: Dict[str, str]
    available_job_classes: List[JobClassSummary]
    filters: Dict[str, Any]


class EquipmentOverviewResponse(BaseSchema):
    data: List[EquipmentOverviewRow]
    meta: EquipmentOverviewMeta
