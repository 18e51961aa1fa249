from typing import Optional
from fastapi import APIRouter, Depends, Query

from gamecore.schemas.item import (
    Location,
    CharacterItemListResponse,
    MoveToWarehouseRequest,
    MoveResponse,
    UseItemResponse,
    EquipRequest,
    UnequipRequest,
    EquipResponse,
    EquipmentResponse,
)
from gamecore.service.equipment import EquipmentService
from gamecore.service.inventory import InventoryService
from gamecore.api import deps

router = APIRouter()


# --- 장비 ---

@router.get("/{character_id}/equipment", response_model=EquipmentResponse)
async def read_equipment(
    character_id: int,
    service: EquipmentService = Depends(deps.get_equipment_service)
):
    """
    **장비 화면**
    - 슬롯별 장착 아이템, 장비/스킬 보너스 합계, 장착 가능한 인벤토리 아이템
    """
    return await service.get_equipment(character_id)

@router.post("/{character_id}/equipment/equip", response_model=EquipResponse)
async def equip_item(
    character_id: int,
    payload: EquipRequest,
    service: EquipmentService = Depends(deps.get_equipment_service)
):
    return await service.equip(character_id, payload.character_item_id, payload.slot)

@router.post("/{character_id}/equipment/unequip", response_model=EquipResponse)
async def unequip_item(
    character_id: int,
    payload: UnequipRequest,
    service: EquipmentService = Depends(deps.get_equipment_service)
):
    return await service.unequip(character_id, payload.character_item_id)


# --- 소지품 / 창고 ---

@router.get("/{character_id}/character_items", response_model=CharacterItemListResponse)
async def read_character_items(
    character_id: int,
    location: Optional[Location] = Query(None),
    warehouse_id: Optional[int] = Query(None),
    service: InventoryService = Depends(deps.get_inventory_service)
):
    return await service.list_items(character_id, location, warehouse_id)

@router.patch("/{character_id}/character_items/{character_item_id}/move_to_warehouse", response_model=MoveResponse)
async def move_to_warehouse(
    character_id: int,
    character_item_id: int,
    payload: MoveToWarehouseRequest,
    service: InventoryService = Depends(deps.get_inventory_service)
):
    return await service.move_to_warehouse(character_id, character_item_id, payload.warehouse_id)

@router.patch("/{character_id}/character_items/{character_item_id}/move_to_inventory", response_model=MoveResponse)
async def move_to_inventory(
    character_id: int,
    character_item_id: int,
    service: InventoryService = Depends(deps.get_inventory_service)
):
    return await service.move_to_inventory(character_id, character_item_id)

@router.patch("/{character_id}/character_items/{character_item_id}/use_item", response_model=UseItemResponse)
async def use_item(
    character_id: int,
    character_item_id: int,
    service: InventoryService = Depends(deps.get_inventory_service)
):
    """소모품 사용: 수량 -1 (0이면 삭제), 응답 {message, effects, remainingQuantity}"""
    return await service.use_item(character_id, character_item_id)
