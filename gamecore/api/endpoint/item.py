from typing import Optional
from fastapi import APIRouter, Depends, Query, Response, status

from gamecore.schemas.item import (
    ItemType,
    Rarity,
    ItemCreateRequest,
    ItemUpdateRequest,
    ItemTemplateFields,
    ItemTemplateResponse,
    ItemListResponse,
    ItemDetailResponse,
    ArmorListResponse,
    ArmorResponse,
    WeaponListResponse,
    WeaponResponse,
)
from gamecore.service.item import ItemService
from gamecore.api import deps

router = APIRouter()
weapon_router = APIRouter()
armor_router = APIRouter()


# --- 아이템 템플릿 ---

@router.get("", response_model=ItemListResponse)
async def read_items(
    item_type: Optional[ItemType] = Query(None),
    rarity: Optional[Rarity] = Query(None),
    active: Optional[bool] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    service: ItemService = Depends(deps.get_item_service)
):
    """아이템 목록 (players_count: 보유 캐릭터 수)"""
    return await service.list_items(item_type, rarity, active, skip=skip, limit=limit)

@router.post("", response_model=ItemTemplateResponse, status_code=status.HTTP_201_CREATED)
async def create_item(
    payload: ItemCreateRequest,
    service: ItemService = Depends(deps.get_item_service)
):
    return await service.create_item(payload)

@router.get("/{item_id}", response_model=ItemDetailResponse)
async def read_item(
    item_id: int,
    service: ItemService = Depends(deps.get_item_service)
):
    """
    **아이템 상세**
    - 템플릿 정보: Redis Cache 24시간
    - statistics: 총 보유 수량 / 보유 캐릭터 수 / 1인당 평균·중앙값·최대·최소
    """
    return await service.get_item(item_id)

@router.patch("/{item_id}", response_model=ItemTemplateResponse)
async def update_item(
    item_id: int,
    payload: ItemUpdateRequest,
    service: ItemService = Depends(deps.get_item_service)
):
    return await service.update_item(item_id, payload)

@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_item(
    item_id: int,
    service: ItemService = Depends(deps.get_item_service)
):
    """보유 중인 캐릭터가 있으면 409 TemplateInUse"""
    await service.delete_item(item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- 무기 ---

@weapon_router.get("", response_model=WeaponListResponse)
async def read_weapons(
    rarity: Optional[Rarity] = Query(None),
    service: ItemService = Depends(deps.get_item_service)
):
    weapons = await service.list_equipment("weapon", rarity)
    return WeaponListResponse(weapons=weapons, meta={"total_count": len(weapons), "rarity": rarity})

@weapon_router.get("/{weapon_id}", response_model=WeaponResponse)
async def read_weapon(
    weapon_id: int,
    service: ItemService = Depends(deps.get_item_service)
):
    return WeaponResponse(weapon=await service.get_equipment("weapon", weapon_id))


# --- 방어구 ---

@armor_router.get("", response_model=ArmorListResponse)
async def read_armors(
    rarity: Optional[Rarity] = Query(None),
    service: ItemService = Depends(deps.get_item_service)
):
    """방어구 목록 (equipment_slots: 장착 가능한 슬롯, character_count: 보유 캐릭터 수)"""
    armors = await service.list_equipment("armor", rarity)
    return ArmorListResponse(armors=armors, meta={"total_count": len(armors), "rarity": rarity})

@armor_router.post("", response_model=ArmorResponse, status_code=status.HTTP_201_CREATED)
async def create_armor(
    payload: ItemTemplateFields,
    service: ItemService = Depends(deps.get_item_service)
):
    return ArmorResponse(armor=await service.create_equipment("armor", payload))

@armor_router.get("/{armor_id}", response_model=ArmorResponse)
async def read_armor(
    armor_id: int,
    service: ItemService = Depends(deps.get_item_service)
):
    return ArmorResponse(armor=await service.get_equipment("armor", armor_id))
