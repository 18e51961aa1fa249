from typing import Dict, List, Optional
from sqlalchemy import select, func, distinct
from sqlalchemy.ext.asyncio import AsyncSession

from gamecore.core.exceptions import NotFound
from gamecore.models.item import Item, Warehouse, CharacterItem
from gamecore.repositories.base import BaseRepository


class WarehouseRepository(BaseRepository[Warehouse]):
    def __init__(self, db: AsyncSession):
        super().__init__(Warehouse, db)

    async def get_for_character(self, character_id: int, warehouse_id: int, for_update: bool = False) -> Warehouse:
        query = select(Warehouse).where(Warehouse.id == warehouse_id, Warehouse.character_id == character_id)
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        warehouse = result.scalars().first()
        if warehouse is None:
            raise NotFound(f"Warehouse {warehouse_id} not found for character {character_id}")
        return warehouse


class CharacterItemRepository(BaseRepository[CharacterItem]):
    def __init__(self, db: AsyncSession):
        super().__init__(CharacterItem, db)

    async def get_for_character(self, character_id: int, character_item_id: int, for_update: bool = False) -> CharacterItem:
        query = select(CharacterItem).where(
            CharacterItem.id == character_item_id,
            CharacterItem.character_id == character_id,
        )
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        character_item = result.scalars().first()
        if character_item is None:
            raise NotFound(f"Character item {character_item_id} not found for character {character_id}")
        return character_item

    async def list_by_location(
        self,
        character_id: int,
        location: Optional[str] = None,
        warehouse_id: Optional[int] = None
    ) -> List[CharacterItem]:
        query = select(CharacterItem).where(CharacterItem.character_id == character_id)

        if location:
            query = query.where(CharacterItem.location == location)
        if warehouse_id is not None:
            query = query.where(CharacterItem.warehouse_id == warehouse_id)

        query = query.order_by(CharacterItem.id)
        result = await self.db.execute(query)
        return result.scalars().all()

    async def get_in_slot(self, character_id: int, slot: str) -> Optional[CharacterItem]:
        query = select(CharacterItem).where(
            CharacterItem.character_id == character_id,
            CharacterItem.location == "equipped",
            CharacterItem.equipment_slot == slot,
        ).with_for_update()
        result = await self.db.execute(query)
        return result.scalars().first()

    async def count_by_location(self, character_id: int) -> Dict[str, int]:
        """위치별 행 수 (스택은 1행으로 센다)"""
        query = (
            select(CharacterItem.location, func.count(CharacterItem.id))
            .where(CharacterItem.character_id == character_id)
            .group_by(CharacterItem.location)
        )
        result = await self.db.execute(query)
        return {location: count for location, count in result.all()}

    async def list_equipped(self, character_ids: List[int]) -> List[CharacterItem]:
        if not character_ids:
            return []
        query = (
            select(CharacterItem)
            .where(CharacterItem.character_id.in_(character_ids), CharacterItem.location == "equipped")
            .order_by(CharacterItem.id)
        )
        result = await self.db.execute(query)
        return result.scalars().all()


class ItemRepository(BaseRepository[Item]):
    """아이템 템플릿 (기획자 편집용)"""

    def __init__(self, db: AsyncSession):
        super().__init__(Item, db)

    async def get_list(
        self,
        item_type: Optional[str] = None,
        rarity: Optional[str] = None,
        active: Optional[bool] = None,
        skip: int = 0,
        limit: int = 100
    ) -> List[Item]:
        query = select(Item)

        # 동적 쿼리 생성
        if item_type:
            query = query.where(Item.item_type == item_type)
        if rarity:
            query = query.where(Item.rarity == rarity)
        if active is not None:
            query = query.where(Item.active == active)

        query = query.order_by(Item.id).offset(skip).limit(limit)
        result = await self.db.execute(query)
        return result.scalars().all()

    async def owner_quantities(self, item_id: int) -> List[int]:
        """캐릭터별 보유 수량 합계 (보유한 캐릭터만)"""
        query = (
            select(func.sum(CharacterItem.quantity))
            .where(CharacterItem.item_id == item_id)
            .group_by(CharacterItem.character_id)
        )
        result = await self.db.execute(query)
        return [int(total) for total in result.scalars().all()]

    async def owner_counts(self, item_ids: List[int]) -> Dict[int, int]:
        """아이템별 보유 캐릭터 수 (없으면 키 없음)"""
        if not item_ids:
            return {}
        query = (
            select(CharacterItem.item_id, func.count(distinct(CharacterItem.character_id)))
            .where(CharacterItem.item_id.in_(item_ids))
            .group_by(CharacterItem.item_id)
        )
        result = await self.db.execute(query)
        return {item_id: count for item_id, count in result.all()}
