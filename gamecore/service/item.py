import logging
from typing import List, Optional

from gamecore.core import config
from gamecore.core.exceptions import NotFound, TemplateInUse
from gamecore.engine.equipment import EQUIPMENT_SLOTS, eligible_slots
from gamecore.engine.inventory import ownership_statistics
from gamecore.models.item import Item
from gamecore.repositories.item import ItemRepository
from gamecore.schemas.item import (
    ItemCreateRequest,
    ItemUpdateRequest,
    ItemTemplateFields,
    ItemTemplateResponse,
    ItemListEntry,
    ItemListResponse,
    ItemDetailResponse,
    EquipmentTemplateResponse,
)
from gamecore.service.base import BaseService

logger = logging.getLogger(__name__)

# null로 보내면 지우는 필드 (나머지는 null이면 무시)
NULLABLE_FIELDS = ("description", "icon_path")


def _equipment_view(template: ItemTemplateResponse, character_count: int) -> EquipmentTemplateResponse:
    slots = eligible_slots(template.item_type)
    return EquipmentTemplateResponse(
        **template.model_dump(),
        equipment_slots=[slot for slot in EQUIPMENT_SLOTS if slot in slots],
        character_count=character_count,
    )


class ItemService(BaseService):
    """아이템 템플릿 카탈로그 (기획자 편집 + 보유 통계)"""

    def __init__(self, repo: ItemRepository, redis):
        super().__init__(redis)
        self.repo = repo
        self.db = repo.db

    async def _commit(self) -> None:
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

    # --- 조회 ---

    async def get_template(self, item_id: int) -> ItemTemplateResponse:
        cache_key = f"item:detail:{item_id}"

        item = await self.get_with_cache(
            key=cache_key,
            fetch_func=lambda: self.repo.get_by_id(item_id),
            schema_model=ItemTemplateResponse,
            ttl=config.ITEM_CACHE_TTL
        )

        if not item:
            raise NotFound(f"Item {item_id} not found")
        return item

    async def get_item(self, item_id: int) -> ItemDetailResponse:
        """템플릿(캐시) + 보유 통계(항상 DB)"""
        template = await self.get_template(item_id)
        quantities = await self.repo.owner_quantities(item_id)
        return ItemDetailResponse(**template.model_dump(), statistics=ownership_statistics(quantities))

    async def list_items(
        self,
        item_type: Optional[str] = None,
        rarity: Optional[str] = None,
        active: Optional[bool] = None,
        skip: int = 0,
        limit: int = 100
    ) -> ItemListResponse:
        items = await self.repo.get_list(item_type=item_type, rarity=rarity, active=active, skip=skip, limit=limit)
        counts = await self.repo.owner_counts([item.id for item in items])
        data = [
            ItemListEntry(
                **ItemTemplateResponse.model_validate(item).model_dump(),
                players_count=counts.get(item.id, 0),
            )
            for item in items
        ]
        return ItemListResponse(data=data, total_count=len(data))

    # --- 기획자 편집 ---

    async def create_item(self, payload: ItemCreateRequest) -> ItemTemplateResponse:
        item = self.repo.add(Item(**payload.model_dump()))
        await self._commit()
        await self.db.refresh(item)
        logger.info(f"Item template '{item.name}' ({item.item_type}) created")
        return ItemTemplateResponse.model_validate(item)

    async def update_item(self, item_id: int, payload: ItemUpdateRequest) -> ItemTemplateResponse:
        item = await self.repo.get_or_404(item_id)
        data = {
            field: value
            for field, value in payload.model_dump(exclude_unset=True).items()
            if value is not None or field in NULLABLE_FIELDS
        }

        # 보유 중인 인스턴스가 있으면 item_type 변경 불가
        if "item_type" in data and data["item_type"] != item.item_type:
            if await self.repo.owner_quantities(item_id):
                raise TemplateInUse(f"Item '{item.name}' is owned by characters, item_type cannot change")

        for field, value in data.items():
            setattr(item, field, value)

        await self._commit()
        await self.db.refresh(item)
        await self.invalidate(f"item:detail:{item_id}")
        logger.info(f"Item template {item_id} updated: {sorted(data)}")
        return ItemTemplateResponse.model_validate(item)

    async def delete_item(self, item_id: int) -> None:
        item = await self.repo.get_or_404(item_id)
        owners = await self.repo.owner_quantities(item_id)
        if owners:
            raise TemplateInUse(f"Item '{item.name}' is owned by {len(owners)} characters")

        name = item.name
        await self.repo.delete(item)
        await self._commit()
        await self.invalidate(f"item:detail:{item_id}")
        logger.info(f"Item template {item_id} ({name}) deleted")

    # --- 무기 / 방어구 화면 ---

    async def list_equipment(self, item_type: str, rarity: Optional[str] = None) -> List[EquipmentTemplateResponse]:
        items = await self.repo.get_list(item_type=item_type, rarity=rarity)
        counts = await self.repo.owner_counts([item.id for item in items])
        return [
            _equipment_view(ItemTemplateResponse.model_validate(item), counts.get(item.id, 0))
            for item in items
        ]

    async def get_equipment(self, item_type: str, item_id: int) -> EquipmentTemplateResponse:
        template = await self.get_template(item_id)
        if template.item_type != item_type:
            raise NotFound(f"{item_type.capitalize()} {item_id} not found")
        counts = await self.repo.owner_counts([item_id])
        return _equipment_view(template, counts.get(item_id, 0))

    async def create_equipment(self, item_type: str, payload: ItemTemplateFields) -> EquipmentTemplateResponse:
        template = await self.create_item(ItemCreateRequest(item_type=item_type, **payload.model_dump()))
        return _equipment_view(template, 0)
