import logging
from typing import Optional

from gamecore.engine.effects import DefaultEffectApplier, EffectApplier, Vitals
from gamecore.engine.inventory import (
    INVENTORY, EQUIPPED, WAREHOUSE,
    check_transition, check_warehouse_capacity, check_use, item_flags
)
from gamecore.engine.stats import project_stats
from gamecore.models.item import CharacterItem
from gamecore.repositories.character import CharacterRepository
from gamecore.repositories.item import CharacterItemRepository, WarehouseRepository
from gamecore.repositories.job_class import CharacterJobClassRepository
from gamecore.repositories.skill import InvestmentRepository
from gamecore.schemas.item import (
    CharacterItemResponse,
    CharacterItemListResponse,
    ItemResponse,
    MoveResponse,
    UseItemResponse,
    WarehouseResponse,
    WarehouseSummary,
)
from gamecore.service.base import TransactionalService
from gamecore.service.character import collect_stat_boosts

logger = logging.getLogger(__name__)


def character_item_response(character_item: CharacterItem) -> CharacterItemResponse:
    return CharacterItemResponse(
        id=character_item.id,
        quantity=character_item.quantity,
        equipped=character_item.equipped,
        location=character_item.location,
        equipment_slot=character_item.equipment_slot,
        locked=character_item.locked,
        durability=character_item.durability,
        max_durability=character_item.max_durability,
        enchantment_level=character_item.enchantment_level,
        obtained_at=character_item.obtained_at,
        item=ItemResponse.model_validate(character_item.item),
        warehouse=WarehouseSummary.model_validate(character_item.warehouse) if character_item.warehouse else None,
        **item_flags(character_item),
    )


class InventoryService(TransactionalService):
    """아이템 위치 이동 (InventoryLocationMachine) + 아이템 사용"""

    def __init__(
        self,
        repo: CharacterItemRepository,
        warehouse_repo: WarehouseRepository,
        character_repo: CharacterRepository,
        job_repo: CharacterJobClassRepository,
        investment_repo: InvestmentRepository,
        applier: Optional[EffectApplier] = None
    ):
        super().__init__(repo.db)
        self.repo = repo
        self.warehouse_repo = warehouse_repo
        self.character_repo = character_repo
        self.job_repo = job_repo
        self.investment_repo = investment_repo
        self.applier = applier or DefaultEffectApplier()

    async def list_items(
        self,
        character_id: int,
        location: Optional[str] = None,
        warehouse_id: Optional[int] = None
    ) -> CharacterItemListResponse:
        character = await self.character_repo.get_or_404(character_id)
        if warehouse_id is not None:
            await self.warehouse_repo.get_for_character(character_id, warehouse_id)

        items = await self.repo.list_by_location(character_id, location, warehouse_id)
        return CharacterItemListResponse(
            data=[character_item_response(ci) for ci in items],
            meta={
                "location": location,
                "warehouse_id": warehouse_id,
                "total_count": len(items),
                "character": {"id": character.id, "name": character.name},
                "warehouses": [
                    WarehouseResponse.model_validate(w) for w in sorted(character.warehouses, key=lambda w: w.id)
                ],
            },
        )

    async def move_to_warehouse(self, character_id: int, character_item_id: int, warehouse_id: int) -> MoveResponse:
        async def operation():
            character_item = await self.repo.get_for_character(character_id, character_item_id, for_update=True)
            check_transition(character_item, WAREHOUSE)

            warehouse = await self.warehouse_repo.get_for_character(character_id, warehouse_id, for_update=True)
            check_warehouse_capacity(warehouse)

            # 위치 변경과 카운터 증가는 같은 트랜잭션
            character_item.location = WAREHOUSE
            character_item.warehouse_id = warehouse.id
            character_item.warehouse = warehouse
            warehouse.used_slots += 1
            await self.db.flush()

            logger.info(
                f"[ITEM] character={character_id} item={character_item_id} -> warehouse={warehouse_id} "
                f"({warehouse.used_slots}/{warehouse.max_slots})"
            )
            return MoveResponse(
                character_item=character_item_response(character_item),
                warehouse=WarehouseResponse.model_validate(warehouse),
            )

        return await self.run_serialized(character_id, operation)

    async def move_to_inventory(self, character_id: int, character_item_id: int) -> MoveResponse:
        async def operation():
            character_item = await self.repo.get_for_character(character_id, character_item_id, for_update=True)
            check_transition(character_item, INVENTORY)

            warehouse = None
            if character_item.location == WAREHOUSE:
                warehouse = await self.warehouse_repo.get_for_character(
                    character_id, character_item.warehouse_id, for_update=True
                )
                warehouse.used_slots -= 1
                character_item.warehouse_id = None
                character_item.warehouse = None
            elif character_item.location == EQUIPPED:
                character_item.equipment_slot = None

            character_item.location = INVENTORY
            await self.db.flush()

            logger.info(f"[ITEM] character={character_id} item={character_item_id} -> inventory")
            return MoveResponse(
                character_item=character_item_response(character_item),
                warehouse=WarehouseResponse.model_validate(warehouse) if warehouse else None,
            )

        return await self.run_serialized(character_id, operation)

    async def use_item(self, character_id: int, character_item_id: int) -> UseItemResponse:
        """
        소모품 사용
        수량 1 감소 (0이 되면 행 삭제) + 효과 적용 훅 호출.
        회복량은 현재 직업의 최대 HP/MP 까지만 (현재 직업이 없으면 수량만 줄고 HP/MP는 그대로).
        """

        async def operation():
            character_item = await self.repo.get_for_character(character_id, character_item_id, for_update=True)
            check_use(character_item)

            # 현재 직업이 없으면 HP/MP는 그대로 두고 효과 설명만 돌려준다
            current = await self.job_repo.get_current(character_id, for_update=True)
            vitals = None
            if current is not None:
                job_class = current.job_class
                boosts = await collect_stat_boosts(self.investment_repo, self.repo, character_id, current.job_class_id)
                projected = project_stats(
                    job_class.base_stats, job_class.multipliers, current.level,
                    current.current_hp, current.current_mp, boosts
                )
                vitals = Vitals(
                    hp=projected["hp"], max_hp=projected["max_hp"],
                    mp=projected["mp"], max_mp=projected["max_mp"],
                )

            item = character_item.item
            messages = self.applier.apply(item.parsed_effects, vitals)
            if vitals is not None:
                current.current_hp = vitals.hp
                current.current_mp = vitals.mp

            if character_item.quantity <= 1:
                remaining = 0
                await self.repo.delete(character_item)
            else:
                character_item.quantity -= 1
                remaining = character_item.quantity
            await self.db.flush()

            logger.info(f"[ITEM] character={character_id} used {item.name}, remaining={remaining}")
            return UseItemResponse(
                message=f"Used {item.name}",
                effects=messages or [f"{item.name} has no effect"],
                remaining_quantity=remaining,
            )

        return await self.run_serialized(character_id, operation)
