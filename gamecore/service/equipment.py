import logging
from collections import defaultdict
from typing import Optional

from gamecore.core.exceptions import SlotOccupied, ValidationFailed
from gamecore.engine.equipment import EQUIPMENT_SLOTS, check_equip, check_unequip
from gamecore.engine.inventory import INVENTORY, EQUIPPED, item_flags
from gamecore.repositories.character import CharacterRepository
from gamecore.repositories.item import CharacterItemRepository
from gamecore.repositories.job_class import JobClassRepository, CharacterJobClassRepository
from gamecore.repositories.skill import InvestmentRepository
from gamecore.schemas.item import (
    EquipmentResponse,
    EquipResponse,
    EquippedSummary,
    EquipmentOverviewRow,
    EquipmentOverviewResponse,
)
from gamecore.service.base import TransactionalService
from gamecore.service.character import collect_stat_boosts
from gamecore.service.inventory import character_item_response

logger = logging.getLogger(__name__)


def _equipped_summary(character_item) -> EquippedSummary:
    return EquippedSummary(
        id=character_item.id,
        name=character_item.item.name,
        rarity=character_item.item.rarity,
        enchantment_level=character_item.enchantment_level,
        durability=character_item.durability,
        max_durability=character_item.max_durability,
    )


class EquipmentService(TransactionalService):
    """장비 슬롯 (EquipmentSlotResolver)"""

    def __init__(
        self,
        repo: CharacterItemRepository,
        character_repo: CharacterRepository,
        job_repo: CharacterJobClassRepository,
        investment_repo: InvestmentRepository,
        job_class_repo: JobClassRepository
    ):
        super().__init__(repo.db)
        self.repo = repo
        self.character_repo = character_repo
        self.job_repo = job_repo
        self.investment_repo = investment_repo
        self.job_class_repo = job_class_repo

    async def get_equipment(self, character_id: int) -> EquipmentResponse:
        character = await self.character_repo.get_or_404(character_id)
        current = character.current_job

        equipped = {slot: None for slot in EQUIPMENT_SLOTS}
        for character_item in await self.repo.list_by_location(character_id, EQUIPPED):
            equipped[character_item.equipment_slot] = character_item_response(character_item)

        available = [
            character_item_response(ci)
            for ci in await self.repo.list_by_location(character_id, INVENTORY)
            if item_flags(ci)["can_equip"]
        ]

        return EquipmentResponse(
            character={
                "id": character.id,
                "name": character.name,
                "current_job": {
                    "id": current.job_class.id,
                    "name": current.job_class.name,
                    "level": current.level,
                } if current else None,
            },
            equipment_slots=EQUIPMENT_SLOTS,
            equipped_items=equipped,
            total_stats=await collect_stat_boosts(
                self.investment_repo, self.repo, character_id, current.job_class_id if current else None
            ),
            available_items=available,
        )

    async def get_overview(
        self,
        character_name: Optional[str] = None,
        job_class_id: Optional[int] = None,
        missing_equipment: Optional[str] = None
    ) -> EquipmentOverviewResponse:
        """
        전 캐릭터 장비 현황
        - job_class_id: 현재 직업 기준 필터
        - missing_equipment: 해당 슬롯이 비어 있는 캐릭터만
        """
        if missing_equipment is not None and missing_equipment not in EQUIPMENT_SLOTS:
            raise ValidationFailed(f"Unknown equipment slot '{missing_equipment}'")

        characters = await self.character_repo.get_list(name=character_name, current_job_class_id=job_class_id)
        equipped_by_character = defaultdict(dict)
        for character_item in await self.repo.list_equipped([c.id for c in characters]):
            equipped_by_character[character_item.character_id][character_item.equipment_slot] = character_item

        rows = []
        for character in characters:
            equipped = equipped_by_character[character.id]
            if missing_equipment is not None and missing_equipment in equipped:
                continue

            current = character.current_job
            rows.append(EquipmentOverviewRow(
                id=character.id,
                name=character.name,
                current_job={
                    "id": current.job_class.id,
                    "name": current.job_class.name,
                    "level": current.level,
                } if current else None,
                equipment={
                    slot: _equipped_summary(equipped[slot]) if slot in equipped else None
                    for slot in EQUIPMENT_SLOTS
                },
                equipped_count=len(equipped),
                empty_slots=[slot for slot in EQUIPMENT_SLOTS if slot not in equipped],
            ))

        job_classes = await self.job_class_repo.get_list()
        return EquipmentOverviewResponse(
            data=rows,
            meta={
                "total_characters": len(rows),
                "equipment_slots": EQUIPMENT_SLOTS,
                "available_job_classes": [
                    {"id": jc.id, "name": jc.name, "job_type": jc.job_type} for jc in job_classes
                ],
                "filters": {
                    "character_name": character_name,
                    "job_class_id": job_class_id,
                    "missing_equipment": missing_equipment,
                },
            },
        )

    async def equip(self, character_id: int, character_item_id: int, slot: str) -> EquipResponse:
        """
        장착
        슬롯에 이미 장비가 있으면 인벤토리로 돌려보내고 교체한다 (잠긴 장비면 SlotOccupied).
        """

        async def operation():
            character_item = await self.repo.get_for_character(character_id, character_item_id, for_update=True)
            current = await self.job_repo.get_current(character_id)
            check_equip(character_item, slot, current)

            displaced = await self.repo.get_in_slot(character_id, slot)
            if displaced is not None:
                if displaced.locked:
                    raise SlotOccupied(f"Slot {slot} holds a locked item ({displaced.item.name})")
                displaced.location = INVENTORY
                displaced.equipment_slot = None
                # 유니크 제약(uq_character_equipment_slot) 때문에 해제를 먼저 반영
                await self.db.flush()

            character_item.location = EQUIPPED
            character_item.equipment_slot = slot
            await self.db.flush()

            logger.info(
                f"[EQUIP] character={character_id} item={character_item_id} -> {slot}"
                + (f" (displaced item={displaced.id})" if displaced is not None else "")
            )
            return EquipResponse(
                equipped=character_item_response(character_item),
                displaced=character_item_response(displaced) if displaced is not None else None,
            )

        return await self.run_serialized(character_id, operation)

    async def unequip(self, character_id: int, character_item_id: int) -> EquipResponse:
        async def operation():
            character_item = await self.repo.get_for_character(character_id, character_item_id, for_update=True)
            check_unequip(character_item)

            slot = character_item.equipment_slot
            character_item.location = INVENTORY
            character_item.equipment_slot = None
            await self.db.flush()

            logger.info(f"[EQUIP] character={character_id} item={character_item_id} <- {slot}")
            return EquipResponse(equipped=character_item_response(character_item))

        return await self.run_serialized(character_id, operation)
