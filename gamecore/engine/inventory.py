# gamecore/engine/inventory.py
"""
아이템 위치 상태 머신

    warehouse(id) <-> inventory <-> equipped(slot)

창고와 장비 사이는 직접 이동할 수 없고 반드시 인벤토리를 거친다.
모든 이동은 잠금(locked) 상태가 아니어야 한다.
"""
from statistics import median
from typing import Iterable

from gamecore.core.exceptions import InvalidTransition, ItemLocked, NotConsumable, WarehouseFull

INVENTORY = "inventory"
EQUIPPED = "equipped"
WAREHOUSE = "warehouse"

TRANSITIONS = frozenset({
    (INVENTORY, WAREHOUSE),
    (WAREHOUSE, INVENTORY),
    (INVENTORY, EQUIPPED),
    (EQUIPPED, INVENTORY),
})


def can_transition(source: str, target: str) -> bool:
    return (source, target) in TRANSITIONS


def check_transition(character_item, target: str) -> None:
    if character_item.locked:
        raise ItemLocked()
    if not can_transition(character_item.location, target):
        raise InvalidTransition(
            f"Cannot move item from {character_item.location} to {target}"
        )


def check_warehouse_capacity(warehouse) -> None:
    if warehouse.used_slots >= warehouse.max_slots:
        raise WarehouseFull(f"Warehouse '{warehouse.name}' is full ({warehouse.used_slots}/{warehouse.max_slots})")


def check_use(character_item) -> None:
    if character_item.item.item_type != "consumable":
        raise NotConsumable(f"'{character_item.item.name}' is not consumable")
    if character_item.locked:
        raise ItemLocked()
    if character_item.location != INVENTORY:
        raise InvalidTransition("Only inventory items can be used")


def item_flags(character_item) -> dict:
    """목록 화면용 can_move / can_equip / can_use"""
    item = character_item.item
    unlocked = not character_item.locked
    return {
        "can_move": unlocked and character_item.location in (INVENTORY, WAREHOUSE),
        "can_equip": unlocked and character_item.location == INVENTORY
        and item.item_type in ("weapon", "armor", "accessory"),
        "can_use": unlocked and character_item.location == INVENTORY and item.item_type == "consumable",
    }


def ownership_statistics(quantities: Iterable[int]) -> dict:
    """아이템 템플릿 상세용 보유 통계 (quantities: 보유 캐릭터별 수량 합계)"""
    values = sorted(quantities)
    total = sum(values)
    count = len(values)
    return {
        "total_items": total,
        "characters_with_item": count,
        "average_per_player": round(total / count, 1) if count else 0.0,
        "median_per_player": float(median(values)) if values else 0.0,
        "max_per_player": values[-1] if values else 0,
        "min_per_player": values[0] if values else 0,
    }
