from types import SimpleNamespace

import pytest

from gamecore.core.exceptions import (
    InvalidTransition, ItemLocked, WarehouseFull, NotConsumable, NotFound
)
from gamecore.engine.inventory import can_transition, item_flags


def test_transition_table():
    assert can_transition("inventory", "warehouse")
    assert can_transition("warehouse", "inventory")
    assert can_transition("inventory", "equipped")
    assert can_transition("equipped", "inventory")
    assert not can_transition("warehouse", "equipped")
    assert not can_transition("equipped", "warehouse")
    assert not can_transition("inventory", "inventory")

def test_item_flags():
    potion = SimpleNamespace(item=SimpleNamespace(item_type="consumable"), location="inventory", locked=False)
    assert item_flags(potion) == {"can_move": True, "can_equip": False, "can_use": True}
    stored = SimpleNamespace(item=SimpleNamespace(item_type="weapon"), location="warehouse", locked=False)
    assert item_flags(stored) == {"can_move": True, "can_equip": False, "can_use": False}
    locked = SimpleNamespace(item=SimpleNamespace(item_type="weapon"), location="inventory", locked=True)
    assert not any(item_flags(locked).values())


# --- service ---

async def test_warehouse_round_trip_restores_used_slots(services, world):
    moved = await services.inventory.move_to_warehouse(world.alice, world.items.helmet, world.warehouse)
    assert moved.character_item.location == "warehouse"
    assert moved.character_item.warehouse.id == world.warehouse
    assert moved.warehouse.used_slots == 1

    back = await services.inventory.move_to_inventory(world.alice, world.items.helmet)
    assert back.character_item.location == "inventory"
    assert back.character_item.warehouse is None
    assert back.warehouse.used_slots == 0

async def test_full_warehouse_rejects_and_keeps_counter(services, world):
    await services.inventory.move_to_warehouse(world.alice, world.items.helmet, world.warehouse)
    with pytest.raises(WarehouseFull):
        await services.inventory.move_to_warehouse(world.alice, world.items.staff, world.warehouse)

    warehouse = await services.warehouse_repo.get_for_character(world.alice, world.warehouse)
    assert warehouse.used_slots == 1
    staff = await services.item_repo.get_for_character(world.alice, world.items.staff)
    assert staff.location == "inventory"

async def test_equipped_item_cannot_go_straight_to_warehouse(services, world):
    await services.equipment.equip(world.alice, world.items.sword, "右手")
    with pytest.raises(InvalidTransition):
        await services.inventory.move_to_warehouse(world.alice, world.items.sword, world.warehouse)

    back = await services.inventory.move_to_inventory(world.alice, world.items.sword)
    assert back.character_item.equipment_slot is None
    assert back.warehouse is None

async def test_locked_item_cannot_move(services, world):
    with pytest.raises(ItemLocked):
        await services.inventory.move_to_warehouse(world.alice, world.items.ring, world.warehouse)

async def test_move_to_inventory_from_inventory_is_invalid(services, world):
    with pytest.raises(InvalidTransition):
        await services.inventory.move_to_inventory(world.alice, world.items.helmet)

async def test_other_characters_items_are_not_found(services, world):
    with pytest.raises(NotFound):
        await services.inventory.move_to_inventory(world.bob, world.items.helmet)

async def test_use_last_potion_removes_row(services, world):
    result = await services.inventory.use_item(world.alice, world.items.potion)
    assert result.remaining_quantity == 0
    assert result.effects == ["HP +50 (80/100)"]
    assert result.message

    with pytest.raises(NotFound):
        await services.item_repo.get_for_character(world.alice, world.items.potion)
    job = await services.job_repo.get_current(world.alice)
    assert job.current_hp == 80

async def test_use_item_without_current_job_leaves_vitals_alone(services, world, session):
    warrior = await services.job_repo.get_for_character(world.alice, world.warrior)
    warrior.is_current = False
    await session.commit()

    result = await services.inventory.use_item(world.alice, world.items.potion)
    assert result.remaining_quantity == 0
    assert result.effects == ["HP +50 recovered"]
    assert warrior.current_hp == 30
    with pytest.raises(NotFound):
        await services.item_repo.get_for_character(world.alice, world.items.potion)

async def test_use_stack_decrements(services, world):
    result = await services.inventory.use_item(world.alice, world.items.elixir)
    assert result.remaining_quantity == 2
    assert len(result.effects) == 2
    assert result.effects[1] == "ATTACK +5 (60s)"

    elixir = await services.item_repo.get_for_character(world.alice, world.items.elixir)
    assert elixir.quantity == 2

async def test_non_consumable_cannot_be_used(services, world):
    with pytest.raises(NotConsumable):
        await services.inventory.use_item(world.alice, world.items.sword)

async def test_list_items_by_location(services, world):
    await services.inventory.move_to_warehouse(world.alice, world.items.helmet, world.warehouse)

    stored = await services.inventory.list_items(world.alice, "warehouse", world.warehouse)
    assert [ci.id for ci in stored.data] == [world.items.helmet]
    assert stored.meta.total_count == 1
    assert stored.meta.warehouses[0].used_slots == 1

    everything = await services.inventory.list_items(world.alice)
    assert everything.meta.total_count == 8
