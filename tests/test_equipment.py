from types import SimpleNamespace

import pytest

from gamecore.core.exceptions import (
    SlotMismatch, LevelTooLow, JobNotAllowed, NoCurrentJob, ItemLocked, InvalidTransition, SlotOccupied
)
from gamecore.engine.equipment import EQUIPMENT_SLOTS, eligible_slots, check_equip


def _owned(item_type="weapon", location="inventory", locked=False, level_requirement=1, job_requirement=None):
    item = SimpleNamespace(name="item", item_type=item_type, level_requirement=level_requirement,
                           job_requirement=job_requirement or [])
    return SimpleNamespace(item=item, location=location, locked=locked)

def _job(level=10, name="戦士"):
    return SimpleNamespace(level=level, job_class=SimpleNamespace(name=name))


def test_eligible_slots():
    assert eligible_slots("weapon") == {"右手", "左手"}
    assert eligible_slots("armor") == {"頭", "胴", "腰", "腕", "足"}
    assert eligible_slots("accessory") == {"指輪", "首飾り"}
    assert eligible_slots("consumable") == set()
    assert set(EQUIPMENT_SLOTS) == {"右手", "左手", "頭", "胴", "腰", "腕", "足", "指輪", "首飾り"}

def test_armor_cannot_go_in_left_hand():
    with pytest.raises(SlotMismatch):
        check_equip(_owned(item_type="armor"), "左手", _job())

def test_check_equip_rules():
    with pytest.raises(ItemLocked):
        check_equip(_owned(locked=True), "右手", _job())
    with pytest.raises(InvalidTransition):
        check_equip(_owned(location="warehouse"), "右手", _job())
    with pytest.raises(NoCurrentJob):
        check_equip(_owned(), "右手", None)
    with pytest.raises(LevelTooLow):
        check_equip(_owned(level_requirement=30), "右手", _job(level=29))
    with pytest.raises(JobNotAllowed):
        check_equip(_owned(job_requirement=["魔法使い"]), "右手", _job())
    check_equip(_owned(job_requirement=["戦士", "魔法使い"]), "左手", _job())


# --- service ---

async def test_equip_and_overview(services, world):
    result = await services.equipment.equip(world.alice, world.items.sword, "右手")
    assert result.equipped.location == "equipped"
    assert result.equipped.equipment_slot == "右手"
    assert result.displaced is None

    overview = await services.equipment.get_equipment(world.alice)
    assert overview.equipped_items["右手"].id == world.items.sword
    assert overview.equipped_items["左手"] is None
    assert overview.total_stats == {"attack": 10}
    assert overview.character.current_job.name == "戦士"
    available = {ci.id for ci in overview.available_items}
    assert world.items.sword not in available
    assert world.items.helmet in available
    assert world.items.ring not in available  # locked

async def test_equip_swaps_previous_occupant(services, world):
    await services.equipment.equip(world.alice, world.items.sword, "右手")
    result = await services.equipment.equip(world.alice, world.items.spare_sword, "右手")

    assert result.displaced.id == world.items.sword
    assert result.displaced.location == "inventory"
    assert result.displaced.equipment_slot is None

    equipped = await services.item_repo.list_by_location(world.alice, "equipped")
    assert [ci.id for ci in equipped] == [world.items.spare_sword]

async def test_same_item_in_two_slots_is_rejected(services, world):
    await services.equipment.equip(world.alice, world.items.sword, "右手")
    with pytest.raises(InvalidTransition):
        await services.equipment.equip(world.alice, world.items.sword, "左手")

async def test_locked_occupant_blocks_equip(services, world, session):
    await services.equipment.equip(world.alice, world.items.sword, "右手")
    occupant = await services.item_repo.get_for_character(world.alice, world.items.sword)
    occupant.locked = True
    await session.commit()

    with pytest.raises(SlotOccupied):
        await services.equipment.equip(world.alice, world.items.spare_sword, "右手")

    spare = await services.item_repo.get_for_character(world.alice, world.items.spare_sword)
    assert spare.location == "inventory"

async def test_equip_rejections_leave_item_in_inventory(services, world):
    with pytest.raises(SlotMismatch):
        await services.equipment.equip(world.alice, world.items.helmet, "左手")
    with pytest.raises(JobNotAllowed):
        await services.equipment.equip(world.alice, world.items.staff, "右手")
    with pytest.raises(LevelTooLow):
        await services.equipment.equip(world.alice, world.items.axe, "右手")

    for item_id in (world.items.helmet, world.items.staff, world.items.axe):
        ci = await services.item_repo.get_for_character(world.alice, item_id)
        assert ci.location == "inventory"

async def test_unequip(services, world):
    await services.equipment.equip(world.alice, world.items.helmet, "頭")
    result = await services.equipment.unequip(world.alice, world.items.helmet)
    assert result.equipped.location == "inventory"
    assert result.equipped.equipment_slot is None

    with pytest.raises(InvalidTransition):
        await services.equipment.unequip(world.alice, world.items.helmet)

async def test_equipment_boosts_apply_to_current_job_only(services, world):
    await services.equipment.equip(world.alice, world.items.sword, "右手")
    warrior = await services.character.get_character_job_class(world.alice, world.warrior)
    mage = await services.character.get_character_job_class(world.alice, world.mage)
    assert warrior.stats.attack == 15 + 10
    assert mage.stats.attack == 5
