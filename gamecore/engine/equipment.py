# gamecore/engine/equipment.py
from gamecore.core.exceptions import (
    SlotMismatch, LevelTooLow, JobNotAllowed, NoCurrentJob, ItemLocked, InvalidTransition
)

# 슬롯 이름은 클라이언트 표기 그대로 사용
SLOT_RIGHT_HAND = "右手"
SLOT_LEFT_HAND = "左手"
SLOT_HEAD = "頭"
SLOT_BODY = "胴"
SLOT_WAIST = "腰"
SLOT_ARMS = "腕"
SLOT_LEGS = "足"
SLOT_RING = "指輪"
SLOT_NECKLACE = "首飾り"

EQUIPMENT_SLOTS = {
    SLOT_RIGHT_HAND: "right_hand",
    SLOT_LEFT_HAND: "left_hand",
    SLOT_HEAD: "head",
    SLOT_BODY: "body",
    SLOT_WAIST: "waist",
    SLOT_ARMS: "arms",
    SLOT_LEGS: "legs",
    SLOT_RING: "ring",
    SLOT_NECKLACE: "necklace",
}

_SLOTS_BY_TYPE = {
    "weapon": frozenset({SLOT_RIGHT_HAND, SLOT_LEFT_HAND}),
    "armor": frozenset({SLOT_HEAD, SLOT_BODY, SLOT_WAIST, SLOT_ARMS, SLOT_LEGS}),
    "accessory": frozenset({SLOT_RING, SLOT_NECKLACE}),
}


def eligible_slots(item_type: str) -> frozenset[str]:
    """장착 가능한 슬롯 목록. 소모품/재료/퀘스트 아이템은 빈 집합."""
    return _SLOTS_BY_TYPE.get(item_type, frozenset())


def check_equip(character_item, slot: str, current_job) -> None:
    """
    장착 가능 여부 검사. 통과하지 못하면 도메인 예외를 던진다.

    character_item: location / locked / item(item_type, level_requirement, job_requirement)
    current_job   : 현재 직업(CharacterJobClass) 또는 None
    """
    item = character_item.item

    if slot not in eligible_slots(item.item_type):
        raise SlotMismatch(f"'{item.name}' ({item.item_type}) cannot be equipped in slot {slot}")
    if character_item.locked:
        raise ItemLocked()
    if character_item.location != "inventory":
        raise InvalidTransition(f"Only inventory items can be equipped (current: {character_item.location})")
    if current_job is None:
        raise NoCurrentJob()
    if current_job.level < (item.level_requirement or 0):
        raise LevelTooLow(
            f"Requires level {item.level_requirement} (current: {current_job.level})"
        )

    allowed = item.job_requirement or []
    job_name = current_job.job_class.name
    if allowed and job_name not in allowed:
        raise JobNotAllowed(f"'{item.name}' can only be used by: {', '.join(allowed)}")


def check_unequip(character_item) -> None:
    if character_item.location != "equipped":
        raise InvalidTransition("Item is not equipped")
    if character_item.locked:
        raise ItemLocked()
