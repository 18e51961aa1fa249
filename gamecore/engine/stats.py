# gamecore/engine/stats.py
"""
스탯 성장 곡선 (StatCurve)

레벨 N의 스탯 = floor(base + multiplier * (N - 1))
multiplier는 "레벨당 성장치"로 취급합니다. 음수가 아니면 레벨에 대해 단조 증가.
"""
import math
from dataclasses import dataclass, asdict, fields
from typing import Iterable, Mapping

STAT_KEYS = (
    "hp",
    "mp",
    "attack",
    "defense",
    "magic_attack",
    "magic_defense",
    "agility",
    "luck",
)


@dataclass(frozen=True)
class StatBlock:
    hp: int = 0
    mp: int = 0
    attack: int = 0
    defense: int = 0
    magic_attack: int = 0
    magic_defense: int = 0
    agility: int = 0
    luck: int = 0

    def as_dict(self) -> dict:
        return asdict(self)

    def plus(self, boosts: Mapping[str, int]) -> "StatBlock":
        """스킬/장비 보너스 합산 (알 수 없는 키는 무시)"""
        values = self.as_dict()
        for key, value in boosts.items():
            if key in values:
                values[key] += int(value)
        return StatBlock(**values)

    def dominates(self, other: "StatBlock") -> bool:
        return all(getattr(self, f.name) >= getattr(other, f.name) for f in fields(self))


def derive_stats(base: Mapping[str, int], multipliers: Mapping[str, float], level: int) -> StatBlock:
    if level < 1:
        raise ValueError(f"level must be >= 1, got {level}")

    values = {}
    for key in STAT_KEYS:
        b = base.get(key, 0) or 0
        m = float(multipliers.get(key, 0) or 0)
        values[key] = math.floor(b + m * (level - 1))
    return StatBlock(**values)


def stat_row(base: Mapping[str, int], multipliers: Mapping[str, float], level: int) -> dict:
    """미리보기용 행: 현재 HP/MP = 최대치"""
    block = derive_stats(base, multipliers, level)
    row = {"level": level, **block.as_dict()}
    row["max_hp"] = block.hp
    row["max_mp"] = block.mp
    return row


def stats_by_level(base: Mapping[str, int], multipliers: Mapping[str, float], levels: Iterable[int]) -> list[dict]:
    return [stat_row(base, multipliers, level) for level in sorted(set(levels))]


def project_stats(
    base: Mapping[str, int],
    multipliers: Mapping[str, float],
    level: int,
    current_hp: int | None = None,
    current_mp: int | None = None,
    boosts: Mapping[str, int] | None = None,
) -> dict:
    """
    캐릭터 현재 상태 계산
    - max_hp / max_mp 는 곡선 + 보너스
    - hp / mp 는 저장된 현재값을 최대치로 클램프 (None 이면 최대치)
    """
    block = derive_stats(base, multipliers, level).plus(boosts or {})
    row = block.as_dict()
    row["max_hp"] = block.hp
    row["max_mp"] = block.mp
    row["hp"] = block.hp if current_hp is None else max(0, min(current_hp, block.hp))
    row["mp"] = block.mp if current_mp is None else max(0, min(current_mp, block.mp))
    return row


def parse_levels(raw: str | None, default: Iterable[int], max_level: int = 100) -> list[int]:
    """'1,10,20' 형식 파싱. 숫자가 아니거나 범위 밖이면 ValueError."""
    if not raw or not raw.strip():
        return sorted(set(default))
    levels = set()
    for token in raw.split(","):
        token = token.strip()
        if not token:
            continue
        if not token.isdigit() or not 1 <= int(token) <= max_level:
            raise ValueError(f"Invalid level '{token}' (expected 1..{max_level})")
        levels.add(int(token))
    return sorted(levels) or sorted(set(default))
