# gamecore/engine/experience.py
"""
경험치 <-> 레벨 변환 (ExperienceLedger의 계산 부분)

- 레벨 k -> k+1 비용: max(1, floor(base * k^exponent * experience_multiplier))
- required_experience(level) = 1 ~ level-1 비용의 누적합 (레벨 1 = 0)
  비용이 항상 1 이상이므로 누적 테이블은 강한 단조 증가 -> 역함수가 정확히 성립
- 경험치는 max_level 이후에도 계속 누적되지만 레벨/스킬포인트는 max_level에서 멈춘다
"""
import math
from bisect import bisect_right
from dataclasses import dataclass
from functools import lru_cache

from gamecore.core import config
from gamecore.core.exceptions import InvalidAmount


@lru_cache(maxsize=256)
def _cumulative_table(base: float, exponent: float, multiplier: float, max_level: int) -> tuple[int, ...]:
    # table[i] = 레벨 i+1 도달에 필요한 누적 경험치
    table = [0]
    for level in range(1, max_level):
        cost = max(1, math.floor(base * level ** exponent * multiplier))
        table.append(table[-1] + cost)
    return tuple(table)


class ExperienceCurve:
    """교체 가능한 경험치 곡선 전략"""

    def __init__(self, base: float = config.EXP_CURVE_BASE, exponent: float = config.EXP_CURVE_EXPONENT):
        if base <= 0 or exponent < 0:
            raise ValueError("curve base must be > 0 and exponent >= 0")
        self.base = base
        self.exponent = exponent

    def table(self, multiplier: float, max_level: int) -> tuple[int, ...]:
        if multiplier <= 0:
            raise ValueError("experience_multiplier must be > 0")
        if max_level < 1:
            raise ValueError("max_level must be >= 1")
        return _cumulative_table(self.base, self.exponent, float(multiplier), int(max_level))

    def required_experience(self, level: int, multiplier: float, max_level: int) -> int:
        if not 1 <= level <= max_level:
            raise ValueError(f"level must be within 1..{max_level}, got {level}")
        return self.table(multiplier, max_level)[level - 1]

    def level_from_experience(self, experience: int, multiplier: float, max_level: int) -> int:
        if experience < 0:
            raise ValueError("experience must be >= 0")
        return bisect_right(self.table(multiplier, max_level), experience)


class SkillPointSchedule:
    """레벨업 시 지급되는 스킬 포인트 (레벨당 고정값)"""

    def __init__(self, per_level: int = config.SKILL_POINTS_PER_LEVEL):
        if per_level < 0:
            raise ValueError("per_level must be >= 0")
        self.per_level = per_level

    def points_between(self, old_level: int, new_level: int) -> int:
        return max(0, new_level - old_level) * self.per_level


@dataclass(frozen=True)
class LevelProgress:
    level: int
    experience: int
    exp_to_next_level: int
    level_progress: float  # 퍼센트 (0.0 ~ 100.0)
    max_level_reached: bool


@dataclass(frozen=True)
class GrantOutcome:
    old_level: int
    new_level: int
    skill_points_gained: int
    progress: LevelProgress

    @property
    def leveled_up(self) -> bool:
        return self.new_level > self.old_level


def level_progress(
    experience: int,
    multiplier: float,
    max_level: int,
    curve: ExperienceCurve | None = None,
) -> LevelProgress:
    curve = curve or ExperienceCurve()
    level = curve.level_from_experience(experience, multiplier, max_level)

    if level >= max_level:
        return LevelProgress(level, experience, 0, 100.0, True)

    table = curve.table(multiplier, max_level)
    current_floor = table[level - 1]
    next_floor = table[level]
    ratio = (experience - current_floor) / (next_floor - current_floor)
    ratio = min(1.0, max(0.0, ratio))

    return LevelProgress(
        level=level,
        experience=experience,
        exp_to_next_level=next_floor - experience,
        level_progress=round(ratio * 100, 1),
        max_level_reached=False,
    )


def apply_experience(
    experience: int,
    amount: int,
    multiplier: float,
    max_level: int,
    curve: ExperienceCurve | None = None,
    schedule: SkillPointSchedule | None = None,
) -> GrantOutcome:
    """상태를 바꾸지 않고 부여 결과만 계산한다. 저장은 서비스 레이어 책임."""
    if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
        raise InvalidAmount()

    curve = curve or ExperienceCurve()
    schedule = schedule or SkillPointSchedule()

    old_level = curve.level_from_experience(experience, multiplier, max_level)
    progress = level_progress(experience + amount, multiplier, max_level, curve)

    return GrantOutcome(
        old_level=old_level,
        new_level=progress.level,
        skill_points_gained=schedule.points_between(old_level, progress.level),
        progress=progress,
    )
