# gamecore/engine/effects.py
"""
효과(effects) 타입 정의

DB에는 JSON으로 저장되지만 읽고 쓸 때는 항상 `type` 필드를 기준으로 한
discriminated union으로 검증합니다.

- 스킬 노드: stat_boost / technique / passive (node_type과 type이 일치해야 함)
- 아이템  : stat_boost / restore / buff (리스트)
"""
from dataclasses import dataclass
from typing import Annotated, Any, Iterable, Literal, Optional, Protocol, Union

from pydantic import BaseModel, Field, TypeAdapter

StatName = Literal["hp", "mp", "attack", "defense", "magic_attack", "magic_defense", "agility", "luck"]


class StatBoostEffect(BaseModel):
    type: Literal["stat_boost"] = "stat_boost"
    stat: StatName
    value: int


class TechniqueEffect(BaseModel):
    type: Literal["technique"] = "technique"
    name: str = Field(min_length=1)
    damage_multiplier: float = Field(gt=0)


class PassiveEffect(BaseModel):
    type: Literal["passive"] = "passive"
    effect: str = Field(min_length=1)
    value: float


class RestoreEffect(BaseModel):
    type: Literal["restore"] = "restore"
    stat: Literal["hp", "mp"]
    value: int = Field(gt=0)


class BuffEffect(BaseModel):
    type: Literal["buff"] = "buff"
    stat: StatName
    value: int
    duration: int = Field(gt=0, description="seconds")


NodeEffect = Annotated[
    Union[StatBoostEffect, TechniqueEffect, PassiveEffect],
    Field(discriminator="type"),
]
ItemEffect = Annotated[
    Union[StatBoostEffect, RestoreEffect, BuffEffect],
    Field(discriminator="type"),
]

_node_effect_adapter = TypeAdapter(NodeEffect)
_item_effects_adapter = TypeAdapter(list[ItemEffect])


def parse_node_effect(node_type: str, raw: dict[str, Any]) -> StatBoostEffect | TechniqueEffect | PassiveEffect:
    """노드 효과 검증. type이 생략되면 node_type으로 채운다."""
    data = {"type": node_type, **(raw or {})}
    effect = _node_effect_adapter.validate_python(data)
    if effect.type != node_type:
        raise ValueError(f"effect type '{effect.type}' does not match node_type '{node_type}'")
    return effect


def parse_item_effects(raw: Iterable[dict[str, Any]] | None) -> list:
    return _item_effects_adapter.validate_python(list(raw or []))


def stat_boosts(effects: Iterable[BaseModel]) -> dict[str, int]:
    """stat_boost 효과만 모아서 스탯별 합계"""
    totals: dict[str, int] = {}
    for effect in effects:
        if isinstance(effect, StatBoostEffect):
            totals[effect.stat] = totals.get(effect.stat, 0) + effect.value
    return totals


def describe_effect(effect: BaseModel) -> str:
    if isinstance(effect, StatBoostEffect):
        return f"{effect.stat.upper()} {effect.value:+d}"
    if isinstance(effect, RestoreEffect):
        return f"{effect.stat.upper()} +{effect.value} recovered"
    if isinstance(effect, BuffEffect):
        return f"{effect.stat.upper()} {effect.value:+d} ({effect.duration}s)"
    if isinstance(effect, TechniqueEffect):
        return f"{effect.name} x{effect.damage_multiplier:g}"
    if isinstance(effect, PassiveEffect):
        return f"{effect.effect} {effect.value:g}"
    return str(effect)


# --- 효과 적용 훅 ---

@dataclass
class Vitals:
    hp: int
    max_hp: int
    mp: int
    max_mp: int


class EffectApplier(Protocol):
    def apply(self, effects: list, vitals: Optional[Vitals]) -> list[str]:
        ...


class DefaultEffectApplier:
    """
    restore 효과는 현재 HP/MP를 최대치까지 회복시키고,
    나머지(buff/stat_boost)는 외부 전투 시스템 몫이므로 설명 문자열만 돌려준다.
    vitals가 None(현재 직업 없음)이면 restore도 설명만 한다.
    """

    def apply(self, effects: list, vitals: Optional[Vitals]) -> list[str]:
        messages = []
        for effect in effects:
            if isinstance(effect, RestoreEffect) and vitals is not None:
                if effect.stat == "hp":
                    before = vitals.hp
                    vitals.hp = min(vitals.max_hp, vitals.hp + effect.value)
                    messages.append(f"HP +{vitals.hp - before} ({vitals.hp}/{vitals.max_hp})")
                else:
                    before = vitals.mp
                    vitals.mp = min(vitals.max_mp, vitals.mp + effect.value)
                    messages.append(f"MP +{vitals.mp - before} ({vitals.mp}/{vitals.max_mp})")
            else:
                messages.append(describe_effect(effect))
        return messages
