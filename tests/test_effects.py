import pytest
from pydantic import ValidationError

from gamecore.engine.effects import (
    StatBoostEffect, TechniqueEffect, RestoreEffect, BuffEffect, Vitals, DefaultEffectApplier,
    parse_node_effect, parse_item_effects, stat_boosts, describe_effect
)


def test_node_effect_type_filled_from_node_type():
    effect = parse_node_effect("stat_boost", {"stat": "attack", "value": 5})
    assert isinstance(effect, StatBoostEffect)
    assert effect.model_dump() == {"type": "stat_boost", "stat": "attack", "value": 5}

def test_technique_requires_its_fields():
    with pytest.raises(ValidationError):
        parse_node_effect("technique", {"name": "斬り"})
    effect = parse_node_effect("technique", {"name": "斬り", "damage_multiplier": 1.5})
    assert isinstance(effect, TechniqueEffect)

def test_node_effect_type_must_match_node_type():
    with pytest.raises(ValueError):
        parse_node_effect("passive", {"type": "stat_boost", "stat": "hp", "value": 1})

def test_unknown_stat_rejected():
    with pytest.raises(ValidationError):
        parse_node_effect("stat_boost", {"stat": "charisma", "value": 1})

def test_item_effects_discriminated_by_type():
    effects = parse_item_effects([
        {"type": "restore", "stat": "hp", "value": 50},
        {"type": "buff", "stat": "attack", "value": 5, "duration": 60},
        {"type": "stat_boost", "stat": "defense", "value": 3},
    ])
    assert [type(e) for e in effects] == [RestoreEffect, BuffEffect, StatBoostEffect]
    assert parse_item_effects(None) == []

def test_item_effects_reject_node_only_types():
    with pytest.raises(ValidationError):
        parse_item_effects([{"type": "technique", "name": "x", "damage_multiplier": 2}])

def test_stat_boosts_sums_only_boosts():
    effects = [
        StatBoostEffect(stat="attack", value=5),
        StatBoostEffect(stat="attack", value=10),
        BuffEffect(stat="attack", value=99, duration=10),
        StatBoostEffect(stat="hp", value=-20),
    ]
    assert stat_boosts(effects) == {"attack": 15, "hp": -20}

def test_restore_is_capped_at_max():
    vitals = Vitals(hp=80, max_hp=100, mp=0, max_mp=40)
    messages = DefaultEffectApplier().apply(
        [RestoreEffect(stat="hp", value=50), RestoreEffect(stat="mp", value=30)], vitals
    )
    assert vitals.hp == 100
    assert vitals.mp == 30
    assert messages == ["HP +20 (100/100)", "MP +30 (30/40)"]

def test_non_restore_effects_are_described():
    vitals = Vitals(hp=1, max_hp=1, mp=1, max_mp=1)
    messages = DefaultEffectApplier().apply([BuffEffect(stat="agility", value=3, duration=30)], vitals)
    assert messages == ["AGILITY +3 (30s)"]
    assert describe_effect(StatBoostEffect(stat="luck", value=-2)) == "LUCK -2"

def test_restore_without_vitals_is_only_described():
    messages = DefaultEffectApplier().apply(
        [RestoreEffect(stat="mp", value=30), BuffEffect(stat="attack", value=5, duration=60)], None
    )
    assert messages == ["MP +30 recovered", "ATTACK +5 (60s)"]
