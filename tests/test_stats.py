import pytest

from gamecore.engine.stats import STAT_KEYS, derive_stats, stat_row, stats_by_level, project_stats, parse_levels

BASE = {"hp": 100, "mp": 20, "attack": 15, "defense": 12, "magic_attack": 5,
        "magic_defense": 8, "agility": 10, "luck": 5}
MULT = {"hp": 10, "mp": 2, "attack": 3, "defense": 2.5, "magic_attack": 0.5,
        "magic_defense": 1, "agility": 1.5, "luck": 0.5}


def test_level_one_is_base():
    assert derive_stats(BASE, MULT, 1).as_dict() == BASE

def test_hp_growth_per_level():
    assert derive_stats(BASE, MULT, 10).hp == 190
    assert derive_stats(BASE, MULT, 50).hp == 590

def test_fractional_multiplier_floors():
    # 12 + 2.5 * 1 = 14.5 -> 14
    assert derive_stats(BASE, MULT, 2).defense == 14
    assert derive_stats(BASE, MULT, 3).defense == 17

def test_stats_monotonic_in_level():
    previous = derive_stats(BASE, MULT, 1)
    for level in range(2, 100):
        current = derive_stats(BASE, MULT, level)
        assert current.dominates(previous)
        previous = current

def test_zero_multiplier_is_flat():
    flat = derive_stats(BASE, {}, 40)
    assert flat.as_dict() == BASE

def test_level_below_one_rejected():
    with pytest.raises(ValueError):
        derive_stats(BASE, MULT, 0)

def test_stat_row_carries_max_values():
    row = stat_row(BASE, MULT, 10)
    assert row["level"] == 10
    assert row["max_hp"] == row["hp"] == 190
    assert row["max_mp"] == row["mp"] == 38
    assert set(STAT_KEYS) <= set(row)

def test_stats_by_level_sorted_and_deduplicated():
    rows = stats_by_level(BASE, MULT, [20, 1, 10, 10])
    assert [r["level"] for r in rows] == [1, 10, 20]

def test_project_stats_clamps_current_vitals():
    row = project_stats(BASE, MULT, 1, current_hp=500, current_mp=None, boosts={"hp": 20, "attack": 5})
    assert row["max_hp"] == 120
    assert row["hp"] == 120
    assert row["mp"] == row["max_mp"] == 20
    assert row["attack"] == 20

def test_project_stats_keeps_damaged_hp():
    row = project_stats(BASE, MULT, 1, current_hp=30)
    assert row["hp"] == 30
    assert row["max_hp"] == 100

def test_parse_levels():
    assert parse_levels("20, 1,10", default=(1,)) == [1, 10, 20]
    assert parse_levels(None, default=(5, 1)) == [1, 5]
    assert parse_levels("", default=(1,)) == [1]

@pytest.mark.parametrize("raw", ["abc", "0", "1,x", "1000"])
def test_parse_levels_rejects_garbage(raw):
    with pytest.raises(ValueError):
        parse_levels(raw, default=(1,), max_level=999)
