import pytest

from gamecore.core.exceptions import InvalidAmount
from gamecore.engine.experience import (
    ExperienceCurve, SkillPointSchedule, level_progress, apply_experience
)

CURVE = ExperienceCurve(base=100, exponent=1.5)


def test_cumulative_table_head():
    # 100, 282, 519 ...
    assert CURVE.table(1.0, 50)[:4] == (0, 100, 382, 901)

def test_multiplier_scales_costs():
    assert CURVE.required_experience(2, 1.5, 50) == 150

@pytest.mark.parametrize("multiplier", [0.001, 0.5, 1.0, 1.2, 3.7])
def test_level_experience_inverse(multiplier):
    for level in range(1, 51):
        required = CURVE.required_experience(level, multiplier, 50)
        assert CURVE.level_from_experience(required, multiplier, 50) == level

def test_tiny_multiplier_still_strictly_increasing():
    table = CURVE.table(0.0001, 30)
    assert all(b > a for a, b in zip(table, table[1:]))

def test_level_capped_at_max_level():
    assert CURVE.level_from_experience(10 ** 12, 1.0, 50) == 50

def test_progress_mid_level():
    progress = level_progress(150, 1.0, 50, CURVE)
    assert progress.level == 2
    assert progress.exp_to_next_level == 232
    assert progress.level_progress == 17.7
    assert not progress.max_level_reached

def test_progress_at_max_level():
    progress = level_progress(CURVE.required_experience(50, 1.0, 50) + 999, 1.0, 50, CURVE)
    assert progress.level == 50
    assert progress.exp_to_next_level == 0
    assert progress.level_progress == 100.0
    assert progress.max_level_reached

def test_single_level_job_is_always_maxed():
    progress = level_progress(0, 1.0, 1, CURVE)
    assert progress.max_level_reached
    assert progress.level == 1

def test_apply_experience_levels_up_and_grants_points():
    outcome = apply_experience(0, 400, 1.0, 50, CURVE, SkillPointSchedule(2))
    assert outcome.old_level == 1
    assert outcome.new_level == 3
    assert outcome.leveled_up
    assert outcome.skill_points_gained == 4

def test_apply_experience_no_points_past_max_level():
    at_max = CURVE.required_experience(50, 1.0, 50)
    outcome = apply_experience(at_max, 5000, 1.0, 50, CURVE, SkillPointSchedule(1))
    assert outcome.new_level == 50
    assert outcome.skill_points_gained == 0
    assert outcome.progress.experience == at_max + 5000

@pytest.mark.parametrize("amount", [0, -10, 1.5, True, "100"])
def test_apply_experience_rejects_bad_amount(amount):
    with pytest.raises(InvalidAmount):
        apply_experience(0, amount, 1.0, 50, CURVE)

def test_curve_rejects_bad_arguments():
    with pytest.raises(ValueError):
        ExperienceCurve(base=0)
    with pytest.raises(ValueError):
        CURVE.required_experience(51, 1.0, 50)
    with pytest.raises(ValueError):
        CURVE.level_from_experience(-1, 1.0, 50)
