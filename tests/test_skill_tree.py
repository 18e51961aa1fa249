from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest

from gamecore.core.exceptions import (
    InsufficientPoints, AlreadyUnlocked, NodeInactive, SkillLineUnavailable, LevelTooLow, NoCurrentJob,
    NotFound, ValidationFailed
)
from gamecore.engine.skill_tree import InvestmentRecord, check_unlock, investment_summary, utilization
from gamecore.schemas.skill import SkillNodeCreateRequest, SkillNodeUpdateRequest

T0 = datetime(2024, 1, 1, 12, 0, 0)


def _node(points=5, active=True, unlock_level=1):
    return SimpleNamespace(name="node", active=active, points_required=points,
                           skill_line=SimpleNamespace(unlock_level=unlock_level))

def _job(points=5, level=1, job_class_id=1):
    return SimpleNamespace(skill_points=points, level=level, job_class_id=job_class_id)


def test_check_unlock_order():
    with pytest.raises(NodeInactive):
        check_unlock(_node(active=False), None, True, [])
    with pytest.raises(AlreadyUnlocked):
        check_unlock(_node(), None, True, [])
    with pytest.raises(NoCurrentJob):
        check_unlock(_node(), None, False, [1])
    with pytest.raises(SkillLineUnavailable):
        check_unlock(_node(), _job(job_class_id=2), False, [1])
    with pytest.raises(LevelTooLow):
        check_unlock(_node(unlock_level=20), _job(level=19), False, [1])
    with pytest.raises(InsufficientPoints):
        check_unlock(_node(points=6), _job(points=5), False, [1])
    check_unlock(_node(points=5), _job(points=5), False, [1])

def test_investment_summary_groups_per_character():
    records = [
        InvestmentRecord(1, "Alice", 5, T0),
        InvestmentRecord(1, "Alice", 3, T0 + timedelta(minutes=1)),
        InvestmentRecord(2, "Bob", 4, T0),
    ]
    summary = investment_summary(records)
    assert summary["total_points"] == 12
    assert summary["character_count"] == 2
    assert summary["average_points"] == 6.0
    assert summary["max_investment"] == 8
    assert summary["top_investors"][0] == {
        "character_id": 1, "character_name": "Alice", "points_invested": 8, "unlocked_nodes_count": 2
    }

def test_top_investor_ties_broken_by_who_got_there_first():
    records = [
        InvestmentRecord(1, "Alice", 5, T0 + timedelta(hours=1)),
        InvestmentRecord(2, "Bob", 5, T0),
        InvestmentRecord(3, "Carol", 5, T0),
    ]
    ranked = [e["character_id"] for e in investment_summary(records)["top_investors"]]
    assert ranked == [2, 3, 1]

def test_investment_summary_limit_and_empty():
    records = [InvestmentRecord(i, f"c{i}", i, T0) for i in range(1, 9)]
    assert len(investment_summary(records, top_n=3)["top_investors"]) == 3
    empty = investment_summary([])
    assert empty["average_points"] == 0.0
    assert empty["top_investors"] == []

def test_utilization_rate():
    stats = utilization(total_characters=4, available_points=30, used_points=10)
    assert stats["total_skill_points"] == 40
    assert stats["utilization_rate"] == 25.0
    assert utilization(0, 0, 0)["utilization_rate"] == 0.0


# --- service ---

async def test_unlock_spends_points_then_runs_out(services, world):
    boost, technique, _ = world.sword_nodes

    result = await services.skill.unlock_node(world.sword_line, boost, world.alice)
    assert result.remaining_skill_points == 0
    assert result.points_spent == 5

    with pytest.raises(InsufficientPoints):
        await services.skill.unlock_node(world.sword_line, technique, world.alice)

    job = await services.job_repo.get_current(world.alice)
    assert job.skill_points == 0
    investments = await services.character.get_skill_investments(world.alice)
    assert [inv.skill_node_id for inv in investments] == [boost]

async def test_unlock_twice_is_rejected(services, world):
    node = world.sword_nodes[0]
    await services.skill.unlock_node(world.sword_line, node, world.bob)
    with pytest.raises(AlreadyUnlocked):
        await services.skill.unlock_node(world.sword_line, node, world.bob)
    job = await services.job_repo.get_current(world.bob)
    assert job.skill_points == 5

async def test_unlock_guards(services, world):
    inactive = world.sword_nodes[2]
    with pytest.raises(NodeInactive):
        await services.skill.unlock_node(world.sword_line, inactive, world.bob)
    with pytest.raises(SkillLineUnavailable):
        await services.skill.unlock_node(world.magic_line, world.magic_nodes[0], world.bob)
    with pytest.raises(LevelTooLow):
        await services.skill.unlock_node(world.elite_line, world.elite_nodes[0], world.bob)
    with pytest.raises(NotFound):
        await services.skill.unlock_node(world.magic_line, inactive, world.bob)

async def test_unlocked_stat_boost_feeds_current_job_stats(services, world):
    before = await services.character.get_character_job_class(world.bob, world.warrior)
    await services.skill.unlock_node(world.sword_line, world.sword_nodes[0], world.bob)
    after = await services.character.get_character_job_class(world.bob, world.warrior)
    assert after.stats.attack == before.stats.attack + 5

async def test_skill_line_detail_summary(services, world):
    boost, technique, _ = world.sword_nodes
    await services.skill.unlock_node(world.sword_line, boost, world.bob)
    await services.skill.unlock_node(world.sword_line, technique, world.bob)
    await services.skill.unlock_node(world.sword_line, boost, world.alice)

    detail = await services.skill.get_skill_line(world.sword_line)
    assert [n.display_order for n in detail.skill_nodes] == [1, 2, 3]
    summary = detail.character_investments
    assert summary.total_points == 15
    assert summary.character_count == 2
    assert summary.top_investors[0].character_name == "Bob"
    assert summary.top_investors[0].unlocked_nodes_count == 2

async def test_skill_statistics(services, world):
    await services.skill.unlock_node(world.sword_line, world.sword_nodes[0], world.bob)

    stats = await services.skill.get_skill_statistics(world.warrior)
    overall = stats.overall_stats
    assert overall.total_characters == 2
    assert overall.used_skill_points == 5
    assert overall.available_skill_points == 10
    assert overall.utilization_rate == 33.3
    assert {s.name for s in stats.skill_line_stats} == {"剣術", "奥義"}

async def test_job_class_skill_lines(services, world):
    result = await services.skill.get_job_class_skill_lines(world.mage)
    assert result.total_count == 1
    assert result.skill_lines[0].nodes_count == 1

async def test_create_and_update_node(services, world):
    created = await services.skill.create_node(world.magic_line, SkillNodeCreateRequest(
        name="詠唱短縮", node_type="passive", points_required=2,
        effects={"effect": "cast_speed", "value": 0.1}, display_order=2,
    ))
    assert created.effects == {"type": "passive", "effect": "cast_speed", "value": 0.1}
    assert created.node_type_name == "パッシブ"

    updated = await services.skill.update_node(world.magic_line, created.id, SkillNodeUpdateRequest(
        node_type="stat_boost", effects={"stat": "mp", "value": 10},
    ))
    assert updated.effects == {"type": "stat_boost", "stat": "mp", "value": 10}

    with pytest.raises(ValidationFailed):
        await services.skill.update_node(world.magic_line, created.id, SkillNodeUpdateRequest(node_type="technique"))

async def test_job_class_skill_lines_filtered_by_type(services, world):
    weapon = await services.skill.get_job_class_skill_lines(world.warrior, "weapon")
    assert [line.name for line in weapon.skill_lines] == ["剣術"]
    both = await services.skill.get_job_class_skill_lines(world.warrior)
    assert both.total_count == 2

async def test_node_boosts_stay_with_the_job_they_were_invested_in(services, world):
    await services.skill.unlock_node(world.sword_line, world.sword_nodes[0], world.alice)
    await services.character.switch_current_job(world.alice, world.mage)

    mage = await services.character.get_character_job_class(world.alice, world.mage)
    assert mage.stats.attack == 5
    overview = await services.equipment.get_equipment(world.alice)
    assert overview.total_stats == {}

    await services.character.switch_current_job(world.alice, world.warrior)
    warrior = await services.character.get_character_job_class(world.alice, world.warrior)
    assert warrior.stats.attack == 15 + 5
