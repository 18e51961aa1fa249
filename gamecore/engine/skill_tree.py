# gamecore/engine/skill_tree.py
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from gamecore.core.exceptions import (
    NodeInactive, AlreadyUnlocked, SkillLineUnavailable, NoCurrentJob, LevelTooLow, InsufficientPoints
)


@dataclass(frozen=True)
class InvestmentRecord:
    """투자 1건 (캐릭터가 노드 하나를 해금한 기록)"""
    character_id: int
    character_name: str
    points: int
    unlocked_at: datetime


def check_unlock(node, current_job, already_unlocked: bool, line_job_class_ids: Iterable[int]) -> None:
    """
    노드 해금 사전 조건 검사 (상태 변경 없음)
    검사 순서: 비활성 -> 중복 -> 직업 -> 해금 레벨 -> 포인트
    """
    if not node.active:
        raise NodeInactive(f"Skill node '{node.name}' is inactive")
    if already_unlocked:
        raise AlreadyUnlocked(f"Skill node '{node.name}' is already unlocked")
    if current_job is None:
        raise NoCurrentJob()
    if current_job.job_class_id not in set(line_job_class_ids):
        raise SkillLineUnavailable()

    unlock_level = node.skill_line.unlock_level or 1
    if current_job.level < unlock_level:
        raise LevelTooLow(f"Skill line unlocks at level {unlock_level} (current: {current_job.level})")
    if current_job.skill_points < node.points_required:
        raise InsufficientPoints(
            f"Requires {node.points_required} skill points (available: {current_job.skill_points})"
        )


def investment_summary(records: Iterable[InvestmentRecord], top_n: int = 5) -> dict:
    """
    스킬 라인 단위 투자 집계

    top_investors 정렬: 포인트 내림차순 -> 해당 포인트에 먼저 도달한 캐릭터(마지막 해금 시각이 빠른 순) -> id
    """
    grouped: dict[int, dict] = {}
    for record in records:
        entry = grouped.setdefault(record.character_id, {
            "character_id": record.character_id,
            "character_name": record.character_name,
            "points_invested": 0,
            "unlocked_nodes_count": 0,
            "reached_at": record.unlocked_at,
        })
        entry["points_invested"] += record.points
        entry["unlocked_nodes_count"] += 1
        entry["reached_at"] = max(entry["reached_at"], record.unlocked_at)

    total = sum(e["points_invested"] for e in grouped.values())
    count = len(grouped)

    ranked = sorted(
        grouped.values(),
        key=lambda e: (-e["points_invested"], e["reached_at"], e["character_id"]),
    )
    top = [
        {k: v for k, v in e.items() if k != "reached_at"}
        for e in ranked[:top_n]
    ]

    return {
        "total_points": total,
        "character_count": count,
        "average_points": round(total / count, 1) if count else 0.0,
        "max_investment": ranked[0]["points_invested"] if ranked else 0,
        "top_investors": top,
    }


def utilization(total_characters: int, available_points: int, used_points: int) -> dict:
    """직업별 스킬 포인트 사용률 (지급 = 보유 + 사용)"""
    granted = available_points + used_points
    return {
        "total_characters": total_characters,
        "total_skill_points": granted,
        "used_skill_points": used_points,
        "available_skill_points": available_points,
        "utilization_rate": round(used_points / granted * 100, 1) if granted else 0.0,
    }
