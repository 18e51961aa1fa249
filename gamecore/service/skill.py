import logging
from typing import Optional

from gamecore.core import config
from gamecore.core.exceptions import TemplateInUse, ValidationFailed
from gamecore.engine.effects import parse_node_effect
from gamecore.engine.skill_tree import InvestmentRecord, check_unlock, investment_summary, utilization
from gamecore.models.skill import SkillLine, SkillNode, CharacterSkillInvestment
from gamecore.repositories.character import CharacterRepository
from gamecore.repositories.job_class import JobClassRepository, CharacterJobClassRepository
from gamecore.repositories.skill import SkillLineRepository, SkillNodeRepository, InvestmentRepository
from gamecore.schemas.skill import (
    SkillLineResponse,
    SkillLineDetailResponse,
    SkillLineListItem,
    SkillLineSummary,
    SkillLineListResponse,
    SkillLineCreateRequest,
    SkillLineUpdateRequest,
    SkillNodeDetailResponse,
    SkillNodeResponse,
    SkillNodeCreateRequest,
    SkillNodeUpdateRequest,
    JobClassSkillLinesResponse,
    UnlockNodeResponse,
    SkillStatisticsResponse,
)
from gamecore.service.base import TransactionalService

logger = logging.getLogger(__name__)


def _naive(dt):
    # SQLite는 tz 없는 값, PostgreSQL은 tz 있는 값을 돌려주므로 비교 전에 통일
    return dt.replace(tzinfo=None) if dt is not None and dt.tzinfo is not None else dt


def _records(investments) -> list[InvestmentRecord]:
    return [
        InvestmentRecord(
            character_id=inv.character_id,
            character_name=inv.character.name,
            points=inv.points_spent,
            unlocked_at=_naive(inv.unlocked_at),
        )
        for inv in investments
    ]


def _line_summary(line) -> SkillLineSummary:
    return SkillLineSummary(
        id=line.id,
        name=line.name,
        description=line.description,
        skill_line_type=line.skill_line_type,
        skill_line_type_name=line.skill_line_type_name,
        unlock_level=line.unlock_level,
        active=line.active,
        nodes_count=len(line.nodes),
        job_classes_count=len(line.job_classes),
        job_classes=[
            {"id": jc.id, "name": jc.name, "job_type": jc.job_type} for jc in line.job_classes
        ],
        created_at=line.created_at,
        updated_at=line.updated_at,
    )


class SkillService(TransactionalService):
    """스킬 투자 트리 (SkillInvestmentTree)"""

    def __init__(
        self,
        line_repo: SkillLineRepository,
        node_repo: SkillNodeRepository,
        investment_repo: InvestmentRepository,
        character_repo: CharacterRepository,
        job_repo: CharacterJobClassRepository,
        job_class_repo: JobClassRepository
    ):
        super().__init__(line_repo.db)
        self.line_repo = line_repo
        self.node_repo = node_repo
        self.investment_repo = investment_repo
        self.character_repo = character_repo
        self.job_repo = job_repo
        self.job_class_repo = job_class_repo

    # --- 조회 ---

    async def get_investment_summary(self, skill_line_id: int, top_n: Optional[int] = None) -> dict:
        investments = await self.investment_repo.list_for_line(skill_line_id)
        return investment_summary(_records(investments), top_n or config.TOP_INVESTORS_LIMIT)

    async def get_skill_line(self, skill_line_id: int) -> SkillLineDetailResponse:
        line = await self.line_repo.get_or_404(skill_line_id)
        summary = await self.get_investment_summary(skill_line_id)

        return SkillLineDetailResponse(
            id=line.id,
            name=line.name,
            description=line.description,
            skill_line_type=line.skill_line_type,
            skill_line_type_name=line.skill_line_type_name,
            unlock_level=line.unlock_level,
            active=line.active,
            job_classes=[
                {"id": jc.id, "name": jc.name, "job_type": jc.job_type} for jc in line.job_classes
            ],
            skill_nodes=[SkillNodeResponse.model_validate(node) for node in line.nodes],
            character_investments=summary,
        )

    async def list_skill_lines(
        self,
        search: Optional[str] = None,
        skill_line_type: Optional[str] = None
    ) -> SkillLineListResponse:
        lines = await self.line_repo.get_list(skill_line_type=skill_line_type, search=search)
        items = [_line_summary(line) for line in lines]
        return SkillLineListResponse(skill_lines=items, total_count=len(items))

    async def get_node(self, skill_line_id: int, node_id: int) -> SkillNodeDetailResponse:
        node = await self.node_repo.get_in_line(skill_line_id, node_id)
        line = node.skill_line
        return SkillNodeDetailResponse(
            skill_node=SkillNodeResponse.model_validate(node),
            skill_line=SkillLineResponse.model_validate(line),
            job_classes=[
                {"id": jc.id, "name": jc.name, "job_type": jc.job_type} for jc in line.job_classes
            ],
            investment_count=await self.investment_repo.count_for_node(node.id),
        )

    async def get_job_class_skill_lines(
        self,
        job_class_id: int,
        skill_line_type: Optional[str] = None
    ) -> JobClassSkillLinesResponse:
        job_class = await self.job_class_repo.get_or_404(job_class_id)
        lines = await self.line_repo.get_list(skill_line_type=skill_line_type, job_class_id=job_class_id)

        items = [
            SkillLineListItem(
                id=line.id,
                name=line.name,
                description=line.description,
                skill_line_type=line.skill_line_type,
                skill_line_type_name=line.skill_line_type_name,
                unlock_level=line.unlock_level,
                active=line.active,
                nodes_count=len(line.nodes),
            )
            for line in lines
        ]
        return JobClassSkillLinesResponse(
            job_class={"id": job_class.id, "name": job_class.name, "job_type": job_class.job_type},
            skill_lines=items,
            total_count=len(items),
        )

    async def get_skill_statistics(self, job_class_id: int) -> SkillStatisticsResponse:
        """직업별 스킬 포인트 사용률 + 스킬 라인별 투자 통계"""
        job_class = await self.job_class_repo.get_or_404(job_class_id)
        jobs = await self.job_repo.list_by_job_class(job_class_id)
        used = await self.investment_repo.used_points_by_job_class(job_class_id)
        available = sum(job.skill_points for job in jobs)

        line_stats = []
        for line in await self.line_repo.get_list(job_class_id=job_class_id):
            summary = await self.get_investment_summary(line.id)
            line_stats.append({
                "id": line.id,
                "name": line.name,
                "skill_line_type": line.skill_line_type,
                "total_investments": summary["total_points"],
                "character_count": summary["character_count"],
                "average_investment": summary["average_points"],
                "max_investment": summary["max_investment"],
            })

        return SkillStatisticsResponse(
            job_class={"id": job_class.id, "name": job_class.name, "job_type": job_class.job_type},
            overall_stats=utilization(len(jobs), available, used),
            skill_line_stats=line_stats,
        )

    # --- 기획자 편집 ---

    async def create_skill_line(self, payload: SkillLineCreateRequest) -> SkillLineSummary:
        data = payload.model_dump()
        job_classes = await self.job_class_repo.get_many(data.pop("job_class_ids"))
        line = self.line_repo.add(SkillLine(**data, job_classes=list(job_classes)))
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        await self.db.refresh(line)
        logger.info(f"Skill line '{line.name}' created for job classes {[jc.id for jc in job_classes]}")
        return _line_summary(line)

    async def update_skill_line(self, skill_line_id: int, payload: SkillLineUpdateRequest) -> SkillLineSummary:
        line = await self.line_repo.get_or_404(skill_line_id)
        data = {
            field: value
            for field, value in payload.model_dump(exclude_unset=True).items()
            if value is not None or field == "description"
        }

        job_class_ids = data.pop("job_class_ids", None)
        if job_class_ids is not None:
            line.job_classes = list(await self.job_class_repo.get_many(job_class_ids))
        for field, value in data.items():
            setattr(line, field, value)

        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        await self.db.refresh(line)
        return _line_summary(line)

    async def create_node(self, skill_line_id: int, payload: SkillNodeCreateRequest) -> SkillNodeResponse:
        line = await self.line_repo.get_or_404(skill_line_id)
        node = SkillNode(skill_line_id=line.id, skill_line=line, **payload.model_dump())
        self.node_repo.add(node)
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        logger.info(f"Skill node '{node.name}' created in skill line {skill_line_id}")
        return SkillNodeResponse.model_validate(node)

    async def update_node(self, skill_line_id: int, node_id: int, payload: SkillNodeUpdateRequest) -> SkillNodeResponse:
        node = await self.node_repo.get_in_line(skill_line_id, node_id)
        data = payload.model_dump(exclude_unset=True)

        node_type = data.get("node_type", node.node_type)
        effects = data.get("effects", node.effects)
        if "node_type" in data or "effects" in data:
            # 타입이 바뀌면 effects 모양도 다시 검증
            try:
                data["effects"] = parse_node_effect(node_type, effects).model_dump()
            except ValueError as e:
                raise ValidationFailed(f"Invalid effects for node_type '{node_type}': {e}") from e

        for field, value in data.items():
            setattr(node, field, value)

        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return SkillNodeResponse.model_validate(node)

    async def delete_node(self, skill_line_id: int, node_id: int) -> None:
        """투자 기록이 남아 있는 노드는 삭제 불가 (비활성화로 대체)"""
        node = await self.node_repo.get_in_line(skill_line_id, node_id)
        investments = await self.investment_repo.count_for_node(node.id)
        if investments:
            raise TemplateInUse(
                f"Skill node '{node.name}' has {investments} investments, deactivate it instead"
            )

        name = node.name
        node.skill_line.nodes.remove(node)
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        logger.info(f"Skill node {node_id} ({name}) deleted from skill line {skill_line_id}")

    # --- 해금 ---

    async def unlock_node(self, skill_line_id: int, node_id: int, character_id: int) -> UnlockNodeResponse:
        """
        노드 해금
        성공 시 현재 직업의 skill_points 차감과 투자 기록 INSERT가 같은 트랜잭션에서 일어난다.
        실패 시 상태는 변하지 않는다.
        """

        async def operation():
            node = await self.node_repo.get_in_line(skill_line_id, node_id)
            character = await self.character_repo.get_or_404(character_id)
            current = await self.job_repo.get_current(character_id, for_update=True)
            already = await self.investment_repo.exists(character_id, node.id)

            check_unlock(node, current, already, [jc.id for jc in node.skill_line.job_classes])

            current.skill_points -= node.points_required
            self.investment_repo.add(CharacterSkillInvestment(
                character_id=character.id,
                character=character,
                skill_node_id=node.id,
                node=node,
                job_class_id=current.job_class_id,
                points_spent=node.points_required,
            ))
            await self.db.flush()

            logger.info(
                f"[SKILL] character={character_id} unlocked node={node.id} ({node.name}) "
                f"-{node.points_required}pt, remaining={current.skill_points}"
            )
            return UnlockNodeResponse(
                character_id=character_id,
                skill_node_id=node.id,
                job_class_id=current.job_class_id,
                points_spent=node.points_required,
                remaining_skill_points=current.skill_points,
                effect=node.effects,
            )

        return await self.run_serialized(character_id, operation)
