from typing import List, Optional
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from gamecore.core.exceptions import NotFound
from gamecore.models.skill import SkillLine, SkillNode, CharacterSkillInvestment
from gamecore.models.job_class import job_class_skill_line
from gamecore.repositories.base import BaseRepository


class SkillLineRepository(BaseRepository[SkillLine]):
    def __init__(self, db: AsyncSession):
        super().__init__(SkillLine, db)

    async def get_list(
        self,
        skill_line_type: Optional[str] = None,
        job_class_id: Optional[int] = None,
        search: Optional[str] = None
    ) -> List[SkillLine]:
        query = select(SkillLine)

        if search:
            query = query.where(SkillLine.name.ilike(f"%{search.strip()}%"))
        if skill_line_type:
            query = query.where(SkillLine.skill_line_type == skill_line_type)
        if job_class_id is not None:
            query = query.join(
                job_class_skill_line, job_class_skill_line.c.skill_line_id == SkillLine.id
            ).where(job_class_skill_line.c.job_class_id == job_class_id)

        query = query.order_by(SkillLine.unlock_level, SkillLine.id)
        result = await self.db.execute(query)
        return result.scalars().all()


class SkillNodeRepository(BaseRepository[SkillNode]):
    def __init__(self, db: AsyncSession):
        super().__init__(SkillNode, db)

    async def get_in_line(self, skill_line_id: int, node_id: int) -> SkillNode:
        """URL의 skill_line_id와 노드 소속이 다르면 404"""
        query = (
            select(SkillNode)
            .where(SkillNode.id == node_id, SkillNode.skill_line_id == skill_line_id)
            .options(selectinload(SkillNode.skill_line).selectinload(SkillLine.job_classes))
        )
        result = await self.db.execute(query)
        node = result.scalars().first()
        if node is None:
            raise NotFound(f"Skill node {node_id} not found in skill line {skill_line_id}")
        return node


class InvestmentRepository(BaseRepository[CharacterSkillInvestment]):
    def __init__(self, db: AsyncSession):
        super().__init__(CharacterSkillInvestment, db)

    async def exists(self, character_id: int, node_id: int) -> bool:
        query = select(CharacterSkillInvestment.id).where(
            CharacterSkillInvestment.character_id == character_id,
            CharacterSkillInvestment.skill_node_id == node_id,
        )
        result = await self.db.execute(query)
        return result.first() is not None

    async def list_for_line(self, skill_line_id: int) -> List[CharacterSkillInvestment]:
        """스킬 라인에 속한 노드들의 전체 투자 기록 (캐릭터 정보 포함)"""
        query = (
            select(CharacterSkillInvestment)
            .join(SkillNode, SkillNode.id == CharacterSkillInvestment.skill_node_id)
            .where(SkillNode.skill_line_id == skill_line_id)
            .options(selectinload(CharacterSkillInvestment.character))
            .order_by(CharacterSkillInvestment.id)
        )
        result = await self.db.execute(query)
        return result.scalars().all()

    async def list_for_character(self, character_id: int) -> List[CharacterSkillInvestment]:
        query = (
            select(CharacterSkillInvestment)
            .where(CharacterSkillInvestment.character_id == character_id)
            .options(selectinload(CharacterSkillInvestment.node))
            .order_by(CharacterSkillInvestment.id)
        )
        result = await self.db.execute(query)
        return result.scalars().all()

    async def used_points_by_job_class(self, job_class_id: int) -> int:
        query = select(func.coalesce(func.sum(CharacterSkillInvestment.points_spent), 0)).where(
            CharacterSkillInvestment.job_class_id == job_class_id
        )
        result = await self.db.execute(query)
        return int(result.scalar_one())

    async def count_for_node(self, node_id: int) -> int:
        query = select(func.count(CharacterSkillInvestment.id)).where(
            CharacterSkillInvestment.skill_node_id == node_id
        )
        result = await self.db.execute(query)
        return int(result.scalar_one())
