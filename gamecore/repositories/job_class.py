from typing import List, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gamecore.core.exceptions import NotFound
from gamecore.models.job_class import JobClass, CharacterJobClass, ExperienceGrant
from gamecore.repositories.base import BaseRepository


class JobClassRepository(BaseRepository[JobClass]):
    def __init__(self, db: AsyncSession):
        super().__init__(JobClass, db)

    async def get_list(self) -> List[JobClass]:
        query = select(JobClass).order_by(JobClass.id)
        result = await self.db.execute(query)
        return result.scalars().all()

    async def get_many(self, ids: List[int]) -> List[JobClass]:
        """ids 중 하나라도 없으면 404"""
        wanted = set(ids)
        if not wanted:
            return []
        query = select(JobClass).where(JobClass.id.in_(wanted)).order_by(JobClass.id)
        result = await self.db.execute(query)
        job_classes = result.scalars().all()
        missing = wanted - {jc.id for jc in job_classes}
        if missing:
            raise NotFound(f"JobClass {sorted(missing)} not found")
        return job_classes


class CharacterJobClassRepository(BaseRepository[CharacterJobClass]):
    def __init__(self, db: AsyncSession):
        super().__init__(CharacterJobClass, db)

    async def get_for_character(
        self,
        character_id: int,
        job_class_id: int,
        for_update: bool = False
    ) -> CharacterJobClass:
        query = select(CharacterJobClass).where(
            CharacterJobClass.character_id == character_id,
            CharacterJobClass.job_class_id == job_class_id,
        )
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        job = result.scalars().first()
        if job is None:
            raise NotFound(f"Character {character_id} has not unlocked job class {job_class_id}")
        return job

    async def get_current(self, character_id: int, for_update: bool = False) -> Optional[CharacterJobClass]:
        query = select(CharacterJobClass).where(
            CharacterJobClass.character_id == character_id,
            CharacterJobClass.is_current.is_(True),
        )
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return result.scalars().first()

    async def set_current(self, character_id: int, target: CharacterJobClass) -> CharacterJobClass:
        """
        현재 직업 전환
        기존 플래그 해제를 먼저 flush 해야 부분 유니크 인덱스(uq_character_current_job)에 걸리지 않는다.
        """
        previous = await self.get_current(character_id, for_update=True)
        if previous is not None and previous.id != target.id:
            previous.is_current = False
            await self.db.flush()
        target.is_current = True
        await self.db.flush()
        return target

    async def list_by_job_class(self, job_class_id: int, for_update: bool = False) -> List[CharacterJobClass]:
        query = select(CharacterJobClass).where(CharacterJobClass.job_class_id == job_class_id)
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return result.scalars().all()


class ExperienceGrantRepository(BaseRepository[ExperienceGrant]):
    def __init__(self, db: AsyncSession):
        super().__init__(ExperienceGrant, db)

    async def list_for_character(self, character_id: int, skip: int = 0, limit: int = 50) -> List[ExperienceGrant]:
        query = (
            select(ExperienceGrant)
            .where(ExperienceGrant.character_id == character_id)
            .order_by(ExperienceGrant.id.desc())
            .offset(skip)
            .limit(limit)
        )
        result = await self.db.execute(query)
        return result.scalars().all()
