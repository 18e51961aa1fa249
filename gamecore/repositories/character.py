from typing import List, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from gamecore.models.character import Character
from gamecore.models.job_class import CharacterJobClass
from gamecore.repositories.base import BaseRepository


class CharacterRepository(BaseRepository[Character]):
    def __init__(self, db: AsyncSession):
        super().__init__(Character, db)

    async def get_list(
        self,
        name: Optional[str] = None,
        current_job_class_id: Optional[int] = None
    ) -> List[Character]:
        """캐릭터 목록 (이름 부분 검색 / 현재 직업 필터)"""
        query = select(Character)

        if name:
            query = query.where(Character.name.ilike(f"%{name.strip()}%"))
        if current_job_class_id is not None:
            query = query.join(
                CharacterJobClass, CharacterJobClass.character_id == Character.id
            ).where(
                CharacterJobClass.job_class_id == current_job_class_id,
                CharacterJobClass.is_current.is_(True),
            )

        query = query.order_by(Character.id)
        result = await self.db.execute(query)
        return result.scalars().all()
