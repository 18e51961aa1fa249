from typing import Generic, TypeVar, Type, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from gamecore.core.database import Base
from gamecore.core.exceptions import NotFound

# 제네릭 타입 정의 (어떤 모델이든 들어올 수 있음)
ModelType = TypeVar("ModelType", bound=Base)

class BaseRepository(Generic[ModelType]):
    def __init__(self, model: Type[ModelType], db: AsyncSession):
        self.model = model
        self.db = db

    async def get_by_id(self, id: int, for_update: bool = False) -> Optional[ModelType]:
        query = select(self.model).where(self.model.id == id)
        if for_update:
            # 같은 행을 읽고-쓰는 트랜잭션 직렬화 (SQLite에서는 무시됨)
            query = query.with_for_update()
        result = await self.db.execute(query)
        return result.scalars().first()

    async def get_or_404(self, id: int, for_update: bool = False) -> ModelType:
        obj = await self.get_by_id(id, for_update=for_update)
        if obj is None:
            raise NotFound(f"{self.model.__name__} {id} not found")
        return obj

    def add(self, obj: ModelType) -> ModelType:
        self.db.add(obj)
        return obj

    async def delete(self, obj: ModelType) -> None:
        await self.db.delete(obj)
