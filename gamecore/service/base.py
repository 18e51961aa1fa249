import logging
import orjson
from typing import TypeVar, Optional, Type, Callable, Awaitable, List
from redis.asyncio import Redis
from pydantic import BaseModel
from fastapi.encoders import jsonable_encoder
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from gamecore.core.exceptions import ConcurrencyConflict
from gamecore.core.locks import character_lock

logger = logging.getLogger(__name__)

# Return Type 정의
SchemaType = TypeVar("SchemaType", bound=BaseModel)
T = TypeVar("T")


class BaseService:
    def __init__(self, redis: Optional[Redis]):
        self.redis = redis

    async def get_with_cache(
        self,
        key: str,
        fetch_func: Callable,
        schema_model: Type[SchemaType],
        ttl: int = 3600
    ) -> Optional[SchemaType]:
        """
        [Cache-Aside Pattern 구현체]
        1. Redis 조회
        2. Hit -> Pydantic 변환 후 반환 (Fast)
        3. Miss -> DB 조회 (fetch_func)
        4. DB 결과 -> Redis 저장 -> 반환
        """

        # 1. Fast Path: Redis Lookup
        cached_data = await self.redis.get(key)
        if cached_data:
            return schema_model.model_validate(orjson.loads(cached_data))

        # 2. Slow Path: DB Query
        db_obj = await fetch_func()

        if not db_obj:
            return None

        # 3. Serialization (DB Model -> Pydantic Schema)
        response_obj = schema_model.model_validate(db_obj)

        # 4. Save to Redis
        # jsonable_encoder로 datetime 등을 안전하게 변환 후 orjson 덤프
        serialized_data = orjson.dumps(jsonable_encoder(response_obj)).decode()
        await self.redis.set(key, serialized_data, ex=ttl)

        return response_obj

    async def get_list_with_cache(
        self,
        key: str,
        fetch_func: Callable,
        schema_model: Type[SchemaType],
        ttl: int = 3600
    ) -> List[SchemaType]:
        """리스트 형태 데이터 캐싱용"""
        cached_data = await self.redis.get(key)
        if cached_data:
            data_list = orjson.loads(cached_data)
            return [schema_model.model_validate(item) for item in data_list]

        db_list = await fetch_func()

        # Convert List[ORM] -> List[Pydantic]
        response_list = [schema_model.model_validate(obj) for obj in db_list]

        serialized_data = orjson.dumps(jsonable_encoder(response_list)).decode()
        await self.redis.set(key, serialized_data, ex=ttl)

        return response_list

    async def invalidate(self, *keys: str) -> None:
        if not keys:
            return
        # Unlink는 Del보다 비동기적으로 메모리를 해제하여 더 빠릅니다. (Redis 4.0+)
        async with self.redis.pipeline() as pipe:
            for key in keys:
                pipe.unlink(key)
            await pipe.execute()


class TransactionalService(BaseService):
    """
    캐릭터 상태를 바꾸는 서비스의 공통 부모

    run_serialized()
    - 같은 캐릭터에 대한 요청은 프로세스 내 락으로 한 줄로 세운다
    - 버전 충돌(StaleDataError)/유니크 충돌(IntegrityError)은 1회만 재시도 후 ConcurrencyConflict
    - 규칙 위반(GameError)은 재시도하지 않고 롤백 후 그대로 전파
    """

    def __init__(self, db: AsyncSession, redis: Optional[Redis] = None):
        super().__init__(redis)
        self.db = db

    async def run_serialized(self, character_id: int, operation: Callable[[], Awaitable[T]]) -> T:
        async with character_lock(character_id):
            for attempt in range(2):
                try:
                    result = await operation()
                    await self.db.commit()
                    return result
                except (StaleDataError, IntegrityError) as e:
                    await self.db.rollback()
                    if attempt == 0:
                        logger.warning(f"Transient conflict on character {character_id}, retrying: {e}")
                        continue
                    logger.warning(f"Conflict on character {character_id} after retry: {e}")
                    raise ConcurrencyConflict() from e
                except Exception:
                    await self.db.rollback()
                    raise
