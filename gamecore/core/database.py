# gamecore/core/database.py
import logging
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool
from redis import asyncio as aioredis

from gamecore.core import config

logger = logging.getLogger(__name__)


def _engine_kwargs(url: str) -> dict:
    # asyncpg 전용 옵션은 postgres일 때만 넘긴다 (sqlite 테스트 환경 호환)
    if url.startswith("postgresql+asyncpg"):
        return {
            "poolclass": NullPool,
            "pool_pre_ping": True,
            "connect_args": {
                "prepared_statement_cache_size": 0,
                "statement_cache_size": 0
            },
        }
    return {}


# 1. Async Engine
engine = create_async_engine(config.DATABASE_URL, echo=False, **_engine_kwargs(config.DATABASE_URL))
SessionLocal = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
Base = declarative_base()

# 2. Redis Connection Pool
redis_pool = None

def init_redis_pool():
    """앱 시작 시 호출되어 Redis Pool을 생성"""
    global redis_pool
    logger.info(f"Connecting to Redis at {config.REDIS_HOST}:{config.REDIS_PORT}...")
    redis_pool = aioredis.ConnectionPool.from_url(
        config.REDIS_URL,
        decode_responses=True,
        max_connections=100
    )

async def close_redis_pool():
    """앱 종료 시 호출되어 연결 해제"""
    global redis_pool
    if redis_pool:
        await redis_pool.disconnect()
        logger.info("Redis connection closed.")

async def create_all():
    """DB_CREATE_ALL=1 일 때 기동 시 테이블 생성 (개발/데모용)"""
    # 모델 등록을 위해 import
    from gamecore import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

# Dependency Injection for DB Session
async def get_db():
    async with SessionLocal() as session:
        yield session

# Dependency Injection for Redis Client
async def get_redis():
    client = aioredis.Redis(connection_pool=redis_pool)
    try:
        yield client
    finally:
        await client.aclose()
