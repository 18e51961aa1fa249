# gamecore/core/config.py
import os
import logging
from dotenv import load_dotenv

load_dotenv()

# --- Database ---
USER = os.getenv("user")
PASSWORD = os.getenv("password")
HOST = os.getenv("host", "localhost")
PORT = os.getenv("port", "5432")
DBNAME = os.getenv("dbname")

# DATABASE_URL이 있으면 우선 사용 (테스트/로컬 sqlite 등)
DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql+asyncpg://{USER}:{PASSWORD}@{HOST}:{PORT}/{DBNAME}?ssl=require",
)
DB_CREATE_ALL = os.getenv("DB_CREATE_ALL", "0") == "1"

# --- Redis ---
REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
REDIS_PORT = os.getenv("REDIS_PORT", "6379")
REDIS_PASSWORD = os.getenv("REDIS_PASSWORD", "")

if REDIS_PASSWORD:
    REDIS_URL = f"redis://:{REDIS_PASSWORD}@{REDIS_HOST}:{REDIS_PORT}/0"
else:
    REDIS_URL = f"redis://{REDIS_HOST}:{REDIS_PORT}/0"

# --- Cache TTL (seconds) ---
JOB_CLASS_CACHE_TTL = int(os.getenv("JOB_CLASS_CACHE_TTL", "3600"))
ITEM_CACHE_TTL = int(os.getenv("ITEM_CACHE_TTL", "86400"))  # 아이템 템플릿은 거의 안 바뀜

# --- Game rules ---
# 경험치 곡선: 레벨 k -> k+1 비용 = base * k^exponent * experience_multiplier
EXP_CURVE_BASE = float(os.getenv("EXP_CURVE_BASE", "100"))
EXP_CURVE_EXPONENT = float(os.getenv("EXP_CURVE_EXPONENT", "1.5"))
SKILL_POINTS_PER_LEVEL = int(os.getenv("SKILL_POINTS_PER_LEVEL", "1"))
TOP_INVESTORS_LIMIT = int(os.getenv("TOP_INVESTORS_LIMIT", "5"))

# --- Logging ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def setup_logging(level: str = LOG_LEVEL) -> logging.Logger:
    """앱 시작 시 한 번 호출되는 로깅 설정"""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(levelname)s - %(message)s'
    )
    return logging.getLogger("gamecore")
