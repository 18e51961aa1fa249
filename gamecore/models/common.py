from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB

# 운영(PostgreSQL)에서는 JSONB, 테스트(SQLite)에서는 JSON
JSONType = JSON().with_variant(JSONB(), "postgresql")
