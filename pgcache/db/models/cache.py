from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Index, Integer, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from pgcache.core.config import settings
from pgcache.db.base import Base

# JSONB on PostgreSQL, plain JSON (text) everywhere else
JSONDocument = JSON().with_variant(JSONB(), "postgresql")


class CacheEntry(Base):
    __tablename__ = settings.CACHE_TABLE_NAME

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    key: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    value: Mapped[Any] = mapped_column(JSONDocument, nullable=True)
    # Server-assigned on insert; upserts only touch `value`
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.current_timestamp(), nullable=False
    )

    __table_args__ = (Index("idx_cache_key", "key"),)
