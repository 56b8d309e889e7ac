from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from pgcache.core.config import Settings
from pgcache.db.base import Base
from pgcache.db.models.cache import CacheEntry
from pgcache.utils.logging import get_logger

SUPPORTED_DIALECTS = ("postgresql", "sqlite")


def create_engine(settings: Settings) -> AsyncEngine:
    """Build the connection pool shared by every request."""
    url = make_url(settings.DATABASE_URL)
    if url.get_backend_name() not in SUPPORTED_DIALECTS:
        raise ValueError(
            f"Unsupported database backend '{url.get_backend_name()}'; "
            f"expected one of {', '.join(SUPPORTED_DIALECTS)}"
        )

    kwargs = {"pool_pre_ping": settings.DB_POOL_PRE_PING}
    if url.get_backend_name() == "postgresql":
        kwargs.update(
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT,
        )
    else:
        kwargs["connect_args"] = {"timeout": settings.DB_POOL_TIMEOUT}
    return create_async_engine(url, **kwargs)


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine, autoflush=False, expire_on_commit=False
    )


async def init_db(engine: AsyncEngine, unlogged: bool = False):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        if unlogged and engine.dialect.name == "postgresql":
            table = engine.dialect.identifier_preparer.quote(
                CacheEntry.__tablename__
            )
            await conn.execute(text(f"ALTER TABLE {table} SET UNLOGGED"))
    get_logger().info(f"Schema ready: table '{CacheEntry.__tablename__}'")
