from typing import Annotated, AsyncGenerator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from pgcache.core.config import Settings, get_settings
from pgcache.services.cache import CacheService
from pgcache.utils.logging import get_logger

logger = get_logger()


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """One session per request, from the pool owned by the running app."""
    async with request.app.state.sessionmaker() as session:
        try:
            yield session
        except Exception as e:
            await session.rollback()
            logger.exception(f"Database transaction rolled back: {e}")
            raise
        finally:
            await session.close()  # Connection goes back to the pool


DBDependency = Annotated[AsyncSession, Depends(get_db)]
SettingsDependency = Annotated[Settings, Depends(get_settings)]


async def get_cache_service(
    db: DBDependency, settings: SettingsDependency
) -> CacheService:
    return CacheService(db, timeout=settings.DB_OPERATION_TIMEOUT)


CacheServiceDependency = Annotated[CacheService, Depends(get_cache_service)]
