from contextlib import asynccontextmanager
from fastapi import FastAPI
from pgcache.core.config import get_settings
from pgcache.db.session import create_engine, create_sessionmaker, init_db
from pgcache.utils.logging import get_logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    settings = get_settings()
    logger = get_logger()
    engine = create_engine(settings)
    if settings.CREATE_SCHEMA_ON_STARTUP:
        try:
            await init_db(engine, unlogged=settings.CACHE_TABLE_UNLOGGED)
        except Exception:
            await engine.dispose()
            raise
    app.state.engine = engine
    app.state.sessionmaker = create_sessionmaker(engine)
    logger.info(
        f"Startup: {app.title} v{app.version} starting "
        f"(store={engine.url.render_as_string(hide_password=True)})"
    )
    try:
        yield
    finally:
        # Shutdown
        await engine.dispose()
        logger.info("Shutdown: connection pool disposed")
