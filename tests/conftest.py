import os
import tempfile

# Settings are read at import time; point them at a throwaway SQLite file first
TEST_DIR = tempfile.mkdtemp(prefix="pgcache-tests-")
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///" + os.path.join(TEST_DIR, "cache.db")
os.environ["LOG_DIR"] = os.path.join(TEST_DIR, "logs")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["CACHE_ROUTE_PREFIX"] = ""

import pytest
from fastapi.testclient import TestClient

from main import app
from pgcache.core.config import settings
from pgcache.db.models.cache import CacheEntry
from pgcache.db.session import create_engine, create_sessionmaker, init_db
from pgcache.services.cache import CacheService


@pytest.fixture
async def engine():
    engine = create_engine(settings)
    await init_db(engine)
    async with engine.begin() as conn:
        await conn.execute(CacheEntry.__table__.delete())
    yield engine
    await engine.dispose()


@pytest.fixture
def sessionmaker(engine):
    return create_sessionmaker(engine)


@pytest.fixture
async def db_session(sessionmaker):
    async with sessionmaker() as session:
        yield session


@pytest.fixture
def cache(db_session):
    return CacheService(db_session, timeout=5.0)


@pytest.fixture
def client():
    """TestClient running the app lifespan, starting from an empty cache."""
    with TestClient(app) as c:
        assert c.delete("/cache").status_code == 200
        yield c
    app.dependency_overrides.clear()
