import asyncio
from typing import Any, Awaitable, Callable

from pydantic import ValidationError
from sqlalchemy import delete, select, text
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import (
    DBAPIError,
    DisconnectionError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
    TimeoutError as PoolTimeoutError,
)
from sqlalchemy.ext.asyncio import AsyncSession

from pgcache.db.models.cache import CacheEntry
from pgcache.db.schemas.cache import CachePut
from pgcache.services.results import (
    Cleared,
    ClearResult,
    Found,
    GetResult,
    MalformedInput,
    Missing,
    PutResult,
    Stored,
    StoreFailure,
    StoreProblem,
    StoreUnavailable,
)
from pgcache.utils.logging import get_logger

# Dialects with native INSERT ... ON CONFLICT DO UPDATE
UPSERT_BUILDERS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def parse_put_request(raw: bytes) -> CachePut | MalformedInput:
    """Validate a ``POST /cache`` body without touching the store."""
    try:
        return CachePut.model_validate_json(raw)
    except ValidationError as e:
        return MalformedInput(
            reason="; ".join(
                f"{'.'.join(map(str, err['loc'])) or 'body'}: {err['msg']}"
                for err in e.errors()
            )
        )


def upsert_statement(dialect_name: str, key: str, value: Any):
    """INSERT the entry, or replace only ``value`` when ``key`` already exists.

    ``created_at`` and ``id`` are left out of the update set, so an overwrite
    keeps the original insertion time.
    """
    try:
        insert = UPSERT_BUILDERS[dialect_name]
    except KeyError:
        raise ValueError(f"No native upsert for dialect '{dialect_name}'") from None
    stmt = insert(CacheEntry).values(key=key, value=value)
    return stmt.on_conflict_do_update(
        index_elements=[CacheEntry.key],
        set_={"value": stmt.excluded.value},
    )


def classify_store_error(exc: BaseException) -> StoreProblem:
    if isinstance(exc, asyncio.TimeoutError):
        return StoreUnavailable(reason="operation timed out")
    if isinstance(exc, PoolTimeoutError):
        return StoreUnavailable(reason="connection pool exhausted")
    if isinstance(exc, (OperationalError, InterfaceError, DisconnectionError)):
        return StoreUnavailable(reason=type(exc).__name__)
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return StoreUnavailable(reason="connection invalidated")
    if isinstance(exc, OSError):
        return StoreUnavailable(reason=type(exc).__name__)
    return StoreFailure(reason=type(exc).__name__)


class CacheService:
    """Put / Get / Clear against the cache table, one statement each.

    The session is scoped to a single request; the service never holds a
    connection beyond the operation it was asked to run.
    """

    def __init__(self, db: AsyncSession, timeout: float | None = None):
        self.db = db
        self.timeout = timeout
        self.logger = get_logger()

    @property
    def dialect_name(self) -> str:
        return self.db.bind.dialect.name

    async def put(self, key: str, value: Any) -> PutResult:
        stmt = upsert_statement(self.dialect_name, key, value)

        async def write():
            await self.db.execute(stmt)
            await self.db.commit()

        problem = await self._run("put", write)
        return problem or Stored(key=key)

    async def get(self, key: str) -> GetResult:
        stmt = select(CacheEntry.value).where(CacheEntry.key == key)
        rows = []

        async def read():
            result = await self.db.execute(stmt)
            rows.extend(result.all())

        problem = await self._run("get", read)
        if problem:
            return problem
        if not rows:
            self.logger.debug(f"Cache miss for key '{key}'")
            return Missing(key=key)
        # A stored JSON null comes back as None but is still a hit
        return Found(value=rows[0].value)

    async def clear(self) -> ClearResult:
        async def wipe():
            result = await self.db.execute(delete(CacheEntry))
            await self.db.commit()
            self.logger.info(f"Cache cleared ({result.rowcount} entries removed)")

        problem = await self._run("clear", wipe)
        return problem or Cleared()

    async def ping(self) -> bool:
        async def probe():
            await self.db.execute(text("SELECT 1"))

        return await self._run("ping", probe) is None

    async def _run(
        self, operation: str, action: Callable[[], Awaitable[None]]
    ) -> StoreProblem | None:
        try:
            await asyncio.wait_for(action(), timeout=self.timeout)
        except (SQLAlchemyError, OSError, asyncio.TimeoutError) as exc:
            problem = classify_store_error(exc)
            if isinstance(problem, StoreUnavailable):
                self.logger.warning(f"Store unavailable during {operation}: {exc}")
            else:
                self.logger.opt(exception=exc).error(
                    f"Store error during {operation}: {exc}"
                )
            await self._discard(problem)
            return problem
        return None

    async def _discard(self, problem: StoreProblem):
        # The connection may be mid-statement after a timeout; don't reuse it
        try:
            if isinstance(problem, StoreUnavailable):
                await self.db.invalidate()
            else:
                await self.db.rollback()
        except (SQLAlchemyError, OSError) as exc:
            self.logger.warning(f"Failed to release store connection: {exc}")
