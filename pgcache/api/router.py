from fastapi import APIRouter

from pgcache.api.endpoints.cache import router as cache_router
from pgcache.api.endpoints.health import router as health_router


def build_router(cache_prefix: str = "") -> APIRouter:
    """Health at the root, cache routes under ``{cache_prefix}/cache``."""
    router = APIRouter()
    router.include_router(health_router)
    router.include_router(cache_router, prefix=cache_prefix)
    return router
