from fastapi import APIRouter, status

from pgcache.core.config import settings
from pgcache.core.dependencies import CacheServiceDependency
from pgcache.core.responses import error_response, send_success

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check(cache: CacheServiceDependency):
    data = {"status": "healthy", "version": settings.PROJECT_VERSION}
    if await cache.ping():
        data["database"] = "ok"
        return send_success(data=data)

    data.update(status="degraded", database="unavailable")
    return error_response(
        "Cache store unavailable.", status.HTTP_503_SERVICE_UNAVAILABLE, data=data
    )
