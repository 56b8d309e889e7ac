from fastapi import APIRouter, Request, Response, status
from fastapi.responses import JSONResponse

from pgcache.core.dependencies import CacheServiceDependency
from pgcache.core.responses import error_response
from pgcache.db.schemas.cache import CachePut
from pgcache.services.cache import parse_put_request
from pgcache.services.results import (
    Cleared,
    Found,
    MalformedInput,
    Missing,
    Stored,
    StoreProblem,
    StoreUnavailable,
)
from pgcache.utils.logging import get_logger

router = APIRouter(prefix="/cache", tags=["Cache"])
logger = get_logger()

PUT_BODY_SCHEMA = {
    "requestBody": {
        "required": True,
        "content": {
            "application/json": {"schema": CachePut.model_json_schema(by_alias=True)}
        },
    }
}


def store_problem_response(problem: StoreProblem) -> JSONResponse:
    if isinstance(problem, StoreUnavailable):
        return error_response(
            "Cache store unavailable.", status.HTTP_503_SERVICE_UNAVAILABLE
        )
    return error_response("Cache store error.", status.HTTP_500_INTERNAL_SERVER_ERROR)


@router.post("", openapi_extra=PUT_BODY_SCHEMA)
async def put_entry(request: Request, cache: CacheServiceDependency):
    # Body is parsed by hand so a bad payload is a result, not a 422
    parsed = parse_put_request(await request.body())
    if isinstance(parsed, MalformedInput):
        logger.warning(f"Rejected cache entry: {parsed.reason}")
        return error_response("Malformed cache entry.", status.HTTP_400_BAD_REQUEST)

    result = await cache.put(parsed.key, parsed.value)
    if isinstance(result, Stored):
        return Response(status_code=status.HTTP_200_OK)
    return store_problem_response(result)


@router.get("/{key:path}")
async def get_entry(key: str, cache: CacheServiceDependency):
    result = await cache.get(key)
    if isinstance(result, Found):
        return JSONResponse(content=result.value)
    if isinstance(result, Missing):
        return Response(status_code=status.HTTP_404_NOT_FOUND)
    return store_problem_response(result)


@router.delete("")
async def clear_entries(cache: CacheServiceDependency):
    result = await cache.clear()
    if isinstance(result, Cleared):
        return Response(status_code=status.HTTP_200_OK)
    return store_problem_response(result)
