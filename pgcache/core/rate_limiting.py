from fastapi import Request, status
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from pgcache.core.config import settings
from pgcache.core.responses import error_response
from pgcache.utils.logging import get_logger


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    get_logger().warning(
        f"Rate limit exceeded for {request.method} {request.url.path}: {exc.detail}"
    )
    return error_response("Too many requests.", status.HTTP_429_TOO_MANY_REQUESTS)


def setup_rate_limiting(app) -> Limiter | None:
    """Per-client default limit on every route; off unless RATE_LIMIT_ENABLED."""
    if not settings.RATE_LIMIT_ENABLED:
        return None
    limiter = Limiter(
        key_func=get_remote_address, default_limits=[settings.RATE_LIMIT_DEFAULT]
    )
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)
    return limiter
