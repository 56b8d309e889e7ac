import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pgcache.api.router import build_router
from pgcache.core.config import settings
from pgcache.core.exceptions.handlers import register_exception_handlers
from pgcache.core.lifespan import lifespan
from pgcache.core.logging import setup_early_logging
from pgcache.core.middlewares import LogRequestsMiddleware
from pgcache.core.rate_limiting import setup_rate_limiting

# Setup early logging for startup errors
setup_early_logging()

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.PROJECT_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
    openapi_tags=[
        {"name": "Cache", "description": "Key/value entries backed by the cache table"},
        {"name": "Health", "description": "Liveness and store connectivity"},
    ],
)

# Setup rate limiting if enabled
setup_rate_limiting(app)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add logging middleware
app.add_middleware(LogRequestsMiddleware)

# Register all exception handlers
register_exception_handlers(app)

# Include API routers
app.include_router(build_router(settings.cache_route_prefix))


if __name__ == "__main__":
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
