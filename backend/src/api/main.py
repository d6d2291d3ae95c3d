"""FastAPI application entry point."""
import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from api.errors import register_exception_handlers
from api.routers import auth, categories, comments, health, posts, uploads
from core.config import get_settings
from core.logging_config import configure_logging
from core.redis import connect_from_settings, set_redis_client

logger = logging.getLogger(__name__)

API_PREFIX = "/api"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:  # noqa: ARG001
    """Configure logging and connect Redis for the lifetime of the process."""
    settings = get_settings()
    configure_logging(settings.log_level)
    redis_client = await connect_from_settings(settings)
    set_redis_client(redis_client)
    logger.info("api_started", extra={"environment": settings.environment})
    try:
        yield
    finally:
        set_redis_client(None)
        if redis_client is not None:
            await redis_client.aclose()


app = FastAPI(
    title="Blog API",
    description="Posts, categories, comments and accounts for a blogging application.",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Log each request with its status and duration."""
    start = time.perf_counter()
    response = await call_next(request)
    logger.info(
        "%s %s -> %s (%.0fms)",
        request.method,
        request.url.path,
        response.status_code,
        (time.perf_counter() - start) * 1000,
        extra={"user_id": getattr(request.state, "user_id", None)},
    )
    return response


register_exception_handlers(app)


@app.get("/", tags=["health"])
async def root() -> dict[str, str]:
    """Service banner."""
    return {"message": "Blog API Server", "version": app.version, "status": "running"}


app.include_router(health.router)
app.include_router(auth.router, prefix=API_PREFIX)
app.include_router(posts.router, prefix=API_PREFIX)
app.include_router(categories.router, prefix=API_PREFIX)
app.include_router(comments.router, prefix=API_PREFIX)
app.include_router(uploads.router, prefix=API_PREFIX)
