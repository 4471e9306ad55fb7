"""
Name: FastAPI Application Entry Point

Responsibilities:
  - Initialize FastAPI application with metadata (title, version)
  - Configure middleware (CORS, request context)
  - Mount the verification router
  - Expose health check and metrics endpoints

Collaborators:
  - FastAPI / CORSMiddleware
  - RequestContextMiddleware: request id + logging context
  - interfaces.api.http.router: verification endpoints
  - container: dispatcher + redis for lifecycle and health

Notes:
  - Middleware order matters: RequestContext -> CORS -> routes
  - Settings validated at startup (lifespan), not at import time
  - Without DATABASE_URL (or APP_ENV=test) the in-memory store is used
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from redis.exceptions import RedisError

from ..container import get_event_dispatcher, get_redis_connection, reset_container
from ..crosscutting.config import get_settings
from ..crosscutting.logger import logger
from ..crosscutting.metrics import get_metrics_response
from ..crosscutting.middleware import RequestContextMiddleware
from ..infrastructure.db.pool import close_pool, get_pool, init_pool
from ..interfaces.api.http.router import router
from .exception_handlers import register_exception_handlers


def _database_enabled() -> bool:
    settings = get_settings()
    return bool(settings.database_url.strip()) and not settings.is_test()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle. Validates settings and initializes pool."""
    settings = get_settings()

    if settings.is_production():
        settings.validate_security_requirements()

    if _database_enabled():
        init_pool(
            database_url=settings.database_url,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
        )

    # R: Wiring de handlers antes del primer request.
    get_event_dispatcher()

    try:
        logger.info(
            "Corbez API starting up",
            extra={
                "app_env": settings.app_env,
                "database": _database_enabled(),
                "redis": bool(settings.redis_url.strip()),
            },
        )
        yield
    finally:
        reset_container()
        close_pool()
        logger.info("Corbez API shutting down")


def _get_allowed_origins() -> list[str]:
    return get_settings().get_allowed_origins_list()


app = FastAPI(
    title="Corbez API",
    version="0.1.0",
    lifespan=lifespan,
    openapi_tags=[
        {
            "name": "verify",
            "description": "Public verification of signed coupons and employee passes",
        },
    ],
)

app.add_middleware(RequestContextMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=_get_allowed_origins(),
    allow_credentials=False,
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["Content-Type", "X-Request-Id"],
)

app.include_router(router)
register_exception_handlers(app)


def _check_database() -> str:
    if not _database_enabled():
        return "in-memory"
    try:
        with get_pool().connection() as conn:
            conn.execute("SELECT 1")
        return "connected"
    except Exception as exc:
        logger.warning("Health check: DB unavailable", extra={"error": str(exc)})
    return "disconnected"


def _check_redis() -> str:
    client = get_redis_connection()
    if client is None:
        return "disabled"
    try:
        return "connected" if client.ping() else "disconnected"
    except RedisError as exc:
        logger.warning("Health check: Redis unavailable", extra={"error": str(exc)})
        return "disconnected"


# R: Health check (Kubernetes/Docker convention)
@app.get("/healthz")
def healthz(request: Request):
    db_status = _check_database()
    redis_status = _check_redis()
    return {
        "ok": db_status != "disconnected" and redis_status != "disconnected",
        "db": db_status,
        "redis": redis_status,
        "request_id": getattr(request.state, "request_id", None),
    }


# R: Prometheus metrics endpoint
@app.get("/metrics")
def metrics():
    if not get_settings().metrics_enabled:
        return Response(content="# metrics disabled\n", media_type="text/plain")
    body, content_type = get_metrics_response()
    return Response(content=body, media_type=content_type)
