from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import redis.asyncio as redis
from sqlalchemy import text

from workboard import __version__, dependencies
from workboard.config import settings
from workboard.logging_config import setup_logging, get_logger

logger = get_logger(__name__)
from workboard.database import init_db_engine, close_db_engine
from workboard.migration_check import ensure_migrations
from workboard.routers import auth as auth_router
from workboard.routers import members, storage, tasks, workspaces


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan - connect/disconnect Redis and database."""
    # Initialize logging first
    setup_logging()

    from workboard.auth.config import auth_settings

    try:
        auth_settings.validate()
    except RuntimeError as e:
        logger.critical(f"Auth configuration error: {e}")
        raise

    # Redis only carries live board events; the API works without it.
    if settings.redis_url:
        dependencies.redis_client = redis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_keepalive=True,
            retry_on_timeout=True,
            health_check_interval=30,
        )
        try:
            await dependencies.redis_client.ping()
            logger.info(f"Connected to Redis at {settings.redis_url}")
        except Exception as e:
            logger.warning(f"Could not connect to Redis: {e}")
            logger.warning("API will continue without event streaming")
    else:
        logger.info("REDIS_URL not set, event streaming disabled")

    try:
        await init_db_engine()
        logger.info("Database engine initialized")
    except Exception as e:
        logger.critical(f"Could not initialize database engine: {e}")
        raise

    try:
        ensure_migrations()
    except Exception as e:
        logger.critical(f"Migration check failed: {e}")
        raise

    yield

    if dependencies.redis_client:
        await dependencies.redis_client.aclose()
        dependencies.redis_client = None
    await close_db_engine()
    logger.info("Shutdown complete")


app = FastAPI(
    title="Workboard API",
    version=__version__,
    description="API backend for Workboard - workspaces, members and task boards",
    lifespan=lifespan,
)

# CORS
# CORS_ORIGINS env var controls allowed origins.
#   "*"              → wildcard (allow any origin, credentials disabled)
#   unset / empty    → wildcard (same default behaviour)
#   "http://a,https://b" → explicit origin list (credentials enabled)
if settings.cors_origins in ("", "*"):
    _cors_origins = ["*"]
    _cors_credentials = False
else:
    _cors_origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
    _cors_credentials = True

# Added before CORS: Starlette runs the last-added middleware outermost,
# so 401 responses still get CORS headers.
from workboard.auth.middleware import AuthMiddleware

app.add_middleware(AuthMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=_cors_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch unhandled exceptions and return proper JSON response."""
    error_detail = str(exc)
    error_type = type(exc).__name__

    logger.error(
        f"Unhandled exception in {request.method} {request.url.path}: {error_type}: {error_detail}",
        exc_info=True,
    )

    return JSONResponse(
        status_code=500,
        content={
            "detail": f"{error_type}: {error_detail}",
            "type": error_type,
            "path": str(request.url.path),
        },
    )


app.include_router(auth_router.router, prefix="/api/auth", tags=["auth"])
app.include_router(workspaces.router, prefix="/api/workspaces", tags=["workspaces"])
app.include_router(members.router, prefix="/api/members", tags=["members"])
app.include_router(tasks.router, prefix="/api/tasks", tags=["tasks"])
app.include_router(storage.router, prefix="/api/storage", tags=["storage"])


@app.get("/api/status")
async def status():
    """Get API health status."""
    redis_ok = False
    if dependencies.redis_client:
        try:
            redis_ok = await dependencies.redis_client.ping()
        except Exception as e:
            logger.debug(f"Redis ping failed: {e}")

    database_ok = False
    try:
        from workboard.database import AsyncSessionLocal

        async with AsyncSessionLocal() as session:
            await session.execute(text("SELECT 1"))
        database_ok = True
    except Exception as e:
        logger.warning(f"Database health check failed: {e}")

    return {
        "status": "ok" if database_ok else "degraded",
        "version": __version__,
        "redisConnected": redis_ok,
        "database": database_ok,
    }
