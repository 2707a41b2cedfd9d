"""FastAPI application entrypoint — lifespan, routers, middleware."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from redis.asyncio import Redis
from redis.exceptions import RedisError
from sqlalchemy import text

from floracast.config import get_settings
from floracast.database import engine
from floracast.middleware.logging import RequestLoggingMiddleware, configure_structured_logging
from floracast.routes import projections

logger = logging.getLogger("floracast")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application startup / shutdown lifecycle.

    Startup:
      1. Initialize structured logging
      2. Verify the record store is reachable
      3. Connect to Redis (projection cache; optional)

    Shutdown:
      1. Close Redis connection pool
      2. Dispose SQLAlchemy engine
    """
    configure_structured_logging()
    settings = get_settings()
    logger.info(
        "Floracast starting",
        extra={
            "log_level": settings.log_level,
            "timezone": settings.timezone,
        },
    )

    try:
        async with engine.connect() as connection:
            await connection.execute(text("SELECT 1"))
    except Exception as exc:
        logger.exception("startup failure", extra={"error": str(exc)})
        raise

    redis: Redis | None = Redis.from_url(settings.redis_url, decode_responses=True)
    try:
        await redis.ping()
    except RedisError as exc:
        logger.warning("projection cache disabled", extra={"error": str(exc)})
        await redis.aclose()
        redis = None
    app.state.redis = redis

    yield

    logger.info("Floracast shutting down")
    if redis is not None:
        await redis.aclose()
    await engine.dispose()


app = FastAPI(
    title="Floracast API",
    description=(
        "Phenological stage projection for flower-crop beds — projects stems "
        "per growth stage and net harvestable stems for every block/variety "
        "planting unit, with source attribution back to field events."
    ),
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── Middleware ──────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)


# ── Health check ────────────────────────────────────────────────────────────
@app.get("/health", tags=["system"])
async def health_check() -> dict[str, str]:
    """Basic health check — verifies the API process is alive."""
    return {
        "status": "ok",
        "service": "floracast",
        "version": "0.1.0",
    }


# ── Router registration ────────────────────────────────────────────────────
app.include_router(projections.router, prefix="/api/v1")
