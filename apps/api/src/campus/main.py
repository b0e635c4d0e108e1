"""
Campus API - Main Application Entry Point

This module initializes and configures the FastAPI application including:
- Logging
- Database and Redis connections
- Background job scheduler
- CORS middleware and error handlers
- API routing
- Health check endpoints
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import campus.models  # noqa: F401  registers all ORM models
from campus.api import api_router
from campus.core.config import settings
from campus.core.database import close_db, init_db
from campus.core.redis import close_redis, init_redis
from campus.core.scheduler import start_scheduler, stop_scheduler
from campus.modules.admin.jobs import register_admin_jobs
from campus.modules.auth.jobs import register_auth_jobs
from campus.modules.shared.errors import register_exception_handlers

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("campus")


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """
    Application lifespan manager.

    Startup failures are fatal in production and logged otherwise, so a
    developer can run the API without Redis.
    """
    logger.info(f"Starting Campus API in {settings.python_env} mode...")

    try:
        await init_redis()
        logger.info("Redis connected")
    except Exception as e:
        logger.error(f"Redis connection failed: {e}")
        if settings.is_production:
            raise

    try:
        await init_db()
        logger.info("Database connected")
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        if settings.is_production:
            raise

    try:
        # Jobs must be registered before the scheduler starts
        register_auth_jobs()
        register_admin_jobs()
        await start_scheduler()
        logger.info("Background scheduler started")
    except Exception as e:
        logger.error(f"Background scheduler failed to start: {e}")
        if settings.is_production:
            raise

    yield

    logger.info("Shutting down Campus API...")
    await stop_scheduler()
    await close_redis()
    await close_db()
    logger.info("Cleanup complete")


app = FastAPI(
    title="Campus API",
    description="Multi-tenant school management API",
    version="0.1.0",
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    lifespan=lifespan,
)

app.include_router(api_router, prefix="/api/v1")
register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """Root endpoint - API welcome message."""
    return {
        "message": "Welcome to Campus API",
        "status": "running",
        "environment": settings.python_env,
    }


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint for container orchestration."""
    return {"status": "healthy"}


@app.get("/ready", tags=["Health"])
async def readiness_check() -> dict[str, str]:
    """Readiness check endpoint."""
    return {"status": "ready"}
