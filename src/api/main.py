"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures logging, routes, and lifespan events.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from psycopg_pool import ConnectionPool

from src.adapters.broadcast.console import ConsoleVerificationAgent
from src.adapters.repository.postgres import PostgresPackageStateRepository, run_migrations
from src.api.v1 import router as v1_router
from src.config.settings import get_settings
from src.domain.registry import HostOwnershipRegistry
from src.domain.service import DomainVerificationService, UserWriteLocks

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "v1",
        "description": "Link Ownership API v1 - Domain verification and selection state per user",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Creates database connection pool on startup
    - Runs migrations on startup
    - Restores persisted package state into the registry
    - Closes connection pool on shutdown
    """
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())

    logger.info("Starting application...")
    logger.info("Connecting to database...")

    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
    )

    logger.info("Running database migrations...")
    run_migrations(pool)

    registry = HostOwnershipRegistry()
    write_locks = UserWriteLocks()
    service = DomainVerificationService(
        registry=registry,
        repository=PostgresPackageStateRepository(pool),
        agent=ConsoleVerificationAgent(),
        write_locks=write_locks,
    )
    service.restore_all()

    # Store shared state in app state for dependency injection
    app.state.pool = pool
    app.state.registry = registry
    app.state.write_locks = write_locks

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    pool.close()
    logger.info("Database connection pool closed")


app = FastAPI(
    title="linkgate",
    description="Link Ownership API - Decides which application opens web links for each host and user",
    version="0.1.0",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

# Include v1 API routes
app.include_router(v1_router, prefix="/v1")


@app.get("/health")
async def health_check(request: Request) -> dict[str, str]:
    """
    Health check endpoint with database validation.

    Returns 200 OK if application and database are healthy.
    Raises exception if database connection fails.
    """
    pool = request.app.state.pool
    with pool.connection() as conn:
        conn.execute("SELECT 1")

    return {"status": "healthy"}
