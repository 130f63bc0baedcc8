"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures exception handlers, static uploads and lifespan events.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.staticfiles import StaticFiles
from psycopg_pool import ConnectionPool

from src.adapters.repository.postgres import PostgresRoleRepository, run_migrations
from src.api.dependencies import build_email_sender, build_object_storage
from src.api.errors import register_exception_handlers
from src.api.v1 import router as v1_router
from src.config.settings import get_settings
from src.domain.roles import RoleService

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {"name": "auth", "description": "Registration, email verification, sign-in and password reset"},
    {"name": "admin", "description": "Registration review and account management (admin only)"},
    {"name": "roles", "description": "Role and privilege management (admin only)"},
    {"name": "user", "description": "Self-service profile for the signed-in account"},
]


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Creates database connection pool on startup
    - Runs migrations and seeds the default roles
    - Builds the email sender and object storage from settings
    - Closes connection pool and email workers on shutdown
    """
    settings = get_settings()
    configure_logging(settings.log_level)

    logger.info("Starting application...")
    logger.info("Connecting to database...")

    # Create connection pool with explicit sizing
    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
    )

    logger.info("Running database migrations...")
    run_migrations(pool)
    RoleService(PostgresRoleRepository(pool)).seed_defaults()

    # Store shared resources in app state for dependency injection
    app.state.pool = pool
    app.state.email_sender = build_email_sender(settings)
    app.state.storage = build_object_storage(settings)

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    close_sender = getattr(app.state.email_sender, "close", None)
    if close_sender is not None:
        close_sender()
    pool.close()
    logger.info("Database connection pool closed")


app = FastAPI(
    title="gatehouse",
    description="Account onboarding API - OTP-verified signup, admin approval "
    "and role-based access control",
    version="0.1.0",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

register_exception_handlers(app)

# Include v1 API routes
app.include_router(v1_router, prefix="/v1")

# Locally stored profile pictures
if get_settings().storage_backend == "local":
    app.mount(
        "/uploads",
        StaticFiles(directory=get_settings().storage_local_dir, check_dir=False),
        name="uploads",
    )


@app.get("/health")
def health_check(request: Request) -> dict[str, str]:
    """
    Health check endpoint with database validation.

    Returns 200 OK if application and database are healthy.
    Raises exception if database connection fails.
    """
    # Validate database connectivity
    pool = request.app.state.pool
    with pool.connection() as conn:
        conn.execute("SELECT 1")

    return {"status": "healthy"}
