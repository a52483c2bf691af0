"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures middleware, exception handlers, and lifespan events.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from psycopg_pool import ConnectionPool

from academy import __version__
from academy.adapters.repository.postgres import run_migrations
from academy.api.auth import router as auth_router
from academy.api.cors import install_cors_headers
from academy.api.dependencies import build_identity_gateway
from academy.api.errors import register_exception_handlers
from academy.config.settings import Settings, get_settings

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "auth",
        "description": "Signup, login, password reset and email verification",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Creates database connection pool and runs migrations on startup
    - Builds the identity gateway (and its HTTP client) once per process
    - Closes both on shutdown
    """
    settings: Settings = app.state.settings
    logging.basicConfig(level=settings.log_level.upper())

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

    gateway, http_client = build_identity_gateway(settings)
    logger.info("Identity provider: %s", settings.identity_provider)

    # Store process-wide resources in app state for dependency injection
    app.state.pool = pool
    app.state.identity_gateway = gateway

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    if http_client is not None:
        http_client.close()
    pool.close()
    logger.info("Database connection pool closed")


def health_check(request: Request) -> dict[str, str]:
    """
    Health check endpoint with database validation.

    Returns 200 OK if application and database are healthy.
    Raises exception if database connection fails.
    """
    pool = request.app.state.pool
    with pool.connection() as conn:
        conn.execute("SELECT 1")

    return {"status": "healthy"}


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application for `settings` (defaults to the environment)."""
    settings = settings or get_settings()

    app = FastAPI(
        title="academy-auth",
        description="Vibecoding Academy authentication API - signup, login, "
        "password reset and email verification",
        version=__version__,
        openapi_tags=tags_metadata,
        lifespan=lifespan,
    )
    app.state.settings = settings

    install_cors_headers(app, settings)
    register_exception_handlers(app, settings)

    app.include_router(auth_router, prefix="/api")
    app.add_api_route("/health", health_check, methods=["GET"], tags=["health"])
    return app


app = create_app()
