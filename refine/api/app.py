# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI Application Factory.

This module provides the main application factory for the Refine API.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from refine import __version__
from refine.api.errors import register_exception_handlers
from refine.api.middleware import AuthMiddleware, RequestContextMiddleware
from refine.api.routes import health
from refine.api.v1 import router as v1_router
from refine.core.config import Settings, get_settings
from refine.infrastructure.database import Database
from refine.infrastructure.google import (
    DriveClient,
    GoogleIdentityProvider,
    GoogleOAuthClient,
    ServiceAccountCredentials,
)
from refine.utils.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Creates the long-lived resources and stores them on ``app.state``:
    - Database engine and session factory
    - Shared HTTP client
    - Google OAuth, identity and Drive clients

    Args:
        app: The FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings: Settings = app.state.settings
    logger.info(
        "Starting Refine API",
        extra={"environment": settings.environment, "debug": settings.debug},
    )

    # =========================================================================
    # Startup
    # =========================================================================

    database = Database(
        settings.database.url,
        pool_size=settings.database.pool_size,
        max_overflow=settings.database.max_overflow,
    )
    await database.connect()
    if settings.database.is_sqlite:
        # Local development without migrations
        await database.create_all()
    logger.info("Database connection initialized")

    http_client = httpx.AsyncClient(timeout=settings.google.timeout)
    credentials = ServiceAccountCredentials(
        settings.google.service_account_info,
        token_uri=settings.google.token_uri,
    )

    app.state.database = database
    app.state.http_client = http_client
    app.state.oauth_client = GoogleOAuthClient(http_client, settings.google)
    app.state.identity_provider = GoogleIdentityProvider(http_client, settings.google)
    app.state.drive_client = DriveClient(
        http_client,
        credentials,
        api_url=settings.google.drive_api_url,
        timeout=settings.google.timeout,
    )

    yield

    # =========================================================================
    # Shutdown
    # =========================================================================

    await http_client.aclose()
    await database.disconnect()
    logger.info("Shutting down Refine API")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    This factory function creates a new FastAPI instance with all
    middleware, routes, and configurations applied.

    Args:
        settings: Settings to use; defaults to the cached environment settings.

    Returns:
        Configured FastAPI application instance.
    """
    settings = settings or get_settings()
    setup_logging(settings)

    app = FastAPI(
        title="Refine API",
        description="School learning-management backend",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
        redirect_slashes=False,
    )
    app.state.settings = settings

    # =========================================================================
    # Exception handlers
    # =========================================================================
    register_exception_handlers(app)

    # =========================================================================
    # Middleware (order matters - last added is first executed)
    # =========================================================================
    app.add_middleware(AuthMiddleware)
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins_list,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=settings.cors.allow_methods,
        allow_headers=settings.cors.allow_headers,
    )

    # =========================================================================
    # Routes
    # =========================================================================
    app.include_router(health.router, tags=["Health"])
    app.include_router(v1_router)

    return app
