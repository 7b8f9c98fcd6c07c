"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance and the lifespan that
owns the shared account service HTTP client.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from authflow.api.v1 import router as v1_router
from authflow.config.settings import get_settings

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "v1",
        "description": "Authentication flows API v1 - Sign in, sign up, force-auth and unblock",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Configures logging
    - Creates the account service HTTP client on startup
    - Closes the client on shutdown
    """
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())

    logger.info("Starting application...")
    logger.info("Account service: %s", settings.auth_server_url)

    client = httpx.AsyncClient(
        base_url=settings.auth_server_url,
        timeout=settings.request_timeout_seconds,
    )

    # Store client in app state for dependency injection
    app.state.http_client = client

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    await client.aclose()
    logger.info("Account service client closed")


app = FastAPI(
    title="authflow",
    description="Authentication flow orchestration - Decides hooks, events and navigation for sign-in attempts",
    version="0.1.0",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

# Include v1 API routes
app.include_router(v1_router, prefix="/v1")


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint. Returns 200 OK while the application is serving."""
    return {"status": "healthy"}
