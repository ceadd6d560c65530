"""
FastAPI application entrypoint for the Trakt lists addon.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from trakt_addon.api.addon import router as addon_router
from trakt_addon.api.routes import router as api_router
from trakt_addon.core.config import AppSettings, get_settings
from trakt_addon.core.logging import configure_logging
from trakt_addon.dependencies import build_services

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    services = app.state.services
    logger.info("Data directory: %s", services.settings.storage.data_dir)
    logger.info("Tokens file: %s", services.credential_store.path)
    services.refresh_scheduler.start()
    try:
        yield
    finally:
        await services.refresh_scheduler.stop()
        services.poster_service.flush()


def create_app(
    settings: AppSettings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Factory for the FastAPI application."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Stremio Trakt Lists",
        version=settings.addon_version,
        description="Stremio addon serving Trakt.tv lists as catalogs.",
        lifespan=lifespan,
    )
    app.state.services = build_services(settings, transport=transport)
    # Stremio clients fetch the manifest and catalogs cross-origin.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )
    app.include_router(addon_router)
    app.include_router(api_router, prefix="/api")
    return app


app = create_app()

__all__ = ["app", "create_app"]
