"""FastAPI application with lifespan management."""

from __future__ import annotations

import importlib.metadata
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from lmn_fulfillment.api.middleware.error_handler import register_error_handlers
from lmn_fulfillment.api.routes import health, letters, webhooks
from lmn_fulfillment.core.config import APIConfig, AppSettings
from lmn_fulfillment.core.startup_checks import validate_settings
from lmn_fulfillment.hooks import setup_logging
from lmn_fulfillment.services.fulfillment_service import create_fulfillment_service


def _get_version() -> str:
    """Read package version from installed metadata, with dev fallback."""
    try:
        return importlib.metadata.version("lmn-fulfillment")
    except importlib.metadata.PackageNotFoundError:
        return "0.0.0-dev"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application startup/shutdown lifecycle."""
    settings = AppSettings()
    validate_settings(settings)
    setup_logging(settings.observability)

    app.state.settings = settings
    app.state.service = create_fulfillment_service(settings)
    yield


def include_routers(app: FastAPI) -> None:
    """Mount the health, letter and webhook routers plus error handlers."""
    app.include_router(health.router)
    app.include_router(letters.router, prefix="/api")
    app.include_router(webhooks.router, prefix="/api")
    register_error_handlers(app)


_api_config = APIConfig()

app = FastAPI(
    title=_api_config.title,
    description=_api_config.description,
    version=_get_version(),
    lifespan=lifespan,
)

include_routers(app)
