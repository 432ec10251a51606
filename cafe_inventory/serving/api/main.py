"""
FastAPI Application Factory

Creates and configures the API application.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
import structlog

from cafe_inventory.config import get_settings
from cafe_inventory.config.logging import configure_logging
from cafe_inventory.serving.api.middleware import RequestLoggingMiddleware
from cafe_inventory.serving.api.routes import (
    health_router,
    inventory_router,
    notifications_router,
    sales_router,
    shopping_router,
)
from cafe_inventory.services import InventoryService, build_service

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    configure_logging()

    if getattr(app.state, "service", None) is None:
        app.state.service = build_service()
    service: InventoryService = app.state.service

    logger.info("Starting cafe inventory API", backend=service.settings.store.backend)

    result = service.bootstrap()
    if result.ok:
        logger.info("Tables ready", created=result.data["created"])
    else:
        logger.warning(f"Table bootstrap failed: {result.error}", error_type=result.error_type)

    yield

    logger.info("Shutting down...")


def create_api_app(service: Optional[InventoryService] = None) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        service: Pre-built service; built from settings at startup when omitted

    Returns:
        Configured FastAPI app instance
    """
    settings = service.settings if service else get_settings()

    app = FastAPI(
        title="Cafe Inventory API",
        description="Inventory reconciliation and reorder engine",
        version=settings.version,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )
    app.state.service = service

    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(health_router, prefix="/api/v1", tags=["Health"])
    app.include_router(inventory_router, prefix="/api/v1/inventory", tags=["Inventory"])
    app.include_router(sales_router, prefix="/api/v1/sales", tags=["Sales"])
    app.include_router(shopping_router, prefix="/api/v1", tags=["Shopping"])
    app.include_router(notifications_router, prefix="/api/v1/notifications", tags=["Notifications"])

    return app
