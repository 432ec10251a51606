"""
Health Check Endpoints

Liveness plus a readiness probe that reads the catalog table.
"""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel

from cafe_inventory.exceptions import InventoryError
from cafe_inventory.serving.api.dependencies import get_service
from cafe_inventory.services import InventoryService

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    version: str
    environment: str
    timestamp: datetime
    checks: Dict[str, Any]


@router.get("/health", response_model=HealthResponse)
def health_check(
    response: Response,
    service: InventoryService = Depends(get_service),
) -> HealthResponse:
    """
    Store health check.

    Reports the backend and whether the catalog table can be read.
    """
    settings = service.settings
    checks: Dict[str, Any] = {"store": {"backend": settings.store.backend}}
    status = "healthy"

    try:
        catalog = service.reader.catalog()
        checks["store"].update({"status": "healthy", "catalog_rows": len(catalog)})
    except InventoryError as e:
        checks["store"].update({"status": "unhealthy", "error": str(e), "error_type": e.code})
        status = "unhealthy"
        response.status_code = 503

    return HealthResponse(
        status=status,
        version=settings.version,
        environment=settings.app_env,
        timestamp=datetime.now(timezone.utc),
        checks=checks,
    )


@router.get("/health/live")
def liveness_check() -> Dict[str, str]:
    """Returns 200 if the application is running."""
    return {"status": "alive"}
