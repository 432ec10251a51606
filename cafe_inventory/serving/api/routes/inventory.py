"""
Inventory Endpoints

Usage recompute, reorder snapshot, on-hand lookups, stock entries and the
daily run.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel, Field

from cafe_inventory.serving.api.dependencies import get_service, respond
from cafe_inventory.services import InventoryService, ServiceResult

router = APIRouter()


# =============================================================================
# REQUEST MODELS
# =============================================================================

class UsageRunRequest(BaseModel):
    """Usage recompute request"""
    date: str
    mode: str = "append"


class AdjustmentRequest(BaseModel):
    """Manual stock correction"""
    upc: str
    base_units_delta: float
    adjustment_type: str = "adjust"
    reason: str = ""
    actor: str = ""
    date: Optional[str] = None


class PurchaseRequest(BaseModel):
    """Received purchase"""
    upc: str
    qty_purchased: float
    base_units_added: Optional[float] = None
    product_name: str = ""
    store_vendor: str = ""
    assigned_location: str = ""
    total_price: Optional[float] = None
    notes: str = ""
    entered_by: str = ""


class DailyRunRequest(BaseModel):
    """Daily run request; the date defaults to today's business date"""
    date: Optional[str] = Field(default=None)


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.post("/usage/run", response_model=ServiceResult)
def run_usage(
    body: UsageRunRequest,
    response: Response,
    service: InventoryService = Depends(get_service),
) -> ServiceResult:
    """Explode the date's sales through active recipes into usage rows."""
    return respond(service.recompute_usage(body.date, body.mode), response)


@router.post("/reorder/run", response_model=ServiceResult)
def run_reorder(
    response: Response,
    service: InventoryService = Depends(get_service),
) -> ServiceResult:
    """Rebuild the reorder snapshot."""
    return respond(service.recompute_reorder(), response)


@router.get("/on-hand", response_model=ServiceResult)
def get_on_hand(
    response: Response,
    upc: str = Query(...),
    date: Optional[str] = None,
    service: InventoryService = Depends(get_service),
) -> ServiceResult:
    return respond(service.on_hand(upc, date=date), response)


@router.post("/adjustments", response_model=ServiceResult)
def add_adjustment(
    body: AdjustmentRequest,
    response: Response,
    service: InventoryService = Depends(get_service),
) -> ServiceResult:
    result = service.record_adjustment(
        body.upc,
        body.base_units_delta,
        adjustment_type=body.adjustment_type,
        reason=body.reason,
        actor=body.actor,
        date=body.date,
    )
    return respond(result, response)


@router.post("/purchases", response_model=ServiceResult)
def add_purchase(
    body: PurchaseRequest,
    response: Response,
    service: InventoryService = Depends(get_service),
) -> ServiceResult:
    fields = body.model_dump(exclude={"upc", "qty_purchased"})
    return respond(service.record_purchase(body.upc, body.qty_purchased, **fields), response)


@router.post("/daily-run", response_model=ServiceResult)
def daily_run(
    response: Response,
    body: Optional[DailyRunRequest] = None,
    service: InventoryService = Depends(get_service),
) -> ServiceResult:
    """
    Usage (replace) for the date, reorder snapshot, then the reorder email
    when anything was flagged. A failure names the step in ``step``.
    """
    date = body.date if body else None
    return respond(service.run_daily(date), response)
