"""
Shopping List Endpoints

Merged shopping list, per-item actions and the reset-today sweep.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel

from cafe_inventory.serving.api.dependencies import get_service, respond
from cafe_inventory.services import InventoryService, ServiceResult

router = APIRouter()


class ShoppingActionRequest(BaseModel):
    """One action on a shopping list item"""
    upc: str
    action: str
    note: str = ""
    actor: str = ""
    date: Optional[str] = None


class ResetTodayRequest(BaseModel):
    dry_run: bool = False
    actor: str = ""


@router.get("/shopping-list", response_model=ServiceResult)
def get_shopping_list(
    response: Response,
    include_hidden: bool = Query(False),
    service: InventoryService = Depends(get_service),
) -> ServiceResult:
    """
    Manual rows merged with the reorder snapshot, highest order quantity
    first. Items hidden today are left out unless ``include_hidden``.
    """
    return respond(service.shopping_list(include_hidden=include_hidden), response)


@router.post("/shopping/actions", response_model=ServiceResult)
def record_action(
    body: ShoppingActionRequest,
    response: Response,
    service: InventoryService = Depends(get_service),
) -> ServiceResult:
    result = service.record_shopping_action(
        body.upc,
        body.action,
        note=body.note,
        actor=body.actor,
        date=body.date,
    )
    return respond(result, response)


@router.post("/shopping/reset-today", response_model=ServiceResult)
def reset_today(
    response: Response,
    body: Optional[ResetTodayRequest] = None,
    service: InventoryService = Depends(get_service),
) -> ServiceResult:
    """Append an undo for every item hidden today."""
    body = body or ResetTodayRequest()
    return respond(service.reset_today(dry_run=body.dry_run, actor=body.actor), response)
