"""
Notification Endpoints

Guarded reorder email.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel

from cafe_inventory.serving.api.dependencies import get_service, respond
from cafe_inventory.services import InventoryService, ServiceResult

router = APIRouter()


class ReorderEmailRequest(BaseModel):
    """
    force: 0 respects the daily guard and the cooldown, 1 skips the daily
    guard, 2 skips both.
    """
    force: int = 0
    cooldown_minutes: Optional[int] = None
    test: bool = False


@router.post("/reorder-email", response_model=ServiceResult)
def send_reorder_email(
    response: Response,
    body: Optional[ReorderEmailRequest] = None,
    service: InventoryService = Depends(get_service),
) -> ServiceResult:
    body = body or ReorderEmailRequest()
    result = service.send_reorder_email(
        force_level=body.force,
        cooldown_minutes=body.cooldown_minutes,
        test_mode=body.test,
    )
    return respond(result, response)
