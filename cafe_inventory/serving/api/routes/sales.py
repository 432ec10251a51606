"""
Sales Endpoints

POS sales ingestion.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field

from cafe_inventory.sales import SalesLine
from cafe_inventory.serving.api.dependencies import get_service, respond
from cafe_inventory.services import InventoryService, ServiceResult

router = APIRouter()


class SalesIngestRequest(BaseModel):
    """POS line items for one business date"""
    date: Optional[str] = None
    source: Optional[str] = None
    lines: List[SalesLine] = Field(default_factory=list)


@router.post("/ingest", response_model=ServiceResult)
def ingest_sales(
    body: SalesIngestRequest,
    response: Response,
    service: InventoryService = Depends(get_service),
) -> ServiceResult:
    """Replace the date's sales rows for the source with the aggregated lines."""
    return respond(service.ingest_sales(body.date, body.lines, source=body.source), response)
