"""
Sales Ingestion

Aggregates POS line items for one business date (yesterday by default)
into sales rows and replaces that date's rows for the source, so
re-syncing a day is idempotent.
"""

import math
import time
from typing import Any, Dict, List, Optional, Sequence

import polars as pl
import structlog
from pydantic import BaseModel, Field, field_validator

from cafe_inventory.config.settings import VirtualItemRule
from cafe_inventory.exceptions import InputValidationError
from cafe_inventory.inventory.calendar import BusinessCalendar
from cafe_inventory.ledger.parsing import format_quantity, is_iso_date, norm
from cafe_inventory.ledger.writer import LedgerWriter
from cafe_inventory.sales.menu_keys import build_menu_key

logger = structlog.get_logger(__name__)


class SalesLine(BaseModel):
    """One POS line item"""
    name: str = ""
    modifiers: List[str] = Field(default_factory=list)
    quantity: float = 1.0
    voided: bool = False

    @field_validator("quantity", mode="before")
    @classmethod
    def default_quantity(cls, v: Any) -> float:
        """Missing or non-numeric quantities count as one"""
        if v is None or isinstance(v, bool):
            return 1.0
        try:
            number = float(v)
        except (TypeError, ValueError):
            return 1.0
        return number if math.isfinite(number) else 1.0

    @field_validator("modifiers", mode="before")
    @classmethod
    def drop_blank_modifiers(cls, v: Any) -> List[str]:
        return [str(m) for m in (v or []) if norm(m)]


class SalesIngestResult(BaseModel):
    """Outcome of a sales sync"""
    date: str
    source: str
    lines_received: int = 0
    lines_used: int = 0
    rows_written: int = 0
    rows_removed: int = 0
    top_items: List[Dict[str, Any]] = Field(default_factory=list)
    duration_ms: float = 0


def aggregate_sales(
    date: str,
    lines: Sequence[SalesLine],
    rules: Sequence[VirtualItemRule],
    source: str,
    synced_at: str = "",
) -> List[Dict[str, str]]:
    """
    Sum quantities per menu key.

    Voided and nameless lines are skipped; keys whose total is not positive
    are dropped. Keys keep first-seen order.
    """
    keys = []
    quantities = []
    for line in lines:
        if line.voided or not norm(line.name):
            continue
        keys.append(build_menu_key(line.name, line.modifiers, rules))
        quantities.append(line.quantity)

    if not keys:
        return []

    totals = (
        pl.DataFrame({"menu_item_clean": keys, "qty_sold": quantities})
        .group_by("menu_item_clean", maintain_order=True)
        .agg(pl.col("qty_sold").sum())
        .filter(pl.col("qty_sold") > 0)
    )
    return [
        {
            "date": date,
            "menu_item_clean": record["menu_item_clean"],
            "qty_sold": format_quantity(record["qty_sold"]),
            "source": source,
            "synced_at": synced_at,
        }
        for record in totals.iter_rows(named=True)
    ]


class SalesIngestor:
    """
    Writes aggregated POS sales into the sales table.

    Example:
        ingestor = SalesIngestor(writer, calendar, settings.sales.virtual_items)
        result = ingestor.ingest("2026-02-06", lines)
    """

    def __init__(
        self,
        writer: LedgerWriter,
        calendar: BusinessCalendar,
        rules: Sequence[VirtualItemRule],
        default_source: str = "toast",
    ):
        self.writer = writer
        self.calendar = calendar
        self.rules = list(rules)
        self.default_source = default_source

    def ingest(
        self,
        date: Optional[str],
        lines: Sequence[Any],
        source: Optional[str] = None,
    ) -> SalesIngestResult:
        started = time.perf_counter()
        day = norm(date) or self.calendar.yesterday()
        if not is_iso_date(day):
            raise InputValidationError("date must be YYYY-MM-DD", field="date")
        source = norm(source) or self.default_source

        parsed = [line if isinstance(line, SalesLine) else SalesLine.model_validate(line) for line in lines]
        rows = aggregate_sales(day, parsed, self.rules, source, synced_at=self.calendar.timestamp())
        removed = self.writer.replace_sales(day, source, rows)

        top = sorted(rows, key=lambda r: float(r["qty_sold"]), reverse=True)[:10]
        result = SalesIngestResult(
            date=day,
            source=source,
            lines_received=len(parsed),
            lines_used=sum(1 for line in parsed if not line.voided and norm(line.name)),
            rows_written=len(rows),
            rows_removed=removed,
            top_items=[{"menu_item_clean": r["menu_item_clean"], "qty_sold": float(r["qty_sold"])} for r in top],
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        logger.info(
            f"Sales synced for {day}",
            source=source,
            rows_written=result.rows_written,
            rows_removed=result.rows_removed,
            lines_used=result.lines_used,
        )
        return result
