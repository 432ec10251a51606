"""
Stock Entries

Append-only writers for the two hand-entered ledgers: adjustments (signed
corrections such as counts, spoilage or waste) and purchases. Neither ever
rewrites a prior row.
"""

import math
from typing import Any, Optional

import structlog

from cafe_inventory.exceptions import InputValidationError
from cafe_inventory.inventory.calendar import BusinessCalendar
from cafe_inventory.ledger.models import AdjustmentEvent, PurchaseEvent
from cafe_inventory.ledger.parsing import format_quantity, is_iso_date, norm, normalize_upc
from cafe_inventory.ledger.writer import LedgerWriter

logger = structlog.get_logger(__name__)


def parse_finite(value: Any, field: str) -> float:
    """Strict numeric parse for caller input; blanks and junk are rejected"""
    if isinstance(value, bool) or value is None:
        raise InputValidationError(f"{field} must be a number", field=field)
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InputValidationError(f"{field} must be a number", field=field) from None
    if not math.isfinite(number):
        raise InputValidationError(f"{field} must be a number", field=field)
    return number


class StockEntryRecorder:
    """
    Records adjustments and purchases.

    Example:
        recorder = StockEntryRecorder(writer, calendar)
        recorder.record_adjustment("EGG", -3, adjustment_type="spoilage")
    """

    def __init__(self, writer: LedgerWriter, calendar: BusinessCalendar):
        self.writer = writer
        self.calendar = calendar

    def record_adjustment(
        self,
        upc: str,
        base_units_delta: Any,
        adjustment_type: str = "adjust",
        reason: str = "",
        actor: str = "",
        date: Optional[str] = None,
    ) -> AdjustmentEvent:
        key = normalize_upc(upc)
        if not key:
            raise InputValidationError("Missing upc", field="upc")
        delta = parse_finite(base_units_delta, "base_units_delta")
        day = norm(date) or self.calendar.today()
        if not is_iso_date(day):
            raise InputValidationError("date must be YYYY-MM-DD", field="date")

        event = AdjustmentEvent(
            timestamp=self.calendar.timestamp(),
            date=day,
            upc=key,
            base_units_delta=delta,
            adjustment_type=norm(adjustment_type) or "adjust",
            reason=norm(reason),
            actor=norm(actor),
        )
        row = event.model_dump()
        row["base_units_delta"] = format_quantity(delta)
        self.writer.append_adjustment(row)

        logger.info(
            "Inventory adjustment recorded",
            upc=key,
            delta=delta,
            adjustment_type=event.adjustment_type,
            date=day,
        )
        return event

    def record_purchase(
        self,
        upc: str,
        qty_purchased: Any,
        base_units_added: Any = None,
        product_name: str = "",
        store_vendor: str = "",
        assigned_location: str = "",
        total_price: Any = None,
        notes: str = "",
        entered_by: str = "",
    ) -> PurchaseEvent:
        """
        Append one purchase. ``base_units_added`` converts packs to base units
        when the purchase unit differs from the stocking unit.
        """
        key = normalize_upc(upc)
        if not key:
            raise InputValidationError("Missing upc", field="upc")
        qty = parse_finite(qty_purchased, "qty_purchased")
        if qty <= 0:
            raise InputValidationError("qty_purchased must be greater than 0", field="qty_purchased")
        base_units = None
        if base_units_added not in (None, ""):
            base_units = parse_finite(base_units_added, "base_units_added")
            if base_units < 0:
                raise InputValidationError("base_units_added cannot be negative", field="base_units_added")
        price = None
        if total_price not in (None, ""):
            price = parse_finite(total_price, "total_price")

        timestamp = self.calendar.timestamp()
        self.writer.append_purchase({
            "timestamp": timestamp,
            "entered_by": norm(entered_by),
            "upc": key,
            "product_name": norm(product_name),
            "qty_purchased": format_quantity(qty),
            "base_units_added": format_quantity(base_units) if base_units is not None else "",
            "total_price": f"{price:.2f}" if price is not None else "",
            "store_vendor": norm(store_vendor),
            "assigned_location": norm(assigned_location),
            "notes": norm(notes),
        })

        event = PurchaseEvent(
            timestamp=timestamp,
            upc=key,
            qty_purchased=qty,
            base_units_added=base_units or 0.0,
        )
        logger.info("Purchase recorded", upc=key, quantity=event.quantity, entered_by=norm(entered_by))
        return event
