"""
On-Hand Calculator

Reduces the three ledgers to a per-UPC quantity:

    on_hand = purchased - used + adjusted

Purchases are lifetime stock additions and are never date-filtered. Usage
and adjustments can be scoped to one business date for a per-day reading.
Negative results are legal and are reported, never clamped.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping, Optional

import structlog

from cafe_inventory.exceptions import InputValidationError
from cafe_inventory.ledger.models import AdjustmentEvent, CatalogEntry, PurchaseEvent, UsageEvent
from cafe_inventory.ledger.parsing import is_iso_date, normalize_upc
from cafe_inventory.ledger.reader import LedgerReader

logger = structlog.get_logger(__name__)


@dataclass
class OnHandReading:
    """On-hand breakdown for one UPC"""
    upc: str
    purchased: float
    used: float
    adjusted: float
    on_hand: float
    base_unit: str
    date: Optional[str] = None

    @property
    def is_negative(self) -> bool:
        return self.on_hand < 0


@dataclass
class LedgerTotals:
    """Per-UPC sums of the three ledgers, aggregated once for batch callers"""
    purchased: Dict[str, float] = field(default_factory=dict)
    used: Dict[str, float] = field(default_factory=dict)
    adjusted: Dict[str, float] = field(default_factory=dict)

    def reading(self, upc: str, base_unit: str = "each", date: Optional[str] = None) -> OnHandReading:
        purchased = self.purchased.get(upc, 0.0)
        used = self.used.get(upc, 0.0)
        adjusted = self.adjusted.get(upc, 0.0)
        return OnHandReading(
            upc=upc,
            purchased=purchased,
            used=used,
            adjusted=adjusted,
            on_hand=purchased - used + adjusted,
            base_unit=base_unit,
            date=date,
        )

    def on_hand(self, upc: str) -> float:
        return self.purchased.get(upc, 0.0) - self.used.get(upc, 0.0) + self.adjusted.get(upc, 0.0)


def summarize_ledgers(
    purchases: Iterable[PurchaseEvent],
    usage: Iterable[UsageEvent],
    adjustments: Iterable[AdjustmentEvent],
    date: Optional[str] = None,
) -> LedgerTotals:
    """
    Sum every ledger per UPC in one pass each.

    Args:
        purchases: Purchase events (always lifetime)
        usage: Usage events
        adjustments: Adjustment events
        date: When set, usage and adjustments only count for this date
    """
    purchased: Dict[str, float] = defaultdict(float)
    used: Dict[str, float] = defaultdict(float)
    adjusted: Dict[str, float] = defaultdict(float)

    for p in purchases:
        if p.quantity > 0:
            purchased[p.upc] += p.quantity

    for u in usage:
        if date is not None and u.date != date:
            continue
        used[u.upc] += u.theoretical_used_qty

    for a in adjustments:
        if date is not None and a.date != date:
            continue
        adjusted[a.upc] += a.base_units_delta

    return LedgerTotals(purchased=dict(purchased), used=dict(used), adjusted=dict(adjusted))


def resolve_base_unit(catalog: Mapping[str, CatalogEntry], upc: str) -> str:
    entry = catalog.get(upc)
    return entry.unit if entry else "each"


class OnHandCalculator:
    """
    Single-UPC on-hand lookups against the live ledgers.

    An unknown UPC is not an error: it reads as zeros with unit "each".
    """

    def __init__(self, reader: LedgerReader):
        self.reader = reader

    def compute(self, upc: str, date: Optional[str] = None) -> OnHandReading:
        key = normalize_upc(upc)
        if not key:
            raise InputValidationError("Missing upc", field="upc")
        if date is not None and not is_iso_date(date):
            raise InputValidationError("date must be YYYY-MM-DD", field="date")

        totals = summarize_ledgers(
            (p for p in self.reader.purchases() if p.upc == key),
            (u for u in self.reader.usage() if u.upc == key),
            (a for a in self.reader.adjustments() if a.upc == key),
            date=date,
        )
        reading = totals.reading(key, resolve_base_unit(self.reader.catalog_index(), key), date)

        if reading.is_negative:
            logger.warning(
                "Negative on-hand",
                upc=key,
                on_hand=reading.on_hand,
                purchased=reading.purchased,
                used=reading.used,
                adjusted=reading.adjusted,
            )
        return reading
