"""
Reorder Engine

Scans the active catalog, compares lifetime on-hand to each entry's
reorder point and overwrites the reorder snapshot with every entry at or
below it. The snapshot carries no history: entries that recovered since the
last run simply disappear.
"""

import time
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

import structlog

from cafe_inventory.exceptions import MissingLedgerError
from cafe_inventory.inventory.calendar import BusinessCalendar
from cafe_inventory.inventory.on_hand import LedgerTotals, summarize_ledgers
from cafe_inventory.ledger.models import CatalogEntry
from cafe_inventory.ledger.parsing import format_quantity
from cafe_inventory.ledger.reader import LedgerReader
from cafe_inventory.ledger.writer import LedgerWriter

logger = structlog.get_logger(__name__)

NEGATIVE_ON_HAND_NOTE = "Negative on-hand (missing starting inventory or mismatch)"


@dataclass
class ReorderLine:
    """One flagged catalog entry"""
    upc: str
    product_name: str
    on_hand: float
    base_unit: str
    reorder_point: float
    par_level: float
    qty_to_order: float
    preferred_vendor: str
    default_location: str
    note: str = ""

    def to_row(self, timestamp: str) -> Dict[str, str]:
        return {
            "timestamp": timestamp,
            "upc": self.upc,
            "product_name": self.product_name,
            "on_hand_base_units": format_quantity(self.on_hand),
            "base_unit": self.base_unit,
            "reorder_point": format_quantity(self.reorder_point),
            "par_level": format_quantity(self.par_level) if self.par_level > 0 else "",
            "qty_to_order_base_units": format_quantity(self.qty_to_order),
            "preferred_vendor": self.preferred_vendor,
            "default_location": self.default_location,
            "note": self.note,
        }


@dataclass
class ReorderRunResult:
    """Outcome of one reorder run"""
    items_flagged: int
    lines: List[ReorderLine] = field(default_factory=list)
    negative_on_hand: List[str] = field(default_factory=list)
    counts: Dict[str, int] = field(default_factory=dict)
    timestamp: str = ""
    duration_ms: float = 0.0

    @property
    def warnings(self) -> List[str]:
        return [f"{NEGATIVE_ON_HAND_NOTE}: {upc}" for upc in self.negative_on_hand]


def order_quantity(on_hand: float, reorder_point: float, par_level: float) -> float:
    """Fill to par when a par level is set, else back up to the reorder point"""
    target = par_level if par_level > 0 else reorder_point
    return max(0.0, target - on_hand)


def evaluate_entry(entry: CatalogEntry, totals: LedgerTotals) -> Optional[ReorderLine]:
    """Reorder line for a catalog entry, or None when it is not flagged"""
    if not entry.active or entry.reorder_point <= 0:
        return None

    on_hand = totals.on_hand(entry.upc)
    if on_hand > entry.reorder_point:
        return None

    return ReorderLine(
        upc=entry.upc,
        product_name=entry.display_name,
        on_hand=on_hand,
        base_unit=entry.unit,
        reorder_point=entry.reorder_point,
        par_level=entry.par_level,
        qty_to_order=order_quantity(on_hand, entry.reorder_point, entry.par_level),
        preferred_vendor=entry.preferred_vendor,
        default_location=entry.default_location,
        note=NEGATIVE_ON_HAND_NOTE if on_hand < 0 else "",
    )


def build_snapshot(catalog: Iterable[CatalogEntry], totals: LedgerTotals) -> List[ReorderLine]:
    """Flagged lines in catalog order; the first row of a duplicated UPC wins"""
    seen = set()
    lines = []
    for entry in catalog:
        if entry.upc in seen:
            continue
        seen.add(entry.upc)
        line = evaluate_entry(entry, totals)
        if line is not None:
            lines.append(line)
    return lines


class ReorderEngine:
    """
    Recomputes the reorder snapshot.

    Runs are not guarded against overlap; callers serialize them.

    Example:
        engine = ReorderEngine(reader, writer, calendar)
        result = engine.run()
    """

    def __init__(
        self,
        reader: LedgerReader,
        writer: LedgerWriter,
        calendar: BusinessCalendar,
        require_usage_ledger: bool = True,
    ):
        self.reader = reader
        self.writer = writer
        self.calendar = calendar
        self.require_usage_ledger = require_usage_ledger

    def run(self) -> ReorderRunResult:
        started = time.perf_counter()

        catalog = self.reader.catalog()
        purchases = self.reader.purchases()
        usage = self.reader.usage()
        adjustments = self.reader.adjustments()

        if self.require_usage_ledger and not usage:
            raise MissingLedgerError(
                self.reader.tables.usage,
                hint="Run the usage recompute for a date first (replace mode recommended).",
            )

        totals = summarize_ledgers(purchases, usage, adjustments)
        lines = build_snapshot(catalog, totals)

        timestamp = self.calendar.timestamp()
        self.writer.overwrite_snapshot([line.to_row(timestamp) for line in lines])

        negative = [line.upc for line in lines if line.on_hand < 0]
        for upc in negative:
            logger.warning("Negative on-hand", upc=upc, on_hand=totals.on_hand(upc))

        result = ReorderRunResult(
            items_flagged=len(lines),
            lines=lines,
            negative_on_hand=negative,
            counts={
                "catalog": len(catalog),
                "purchases": len(purchases),
                "usage": len(usage),
                "adjustments": len(adjustments),
            },
            timestamp=timestamp,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        logger.info(
            f"Reorder snapshot written: {result.items_flagged} items flagged",
            table=self.reader.tables.shopping_list,
            **result.counts,
        )
        return result

