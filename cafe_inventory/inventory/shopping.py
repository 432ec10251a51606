"""
Shopping List Merger

Combines the computed reorder snapshot with manager-entered manual rows,
fills blanks from the catalog and applies today's hide state.

Precedence: manual rows go in first and the snapshot overwrites any manual
row with the same UPC, so the computed row is authoritative.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Set

import structlog

from cafe_inventory.inventory.actions import hidden_upcs
from cafe_inventory.inventory.calendar import BusinessCalendar
from cafe_inventory.ledger.models import CatalogEntry, ShoppingListRow
from cafe_inventory.ledger.reader import LedgerReader

logger = structlog.get_logger(__name__)

TEXT_FIELDS = ("product_name", "base_unit", "preferred_vendor", "default_location")
NUMBER_FIELDS = ("reorder_point", "par_level")


@dataclass
class ShoppingListView:
    """Merged shopping list as seen on one business date"""
    business_date: str
    include_hidden: bool
    rows: List[ShoppingListRow] = field(default_factory=list)
    hidden: Set[str] = field(default_factory=set)

    @property
    def count(self) -> int:
        return len(self.rows)


def merge_rows(
    manual: Iterable[ShoppingListRow],
    snapshot: Iterable[ShoppingListRow],
) -> Dict[str, ShoppingListRow]:
    merged: Dict[str, ShoppingListRow] = {}
    for row in manual:
        merged[row.upc] = row
    for row in snapshot:
        merged[row.upc] = row
    return merged


def enrich(row: ShoppingListRow, entry: Optional[CatalogEntry]) -> ShoppingListRow:
    """Fill blank fields of ``row`` from its catalog entry"""
    if entry is None:
        return row

    updates = {}
    for name in TEXT_FIELDS:
        if not getattr(row, name) and getattr(entry, name):
            updates[name] = getattr(entry, name)
    for name in NUMBER_FIELDS:
        if getattr(row, name) is None and getattr(entry, name) > 0:
            updates[name] = getattr(entry, name)

    return row.model_copy(update=updates) if updates else row


def sort_by_priority(rows: Iterable[ShoppingListRow]) -> List[ShoppingListRow]:
    """Largest order quantity first; ties keep merge order"""
    return sorted(rows, key=lambda r: r.order_quantity, reverse=True)


def build_shopping_list(
    snapshot: Iterable[ShoppingListRow],
    manual: Iterable[ShoppingListRow],
    catalog: Mapping[str, CatalogEntry],
    hidden: Set[str],
    include_hidden: bool = False,
) -> List[ShoppingListRow]:
    merged = merge_rows(manual, snapshot)
    rows = [enrich(row, catalog.get(upc)) for upc, row in merged.items()]
    if not include_hidden:
        rows = [row for row in rows if row.upc not in hidden]
    return sort_by_priority(rows)


class ShoppingListMerger:
    """
    Produces the shopping list consumers see.

    Example:
        merger = ShoppingListMerger(reader, calendar)
        view = merger.build(include_hidden=False)
    """

    def __init__(self, reader: LedgerReader, calendar: BusinessCalendar):
        self.reader = reader
        self.calendar = calendar

    def build(self, include_hidden: bool = False) -> ShoppingListView:
        today = self.calendar.today()
        hidden = hidden_upcs(self.reader.shopping_actions(), today)

        rows = build_shopping_list(
            snapshot=self.reader.snapshot(),
            manual=self.reader.manual_rows(),
            catalog=self.reader.catalog_index(),
            hidden=hidden,
            include_hidden=include_hidden,
        )

        logger.debug(
            "Shopping list built",
            business_date=today,
            rows=len(rows),
            hidden=len(hidden),
            include_hidden=include_hidden,
        )
        return ShoppingListView(
            business_date=today,
            include_hidden=include_hidden,
            rows=rows,
            hidden=hidden,
        )
