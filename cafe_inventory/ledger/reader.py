"""
Ledger Reader

Typed views over every table the engine consumes. Each read checks the
table's required columns, parses rows into ledger entities and drops rows
whose key (UPC or menu item) is blank.
"""

from typing import Callable, Dict, List, Type, TypeVar

import structlog

from cafe_inventory.config.settings import TableSettings
from cafe_inventory.exceptions import TableNotFoundError
from cafe_inventory.ledger.models import (
    AdjustmentEvent,
    CatalogEntry,
    EmailLogRow,
    LedgerModel,
    PurchaseEvent,
    RecipeRow,
    SalesRow,
    ShoppingActionEvent,
    ShoppingListRow,
    Subscriber,
    UsageEvent,
)
from cafe_inventory.ledger.tables import check_columns
from cafe_inventory.store.base import Row, TabularStore

logger = structlog.get_logger(__name__)

M = TypeVar("M", bound=LedgerModel)


class LedgerReader:
    """
    Read-side of the ledgers.

    Example:
        reader = LedgerReader(store, settings.tables)
        catalog = reader.catalog_index()
    """

    def __init__(self, store: TabularStore, tables: TableSettings):
        self.store = store
        self.tables = tables

    def _rows(self, logical: str, optional: bool = False) -> List[Row]:
        physical = getattr(self.tables, logical)
        try:
            data = self.store.read_table(physical)
        except TableNotFoundError:
            if optional:
                logger.debug("Optional table absent, reading as empty", table=physical)
                return []
            raise

        if not data.header and not data.rows:
            return []
        check_columns(logical, physical, data.header)
        return data.rows

    def _parse(
        self,
        logical: str,
        model: Type[M],
        keep: Callable[[M], bool],
        optional: bool = False,
    ) -> List[M]:
        parsed = []
        dropped = 0
        for row in self._rows(logical, optional=optional):
            entity = model.from_row(row)
            if keep(entity):
                parsed.append(entity)
            else:
                dropped += 1
        if dropped:
            logger.debug("Dropped rows with blank key", table=getattr(self.tables, logical), dropped=dropped)
        return parsed

    def catalog(self) -> List[CatalogEntry]:
        return self._parse("catalog", CatalogEntry, lambda e: bool(e.upc))

    def catalog_index(self) -> Dict[str, CatalogEntry]:
        """Catalog by UPC; on duplicate UPCs the first row wins"""
        index: Dict[str, CatalogEntry] = {}
        for entry in self.catalog():
            index.setdefault(entry.upc, entry)
        return index

    def purchases(self) -> List[PurchaseEvent]:
        return self._parse("purchases", PurchaseEvent, lambda e: bool(e.upc))

    def usage(self) -> List[UsageEvent]:
        return self._parse("usage", UsageEvent, lambda e: bool(e.upc))

    def adjustments(self) -> List[AdjustmentEvent]:
        return self._parse("adjustments", AdjustmentEvent, lambda e: bool(e.upc), optional=True)

    def recipes(self) -> List[RecipeRow]:
        return self._parse("recipes", RecipeRow, lambda e: bool(e.menu_item_clean))

    def sales(self) -> List[SalesRow]:
        return self._parse("sales", SalesRow, lambda e: bool(e.menu_item_clean))

    def shopping_actions(self) -> List[ShoppingActionEvent]:
        return self._parse(
            "shopping_actions", ShoppingActionEvent, lambda e: bool(e.upc), optional=True
        )

    def snapshot(self) -> List[ShoppingListRow]:
        """Latest reorder snapshot; an absent table is an empty snapshot"""
        return self._parse("shopping_list", ShoppingListRow, lambda e: bool(e.upc), optional=True)

    def manual_rows(self) -> List[ShoppingListRow]:
        return self._parse("shopping_manual", ShoppingListRow, lambda e: bool(e.upc), optional=True)

    def email_log(self) -> List[EmailLogRow]:
        return self._parse("email_log", EmailLogRow, lambda e: True, optional=True)

    def subscriber_emails(self) -> List[str]:
        """Distinct subscriber addresses that look like email addresses, in table order"""
        subscribers = self._parse("subscribers", Subscriber, lambda s: s.is_valid, optional=True)
        seen: Dict[str, None] = {}
        for s in subscribers:
            seen.setdefault(s.email, None)
        return list(seen)
