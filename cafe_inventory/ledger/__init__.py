"""
Ledger Module
"""
from .models import (
    AdjustmentEvent,
    CatalogEntry,
    EmailLogRow,
    PurchaseEvent,
    RecipeRow,
    SalesRow,
    ShoppingAction,
    ShoppingActionEvent,
    ShoppingListRow,
    UsageEvent,
)
from .reader import LedgerReader
from .writer import LedgerWriter
from .tables import SCHEMAS, bootstrap_tables

__all__ = [
    "AdjustmentEvent",
    "CatalogEntry",
    "EmailLogRow",
    "PurchaseEvent",
    "RecipeRow",
    "SalesRow",
    "ShoppingAction",
    "ShoppingActionEvent",
    "ShoppingListRow",
    "UsageEvent",
    "LedgerReader",
    "LedgerWriter",
    "SCHEMAS",
    "bootstrap_tables",
]
