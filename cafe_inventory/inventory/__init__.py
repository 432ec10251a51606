"""
Inventory Reconciliation Module
"""
from .calendar import BusinessCalendar
from .on_hand import OnHandCalculator, OnHandReading, LedgerTotals, summarize_ledgers
from .usage import UsageExplosionEngine, UsageRunResult, WriteMode, explode_usage
from .reorder import ReorderEngine, ReorderRunResult, NEGATIVE_ON_HAND_NOTE
from .actions import ActionStateTracker, ResetResult, hidden_upcs, latest_actions
from .shopping import ShoppingListMerger, ShoppingListView, build_shopping_list
from .adjustments import StockEntryRecorder

__all__ = [
    "BusinessCalendar",
    "OnHandCalculator",
    "OnHandReading",
    "LedgerTotals",
    "summarize_ledgers",
    "UsageExplosionEngine",
    "UsageRunResult",
    "WriteMode",
    "explode_usage",
    "ReorderEngine",
    "ReorderRunResult",
    "NEGATIVE_ON_HAND_NOTE",
    "ActionStateTracker",
    "ResetResult",
    "hidden_upcs",
    "latest_actions",
    "ShoppingListMerger",
    "ShoppingListView",
    "build_shopping_list",
    "StockEntryRecorder",
]
