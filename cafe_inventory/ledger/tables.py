"""
Table Layouts

Canonical header for every table the engine reads or writes, and the
logical columns each one must carry. A required entry is a tuple of
alternatives: any one of them present satisfies it.
"""

from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

import structlog

from cafe_inventory.config.settings import TableSettings
from cafe_inventory.exceptions import SchemaError
from cafe_inventory.store.base import TabularStore

logger = structlog.get_logger(__name__)


USAGE_HEADER = ["date", "menu_item_clean", "ingredient_upc", "theoretical_used_qty"]

SNAPSHOT_HEADER = [
    "timestamp",
    "upc",
    "product_name",
    "on_hand_base_units",
    "base_unit",
    "reorder_point",
    "par_level",
    "qty_to_order_base_units",
    "preferred_vendor",
    "default_location",
    "note",
]

EMAIL_LOG_HEADER = [
    "timestamp",
    "business_date",
    "items",
    "recipients",
    "actor",
    "request_id",
    "items_hash",
]


@dataclass(frozen=True)
class TableSchema:
    """Canonical layout of one logical table"""
    header: Tuple[str, ...]
    required: Tuple[Tuple[str, ...], ...]

    def missing(self, header: Sequence[str]) -> List[str]:
        """Required entries not satisfied by ``header`` (case-insensitive)"""
        present = {h.strip().lower() for h in header}
        return [
            "/".join(group)
            for group in self.required
            if not any(alt in present for alt in group)
        ]

    def aliases(self, header: Sequence[str]) -> Dict[str, str]:
        """
        Canonical column to the alternative ``header`` carries in its place.

        Only required entries whose first name is absent but whose
        alternative is present are listed.
        """
        present = {h.strip().lower() for h in header}
        mapping = {}
        for group in self.required:
            canonical = group[0]
            if canonical in present:
                continue
            for alt in group[1:]:
                if alt in present:
                    mapping[canonical] = alt
                    break
        return mapping


SCHEMAS: Dict[str, TableSchema] = {
    "catalog": TableSchema(
        header=(
            "upc", "product_name", "base_unit", "reorder_point", "par_level",
            "default_location", "preferred_vendor", "active",
        ),
        required=(("upc",),),
    ),
    "purchases": TableSchema(
        header=(
            "timestamp", "entered_by", "upc", "product_name", "qty_purchased",
            "base_units_added", "total_price", "store_vendor", "assigned_location", "notes",
        ),
        required=(("upc",), ("base_units_added", "qty_purchased")),
    ),
    "usage": TableSchema(
        header=tuple(USAGE_HEADER),
        required=(("date",), ("ingredient_upc", "upc"), ("theoretical_used_qty",)),
    ),
    "adjustments": TableSchema(
        header=(
            "timestamp", "date", "upc", "base_units_delta", "adjustment_type", "reason", "actor",
        ),
        required=(("upc",), ("base_units_delta",)),
    ),
    "recipes": TableSchema(
        header=("menu_item_clean", "ingredient_upc", "qty_per_item", "active"),
        required=(("menu_item_clean",), ("ingredient_upc",), ("qty_per_item",)),
    ),
    "sales": TableSchema(
        header=("date", "menu_item_clean", "qty_sold", "source", "synced_at"),
        required=(("date",), ("menu_item_clean", "menu_item"), ("qty_sold",)),
    ),
    "shopping_actions": TableSchema(
        header=("timestamp", "date", "upc", "action", "note", "actor"),
        required=(("date",), ("upc",), ("action",)),
    ),
    "shopping_list": TableSchema(
        header=tuple(SNAPSHOT_HEADER),
        required=(("upc",),),
    ),
    "shopping_manual": TableSchema(
        header=tuple(h for h in SNAPSHOT_HEADER if h != "timestamp"),
        required=(("upc",),),
    ),
    "email_log": TableSchema(
        header=tuple(EMAIL_LOG_HEADER),
        required=(("timestamp",), ("business_date",)),
    ),
    "subscribers": TableSchema(
        header=("email", "name", "created_at"),
        required=(("email",),),
    ),
}


def check_columns(logical: str, physical: str, header: Sequence[str]) -> None:
    """Raise SchemaError when ``header`` lacks a required column"""
    missing = SCHEMAS[logical].missing(header)
    if missing:
        raise SchemaError(physical, missing=missing, found=header)


def bootstrap_tables(store: TabularStore, tables: TableSettings) -> List[str]:
    """
    Create every known table that does not exist yet, with its canonical header.

    Returns:
        List[str]: Physical names of the tables created
    """
    created = []
    for logical, schema in SCHEMAS.items():
        physical = getattr(tables, logical)
        if store.ensure_table(physical, schema.header):
            created.append(physical)

    logger.info("Tables bootstrapped", created=len(created), tables=created)
    return created
