"""
Ledger Entities

Typed, immutable views over store rows. Every row map is parsed here, once,
at the boundary: header names lower-cased, alias columns resolved, UPC keys
normalized, numbers and booleans parsed tolerantly. Nothing downstream
touches a raw row map.
"""

from enum import Enum
from typing import Any, ClassVar, Dict, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from cafe_inventory.ledger.parsing import format_quantity, is_truthy, norm, normalize_upc, to_number


class ShoppingAction(str, Enum):
    """Actions a manager can record against a shopping-list UPC"""
    PURCHASED = "purchased"
    DISMISSED = "dismissed"
    SNOOZED = "snoozed"
    UNDO = "undo"

    @property
    def hides(self) -> bool:
        return self is not ShoppingAction.UNDO


class LedgerModel(BaseModel):
    """
    Base for all ledger entities.

    ``column_aliases`` maps a canonical field to alternative column names; the
    first non-blank alternative fills a blank canonical column.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    column_aliases: ClassVar[Dict[str, Tuple[str, ...]]] = {}

    @model_validator(mode="before")
    @classmethod
    def normalize_row(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        row = {str(k).strip().lower(): v for k, v in data.items()}
        for canonical, alternatives in cls.column_aliases.items():
            if norm(row.get(canonical)):
                continue
            for alt in alternatives:
                if norm(row.get(alt)):
                    row[canonical] = row[alt]
                    break
            else:
                row.setdefault(canonical, "")
        return row

    @classmethod
    def from_row(cls, row: Mapping[str, Any]):
        return cls.model_validate(row)


def _text(v: Any) -> str:
    return norm(v)


def _number(v: Any) -> float:
    return to_number(v)


class CatalogEntry(LedgerModel):
    """Master record for one UPC"""

    column_aliases: ClassVar[Dict[str, Tuple[str, ...]]] = {
        "product_name": ("name", "item_name"),
        "base_unit": ("unit",),
        "preferred_vendor": ("vendor", "store_vendor"),
        "default_location": ("location",),
        "par_level": ("par",),
        "reorder_point": ("reorder_at",),
    }

    upc: str
    product_name: str = ""
    base_unit: str = ""
    reorder_point: float = 0.0
    par_level: float = 0.0
    default_location: str = ""
    preferred_vendor: str = ""
    active: bool = True

    clean_upc = field_validator("upc", mode="before")(normalize_upc)
    clean_texts = field_validator(
        "product_name", "base_unit", "default_location", "preferred_vendor", mode="before"
    )(_text)
    clean_numbers = field_validator("reorder_point", "par_level", mode="before")(_number)

    @field_validator("active", mode="before")
    @classmethod
    def active_default_true(cls, v: Any) -> bool:
        if isinstance(v, bool):
            return v
        return is_truthy(v) if norm(v) else True

    @property
    def display_name(self) -> str:
        return self.product_name or self.upc

    @property
    def unit(self) -> str:
        return self.base_unit or "each"


class PurchaseEvent(LedgerModel):
    """A stock addition; never date-filtered"""

    timestamp: str = ""
    upc: str
    qty_purchased: float = 0.0
    base_units_added: float = 0.0

    clean_upc = field_validator("upc", mode="before")(normalize_upc)
    clean_timestamp = field_validator("timestamp", mode="before")(_text)
    clean_numbers = field_validator("qty_purchased", "base_units_added", mode="before")(_number)

    @property
    def quantity(self) -> float:
        """Base units added when recorded, else the purchased quantity"""
        if self.base_units_added > 0:
            return self.base_units_added
        if self.qty_purchased > 0:
            return self.qty_purchased
        return 0.0


class UsageEvent(LedgerModel):
    """Theoretical consumption of one ingredient on one business date"""

    column_aliases: ClassVar[Dict[str, Tuple[str, ...]]] = {"upc": ("ingredient_upc",)}

    date: str
    menu_item_clean: str = ""
    upc: str
    theoretical_used_qty: float = 0.0

    clean_upc = field_validator("upc", mode="before")(normalize_upc)
    clean_texts = field_validator("date", "menu_item_clean", mode="before")(_text)
    clean_qty = field_validator("theoretical_used_qty", mode="before")(_number)

    def to_row(self) -> Dict[str, str]:
        return {
            "date": self.date,
            "menu_item_clean": self.menu_item_clean,
            "ingredient_upc": self.upc,
            "theoretical_used_qty": format_quantity(self.theoretical_used_qty),
        }


class AdjustmentEvent(LedgerModel):
    """Signed manual correction of on-hand"""

    timestamp: str = ""
    date: str = ""
    upc: str
    base_units_delta: float = 0.0
    adjustment_type: str = ""
    reason: str = ""
    actor: str = ""

    clean_upc = field_validator("upc", mode="before")(normalize_upc)
    clean_texts = field_validator(
        "timestamp", "date", "adjustment_type", "reason", "actor", mode="before"
    )(_text)
    clean_delta = field_validator("base_units_delta", mode="before")(_number)


class RecipeRow(LedgerModel):
    """One ingredient line of a menu item's bill of materials"""

    menu_item_clean: str
    ingredient_upc: str
    qty_per_item: float = 0.0
    active: bool = False

    clean_menu = field_validator("menu_item_clean", mode="before")(_text)
    clean_upc = field_validator("ingredient_upc", mode="before")(normalize_upc)
    clean_qty = field_validator("qty_per_item", mode="before")(_number)
    clean_active = field_validator("active", mode="before")(is_truthy)


class SalesRow(LedgerModel):
    """Quantity of one menu item sold on one business date"""

    column_aliases: ClassVar[Dict[str, Tuple[str, ...]]] = {"menu_item_clean": ("menu_item",)}

    date: str
    menu_item_clean: str
    qty_sold: float = 0.0
    source: str = ""

    clean_texts = field_validator("date", "menu_item_clean", "source", mode="before")(_text)
    clean_qty = field_validator("qty_sold", mode="before")(_number)


class ShoppingActionEvent(LedgerModel):
    """
    A recorded hide/unhide fact for one UPC on one business date.

    ``action`` stays a lower-cased string when read back so that a stray
    value in the log is ignored by replay instead of failing the read.
    """

    timestamp: str = ""
    date: str
    upc: str
    action: str
    note: str = ""
    actor: str = ""

    clean_upc = field_validator("upc", mode="before")(normalize_upc)
    clean_texts = field_validator("timestamp", "date", "note", "actor", mode="before")(_text)

    @field_validator("action", mode="before")
    @classmethod
    def lower_action(cls, v: Any) -> str:
        if isinstance(v, ShoppingAction):
            return v.value
        return norm(v).lower()

    @property
    def parsed_action(self) -> Optional[ShoppingAction]:
        try:
            return ShoppingAction(self.action)
        except ValueError:
            return None


def _optional_number(v: Any) -> Optional[float]:
    if v is None or isinstance(v, (int, float)):
        return v
    return to_number(v) if norm(v) else None


class ShoppingListRow(LedgerModel):
    """
    Row of the reorder snapshot or of the manual override table.

    Numeric fields are None when the cell is blank so that catalog
    enrichment can tell "not set" from zero.
    """

    column_aliases: ClassVar[Dict[str, Tuple[str, ...]]] = {
        "product_name": ("name", "item_name"),
        "base_unit": ("unit",),
        "preferred_vendor": ("vendor", "store_vendor"),
        "default_location": ("location",),
        "par_level": ("par",),
        "reorder_point": ("reorder_at",),
        "qty_to_order_base_units": ("qty_to_order",),
        "on_hand_base_units": ("on_hand",),
    }

    timestamp: str = ""
    upc: str
    product_name: str = ""
    on_hand_base_units: Optional[float] = None
    base_unit: str = ""
    reorder_point: Optional[float] = None
    par_level: Optional[float] = None
    qty_to_order_base_units: Optional[float] = None
    preferred_vendor: str = ""
    default_location: str = ""
    note: str = ""

    clean_upc = field_validator("upc", mode="before")(normalize_upc)
    clean_texts = field_validator(
        "timestamp", "product_name", "base_unit", "preferred_vendor", "default_location", "note",
        mode="before",
    )(_text)
    clean_numbers = field_validator(
        "on_hand_base_units", "reorder_point", "par_level", "qty_to_order_base_units",
        mode="before",
    )(_optional_number)

    @property
    def order_quantity(self) -> float:
        return self.qty_to_order_base_units or 0.0


class EmailLogRow(LedgerModel):
    """Audit record of one reorder email send"""

    timestamp: str = ""
    business_date: str = ""
    items: int = 0
    recipients: int = 0
    actor: str = ""
    request_id: str = ""
    items_hash: str = ""

    clean_texts = field_validator(
        "timestamp", "business_date", "actor", "request_id", "items_hash", mode="before"
    )(_text)

    @field_validator("items", "recipients", mode="before")
    @classmethod
    def parse_count(cls, v: Any) -> int:
        return int(to_number(v))


class Subscriber(LedgerModel):
    """Recipient of the reorder email"""

    email: str = ""

    clean_email = field_validator("email", mode="before")(_text)

    @property
    def is_valid(self) -> bool:
        return "@" in self.email
