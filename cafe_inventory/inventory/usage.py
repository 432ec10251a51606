"""
Usage Explosion Engine

Expands one business date of menu-item sales through the active recipe
bill of materials into ingredient usage rows:

    used = qty_sold x qty_per_item

Menu items sold without an active recipe produce no usage and are reported
as missing recipes. Ingredients absent from the catalog still get their
usage row and are reported as missing catalog UPCs.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Set

import structlog

from cafe_inventory.exceptions import InputValidationError
from cafe_inventory.ledger.models import RecipeRow, SalesRow, UsageEvent
from cafe_inventory.ledger.parsing import is_iso_date, norm
from cafe_inventory.ledger.reader import LedgerReader
from cafe_inventory.ledger.writer import LedgerWriter

logger = structlog.get_logger(__name__)


class WriteMode(str, Enum):
    """How fresh usage rows land in the ledger"""
    APPEND = "append"  # add rows, leave the date's existing rows alone
    REPLACE = "replace"  # swap out every existing row of the date

    @classmethod
    def parse(cls, value) -> "WriteMode":
        if isinstance(value, WriteMode):
            return value
        text = norm(value).lower() or cls.APPEND.value
        try:
            return cls(text)
        except ValueError:
            raise InputValidationError(
                f"mode must be one of: {[m.value for m in cls]}", field="mode"
            ) from None


@dataclass
class UsageExplosion:
    """Computed usage for one date, before anything is written"""
    date: str
    events: List[UsageEvent] = field(default_factory=list)
    sales_rows_used: int = 0
    menu_items_count: int = 0
    active_recipe_menus: int = 0
    missing_recipes: List[str] = field(default_factory=list)
    missing_catalog_upcs: List[str] = field(default_factory=list)


@dataclass
class UsageRunResult:
    """Outcome of one usage run"""
    date: str
    mode: WriteMode
    rows_written: int
    rows_removed: int
    sales_rows_used: int
    menu_items_count: int
    active_recipe_menus: int
    missing_recipes: List[str]
    missing_catalog_upcs: List[str]
    duration_ms: float = 0.0

    @property
    def warnings(self) -> List[str]:
        messages = [f"No active recipe for menu item: {m}" for m in self.missing_recipes]
        messages.extend(f"Ingredient UPC not in catalog: {u}" for u in self.missing_catalog_upcs)
        return messages


def index_active_recipes(recipes: Iterable[RecipeRow]) -> Dict[str, List[RecipeRow]]:
    """Active recipe lines grouped by menu key; inactive lines never count"""
    index: Dict[str, List[RecipeRow]] = {}
    for recipe in recipes:
        if not recipe.active or not recipe.menu_item_clean:
            continue
        index.setdefault(recipe.menu_item_clean, []).append(recipe)
    return index


def explode_usage(
    date: str,
    sales: Iterable[SalesRow],
    recipes: Iterable[RecipeRow],
    catalog_upcs: Set[str],
) -> UsageExplosion:
    """
    Compute usage events for ``date``.

    Sales rows of the date with a positive quantity are summed per menu key,
    then every active recipe line of a sold menu key yields one event.
    """
    sold: Dict[str, float] = {}
    rows_used = 0
    for sale in sales:
        if sale.date != date or sale.qty_sold <= 0 or not sale.menu_item_clean:
            continue
        rows_used += 1
        sold[sale.menu_item_clean] = sold.get(sale.menu_item_clean, 0.0) + sale.qty_sold

    active = index_active_recipes(recipes)
    result = UsageExplosion(
        date=date,
        sales_rows_used=rows_used,
        menu_items_count=len(sold),
        active_recipe_menus=len(active),
    )
    missing_upcs: Dict[str, None] = {}

    for menu, qty_sold in sold.items():
        lines = active.get(menu)
        if not lines:
            result.missing_recipes.append(menu)
            continue
        for line in lines:
            if not line.ingredient_upc:
                logger.warning("Recipe line without ingredient UPC", menu_item=menu)
                continue
            if line.ingredient_upc not in catalog_upcs:
                missing_upcs.setdefault(line.ingredient_upc, None)
            result.events.append(
                UsageEvent(
                    date=date,
                    menu_item_clean=menu,
                    upc=line.ingredient_upc,
                    theoretical_used_qty=qty_sold * line.qty_per_item,
                )
            )

    result.missing_catalog_upcs = list(missing_upcs)
    return result


class UsageExplosionEngine:
    """
    Reads sales, recipes and catalog, explodes one date and writes the
    usage ledger.

    Replace mode is idempotent: the date's prior rows and the fresh rows
    are swapped in a single overwrite, also when the fresh set is empty.
    Callers must not run two recomputes for the same date concurrently.

    Example:
        engine = UsageExplosionEngine(reader, writer)
        result = engine.run("2026-02-06", mode="replace")
    """

    def __init__(self, reader: LedgerReader, writer: LedgerWriter):
        self.reader = reader
        self.writer = writer

    def run(self, date: str, mode="append") -> UsageRunResult:
        started = time.perf_counter()
        date = norm(date)
        if not date:
            raise InputValidationError("Missing date (YYYY-MM-DD)", field="date")
        if not is_iso_date(date):
            raise InputValidationError("date must be YYYY-MM-DD", field="date")
        write_mode = WriteMode.parse(mode)

        explosion = explode_usage(
            date,
            self.reader.sales(),
            self.reader.recipes(),
            set(self.reader.catalog_index()),
        )
        rows = [event.to_row() for event in explosion.events]

        removed = 0
        if write_mode is WriteMode.REPLACE:
            removed = self.writer.replace_usage_for_date(date, rows)
            written = len(rows)
        else:
            written = self.writer.append_usage(rows)

        result = UsageRunResult(
            date=date,
            mode=write_mode,
            rows_written=written,
            rows_removed=removed,
            sales_rows_used=explosion.sales_rows_used,
            menu_items_count=explosion.menu_items_count,
            active_recipe_menus=explosion.active_recipe_menus,
            missing_recipes=explosion.missing_recipes,
            missing_catalog_upcs=explosion.missing_catalog_upcs,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )

        if result.missing_recipes or result.missing_catalog_upcs:
            logger.warning(
                "Usage computed with data-quality gaps",
                date=date,
                missing_recipes=result.missing_recipes,
                missing_catalog_upcs=result.missing_catalog_upcs,
            )
        logger.info(
            f"Usage run complete for {date}",
            mode=write_mode.value,
            rows_written=written,
            rows_removed=removed,
            sales_rows_used=result.sales_rows_used,
            menu_items=result.menu_items_count,
        )
        return result
