"""
Ledger Writer

Write-side of the ledgers. Appends are header-driven and check the target
table's required columns first; tables that do not exist yet are created
with their canonical header. Rows arrive under the canonical column names
and are relabelled onto whichever accepted alternative the existing header
carries, such as ``upc`` for ``ingredient_upc``. Date-scoped replaces read
the table, drop the rows for the date and overwrite the table with kept plus
fresh rows in one call, so a failure leaves either the old table or the new
one.
"""

from typing import Any, Callable, Dict, List, Mapping, Sequence

import structlog

from cafe_inventory.config.settings import TableSettings
from cafe_inventory.ledger.parsing import norm
from cafe_inventory.ledger.tables import SCHEMAS, SNAPSHOT_HEADER, check_columns
from cafe_inventory.store.base import Row, TableData, TabularStore

logger = structlog.get_logger(__name__)


def _lowered(row: Row) -> Row:
    return {k.strip().lower(): v for k, v in row.items()}


def relabel(rows: Sequence[Mapping[str, Any]], aliases: Dict[str, str]) -> List[Dict[str, Any]]:
    """Move canonical keys onto their header alternatives"""
    relabelled = []
    for row in rows:
        out = {str(k).strip().lower(): v for k, v in row.items()}
        for canonical, alt in aliases.items():
            if canonical in out and alt not in out:
                out[alt] = out.pop(canonical)
        relabelled.append(out)
    return relabelled


class LedgerWriter:
    """Header-checked writes against the configured tables"""

    def __init__(self, store: TabularStore, tables: TableSettings):
        self.store = store
        self.tables = tables

    def _physical(self, logical: str) -> str:
        return getattr(self.tables, logical)

    def _prepare(self, logical: str) -> TableData:
        physical = self._physical(logical)
        self.store.ensure_table(physical, SCHEMAS[logical].header)
        data = self.store.read_table(physical)
        if not data.header and not data.rows:
            data.header = list(SCHEMAS[logical].header)
            self.store.overwrite(physical, data.header, [])
        check_columns(logical, physical, data.header)
        return data

    def append(self, logical: str, rows: Sequence[Mapping[str, Any]]) -> int:
        """Append rows to a logical table. Returns rows written."""
        physical = self._physical(logical)
        data = self._prepare(logical)
        if not rows:
            return 0
        rows = relabel(rows, SCHEMAS[logical].aliases(data.header))
        written = self.store.append(physical, rows)
        logger.debug("Rows appended", table=physical, rows=written)
        return written

    def replace_where(
        self,
        logical: str,
        drop: Callable[[Row], bool],
        fresh_rows: Sequence[Mapping[str, Any]],
    ) -> int:
        """
        Drop every row matching ``drop`` and add ``fresh_rows`` in one overwrite.

        ``drop`` receives rows with lower-cased column names. Returns the
        number of rows removed.
        """
        physical = self._physical(logical)
        data = self._prepare(logical)
        kept = [row for row in data.rows if not drop(_lowered(row))]
        removed = len(data.rows) - len(kept)
        fresh = relabel(fresh_rows, SCHEMAS[logical].aliases(data.header))
        self.store.overwrite(physical, data.header, kept + fresh)
        logger.debug(
            "Rows replaced",
            table=physical,
            removed=removed,
            added=len(fresh_rows),
        )
        return removed

    def append_usage(self, rows: Sequence[Mapping[str, Any]]) -> int:
        return self.append("usage", rows)

    def replace_usage_for_date(self, date: str, rows: Sequence[Mapping[str, Any]]) -> int:
        """Swap every usage row of ``date`` for ``rows``. Returns rows removed."""
        return self.replace_where("usage", lambda r: norm(r.get("date")) == date, rows)

    def overwrite_snapshot(self, rows: Sequence[Mapping[str, Any]]) -> int:
        """Replace the whole reorder snapshot"""
        return self.store.overwrite(self._physical("shopping_list"), SNAPSHOT_HEADER, rows)

    def replace_sales(self, date: str, source: str, rows: Sequence[Mapping[str, Any]]) -> int:
        """Swap the sales rows of one date and source. Returns rows removed."""
        return self.replace_where(
            "sales",
            lambda r: norm(r.get("date")) == date and norm(r.get("source")) == source,
            rows,
        )

    def append_action(self, row: Mapping[str, Any]) -> int:
        return self.append("shopping_actions", [row])

    def append_actions(self, rows: Sequence[Mapping[str, Any]]) -> int:
        return self.append("shopping_actions", rows)

    def append_adjustment(self, row: Mapping[str, Any]) -> int:
        return self.append("adjustments", [row])

    def append_purchase(self, row: Mapping[str, Any]) -> int:
        return self.append("purchases", [row])

    def append_email_log(self, row: Mapping[str, Any]) -> int:
        return self.append("email_log", [row])
