"""
In-memory tabular store, used by tests and local development.
"""

import copy
from typing import Any, Dict, List, Mapping, Optional, Sequence

from cafe_inventory.exceptions import TableNotFoundError
from cafe_inventory.store.base import Row, TableData, TabularStore, align_row


class InMemoryStore(TabularStore):
    """
    Dict-backed store. Reads return copies so callers cannot mutate state.

    Example:
        store = InMemoryStore()
        store.seed("Catalog", [{"upc": "EGG", "reorder_point": 10}])
    """

    def __init__(self):
        self._tables: Dict[str, TableData] = {}

    def seed(
        self,
        table: str,
        rows: Sequence[Mapping[str, Any]],
        header: Optional[Sequence[str]] = None,
    ) -> None:
        """Create or replace a table; header defaults to the union of row keys"""
        if header is None:
            header = []
            for row in rows:
                for key in row:
                    if key not in header:
                        header.append(key)
        self.overwrite(table, header, rows)

    def has_table(self, table: str) -> bool:
        return table in self._tables

    def read_table(self, table: str) -> TableData:
        if table not in self._tables:
            raise TableNotFoundError(table)
        return copy.deepcopy(self._tables[table])

    def _write(self, table: str, header: List[str], rows: List[Row], replace: bool) -> None:
        if replace:
            self._tables[table] = TableData(name=table, header=list(header), rows=[dict(r) for r in rows])
            return
        if table not in self._tables:
            raise TableNotFoundError(table)
        existing = self._tables[table]
        existing.rows.extend(align_row(existing.header, r) for r in rows)
