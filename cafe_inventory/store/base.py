"""
Tabular Store Interface

The engine consumes named tables through three primitives: read every row,
append rows, and overwrite a whole table. Rows are column-name keyed maps of
strings; physical cell positions never leak out of a backend.
"""

import math
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Sequence

import structlog

from cafe_inventory.exceptions import SchemaError, TransientStoreError

logger = structlog.get_logger(__name__)

Row = Dict[str, str]


@dataclass
class TableData:
    """Header plus rows of one table, in append order"""
    name: str
    header: List[str] = field(default_factory=list)
    rows: List[Row] = field(default_factory=list)


def format_cell(value: Any) -> str:
    """Render a python value the way a spreadsheet cell would hold it"""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


def align_row(header: Sequence[str], row: Mapping[str, Any]) -> Row:
    """
    Map a row object onto a header layout.

    Column names match case-insensitively; keys absent from the header are
    dropped and header columns absent from the row are written blank.
    """
    by_key = {str(k).strip().lower(): v for k, v in row.items()}
    return {h: format_cell(by_key.get(h.strip().lower())) for h in header}


class TabularStore(ABC):
    """
    Abstract tabular store.

    Implementations must preserve append order on read and make
    ``overwrite`` an all-or-nothing replace.
    """

    @abstractmethod
    def read_table(self, table: str) -> TableData:
        """Read header and all rows. Raises TableNotFoundError if absent."""

    @abstractmethod
    def _write(self, table: str, header: List[str], rows: List[Row], replace: bool) -> None:
        """Persist aligned rows; ``replace`` swaps the whole table atomically"""

    @abstractmethod
    def has_table(self, table: str) -> bool:
        """Check whether the table exists"""

    def read_all(self, table: str) -> List[Row]:
        return self.read_table(table).rows

    def header(self, table: str) -> List[str]:
        return self.read_table(table).header

    def append(self, table: str, rows: Sequence[Mapping[str, Any]]) -> int:
        """Header-driven append. Returns rows written."""
        header = self.header(table)
        if not header:
            raise SchemaError(table, missing=["<header row>"])
        if not rows:
            return 0
        aligned = [align_row(header, r) for r in rows]
        self._write(table, header, aligned, replace=False)
        return len(aligned)

    def overwrite(self, table: str, header: Sequence[str], rows: Sequence[Mapping[str, Any]]) -> int:
        """Replace the table with ``header`` and ``rows``. Returns rows written."""
        header = [str(h) for h in header]
        aligned = [align_row(header, r) for r in rows]
        self._write(table, header, aligned, replace=True)
        return len(aligned)

    def ensure_table(self, table: str, header: Sequence[str]) -> bool:
        """Create an empty table with ``header`` if it does not exist yet"""
        if self.has_table(table):
            return False
        self.overwrite(table, header, [])
        logger.info("Created table", table=table, columns=len(header))
        return True


class RetryingStore(TabularStore):
    """
    Wrap a store with a bounded retry on transient errors.

    Rate-limit responses wait ``rate_limit_backoff`` seconds, other transient
    errors ``server_error_backoff``. Fatal errors propagate immediately.
    """

    def __init__(
        self,
        inner: TabularStore,
        max_retries: int = 1,
        rate_limit_backoff: float = 5.0,
        server_error_backoff: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.inner = inner
        self.max_retries = max(0, max_retries)
        self.rate_limit_backoff = rate_limit_backoff
        self.server_error_backoff = server_error_backoff
        self._sleep = sleep

    def _call(self, operation: str, table: str, func: Callable[[], Any]) -> Any:
        attempt = 0
        while True:
            try:
                return func()
            except TransientStoreError as e:
                if attempt >= self.max_retries:
                    logger.error(
                        "Store call failed after retries",
                        operation=operation,
                        table=table,
                        attempts=attempt + 1,
                        error=str(e),
                    )
                    raise
                delay = self.rate_limit_backoff if e.rate_limited else self.server_error_backoff
                attempt += 1
                logger.warning(
                    "Transient store error, retrying",
                    operation=operation,
                    table=table,
                    attempt=attempt,
                    delay_seconds=delay,
                    status_code=e.status_code,
                )
                self._sleep(delay)

    def read_table(self, table: str) -> TableData:
        return self._call("read", table, lambda: self.inner.read_table(table))

    def has_table(self, table: str) -> bool:
        return self._call("has_table", table, lambda: self.inner.has_table(table))

    def _write(self, table: str, header: List[str], rows: List[Row], replace: bool) -> None:
        operation = "overwrite" if replace else "append"
        self._call(operation, table, lambda: self.inner._write(table, header, rows, replace))
