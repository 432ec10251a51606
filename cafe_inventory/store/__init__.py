"""
Tabular Store Module

Backends for the read-all / append / overwrite table primitives, plus the
factory that picks one from configuration.
"""
import structlog

from cafe_inventory.config.settings import StoreSettings
from .base import (
    Row,
    TableData,
    TabularStore,
    RetryingStore,
    align_row,
    format_cell,
)
from .memory import InMemoryStore
from .csv_store import CsvTableStore
from .sql_store import SqlTableStore

logger = structlog.get_logger(__name__)


def create_store(store_settings: StoreSettings) -> RetryingStore:
    """
    Build the configured backend wrapped in the bounded retry.

    Args:
        store_settings: Store configuration group

    Returns:
        RetryingStore: Ready-to-use store
    """
    if store_settings.backend == "csv":
        inner: TabularStore = CsvTableStore(store_settings.csv_path)
    elif store_settings.backend == "sql":
        inner = SqlTableStore.from_url(store_settings.database_url, echo=store_settings.echo)
    else:
        inner = InMemoryStore()

    logger.info("Tabular store created", backend=store_settings.backend)
    return RetryingStore(
        inner,
        max_retries=store_settings.max_retries,
        rate_limit_backoff=store_settings.rate_limit_backoff_seconds,
        server_error_backoff=store_settings.server_error_backoff_seconds,
    )


__all__ = [
    "Row",
    "TableData",
    "TabularStore",
    "RetryingStore",
    "InMemoryStore",
    "CsvTableStore",
    "SqlTableStore",
    "align_row",
    "format_cell",
    "create_store",
]
