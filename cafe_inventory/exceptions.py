"""
Typed exceptions for the inventory engine.

    InventoryError
    +-- InputValidationError      rejected before any write
    +-- SchemaError               required logical column missing
    +-- MissingLedgerError        a computation's input ledger is empty
    +-- NotificationError         reorder email cannot be addressed
    +-- StoreError
        +-- TransientStoreError   retryable (rate limit, 5xx, dropped connection)
        +-- FatalStoreError       not retried
            +-- TableNotFoundError

Data-quality problems (missing recipe, unknown catalog UPC, negative on-hand)
are warnings carried on results, never exceptions.
"""

from typing import Iterable, Optional


class InventoryError(Exception):
    """Base class for all engine errors"""

    code: str = "error"


class InputValidationError(InventoryError):
    """Bad caller input: date format, missing identifier, unknown enum value"""

    code = "validation"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class SchemaError(InventoryError):
    """A table lacks one or more required columns"""

    code = "schema"

    def __init__(self, table: str, missing: Iterable[str], found: Iterable[str] = ()):
        self.table = table
        self.missing = list(missing)
        self.found = list(found)
        super().__init__(
            f"{table} missing headers: {', '.join(self.missing)}. "
            f"Found: {' | '.join(self.found)}"
        )


class MissingLedgerError(InventoryError):
    """A ledger the computation depends on holds no rows"""

    code = "precondition"

    def __init__(self, table: str, hint: str = ""):
        self.table = table
        message = f"{table} is empty."
        if hint:
            message = f"{message} {hint}"
        super().__init__(message)


class NotificationError(InventoryError):
    """Reorder notification cannot be sent"""

    code = "notification"


class StoreError(InventoryError):
    """Base class for tabular store failures"""

    code = "store"


class TransientStoreError(StoreError):
    """Retryable store failure"""

    code = "transient"

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def rate_limited(self) -> bool:
        return self.status_code == 429


class FatalStoreError(StoreError):
    """Store failure that a retry cannot fix (credentials, corrupt table)"""


class TableNotFoundError(FatalStoreError):
    """The named table does not exist in the store"""

    def __init__(self, table: str):
        super().__init__(f"Table not found: {table}")
        self.table = table
