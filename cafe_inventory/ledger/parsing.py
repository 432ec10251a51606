"""
Cell Parsing Helpers

Store cells arrive as loosely formatted strings ("$16", " 16,000 ", "Yes").
These helpers turn them into python values at the ledger boundary.
"""

import math
import re
from datetime import datetime, timezone
from typing import Any, Optional

_NON_NUMERIC = re.compile(r"[^0-9.\-]")
_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TRUTHY = {"true", "1", "yes", "y"}


def norm(value: Any) -> str:
    """Stringify and trim; None becomes the empty string"""
    if value is None:
        return ""
    return str(value).strip()


def normalize_upc(value: Any) -> str:
    """UPC keys are compared trimmed and upper-cased everywhere"""
    return norm(value).upper()


def to_number(value: Any) -> float:
    """
    Tolerant numeric parse.

    Strips everything except digits, dot and minus, so currency symbols and
    thousands separators are ignored. Blank or unparseable input is 0.
    """
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else 0.0

    cleaned = _NON_NUMERIC.sub("", norm(value))
    if not cleaned:
        return 0.0
    try:
        number = float(cleaned)
    except ValueError:
        return 0.0
    return number if math.isfinite(number) else 0.0


def is_truthy(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return norm(value).lower() in _TRUTHY


def is_iso_date(value: Any) -> bool:
    """Check the YYYY-MM-DD shape (calendar validity is not checked)"""
    return bool(_ISO_DATE.match(norm(value)))


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp into an aware UTC datetime.

    Naive values are taken as UTC. Returns None when the value does not parse.
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        text = norm(value)
        if not text:
            return None
        if text.endswith("Z") or text.endswith("z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_quantity(value: float) -> str:
    """Render a quantity without float noise ("2.5", "12", "0.3")"""
    rounded = round(value, 6)
    if rounded == 0:
        return "0"
    if rounded.is_integer():
        return str(int(rounded))
    return f"{rounded:.6f}".rstrip("0").rstrip(".")
