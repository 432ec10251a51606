"""
Unit Tests - Cell Parsing
"""
from datetime import datetime, timezone

import pytest

from cafe_inventory.ledger.parsing import (
    format_quantity,
    is_iso_date,
    is_truthy,
    normalize_upc,
    parse_timestamp,
    to_number,
)


class TestToNumber:
    """Tests for tolerant numeric parsing"""

    @pytest.mark.parametrize("raw,expected", [
        ("$16", 16.0),
        (" 16,000 ", 16000.0),
        ("-3.5", -3.5),
        ("12 oz", 12.0),
        (7, 7.0),
        (2.5, 2.5),
    ])
    def test_strips_formatting(self, raw, expected):
        assert to_number(raw) == expected

    @pytest.mark.parametrize("raw", ["", None, "abc", "-", "1.2.3", float("nan")])
    def test_unparseable_is_zero(self, raw):
        assert to_number(raw) == 0.0


class TestNormalization:
    """Tests for key and flag normalization"""

    def test_upc_trimmed_and_uppercased(self):
        assert normalize_upc("  egg ") == "EGG"
        assert normalize_upc(None) == ""

    @pytest.mark.parametrize("raw", ["TRUE", "true", "1", "Yes", "y", True])
    def test_truthy_values(self, raw):
        assert is_truthy(raw) is True

    @pytest.mark.parametrize("raw", ["FALSE", "0", "no", "", None, "active", False])
    def test_falsy_values(self, raw):
        assert is_truthy(raw) is False

    def test_iso_date_shape(self):
        assert is_iso_date("2026-02-06")
        assert not is_iso_date("2026-2-6")
        assert not is_iso_date("02/06/2026")
        assert not is_iso_date("")


class TestTimestamps:
    """Tests for timestamp parsing"""

    def test_zulu_suffix(self):
        parsed = parse_timestamp("2026-02-06T14:30:00.000Z")
        assert parsed == datetime(2026, 2, 6, 14, 30, tzinfo=timezone.utc)

    def test_offset_converted_to_utc(self):
        parsed = parse_timestamp("2026-02-06T09:30:00-05:00")
        assert parsed == datetime(2026, 2, 6, 14, 30, tzinfo=timezone.utc)

    def test_naive_taken_as_utc(self):
        parsed = parse_timestamp("2026-02-06T14:30:00")
        assert parsed.tzinfo is not None
        assert parsed.hour == 14

    @pytest.mark.parametrize("raw", ["", None, "yesterday", "2026-13-45T00:00:00Z"])
    def test_unparseable_is_none(self, raw):
        assert parse_timestamp(raw) is None


class TestFormatQuantity:
    """Tests for quantity rendering"""

    @pytest.mark.parametrize("value,expected", [
        (2.5, "2.5"),
        (12.0, "12"),
        (0.1 + 0.2, "0.3"),
        (-3.0, "-3"),
        (0.0, "0"),
        (-0.0000001, "0"),
    ])
    def test_no_float_noise(self, value, expected):
        assert format_quantity(value) == expected
