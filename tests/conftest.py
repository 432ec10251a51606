"""
Test Suite Configuration
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List

import pytest

from cafe_inventory.config import Settings
from cafe_inventory.inventory.calendar import BusinessCalendar
from cafe_inventory.ledger.reader import LedgerReader
from cafe_inventory.ledger.tables import USAGE_HEADER
from cafe_inventory.ledger.writer import LedgerWriter
from cafe_inventory.notifications.transport import EmailMessage, EmailTransport
from cafe_inventory.services import InventoryService, build_service
from cafe_inventory.store import InMemoryStore

# 10:00 in New York, business date 2026-02-06
FIXED_NOW = datetime(2026, 2, 6, 15, 0, tzinfo=timezone.utc)
BUSINESS_DATE = "2026-02-06"
SALES_DATE = "2026-02-05"


class FixedClock:
    """Settable clock for the business calendar"""

    def __init__(self, now: datetime = FIXED_NOW):
        self.current = now

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current = self.current + timedelta(**kwargs)


class RecordingTransport(EmailTransport):
    """Keeps sent messages in memory"""

    def __init__(self):
        self.sent: List[EmailMessage] = []

    def send(self, message: EmailMessage) -> Dict[str, Any]:
        self.sent.append(message)
        return {"transport": "memory", "id": f"msg-{len(self.sent)}"}


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings"""
    return Settings(APP_ENV="testing")


@pytest.fixture
def tables(test_settings):
    return test_settings.tables


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def calendar(clock) -> BusinessCalendar:
    return BusinessCalendar("America/New_York", clock=clock)


@pytest.fixture
def store() -> InMemoryStore:
    """Empty in-memory store"""
    return InMemoryStore()


@pytest.fixture
def reader(store, tables) -> LedgerReader:
    return LedgerReader(store, tables)


@pytest.fixture
def writer(store, tables) -> LedgerWriter:
    return LedgerWriter(store, tables)


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


def seed_cafe(store: InMemoryStore) -> None:
    """Small cafe: milk and eggs tracked, beans untracked, one retired item"""
    store.seed("Catalog", [
        {"upc": "MILK", "product_name": "Whole Milk", "base_unit": "oz", "reorder_point": "10",
         "par_level": "20", "default_location": "Walk-in", "preferred_vendor": "Costco", "active": "TRUE"},
        {"upc": "EGG", "product_name": "Eggs", "base_unit": "each", "reorder_point": "12",
         "par_level": "", "default_location": "Walk-in", "preferred_vendor": "Farm Co", "active": ""},
        {"upc": "BEANS", "product_name": "Espresso Beans", "base_unit": "g", "reorder_point": "0",
         "par_level": "", "default_location": "Dry", "preferred_vendor": "Roaster", "active": "TRUE"},
        {"upc": "SYRUP", "product_name": "Retired Syrup", "base_unit": "oz", "reorder_point": "5",
         "par_level": "10", "default_location": "Bar", "preferred_vendor": "", "active": "FALSE"},
    ])
    store.seed("Purchases", [
        {"timestamp": "2026-02-01T12:00:00.000Z", "entered_by": "sam", "upc": "MILK", "product_name": "Whole Milk",
         "qty_purchased": "1", "base_units_added": "10.5", "total_price": "$4.99", "store_vendor": "Costco",
         "assigned_location": "Walk-in", "notes": ""},
        {"timestamp": "2026-02-01T12:05:00.000Z", "entered_by": "sam", "upc": "egg", "product_name": "Eggs",
         "qty_purchased": "30", "base_units_added": "", "total_price": "", "store_vendor": "",
         "assigned_location": "", "notes": ""},
    ])
    store.seed("Recipes", [
        {"menu_item_clean": "latte", "ingredient_upc": "MILK", "qty_per_item": "0.25", "active": "TRUE"},
        {"menu_item_clean": "latte", "ingredient_upc": "BEANS", "qty_per_item": "18", "active": "yes"},
        {"menu_item_clean": "latte", "ingredient_upc": "SYRUP", "qty_per_item": "1", "active": "FALSE"},
        {"menu_item_clean": "the outkast - pork bacon", "ingredient_upc": "EGG", "qty_per_item": "2", "active": "1"},
    ])
    store.seed("Sales_Daily", [
        {"date": SALES_DATE, "menu_item_clean": "latte", "qty_sold": "10", "source": "toast", "synced_at": ""},
        {"date": SALES_DATE, "menu_item_clean": "the outkast - pork bacon", "qty_sold": "4", "source": "toast",
         "synced_at": ""},
        {"date": SALES_DATE, "menu_item_clean": "mocha", "qty_sold": "3", "source": "toast", "synced_at": ""},
        {"date": "2026-02-04", "menu_item_clean": "latte", "qty_sold": "99", "source": "toast", "synced_at": ""},
    ])
    store.seed("Inventory_Usage", [], header=USAGE_HEADER)
    store.seed("Subscribers", [
        {"email": "manager@cafe.test", "name": "Manager"},
        {"email": "not-an-address", "name": "Typo"},
        {"email": "manager@cafe.test", "name": "Duplicate"},
    ])


@pytest.fixture
def cafe_store(store) -> InMemoryStore:
    """In-memory store seeded with the sample cafe"""
    seed_cafe(store)
    return store


@pytest.fixture
def service(test_settings, cafe_store, calendar, transport) -> InventoryService:
    """Service over the sample cafe with a fixed clock and a recording transport"""
    return build_service(test_settings, store=cafe_store, calendar=calendar, transport=transport)
