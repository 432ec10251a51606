"""
Unit Tests - Ledger Models, Reader and Writer
"""
import pytest

from cafe_inventory.exceptions import SchemaError, TableNotFoundError
from cafe_inventory.ledger.models import (
    CatalogEntry,
    PurchaseEvent,
    RecipeRow,
    ShoppingAction,
    ShoppingActionEvent,
    ShoppingListRow,
    UsageEvent,
)
from cafe_inventory.ledger.tables import SCHEMAS, USAGE_HEADER, bootstrap_tables


class TestLedgerModels:
    """Tests for row parsing at the ledger boundary"""

    def test_catalog_header_case_and_aliases(self):
        entry = CatalogEntry.from_row({
            " UPC ": " egg ",
            "Name": "Eggs",
            "Unit": "",
            "Reorder_Point": "$12",
            "Par": "24",
            "Vendor": "Farm Co",
        })

        assert entry.upc == "EGG"
        assert entry.product_name == "Eggs"
        assert entry.reorder_point == 12.0
        assert entry.par_level == 24.0
        assert entry.preferred_vendor == "Farm Co"
        assert entry.unit == "each"

    def test_catalog_active_defaults_true(self):
        assert CatalogEntry.from_row({"upc": "A", "active": ""}).active is True
        assert CatalogEntry.from_row({"upc": "A"}).active is True
        assert CatalogEntry.from_row({"upc": "A", "active": "no"}).active is False

    def test_recipe_active_defaults_false(self):
        row = RecipeRow.from_row({"menu_item_clean": "latte", "ingredient_upc": "milk", "qty_per_item": "0.25"})
        assert row.active is False
        assert row.ingredient_upc == "MILK"

    def test_purchase_quantity_prefers_base_units(self):
        assert PurchaseEvent.from_row({"upc": "M", "qty_purchased": "1", "base_units_added": "128"}).quantity == 128
        assert PurchaseEvent.from_row({"upc": "M", "qty_purchased": "3", "base_units_added": ""}).quantity == 3
        assert PurchaseEvent.from_row({"upc": "M", "qty_purchased": "", "base_units_added": ""}).quantity == 0

    def test_usage_reads_ingredient_upc_column(self):
        event = UsageEvent.from_row({"date": "2026-02-05", "ingredient_upc": "milk", "theoretical_used_qty": "2.5"})
        assert event.upc == "MILK"
        assert event.to_row()["ingredient_upc"] == "MILK"
        assert event.to_row()["theoretical_used_qty"] == "2.5"

    def test_unknown_action_kept_as_text(self):
        event = ShoppingActionEvent.from_row({"date": "2026-02-06", "upc": "egg", "action": " Archived "})
        assert event.action == "archived"
        assert event.parsed_action is None

        event = ShoppingActionEvent.from_row({"date": "2026-02-06", "upc": "egg", "action": "DISMISSED"})
        assert event.parsed_action is ShoppingAction.DISMISSED

    def test_shopping_row_blank_numbers_are_none(self):
        row = ShoppingListRow.from_row({"upc": "egg", "qty_to_order": "6", "par_level": ""})
        assert row.par_level is None
        assert row.qty_to_order_base_units == 6.0
        assert row.order_quantity == 6.0


class TestLedgerReader:
    """Tests for LedgerReader"""

    def test_missing_required_column_raises(self, store, reader):
        store.seed("Catalog", [{"sku": "EGG", "name": "Eggs"}])

        with pytest.raises(SchemaError) as exc_info:
            reader.catalog()

        assert exc_info.value.table == "Catalog"
        assert "upc" in exc_info.value.missing

    def test_alternative_column_satisfies_requirement(self, store, reader):
        store.seed("Inventory_Usage", [{"date": "2026-02-05", "upc": "MILK", "theoretical_used_qty": "1"}])
        assert [u.upc for u in reader.usage()] == ["MILK"]

    def test_blank_keys_dropped(self, store, reader):
        store.seed("Catalog", [{"upc": "EGG"}, {"upc": "  "}, {"upc": "MILK"}])
        assert [c.upc for c in reader.catalog()] == ["EGG", "MILK"]

    def test_catalog_index_first_duplicate_wins(self, store, reader):
        store.seed("Catalog", [
            {"upc": "egg", "product_name": "First"},
            {"upc": "EGG", "product_name": "Second"},
        ])
        assert reader.catalog_index()["EGG"].product_name == "First"

    def test_required_table_absent_raises(self, reader):
        with pytest.raises(TableNotFoundError):
            reader.purchases()

    def test_optional_tables_read_empty_when_absent(self, reader):
        assert reader.adjustments() == []
        assert reader.shopping_actions() == []
        assert reader.snapshot() == []
        assert reader.email_log() == []
        assert reader.subscriber_emails() == []

    def test_subscriber_emails_distinct_and_valid(self, cafe_store, reader):
        assert reader.subscriber_emails() == ["manager@cafe.test"]


class TestLedgerWriter:
    """Tests for LedgerWriter"""

    def test_append_creates_table_with_canonical_header(self, store, writer):
        writer.append_usage([{"date": "2026-02-05", "ingredient_upc": "MILK", "theoretical_used_qty": "2.5"}])

        data = store.read_table("Inventory_Usage")
        assert data.header == USAGE_HEADER
        assert data.rows[0]["ingredient_upc"] == "MILK"

    def test_append_refuses_table_without_required_columns(self, store, writer):
        store.seed("Shopping_Actions", [{"when": "x"}], header=["when"])

        with pytest.raises(SchemaError):
            writer.append_action({"date": "2026-02-06", "upc": "EGG", "action": "dismissed"})

        assert len(store.read_all("Shopping_Actions")) == 1

    def test_append_aligns_to_existing_header_order(self, store, writer):
        store.seed("Shopping_Actions", [], header=["UPC", "Action", "Date", "Extra"])
        writer.append_action({"date": "2026-02-06", "upc": "EGG", "action": "dismissed", "ignored": "x"})

        row = store.read_all("Shopping_Actions")[0]
        assert row == {"UPC": "EGG", "Action": "dismissed", "Date": "2026-02-06", "Extra": ""}

    def test_replace_usage_only_touches_date(self, store, writer):
        store.seed("Inventory_Usage", [
            {"date": "2026-02-04", "menu_item_clean": "latte", "ingredient_upc": "MILK", "theoretical_used_qty": "1"},
            {"date": "2026-02-05", "menu_item_clean": "latte", "ingredient_upc": "MILK", "theoretical_used_qty": "9"},
        ], header=USAGE_HEADER)

        removed = writer.replace_usage_for_date("2026-02-05", [
            {"date": "2026-02-05", "menu_item_clean": "latte", "ingredient_upc": "MILK", "theoretical_used_qty": "2.5"},
        ])

        rows = store.read_all("Inventory_Usage")
        assert removed == 1
        assert [(r["date"], r["theoretical_used_qty"]) for r in rows] == [("2026-02-04", "1"), ("2026-02-05", "2.5")]

    def test_replace_sales_scoped_to_source(self, store, writer):
        store.seed("Sales_Daily", [
            {"date": "2026-02-05", "menu_item_clean": "latte", "qty_sold": "1", "source": "toast"},
            {"date": "2026-02-05", "menu_item_clean": "latte", "qty_sold": "2", "source": "manual"},
        ])

        removed = writer.replace_sales("2026-02-05", "toast", [])

        assert removed == 1
        assert [r["source"] for r in store.read_all("Sales_Daily")] == ["manual"]

    def test_usage_written_into_alternative_upc_column(self, store, reader, writer):
        store.seed("Inventory_Usage", [], header=["date", "upc", "theoretical_used_qty"])
        event = UsageEvent(date="2026-02-06", menu_item_clean="latte", upc="MILK", theoretical_used_qty=2.5)

        writer.replace_usage_for_date("2026-02-06", [event.to_row()])
        writer.append_usage([event.to_row()])

        assert store.read_all("Inventory_Usage")[0] == {
            "date": "2026-02-06", "upc": "MILK", "theoretical_used_qty": "2.5",
        }
        assert [(u.upc, u.theoretical_used_qty) for u in reader.usage()] == [("MILK", 2.5), ("MILK", 2.5)]

    def test_sales_written_into_alternative_menu_column(self, store, reader, writer):
        store.seed("Sales_Daily", [], header=["Date", "Menu_Item", "Qty_Sold", "Source"])

        writer.replace_sales("2026-02-05", "toast", [
            {"date": "2026-02-05", "menu_item_clean": "latte", "qty_sold": "4", "source": "toast"},
        ])

        assert store.read_all("Sales_Daily") == [
            {"Date": "2026-02-05", "Menu_Item": "latte", "Qty_Sold": "4", "Source": "toast"},
        ]
        assert [(s.menu_item_clean, s.qty_sold) for s in reader.sales()] == [("latte", 4.0)]

    def test_canonical_column_preferred_when_both_present(self, store, writer):
        store.seed("Inventory_Usage", [], header=["date", "ingredient_upc", "upc", "theoretical_used_qty"])

        writer.append_usage([{"date": "2026-02-06", "ingredient_upc": "MILK", "theoretical_used_qty": "1"}])

        row = store.read_all("Inventory_Usage")[0]
        assert row["ingredient_upc"] == "MILK"
        assert row["upc"] == ""


class TestBootstrap:
    """Tests for table bootstrap"""

    def test_creates_missing_tables_once(self, store, tables):
        store.seed("Catalog", [{"upc": "EGG"}])

        created = bootstrap_tables(store, tables)

        assert "Catalog" not in created
        assert len(created) == len(SCHEMAS) - 1
        assert store.header("Reorder_Email_Log")[0] == "timestamp"
        assert bootstrap_tables(store, tables) == []
