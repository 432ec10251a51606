"""
Unit Tests - Inventory Service Facade
"""
import pytest

from cafe_inventory.exceptions import TransientStoreError
from cafe_inventory.services import build_service
from cafe_inventory.store import InMemoryStore

SALES_DATE = "2026-02-05"


class BrokenStore(InMemoryStore):
    """Every read fails with a transient error"""

    def read_table(self, table):
        raise TransientStoreError("store unavailable", status_code=503)


class TestServiceResults:
    """Tests for result shaping and error mapping"""

    def test_usage_success(self, service):
        result = service.recompute_usage(SALES_DATE, "replace")

        assert result.ok
        assert result.scope == "inventory-usage"
        assert result.data["rows_written"] == 3
        assert result.data["mode"] == "replace"
        assert result.warnings == ["No active recipe for menu item: mocha"]
        assert result.error is None

    def test_validation_error_mapped(self, service):
        result = service.recompute_usage("not-a-date")

        assert not result.ok
        assert result.error_type == "validation"
        assert "YYYY-MM-DD" in result.error

    def test_precondition_error_mapped(self, service):
        result = service.recompute_reorder()

        assert not result.ok
        assert result.error_type == "precondition"
        assert "Inventory_Usage" in result.error

    def test_transient_error_mapped(self, test_settings, calendar, transport):
        broken = build_service(test_settings, store=BrokenStore(), calendar=calendar, transport=transport)

        result = broken.shopping_list()

        assert result.error_type == "transient"

    def test_unexpected_error_reported_as_internal(self, service, monkeypatch):
        def explode():
            raise RuntimeError("kaput")

        monkeypatch.setattr(service.reorder_engine, "run", explode)

        result = service.recompute_reorder()

        assert result.error_type == "internal"
        assert result.error == "kaput"

    def test_on_hand(self, service):
        result = service.on_hand("milk")

        assert result.ok
        assert result.data["on_hand"] == 10.5
        assert result.data["base_unit"] == "oz"

    def test_usage_counted_when_ledger_uses_upc_header(self, service, cafe_store):
        cafe_store.seed("Inventory_Usage", [], header=["date", "upc", "theoretical_used_qty"])

        usage = service.recompute_usage(SALES_DATE, "replace")
        result = service.on_hand("MILK")

        assert usage.data["rows_written"] == 3
        assert result.data["used"] == 2.5
        assert result.data["on_hand"] == 8

    def test_negative_on_hand_is_a_warning(self, service):
        service.record_adjustment("EGG", -31, adjustment_type="count")

        result = service.on_hand("EGG")

        assert result.ok
        assert result.data["on_hand"] == -1
        assert result.warnings == ["Negative on-hand for EGG: -1.0"]

    def test_shopping_flow(self, service):
        service.recompute_usage(SALES_DATE, "replace")
        service.recompute_reorder()

        listed = service.shopping_list()
        assert [r["upc"] for r in listed.data["rows"]] == ["MILK"]

        action = service.record_shopping_action("milk", "purchased", actor="sam")
        assert action.data["action"]["action"] == "purchased"
        assert service.shopping_list().data["count"] == 0
        assert service.shopping_list(include_hidden=True).data["count"] == 1

        reset = service.reset_today(actor="manager")
        assert reset.data["upcs"] == ["MILK"]
        assert service.shopping_list().data["count"] == 1

    def test_purchase_and_sales(self, service):
        purchase = service.record_purchase("MILK", 1, base_units_added=64)
        assert purchase.data["quantity"] == 64

        sales = service.ingest_sales(SALES_DATE, [{"name": "Latte", "quantity": 2}])
        assert sales.ok
        assert sales.data["rows_written"] == 1

    def test_bootstrap(self, service):
        result = service.bootstrap()

        assert result.ok
        assert "Shopping_Actions" in result.data["created"]
        assert "Catalog" not in result.data["created"]


class TestDailyRun:
    """Tests for the daily run sequence"""

    def test_runs_all_steps_and_emails(self, service, transport):
        result = service.run_daily(SALES_DATE)

        assert result.ok
        assert result.data["steps"]["inventory_usage"]["rows_written"] == 3
        assert result.data["steps"]["reorder_check"]["items_flagged"] == 1
        assert result.data["steps"]["reorder_email"]["sent"] is True
        assert len(transport.sent) == 1

    def test_rerun_is_idempotent_and_guarded(self, service, transport):
        service.run_daily(SALES_DATE)
        result = service.run_daily(SALES_DATE)

        assert result.ok
        assert result.data["steps"]["inventory_usage"]["rows_removed"] == 3
        assert result.data["steps"]["reorder_email"]["skipped"] is True
        assert len(transport.sent) == 1

    def test_no_flagged_items_skips_email(self, service, transport):
        service.record_purchase("MILK", 1, base_units_added=100)

        result = service.run_daily(SALES_DATE)

        assert result.ok
        assert result.data["steps"]["reorder_email"] == {"skipped": True, "reason": "no_items_flagged"}
        assert transport.sent == []

    def test_stops_at_failing_step(self, service, cafe_store):
        cafe_store.seed("Recipes", [{"menu": "latte"}])

        result = service.run_daily(SALES_DATE)

        assert not result.ok
        assert result.step == "inventory-usage"
        assert result.error_type == "schema"
        assert "reorder_check" not in result.data["steps"]

    def test_email_failure_named(self, service, cafe_store):
        cafe_store.seed("Subscribers", [], header=["email"])

        result = service.run_daily(SALES_DATE)

        assert not result.ok
        assert result.step == "reorder-email"
        assert result.error_type == "notification"

    def test_date_defaults_to_business_date(self, service):
        result = service.run_daily()

        assert result.data["date"] == "2026-02-06"


@pytest.mark.parametrize("backend", ["memory", "csv", "sql"])
def test_build_service_from_settings(test_settings, tmp_path, backend):
    test_settings.store.backend = backend
    test_settings.store.csv_path = str(tmp_path / "tables")
    test_settings.store.database_url = f"sqlite:///{tmp_path / 'inventory.db'}"

    service = build_service(test_settings)

    assert service.bootstrap().ok
    assert service.shopping_list().data["count"] == 0
