"""
Unit Tests - HTTP API
"""
import pytest
from fastapi.testclient import TestClient

from cafe_inventory.serving.api import create_api_app

SALES_DATE = "2026-02-05"


@pytest.fixture
def client(service):
    return TestClient(create_api_app(service))


class TestHealth:
    """Tests for health endpoints"""

    def test_liveness(self, client):
        response = client.get("/api/v1/health/live")

        assert response.status_code == 200
        assert response.json() == {"status": "alive"}

    def test_health_reads_catalog(self, client):
        response = client.get("/api/v1/health")

        body = response.json()
        assert response.status_code == 200
        assert body["status"] == "healthy"
        assert body["checks"]["store"]["catalog_rows"] == 4

    def test_request_id_echoed(self, client):
        response = client.get("/api/v1/health/live", headers={"X-Request-ID": "abc-123"})

        assert response.headers["X-Request-ID"] == "abc-123"
        assert "X-Response-Time" in response.headers


class TestInventoryRoutes:
    """Tests for inventory endpoints"""

    def test_usage_run(self, client):
        response = client.post("/api/v1/inventory/usage/run", json={"date": SALES_DATE, "mode": "replace"})

        body = response.json()
        assert response.status_code == 200
        assert body["ok"] is True
        assert body["data"]["rows_written"] == 3
        assert body["warnings"] == ["No active recipe for menu item: mocha"]

    def test_usage_run_bad_date_is_400(self, client):
        response = client.post("/api/v1/inventory/usage/run", json={"date": "02/05/2026"})

        assert response.status_code == 400
        assert response.json()["error_type"] == "validation"

    def test_reorder_without_usage_is_409(self, client):
        response = client.post("/api/v1/inventory/reorder/run")

        assert response.status_code == 409
        assert response.json()["error_type"] == "precondition"

    def test_on_hand(self, client):
        response = client.get("/api/v1/inventory/on-hand", params={"upc": "egg"})

        assert response.status_code == 200
        assert response.json()["data"]["on_hand"] == 30

    def test_adjustment_and_purchase(self, client):
        adjust = client.post("/api/v1/inventory/adjustments", json={"upc": "EGG", "base_units_delta": -6})
        purchase = client.post("/api/v1/inventory/purchases", json={"upc": "EGG", "qty_purchased": 12})

        assert adjust.status_code == 200
        assert purchase.status_code == 200
        on_hand = client.get("/api/v1/inventory/on-hand", params={"upc": "EGG"}).json()
        assert on_hand["data"]["on_hand"] == 36

    def test_daily_run(self, client, transport):
        response = client.post("/api/v1/inventory/daily-run", json={"date": SALES_DATE})

        body = response.json()
        assert response.status_code == 200
        assert body["data"]["steps"]["reorder_check"]["items_flagged"] == 1
        assert len(transport.sent) == 1

    def test_daily_run_failure_names_step(self, client):
        response = client.post("/api/v1/inventory/daily-run", json={"date": "bad"})

        assert response.status_code == 400
        assert response.json()["step"] == "inventory-usage"


class TestShoppingRoutes:
    """Tests for shopping list endpoints"""

    def test_list_action_and_reset(self, client):
        client.post("/api/v1/inventory/usage/run", json={"date": SALES_DATE, "mode": "replace"})
        client.post("/api/v1/inventory/reorder/run")

        listed = client.get("/api/v1/shopping-list").json()
        assert [r["upc"] for r in listed["data"]["rows"]] == ["MILK"]

        action = client.post("/api/v1/shopping/actions", json={"upc": "MILK", "action": "dismissed"})
        assert action.status_code == 200
        assert client.get("/api/v1/shopping-list").json()["data"]["count"] == 0
        hidden = client.get("/api/v1/shopping-list", params={"include_hidden": "true"}).json()
        assert hidden["data"]["count"] == 1

        reset = client.post("/api/v1/shopping/reset-today", json={"dry_run": False})
        assert reset.json()["data"]["upcs"] == ["MILK"]
        assert client.get("/api/v1/shopping-list").json()["data"]["count"] == 1

    def test_invalid_action_is_400(self, client):
        response = client.post("/api/v1/shopping/actions", json={"upc": "MILK", "action": "archive"})

        assert response.status_code == 400
        assert "Allowed" in response.json()["error"]


class TestSalesAndNotificationRoutes:
    """Tests for sales and notification endpoints"""

    def test_sales_ingest(self, client):
        response = client.post("/api/v1/sales/ingest", json={
            "date": SALES_DATE,
            "lines": [
                {"name": "Latte", "quantity": 4},
                {"name": "The Outkast", "modifiers": ["Turkey Bacon"]},
                {"name": "Latte", "quantity": 9, "voided": True},
            ],
        })

        body = response.json()
        assert response.status_code == 200
        assert body["data"]["rows_written"] == 2
        assert body["data"]["top_items"][0] == {"menu_item_clean": "latte", "qty_sold": 4.0}

    def test_reorder_email_guarded(self, client, transport):
        client.post("/api/v1/inventory/usage/run", json={"date": SALES_DATE, "mode": "replace"})
        client.post("/api/v1/inventory/reorder/run")

        first = client.post("/api/v1/notifications/reorder-email").json()
        second = client.post("/api/v1/notifications/reorder-email", json={"force": 1}).json()
        forced = client.post("/api/v1/notifications/reorder-email", json={"force": 2, "test": True}).json()

        assert first["data"]["sent"] is True
        assert second["data"]["decision"]["reason"] == "cooldown"
        assert forced["data"]["test"] is True
        assert len(transport.sent) == 2
        assert transport.sent[1].subject == "[TEST] Shopping List (1 item)"

    def test_invalid_force_is_400(self, client):
        response = client.post("/api/v1/notifications/reorder-email", json={"force": 5})

        assert response.status_code == 400


def test_lifespan_bootstraps_tables(service):
    with TestClient(create_api_app(service)) as client:
        assert client.get("/api/v1/health").status_code == 200

    assert service.store.has_table("Shopping_Actions")
