"""
Unit Tests - Settings, Logging and Calendar
"""
import logging
from datetime import datetime, timezone

import pytest

from cafe_inventory.config import Settings
from cafe_inventory.config.logging import _service_context, configure_logging
from cafe_inventory.config.settings import MonitoringSettings, NotificationSettings, TableSettings
from cafe_inventory.inventory.calendar import BusinessCalendar


class TestSettings:
    """Tests for configuration"""

    def test_defaults(self):
        settings = Settings(APP_ENV="testing")

        assert settings.store.backend == "memory"
        assert settings.tables.usage == "Inventory_Usage"
        assert settings.notifications.cooldown_minutes == 15
        assert settings.business.timezone == "America/New_York"
        assert not settings.is_production

    def test_table_names_from_environment(self, monkeypatch):
        monkeypatch.setenv("TABLE_SHOPPING_LIST", "Reorder_Snapshot")
        assert TableSettings().shopping_list == "Reorder_Snapshot"

    def test_notification_settings_from_environment(self, monkeypatch):
        monkeypatch.setenv("REORDER_EMAIL_COOLDOWN_MINUTES", "60")
        monkeypatch.setenv("REORDER_EMAIL_ACTOR", "cron")

        settings = NotificationSettings()

        assert settings.cooldown_minutes == 60
        assert settings.actor == "cron"

    def test_invalid_environment(self):
        with pytest.raises(ValueError):
            Settings(APP_ENV="moon")


class TestLogging:
    """Tests for logging setup"""

    def test_configure_sets_root_level(self):
        configure_logging("WARNING", MonitoringSettings(log_format="console"))

        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert len(root.handlers) == 1

    def test_uvicorn_routed_through_root_handler(self, test_settings):
        configure_logging("DEBUG", settings=test_settings)

        access = logging.getLogger("uvicorn.access")
        assert access.handlers == logging.getLogger().handlers
        assert access.propagate is False

    def test_library_loggers_held_at_warning(self, test_settings):
        configure_logging("DEBUG", settings=test_settings)

        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
        assert logging.getLogger("prefect").level == logging.WARNING

    def test_events_carry_service_and_env(self, test_settings):
        add_service = _service_context(test_settings)

        event = add_service(None, "info", {"event": "Usage recomputed"})

        assert event == {"event": "Usage recomputed", "service": "cafe-inventory", "env": "testing"}


class TestBusinessCalendar:
    """Tests for business-date resolution"""

    def _at(self, *args):
        instant = datetime(*args, tzinfo=timezone.utc)
        return BusinessCalendar("America/New_York", clock=lambda: instant)

    def test_late_evening_is_still_today_locally(self):
        # 02:30 UTC on the 7th is 21:30 on the 6th in New York
        calendar = self._at(2026, 2, 7, 2, 30)

        assert calendar.today() == "2026-02-06"
        assert calendar.yesterday() == "2026-02-05"

    def test_timestamp_is_utc_millis(self):
        calendar = self._at(2026, 2, 6, 15, 0, 1)
        assert calendar.timestamp() == "2026-02-06T15:00:01.000Z"

    def test_business_date_of_instant(self):
        calendar = BusinessCalendar("America/Los_Angeles")
        instant = datetime(2026, 7, 1, 6, 0, tzinfo=timezone.utc)

        assert calendar.business_date(instant) == "2026-06-30"
