"""
Inventory Service

Caller-facing facade over the engines. Every operation returns a
``ServiceResult``: data and data-quality warnings on success, a message and
a machine-readable error type on failure. Typed engine errors keep their
code; anything unexpected is logged with its traceback and reported as
``internal``.
"""

import time
from dataclasses import asdict
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import structlog
from pydantic import BaseModel, Field

from cafe_inventory.config.settings import Settings, get_settings
from cafe_inventory.exceptions import InventoryError
from cafe_inventory.inventory.actions import ActionStateTracker
from cafe_inventory.inventory.adjustments import StockEntryRecorder
from cafe_inventory.inventory.calendar import BusinessCalendar
from cafe_inventory.inventory.on_hand import OnHandCalculator
from cafe_inventory.inventory.reorder import ReorderEngine
from cafe_inventory.inventory.shopping import ShoppingListMerger
from cafe_inventory.inventory.usage import UsageExplosionEngine, WriteMode
from cafe_inventory.ledger.reader import LedgerReader
from cafe_inventory.ledger.tables import bootstrap_tables
from cafe_inventory.ledger.writer import LedgerWriter
from cafe_inventory.notifications.guard import NotificationDedupGuard
from cafe_inventory.notifications.notifier import ReorderNotifier
from cafe_inventory.notifications.transport import EmailTransport, LogEmailTransport
from cafe_inventory.sales.ingest import SalesIngestor
from cafe_inventory.store import TabularStore, create_store

logger = structlog.get_logger(__name__)

Outcome = Tuple[Dict[str, Any], List[str]]


class ServiceResult(BaseModel):
    """Structured outcome of one service operation"""
    ok: bool
    scope: str
    data: Dict[str, Any] = Field(default_factory=dict)
    warnings: List[str] = Field(default_factory=list)
    error: Optional[str] = None
    error_type: Optional[str] = None
    step: Optional[str] = None
    duration_ms: float = 0


class InventoryService:
    """
    Wires store, ledgers and engines together.

    Example:
        service = build_service()
        result = service.recompute_usage("2026-02-06", mode="replace")
        if not result.ok:
            print(result.error_type, result.error)
    """

    def __init__(
        self,
        settings: Settings,
        store: TabularStore,
        calendar: Optional[BusinessCalendar] = None,
        transport: Optional[EmailTransport] = None,
    ):
        self.settings = settings
        self.store = store
        self.calendar = calendar or BusinessCalendar(settings.business.timezone)

        self.reader = LedgerReader(store, settings.tables)
        self.writer = LedgerWriter(store, settings.tables)

        self.on_hand_calculator = OnHandCalculator(self.reader)
        self.usage_engine = UsageExplosionEngine(self.reader, self.writer)
        self.reorder_engine = ReorderEngine(
            self.reader,
            self.writer,
            self.calendar,
            require_usage_ledger=settings.business.require_usage_ledger,
        )
        self.merger = ShoppingListMerger(self.reader, self.calendar)
        self.tracker = ActionStateTracker(self.reader, self.writer, self.calendar)
        self.recorder = StockEntryRecorder(self.writer, self.calendar)
        self.sales_ingestor = SalesIngestor(
            self.writer,
            self.calendar,
            settings.sales.virtual_items,
            default_source=settings.sales.default_source,
        )
        self.guard = NotificationDedupGuard(
            self.reader,
            self.calendar,
            default_cooldown_minutes=settings.notifications.cooldown_minutes,
        )
        self.notifier = ReorderNotifier(
            self.reader,
            self.writer,
            self.merger,
            self.guard,
            transport or LogEmailTransport(),
            self.calendar,
            settings.notifications,
        )

    def _execute(self, scope: str, operation: Callable[[], Outcome]) -> ServiceResult:
        started = time.perf_counter()
        try:
            data, warnings = operation()
        except InventoryError as e:
            logger.warning(f"{scope} failed", error=str(e), error_type=e.code)
            return ServiceResult(
                ok=False,
                scope=scope,
                error=str(e),
                error_type=e.code,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
        except Exception as e:
            logger.exception(f"{scope} failed unexpectedly", error=str(e))
            return ServiceResult(
                ok=False,
                scope=scope,
                error=str(e) or e.__class__.__name__,
                error_type="internal",
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
        return ServiceResult(
            ok=True,
            scope=scope,
            data=data,
            warnings=warnings,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def bootstrap(self) -> ServiceResult:
        """Create any missing table with its canonical header"""
        def operation() -> Outcome:
            return {"created": bootstrap_tables(self.store, self.settings.tables)}, []
        return self._execute("bootstrap", operation)

    def recompute_usage(self, date: str, mode: Any = WriteMode.APPEND) -> ServiceResult:
        def operation() -> Outcome:
            result = self.usage_engine.run(date, mode)
            data = asdict(result)
            data["mode"] = result.mode.value
            return data, result.warnings
        return self._execute("inventory-usage", operation)

    def recompute_reorder(self) -> ServiceResult:
        def operation() -> Outcome:
            result = self.reorder_engine.run()
            data = {
                "items_flagged": result.items_flagged,
                "written_to": self.settings.tables.shopping_list,
                "timestamp": result.timestamp,
                "counts": result.counts,
                "negative_on_hand": result.negative_on_hand,
            }
            return data, result.warnings
        return self._execute("reorder-check", operation)

    def shopping_list(self, include_hidden: bool = False) -> ServiceResult:
        def operation() -> Outcome:
            view = self.merger.build(include_hidden=include_hidden)
            data = {
                "business_date": view.business_date,
                "include_hidden": view.include_hidden,
                "count": view.count,
                "rows": [row.model_dump() for row in view.rows],
            }
            return data, []
        return self._execute("shopping-list", operation)

    def record_shopping_action(
        self,
        upc: str,
        action: Any,
        note: str = "",
        actor: str = "",
        date: Optional[str] = None,
    ) -> ServiceResult:
        def operation() -> Outcome:
            event = self.tracker.record(upc, action, note=note, actor=actor, date=date)
            return {"action": event.model_dump()}, []
        return self._execute("shopping-action", operation)

    def reset_today(self, dry_run: bool = False, actor: str = "") -> ServiceResult:
        def operation() -> Outcome:
            result = self.tracker.reset_today(dry_run=dry_run, actor=actor)
            return asdict(result), []
        return self._execute("shopping-reset-today", operation)

    def on_hand(self, upc: str, date: Optional[str] = None) -> ServiceResult:
        def operation() -> Outcome:
            reading = self.on_hand_calculator.compute(upc, date=date)
            warnings = []
            if reading.is_negative:
                warnings.append(f"Negative on-hand for {reading.upc}: {reading.on_hand}")
            return asdict(reading), warnings
        return self._execute("on-hand", operation)

    def record_adjustment(
        self,
        upc: str,
        base_units_delta: Any,
        adjustment_type: str = "adjust",
        reason: str = "",
        actor: str = "",
        date: Optional[str] = None,
    ) -> ServiceResult:
        def operation() -> Outcome:
            event = self.recorder.record_adjustment(
                upc,
                base_units_delta,
                adjustment_type=adjustment_type,
                reason=reason,
                actor=actor,
                date=date,
            )
            return {"adjustment": event.model_dump()}, []
        return self._execute("inventory-adjust", operation)

    def record_purchase(self, upc: str, qty_purchased: Any, **fields: Any) -> ServiceResult:
        def operation() -> Outcome:
            event = self.recorder.record_purchase(upc, qty_purchased, **fields)
            return {"purchase": event.model_dump(), "quantity": event.quantity}, []
        return self._execute("purchase-add", operation)

    def ingest_sales(
        self,
        date: Optional[str],
        lines: Sequence[Any],
        source: Optional[str] = None,
    ) -> ServiceResult:
        def operation() -> Outcome:
            result = self.sales_ingestor.ingest(date, lines, source=source)
            return result.model_dump(), []
        return self._execute("sales-sync", operation)

    def send_reorder_email(
        self,
        force_level: Any = 0,
        cooldown_minutes: Any = None,
        test_mode: bool = False,
    ) -> ServiceResult:
        def operation() -> Outcome:
            result = self.notifier.send(
                force_level=force_level,
                cooldown_minutes=cooldown_minutes,
                test_mode=test_mode,
            )
            data = {
                "business_date": result.business_date,
                "sent": result.sent,
                "skipped": result.skipped,
                "decision": result.decision.to_dict(),
                "emailed_to": result.recipients,
                "items": result.items,
                "request_id": result.request_id,
                "items_hash": result.items_hash,
                "test": result.test_mode,
                "message": result.message,
            }
            return data, []
        return self._execute("reorder-email", operation)

    def run_daily(self, date: Optional[str] = None) -> ServiceResult:
        """
        Usage recompute (replace) for the date, then the reorder snapshot,
        then the reorder email when anything is flagged. Stops at the first
        failing step and names it.
        """
        started = time.perf_counter()
        day = date or self.calendar.today()
        steps: Dict[str, Any] = {}
        warnings: List[str] = []

        def finish(ok: bool, failed: Optional[ServiceResult] = None, step: Optional[str] = None) -> ServiceResult:
            result = ServiceResult(
                ok=ok,
                scope="daily-run",
                data={"date": day, "steps": steps},
                warnings=warnings,
                error=failed.error if failed else None,
                error_type=failed.error_type if failed else None,
                step=step,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            logger.info("Daily run finished", date=day, ok=ok, failed_step=step)
            return result

        usage = self.recompute_usage(day, WriteMode.REPLACE)
        steps["inventory_usage"] = usage.data
        warnings.extend(usage.warnings)
        if not usage.ok:
            return finish(False, usage, "inventory-usage")

        reorder = self.recompute_reorder()
        steps["reorder_check"] = reorder.data
        warnings.extend(reorder.warnings)
        if not reorder.ok:
            return finish(False, reorder, "reorder-check")

        if reorder.data.get("items_flagged", 0) > 0:
            email = self.send_reorder_email()
            steps["reorder_email"] = email.data
            if not email.ok:
                return finish(False, email, "reorder-email")
        else:
            steps["reorder_email"] = {"skipped": True, "reason": "no_items_flagged"}

        return finish(True)


def build_service(
    settings: Optional[Settings] = None,
    store: Optional[TabularStore] = None,
    calendar: Optional[BusinessCalendar] = None,
    transport: Optional[EmailTransport] = None,
) -> InventoryService:
    """
    Build the service from configuration.

    Args:
        settings: Application settings; defaults to the cached settings
        store: Tabular store; defaults to the configured backend
        calendar: Business calendar; defaults to the configured timezone
        transport: Email transport; defaults to the log-only transport
    """
    settings = settings or get_settings()
    store = store or create_store(settings.store)
    return InventoryService(settings, store, calendar=calendar, transport=transport)
