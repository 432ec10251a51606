"""
Reorder Notifier

Emails the merged shopping list when the dedup guard allows it, then
appends one row to the email log. The log row carries a short content hash
so an operator can tell that two sends carried identical items.
"""

import hashlib
import html
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import structlog

from cafe_inventory.config.settings import NotificationSettings
from cafe_inventory.exceptions import NotificationError
from cafe_inventory.inventory.calendar import BusinessCalendar
from cafe_inventory.inventory.shopping import ShoppingListMerger
from cafe_inventory.ledger.models import ShoppingListRow
from cafe_inventory.ledger.parsing import format_quantity
from cafe_inventory.ledger.reader import LedgerReader
from cafe_inventory.ledger.writer import LedgerWriter
from cafe_inventory.notifications.guard import GuardDecision, NotificationDedupGuard
from cafe_inventory.notifications.transport import EmailMessage, EmailTransport

logger = structlog.get_logger(__name__)


@dataclass
class NotificationResult:
    """What happened to one reorder email request"""
    decision: GuardDecision
    business_date: str
    test_mode: bool = False
    sent: bool = False
    items: int = 0
    recipients: int = 0
    request_id: Optional[str] = None
    items_hash: Optional[str] = None
    message: str = ""
    send_result: Dict[str, Any] = field(default_factory=dict)

    @property
    def skipped(self) -> bool:
        return not self.decision.ok_to_send


def items_hash(rows: Sequence[ShoppingListRow]) -> str:
    """First 16 hex chars of sha256 over the sorted ``upc:qty`` pairs"""
    pairs = sorted(f"{r.upc}:{format_quantity(r.order_quantity)}" for r in rows)
    return hashlib.sha256("|".join(pairs).encode("utf-8")).hexdigest()[:16]


def build_subject(count: int, test_mode: bool = False) -> str:
    prefix = "[TEST] " if test_mode else ""
    return f"{prefix}Shopping List ({count} item{'' if count == 1 else 's'})"


def render_item(row: ShoppingListRow) -> str:
    e = html.escape
    parts = [
        f"<strong>{e(row.product_name or row.upc)}</strong> ({e(row.upc)})",
        f"On hand: {format_quantity(row.on_hand_base_units or 0)} {e(row.base_unit or 'each')}",
        f"Reorder @ {format_quantity(row.reorder_point or 0)}",
    ]
    if (row.par_level or 0) > 0:
        parts.append(f"Par: {format_quantity(row.par_level)}")
    parts.append(f"Order: <strong>{format_quantity(row.order_quantity)}</strong>")
    if row.preferred_vendor:
        parts.append(e(row.preferred_vendor))
    if row.default_location:
        parts.append(e(row.default_location))
    if row.note:
        parts.append(f"<strong>NOTE:</strong> {e(row.note)}")
    return "<li>" + " &bull; ".join(parts) + "</li>"


def render_html(
    rows: Sequence[ShoppingListRow],
    business_date: str,
    generated_at: str,
    request_id: str,
    content_hash: str,
    test_mode: bool = False,
) -> str:
    title = "Shopping List (TEST MODE)" if test_mode else "Shopping List"
    items_html = "".join(render_item(r) for r in rows)
    return (
        f"<h2>{title}</h2>"
        f"<p><strong>Business date:</strong> {html.escape(business_date)}</p>"
        f"<p><strong>Generated:</strong> {html.escape(generated_at)}</p>"
        f"<ul>{items_html}</ul>"
        f'<p style="opacity:0.7;">Request: {request_id} &bull; Hash: {content_hash}</p>'
    )


class ReorderNotifier:
    """
    Guarded reorder email.

    Example:
        notifier = ReorderNotifier(reader, writer, merger, guard, transport, calendar, settings)
        result = notifier.send(force_level=0)
    """

    def __init__(
        self,
        reader: LedgerReader,
        writer: LedgerWriter,
        merger: ShoppingListMerger,
        guard: NotificationDedupGuard,
        transport: EmailTransport,
        calendar: BusinessCalendar,
        settings: NotificationSettings,
    ):
        self.reader = reader
        self.writer = writer
        self.merger = merger
        self.guard = guard
        self.transport = transport
        self.calendar = calendar
        self.settings = settings

    def recipients(self) -> List[str]:
        """Subscriber addresses, falling back to the configured list"""
        emails = self.reader.subscriber_emails()
        if emails:
            return emails
        return [r.strip() for r in self.settings.recipients if "@" in r]

    def send(
        self,
        force_level: Any = 0,
        cooldown_minutes: Any = None,
        test_mode: bool = False,
    ) -> NotificationResult:
        business_date = self.calendar.today()
        decision = self.guard.check(force_level=force_level, cooldown_minutes=cooldown_minutes)
        result = NotificationResult(decision=decision, business_date=business_date, test_mode=test_mode)

        if not decision.ok_to_send:
            result.message = f"Skipped: {decision.reason.value}"
            return result

        emails = self.recipients()
        if not emails:
            raise NotificationError("No subscriber emails found")

        # Test mode shows the full merged list so hide state cannot mask it
        rows = self.merger.build(include_hidden=test_mode).rows
        if not rows:
            result.message = "No items flagged. Nothing emailed."
            logger.info("Reorder email not sent: empty shopping list", business_date=business_date)
            return result

        request_id = str(uuid.uuid4())
        content_hash = items_hash(rows)
        message = EmailMessage(
            sender=self.settings.sender,
            recipients=emails,
            subject=build_subject(len(rows), test_mode),
            html=render_html(
                rows,
                business_date=business_date,
                generated_at=self.calendar.local_display(),
                request_id=request_id,
                content_hash=content_hash,
                test_mode=test_mode,
            ),
            headers={"X-Request-ID": request_id},
        )
        result.send_result = self.transport.send(message)

        actor = f"{self.settings.actor}_test" if test_mode else self.settings.actor
        self.writer.append_email_log({
            "timestamp": self.calendar.timestamp(),
            "business_date": business_date,
            "items": len(rows),
            "recipients": len(emails),
            "actor": actor,
            "request_id": request_id,
            "items_hash": content_hash,
        })

        result.sent = True
        result.items = len(rows)
        result.recipients = len(emails)
        result.request_id = request_id
        result.items_hash = content_hash
        result.message = f"Emailed {len(rows)} items to {len(emails)} recipients"
        logger.info(
            "Reorder email sent",
            business_date=business_date,
            items=len(rows),
            recipients=len(emails),
            request_id=request_id,
            items_hash=content_hash,
            test_mode=test_mode,
        )
        return result
