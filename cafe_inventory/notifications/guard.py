"""
Notification Dedup Guard

Decides whether a reorder email may go out, from the email log alone:

- cooldown: refuse while the latest send is younger than the window
- daily cap: refuse when a send already exists for today's business date

Force level 1 lifts the daily cap, force level 2 lifts both.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, Iterable, Optional

import structlog

from cafe_inventory.exceptions import InputValidationError
from cafe_inventory.inventory.calendar import BusinessCalendar
from cafe_inventory.ledger.models import EmailLogRow
from cafe_inventory.ledger.parsing import norm, parse_timestamp, to_number
from cafe_inventory.ledger.reader import LedgerReader

logger = structlog.get_logger(__name__)

DEFAULT_COOLDOWN_MINUTES = 15


class SendReason(str, Enum):
    """Guard verdicts"""
    OK = "ok"
    COOLDOWN = "cooldown"
    ALREADY_SENT_TODAY = "already_sent_today"


@dataclass
class GuardDecision:
    """Guard verdict plus the log facts it was based on"""
    ok_to_send: bool
    reason: SendReason
    last_sent_at: Optional[datetime] = None
    last_business_date: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok_to_send": self.ok_to_send,
            "reason": self.reason.value,
            "last_sent_at": self.last_sent_at.isoformat() if self.last_sent_at else None,
            "last_business_date": self.last_business_date,
        }


def parse_force_level(value: Any) -> int:
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        raise InputValidationError("force must be 0, 1 or 2", field="force")
    text = norm(value)
    if text not in ("0", "1", "2"):
        raise InputValidationError("force must be 0, 1 or 2", field="force")
    return int(text)


def clamp_cooldown(value: Any) -> int:
    """Cooldown minutes, at least 1; blank means the default"""
    if value is None or norm(value) == "":
        return DEFAULT_COOLDOWN_MINUTES
    return max(1, int(to_number(value)))


def evaluate_send(
    log: Iterable[EmailLogRow],
    business_date: str,
    now: datetime,
    cooldown_minutes: int,
    force_level: int = 0,
) -> GuardDecision:
    """
    Pure guard decision.

    The latest send is the row with the greatest parseable timestamp.
    Unparseable timestamps never trigger the cooldown but their business
    date still counts toward the daily cap. A latest send in the future
    does not trigger the cooldown either.
    """
    rows = list(log)
    last_sent_at: Optional[datetime] = None
    last_business_date: Optional[str] = None

    for row in rows:
        sent_at = parse_timestamp(row.timestamp)
        if sent_at is None:
            continue
        if last_sent_at is None or sent_at > last_sent_at:
            last_sent_at = sent_at
            last_business_date = row.business_date or None

    if last_sent_at is not None and force_level < 2:
        age = now - last_sent_at
        if timedelta(0) <= age < timedelta(minutes=cooldown_minutes):
            return GuardDecision(False, SendReason.COOLDOWN, last_sent_at, last_business_date)

    sent_today = any(row.business_date == business_date for row in rows)
    if sent_today and force_level == 0:
        return GuardDecision(False, SendReason.ALREADY_SENT_TODAY, last_sent_at, last_business_date)

    return GuardDecision(True, SendReason.OK, last_sent_at, last_business_date)


class NotificationDedupGuard:
    """
    Evaluates the guard against the live email log.

    Example:
        guard = NotificationDedupGuard(reader, calendar)
        decision = guard.check(force_level=1)
    """

    def __init__(
        self,
        reader: LedgerReader,
        calendar: BusinessCalendar,
        default_cooldown_minutes: int = DEFAULT_COOLDOWN_MINUTES,
    ):
        self.reader = reader
        self.calendar = calendar
        self.default_cooldown_minutes = max(1, default_cooldown_minutes)

    def check(self, force_level: Any = 0, cooldown_minutes: Any = None) -> GuardDecision:
        level = parse_force_level(force_level)
        if cooldown_minutes is None:
            cooldown = self.default_cooldown_minutes
        else:
            cooldown = clamp_cooldown(cooldown_minutes)

        decision = evaluate_send(
            self.reader.email_log(),
            business_date=self.calendar.today(),
            now=self.calendar.now(),
            cooldown_minutes=cooldown,
            force_level=level,
        )
        logger.info(
            "Reorder email guard evaluated",
            ok_to_send=decision.ok_to_send,
            reason=decision.reason.value,
            force_level=level,
            cooldown_minutes=cooldown,
        )
        return decision
