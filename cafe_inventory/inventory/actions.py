"""
Action State Tracker

Append-only log of shopping-list actions. Hide state is never stored: it is
derived by replaying one business date of the log, where the latest action
per UPC wins and ``undo`` is just another fact.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set

import structlog

from cafe_inventory.exceptions import InputValidationError
from cafe_inventory.inventory.calendar import BusinessCalendar
from cafe_inventory.ledger.models import ShoppingAction, ShoppingActionEvent
from cafe_inventory.ledger.parsing import is_iso_date, norm, normalize_upc
from cafe_inventory.ledger.reader import LedgerReader
from cafe_inventory.ledger.writer import LedgerWriter

logger = structlog.get_logger(__name__)

RESET_NOTE = "reset-today"


def latest_actions(events: Iterable[ShoppingActionEvent], date: str) -> Dict[str, ShoppingAction]:
    """
    Latest recognised action per UPC for one date.

    Events are taken in append order, so on equal dates the physically last
    row wins.
    """
    latest: Dict[str, ShoppingAction] = {}
    for event in events:
        if event.date != date or not event.upc:
            continue
        action = event.parsed_action
        if action is None:
            continue
        latest[event.upc] = action
    return latest


def hidden_upcs(events: Iterable[ShoppingActionEvent], date: str) -> Set[str]:
    """UPCs whose latest action on ``date`` is purchased, dismissed or snoozed"""
    return {upc for upc, action in latest_actions(events, date).items() if action.hides}


def parse_action(value) -> ShoppingAction:
    if isinstance(value, ShoppingAction):
        return value
    text = norm(value).lower()
    try:
        return ShoppingAction(text)
    except ValueError:
        allowed = ", ".join(a.value for a in ShoppingAction)
        raise InputValidationError(
            f"Invalid action '{text}'. Allowed: {allowed}", field="action"
        ) from None


@dataclass
class ResetResult:
    """Outcome of a reset-today sweep"""
    date: str
    upcs: List[str] = field(default_factory=list)
    appended: int = 0
    dry_run: bool = False


class ActionStateTracker:
    """
    Records shopping actions and answers hide-state questions.

    Example:
        tracker = ActionStateTracker(reader, writer, calendar)
        tracker.record("egg", "dismissed")
        tracker.hidden()        # {"EGG"}
    """

    def __init__(self, reader: LedgerReader, writer: LedgerWriter, calendar: BusinessCalendar):
        self.reader = reader
        self.writer = writer
        self.calendar = calendar

    def record(
        self,
        upc: str,
        action,
        note: str = "",
        actor: str = "",
        date: Optional[str] = None,
    ) -> ShoppingActionEvent:
        """
        Validate and append one action. Nothing is written when validation fails.

        Args:
            upc: Product key (normalized)
            action: purchased, dismissed, snoozed or undo
            note: Free text
            actor: Who recorded it
            date: Business date; defaults to today
        """
        key = normalize_upc(upc)
        if not key:
            raise InputValidationError("Missing upc", field="upc")
        parsed = parse_action(action)
        day = norm(date) or self.calendar.today()
        if not is_iso_date(day):
            raise InputValidationError("date must be YYYY-MM-DD", field="date")

        event = ShoppingActionEvent(
            timestamp=self.calendar.timestamp(),
            date=day,
            upc=key,
            action=parsed,
            note=norm(note),
            actor=norm(actor),
        )
        self.writer.append_action(event.model_dump())
        logger.info("Shopping action recorded", upc=key, action=parsed.value, date=day, actor=event.actor)
        return event

    def hidden(self, date: Optional[str] = None) -> Set[str]:
        return hidden_upcs(self.reader.shopping_actions(), date or self.calendar.today())

    def reset_today(self, dry_run: bool = False, actor: str = "") -> ResetResult:
        """
        Unhide everything hidden today by appending one ``undo`` per UPC.

        A dry run only reports the UPCs that would be restored.
        """
        today = self.calendar.today()
        upcs = sorted(self.hidden(today))
        result = ResetResult(date=today, upcs=upcs, dry_run=dry_run)
        if dry_run or not upcs:
            return result

        timestamp = self.calendar.timestamp()
        rows = [
            ShoppingActionEvent(
                timestamp=timestamp,
                date=today,
                upc=upc,
                action=ShoppingAction.UNDO,
                note=RESET_NOTE,
                actor=norm(actor),
            ).model_dump()
            for upc in upcs
        ]
        result.appended = self.writer.append_actions(rows)
        logger.info("Hidden items restored for today", date=today, restored=result.appended)
        return result
