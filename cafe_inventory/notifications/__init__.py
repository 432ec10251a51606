"""
Reorder Notification Module
"""
from .guard import GuardDecision, NotificationDedupGuard, SendReason, evaluate_send
from .notifier import NotificationResult, ReorderNotifier, items_hash
from .transport import EmailMessage, EmailTransport, LogEmailTransport

__all__ = [
    "GuardDecision",
    "NotificationDedupGuard",
    "SendReason",
    "evaluate_send",
    "NotificationResult",
    "ReorderNotifier",
    "items_hash",
    "EmailMessage",
    "EmailTransport",
    "LogEmailTransport",
]
