"""
Email Transport

Delivery sits behind a small interface. The default transport only logs
the message; a deployment plugs in its provider by subclassing.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List

import structlog

logger = structlog.get_logger(__name__)


@dataclass
class EmailMessage:
    """Rendered email ready for delivery"""
    sender: str
    recipients: List[str]
    subject: str
    html: str
    headers: Dict[str, str] = field(default_factory=dict)


class EmailTransport(ABC):
    """Delivers rendered messages"""

    @abstractmethod
    def send(self, message: EmailMessage) -> Dict[str, Any]:
        """Send ``message`` and return provider metadata"""


class LogEmailTransport(EmailTransport):
    """Writes the message to the log instead of delivering it"""

    def send(self, message: EmailMessage) -> Dict[str, Any]:
        logger.info(
            "Email dispatched to log transport",
            sender=message.sender,
            recipients=len(message.recipients),
            subject=message.subject,
        )
        return {"transport": "log", "delivered": False}
