"""Outbound email message and the sender contract."""

import logging
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class OutboundEmail:
    to: str
    subject: str
    html_body: str


class NotificationSender(Protocol):
    """Delivers a rendered message to an address.

    Returns False (or raises) when delivery failed. Callers do not retry.
    """

    def send(self, message: OutboundEmail) -> bool: ...


class LoggingNotificationSender:
    """Development sender: logs the message instead of delivering it."""

    def send(self, message: OutboundEmail) -> bool:
        logger.info(
            f"Email to {message.to} (not sent, no SMTP host configured): "
            f"{message.subject}\n{message.html_body}"
        )
        return True
