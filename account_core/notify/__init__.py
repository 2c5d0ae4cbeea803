"""Email notification senders.

AuthWorkflow hands rendered OutboundEmail messages to a NotificationSender.
build_sender() picks SMTP delivery when a host is configured and falls back
to logging messages otherwise.
"""

from ..config import Settings
from .base import LoggingNotificationSender, NotificationSender, OutboundEmail
from .smtp import SmtpNotificationSender


def build_sender(settings: Settings) -> NotificationSender:
    if not settings.smtp_host:
        return LoggingNotificationSender()
    return SmtpNotificationSender(
        host=settings.smtp_host,
        port=settings.smtp_port,
        username=settings.smtp_username,
        password=settings.smtp_password,
        use_tls=settings.smtp_use_tls,
        mail_from=settings.mail_from,
    )


__all__ = [
    "LoggingNotificationSender",
    "NotificationSender",
    "OutboundEmail",
    "SmtpNotificationSender",
    "build_sender",
]
