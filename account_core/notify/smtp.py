"""SMTP delivery for outbound account emails."""

import logging
import smtplib
from email.message import EmailMessage

from .base import OutboundEmail

logger = logging.getLogger(__name__)


class SmtpNotificationSender:
    """Sends HTML email through an SMTP relay, one connection per message."""

    def __init__(
        self,
        host: str,
        port: int = 587,
        username: str = "",
        password: str = "",
        use_tls: bool = True,
        mail_from: str = "no-reply@localhost",
        timeout: float = 10.0,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.mail_from = mail_from
        self.timeout = timeout

    def build(self, message: OutboundEmail) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = message.subject
        msg["From"] = self.mail_from
        msg["To"] = message.to
        msg.set_content("This message requires an HTML capable email client.")
        msg.add_alternative(message.html_body, subtype="html")
        return msg

    def send(self, message: OutboundEmail) -> bool:
        """Deliver a message.

        Raises:
            smtplib.SMTPException, OSError: On transport failure
        """
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
            if self.use_tls:
                server.starttls()
            if self.username and self.password:
                server.login(self.username, self.password)
            refused = server.send_message(self.build(message))

        if refused:
            logger.warning(f"SMTP relay refused recipients: {list(refused)}")
            return False
        logger.info(f"Email sent to {message.to}: {message.subject}")
        return True
