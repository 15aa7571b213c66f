"""
Outgoing email.

SmtpMessageSender delivers over STARTTLS or implicit SSL. When no SMTP host
is configured it logs the message instead of sending (local development).
"""

import asyncio
import logging
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from shared.config import Settings
from shared.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)

SMTP_TIMEOUT_SECONDS = 30


def redact_email(email: str) -> str:
    """Redact an address for logging."""
    if "@" not in email:
        return "redacted"
    local, domain = email.split("@", 1)
    return f"{local[:2]}***@{domain}"


class SmtpMessageSender:
    """IMessageSender over smtplib."""

    def __init__(
        self,
        host: Optional[str] = None,
        port: int = 587,
        user: Optional[str] = None,
        password: Optional[str] = None,
        use_tls: bool = True,
        from_email: Optional[str] = None,
        from_name: str = "Storefront",
    ):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.use_tls = use_tls
        self.from_email = from_email or user
        self.from_name = from_name

    @classmethod
    def from_settings(cls, settings: Settings) -> "SmtpMessageSender":
        return cls(
            host=settings.smtp_host or None,
            port=settings.smtp_port,
            user=settings.smtp_user or None,
            password=settings.smtp_password or None,
            use_tls=settings.smtp_use_tls,
            from_email=settings.email_from or None,
            from_name=settings.email_from_name,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.host and self.from_email)

    def _build_message(self, to: str, subject: str, text: str, html: str) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{self.from_name} <{self.from_email}>"
        msg["To"] = to
        msg.attach(MIMEText(text, "plain"))
        msg.attach(MIMEText(html, "html"))
        return msg

    def _deliver(self, to: str, msg: MIMEMultipart) -> None:
        context = ssl.create_default_context()
        if self.use_tls:
            with smtplib.SMTP(self.host, self.port, timeout=SMTP_TIMEOUT_SECONDS) as server:
                server.starttls(context=context)
                if self.user and self.password:
                    server.login(self.user, self.password)
                server.sendmail(self.from_email, to, msg.as_string())
        else:
            with smtplib.SMTP_SSL(
                self.host, self.port, context=context, timeout=SMTP_TIMEOUT_SECONDS
            ) as server:
                if self.user and self.password:
                    server.login(self.user, self.password)
                server.sendmail(self.from_email, to, msg.as_string())

    async def send(self, to: str, subject: str, text: str, html: str) -> None:
        """
        Send a message.

        Raises:
            ExternalServiceError: If the SMTP exchange fails
        """
        if not self.is_configured:
            # Dev mode: never print the body, it may hold a login code
            logger.info(f"SMTP not configured, skipping email to {redact_email(to)}: {subject}")
            return

        msg = self._build_message(to, subject, text, html)
        try:
            await asyncio.to_thread(self._deliver, to, msg)
        except (smtplib.SMTPException, ssl.SSLError, OSError) as e:
            logger.error(f"Email delivery to {redact_email(to)} failed: {type(e).__name__}: {e}")
            raise ExternalServiceError(
                "Failed to send email",
                service="smtp",
                details={"error_type": type(e).__name__},
            )

        logger.info(f"Email sent to {redact_email(to)}: {subject}")
