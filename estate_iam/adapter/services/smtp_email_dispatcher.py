import asyncio
import logging
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from estate_iam.app.services.email_dispatcher import IEmailDispatcher

logger = logging.getLogger(__name__)


def redact_email(email: str) -> str:
    """Redact an email address for logging"""
    if "@" not in email:
        return "redacted"
    local, domain = email.split("@", 1)
    return f"{local[:2]}***@{domain}"


class SmtpEmailDispatcher(IEmailDispatcher):
    """
    SMTP email transport.

    Supports:
    - Implicit SSL (port 465) or STARTTLS
    - Fallback to logging the subject when no host is configured (dev mode)

    smtplib is blocking, so each message is sent from a worker thread.
    """

    def __init__(
        self,
        *,
        smtp_host: Optional[str] = None,
        smtp_port: int = 465,
        smtp_user: Optional[str] = None,
        smtp_password: Optional[str] = None,
        smtp_use_tls: bool = False,
        from_email: Optional[str] = None,
        timeout: float = 10.0,
    ):
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_password = smtp_password
        self.smtp_use_tls = smtp_use_tls
        self.from_email = from_email or smtp_user
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.smtp_host and self.from_email)

    async def send(self, to: str, subject: str, html: str) -> bool:
        if not self.is_configured:
            # Body is not logged: it carries codes and reset links
            logger.info(f"Email dev mode, not sent: to={redact_email(to)} subject={subject!r}")
            return True
        return await asyncio.to_thread(self._send_sync, to, subject, html)

    def _send_sync(self, to: str, subject: str, html: str) -> bool:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.from_email
        msg["To"] = to
        msg.attach(MIMEText(html, "html"))

        context = ssl.create_default_context()
        try:
            if self.smtp_use_tls:
                with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=self.timeout) as server:
                    server.starttls(context=context)
                    self._login(server)
                    server.sendmail(self.from_email, to, msg.as_string())
            else:
                with smtplib.SMTP_SSL(
                    self.smtp_host, self.smtp_port, context=context, timeout=self.timeout
                ) as server:
                    self._login(server)
                    server.sendmail(self.from_email, to, msg.as_string())
        except (smtplib.SMTPException, ssl.SSLError, OSError) as e:
            logger.error(
                f"Email send failed: to={redact_email(to)} host={self.smtp_host} "
                f"error={type(e).__name__}: {e}"
            )
            return False

        logger.info(f"Email sent: to={redact_email(to)} subject={subject!r}")
        return True

    def _login(self, server: smtplib.SMTP) -> None:
        if self.smtp_user and self.smtp_password:
            server.login(self.smtp_user, self.smtp_password)
