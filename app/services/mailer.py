"""
Outbound email — OTP delivery over SMTP.

``send_otp_email`` never raises: every failure is logged and reported
as ``False`` so callers can treat delivery as best-effort.
"""

from __future__ import annotations

import asyncio
import logging
import smtplib
from email.message import EmailMessage

from app.core.config import settings

logger = logging.getLogger(__name__)

_OTP_TEMPLATE = """\
Hello {name},

Please use the following code to verify your email address:

    {code}

This code expires in {minutes} minutes.
If you didn't request this verification, please ignore this email.
"""


class EmailSender:
    """SMTP-backed sender configured from ``settings``."""

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool | None = None,
        sender: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self.host = host if host is not None else settings.SMTP_HOST
        self.port = port or settings.SMTP_PORT
        self.username = username if username is not None else settings.SMTP_USERNAME
        self.password = password if password is not None else settings.SMTP_PASSWORD
        self.use_tls = settings.SMTP_USE_TLS if use_tls is None else use_tls
        self.sender = sender or settings.EMAIL_FROM
        self.timeout = timeout or settings.SMTP_TIMEOUT_SECONDS

    def _build_otp_message(self, to: str, code: str, display_name: str) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = "Email Verification OTP"
        msg["From"] = self.sender
        msg["To"] = to
        msg.set_content(
            _OTP_TEMPLATE.format(
                name=display_name or to,
                code=code,
                minutes=settings.OTP_EXPIRE_MINUTES,
            )
        )
        return msg

    def _deliver(self, msg: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            if self.use_tls:
                smtp.starttls()
            if self.username and self.password:
                smtp.login(self.username, self.password)
            smtp.send_message(msg)

    async def send_otp_email(self, to: str, code: str, display_name: str) -> bool:
        if not self.host:
            logger.warning("SMTP_HOST not configured — OTP email to %s not sent", to)
            return False
        msg = self._build_otp_message(to, code, display_name)
        try:
            await asyncio.to_thread(self._deliver, msg)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Failed to send OTP email to %s: %s", to, exc)
            return False
        logger.info("OTP email sent to %s", to)
        return True


_default_sender = EmailSender()


def get_email_sender() -> EmailSender:
    """FastAPI dependency — the process-wide email sender."""
    return _default_sender
