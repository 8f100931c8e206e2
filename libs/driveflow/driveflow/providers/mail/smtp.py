"""SMTP mailer (implicit TLS)."""

from __future__ import annotations

import asyncio
import logging
import smtplib
import ssl
from email.message import EmailMessage

from driveflow.error_codes import ErrorCode
from driveflow.exceptions import ProviderError
from driveflow.providers.mail.base import Mailer, MailMessage

logger = logging.getLogger(__name__)


class SmtpMailer(Mailer):
    """Send mail through an SMTP_SSL relay.

    With any of user, password or recipient unset the mailer runs dry: the
    message is logged and `send` returns False.
    """

    def __init__(
        self,
        *,
        host: str,
        port: int,
        user: str,
        password: str,
        to: str,
        subject_prefix: str = "",
        timeout: float = 30.0,
    ) -> None:
        self.host = host
        self.port = int(port)
        self.user = str(user or "").strip()
        self.password = str(password or "")
        self.to = str(to or "").strip()
        self.subject_prefix = str(subject_prefix or "").strip()
        self.timeout = float(timeout)

    @property
    def enabled(self) -> bool:
        return bool(self.user and self.password and self.to)

    def _subject(self, subject: str) -> str:
        return f"{self.subject_prefix} {subject}" if self.subject_prefix else subject

    def build(self, message: MailMessage) -> EmailMessage:
        email = EmailMessage()
        email["From"] = self.user
        email["To"] = self.to
        email["Subject"] = self._subject(message.subject)
        email.set_content(message.body)
        for attachment in message.attachments:
            email.add_attachment(
                attachment.content,
                subtype=attachment.mime_subtype,
                filename=attachment.filename,
            )
        return email

    def _send_sync(self, email: EmailMessage) -> None:
        context = ssl.create_default_context()
        with smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout, context=context) as smtp:
            smtp.login(self.user, self.password)
            smtp.send_message(email)

    async def send(self, message: MailMessage) -> bool:
        subject = self._subject(message.subject)
        if not self.enabled:
            logger.warning(
                "mail not configured, skipping send (subject=%s, attachments=%s)",
                subject,
                [a.filename for a in message.attachments],
            )
            logger.info("mail body (dry-run):\n%s", message.body)
            return False

        email = self.build(message)
        try:
            await asyncio.to_thread(self._send_sync, email)
        except (smtplib.SMTPException, OSError) as exc:
            raise ProviderError("smtp", f"send failed: {exc}", error_code=ErrorCode.MAIL_FAILED) from exc
        logger.info("mail sent (to=%s, subject=%s)", self.to, subject)
        return True
