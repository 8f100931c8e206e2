"""Notification delivery."""

from driveflow.providers.mail.base import Attachment, Mailer, MailMessage
from driveflow.providers.mail.smtp import SmtpMailer

__all__ = ["Attachment", "MailMessage", "Mailer", "SmtpMailer"]
