"""
app/outreach/mailer.py — The email capability: send(to, RenderedEmail) -> bool.

GmailMailer talks to Gmail over SMTP/SSL with an App Password. It never
raises: a refused, failed, or timed-out send is logged and returned as False,
so the caller can record the outcome and carry on.
"""

import logging
import smtplib
from email.message import EmailMessage
from email.utils import formataddr, make_msgid
from typing import Optional, Protocol

from app.config import settings
from app.outreach.templates import RenderedEmail

logger = logging.getLogger(__name__)

GMAIL_SMTP_HOST = "smtp.gmail.com"
GMAIL_SMTP_PORT = 465  # SSL


class Mailer(Protocol):
    def send(self, to_address: str, email: RenderedEmail) -> bool:
        ...


class GmailMailer:
    """
    Args:
        dry_run:     Print instead of sending (default settings.mailer_dry_run).
        timeout:     SMTP connect/IO timeout in seconds (default settings.smtp_timeout_seconds).
        sender_name: Display name on the From header (default settings.brand_name).
    """

    def __init__(
        self,
        dry_run: Optional[bool] = None,
        timeout: Optional[float] = None,
        sender_name: Optional[str] = None,
    ):
        self.smtp_user = settings.gmail_user
        self.smtp_password = settings.gmail_app_password
        self.dry_run = dry_run if dry_run is not None else settings.mailer_dry_run
        self.timeout = timeout if timeout is not None else settings.smtp_timeout_seconds
        self.sender_name = sender_name or settings.brand_name

    def send(self, to_address: str, email: RenderedEmail) -> bool:
        """True if the message was handed to Gmail (or printed in dry-run)."""
        message = self.build_message(to_address, email)

        if self.dry_run:
            self._print_dry_run(message, email)
            logger.info("DRY RUN: email to %s not sent.", to_address)
            return True

        try:
            with smtplib.SMTP_SSL(GMAIL_SMTP_HOST, GMAIL_SMTP_PORT, timeout=self.timeout) as server:
                server.login(self.smtp_user, self.smtp_password)
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            # OSError covers socket timeouts and refused connections
            logger.error("Failed to send email to %s: %s", to_address, type(exc).__name__)
            return False

        logger.info("Email sent to %s (%s).", to_address, email.subject)
        return True

    def build_message(self, to_address: str, email: RenderedEmail) -> EmailMessage:
        """Plain-text part with an HTML alternative, plus Reply-To when the email sets one."""
        message = EmailMessage()
        message["Subject"] = email.subject
        message["From"] = formataddr((self.sender_name, self.smtp_user))
        message["To"] = to_address
        message["Message-ID"] = make_msgid(domain=self.smtp_user.rpartition("@")[2] or None)
        if email.reply_to:
            message["Reply-To"] = email.reply_to

        message.set_content(email.plain_body)
        message.add_alternative(email.html_body, subtype="html")
        return message

    @staticmethod
    def _print_dry_run(message: EmailMessage, email: RenderedEmail) -> None:
        separator = "─" * 60
        print(f"\n{separator}")
        print("  📧  DRY RUN — Email not sent")
        print(separator)
        for header in ("From", "To", "Reply-To", "Subject"):
            if message[header]:
                print(f"  {header:<8}: {message[header]}")
        print(separator)
        print(email.plain_body)
        print(f"{separator}\n")
