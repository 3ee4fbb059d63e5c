"""
app/outreach/dispatcher.py — Sends the two notifications for a qualified lead.

  1. Personalised acknowledgment → the submitter
  2. New-lead alert              → the operations inbox

The sends are independent: a failure drafting, rendering, or sending one
never stops the other, and nothing here touches the stored lead.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from app.ai_engine.processor import QualificationResult, draft_admin_summary, draft_client_response
from app.config import settings
from app.intake.submission import Submission
from app.outreach.mailer import GmailMailer, Mailer
from app.outreach.templates import render_admin_alert, render_client_acknowledgment
from app.services.scoring import LeadScore

logger = logging.getLogger(__name__)

Drafter = Callable[[Submission, QualificationResult], str]


@dataclass(frozen=True)
class NotificationResult:
    client_sent: bool
    admin_sent: bool
    client_body: Optional[str] = None       # drafted reply, stored on the lead


class NotificationDispatcher:
    """
    Args:
        mailer:          Email capability; GmailMailer() if omitted.
        admin_email:     Operations inbox (default settings.admin_email).
        admin_base_url:  Dashboard base URL for lead links.
        draft_reply:     Writes the client reply body (LLM by default).
        draft_summary:   Writes the admin summary (LLM by default).
    """

    def __init__(
        self,
        mailer: Optional[Mailer] = None,
        admin_email: Optional[str] = None,
        admin_base_url: Optional[str] = None,
        draft_reply: Optional[Drafter] = None,
        draft_summary: Optional[Drafter] = None,
        sender_name: Optional[str] = None,
    ):
        self.mailer = mailer or GmailMailer()
        self.admin_email = admin_email or settings.admin_email
        self.admin_base_url = admin_base_url or settings.admin_base_url
        self.draft_reply = draft_reply or draft_client_response
        self.draft_summary = draft_summary or draft_admin_summary
        self.sender_name = sender_name or settings.brand_name

    def notify(
        self,
        submission: Submission,
        result: QualificationResult,
        score: LeadScore,
        lead_id: int,
    ) -> NotificationResult:
        """Attempt both sends; report which went through."""
        client_sent, client_body = self._notify_client(submission, result)
        admin_sent = self._notify_admin(submission, result, score, lead_id)

        logger.info(
            "Notifications for lead %d: client=%s admin=%s",
            lead_id, client_sent, admin_sent,
        )
        return NotificationResult(client_sent=client_sent, admin_sent=admin_sent, client_body=client_body)

    def _notify_client(self, submission: Submission, result: QualificationResult) -> tuple[bool, Optional[str]]:
        try:
            body = self.draft_reply(submission, result)
            email = render_client_acknowledgment(submission, result, body, sender_name=self.sender_name)
            return self.mailer.send(submission.email, email), body
        except Exception:
            logger.exception("Client acknowledgment failed for %s", submission.email)
            return False, None

    def _notify_admin(
        self,
        submission: Submission,
        result: QualificationResult,
        score: LeadScore,
        lead_id: int,
    ) -> bool:
        try:
            summary = self.draft_summary(submission, result)
            email = render_admin_alert(
                submission, result, score, lead_id,
                base_url=self.admin_base_url,
                summary=summary,
                sender_name=self.sender_name,
            )
            return self.mailer.send(self.admin_email, email)
        except Exception:
            logger.exception("Admin alert failed for lead %d", lead_id)
            return False
