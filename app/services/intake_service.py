"""
app/services/intake_service.py — Orchestrates one contact submission end to end.

Gate stages (caller-visible, terminal):
  1. Rate limit     → RATE_LIMITED
  2. CAPTCHA        → CAPTCHA_REJECTED   (only when captcha_required)
  3. Validation     → SPAM_REJECTED (stored as status=spam) or INVALID
  4. Baseline lead  → ACCEPTED           (committed before admit() returns)

Enrichment (best-effort, invisible to the caller):
  5. Qualify → score → notify → update lead  → ENRICHED | ENRICHMENT_FAILED

A failed enrichment never touches the baseline lead.
"""

import enum
import logging
from concurrent.futures import Executor, Future
from dataclasses import dataclass, field, replace
from typing import Any, Optional, Protocol

from app.ai_engine.processor import QualificationAnalyzer, QualificationResult
from app.config import settings
from app.db.models import LeadStatus
from app.exceptions import EnrichmentFailure, LeadPersistenceError
from app.intake.submission import Submission
from app.intake.validation import ValidationReport, validate_submission
from app.outreach.dispatcher import NotificationDispatcher, NotificationResult
from app.security.captcha import TurnstileVerifier
from app.security.rate_limiter import RateLimitDecision, RateLimiter, client_identity
from app.security.spam import DEFAULT_RULES, SpamRules, analyze_content
from app.services.scoring import LeadScore, ScoreWeights, score_lead

logger = logging.getLogger(__name__)


class LeadStore(Protocol):
    def create(self, fields: dict[str, Any]) -> int:
        ...

    def update(self, lead_id: int, fields: dict[str, Any]) -> None:
        ...


class IntakeState(str, enum.Enum):
    RATE_LIMITED = "rate_limited"
    CAPTCHA_REJECTED = "captcha_rejected"
    SPAM_REJECTED = "spam_rejected"
    INVALID = "invalid"
    ACCEPTED = "accepted"
    ENRICHED = "enriched"
    ENRICHMENT_FAILED = "enrichment_failed"


@dataclass
class EnrichmentOutcome:
    state: IntakeState                                  # ENRICHED or ENRICHMENT_FAILED
    result: Optional[QualificationResult] = None
    score: Optional[LeadScore] = None
    notifications: Optional[NotificationResult] = None
    failure: Optional[EnrichmentFailure] = None


@dataclass
class IntakeDecision:
    state: IntakeState
    lead_id: Optional[int] = None
    retry_after_seconds: Optional[int] = None
    field_errors: dict[str, str] = field(default_factory=dict)
    captcha_error_codes: list[str] = field(default_factory=list)
    enrichment: Optional[EnrichmentOutcome] = None     # set by process() when run inline
    pending: Optional[Future] = None                   # set by process() with an executor

    @property
    def accepted(self) -> bool:
        return self.state == IntakeState.ACCEPTED


class IntakePipeline:
    """
    Args:
        store:            Lead store (create/update). SqlLeadStore over SessionLocal if omitted.
        rate_limiter:     Per-identity limiter; a fresh in-memory one if omitted.
        captcha_verifier: Anything with verify(token, remote_ip) -> CaptchaResult.
        analyzer:         QualificationAnalyzer (LLM-backed by default).
        dispatcher:       NotificationDispatcher for the two emails.
        captcha_required: Whether stage 2 runs (default settings.captcha_required).
        spam_rules:       Spam weights/threshold (threshold from settings by default).
        weights:          Score tables (from settings by default).
        executor:         If given, process() runs enrichment on it instead of inline.
    """

    def __init__(
        self,
        store: Optional[LeadStore] = None,
        rate_limiter: Optional[RateLimiter] = None,
        captcha_verifier: Optional[TurnstileVerifier] = None,
        analyzer: Optional[QualificationAnalyzer] = None,
        dispatcher: Optional[NotificationDispatcher] = None,
        captcha_required: Optional[bool] = None,
        spam_rules: Optional[SpamRules] = None,
        weights: Optional[ScoreWeights] = None,
        executor: Optional[Executor] = None,
    ):
        if store is None:
            from app.db.repository import SqlLeadStore
            from app.db.session import SessionLocal
            store = SqlLeadStore(SessionLocal)

        self.store = store
        self.rate_limiter = rate_limiter or RateLimiter()
        self.captcha_verifier = captcha_verifier or TurnstileVerifier()
        self.analyzer = analyzer or QualificationAnalyzer()
        self.dispatcher = dispatcher or NotificationDispatcher()
        self.captcha_required = (
            captcha_required if captcha_required is not None else settings.captcha_required
        )
        self.spam_rules = spam_rules or replace(DEFAULT_RULES, threshold=settings.spam_score_threshold)
        self.weights = weights or ScoreWeights.from_settings()
        self.executor = executor

    # ── Public API ────────────────────────────────────────────────────────────

    def admit(self, submission: Submission, now: Optional[float] = None) -> IntakeDecision:
        """
        Run the gate stages and store the baseline lead.

        Returns:
            IntakeDecision; ACCEPTED carries the new lead id.

        Raises:
            LeadPersistenceError: the baseline lead could not be stored.
        """
        identity = client_identity(submission.client_ip, submission.user_agent)

        # ── 1. Rate limit ─────────────────────────────────────────────────────
        limit = self.rate_limiter.check(identity, now=now)
        if not limit.allowed:
            return IntakeDecision(
                state=IntakeState.RATE_LIMITED,
                retry_after_seconds=limit.retry_after_seconds,
            )

        # ── 2. CAPTCHA ────────────────────────────────────────────────────────
        captcha_verified = False
        if self.captcha_required:
            if not submission.captcha_token:
                logger.warning("CAPTCHA token missing from %s.", identity)
                return IntakeDecision(
                    state=IntakeState.CAPTCHA_REJECTED,
                    captcha_error_codes=["missing-input-response"],
                )
            captcha = self.captcha_verifier.verify(submission.captcha_token, submission.client_ip)
            if not captcha.success:
                logger.warning("CAPTCHA rejected for %s: %s", identity, captcha.error_codes)
                return IntakeDecision(
                    state=IntakeState.CAPTCHA_REJECTED,
                    captcha_error_codes=list(captcha.error_codes),
                )
            captcha_verified = True

        # ── 3. Validation ─────────────────────────────────────────────────────
        report = validate_submission(submission, spam_rules=self.spam_rules)
        if report.is_spam:
            lead_id = self._store_spam(submission, report, limit, captcha_verified)
            return IntakeDecision(state=IntakeState.SPAM_REJECTED, lead_id=lead_id)
        if not report.ok:
            return IntakeDecision(state=IntakeState.INVALID, field_errors=dict(report.field_errors))

        # ── 4. Baseline lead ──────────────────────────────────────────────────
        fields = submission.baseline_fields()
        fields["status"] = LeadStatus.NEW
        fields["security_check"] = self._security_annotations(submission, limit, captcha_verified)
        lead_id = self.store.create(fields)

        logger.info("Submission accepted as lead %d.", lead_id)
        return IntakeDecision(state=IntakeState.ACCEPTED, lead_id=lead_id)

    def enrich(self, lead_id: int, submission: Submission) -> EnrichmentOutcome:
        """
        Qualify, score, notify, then record the results on the lead.

        Never raises: every failure is logged and returned as ENRICHMENT_FAILED,
        leaving the stored lead as it was.
        """
        analysis = self.analyzer.try_analyze(submission)
        if not analysis.ok:
            return self._failed(lead_id, analysis.failure)
        result = analysis.result

        try:
            score = score_lead(result, self.weights)
        except Exception as exc:
            return self._failed(lead_id, EnrichmentFailure(stage="scoring", detail=repr(exc)))

        notifications = self._notify(submission, result, score, lead_id)

        try:
            self.store.update(lead_id, self._enrichment_fields(result, score, notifications))
        except Exception as exc:
            return self._failed(
                lead_id,
                EnrichmentFailure(stage="persistence", detail=f"{type(exc).__name__}: {exc}"),
                result=result,
                score=score,
                notifications=notifications,
            )

        logger.info(
            "Lead %d enriched: priority=%s score=%d",
            lead_id, result.priority.value, score.total_score,
        )
        return EnrichmentOutcome(
            state=IntakeState.ENRICHED,
            result=result,
            score=score,
            notifications=notifications,
        )

    def process(self, submission: Submission, now: Optional[float] = None) -> IntakeDecision:
        """admit(), then enrichment inline or on the executor for accepted submissions."""
        decision = self.admit(submission, now=now)
        if not decision.accepted:
            return decision

        if self.executor is not None:
            decision.pending = self.executor.submit(self.enrich, decision.lead_id, submission)
        else:
            decision.enrichment = self.enrich(decision.lead_id, submission)
        return decision

    # ── Private helpers ───────────────────────────────────────────────────────

    def _security_annotations(
        self,
        submission: Submission,
        limit: RateLimitDecision,
        captcha_verified: bool,
    ) -> dict[str, Any]:
        return {
            "rate_limit_remaining": limit.remaining,
            "captcha_verified": captcha_verified,
            "spam_score": analyze_content(submission.message, self.spam_rules).score,
        }

    def _store_spam(
        self,
        submission: Submission,
        report: ValidationReport,
        limit: RateLimitDecision,
        captcha_verified: bool,
    ) -> Optional[int]:
        """Keep spam for review. A store failure here doesn't change the verdict."""
        fields = submission.baseline_fields()
        fields["status"] = LeadStatus.SPAM
        fields["security_check"] = {
            "rate_limit_remaining": limit.remaining,
            "captcha_verified": captcha_verified,
            "honeypot_triggered": report.honeypot_triggered,
            "spam_field": report.spam_field,
        }
        fields["spam_detection"] = report.spam_verdict.as_dict() if report.spam_verdict else None

        try:
            lead_id = self.store.create(fields)
        except LeadPersistenceError as exc:
            logger.error("Could not store spam submission: %s", exc)
            return None

        logger.warning("Submission rejected as spam, stored as lead %d.", lead_id)
        return lead_id

    def _notify(
        self,
        submission: Submission,
        result: QualificationResult,
        score: LeadScore,
        lead_id: int,
    ) -> NotificationResult:
        try:
            return self.dispatcher.notify(submission, result, score, lead_id)
        except Exception:
            logger.exception("Notification dispatch failed for lead %d", lead_id)
            return NotificationResult(client_sent=False, admin_sent=False)

    @staticmethod
    def _enrichment_fields(
        result: QualificationResult,
        score: LeadScore,
        notifications: NotificationResult,
    ) -> dict[str, Any]:
        return {
            "ai_priority": result.priority.value,
            "ai_project_type": result.project_type.value,
            "ai_budget_estimate": result.estimated_budget.value,
            "ai_urgency": result.urgency.value,
            "ai_complexity": result.complexity.value,
            "ai_confidence": result.confidence_score,
            "ai_analysis": result.model_dump(mode="json", by_alias=True),
            "ai_score": score.total_score,
            "ai_score_breakdown": score.as_dict(),
            "ai_response_content": notifications.client_body,
            "client_notified": notifications.client_sent,
            "admin_notified": notifications.admin_sent,
        }

    @staticmethod
    def _failed(lead_id: int, failure: EnrichmentFailure, **partial: Any) -> EnrichmentOutcome:
        logger.error(
            "Enrichment failed for lead %d at %s: %s",
            lead_id, failure.stage, failure.detail,
        )
        return EnrichmentOutcome(state=IntakeState.ENRICHMENT_FAILED, failure=failure, **partial)
