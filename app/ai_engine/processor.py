"""
app/ai_engine/processor.py — LangChain chain implementations for the AI engine.

Public surface:
  analyze_inquiry(submission)               → QualificationResult (raises AnalysisFailed)
  QualificationAnalyzer.try_analyze(...)    → AnalysisOutcome (never raises)
  draft_client_response(submission, result) → str (falls back to a static reply)
  draft_admin_summary(submission, result)   → str (falls back to a static summary)

Model output is validated against QualificationResult at this boundary; a
shape mismatch is a failure, never an untyped blob passed downstream.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from app.ai_engine.prompt_templates import (
    ADMIN_SUMMARY_PROMPT,
    CLIENT_RESPONSE_PROMPT,
    LEAD_ANALYSIS_PROMPT,
)
from app.ai_engine.utils import (
    build_openrouter_llm,
    parse_json_safely,
    response_text,
    truncate_for_context,
)
from app.exceptions import AnalysisFailed, EnrichmentFailure
from app.intake.submission import Submission

logger = logging.getLogger(__name__)


# ── Qualification enums ───────────────────────────────────────────────────────

class Priority(str, enum.Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ProjectType(str, enum.Enum):
    WEB_DEVELOPMENT = "web-development"
    MOBILE_APP = "mobile-app"
    CONSULTATION = "consultation"
    MAINTENANCE = "maintenance"
    E_COMMERCE = "e-commerce"
    CUSTOM_SOFTWARE = "custom-software"
    OTHER = "other"


class BudgetRange(str, enum.Enum):
    UNDER_5K = "under-5k"
    FROM_5K_TO_15K = "5k-15k"
    FROM_15K_TO_50K = "15k-50k"
    OVER_50K = "50k-plus"


class Urgency(str, enum.Enum):
    IMMEDIATE = "immediate"
    WITHIN_MONTH = "within-month"
    PLANNING = "planning"
    EXPLORING = "exploring"


class Complexity(str, enum.Enum):
    SIMPLE = "simple"
    MEDIUM = "medium"
    COMPLEX = "complex"

    @property
    def timeline(self) -> str:
        """Typical delivery window quoted to clients for this complexity."""
        return _TIMELINES[self]


_TIMELINES = {
    Complexity.SIMPLE: "2-4 weeks",
    Complexity.MEDIUM: "4-8 weeks",
    Complexity.COMPLEX: "8-16 weeks",
}


# ── Output models ─────────────────────────────────────────────────────────────

class QualificationResult(BaseModel):
    """Structured qualification of one inquiry. Accepts camelCase keys from the model."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    priority: Priority
    project_type: ProjectType
    estimated_budget: BudgetRange
    urgency: Urgency
    complexity: Complexity
    key_requirements: list[str] = Field(default_factory=list)
    recommended_next_steps: list[str] = Field(default_factory=list)
    risk_factors: list[str] = Field(default_factory=list)
    confidence_score: float = Field(..., ge=0.0, le=1.0)


@dataclass(frozen=True)
class AnalysisOutcome:
    """Either a result or the failure that prevented one."""
    result: Optional[QualificationResult] = None
    failure: Optional[EnrichmentFailure] = None

    @property
    def ok(self) -> bool:
        return self.result is not None


# ── 1. Lead Analysis ──────────────────────────────────────────────────────────

def analyze_inquiry(submission: Submission) -> QualificationResult:
    """
    Ask the LLM to qualify a contact inquiry.

    Args:
        submission: The accepted submission.

    Returns:
        QualificationResult validated against the closed enums.

    Raises:
        AnalysisFailed: On timeout, transport error, unparseable output,
                        or output that doesn't match QualificationResult.
    """
    llm = build_openrouter_llm(temperature=0.1)  # low temp for consistent classification
    chain = LEAD_ANALYSIS_PROMPT | llm

    logger.info("Analyzing inquiry from %s (%s)", submission.name, submission.project_type)

    try:
        response = chain.invoke({
            "name": submission.name,
            "company": submission.company or "Not provided",
            "project_type": submission.project_type,
            "has_phone": "yes" if submission.phone else "no",
            "message": truncate_for_context(submission.message, max_chars=2000),
        })
    except Exception as exc:
        raise AnalysisFailed(f"qualification call failed: {type(exc).__name__}: {exc}") from exc

    raw_text = response_text(response)
    parsed = parse_json_safely(raw_text)

    if not isinstance(parsed, dict):
        logger.error("Lead analysis returned non-object: %s", raw_text[:200])
        raise AnalysisFailed("qualification output is not a JSON object")

    try:
        result = QualificationResult.model_validate(parsed)
    except ValidationError as exc:
        logger.error("Lead analysis output failed validation: %s", exc.errors()[:3])
        raise AnalysisFailed("qualification output does not match the expected shape") from exc

    logger.info(
        "Analysis result: priority=%s budget=%s urgency=%s complexity=%s confidence=%.2f",
        result.priority.value, result.estimated_budget.value, result.urgency.value,
        result.complexity.value, result.confidence_score,
    )
    return result


class QualificationAnalyzer:
    """
    Adapter around the qualification capability.

    Args:
        analyze_fn: Callable doing the actual work; analyze_inquiry by default.
                    Tests inject a stub here.
    """

    def __init__(self, analyze_fn: Optional[Callable[[Submission], QualificationResult]] = None):
        self.analyze_fn = analyze_fn or analyze_inquiry

    def analyze(self, submission: Submission) -> QualificationResult:
        """Raises AnalysisFailed on any failure."""
        try:
            result = self.analyze_fn(submission)
        except AnalysisFailed:
            raise
        except Exception as exc:
            raise AnalysisFailed(f"{type(exc).__name__}: {exc}") from exc
        if not isinstance(result, QualificationResult):
            raise AnalysisFailed(f"expected QualificationResult, got {type(result).__name__}")
        return result

    def try_analyze(self, submission: Submission) -> AnalysisOutcome:
        """Run analyze() and fold any failure into an AnalysisOutcome."""
        try:
            return AnalysisOutcome(result=self.analyze(submission))
        except AnalysisFailed as exc:
            logger.warning("Qualification unavailable: %s", exc)
            return AnalysisOutcome(failure=EnrichmentFailure(stage="qualification", detail=str(exc)))


# ── 2. Client Response ────────────────────────────────────────────────────────

def _fallback_client_response(submission: Submission, result: QualificationResult) -> str:
    company = f" at {submission.company}" if submission.company else ""
    return (
        f"Hi {submission.name},\n\n"
        f"Thank you for reaching out about your {submission.project_type} project{company}. "
        f"We've reviewed your message and projects like this typically take "
        f"{result.complexity.timeline}.\n\n"
        f"We'd love to learn more — reply to this email to book a free consultation "
        f"and we'll walk through scope, timeline, and next steps together."
    )


def draft_client_response(submission: Submission, result: QualificationResult) -> str:
    """
    Generate a personalised reply for the submitter.

    Falls back to a static reply if the LLM call fails, so the client always
    gets an acknowledgment.
    """
    llm = build_openrouter_llm(temperature=0.7)  # higher temp for natural-sounding copy
    chain = CLIENT_RESPONSE_PROMPT | llm

    try:
        response = chain.invoke({
            "name": submission.name,
            "company": submission.company or "Individual/Startup",
            "project_type": submission.project_type,
            "message": truncate_for_context(submission.message, max_chars=1500),
            "priority": result.priority.value,
            "urgency": result.urgency.value,
            "complexity": result.complexity.value,
            "timeline": result.complexity.timeline,
            "key_requirements": ", ".join(result.key_requirements) or "Not specified",
            "next_steps": ", ".join(result.recommended_next_steps) or "Not specified",
        })
        text = response_text(response).strip()
    except Exception as exc:
        logger.warning("Client response draft failed, using fallback: %s", exc)
        return _fallback_client_response(submission, result)

    if not text:
        logger.warning("Client response draft was empty, using fallback.")
        return _fallback_client_response(submission, result)
    return text


# ── 3. Admin Summary ──────────────────────────────────────────────────────────

def draft_admin_summary(submission: Submission, result: QualificationResult) -> str:
    """Short internal briefing on the lead. Static summary on failure."""
    fallback = (
        f"{result.priority.value.capitalize()} priority {result.project_type.value} inquiry "
        f"({result.estimated_budget.value}, {result.urgency.value}). "
        f"Follow up: {', '.join(result.recommended_next_steps) or 'review and reply'}."
    )

    llm = build_openrouter_llm(temperature=0.3)
    chain = ADMIN_SUMMARY_PROMPT | llm

    try:
        response = chain.invoke({
            "name": submission.name,
            "company": submission.company or "Not provided",
            "priority": result.priority.value,
            "project_type": result.project_type.value,
            "budget": result.estimated_budget.value,
            "urgency": result.urgency.value,
            "complexity": result.complexity.value,
            "key_requirements": ", ".join(result.key_requirements) or "None listed",
            "risk_factors": ", ".join(result.risk_factors) or "None identified",
        })
        text = response_text(response).strip()
    except Exception as exc:
        logger.warning("Admin summary draft failed, using fallback: %s", exc)
        return fallback
    return text or fallback
