"""
app/intake/validation.py — Structural validation of a contact submission.

Three outcomes, checked in this order:
  1. Honeypot filled      → bot; treated exactly like spam
  2. Company or message trips the spam analyzer → spam
  3. Field rules broken   → ordinary validation errors for the caller

A message over the length limit skips the spam analyzer and is reported
as a field error.

Spam and honeypot results are never surfaced as field errors, so an
automated submitter learns nothing about which rule caught it.
"""

import logging
import re
from dataclasses import dataclass, field, replace
from typing import Iterable, Optional

import phonenumbers
from disposable_email_domains import blocklist as DISPOSABLE_DOMAINS
from pydantic import BaseModel, EmailStr, Field, ValidationError, field_validator

from app.config import settings
from app.intake.submission import Submission
from app.security.spam import DEFAULT_RULES, SpamRules, SpamVerdict, analyze_content

logger = logging.getLogger(__name__)

NAME_PATTERN = re.compile(r"^[a-zA-Z\s'-]+$")
DEFAULT_PHONE_REGION = "US"
MAX_EMAIL_LENGTH = 254
MAX_MESSAGE_LENGTH = 2000


# ── Field rules ───────────────────────────────────────────────────────────────

class ContactForm(BaseModel):
    """Field-level rules for a contact submission (spam checks excluded)."""

    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    company: Optional[str] = Field(default=None, max_length=200)
    project_type: str = Field(..., min_length=1, max_length=50)
    message: str = Field(..., min_length=10, max_length=MAX_MESSAGE_LENGTH)
    phone: Optional[str] = Field(default=None, max_length=25)

    @field_validator("email", mode="before")
    @classmethod
    def email_length(cls, value):
        if isinstance(value, str) and len(value) > MAX_EMAIL_LENGTH:
            raise ValueError("Email too long")
        return value

    @field_validator("name")
    @classmethod
    def name_characters(cls, value: str) -> str:
        if not NAME_PATTERN.match(value):
            raise ValueError("Name contains invalid characters")
        return value

    @field_validator("phone")
    @classmethod
    def phone_is_possible(cls, value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        try:
            parsed = phonenumbers.parse(value, DEFAULT_PHONE_REGION)
        except phonenumbers.NumberParseException:
            raise ValueError("Please enter a valid phone number")
        if not phonenumbers.is_possible_number(parsed):
            raise ValueError("Please enter a valid phone number")
        return value


# Friendlier messages for pydantic's built-in constraint errors
_FIELD_MESSAGES = {
    ("name", "string_too_short"): "Name must be at least 2 characters",
    ("name", "string_too_long"): "Name too long",
    ("email", "value_error"): "Please enter a valid email address",
    ("email", "string_too_long"): "Email too long",
    ("company", "string_too_long"): "Company name too long",
    ("project_type", "string_too_short"): "Please select a project type",
    ("project_type", "string_too_long"): "Project type too long",
    ("message", "string_too_short"): "Message must be at least 10 characters",
    ("message", "string_too_long"): "Message too long",
    ("phone", "string_too_long"): "Phone number too long",
}


# ── Report ────────────────────────────────────────────────────────────────────

@dataclass
class ValidationReport:
    ok: bool
    field_errors: dict[str, str] = field(default_factory=dict)
    honeypot_triggered: bool = False
    spam_detected: bool = False
    spam_field: Optional[str] = None
    spam_verdict: Optional[SpamVerdict] = None

    @property
    def is_spam(self) -> bool:
        return self.honeypot_triggered or self.spam_detected


# ── Helpers ───────────────────────────────────────────────────────────────────

def is_disposable_email(email: str, extra_domains: Iterable[str] = ()) -> bool:
    """True if the address uses a known throwaway-mail domain."""
    domain = email.rsplit("@", 1)[-1].strip().lower()
    if not domain:
        return False
    return domain in DISPOSABLE_DOMAINS or domain in {d.lower() for d in extra_domains}


def _error_message(error: dict) -> str:
    loc = error["loc"][0] if error.get("loc") else ""
    mapped = _FIELD_MESSAGES.get((loc, error["type"]))
    if mapped:
        return mapped
    message = error.get("msg", "Invalid value")
    # pydantic prefixes custom ValueErrors with "Value error, "
    return message.removeprefix("Value error, ")


# ── Public API ────────────────────────────────────────────────────────────────

def validate_submission(
    submission: Submission,
    spam_rules: SpamRules = DEFAULT_RULES,
    extra_disposable_domains: Optional[Iterable[str]] = None,
) -> ValidationReport:
    """
    Validate a submission's fields, honeypot, and embedded spam signals.

    Args:
        submission:               The raw submission.
        spam_rules:               Rules passed to the spam analyzer.
        extra_disposable_domains: Additional throwaway-mail domains to block
                                  (defaults to settings.extra_disposable_domains).

    Returns:
        ValidationReport. ok is True only if nothing tripped.
    """
    if submission.website:
        logger.warning("Honeypot field filled — treating submission as automated.")
        return ValidationReport(
            ok=False,
            honeypot_triggered=True,
            spam_verdict=SpamVerdict(
                is_spam=True, confidence=100, score=spam_rules.threshold,
                reasons=("Honeypot field filled",),
            ),
        )

    # The length band describes messages; a short company name is not a signal
    company_rules = replace(spam_rules, too_short_weight=0)
    for field_name, rules in (("company", company_rules), ("message", spam_rules)):
        value = getattr(submission, field_name)
        if not value:
            continue
        # Over-long messages are a field error, not a spam signal
        if field_name == "message" and len(value) > MAX_MESSAGE_LENGTH:
            continue
        verdict = analyze_content(value, rules)
        if verdict.is_spam:
            logger.warning(
                "Spam detected in %s (confidence=%d): %s",
                field_name, verdict.confidence, list(verdict.reasons),
            )
            return ValidationReport(
                ok=False, spam_detected=True, spam_field=field_name, spam_verdict=verdict,
            )

    field_errors: dict[str, str] = {}
    try:
        ContactForm(
            name=submission.name,
            email=submission.email,
            company=submission.company,
            project_type=submission.project_type,
            message=submission.message,
            phone=submission.phone,
        )
    except ValidationError as exc:
        for error in exc.errors():
            loc = str(error["loc"][0]) if error.get("loc") else "__root__"
            field_errors.setdefault(loc, _error_message(error))

    if extra_disposable_domains is None:
        extra_disposable_domains = settings.extra_disposable_domains
    if "email" not in field_errors and is_disposable_email(submission.email, extra_disposable_domains):
        field_errors["email"] = "Disposable email addresses are not allowed"

    if field_errors:
        logger.info("Submission failed validation: %s", sorted(field_errors))
        return ValidationReport(ok=False, field_errors=field_errors)

    return ValidationReport(ok=True)
