"""
app/exceptions.py — Error taxonomy for the intake pipeline.

Gate rejections (rate limit, CAPTCHA, invalid, spam) are returned as values,
not raised. What lives here:
  - ConfigurationError    → fatal at startup
  - AnalysisFailed        → the qualification model could not produce a result
  - LeadPersistenceError  → the baseline lead could not be stored
  - EnrichmentFailure     → logged record of a best-effort stage that failed
"""

from dataclasses import dataclass


class IntakeError(Exception):
    """Base class for all intake pipeline errors."""


class ConfigurationError(IntakeError):
    """Required configuration is missing or inconsistent."""


class AnalysisFailed(IntakeError):
    """The qualification capability failed, timed out, or returned a bad shape."""


class LeadPersistenceError(IntakeError):
    """The lead store rejected a create or update."""


@dataclass(frozen=True)
class EnrichmentFailure:
    """Which enrichment stage failed and why. Never shown to the submitter."""
    stage: str          # "qualification" | "scoring" | "notification" | "persistence"
    detail: str
