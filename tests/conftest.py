"""
tests/conftest.py — Shared pytest configuration and fixtures.

Sets dummy environment variables BEFORE any app module is imported,
so that pydantic-settings doesn't fail on missing required fields.
"""

import os
import pytest

# ── Set dummy env vars before any app module is imported ─────────────────────
# This runs at collection time, before tests execute.
os.environ.setdefault("OPENROUTER_API_KEY", "test-key")
os.environ.setdefault("OPENROUTER_MODEL", "test-model")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("GMAIL_USER", "sender@uniqubit.ca")
os.environ.setdefault("GMAIL_APP_PASSWORD", "test-password")
os.environ.setdefault("MAILER_DRY_RUN", "true")
os.environ.setdefault("CAPTCHA_REQUIRED", "false")

from sqlalchemy.pool import StaticPool

from app.ai_engine.processor import QualificationResult
from app.db.models import Base
from app.db.repository import SqlLeadStore
from app.db.session import build_engine, build_session_factory
from app.intake.submission import Submission

VALID_MESSAGE = "We need a new website for our bakery with online ordering and a booking calendar."


# ── In-memory DB ──────────────────────────────────────────────────────────────

@pytest.fixture
def session_factory():
    """
    A sessionmaker over a fresh in-memory SQLite database.

    StaticPool keeps one connection so every session (and thread) sees
    the same database.
    """
    engine = build_engine("sqlite:///:memory:", poolclass=StaticPool)
    Base.metadata.create_all(engine)
    factory = build_session_factory(engine)
    try:
        yield factory
    finally:
        engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store(session_factory):
    return SqlLeadStore(session_factory)


# ── Domain objects ────────────────────────────────────────────────────────────

@pytest.fixture
def make_submission():
    """Build a valid Submission, overriding any field by keyword."""
    def _make(**overrides) -> Submission:
        fields = {
            "name": "Jane Doe",
            "email": "jane@acme.io",
            "project_type": "web-development",
            "message": VALID_MESSAGE,
            "company": "Acme Bakery",
            "client_ip": "203.0.113.7",
            "user_agent": "Mozilla/5.0",
        }
        fields.update(overrides)
        return Submission(**fields)
    return _make


@pytest.fixture
def submission(make_submission):
    return make_submission()


@pytest.fixture
def qualification():
    """The high-value result from the scoring walkthrough: total score 99."""
    return QualificationResult.model_validate({
        "priority": "high",
        "projectType": "web-development",
        "estimatedBudget": "50k-plus",
        "urgency": "immediate",
        "complexity": "complex",
        "keyRequirements": ["online ordering", "booking calendar"],
        "recommendedNextSteps": ["schedule discovery call"],
        "riskFactors": ["tight deadline"],
        "confidenceScore": 0.9,
    })
