"""
app/db/models.py — SQLAlchemy ORM models for the inquiry intake system.

Tables:
  - Lead → one accepted (or spam-rejected) contact submission, plus any
           AI enrichment added after it was stored
"""

import enum

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    Float,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase


# ── Base ─────────────────────────────────────────────────────────────────────

class Base(DeclarativeBase):
    pass


# ── Enums ────────────────────────────────────────────────────────────────────

class LeadStatus(str, enum.Enum):
    NEW = "new"
    CONTACTED = "contacted"
    CONVERTED = "converted"
    REJECTED = "rejected"
    SPAM = "spam"


# ── Models ───────────────────────────────────────────────────────────────────

class Lead(Base):
    __tablename__ = "leads"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Submission
    name = Column(String(255), nullable=False)
    email = Column(String(320), nullable=False, index=True)
    company = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    project_type = Column(String(100), nullable=True)
    message = Column(Text, nullable=False)
    source = Column(String(50), nullable=False, default="contact_form")
    client_ip = Column(String(64), nullable=True)

    status = Column(Enum(LeadStatus), default=LeadStatus.NEW, nullable=False, index=True)
    security_check = Column(JSON, nullable=True)          # rate-limit / captcha / spam score at intake
    spam_detection = Column(JSON, nullable=True)          # SpamVerdict, spam leads only

    # AI enrichment — written together, or not at all
    ai_priority = Column(String(20), nullable=True)
    ai_project_type = Column(String(50), nullable=True)
    ai_budget_estimate = Column(String(20), nullable=True)
    ai_urgency = Column(String(20), nullable=True)
    ai_complexity = Column(String(20), nullable=True)
    ai_confidence = Column(Float, nullable=True)
    ai_analysis = Column(JSON, nullable=True)             # full QualificationResult
    ai_score = Column(Integer, nullable=True)             # 0 – 100
    ai_score_breakdown = Column(JSON, nullable=True)      # LeadScore sub-scores
    ai_response_content = Column(Text, nullable=True)     # reply sent to the client

    client_notified = Column(Boolean, nullable=True)
    admin_notified = Column(Boolean, nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self) -> str:
        return f"<Lead id={self.id} status={self.status} score={self.ai_score}>"
