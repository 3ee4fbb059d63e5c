"""
api/schemas.py — Pydantic request/response models for all API endpoints.

These are the API contract — separate from DB ORM models so we can
control exactly what data is exposed over HTTP.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.db.models import LeadStatus


# ── Contact intake ────────────────────────────────────────────────────────────

class ContactRequest(BaseModel):
    """
    The web form payload, as sent. Fields accept any JSON value (null,
    numbers) and are normalised by Submission.from_payload; field rules are
    enforced by the intake pipeline, so every rejection comes back in one shape.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: Any = None
    email: Any = None
    company: Any = None
    project_type: Any = Field(default=None, alias="projectType")
    message: Any = None
    phone: Any = None
    website: Any = None                                     # honeypot
    turnstile_token: Any = Field(default=None, alias="turnstileToken")


class ContactAccepted(BaseModel):
    success: bool = True
    message: str
    lead_id: int


class ContactRejected(BaseModel):
    error: str                                              # rate_limited | captcha_failed | invalid | spam
    message: str
    retry_after: Optional[int] = None
    field_errors: Optional[dict[str, str]] = None


# ── Lead ─────────────────────────────────────────────────────────────────────

class LeadOut(BaseModel):
    id: int
    name: str
    email: str
    company: Optional[str] = None
    phone: Optional[str] = None
    project_type: Optional[str] = None
    message: str
    status: LeadStatus
    source: Optional[str] = None
    security_check: Optional[dict[str, Any]] = None
    spam_detection: Optional[dict[str, Any]] = None
    ai_priority: Optional[str] = None
    ai_project_type: Optional[str] = None
    ai_budget_estimate: Optional[str] = None
    ai_urgency: Optional[str] = None
    ai_complexity: Optional[str] = None
    ai_confidence: Optional[float] = None
    ai_analysis: Optional[dict[str, Any]] = None
    ai_score: Optional[int] = None
    ai_score_breakdown: Optional[dict[str, int]] = None
    ai_response_content: Optional[str] = None
    client_notified: Optional[bool] = None
    admin_notified: Optional[bool] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class LeadStatusUpdate(BaseModel):
    status: LeadStatus = Field(..., description="New lead status")
