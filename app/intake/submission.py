"""
app/intake/submission.py — The raw contact submission as received.

Submission is immutable once built. from_payload() turns the web form's JSON
(camelCase keys) into one, stripping whitespace and mapping blank optional
fields to None. The honeypot is kept exactly as sent. No validation happens
here; see validation.py.
"""

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class Submission:
    name: str
    email: str
    project_type: str
    message: str
    company: Optional[str] = None
    phone: Optional[str] = None
    website: str = ""                       # honeypot, must stay empty
    captcha_token: Optional[str] = None
    client_ip: Optional[str] = None
    user_agent: Optional[str] = None

    @classmethod
    def from_payload(
        cls,
        payload: dict[str, Any],
        client_ip: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> "Submission":
        """Build a Submission from a form payload. Unknown keys are ignored."""
        return cls(
            name=_text(payload.get("name")),
            email=_text(payload.get("email")),
            project_type=_text(payload.get("projectType", payload.get("project_type"))),
            message=_text(payload.get("message")),
            company=_text(payload.get("company")) or None,
            phone=_text(payload.get("phone")) or None,
            website=_raw(payload.get("website")),
            captcha_token=_text(payload.get("turnstileToken", payload.get("captcha_token"))) or None,
            client_ip=client_ip,
            user_agent=user_agent,
        )

    def baseline_fields(self) -> dict[str, Any]:
        """Columns stored on the Lead for this submission."""
        return {
            "name": self.name,
            "email": self.email,
            "company": self.company,
            "phone": self.phone,
            "project_type": self.project_type,
            "message": self.message,
            "client_ip": self.client_ip,
        }


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _raw(value: Any) -> str:
    # Honeypot: any content at all, whitespace included, counts as filled
    if value is None:
        return ""
    return str(value)
