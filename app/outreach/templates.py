"""
app/outreach/templates.py — Email template rendering.

Two notifications go out for every qualified inquiry:
  - render_client_acknowledgment(): personalised reply to the submitter
  - render_admin_alert():           internal new-lead alert with a link to the record

Both wrap their content in render_email(), which builds the HTML shell and
keeps a plain-text body alongside. Anything the submitter typed is HTML-escaped.
"""

from dataclasses import dataclass
from html import escape
from typing import Optional

from app.ai_engine.processor import QualificationResult
from app.intake.submission import Submission
from app.services.scoring import LeadScore


@dataclass
class RenderedEmail:
    """Final email ready to be sent — subject, HTML body, plain-text body."""
    subject: str
    html_body: str
    plain_body: str
    reply_to: Optional[str] = None


def _paragraphs(plain_body: str) -> str:
    """Convert plain text lines to escaped HTML paragraphs."""
    return "\n".join(
        f"<p>{escape(line)}</p>" if line.strip() else "<br>"
        for line in plain_body.strip().splitlines()
    )


def render_email(
    subject: str,
    plain_body: str,
    sender_name: str = "uniQubit",
    extra_html: str = "",
    reply_to: Optional[str] = None,
) -> RenderedEmail:
    """
    Wrap a plain-text email in a clean HTML template.

    Args:
        subject:     Email subject line.
        plain_body:  Plain-text body; escaped and split into paragraphs.
        sender_name: Name to sign off with.
        extra_html:  Pre-built (already escaped) HTML appended after the body.
        reply_to:    Address replies should go to, if not the sender.

    Returns:
        RenderedEmail with subject, HTML body, and plain-text body.
    """
    html_body = f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{escape(subject)}</title>
  <style>
    body {{
      font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', sans-serif;
      font-size: 15px;
      line-height: 1.6;
      color: #1a1a1a;
      background: #ffffff;
      margin: 0;
      padding: 0;
    }}
    .container {{
      max-width: 600px;
      margin: 40px auto;
      padding: 0 24px;
    }}
    p {{
      margin: 0 0 12px 0;
    }}
    .details {{
      background: #f8f9fa;
      padding: 16px 20px;
      border-radius: 6px;
      margin: 20px 0;
    }}
    .priority-high {{ border-left: 4px solid #dc3545; }}
    .priority-medium {{ border-left: 4px solid #ffc107; }}
    .priority-low {{ border-left: 4px solid #28a745; }}
    .signature {{
      margin-top: 32px;
      color: #555;
      font-size: 14px;
      border-top: 1px solid #eee;
      padding-top: 16px;
    }}
  </style>
</head>
<body>
  <div class="container">
    {_paragraphs(plain_body)}
    {extra_html}
    <div class="signature">
      <strong>{escape(sender_name)}</strong>
    </div>
  </div>
</body>
</html>"""

    return RenderedEmail(
        subject=subject,
        html_body=html_body,
        plain_body=plain_body,
        reply_to=reply_to,
    )


def lead_record_url(base_url: str, lead_id: int) -> str:
    """Direct link to a lead in the admin dashboard."""
    return f"{base_url.rstrip('/')}/admin/leads/{lead_id}"


# ── Client acknowledgment ────────────────────────────────────────────────────

def render_client_acknowledgment(
    submission: Submission,
    result: QualificationResult,
    response_body: str,
    sender_name: str = "uniQubit",
) -> RenderedEmail:
    """
    Personalised reply to the submitter.

    Always states the priority tier and the timeline range for the
    project's complexity, whatever the drafted body says.
    """
    timeline = result.complexity.timeline
    tier = result.priority.value.capitalize()
    plain_body = (
        f"{response_body.strip()}\n\n"
        f"Your inquiry has been filed as {tier} priority.\n"
        f"Estimated timeline for a project like this: {timeline}.\n\n"
        f"Best regards,\nThe {sender_name} Team"
    )
    return render_email(
        subject=f"Thank you for your inquiry, {submission.name}!",
        plain_body=plain_body,
        sender_name=sender_name,
    )


# ── Admin alert ──────────────────────────────────────────────────────────────

def render_admin_alert(
    submission: Submission,
    result: QualificationResult,
    score: LeadScore,
    lead_id: int,
    base_url: str,
    summary: Optional[str] = None,
    sender_name: str = "uniQubit",
) -> RenderedEmail:
    """Internal alert for the operations inbox, with a direct link to the lead."""
    priority = result.priority.value
    link = lead_record_url(base_url, lead_id)

    lines = [
        f"New {priority.upper()} priority lead: {submission.name} <{submission.email}>",
        f"Company: {submission.company or 'Not provided'}",
        f"Phone: {submission.phone or 'Not provided'}",
        f"Project type: {result.project_type.value} (submitted as '{submission.project_type}')",
        f"Budget: {result.estimated_budget.value} | Urgency: {result.urgency.value} | "
        f"Complexity: {result.complexity.value} ({result.complexity.timeline})",
        f"Lead score: {score.total_score}/100 (budget {score.budget_score}, urgency "
        f"{score.urgency_score}, complexity {score.complexity_score}, priority "
        f"{score.priority_score}, quality {score.quality_score})",
        "",
    ]
    if summary:
        lines += [f"Summary: {summary}", ""]
    if result.key_requirements:
        lines += ["Key requirements:"] + [f"- {r}" for r in result.key_requirements] + [""]
    if result.risk_factors:
        lines += ["Risk factors:"] + [f"- {r}" for r in result.risk_factors] + [""]
    lines += ["Original message:", submission.message, "", f"View lead: {link}"]

    extra_html = (
        f'<div class="details priority-{escape(priority)}">'
        f"<strong>Score {score.total_score}/100</strong></div>"
        f'<p><a href="{escape(link, quote=True)}">View in Admin Dashboard</a></p>'
    )
    return render_email(
        subject=f"New {priority.upper()} Priority Lead: {submission.name}",
        plain_body="\n".join(lines),
        sender_name=sender_name,
        extra_html=extra_html,
        reply_to=submission.email,
    )
