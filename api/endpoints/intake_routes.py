"""
api/endpoints/intake_routes.py — The public contact form endpoint.

POST /contact — Run a submission through the intake gates; enrichment
                (AI qualification, score, emails) continues in the background.
"""

import logging
from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import JSONResponse

from app.config import settings
from app.exceptions import LeadPersistenceError
from app.intake.submission import Submission
from app.services.intake_service import IntakeDecision, IntakePipeline, IntakeState
from api.schemas import ContactAccepted, ContactRejected, ContactRequest

logger = logging.getLogger(__name__)
router = APIRouter()

ACCEPTED_MESSAGE = "Thank you for your inquiry! We'll get back to you within 24 hours."


@lru_cache
def get_pipeline() -> IntakePipeline:
    """One pipeline per process so the rate limiter's counters are shared."""
    return IntakePipeline()


def _client_ip(request: Request, trust_forwarded: Optional[bool] = None) -> Optional[str]:
    if trust_forwarded is None:
        trust_forwarded = settings.trust_forwarded_headers
    if trust_forwarded:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
        real_ip = request.headers.get("x-real-ip")
        if real_ip:
            return real_ip.strip()
    return request.client.host if request.client else None


def _rejection(decision: IntakeDecision) -> JSONResponse:
    if decision.state == IntakeState.RATE_LIMITED:
        body = ContactRejected(
            error="rate_limited",
            message="Too many requests. Please try again later.",
            retry_after=decision.retry_after_seconds,
        )
        return JSONResponse(
            status_code=429,
            content=body.model_dump(exclude_none=True),
            headers={"Retry-After": str(decision.retry_after_seconds)},
        )

    if decision.state == IntakeState.CAPTCHA_REJECTED:
        body = ContactRejected(error="captcha_failed", message="CAPTCHA verification failed.")
        return JSONResponse(status_code=400, content=body.model_dump(exclude_none=True))

    if decision.state == IntakeState.SPAM_REJECTED:
        body = ContactRejected(
            error="spam",
            message="Your message could not be submitted. Please contact us directly.",
        )
        return JSONResponse(status_code=400, content=body.model_dump(exclude_none=True))

    body = ContactRejected(
        error="invalid",
        message="Please correct the highlighted fields.",
        field_errors=decision.field_errors,
    )
    return JSONResponse(status_code=422, content=body.model_dump(exclude_none=True))


@router.post(
    "/contact",
    response_model=ContactAccepted,
    responses={400: {"model": ContactRejected}, 422: {"model": ContactRejected}, 429: {"model": ContactRejected}},
    summary="Submit a contact inquiry",
)
def submit_contact(
    payload: ContactRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    pipeline: IntakePipeline = Depends(get_pipeline),
):
    """
    Accept a contact form submission.

    The lead is stored before this returns. Qualification and the two
    notification emails run after the response is sent; their failures
    are logged and never change the response.
    """
    submission = Submission.from_payload(
        payload.model_dump(by_alias=True),
        client_ip=_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )

    try:
        decision = pipeline.admit(submission)
    except LeadPersistenceError as exc:
        logger.error("Contact submission could not be stored: %s", exc)
        return JSONResponse(
            status_code=500,
            content={"error": "server_error", "message": "Something went wrong. Please try again later."},
        )

    if not decision.accepted:
        return _rejection(decision)

    background_tasks.add_task(pipeline.enrich, decision.lead_id, submission)
    return ContactAccepted(message=ACCEPTED_MESSAGE, lead_id=decision.lead_id)
