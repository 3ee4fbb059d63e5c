"""
app/security/captcha.py — Cloudflare Turnstile token verification.

Fails closed: a network error, timeout, or malformed response is reported
as a failed verification, never as a pass.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

import requests
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_fixed

from app.config import settings

logger = logging.getLogger(__name__)

TURNSTILE_VERIFY_URL = "https://challenges.cloudflare.com/turnstile/v0/siteverify"


@dataclass
class CaptchaResult:
    success: bool
    error_codes: list[str] = field(default_factory=list)
    hostname: Optional[str] = None
    challenge_ts: Optional[str] = None


@retry(
    retry=retry_if_exception_type(requests.ConnectionError),
    stop=stop_after_attempt(2),
    wait=wait_fixed(0.5),
    reraise=True,
)
def _post_siteverify(payload: dict, timeout: float) -> dict:
    """Internal: one siteverify round-trip. Retries once on connection errors."""
    response = requests.post(TURNSTILE_VERIFY_URL, data=payload, timeout=timeout)
    response.raise_for_status()
    return response.json()


class TurnstileVerifier:
    """Verifies Turnstile tokens against Cloudflare's siteverify endpoint."""

    def __init__(self, secret_key: Optional[str] = None, timeout: Optional[float] = None):
        self.secret_key = secret_key if secret_key is not None else settings.turnstile_secret_key
        self.timeout = timeout if timeout is not None else settings.captcha_timeout_seconds

    def verify(self, token: Optional[str], remote_ip: Optional[str] = None) -> CaptchaResult:
        """
        Check a client token with Cloudflare.

        Args:
            token:     The cf-turnstile-response value sent by the browser.
            remote_ip: Caller address, forwarded to Cloudflare when known.

        Returns:
            CaptchaResult; success is False on any error.
        """
        if not token:
            return CaptchaResult(success=False, error_codes=["missing-input-response"])

        payload = {"secret": self.secret_key or "", "response": token}
        if remote_ip:
            payload["remoteip"] = remote_ip

        try:
            body = _post_siteverify(payload, self.timeout)
        except (requests.RequestException, ValueError) as exc:
            # exc text can echo the request; log the type only
            logger.error("Turnstile verification error: %s", type(exc).__name__)
            return CaptchaResult(success=False, error_codes=["internal-error"])

        if not isinstance(body, dict):
            logger.error("Turnstile returned a non-object body.")
            return CaptchaResult(success=False, error_codes=["internal-error"])

        result = CaptchaResult(
            success=body.get("success") is True,
            error_codes=list(body.get("error-codes") or []),
            hostname=body.get("hostname"),
            challenge_ts=body.get("challenge_ts"),
        )
        if not result.success:
            logger.warning("Turnstile rejected token: %s", result.error_codes)
        return result
