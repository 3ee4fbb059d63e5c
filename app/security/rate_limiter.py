"""
app/security/rate_limiter.py — Per-caller request limiting for the contact form.

Fixed window anchored at the caller's first request: up to max_requests are
allowed until the window elapses, then the counter starts over.

Counters live in an injected store. The default InMemoryCounterStore keeps
them in a dict guarded by a lock, so concurrent requests from the same caller
cannot both slip through on the last slot. State is lost on restart — this is
a soft defense, not a security boundary.
"""

import base64
import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Optional, Protocol

from app.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    remaining: int
    retry_after_seconds: int        # 0 when allowed
    reset_at: float                 # epoch seconds when the window ends


@dataclass
class _Window:
    count: int
    reset_at: float


class CounterStore(Protocol):
    def hit(self, key: str, now: float, window_seconds: float, max_requests: int) -> RateLimitDecision:
        """Atomically record one request for key and return the decision."""
        ...


class InMemoryCounterStore:
    """Process-local counter store. One lock covers check-and-increment."""

    def __init__(self):
        self._windows: dict[str, _Window] = {}
        self._lock = threading.Lock()

    def hit(self, key: str, now: float, window_seconds: float, max_requests: int) -> RateLimitDecision:
        with self._lock:
            self._sweep(now)
            window = self._windows.get(key)

            if window is None or now >= window.reset_at:
                window = _Window(count=1, reset_at=now + window_seconds)
                self._windows[key] = window
                return RateLimitDecision(
                    allowed=True,
                    remaining=max_requests - 1,
                    retry_after_seconds=0,
                    reset_at=window.reset_at,
                )

            if window.count >= max_requests:
                return RateLimitDecision(
                    allowed=False,
                    remaining=0,
                    retry_after_seconds=max(1, math.ceil(window.reset_at - now)),
                    reset_at=window.reset_at,
                )

            window.count += 1
            return RateLimitDecision(
                allowed=True,
                remaining=max_requests - window.count,
                retry_after_seconds=0,
                reset_at=window.reset_at,
            )

    def _sweep(self, now: float) -> None:
        """Drop expired windows so idle callers don't accumulate. Caller holds the lock."""
        expired = [key for key, w in self._windows.items() if now >= w.reset_at]
        for key in expired:
            del self._windows[key]

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)


class RateLimiter:
    """
    Limits how often a single caller identity may hit an endpoint.

    Args:
        max_requests:   Requests allowed per window (default from settings).
        window_seconds: Window length in seconds (default from settings).
        store:          Counter store; a fresh InMemoryCounterStore if omitted.
    """

    def __init__(
        self,
        max_requests: Optional[int] = None,
        window_seconds: Optional[float] = None,
        store: Optional[CounterStore] = None,
    ):
        self.max_requests = max_requests if max_requests is not None else settings.rate_limit_max_requests
        self.window_seconds = (
            window_seconds if window_seconds is not None else settings.rate_limit_window_seconds
        )
        self.store = store if store is not None else InMemoryCounterStore()

    def check(self, identity: str, now: Optional[float] = None) -> RateLimitDecision:
        """Record a request from identity and decide whether it may proceed."""
        if now is None:
            now = time.time()

        decision = self.store.hit(identity, now, self.window_seconds, self.max_requests)
        if not decision.allowed:
            logger.warning(
                "Rate limit exceeded for %s — retry in %ds.",
                identity, decision.retry_after_seconds,
            )
        return decision


def client_identity(client_ip: Optional[str], user_agent: Optional[str] = None) -> str:
    """
    Build the rate-limit key for a caller: address plus a short user-agent fingerprint.

    'ip-unknown' is used when the address can't be determined, so such callers
    share one bucket instead of bypassing the limiter.
    """
    ip = (client_ip or "").strip() or "ip-unknown"
    fingerprint = base64.b64encode((user_agent or "").encode("utf-8")).decode("ascii")[:20]
    return f"{ip}-{fingerprint}"
