"""
app/security/spam.py — Content-based spam heuristics for submitted text.

analyze_content() is a pure function: the same text and rules always give
the same SpamVerdict. Each signal category adds to a raw score; the verdict
is spam once the score reaches the threshold.

Reasons are reported once per triggered category, not once per match.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Optional

logger = logging.getLogger(__name__)


# ── Patterns ──────────────────────────────────────────────────────────────────

URL_PATTERNS = (
    re.compile(r"https?://", re.IGNORECASE),
    re.compile(r"www\.", re.IGNORECASE),
    re.compile(r"\b[a-z0-9.-]+\.[a-z]{2,}\b", re.IGNORECASE),
)

PROMOTIONAL_PATTERN = re.compile(
    r"\b(click here|visit now|buy now|limited time|act now|free money|make money|"
    r"earn \$|get rich|weight loss|viagra|casino|poker|loan|debt|credit|investment|forex)\b",
    re.IGNORECASE,
)

PUNCTUATION_PATTERN = re.compile(r"[!?]{3,}")
CAPS_PATTERN = re.compile(r"[A-Z]{5,}")

PHONE_PATTERNS = (
    re.compile(r"\b\d{3}[-.]?\d{3}[-.]?\d{4}\b"),
    re.compile(r"\(\d{3}\)\s?\d{3}[-.]?\d{4}"),
)

REPEATED_CHAR_PATTERN = re.compile(r"(.)\1{4,}", re.DOTALL)

SUSPICIOUS_KEYWORDS = (
    "seo", "marketing", "promotion", "advertisement", "backlinks",
    "ranking", "traffic", "followers", "subscribers", "leads",
    "guarantee", "instant", "automated", "system", "software",
    "bitcoin", "crypto", "investment", "profit", "income",
)

# Human-readable reasons, one per category
REASON_URLS = "Contains URLs or links"
REASON_PROMOTIONAL = "Contains suspicious promotional language"
REASON_PUNCTUATION = "Excessive punctuation"
REASON_CAPS = "Excessive capital letters"
REASON_PHONE = "Contains phone numbers"
REASON_TOO_SHORT = "Message too short"
REASON_TOO_LONG = "Message unusually long"
REASON_REPEATED = "Contains repeated characters"


# ── Rules & verdict ───────────────────────────────────────────────────────────

@dataclass(frozen=True)
class SpamRules:
    """Weights and thresholds for the spam score. Override per deployment."""
    threshold: int = 8
    url_weight: int = 2                 # per match
    promotional_weight: int = 2         # per match
    punctuation_weight: int = 2         # per match
    caps_weight: int = 2                # per match
    phone_weight: int = 2               # per match
    keyword_weight: int = 3             # per distinct keyword
    too_short_weight: int = 5
    too_long_weight: int = 10
    repeated_weight: int = 3            # per run
    min_length: int = 20
    max_length: int = 2000
    keywords: tuple[str, ...] = field(default=SUSPICIOUS_KEYWORDS)


DEFAULT_RULES = SpamRules()


@dataclass(frozen=True)
class SpamVerdict:
    is_spam: bool
    confidence: int                     # 0 – 100
    score: int                          # raw accumulated score
    reasons: tuple[str, ...] = ()

    def as_dict(self) -> dict:
        return {
            "is_spam": self.is_spam,
            "confidence": self.confidence,
            "score": self.score,
            "reasons": list(self.reasons),
        }


# ── Analyzer ──────────────────────────────────────────────────────────────────

def _count(patterns, text: str) -> int:
    return sum(len(p.findall(text)) for p in patterns)


def analyze_content(text: Optional[str], rules: SpamRules = DEFAULT_RULES) -> SpamVerdict:
    """
    Score a piece of submitted text for spam signals.

    Args:
        text:  Free text (message, company name, ...). None is treated as "".
        rules: Weights and threshold; DEFAULT_RULES if omitted.

    Returns:
        SpamVerdict with is_spam, confidence (min(score * 10, 100)) and reasons.
    """
    content = text or ""
    score = 0
    reasons: list[str] = []

    def flag(points: int, reason: str) -> None:
        nonlocal score
        if points <= 0:
            return  # weight 0 disables the category
        score += points
        if reason not in reasons:
            reasons.append(reason)

    signals = (
        (_count(URL_PATTERNS, content), rules.url_weight, REASON_URLS),
        (len(PROMOTIONAL_PATTERN.findall(content)), rules.promotional_weight, REASON_PROMOTIONAL),
        (len(PUNCTUATION_PATTERN.findall(content)), rules.punctuation_weight, REASON_PUNCTUATION),
        (len(CAPS_PATTERN.findall(content)), rules.caps_weight, REASON_CAPS),
        (_count(PHONE_PATTERNS, content), rules.phone_weight, REASON_PHONE),
    )
    for matches, weight, reason in signals:
        if matches:
            flag(matches * weight, reason)

    lowered = content.lower()
    keyword_hits = sum(1 for keyword in rules.keywords if keyword in lowered)
    if keyword_hits:
        flag(keyword_hits * rules.keyword_weight, f"Contains {keyword_hits} suspicious keyword(s)")

    if len(content) < rules.min_length:
        flag(rules.too_short_weight, REASON_TOO_SHORT)
    elif len(content) > rules.max_length:
        flag(rules.too_long_weight, REASON_TOO_LONG)

    repeats = len(REPEATED_CHAR_PATTERN.findall(content))
    if repeats:
        flag(repeats * rules.repeated_weight, REASON_REPEATED)

    verdict = SpamVerdict(
        is_spam=score >= rules.threshold,
        confidence=min(score * 10, 100),
        score=score,
        reasons=tuple(reasons),
    )
    if verdict.is_spam:
        logger.debug("Spam verdict: score=%d reasons=%s", score, verdict.reasons)
    return verdict
