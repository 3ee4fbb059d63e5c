"""
app/services/scoring.py — Lead scoring logic.

Turns a QualificationResult into a 0–100 composite score from five
table-driven sub-scores:

    budget      0–25    urgency     0–20    complexity  0–15
    priority    0–30    quality     0–10  (round(confidence * 10))

Weight tables come from settings so they can be retuned without code
changes. Every table must cover its whole enum; that is checked when the
tables are loaded, so a lookup miss while scoring is a programming error.
"""

import logging
import math
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Optional

from app.ai_engine.processor import BudgetRange, Complexity, Priority, QualificationResult, Urgency
from app.config import settings
from app.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

MAX_TOTAL_SCORE = 100


@dataclass(frozen=True)
class LeadScore:
    total_score: int
    budget_score: int
    urgency_score: int
    complexity_score: int
    priority_score: int
    quality_score: int

    def as_dict(self) -> dict:
        return asdict(self)


def _table(name: str, raw: dict, enum_cls: type[Enum]) -> dict[Enum, int]:
    """Key a raw {value: points} table by enum member, rejecting gaps and strays."""
    members = {m.value: m for m in enum_cls}
    unknown = set(raw) - set(members)
    missing = set(members) - set(raw)
    if unknown or missing:
        raise ConfigurationError(
            f"{name} weights must cover exactly {sorted(members)}; "
            f"missing={sorted(missing)} unknown={sorted(unknown)}"
        )
    negative = [k for k, v in raw.items() if v < 0]
    if negative:
        raise ConfigurationError(f"{name} weights must be non-negative: {sorted(negative)}")
    return {members[k]: int(v) for k, v in raw.items()}


@dataclass(frozen=True)
class ScoreWeights:
    """Points per enum member. Build with from_tables() or from_settings()."""

    budget: dict
    urgency: dict
    complexity: dict
    priority: dict

    @classmethod
    def from_tables(
        cls,
        budget: dict[str, int],
        urgency: dict[str, int],
        complexity: dict[str, int],
        priority: dict[str, int],
    ) -> "ScoreWeights":
        """
        Build weights from plain {enum value: points} tables.

        Raises:
            ConfigurationError: a table is missing a member or has an unknown key.
        """
        return cls(
            budget=_table("budget", budget, BudgetRange),
            urgency=_table("urgency", urgency, Urgency),
            complexity=_table("complexity", complexity, Complexity),
            priority=_table("priority", priority, Priority),
        )

    @classmethod
    def from_settings(cls, config=None) -> "ScoreWeights":
        config = config or settings
        return cls.from_tables(
            budget=config.budget_weights,
            urgency=config.urgency_weights,
            complexity=config.complexity_weights,
            priority=config.priority_weights,
        )


def score_lead(result: QualificationResult, weights: Optional[ScoreWeights] = None) -> LeadScore:
    """
    Compute the composite lead score for a qualification result.

    Args:
        result:  The validated QualificationResult.
        weights: Weight tables; loaded from settings if omitted.

    Returns:
        LeadScore with total_score capped at 100.
    """
    weights = weights or ScoreWeights.from_settings()

    budget_score = weights.budget[result.estimated_budget]
    urgency_score = weights.urgency[result.urgency]
    complexity_score = weights.complexity[result.complexity]
    priority_score = weights.priority[result.priority]
    # half-up: 0.25 → 3
    quality_score = math.floor(result.confidence_score * 10 + 0.5)

    total = budget_score + urgency_score + complexity_score + priority_score + quality_score
    score = LeadScore(
        total_score=min(total, MAX_TOTAL_SCORE),
        budget_score=budget_score,
        urgency_score=urgency_score,
        complexity_score=complexity_score,
        priority_score=priority_score,
        quality_score=quality_score,
    )

    logger.debug("Lead scored %d (raw sum %d).", score.total_score, total)
    return score
