from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Iterable

from core.choices import (
    RISK_LEVEL_CRITICAL,
    RISK_LEVEL_HIGH,
    RISK_LEVEL_LOW,
    RISK_LEVEL_MEDIUM,
    RISK_LEVEL_VERY_HIGH,
    RISK_LEVEL_VERY_LOW,
)

# Inclusive lower bounds on compliance percentage, highest first.
# High compliance means low risk.
COMPLIANCE_RISK_THRESHOLDS = (
    (95, RISK_LEVEL_VERY_LOW),
    (85, RISK_LEVEL_LOW),
    (70, RISK_LEVEL_MEDIUM),
    (50, RISK_LEVEL_HIGH),
    (25, RISK_LEVEL_VERY_HIGH),
)


@dataclass(frozen=True)
class AssessmentScore:
    overall_score: float
    max_possible_score: float
    compliance_percentage: float
    risk_level: str

    def as_fields(self) -> dict[str, Any]:
        return {
            "overall_score": self.overall_score,
            "max_possible_score": self.max_possible_score,
            "compliance_percentage": self.compliance_percentage,
            "risk_level": self.risk_level,
        }


def compliance_risk_level(percentage: float) -> str:
    for lower_bound, level in COMPLIANCE_RISK_THRESHOLDS:
        if percentage >= lower_bound:
            return level
    return RISK_LEVEL_CRITICAL


def _result_value(result: Any, name: str) -> float:
    if isinstance(result, Mapping):
        value = result.get(name)
    else:
        value = getattr(result, name, None)
    return float(value or 0)


def score_assessment(results: Iterable[Any]) -> AssessmentScore | None:
    """Roll per-control results up into assessment-level scores.

    Results may be mappings or objects exposing ``score`` and ``max_score``;
    missing values count as 0. Returns ``None`` for an empty result list, since
    such an assessment has no compliance state yet.
    """
    results = list(results)
    if not results:
        return None

    overall = sum(_result_value(result, "score") for result in results)
    maximum = sum(_result_value(result, "max_score") for result in results)
    percentage = (overall * 100) / maximum if maximum > 0 else 0.0

    return AssessmentScore(
        overall_score=overall,
        max_possible_score=maximum,
        compliance_percentage=percentage,
        risk_level=compliance_risk_level(percentage),
    )
