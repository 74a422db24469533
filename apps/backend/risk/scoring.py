from __future__ import annotations

from typing import NamedTuple, Optional

from core.choices import (
    RISK_LEVEL_CRITICAL,
    RISK_LEVEL_HIGH,
    RISK_LEVEL_LOW,
    RISK_LEVEL_MEDIUM,
    RISK_LEVEL_VERY_HIGH,
    RISK_LEVEL_VERY_LOW,
)

MIN_SCORE = 1
MAX_SCORE = 5

# Inclusive lower bounds on likelihood x impact, highest first.
RISK_SCORE_THRESHOLDS = (
    (20, RISK_LEVEL_CRITICAL),
    (15, RISK_LEVEL_VERY_HIGH),
    (10, RISK_LEVEL_HIGH),
    (6, RISK_LEVEL_MEDIUM),
    (3, RISK_LEVEL_LOW),
)


class RiskScore(NamedTuple):
    score: int
    level: str


def risk_level_for_score(score: int) -> str:
    for lower_bound, level in RISK_SCORE_THRESHOLDS:
        if score >= lower_bound:
            return level
    return RISK_LEVEL_VERY_LOW


def _check_score(name: str, value) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer between {MIN_SCORE} and {MAX_SCORE}, got {value!r}.")
    if not MIN_SCORE <= value <= MAX_SCORE:
        raise ValueError(f"{name} must be between {MIN_SCORE} and {MAX_SCORE}, got {value}.")
    return value


def score_risk(likelihood_score: int, impact_score: int) -> RiskScore:
    likelihood_score = _check_score("likelihood_score", likelihood_score)
    impact_score = _check_score("impact_score", impact_score)
    score = likelihood_score * impact_score
    return RiskScore(score=score, level=risk_level_for_score(score))


def derive_risk_fields(
    likelihood_score: int,
    impact_score: int,
    residual_likelihood_score: Optional[int] = None,
    residual_impact_score: Optional[int] = None,
) -> dict:
    """Return the derived score fields of a risk.

    Residual fields are ``None`` unless both residual scores are present.
    """
    inherent = score_risk(likelihood_score, impact_score)
    fields = {
        "risk_score": inherent.score,
        "risk_level": inherent.level,
        "residual_risk_score": None,
        "residual_risk_level": None,
    }
    if residual_likelihood_score is not None and residual_impact_score is not None:
        residual = score_risk(residual_likelihood_score, residual_impact_score)
        fields["residual_risk_score"] = residual.score
        fields["residual_risk_level"] = residual.level
    return fields
