from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from django.db import transaction

from core.sequences import reserve_identifier

from risk.models import Risk, RiskFrameworkMapping
from risk.scoring import derive_risk_fields

logger = logging.getLogger(__name__)

RISK_ID_PREFIX = "RISK"

TREATMENT_FIELDS = (
    "treatment",
    "treatment_description",
    "treatment_owner",
    "treatment_due_date",
    "treatment_cost",
)
RESIDUAL_FIELDS = (
    "residual_likelihood",
    "residual_likelihood_score",
    "residual_impact",
    "residual_impact_score",
)


def apply_risk_scores(risk: Risk) -> Risk:
    """Recompute the derived score fields of ``risk`` in place."""
    fields = derive_risk_fields(
        risk.likelihood_score,
        risk.impact_score,
        risk.residual_likelihood_score,
        risk.residual_impact_score,
    )
    for name, value in fields.items():
        setattr(risk, name, value)
    return risk


def save_risk(risk: Risk, *, actor: Optional[str] = None) -> Risk:
    """Persist ``risk`` after recomputing its derived fields.

    Every write of a risk goes through here so the stored level always matches
    the stored scores.
    """
    creating = risk.pk is None
    if creating and not risk.risk_id:
        risk.risk_id = reserve_identifier(RISK_ID_PREFIX)
    if actor:
        if creating and not risk.created_by:
            risk.created_by = actor
        risk.updated_by = actor

    apply_risk_scores(risk)
    risk.save()

    logger.info(
        "%s risk %s (score=%s, level=%s)",
        "Created" if creating else "Updated",
        risk.risk_id,
        risk.risk_score,
        risk.risk_level,
    )
    return risk


def _replace_framework_mappings(risk: Risk, mappings: Iterable[dict[str, Any]]) -> None:
    RiskFrameworkMapping.objects.filter(risk=risk).delete()
    RiskFrameworkMapping.objects.bulk_create(
        [RiskFrameworkMapping(risk=risk, **mapping) for mapping in mappings]
    )


@transaction.atomic
def create_risk(data: dict[str, Any], *, actor: Optional[str] = None) -> Risk:
    data = dict(data)
    mappings = data.pop("framework_mappings", [])
    risk = save_risk(Risk(**data), actor=actor)
    _replace_framework_mappings(risk, mappings)
    return risk


@transaction.atomic
def update_risk(risk: Risk, data: dict[str, Any], *, actor: Optional[str] = None) -> Risk:
    data = dict(data)
    mappings = data.pop("framework_mappings", None)
    for name, value in data.items():
        setattr(risk, name, value)
    save_risk(risk, actor=actor)
    if mappings is not None:
        _replace_framework_mappings(risk, mappings)
    return risk


def update_treatment(risk: Risk, data: dict[str, Any], *, actor: Optional[str] = None) -> Risk:
    """Replace the treatment plan; a new plan always restarts as Planned."""
    for name in TREATMENT_FIELDS:
        if name in data:
            setattr(risk, name, data[name])
    risk.treatment_status = Risk.TREATMENT_STATUS_PLANNED
    return save_risk(risk, actor=actor)


def update_residual(risk: Risk, data: dict[str, Any], *, actor: Optional[str] = None) -> Risk:
    for name in RESIDUAL_FIELDS:
        if name in data:
            setattr(risk, name, data[name])
    return save_risk(risk, actor=actor)


def delete_risk(risk: Risk) -> None:
    risk_id = risk.risk_id
    risk.delete()
    logger.info("Deleted risk %s", risk_id)
