from __future__ import annotations

import logging
from typing import Any, Optional

from django.db import transaction
from django.utils import timezone

from core.sequences import reserve_identifier

from compliance.models import Assessment, AssessmentRecommendation, AssessmentResult
from compliance.scoring import score_assessment

logger = logging.getLogger(__name__)

ASSESSMENT_ID_PREFIX = "ASSESS"

SCORE_FIELDS = ("overall_score", "max_possible_score", "compliance_percentage", "risk_level")


def apply_assessment_scores(assessment: Assessment, results=None) -> Assessment:
    """Recompute the roll-up fields of ``assessment`` in place.

    With no results every roll-up field is cleared rather than zeroed.
    Results are read from the database, never from a prefetched relation.
    """
    if results is None:
        results = AssessmentResult.objects.filter(assessment_id=assessment.pk) if assessment.pk else []
    score = score_assessment(results)
    if score is None:
        for name in SCORE_FIELDS:
            setattr(assessment, name, None)
    else:
        for name, value in score.as_fields().items():
            setattr(assessment, name, value)
    return assessment


def save_assessment(assessment: Assessment, *, actor: Optional[str] = None) -> Assessment:
    creating = assessment.pk is None
    if creating and not assessment.assessment_id:
        assessment.assessment_id = reserve_identifier(ASSESSMENT_ID_PREFIX)
    if actor:
        if creating and not assessment.created_by:
            assessment.created_by = actor
        assessment.updated_by = actor

    apply_assessment_scores(assessment)
    assessment.save()

    logger.info(
        "%s assessment %s (compliance=%s, level=%s)",
        "Created" if creating else "Updated",
        assessment.assessment_id,
        assessment.compliance_percentage,
        assessment.risk_level,
    )
    return assessment


def _checked_result(assessment: Assessment, data: dict[str, Any]) -> AssessmentResult:
    result = AssessmentResult(assessment=assessment, **data)
    result.clean()
    return result


def refresh_assessment_scores(assessment: Assessment) -> Assessment:
    apply_assessment_scores(assessment)
    assessment.save(update_fields=[*SCORE_FIELDS, "updated_at"])
    logger.debug("Recomputed scores for assessment %s", assessment.assessment_id)
    return assessment


@transaction.atomic
def create_assessment(data: dict[str, Any], *, actor: Optional[str] = None) -> Assessment:
    data = dict(data)
    results = data.pop("results", [])
    assessment = save_assessment(Assessment(**data), actor=actor)
    if results:
        AssessmentResult.objects.bulk_create([_checked_result(assessment, result) for result in results])
        refresh_assessment_scores(assessment)
    return assessment


@transaction.atomic
def update_assessment(assessment: Assessment, data: dict[str, Any], *, actor: Optional[str] = None) -> Assessment:
    data = dict(data)
    results = data.pop("results", None)
    for name, value in data.items():
        setattr(assessment, name, value)
    if results is not None:
        assessment.results.all().delete()
        AssessmentResult.objects.bulk_create([_checked_result(assessment, result) for result in results])
    return save_assessment(assessment, actor=actor)


@transaction.atomic
def add_result(assessment: Assessment, data: dict[str, Any]) -> AssessmentResult:
    result = _checked_result(assessment, data)
    result.save()
    refresh_assessment_scores(assessment)
    return result


@transaction.atomic
def update_result(result: AssessmentResult, data: dict[str, Any]) -> AssessmentResult:
    for name, value in data.items():
        setattr(result, name, value)
    result.clean()
    result.save()
    refresh_assessment_scores(result.assessment)
    return result


@transaction.atomic
def delete_result(result: AssessmentResult) -> Assessment:
    assessment = result.assessment
    result.delete()
    return refresh_assessment_scores(assessment)


def start_assessment(assessment: Assessment, *, actor: Optional[str] = None) -> Assessment:
    assessment.status = Assessment.STATUS_IN_PROGRESS
    assessment.actual_start_date = timezone.localdate()
    return save_assessment(assessment, actor=actor)


def complete_assessment(assessment: Assessment, *, actor: Optional[str] = None) -> Assessment:
    assessment.status = Assessment.STATUS_COMPLETED
    assessment.actual_end_date = timezone.localdate()
    return save_assessment(assessment, actor=actor)


def add_recommendation(assessment: Assessment, data: dict[str, Any]) -> AssessmentRecommendation:
    return AssessmentRecommendation.objects.create(assessment=assessment, **data)


def update_recommendation(recommendation: AssessmentRecommendation, data: dict[str, Any]) -> AssessmentRecommendation:
    for name, value in data.items():
        setattr(recommendation, name, value)
    recommendation.save()
    return recommendation


def delete_assessment(assessment: Assessment) -> None:
    assessment_id = assessment.assessment_id
    assessment.delete()
    logger.info("Deleted assessment %s", assessment_id)
