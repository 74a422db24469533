from __future__ import annotations

from typing import Any, Dict, Iterable, List

from django.db.models import Prefetch

from core.choices import PRIORITY_MEDIUM, PRIORITY_RANK

from compliance.models import Assessment, AssessmentResult

DEFAULT_GAP_PRIORITY = PRIORITY_MEDIUM


def _gap_priority(findings) -> str:
    if findings:
        first = findings[0]
        if isinstance(first, dict) and first.get("priority"):
            return first["priority"]
    return DEFAULT_GAP_PRIORITY


def find_gaps(assessments: Iterable[Assessment]) -> List[Dict[str, Any]]:
    """List non-compliant and partially compliant results of completed assessments.

    Gaps are ranked by the priority of each result's first finding, highest
    first; ties keep their input order.
    """
    gaps = []
    for assessment in assessments:
        if assessment.status != Assessment.STATUS_COMPLETED:
            continue
        framework = assessment.framework
        for result in assessment.results.all():
            if result.status not in AssessmentResult.GAP_STATUSES:
                continue
            findings = list(result.findings or [])
            gaps.append(
                {
                    "assessment_id": assessment.assessment_id,
                    "assessment_name": assessment.name,
                    "framework": framework.name if framework is not None else None,
                    "control_id": result.control_id,
                    "control_title": result.control_title,
                    "status": result.status,
                    "findings": findings,
                    "priority": _gap_priority(findings),
                    "assessed_date": result.assessed_date,
                }
            )

    gaps.sort(key=lambda gap: PRIORITY_RANK.get(gap["priority"], 0), reverse=True)
    return gaps


def compliance_gaps(framework_id=None) -> List[Dict[str, Any]]:
    assessments = (
        Assessment.objects.filter(status=Assessment.STATUS_COMPLETED)
        .select_related("framework")
        .prefetch_related(Prefetch("results", queryset=AssessmentResult.objects.order_by("id")))
        .order_by("created_at", "id")
    )
    if framework_id is not None:
        assessments = assessments.filter(framework_id=framework_id)
    return find_gaps(assessments)
