from __future__ import annotations

import datetime
import logging
from typing import Any, Dict, List, Optional

from django.conf import settings
from django.db.models import Avg, Count, Q
from django.db.models.functions import ExtractMonth, ExtractYear
from django.utils import timezone

from core.choices import (
    RISK_LEVEL_CRITICAL,
    RISK_LEVEL_HIGH,
    RISK_LEVEL_LOW,
    RISK_LEVEL_MEDIUM,
    RISK_LEVEL_VERY_HIGH,
    RISK_LEVEL_VERY_LOW,
)
from core.exceptions import RecordNotFound
from risk.models import Risk

from compliance.models import Assessment, AssessmentResult, ComplianceFramework

logger = logging.getLogger(__name__)

# Counter name -> exact stored risk level.
RISK_LEVEL_COUNTERS = (
    ("critical_risks", RISK_LEVEL_CRITICAL),
    ("very_high_risks", RISK_LEVEL_VERY_HIGH),
    ("high_risks", RISK_LEVEL_HIGH),
    ("medium_risks", RISK_LEVEL_MEDIUM),
    ("low_risks", RISK_LEVEL_LOW),
    ("very_low_risks", RISK_LEVEL_VERY_LOW),
)

ASSESSMENT_STATUS_COUNTERS = (
    ("completed_assessments", Assessment.STATUS_COMPLETED),
    ("in_progress_assessments", Assessment.STATUS_IN_PROGRESS),
    ("planned_assessments", Assessment.STATUS_PLANNED),
    ("on_hold_assessments", Assessment.STATUS_ON_HOLD),
    ("cancelled_assessments", Assessment.STATUS_CANCELLED),
)

REPORT_PERIOD_DAYS = 30


def _setting(name: str, default: int) -> int:
    return getattr(settings, name, default)


def _round(value: Optional[float]) -> float:
    return round(value or 0, 2)


def _distribution(queryset, field: str) -> Dict[str, int]:
    rows = queryset.order_by().values(field).annotate(count=Count("id")).order_by(field)
    return {row[field]: row["count"] for row in rows}


def _framework_name(record) -> Optional[str]:
    framework = getattr(record, "framework", None)
    return framework.name if framework is not None else None


def risk_summary(risk: Risk) -> Dict[str, Any]:
    return {
        "id": risk.pk,
        "risk_id": risk.risk_id,
        "title": risk.title,
        "risk_score": risk.risk_score,
        "risk_level": risk.risk_level,
        "treatment": risk.treatment,
        "status": risk.status,
        "next_review_date": risk.next_review_date,
        "created_at": risk.created_at,
    }


def assessment_summary(assessment: Assessment) -> Dict[str, Any]:
    return {
        "id": assessment.pk,
        "assessment_id": assessment.assessment_id,
        "name": assessment.name,
        "framework": _framework_name(assessment),
        "status": assessment.status,
        "compliance_percentage": assessment.compliance_percentage,
        "risk_level": assessment.risk_level,
        "created_at": assessment.created_at,
    }


def _risk_counters(queryset) -> Dict[str, Any]:
    aggregates = {"total_risks": Count("id"), "avg_risk_score": Avg("risk_score")}
    for name, level in RISK_LEVEL_COUNTERS:
        aggregates[name] = Count("id", filter=Q(risk_level=level))
    stats = queryset.aggregate(**aggregates)
    stats["avg_risk_score"] = _round(stats["avg_risk_score"])
    return stats


def _assessment_counters(queryset) -> Dict[str, Any]:
    aggregates = {
        "total_assessments": Count("id"),
        "avg_compliance_percentage": Avg("compliance_percentage"),
    }
    for name, status in ASSESSMENT_STATUS_COUNTERS:
        aggregates[name] = Count("id", filter=Q(status=status))
    stats = queryset.aggregate(**aggregates)
    stats["avg_compliance_percentage"] = _round(stats["avg_compliance_percentage"])
    return stats


def upcoming_reviews(today: Optional[datetime.date] = None) -> List[Dict[str, Any]]:
    """Active risks due for review within the configured window, soonest first.

    Overdue reviews are included.
    """
    today = today or timezone.localdate()
    horizon = today + datetime.timedelta(days=_setting("GRC_UPCOMING_REVIEW_DAYS", 30))
    risks = (
        Risk.objects.filter(status=Risk.STATUS_ACTIVE, next_review_date__lte=horizon)
        .order_by("next_review_date", "id")[: _setting("GRC_UPCOMING_REVIEW_LIMIT", 10)]
    )
    return [risk_summary(risk) for risk in risks]


def dashboard_stats() -> Dict[str, Any]:
    recent_limit = _setting("GRC_RECENT_ACTIVITY_LIMIT", 5)
    recent_risks = Risk.objects.order_by("-created_at", "-id")[:recent_limit]
    recent_assessments = Assessment.objects.select_related("framework").order_by("-created_at", "-id")[:recent_limit]

    return {
        "risk_stats": _risk_counters(Risk.objects.all()),
        "assessment_stats": _assessment_counters(Assessment.objects.all()),
        "framework_stats": _distribution(ComplianceFramework.objects.all(), "framework_type"),
        "recent_activities": {
            "risks": [risk_summary(risk) for risk in recent_risks],
            "assessments": [assessment_summary(assessment) for assessment in recent_assessments],
        },
        "upcoming_reviews": upcoming_reviews(),
    }


def framework_compliance(framework_id) -> Dict[str, Any]:
    try:
        framework = ComplianceFramework.objects.get(pk=framework_id)
    except (ComplianceFramework.DoesNotExist, ValueError, TypeError):
        raise RecordNotFound("Framework not found.")

    assessments = list(
        framework.assessments.annotate(
            result_count=Count("results"),
            compliant_count=Count("results", filter=Q(results__status=AssessmentResult.STATUS_COMPLIANT)),
        ).order_by("-created_at", "-id")
    )
    risks = list(Risk.objects.filter(framework_mappings__framework=framework).distinct())

    total_controls = framework.controls.count()
    assessed_controls = sum(assessment.result_count for assessment in assessments)
    compliant_controls = sum(assessment.compliant_count for assessment in assessments)
    percentage = (compliant_controls / total_controls) * 100 if total_controls else 0

    risk_distribution: Dict[str, int] = {}
    for risk in risks:
        risk_distribution[risk.risk_level] = risk_distribution.get(risk.risk_level, 0) + 1

    return {
        "framework": {
            "id": framework.pk,
            "name": framework.name,
            "version": framework.version,
            "framework_type": framework.framework_type,
        },
        "compliance": {
            "total_controls": total_controls,
            "assessed_controls": assessed_controls,
            "compliant_controls": compliant_controls,
            "compliance_percentage": round(percentage, 2),
        },
        "risk_distribution": risk_distribution,
        "assessments": [assessment_summary(assessment) for assessment in assessments],
        "risks": [risk_summary(risk) for risk in risks],
    }


def compliance_trends(months: Optional[int] = None) -> Dict[str, List[Dict[str, Any]]]:
    """Month-by-month compliance and risk series over the trailing window.

    A month is approximated as 30 days when computing the window start.
    """
    if months is None:
        months = _setting("GRC_TREND_MONTHS", 12)
    if isinstance(months, bool) or not isinstance(months, int) or months < 1:
        raise ValueError(f"months must be a positive integer, got {months!r}.")

    since = timezone.now() - datetime.timedelta(days=30 * months)

    assessment_rows = (
        Assessment.objects.filter(status=Assessment.STATUS_COMPLETED, created_at__gte=since)
        .annotate(year=ExtractYear("created_at"), month=ExtractMonth("created_at"))
        .values("year", "month")
        .annotate(avg_compliance=Avg("compliance_percentage"), count=Count("id"))
        .order_by("year", "month")
    )
    risk_rows = (
        Risk.objects.filter(created_at__gte=since)
        .annotate(year=ExtractYear("created_at"), month=ExtractMonth("created_at"))
        .values("year", "month")
        .annotate(
            total_risks=Count("id"),
            critical_risks=Count("id", filter=Q(risk_level=RISK_LEVEL_CRITICAL)),
            very_high_risks=Count("id", filter=Q(risk_level=RISK_LEVEL_VERY_HIGH)),
            high_risks=Count("id", filter=Q(risk_level=RISK_LEVEL_HIGH)),
        )
        .order_by("year", "month")
    )

    compliance = [
        {
            "year": row["year"],
            "month": row["month"],
            "avg_compliance": _round(row["avg_compliance"]),
            "count": row["count"],
        }
        for row in assessment_rows
    ]
    return {"compliance_trends": compliance, "risk_trends": list(risk_rows)}


def risk_overview() -> Dict[str, Any]:
    risks = Risk.objects.all()
    return {
        "overview": _risk_counters(risks),
        "treatment_distribution": _distribution(risks, "treatment"),
        "category_distribution": _distribution(risks, "category"),
    }


def assessment_overview() -> Dict[str, Any]:
    assessments = Assessment.objects.all()
    rows = (
        assessments.order_by()
        .values("framework_id", "framework__name")
        .annotate(count=Count("id"))
        .order_by("framework__name")
    )
    return {
        "overview": _assessment_counters(assessments),
        "risk_level_distribution": _distribution(assessments.exclude(risk_level__isnull=True), "risk_level"),
        "framework_distribution": [
            {"framework_id": row["framework_id"], "framework": row["framework__name"], "count": row["count"]}
            for row in rows
        ],
    }


def compliance_report(
    framework_id=None,
    start_date: Optional[datetime.date] = None,
    end_date: Optional[datetime.date] = None,
    include_risks: bool = True,
    include_assessments: bool = True,
) -> Dict[str, Any]:
    today = timezone.localdate()
    end_date = end_date or today
    start_date = start_date or today - datetime.timedelta(days=REPORT_PERIOD_DAYS)

    report: Dict[str, Any] = {
        "generated_at": timezone.now(),
        "period": {"start_date": start_date, "end_date": end_date},
    }

    framework = None
    if framework_id is not None:
        framework = ComplianceFramework.objects.filter(pk=framework_id).first()
        report["framework"] = (
            {
                "id": framework.pk,
                "name": framework.name,
                "version": framework.version,
                "framework_type": framework.framework_type,
            }
            if framework is not None
            else None
        )

    period = Q(created_at__date__gte=start_date, created_at__date__lte=end_date)

    if include_risks:
        risks = Risk.objects.filter(period)
        if framework_id is not None:
            risks = risks.filter(framework_mappings__framework_id=framework_id).distinct()
        risks = list(risks)
        by_level: Dict[str, int] = {}
        by_treatment: Dict[str, int] = {}
        for risk in risks:
            by_level[risk.risk_level] = by_level.get(risk.risk_level, 0) + 1
            by_treatment[risk.treatment] = by_treatment.get(risk.treatment, 0) + 1
        report["risks"] = {
            "total": len(risks),
            "by_level": by_level,
            "by_treatment": by_treatment,
            "details": [risk_summary(risk) for risk in risks],
        }

    if include_assessments:
        assessments = Assessment.objects.select_related("framework").filter(period)
        if framework_id is not None:
            assessments = assessments.filter(framework_id=framework_id)
        assessments = list(assessments)
        # Unscored assessments count as 0 towards the average.
        total_compliance = sum(assessment.compliance_percentage or 0 for assessment in assessments)
        report["assessments"] = {
            "total": len(assessments),
            "completed": sum(1 for a in assessments if a.status == Assessment.STATUS_COMPLETED),
            "in_progress": sum(1 for a in assessments if a.status == Assessment.STATUS_IN_PROGRESS),
            "avg_compliance": _round(total_compliance / len(assessments)) if assessments else 0,
            "details": [assessment_summary(assessment) for assessment in assessments],
        }

    logger.info(
        "Generated compliance report for %s to %s (framework=%s)",
        start_date,
        end_date,
        framework_id,
    )
    return report
