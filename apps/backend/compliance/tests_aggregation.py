import datetime

from django.test import TestCase, override_settings
from django.utils import timezone

from compliance.models import Assessment, AssessmentResult, ComplianceFramework, FrameworkControl
from compliance.services.aggregation import (
    assessment_overview,
    compliance_report,
    compliance_trends,
    dashboard_stats,
    framework_compliance,
)
from compliance.services.assessments import create_assessment
from core.exceptions import RecordNotFound
from risk.models import Risk
from risk.services.register import create_risk

# likelihood x impact pairs for each level
LEVEL_SCORES = {
    "Critical": (5, 5),
    "Very High": (4, 4),
    "High": (3, 4),
    "Medium": (2, 3),
    "Low": (1, 3),
    "Very Low": (1, 1),
}


def make_risk(level: str = "Medium", **overrides) -> Risk:
    likelihood, impact = LEVEL_SCORES[level]
    data = {
        "title": f"{level} risk",
        "description": "Risk used for aggregation",
        "category": Risk.CATEGORY_OPERATIONAL,
        "likelihood": Risk.RATING_MEDIUM,
        "likelihood_score": likelihood,
        "impact": Risk.RATING_MEDIUM,
        "impact_score": impact,
        "treatment": Risk.TREATMENT_MITIGATE,
        "next_review_date": timezone.localdate() + datetime.timedelta(days=180),
    }
    data.update(overrides)
    return create_risk(data)


def make_framework(name: str = "ISO 27001", controls: int = 0) -> ComplianceFramework:
    framework = ComplianceFramework.objects.create(
        name=name,
        version="2022",
        description="Information security management",
        framework_type=ComplianceFramework.TYPE_CYBERSECURITY,
    )
    for index in range(controls):
        FrameworkControl.objects.create(framework=framework, control_id=f"A.{index + 1}", title=f"Control {index + 1}")
    return framework


def make_assessment(framework, status=Assessment.STATUS_COMPLETED, results=(), **overrides) -> Assessment:
    data = {
        "name": "Annual audit",
        "framework": framework,
        "assessment_type": Assessment.TYPE_INTERNAL_AUDIT,
        "status": status,
        "planned_start_date": datetime.date(2026, 1, 1),
        "planned_end_date": datetime.date(2026, 1, 31),
        "assessor": "Audit team",
        "results": list(results),
    }
    data.update(overrides)
    return create_assessment(data)


def set_created_at(instance, value: datetime.datetime) -> None:
    type(instance).objects.filter(pk=instance.pk).update(created_at=value)


class DashboardStatsTests(TestCase):
    def test_counts_each_level_exactly(self):
        for level in ("Critical", "Critical", "High", "Medium"):
            make_risk(level)

        stats = dashboard_stats()["risk_stats"]

        self.assertEqual(stats["total_risks"], 4)
        self.assertEqual(stats["critical_risks"], 2)
        self.assertEqual(stats["very_high_risks"], 0)
        self.assertEqual(stats["high_risks"], 1)
        self.assertEqual(stats["medium_risks"], 1)
        self.assertEqual(stats["avg_risk_score"], round((25 + 25 + 12 + 6) / 4, 2))

    def test_empty_store_reports_zeroes(self):
        stats = dashboard_stats()

        self.assertEqual(stats["risk_stats"]["total_risks"], 0)
        self.assertEqual(stats["risk_stats"]["avg_risk_score"], 0)
        self.assertEqual(stats["assessment_stats"]["avg_compliance_percentage"], 0)
        self.assertEqual(stats["framework_stats"], {})
        self.assertEqual(stats["upcoming_reviews"], [])

    def test_assessment_counts_and_average(self):
        framework = make_framework()
        make_assessment(framework, results=[{"control_id": "A.1", "score": 8, "max_score": 10}])
        make_assessment(
            framework,
            status=Assessment.STATUS_IN_PROGRESS,
            results=[{"control_id": "A.1", "score": 6, "max_score": 10}],
        )
        make_assessment(framework, status=Assessment.STATUS_PLANNED)

        stats = dashboard_stats()["assessment_stats"]

        self.assertEqual(stats["total_assessments"], 3)
        self.assertEqual(stats["completed_assessments"], 1)
        self.assertEqual(stats["in_progress_assessments"], 1)
        self.assertEqual(stats["planned_assessments"], 1)
        self.assertEqual(stats["avg_compliance_percentage"], 70)

    def test_recent_activity_is_capped_and_newest_first(self):
        risks = [make_risk(title=f"Risk {index}") for index in range(7)]

        recent = dashboard_stats()["recent_activities"]["risks"]

        self.assertEqual(len(recent), 5)
        self.assertEqual(recent[0]["risk_id"], risks[-1].risk_id)

    def test_upcoming_reviews_window_and_order(self):
        today = timezone.localdate()
        overdue = make_risk(title="Overdue", next_review_date=today - datetime.timedelta(days=3))
        soon = make_risk(title="Soon", next_review_date=today + datetime.timedelta(days=10))
        make_risk(title="Edge", next_review_date=today + datetime.timedelta(days=30))
        make_risk(title="Later", next_review_date=today + datetime.timedelta(days=31))
        make_risk(title="Closed", status=Risk.STATUS_CLOSED, next_review_date=today)

        reviews = dashboard_stats()["upcoming_reviews"]

        self.assertEqual([row["title"] for row in reviews], ["Overdue", "Soon", "Edge"])
        self.assertEqual(reviews[0]["risk_id"], overdue.risk_id)
        self.assertEqual(reviews[1]["risk_id"], soon.risk_id)

    @override_settings(GRC_UPCOMING_REVIEW_LIMIT=2)
    def test_upcoming_reviews_are_capped(self):
        for _ in range(4):
            make_risk(next_review_date=timezone.localdate())

        self.assertEqual(len(dashboard_stats()["upcoming_reviews"]), 2)

    def test_framework_stats_group_by_type(self):
        make_framework("ISO 27001")
        make_framework("NIST CSF")
        ComplianceFramework.objects.create(
            name="GDPR",
            version="2018",
            description="Data protection",
            framework_type=ComplianceFramework.TYPE_DATA_PROTECTION,
        )

        self.assertEqual(dashboard_stats()["framework_stats"], {"Cybersecurity": 2, "Data Protection": 1})

    def test_recent_assessment_without_framework_is_reported(self):
        framework = make_framework()
        make_assessment(framework)
        framework.delete()

        recent = dashboard_stats()["recent_activities"]["assessments"]

        self.assertEqual(len(recent), 1)
        self.assertIsNone(recent[0]["framework"])


class FrameworkComplianceTests(TestCase):
    def test_counts_compliant_controls_across_assessments(self):
        framework = make_framework(controls=4)
        make_assessment(
            framework,
            results=[
                {"control_id": "A.1", "status": AssessmentResult.STATUS_COMPLIANT},
                {"control_id": "A.2", "status": AssessmentResult.STATUS_NON_COMPLIANT},
            ],
        )
        make_assessment(framework, results=[{"control_id": "A.3", "status": AssessmentResult.STATUS_COMPLIANT}])
        make_risk("High", framework_mappings=[{"framework": framework, "control_id": "A.1"}])
        make_risk("High", framework_mappings=[{"framework": framework, "control_id": "A.2"}])
        make_risk("Critical")

        status = framework_compliance(framework.id)

        self.assertEqual(status["compliance"]["total_controls"], 4)
        self.assertEqual(status["compliance"]["assessed_controls"], 3)
        self.assertEqual(status["compliance"]["compliant_controls"], 2)
        self.assertEqual(status["compliance"]["compliance_percentage"], 50.0)
        self.assertEqual(status["risk_distribution"], {"High": 2})
        self.assertEqual(len(status["assessments"]), 2)
        self.assertEqual(len(status["risks"]), 2)

    def test_percentage_is_rounded_to_two_places(self):
        framework = make_framework(controls=3)
        make_assessment(framework, results=[{"control_id": "A.1", "status": AssessmentResult.STATUS_COMPLIANT}])

        status = framework_compliance(framework.id)

        self.assertEqual(status["compliance"]["compliance_percentage"], 33.33)

    def test_framework_without_controls_is_zero_percent(self):
        framework = make_framework()

        self.assertEqual(framework_compliance(framework.id)["compliance"]["compliance_percentage"], 0)

    def test_missing_framework_raises_not_found(self):
        with self.assertRaises(RecordNotFound):
            framework_compliance(999)


class ComplianceTrendsTests(TestCase):
    def test_groups_by_month_ascending(self):
        framework = make_framework()
        now = timezone.now()
        older = now - datetime.timedelta(days=62)

        january = make_assessment(framework, results=[{"control_id": "A.1", "score": 6, "max_score": 10}])
        also_january = make_assessment(framework, results=[{"control_id": "A.1", "score": 8, "max_score": 10}])
        make_assessment(framework, results=[{"control_id": "A.1", "score": 10, "max_score": 10}])
        make_assessment(framework, status=Assessment.STATUS_IN_PROGRESS)
        set_created_at(january, older)
        set_created_at(also_january, older)

        old_risk = make_risk("Critical")
        make_risk("Very High")
        make_risk("High")
        set_created_at(old_risk, older)

        trends = compliance_trends(months=12)

        compliance = trends["compliance_trends"]
        self.assertEqual(len(compliance), 2)
        self.assertEqual((compliance[0]["year"], compliance[0]["month"]), (older.year, older.month))
        self.assertEqual(compliance[0]["count"], 2)
        self.assertEqual(compliance[0]["avg_compliance"], 70)
        self.assertEqual(compliance[1]["count"], 1)
        self.assertEqual(compliance[1]["avg_compliance"], 100)

        risks = trends["risk_trends"]
        self.assertEqual(risks[0]["total_risks"], 1)
        self.assertEqual(risks[0]["critical_risks"], 1)
        self.assertEqual(risks[-1]["very_high_risks"], 1)
        self.assertEqual(risks[-1]["high_risks"], 1)

    def test_window_excludes_older_records(self):
        framework = make_framework()
        assessment = make_assessment(framework, results=[{"control_id": "A.1", "score": 1, "max_score": 1}])
        set_created_at(assessment, timezone.now() - datetime.timedelta(days=45))

        self.assertEqual(compliance_trends(months=1)["compliance_trends"], [])
        self.assertEqual(len(compliance_trends(months=2)["compliance_trends"]), 1)

    def test_rejects_non_positive_window(self):
        for months in (0, -3, True, "6"):
            with self.subTest(months=months):
                with self.assertRaises(ValueError):
                    compliance_trends(months=months)


class OverviewTests(TestCase):
    def test_assessment_overview_tolerates_missing_framework(self):
        framework = make_framework()
        make_assessment(framework, results=[{"control_id": "A.1", "score": 1, "max_score": 1}])
        orphan = make_assessment(framework, results=[{"control_id": "A.1", "score": 0, "max_score": 1}])
        Assessment.objects.filter(pk=orphan.pk).update(framework=None)

        overview = assessment_overview()

        self.assertEqual(overview["overview"]["total_assessments"], 2)
        self.assertEqual(overview["risk_level_distribution"], {"Very Low": 1, "Critical": 1})
        names = {row["framework"]: row["count"] for row in overview["framework_distribution"]}
        self.assertEqual(names, {"ISO 27001": 1, None: 1})


class ComplianceReportTests(TestCase):
    def test_defaults_to_trailing_thirty_days(self):
        make_risk("Critical")
        stale = make_risk("High")
        set_created_at(stale, timezone.now() - datetime.timedelta(days=45))

        report = compliance_report()

        self.assertEqual(report["period"]["end_date"], timezone.localdate())
        self.assertEqual(report["period"]["start_date"], timezone.localdate() - datetime.timedelta(days=30))
        self.assertEqual(report["risks"]["total"], 1)
        self.assertEqual(report["risks"]["by_level"], {"Critical": 1})
        self.assertEqual(report["risks"]["by_treatment"], {"Mitigate": 1})

    def test_framework_filter_and_assessment_summary(self):
        framework = make_framework()
        other = make_framework("SOC 2")
        make_assessment(framework, results=[{"control_id": "A.1", "score": 9, "max_score": 10}])
        make_assessment(framework, status=Assessment.STATUS_IN_PROGRESS)
        make_assessment(other, results=[{"control_id": "A.1", "score": 1, "max_score": 10}])
        make_risk("Low", framework_mappings=[{"framework": framework}])
        make_risk("High")

        report = compliance_report(framework_id=framework.id)

        self.assertEqual(report["framework"]["name"], "ISO 27001")
        self.assertEqual(report["risks"]["total"], 1)
        self.assertEqual(report["assessments"]["total"], 2)
        self.assertEqual(report["assessments"]["completed"], 1)
        self.assertEqual(report["assessments"]["in_progress"], 1)
        # The unscored assessment counts as 0.
        self.assertEqual(report["assessments"]["avg_compliance"], 45)

    def test_sections_can_be_excluded(self):
        report = compliance_report(include_risks=False, include_assessments=False)

        self.assertNotIn("risks", report)
        self.assertNotIn("assessments", report)
