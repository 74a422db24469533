import datetime

from django.test import TestCase

from compliance.models import Assessment, AssessmentResult, ComplianceFramework
from compliance.services.assessments import create_assessment
from compliance.services.gaps import compliance_gaps, find_gaps


def make_assessment(framework, name, results, status=Assessment.STATUS_COMPLETED) -> Assessment:
    return create_assessment(
        {
            "name": name,
            "framework": framework,
            "assessment_type": Assessment.TYPE_EXTERNAL_AUDIT,
            "status": status,
            "planned_start_date": datetime.date(2026, 3, 1),
            "planned_end_date": datetime.date(2026, 3, 15),
            "assessor": "External auditor",
            "results": results,
        }
    )


def finding(priority=None, kind="Major Non-Conformity") -> dict:
    data = {"type": kind, "description": "Control not operating"}
    if priority:
        data["priority"] = priority
    return data


class GapAnalyzerTests(TestCase):
    def setUp(self):
        self.framework = ComplianceFramework.objects.create(
            name="PCI DSS",
            version="4.0",
            description="Payment card industry data security standard",
            framework_type=ComplianceFramework.TYPE_INDUSTRY_SPECIFIC,
        )

    def test_high_finding_sorts_before_default_medium(self):
        make_assessment(
            self.framework,
            "Partial",
            [{"control_id": "8.3", "status": AssessmentResult.STATUS_PARTIALLY_COMPLIANT}],
        )
        make_assessment(
            self.framework,
            "Failed",
            [{"control_id": "3.4", "status": AssessmentResult.STATUS_NON_COMPLIANT, "findings": [finding("High")]}],
        )

        gaps = compliance_gaps()

        self.assertEqual(len(gaps), 2)
        self.assertEqual(gaps[0]["control_id"], "3.4")
        self.assertEqual(gaps[0]["priority"], "High")
        self.assertEqual(gaps[1]["control_id"], "8.3")
        self.assertEqual(gaps[1]["priority"], "Medium")
        self.assertEqual(gaps[1]["findings"], [])
        self.assertEqual(gaps[0]["framework"], "PCI DSS")

    def test_only_completed_assessments_and_gap_statuses(self):
        make_assessment(
            self.framework,
            "In flight",
            [{"control_id": "1.1", "status": AssessmentResult.STATUS_NON_COMPLIANT}],
            status=Assessment.STATUS_IN_PROGRESS,
        )
        make_assessment(
            self.framework,
            "Done",
            [
                {"control_id": "1.2", "status": AssessmentResult.STATUS_COMPLIANT},
                {"control_id": "1.3", "status": AssessmentResult.STATUS_NOT_APPLICABLE},
                {"control_id": "1.4", "status": AssessmentResult.STATUS_NOT_ASSESSED},
                {"control_id": "1.5", "status": AssessmentResult.STATUS_NON_COMPLIANT},
            ],
        )

        gaps = compliance_gaps()

        self.assertEqual([gap["control_id"] for gap in gaps], ["1.5"])
        self.assertEqual(gaps[0]["assessment_name"], "Done")

    def test_ranking_is_stable_and_unknown_priority_sorts_last(self):
        results = [
            {"control_id": "low", "status": AssessmentResult.STATUS_NON_COMPLIANT, "findings": [finding("Low")]},
            {"control_id": "medium-a", "status": AssessmentResult.STATUS_NON_COMPLIANT},
            {"control_id": "critical", "status": AssessmentResult.STATUS_NON_COMPLIANT, "findings": [finding("Critical")]},
            {"control_id": "medium-b", "status": AssessmentResult.STATUS_PARTIALLY_COMPLIANT},
            {"control_id": "unknown", "status": AssessmentResult.STATUS_NON_COMPLIANT, "findings": [finding("Urgent")]},
        ]
        assessment = make_assessment(self.framework, "Mixed", results)

        gaps = find_gaps([Assessment.objects.get(pk=assessment.pk)])

        self.assertEqual(
            [gap["control_id"] for gap in gaps],
            ["critical", "medium-a", "medium-b", "low", "unknown"],
        )

    def test_first_finding_decides_priority(self):
        make_assessment(
            self.framework,
            "Multi",
            [
                {
                    "control_id": "6.2",
                    "status": AssessmentResult.STATUS_NON_COMPLIANT,
                    "findings": [finding("Low"), finding("Critical")],
                }
            ],
        )

        self.assertEqual(compliance_gaps()[0]["priority"], "Low")

    def test_filter_by_framework(self):
        other = ComplianceFramework.objects.create(
            name="SOC 2",
            version="2017",
            description="Trust services criteria",
            framework_type=ComplianceFramework.TYPE_CYBERSECURITY,
        )
        make_assessment(self.framework, "PCI", [{"control_id": "1", "status": AssessmentResult.STATUS_NON_COMPLIANT}])
        make_assessment(other, "SOC", [{"control_id": "CC1", "status": AssessmentResult.STATUS_NON_COMPLIANT}])

        gaps = compliance_gaps(framework_id=other.id)

        self.assertEqual([gap["control_id"] for gap in gaps], ["CC1"])

    def test_gap_without_framework_is_kept(self):
        make_assessment(self.framework, "Orphan", [{"control_id": "2.1", "status": AssessmentResult.STATUS_NON_COMPLIANT}])
        self.framework.delete()

        gaps = compliance_gaps()

        self.assertEqual(len(gaps), 1)
        self.assertIsNone(gaps[0]["framework"])
