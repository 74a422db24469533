import datetime

from django.core.management import call_command
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from compliance.models import Assessment, AssessmentResult, ComplianceFramework, FrameworkControl
from compliance.services.assessments import add_result, create_assessment
from risk.models import Risk
from risk.services.register import create_risk


def framework_body(**overrides) -> dict:
    body = {
        "name": "SOC 2",
        "version": "2017",
        "description": "Trust services criteria",
        "framework_type": "Cybersecurity",
        "controls": [
            {"control_id": "CC1.1", "title": "Integrity and ethical values", "priority": "High"},
            {"control_id": "CC6.1", "title": "Logical access", "priority": "Critical"},
        ],
    }
    body.update(overrides)
    return body


def assessment_body(framework_id, **overrides) -> dict:
    body = {
        "name": "SOC 2 readiness",
        "framework": framework_id,
        "assessment_type": "Self-Assessment",
        "planned_start_date": "2026-04-01",
        "planned_end_date": "2026-04-30",
        "assessor": "GRC team",
    }
    body.update(overrides)
    return body


def seed_assessment(framework, **overrides) -> Assessment:
    data = {
        **assessment_body(framework),
        "planned_start_date": datetime.date(2026, 4, 1),
        "planned_end_date": datetime.date(2026, 4, 30),
    }
    data.update(overrides)
    return create_assessment(data)


class ComplianceFrameworkApiTests(APITestCase):
    def test_create_framework_with_controls(self):
        response = self.client.post(reverse("compliance-framework-list"), data=framework_body(), format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(len(response.data["controls"]), 2)
        self.assertEqual(FrameworkControl.objects.count(), 2)

    def test_duplicate_name_is_rejected(self):
        self.client.post(reverse("compliance-framework-list"), data=framework_body(), format="json")
        response = self.client.post(reverse("compliance-framework-list"), data=framework_body(), format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("name", response.data)

    def test_duplicate_control_ids_in_payload_are_rejected(self):
        controls = [{"control_id": "CC1.1", "title": "One"}, {"control_id": "CC1.1", "title": "Two"}]
        response = self.client.post(
            reverse("compliance-framework-list"),
            data=framework_body(controls=controls),
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(ComplianceFramework.objects.exists())

    def test_add_update_and_delete_control(self):
        created = self.client.post(reverse("compliance-framework-list"), data=framework_body(), format="json")
        framework_id = created.data["id"]

        added = self.client.post(
            reverse("compliance-framework-controls", args=[framework_id]),
            data={"control_id": "CC7.2", "title": "Monitoring"},
            format="json",
        )
        self.assertEqual(added.status_code, status.HTTP_201_CREATED)
        self.assertEqual(len(added.data["controls"]), 3)

        duplicate = self.client.post(
            reverse("compliance-framework-controls", args=[framework_id]),
            data={"control_id": "CC7.2", "title": "Monitoring again"},
            format="json",
        )
        self.assertEqual(duplicate.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("control_id", duplicate.data)

        control = FrameworkControl.objects.get(control_id="CC7.2")
        updated = self.client.patch(
            reverse("compliance-framework-control-detail", args=[framework_id, control.id]),
            data={"title": "System monitoring"},
            format="json",
        )
        self.assertEqual(updated.status_code, status.HTTP_200_OK)
        control.refresh_from_db()
        self.assertEqual(control.title, "System monitoring")

        deleted = self.client.delete(reverse("compliance-framework-control-detail", args=[framework_id, control.id]))
        self.assertEqual(deleted.status_code, status.HTTP_200_OK)
        self.assertEqual(len(deleted.data["controls"]), 2)

    def test_control_of_other_framework_is_not_found(self):
        first = self.client.post(reverse("compliance-framework-list"), data=framework_body(), format="json")
        second = self.client.post(
            reverse("compliance-framework-list"),
            data=framework_body(name="ISO 27001", controls=[{"control_id": "A.5", "title": "Policies"}]),
            format="json",
        )
        control = FrameworkControl.objects.get(control_id="A.5")

        response = self.client.patch(
            reverse("compliance-framework-control-detail", args=[first.data["id"], control.id]),
            data={"title": "Moved"},
            format="json",
        )

        self.assertEqual(second.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_upload_creates_then_updates_by_name(self):
        created = self.client.post(
            reverse("compliance-framework-upload"),
            data={"name": "Internal Policy", "controls": [{"control_id": "P-1", "title": "Acceptable use"}]},
            format="json",
        )

        self.assertEqual(created.status_code, status.HTTP_201_CREATED)
        self.assertEqual(created.data["action"], "created")
        framework = created.data["framework"]
        self.assertEqual(framework["version"], "1.0")
        self.assertEqual(framework["framework_type"], "Custom")
        self.assertEqual(framework["assessment_frequency"], "Annually")
        self.assertEqual(framework["scoring_method"], "Pass/Fail")
        self.assertEqual(
            (framework["pass_threshold"], framework["warning_threshold"], framework["fail_threshold"]),
            (80, 60, 40),
        )

        updated = self.client.post(
            reverse("compliance-framework-upload"),
            data={
                "name": "Internal Policy",
                "version": "1.1",
                "controls": [
                    {"control_id": "P-1", "title": "Acceptable use"},
                    {"control_id": "P-2", "title": "Remote work"},
                ],
            },
            format="json",
        )

        self.assertEqual(updated.status_code, status.HTTP_200_OK)
        self.assertEqual(updated.data["action"], "updated")
        self.assertEqual(updated.data["framework"]["version"], "1.1")
        self.assertEqual(updated.data["framework"]["framework_type"], "Custom")
        self.assertIsNotNone(updated.data["framework"]["last_updated"])
        self.assertEqual(ComplianceFramework.objects.count(), 1)
        self.assertEqual(FrameworkControl.objects.count(), 2)

    def test_upload_without_controls_keeps_existing_controls(self):
        self.client.post(reverse("compliance-framework-list"), data=framework_body(), format="json")

        response = self.client.post(
            reverse("compliance-framework-upload"),
            data={"name": "SOC 2", "description": "Updated description"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["framework"]["description"], "Updated description")
        self.assertEqual(len(response.data["framework"]["controls"]), 2)

    def test_initialize_seeds_catalog_once(self):
        first = self.client.post(reverse("compliance-framework-initialize"))
        second = self.client.post(reverse("compliance-framework-initialize"))

        self.assertEqual(first.status_code, status.HTTP_201_CREATED)
        self.assertEqual([row["name"] for row in first.data["frameworks"]], ["ISO 27005", "NIST RMF", "GDPR"])
        self.assertEqual(second.status_code, status.HTTP_200_OK)
        self.assertEqual(second.data["frameworks"], [])
        self.assertEqual(ComplianceFramework.objects.count(), 3)
        gdpr = ComplianceFramework.objects.get(name="GDPR")
        self.assertEqual(gdpr.controls.get(control_id="Art. 5").priority, "Critical")
        self.assertEqual((gdpr.pass_threshold, gdpr.warning_threshold, gdpr.fail_threshold), (100, 90, 80))

    def test_seed_command_is_idempotent(self):
        call_command("seed_frameworks", verbosity=0)
        call_command("seed_frameworks", verbosity=0)

        self.assertEqual(ComplianceFramework.objects.count(), 3)
        self.assertEqual(FrameworkControl.objects.count(), 6)

    def test_list_filters_by_type(self):
        self.client.post(reverse("compliance-framework-list"), data=framework_body(), format="json")
        self.client.post(
            reverse("compliance-framework-list"),
            data=framework_body(name="GDPR", framework_type="Data Protection", controls=[]),
            format="json",
        )

        response = self.client.get(reverse("compliance-framework-list"), {"type": "Data Protection"})

        self.assertEqual(response.data["count"], 1)
        self.assertEqual(response.data["results"][0]["name"], "GDPR")


class AssessmentApiTests(APITestCase):
    def setUp(self):
        self.framework = ComplianceFramework.objects.create(
            name="SOC 2",
            version="2017",
            description="Trust services criteria",
            framework_type=ComplianceFramework.TYPE_CYBERSECURITY,
        )

    def test_create_requires_framework(self):
        body = assessment_body(self.framework.id)
        body.pop("framework")
        response = self.client.post(reverse("assessment-list"), data=body, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("framework", response.data)

    def test_create_rejects_end_before_start(self):
        response = self.client.post(
            reverse("assessment-list"),
            data=assessment_body(self.framework.id, planned_end_date="2026-03-01"),
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("planned_end_date", response.data)

    def test_create_with_results_rolls_up_scores(self):
        body = assessment_body(
            self.framework.id,
            results=[
                {"control_id": "CC1.1", "status": "Compliant", "score": 9, "max_score": 10},
                {
                    "control_id": "CC6.1",
                    "status": "Partially Compliant",
                    "score": 5,
                    "max_score": 10,
                    "findings": [{"type": "Minor Non-Conformity", "priority": "High"}],
                    "evidence": [{"type": "Screenshot", "url": "https://evidence.example.com/1"}],
                },
            ],
        )
        response = self.client.post(reverse("assessment-list"), data=body, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["assessment_id"], "ASSESS-0001")
        self.assertEqual(response.data["framework_name"], "SOC 2")
        self.assertEqual(response.data["overall_score"], 14)
        self.assertEqual(response.data["max_possible_score"], 20)
        self.assertEqual(response.data["compliance_percentage"], 70)
        self.assertEqual(response.data["risk_level"], "Medium")

    def test_create_without_results_has_null_scores(self):
        response = self.client.post(reverse("assessment-list"), data=assessment_body(self.framework.id), format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIsNone(response.data["compliance_percentage"])
        self.assertIsNone(response.data["risk_level"])

    def test_result_validation(self):
        assessment = seed_assessment(self.framework)
        url = reverse("assessment-results", args=[assessment.id])

        too_high = self.client.post(url, data={"control_id": "CC1.1", "score": 11, "max_score": 10}, format="json")
        negative = self.client.post(url, data={"control_id": "CC1.1", "score": -1, "max_score": 10}, format="json")
        bad_status = self.client.post(url, data={"control_id": "CC1.1", "status": "Mostly fine"}, format="json")
        bad_finding = self.client.post(
            url,
            data={"control_id": "CC1.1", "findings": [{"type": "Observation", "priority": "Urgent"}]},
            format="json",
        )

        for response in (too_high, negative, bad_status, bad_finding):
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(AssessmentResult.objects.exists())

    def test_result_endpoints_refresh_scores(self):
        assessment = seed_assessment(self.framework)

        added = self.client.post(
            reverse("assessment-results", args=[assessment.id]),
            data={"control_id": "CC1.1", "status": "Compliant", "score": 4, "max_score": 10},
            format="json",
        )
        self.assertEqual(added.status_code, status.HTTP_201_CREATED)
        self.assertEqual(added.data["compliance_percentage"], 40)
        self.assertEqual(added.data["risk_level"], "Very High")

        result_id = added.data["results"][0]["id"]
        updated = self.client.patch(
            reverse("assessment-result-detail", args=[assessment.id, result_id]),
            data={"score": 10},
            format="json",
        )
        self.assertEqual(updated.status_code, status.HTTP_200_OK)
        self.assertEqual(updated.data["compliance_percentage"], 100)
        self.assertEqual(updated.data["risk_level"], "Very Low")

        removed = self.client.delete(reverse("assessment-result-detail", args=[assessment.id, result_id]))
        self.assertEqual(removed.status_code, status.HTTP_200_OK)
        self.assertIsNone(removed.data["compliance_percentage"])

    def test_start_and_complete(self):
        assessment = seed_assessment(self.framework)

        started = self.client.patch(reverse("assessment-start", args=[assessment.id]), format="json")
        completed = self.client.patch(reverse("assessment-complete", args=[assessment.id]), format="json")

        self.assertEqual(started.data["status"], "In Progress")
        self.assertEqual(started.data["actual_start_date"], timezone.localdate().isoformat())
        self.assertEqual(completed.data["status"], "Completed")
        self.assertEqual(completed.data["actual_end_date"], timezone.localdate().isoformat())

    def test_recommendations(self):
        assessment = seed_assessment(self.framework)

        created = self.client.post(
            reverse("assessment-recommendations", args=[assessment.id]),
            data={"title": "Enable MFA for admins", "priority": "High", "assigned_to": "IT"},
            format="json",
        )
        self.assertEqual(created.status_code, status.HTTP_201_CREATED)
        recommendation_id = created.data["recommendations"][0]["id"]
        self.assertEqual(created.data["recommendations"][0]["status"], "Open")

        updated = self.client.patch(
            reverse("assessment-recommendation-detail", args=[assessment.id, recommendation_id]),
            data={"status": "Completed"},
            format="json",
        )
        self.assertEqual(updated.status_code, status.HTTP_200_OK)
        self.assertEqual(updated.data["recommendations"][0]["status"], "Completed")

    def test_list_filters_and_stats(self):
        seed_assessment(self.framework, status=Assessment.STATUS_COMPLETED)
        seed_assessment(self.framework)

        completed = self.client.get(reverse("assessment-list"), {"status": "Completed"})
        bad_framework = self.client.get(reverse("assessment-list"), {"framework": "abc"})
        stats = self.client.get(reverse("assessment-stats"))

        self.assertEqual(completed.data["count"], 1)
        self.assertEqual(bad_framework.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(stats.data["overview"]["total_assessments"], 2)
        self.assertEqual(stats.data["overview"]["planned_assessments"], 1)

    def test_missing_assessment_returns_not_found(self):
        response = self.client.get(reverse("assessment-detail", args=[404]))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class ComplianceEndpointTests(APITestCase):
    def setUp(self):
        self.framework = ComplianceFramework.objects.create(
            name="ISO 27001",
            version="2022",
            description="Information security management",
            framework_type=ComplianceFramework.TYPE_CYBERSECURITY,
        )
        FrameworkControl.objects.create(framework=self.framework, control_id="A.5.1", title="Policies")
        FrameworkControl.objects.create(framework=self.framework, control_id="A.8.8", title="Vulnerabilities")
        self.assessment = create_assessment(
            {
                "name": "ISO audit",
                "framework": self.framework,
                "assessment_type": Assessment.TYPE_EXTERNAL_AUDIT,
                "status": Assessment.STATUS_COMPLETED,
                "planned_start_date": datetime.date(2026, 2, 1),
                "planned_end_date": datetime.date(2026, 2, 20),
                "assessor": "Certification body",
            }
        )
        add_result(self.assessment, {"control_id": "A.5.1", "status": "Compliant", "score": 10, "max_score": 10})
        add_result(
            self.assessment,
            {
                "control_id": "A.8.8",
                "status": "Non-Compliant",
                "score": 0,
                "max_score": 10,
                "findings": [{"type": "Major Non-Conformity", "priority": "Critical"}],
            },
        )
        create_risk(
            {
                "title": "Unpatched servers",
                "description": "Patch backlog on production hosts",
                "category": Risk.CATEGORY_TECHNICAL,
                "likelihood": Risk.RATING_VERY_HIGH,
                "likelihood_score": 5,
                "impact": Risk.RATING_HIGH,
                "impact_score": 4,
                "treatment": Risk.TREATMENT_MITIGATE,
                "next_review_date": timezone.localdate() + datetime.timedelta(days=7),
                "framework_mappings": [{"framework": self.framework, "control_id": "A.8.8"}],
            }
        )

    def test_dashboard(self):
        response = self.client.get(reverse("compliance-dashboard"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["risk_stats"]["critical_risks"], 1)
        self.assertEqual(response.data["assessment_stats"]["completed_assessments"], 1)
        self.assertEqual(response.data["assessment_stats"]["avg_compliance_percentage"], 50)
        self.assertEqual(len(response.data["upcoming_reviews"]), 1)

    def test_status(self):
        response = self.client.get(reverse("compliance-status", args=[self.framework.id]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["compliance"]["compliance_percentage"], 50)
        self.assertEqual(response.data["risk_distribution"], {"Critical": 1})

    def test_status_for_missing_framework_is_not_found(self):
        response = self.client.get(reverse("compliance-status", args=[999]))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_trends(self):
        response = self.client.get(reverse("compliance-trends"), {"months": 3})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["compliance_trends"][0]["count"], 1)
        self.assertEqual(response.data["risk_trends"][0]["critical_risks"], 1)

    def test_trends_rejects_bad_months(self):
        for months in ("0", "-1", "abc"):
            with self.subTest(months=months):
                response = self.client.get(reverse("compliance-trends"), {"months": months})
                self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_gaps(self):
        response = self.client.get(reverse("compliance-gaps"), {"framework": self.framework.id})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]["control_id"], "A.8.8")
        self.assertEqual(response.data[0]["priority"], "Critical")
        self.assertEqual(response.data[0]["assessment_id"], self.assessment.assessment_id)

    def test_report(self):
        response = self.client.post(
            reverse("compliance-report"),
            data={"framework": self.framework.id, "include_risks": True, "include_assessments": True},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["framework"]["name"], "ISO 27001")
        self.assertEqual(response.data["risks"]["by_level"], {"Critical": 1})
        self.assertEqual(response.data["assessments"]["completed"], 1)
        self.assertEqual(response.data["assessments"]["avg_compliance"], 50)

    def test_report_rejects_inverted_period(self):
        response = self.client.post(
            reverse("compliance-report"),
            data={"start_date": "2026-05-01", "end_date": "2026-04-01"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_healthcheck(self):
        response = self.client.get(reverse("healthcheck"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()["status"], "ok")
