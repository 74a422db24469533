import datetime

from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from compliance.models import ComplianceFramework
from risk.models import Risk
from risk.services.register import create_risk


def risk_body(**overrides) -> dict:
    body = {
        "title": "Supplier data breach",
        "description": "Third-party processor loses customer records.",
        "category": "Compliance",
        "likelihood": "Medium",
        "likelihood_score": 3,
        "impact": "High",
        "impact_score": 4,
        "treatment": "Transfer",
        "next_review_date": (timezone.localdate() + datetime.timedelta(days=60)).isoformat(),
    }
    body.update(overrides)
    return body


class RiskApiTests(APITestCase):
    def setUp(self):
        self.framework = ComplianceFramework.objects.create(
            name="GDPR",
            version="2018",
            description="General Data Protection Regulation",
            framework_type=ComplianceFramework.TYPE_DATA_PROTECTION,
        )

    def test_create_risk_computes_score_and_level(self):
        response = self.client.post(reverse("risk-list"), data=risk_body(), format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["risk_id"], "RISK-0001")
        self.assertEqual(response.data["risk_score"], 12)
        self.assertEqual(response.data["risk_level"], "High")
        self.assertEqual(response.data["treatment_status"], "Planned")
        self.assertIsNone(response.data["residual_risk_level"])

    def test_client_supplied_score_is_ignored(self):
        response = self.client.post(
            reverse("risk-list"),
            data=risk_body(risk_score=1, risk_level="Very Low"),
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["risk_score"], 12)
        self.assertEqual(response.data["risk_level"], "High")

    def test_create_rejects_out_of_range_score(self):
        response = self.client.post(reverse("risk-list"), data=risk_body(impact_score=6), format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("impact_score", response.data)
        self.assertFalse(Risk.objects.exists())

    def test_create_rejects_unknown_category(self):
        response = self.client.post(reverse("risk-list"), data=risk_body(category="Weather"), format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("category", response.data)

    def test_create_requires_next_review_date(self):
        body = risk_body()
        body.pop("next_review_date")
        response = self.client.post(reverse("risk-list"), data=body, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("next_review_date", response.data)

    def test_create_with_framework_mapping(self):
        body = risk_body(framework_mappings=[{"framework": self.framework.id, "control_id": "Art. 28"}])
        response = self.client.post(reverse("risk-list"), data=body, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["framework_mappings"][0]["framework_name"], "GDPR")

    def test_update_recomputes_level(self):
        risk = create_risk(risk_body(next_review_date=timezone.localdate()))
        response = self.client.patch(
            reverse("risk-detail", args=[risk.id]),
            data={"likelihood_score": 5, "impact_score": 5},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["risk_score"], 25)
        self.assertEqual(response.data["risk_level"], "Critical")

    def test_missing_risk_returns_not_found(self):
        response = self.client.get(reverse("risk-detail", args=[999]))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_list_filters_by_level_and_framework(self):
        create_risk(risk_body(likelihood_score=5, impact_score=5, next_review_date=timezone.localdate()))
        mapped = create_risk(
            risk_body(
                title="Mapped",
                next_review_date=timezone.localdate(),
                framework_mappings=[{"framework": self.framework, "control_id": "Art. 32"}],
            )
        )

        by_level = self.client.get(reverse("risk-list"), {"risk_level": "Critical"})
        by_framework = self.client.get(reverse("risk-list"), {"framework": self.framework.id})

        self.assertEqual(by_level.data["count"], 1)
        self.assertEqual(by_framework.data["count"], 1)
        self.assertEqual(by_framework.data["results"][0]["risk_id"], mapped.risk_id)

    def test_list_is_ordered_by_score_and_paginated_with_limit(self):
        for score in (1, 3, 5):
            create_risk(risk_body(likelihood_score=score, impact_score=score, next_review_date=timezone.localdate()))

        response = self.client.get(reverse("risk-list"), {"limit": 2})

        self.assertEqual(response.data["count"], 3)
        self.assertEqual([row["risk_score"] for row in response.data["results"]], [25, 9])

    def test_search_matches_identifier(self):
        risk = create_risk(risk_body(next_review_date=timezone.localdate()))
        create_risk(risk_body(title="Other", next_review_date=timezone.localdate()))

        response = self.client.get(reverse("risk-list"), {"search": "Other"})

        self.assertEqual(response.data["count"], 1)
        self.assertNotEqual(response.data["results"][0]["risk_id"], risk.risk_id)

    def test_treatment_update_resets_status(self):
        risk = create_risk(risk_body(treatment_status="Completed", next_review_date=timezone.localdate()))
        response = self.client.patch(
            reverse("risk-treatment", args=[risk.id]),
            data={"treatment": "Mitigate", "treatment_cost": "1500.00", "treatment_owner": "IT Security"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["treatment"], "Mitigate")
        self.assertEqual(response.data["treatment_status"], "Planned")

    def test_treatment_rejects_negative_cost(self):
        risk = create_risk(risk_body(next_review_date=timezone.localdate()))
        response = self.client.patch(
            reverse("risk-treatment", args=[risk.id]),
            data={"treatment": "Mitigate", "treatment_cost": "-1"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_residual_update_derives_residual_level(self):
        risk = create_risk(risk_body(next_review_date=timezone.localdate()))
        response = self.client.patch(
            reverse("risk-residual", args=[risk.id]),
            data={"residual_likelihood_score": 1, "residual_impact_score": 2},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["residual_risk_score"], 2)
        self.assertEqual(response.data["residual_risk_level"], "Very Low")

    def test_stats_reports_exact_level_counts(self):
        for likelihood, impact in [(5, 4), (4, 5), (3, 4), (2, 3), (3, 5)]:
            create_risk(
                risk_body(likelihood_score=likelihood, impact_score=impact, next_review_date=timezone.localdate())
            )

        response = self.client.get(reverse("risk-stats"))

        overview = response.data["overview"]
        self.assertEqual(overview["total_risks"], 5)
        self.assertEqual(overview["critical_risks"], 2)
        self.assertEqual(overview["very_high_risks"], 1)
        self.assertEqual(overview["high_risks"], 1)
        self.assertEqual(overview["medium_risks"], 1)
        self.assertEqual(response.data["treatment_distribution"], {"Transfer": 5})
        self.assertEqual(response.data["category_distribution"], {"Compliance": 5})
