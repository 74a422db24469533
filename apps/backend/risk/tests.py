import datetime

from django.test import SimpleTestCase, TestCase
from django.utils import timezone

from compliance.models import ComplianceFramework
from risk.models import Risk, RiskFrameworkMapping
from risk.scoring import derive_risk_fields, risk_level_for_score, score_risk
from risk.services.register import (
    create_risk,
    delete_risk,
    update_residual,
    update_risk,
    update_treatment,
)


def risk_payload(**overrides) -> dict:
    payload = {
        "title": "Unpatched VPN concentrator",
        "description": "Known CVE on perimeter VPN appliance.",
        "category": Risk.CATEGORY_TECHNICAL,
        "likelihood": Risk.RATING_HIGH,
        "likelihood_score": 4,
        "impact": Risk.RATING_VERY_HIGH,
        "impact_score": 5,
        "treatment": Risk.TREATMENT_MITIGATE,
        "next_review_date": timezone.localdate() + datetime.timedelta(days=90),
    }
    payload.update(overrides)
    return payload


class RiskScorerTests(SimpleTestCase):
    def test_bucket_boundaries(self) -> None:
        cases = [
            (1, "Very Low"),
            (2, "Very Low"),
            (3, "Low"),
            (5, "Low"),
            (6, "Medium"),
            (9, "Medium"),
            (10, "High"),
            (12, "High"),
            (14, "High"),
            (15, "Very High"),
            (16, "Very High"),
            (19, "Very High"),
            (20, "Critical"),
            (25, "Critical"),
        ]
        for score, level in cases:
            with self.subTest(score=score):
                self.assertEqual(risk_level_for_score(score), level)

    def test_score_risk_multiplies_inputs(self) -> None:
        self.assertEqual(score_risk(1, 1), (1, "Very Low"))
        self.assertEqual(score_risk(3, 4), (12, "High"))
        self.assertEqual(score_risk(5, 5), (25, "Critical"))

    def test_score_risk_rejects_out_of_range_inputs(self) -> None:
        for likelihood, impact in [(0, 3), (6, 3), (3, 0), (3, 6), (2.5, 3), (True, 3), ("3", 3)]:
            with self.subTest(likelihood=likelihood, impact=impact):
                with self.assertRaises(ValueError):
                    score_risk(likelihood, impact)

    def test_residual_fields_require_both_scores(self) -> None:
        fields = derive_risk_fields(4, 4, residual_likelihood_score=2)
        self.assertEqual(fields["risk_score"], 16)
        self.assertEqual(fields["risk_level"], "Very High")
        self.assertIsNone(fields["residual_risk_score"])
        self.assertIsNone(fields["residual_risk_level"])

    def test_residual_fields_use_same_bucket_table(self) -> None:
        fields = derive_risk_fields(4, 4, residual_likelihood_score=2, residual_impact_score=2)
        self.assertEqual(fields["residual_risk_score"], 4)
        self.assertEqual(fields["residual_risk_level"], "Low")


class RiskRegisterServiceTests(TestCase):
    def setUp(self) -> None:
        self.framework = ComplianceFramework.objects.create(
            name="ISO 27001",
            version="2022",
            description="Information security management",
            framework_type=ComplianceFramework.TYPE_CYBERSECURITY,
        )

    def test_create_assigns_identifier_and_scores(self) -> None:
        risk = create_risk(risk_payload(), actor="analyst")

        self.assertEqual(risk.risk_id, "RISK-0001")
        self.assertEqual(risk.risk_score, 20)
        self.assertEqual(risk.risk_level, "Critical")
        self.assertIsNone(risk.residual_risk_score)
        self.assertEqual(risk.created_by, "analyst")
        self.assertEqual(risk.updated_by, "analyst")

    def test_identifiers_do_not_repeat_after_delete(self) -> None:
        first = create_risk(risk_payload())
        second = create_risk(risk_payload(title="Second"))
        delete_risk(second)
        third = create_risk(risk_payload(title="Third"))

        self.assertEqual(first.risk_id, "RISK-0001")
        self.assertEqual(third.risk_id, "RISK-0003")

    def test_update_recomputes_level(self) -> None:
        risk = create_risk(risk_payload())
        update_risk(risk, {"likelihood_score": 1, "impact_score": 2}, actor="reviewer")

        risk.refresh_from_db()
        self.assertEqual(risk.risk_score, 2)
        self.assertEqual(risk.risk_level, "Very Low")
        self.assertEqual(risk.updated_by, "reviewer")

    def test_create_stores_framework_mappings(self) -> None:
        risk = create_risk(
            risk_payload(
                framework_mappings=[
                    {"framework": self.framework, "control_id": "A.8.8", "control_title": "Vulnerability management"}
                ]
            )
        )

        mapping = RiskFrameworkMapping.objects.get(risk=risk)
        self.assertEqual(mapping.framework, self.framework)
        self.assertEqual(mapping.control_id, "A.8.8")

    def test_mapping_survives_framework_delete(self) -> None:
        risk = create_risk(risk_payload(framework_mappings=[{"framework": self.framework, "control_id": "A.8.8"}]))
        self.framework.delete()

        mapping = risk.framework_mappings.get()
        self.assertIsNone(mapping.framework_id)

    def test_update_treatment_resets_status_to_planned(self) -> None:
        risk = create_risk(risk_payload(treatment_status=Risk.TREATMENT_STATUS_IN_PROGRESS))
        update_treatment(risk, {"treatment": Risk.TREATMENT_TRANSFER, "treatment_owner": "CFO"})

        risk.refresh_from_db()
        self.assertEqual(risk.treatment, Risk.TREATMENT_TRANSFER)
        self.assertEqual(risk.treatment_owner, "CFO")
        self.assertEqual(risk.treatment_status, Risk.TREATMENT_STATUS_PLANNED)

    def test_update_residual_derives_residual_level(self) -> None:
        risk = create_risk(risk_payload())
        update_residual(
            risk,
            {
                "residual_likelihood": Risk.RATING_LOW,
                "residual_likelihood_score": 2,
                "residual_impact": Risk.RATING_MEDIUM,
                "residual_impact_score": 3,
            },
        )

        risk.refresh_from_db()
        self.assertEqual(risk.residual_risk_score, 6)
        self.assertEqual(risk.residual_risk_level, "Medium")
        self.assertEqual(risk.risk_level, "Critical")

    def test_clearing_one_residual_score_clears_residual_level(self) -> None:
        risk = create_risk(risk_payload(residual_likelihood_score=2, residual_impact_score=2))
        self.assertEqual(risk.residual_risk_level, "Low")

        update_residual(risk, {"residual_impact_score": None})

        risk.refresh_from_db()
        self.assertIsNone(risk.residual_risk_score)
        self.assertIsNone(risk.residual_risk_level)
