import datetime
from types import SimpleNamespace

from django.core.exceptions import ValidationError
from django.test import SimpleTestCase, TestCase

from compliance.models import Assessment, AssessmentResult, ComplianceFramework
from compliance.scoring import compliance_risk_level, score_assessment
from compliance.services.assessments import (
    SCORE_FIELDS,
    add_result,
    apply_assessment_scores,
    complete_assessment,
    create_assessment,
    delete_result,
    start_assessment,
    update_result,
)


def make_framework(name: str = "NIST CSF") -> ComplianceFramework:
    return ComplianceFramework.objects.create(
        name=name,
        version="2.0",
        description="Cybersecurity framework",
        framework_type=ComplianceFramework.TYPE_CYBERSECURITY,
    )


def assessment_payload(framework: ComplianceFramework, **overrides) -> dict:
    payload = {
        "name": "Q1 internal audit",
        "framework": framework,
        "assessment_type": Assessment.TYPE_INTERNAL_AUDIT,
        "planned_start_date": datetime.date(2026, 1, 5),
        "planned_end_date": datetime.date(2026, 1, 30),
        "assessor": "Internal Audit",
    }
    payload.update(overrides)
    return payload


class AssessmentScorerTests(SimpleTestCase):
    def test_bucket_boundaries(self) -> None:
        cases = [
            (100, "Very Low"),
            (95, "Very Low"),
            (94.99, "Low"),
            (85, "Low"),
            (84.9, "Medium"),
            (70, "Medium"),
            (69.9, "High"),
            (50, "High"),
            (49.9, "Very High"),
            (25, "Very High"),
            (24.9, "Critical"),
            (0, "Critical"),
        ]
        for percentage, level in cases:
            with self.subTest(percentage=percentage):
                self.assertEqual(compliance_risk_level(percentage), level)

    def test_empty_results_leave_scores_unset(self) -> None:
        self.assertIsNone(score_assessment([]))

    def test_sums_scores_and_computes_percentage(self) -> None:
        score = score_assessment([{"score": 8, "max_score": 10}, {"score": 10, "max_score": 10}])

        self.assertEqual(score.overall_score, 18)
        self.assertEqual(score.max_possible_score, 20)
        self.assertEqual(score.compliance_percentage, 90)
        self.assertEqual(score.risk_level, "Low")

    def test_missing_values_count_as_zero(self) -> None:
        score = score_assessment([{"score": 5, "max_score": 10}, {"max_score": 10}, {}])

        self.assertEqual(score.overall_score, 5)
        self.assertEqual(score.max_possible_score, 20)
        self.assertEqual(score.compliance_percentage, 25)
        self.assertEqual(score.risk_level, "Very High")

    def test_zero_max_score_yields_zero_percent(self) -> None:
        score = score_assessment([SimpleNamespace(score=None, max_score=None)])

        self.assertEqual(score.compliance_percentage, 0)
        self.assertEqual(score.risk_level, "Critical")

    def test_two_partial_controls_land_in_medium(self) -> None:
        score = score_assessment([{"score": 85, "max_score": 100}, {"score": 70, "max_score": 100}])

        self.assertEqual(score.overall_score, 155)
        self.assertEqual(score.max_possible_score, 200)
        self.assertEqual(score.compliance_percentage, 77.5)
        self.assertEqual(score.risk_level, "Medium")

    def test_rescoring_is_idempotent(self) -> None:
        results = [{"score": 3, "max_score": 7}, {"score": 6, "max_score": 9}]

        self.assertEqual(score_assessment(results), score_assessment(results))

    def test_percentage_stays_within_bounds(self) -> None:
        for max_score in (1, 3, 10, 100):
            for score in (0, max_score / 3, max_score / 2, max_score):
                with self.subTest(score=score, max_score=max_score):
                    result = score_assessment([{"score": score, "max_score": max_score}, {"max_score": max_score}])
                    self.assertGreaterEqual(result.compliance_percentage, 0)
                    self.assertLessEqual(result.compliance_percentage, 100)


class AssessmentServiceTests(TestCase):
    def setUp(self) -> None:
        self.framework = make_framework()

    def test_create_without_results_leaves_scores_null(self) -> None:
        assessment = create_assessment(assessment_payload(self.framework), actor="auditor")

        self.assertEqual(assessment.assessment_id, "ASSESS-0001")
        self.assertIsNone(assessment.overall_score)
        self.assertIsNone(assessment.compliance_percentage)
        self.assertIsNone(assessment.risk_level)
        self.assertEqual(assessment.created_by, "auditor")

    def test_create_with_results_rolls_up_scores(self) -> None:
        assessment = create_assessment(
            assessment_payload(
                self.framework,
                results=[
                    {"control_id": "ID.AM-1", "status": AssessmentResult.STATUS_COMPLIANT, "score": 10, "max_score": 10},
                    {"control_id": "PR.AC-1", "status": AssessmentResult.STATUS_NON_COMPLIANT, "score": 2, "max_score": 10},
                ],
            )
        )

        assessment.refresh_from_db()
        self.assertEqual(assessment.overall_score, 12)
        self.assertEqual(assessment.max_possible_score, 20)
        self.assertEqual(assessment.compliance_percentage, 60)
        self.assertEqual(assessment.risk_level, "High")

    def test_result_changes_refresh_scores(self) -> None:
        assessment = create_assessment(assessment_payload(self.framework))

        first = add_result(assessment, {"control_id": "ID.AM-1", "score": 5, "max_score": 10})
        assessment.refresh_from_db()
        self.assertEqual(assessment.compliance_percentage, 50)

        update_result(first, {"score": 10})
        assessment.refresh_from_db()
        self.assertEqual(assessment.compliance_percentage, 100)
        self.assertEqual(assessment.risk_level, "Very Low")

        delete_result(first)
        assessment.refresh_from_db()
        self.assertIsNone(assessment.compliance_percentage)
        self.assertIsNone(assessment.risk_level)

    def test_start_and_complete_stamp_actual_dates(self) -> None:
        assessment = create_assessment(assessment_payload(self.framework))

        start_assessment(assessment)
        self.assertEqual(assessment.status, Assessment.STATUS_IN_PROGRESS)
        self.assertIsNotNone(assessment.actual_start_date)

        complete_assessment(assessment)
        assessment.refresh_from_db()
        self.assertEqual(assessment.status, Assessment.STATUS_COMPLETED)
        self.assertIsNotNone(assessment.actual_end_date)

    def test_framework_delete_keeps_assessment(self) -> None:
        assessment = create_assessment(assessment_payload(self.framework))
        self.framework.delete()

        assessment.refresh_from_db()
        self.assertIsNone(assessment.framework_id)

    def test_adding_result_to_prefetched_assessment_refreshes_scores(self) -> None:
        created = create_assessment(assessment_payload(self.framework))
        assessment = Assessment.objects.prefetch_related("results").get(pk=created.pk)
        self.assertEqual(list(assessment.results.all()), [])

        add_result(assessment, {"control_id": "ID.AM-1", "score": 85, "max_score": 100})

        assessment.refresh_from_db()
        self.assertEqual(assessment.compliance_percentage, 85)
        self.assertEqual(assessment.risk_level, "Low")

    def test_recomputing_twice_gives_identical_fields(self) -> None:
        assessment = create_assessment(
            assessment_payload(
                self.framework,
                results=[
                    {"control_id": "ID.AM-1", "score": 85, "max_score": 100},
                    {"control_id": "PR.AC-1", "score": 70, "max_score": 100},
                ],
            )
        )

        first = {name: getattr(apply_assessment_scores(assessment), name) for name in SCORE_FIELDS}
        second = {name: getattr(apply_assessment_scores(assessment), name) for name in SCORE_FIELDS}

        self.assertEqual(first, second)
        self.assertEqual(first["compliance_percentage"], 77.5)

    def test_score_above_max_is_rejected(self) -> None:
        assessment = create_assessment(assessment_payload(self.framework))

        with self.assertRaises(ValidationError):
            add_result(assessment, {"control_id": "ID.AM-1", "score": 11, "max_score": 10})
        with self.assertRaises(ValidationError):
            create_assessment(
                assessment_payload(
                    self.framework,
                    name="Overscored",
                    results=[{"control_id": "ID.AM-1", "score": 11, "max_score": 10}],
                )
            )

        self.assertFalse(AssessmentResult.objects.exists())
        self.assertEqual(Assessment.objects.count(), 1)
        assessment.refresh_from_db()
        self.assertIsNone(assessment.compliance_percentage)

    def test_update_result_above_max_is_rejected(self) -> None:
        assessment = create_assessment(assessment_payload(self.framework))
        result = add_result(assessment, {"control_id": "ID.AM-1", "score": 5, "max_score": 10})

        with self.assertRaises(ValidationError):
            update_result(result, {"score": 12})

        assessment.refresh_from_db()
        self.assertEqual(assessment.compliance_percentage, 50)

    def test_model_clean_rejects_score_above_max(self) -> None:
        with self.assertRaises(ValidationError) as caught:
            AssessmentResult(score=11, max_score=10).clean()

        self.assertIn("score", caught.exception.message_dict)
