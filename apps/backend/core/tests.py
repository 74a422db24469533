from django.core.exceptions import ValidationError as DjangoValidationError
from django.test import SimpleTestCase, TestCase
from rest_framework import status

from core.exceptions import RecordNotFound, api_exception_handler
from core.models import IdentifierSequence
from core.sequences import format_identifier, reserve_identifier


class IdentifierSequenceTests(TestCase):
    def test_reserve_identifier_is_sequential_per_prefix(self):
        self.assertEqual(reserve_identifier("RISK"), "RISK-0001")
        self.assertEqual(reserve_identifier("RISK"), "RISK-0002")
        self.assertEqual(reserve_identifier("ASSESS"), "ASSESS-0001")

    def test_reserve_identifier_persists_last_value(self):
        reserve_identifier("RISK")
        reserve_identifier("RISK")
        self.assertEqual(reserve_identifier("RISK"), "RISK-0003")
        self.assertEqual(IdentifierSequence.objects.get(prefix="RISK").last_value, 3)

    def test_format_identifier_pads_to_width(self):
        self.assertEqual(format_identifier("RISK", 7), "RISK-0007")
        self.assertEqual(format_identifier("RISK", 12345), "RISK-12345")


class ApiExceptionHandlerTests(SimpleTestCase):
    def test_django_validation_error_becomes_bad_request(self):
        response = api_exception_handler(DjangoValidationError({"status": ["Invalid transition."]}), {})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {"status": ["Invalid transition."]})

    def test_record_not_found_is_404(self):
        response = api_exception_handler(RecordNotFound("Framework not found"), {})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(str(response.data["detail"]), "Framework not found")

    def test_unhandled_error_is_left_to_django(self):
        with self.assertLogs("core.exceptions", level="ERROR"):
            try:
                raise RuntimeError("boom")
            except RuntimeError as exc:
                response = api_exception_handler(exc, {})
        self.assertIsNone(response)
