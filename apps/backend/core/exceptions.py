from __future__ import annotations

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import exceptions, serializers
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class RecordNotFound(exceptions.NotFound):
    default_detail = "Record not found."
    default_code = "record_not_found"


def api_exception_handler(exc, context):
    if isinstance(exc, DjangoValidationError):
        detail = exc.message_dict if hasattr(exc, "error_dict") else exc.messages
        exc = serializers.ValidationError(detail)

    response = exception_handler(exc, context)
    if response is None:
        view = context.get("view")
        logger.exception("Unhandled API error in %s", type(view).__name__ if view else "unknown view")
    elif response.status_code >= 500:
        logger.error("API error %s: %s", response.status_code, response.data)
    return response
