from __future__ import annotations

import logging

from django.db import IntegrityError, transaction
from django.db.models import F

from .models import IdentifierSequence

logger = logging.getLogger(__name__)

DEFAULT_WIDTH = 4


def format_identifier(prefix: str, value: int, width: int = DEFAULT_WIDTH) -> str:
    return f"{prefix}-{value:0{width}d}"


def _ensure_sequence(prefix: str) -> None:
    if IdentifierSequence.objects.filter(prefix=prefix).exists():
        return
    try:
        with transaction.atomic():
            IdentifierSequence.objects.create(prefix=prefix)
    except IntegrityError:
        # Another writer created the row first.
        pass


def reserve_identifier(prefix: str, width: int = DEFAULT_WIDTH) -> str:
    """Reserve the next identifier for ``prefix`` (``RISK-0001`` style).

    The counter row is locked and incremented with an ``F()`` expression, so two
    concurrent writers never observe the same value.
    """
    _ensure_sequence(prefix)
    with transaction.atomic():
        sequence = IdentifierSequence.objects.select_for_update().get(prefix=prefix)
        sequence.last_value = F("last_value") + 1
        sequence.save(update_fields=["last_value", "updated_at"])
        sequence.refresh_from_db(fields=["last_value"])

    identifier = format_identifier(prefix, sequence.last_value, width)
    logger.debug("Reserved identifier %s", identifier)
    return identifier
