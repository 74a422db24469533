from django.db import models


class IdentifierSequence(models.Model):
    """Per-prefix counter backing human-readable record identifiers."""

    prefix = models.CharField(max_length=32, unique=True)
    last_value = models.PositiveIntegerField(default=0)

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["prefix"]

    def __str__(self) -> str:
        return f"{self.prefix}:{self.last_value}"
