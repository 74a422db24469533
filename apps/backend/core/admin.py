from django.contrib import admin

from .models import IdentifierSequence


@admin.register(IdentifierSequence)
class IdentifierSequenceAdmin(admin.ModelAdmin):
    list_display = ("prefix", "last_value", "updated_at")
    search_fields = ("prefix",)
    ordering = ("prefix",)
