from django.contrib import admin

from .models import Risk, RiskFrameworkMapping
from .services.register import save_risk


class RiskFrameworkMappingInline(admin.TabularInline):
    model = RiskFrameworkMapping
    extra = 0


@admin.register(Risk)
class RiskAdmin(admin.ModelAdmin):
    list_display = (
        "risk_id",
        "title",
        "category",
        "risk_score",
        "risk_level",
        "residual_risk_level",
        "treatment",
        "treatment_status",
        "status",
        "next_review_date",
        "created_at",
    )
    list_filter = ("status", "category", "risk_level", "treatment", "treatment_status", "business_unit")
    search_fields = ("risk_id", "title", "description")
    readonly_fields = ("risk_id", "risk_score", "risk_level", "residual_risk_score", "residual_risk_level")
    inlines = [RiskFrameworkMappingInline]

    def save_model(self, request, obj, form, change):
        save_risk(obj, actor=request.user.get_username())


@admin.register(RiskFrameworkMapping)
class RiskFrameworkMappingAdmin(admin.ModelAdmin):
    list_display = ("risk", "framework", "control_id", "control_title")
    list_filter = ("framework",)
