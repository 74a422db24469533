from django.contrib import admin

from .models import (
    Assessment,
    AssessmentRecommendation,
    AssessmentResult,
    ComplianceFramework,
    FrameworkControl,
)
from .services.assessments import refresh_assessment_scores, save_assessment


class FrameworkControlInline(admin.TabularInline):
    model = FrameworkControl
    extra = 0


class AssessmentResultInline(admin.TabularInline):
    model = AssessmentResult
    extra = 0


class AssessmentRecommendationInline(admin.TabularInline):
    model = AssessmentRecommendation
    extra = 0


@admin.register(ComplianceFramework)
class ComplianceFrameworkAdmin(admin.ModelAdmin):
    list_display = ("name", "version", "framework_type", "status", "scoring_method", "is_custom", "updated_at")
    list_filter = ("framework_type", "status", "is_custom")
    search_fields = ("name", "description", "publisher")
    inlines = [FrameworkControlInline]


@admin.register(FrameworkControl)
class FrameworkControlAdmin(admin.ModelAdmin):
    list_display = ("control_id", "title", "framework", "category", "priority")
    list_filter = ("framework", "priority")
    search_fields = ("control_id", "title")


@admin.register(Assessment)
class AssessmentAdmin(admin.ModelAdmin):
    list_display = (
        "assessment_id",
        "name",
        "framework",
        "assessment_type",
        "status",
        "compliance_percentage",
        "risk_level",
        "planned_start_date",
        "created_at",
    )
    list_filter = ("status", "assessment_type", "risk_level", "framework")
    search_fields = ("assessment_id", "name", "assessor")
    readonly_fields = ("assessment_id", "overall_score", "max_possible_score", "compliance_percentage", "risk_level")
    inlines = [AssessmentResultInline, AssessmentRecommendationInline]

    def save_model(self, request, obj, form, change):
        save_assessment(obj, actor=request.user.get_username())

    def save_related(self, request, form, formsets, change):
        super().save_related(request, form, formsets, change)
        refresh_assessment_scores(form.instance)


@admin.register(AssessmentResult)
class AssessmentResultAdmin(admin.ModelAdmin):
    list_display = ("assessment", "control_id", "status", "score", "max_score", "assessed_date")
    list_filter = ("status",)
    search_fields = ("control_id", "control_title")


@admin.register(AssessmentRecommendation)
class AssessmentRecommendationAdmin(admin.ModelAdmin):
    list_display = ("assessment", "title", "priority", "status", "due_date")
    list_filter = ("priority", "status")
