from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers

from core.choices import PRIORITY_CHOICES

from .models import (
    Assessment,
    AssessmentRecommendation,
    AssessmentResult,
    ComplianceFramework,
    FrameworkControl,
)
from .services.assessments import create_assessment, update_assessment
from .services.frameworks import create_framework, update_framework

FINDING_TYPE_CHOICES = [
    ("Observation", "Observation"),
    ("Minor Non-Conformity", "Minor Non-Conformity"),
    ("Major Non-Conformity", "Major Non-Conformity"),
    ("Critical Non-Conformity", "Critical Non-Conformity"),
]

FRAMEWORK_FIELDS = [
    "id",
    "name",
    "version",
    "description",
    "framework_type",
    "status",
    "assessment_frequency",
    "assessment_methodology",
    "scoring_method",
    "pass_threshold",
    "warning_threshold",
    "fail_threshold",
    "publisher",
    "website",
    "effective_date",
    "expiry_date",
    "last_updated",
    "is_custom",
    "created_by",
    "tags",
    "industry",
    "region",
    "controls",
    "created_at",
    "updated_at",
]


class FrameworkControlSerializer(serializers.ModelSerializer):
    class Meta:
        model = FrameworkControl
        fields = [
            "id",
            "control_id",
            "title",
            "description",
            "category",
            "sub_category",
            "priority",
            "requirements",
            "implementation_guidance",
            "testing_procedures",
            "evidence_types",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]


def _unique_control_ids(controls: list) -> list:
    seen = set()
    for control in controls:
        control_id = control["control_id"]
        if control_id in seen:
            raise serializers.ValidationError(f"Duplicate control_id {control_id}.")
        seen.add(control_id)
    return controls


class ComplianceFrameworkSerializer(serializers.ModelSerializer):
    controls = FrameworkControlSerializer(many=True, required=False)

    class Meta:
        model = ComplianceFramework
        fields = FRAMEWORK_FIELDS
        read_only_fields = ["id", "last_updated", "created_at", "updated_at"]

    def validate_controls(self, value: list) -> list:
        return _unique_control_ids(value)

    def validate(self, attrs: dict) -> dict:
        attrs = super().validate(attrs)
        effective = attrs.get("effective_date", self.instance.effective_date if self.instance else None)
        expiry = attrs.get("expiry_date", self.instance.expiry_date if self.instance else None)
        if effective and expiry and expiry < effective:
            raise serializers.ValidationError({"expiry_date": "Expiry date cannot be before the effective date."})
        return attrs

    def create(self, validated_data: dict) -> ComplianceFramework:
        return create_framework(validated_data)

    def update(self, instance: ComplianceFramework, validated_data: dict) -> ComplianceFramework:
        return update_framework(instance, validated_data)


class FrameworkUploadSerializer(serializers.ModelSerializer):
    """Upload payload; matched to an existing framework by name."""

    name = serializers.CharField(max_length=255, required=False, default="Uploaded Framework")
    controls = FrameworkControlSerializer(many=True, required=False)

    class Meta:
        model = ComplianceFramework
        fields = [field for field in FRAMEWORK_FIELDS if field not in {"id", "last_updated", "created_at", "updated_at"}]
        extra_kwargs = {
            "version": {"required": False},
            "description": {"required": False},
            "framework_type": {"required": False},
        }

    def validate_controls(self, value: list) -> list:
        return _unique_control_ids(value)


class FindingSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=FINDING_TYPE_CHOICES)
    description = serializers.CharField(required=False, allow_blank=True)
    recommendation = serializers.CharField(required=False, allow_blank=True)
    priority = serializers.ChoiceField(choices=PRIORITY_CHOICES, required=False)


class EvidenceSerializer(serializers.Serializer):
    type = serializers.CharField(max_length=64)
    description = serializers.CharField(required=False, allow_blank=True)
    url = serializers.URLField(required=False, allow_blank=True)
    uploaded_at = serializers.DateTimeField(required=False)


class AssessmentResultSerializer(serializers.ModelSerializer):
    evidence = serializers.ListField(child=EvidenceSerializer(), required=False)
    findings = serializers.ListField(child=FindingSerializer(), required=False)

    class Meta:
        model = AssessmentResult
        fields = [
            "id",
            "control_id",
            "control_title",
            "status",
            "score",
            "max_score",
            "evidence",
            "findings",
            "notes",
            "assessed_by",
            "assessed_date",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]

    def validate(self, attrs: dict) -> dict:
        attrs = super().validate(attrs)
        score = attrs.get("score", self.instance.score if self.instance else None)
        max_score = attrs.get("max_score", self.instance.max_score if self.instance else None)
        try:
            AssessmentResult.check_score(score, max_score)
        except DjangoValidationError as exc:
            raise serializers.ValidationError(exc.message_dict)
        return attrs


class AssessmentRecommendationSerializer(serializers.ModelSerializer):
    class Meta:
        model = AssessmentRecommendation
        fields = [
            "id",
            "title",
            "description",
            "priority",
            "assigned_to",
            "due_date",
            "status",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]


class AssessmentSerializer(serializers.ModelSerializer):
    framework_name = serializers.SerializerMethodField(read_only=True)
    results = AssessmentResultSerializer(many=True, required=False)
    recommendations = AssessmentRecommendationSerializer(many=True, read_only=True)

    class Meta:
        model = Assessment
        fields = [
            "id",
            "assessment_id",
            "name",
            "description",
            "framework",
            "framework_name",
            "scope",
            "assessment_type",
            "status",
            "planned_start_date",
            "planned_end_date",
            "actual_start_date",
            "actual_end_date",
            "assessor",
            "team",
            "results",
            "overall_score",
            "max_possible_score",
            "compliance_percentage",
            "risk_level",
            "recommendations",
            "follow_up_required",
            "follow_up_date",
            "follow_up_assessor",
            "created_by",
            "updated_by",
            "tags",
            "notes",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "assessment_id",
            "framework_name",
            "overall_score",
            "max_possible_score",
            "compliance_percentage",
            "risk_level",
            "recommendations",
            "created_at",
            "updated_at",
        ]
        extra_kwargs = {
            "framework": {"required": True, "allow_null": False},
        }

    def get_framework_name(self, obj: Assessment) -> str | None:
        return obj.framework.name if obj.framework_id else None

    def validate_scope(self, value) -> dict:
        if not isinstance(value, dict):
            raise serializers.ValidationError("Scope must be an object.")
        return value

    def validate(self, attrs: dict) -> dict:
        attrs = super().validate(attrs)
        start = attrs.get("planned_start_date", self.instance.planned_start_date if self.instance else None)
        end = attrs.get("planned_end_date", self.instance.planned_end_date if self.instance else None)
        if start and end and end < start:
            raise serializers.ValidationError({"planned_end_date": "Planned end date cannot be before the start date."})
        return attrs

    def create(self, validated_data: dict) -> Assessment:
        return create_assessment(validated_data)

    def update(self, instance: Assessment, validated_data: dict) -> Assessment:
        return update_assessment(instance, validated_data)


class ComplianceReportRequestSerializer(serializers.Serializer):
    framework = serializers.PrimaryKeyRelatedField(
        queryset=ComplianceFramework.objects.all(),
        required=False,
        allow_null=True,
    )
    start_date = serializers.DateField(required=False, allow_null=True)
    end_date = serializers.DateField(required=False, allow_null=True)
    include_risks = serializers.BooleanField(required=False, default=True)
    include_assessments = serializers.BooleanField(required=False, default=True)

    def validate(self, attrs: dict) -> dict:
        start = attrs.get("start_date")
        end = attrs.get("end_date")
        if start and end and end < start:
            raise serializers.ValidationError({"end_date": "End date cannot be before the start date."})
        return attrs
