from rest_framework import serializers

from .models import Risk, RiskFrameworkMapping
from .scoring import MAX_SCORE, MIN_SCORE
from .services.register import create_risk, update_risk


class RiskFrameworkMappingSerializer(serializers.ModelSerializer):
    framework_name = serializers.SerializerMethodField(read_only=True)

    class Meta:
        model = RiskFrameworkMapping
        fields = [
            "id",
            "framework",
            "framework_name",
            "control_id",
            "control_title",
            "requirement",
        ]
        read_only_fields = ["id", "framework_name"]

    def get_framework_name(self, obj: RiskFrameworkMapping) -> str | None:
        return obj.framework.name if obj.framework_id else None


class RiskSerializer(serializers.ModelSerializer):
    framework_mappings = RiskFrameworkMappingSerializer(many=True, required=False)

    class Meta:
        model = Risk
        fields = [
            "id",
            "risk_id",
            "title",
            "description",
            "category",
            "sub_category",
            "likelihood",
            "likelihood_score",
            "impact",
            "impact_score",
            "risk_score",
            "risk_level",
            "treatment",
            "treatment_description",
            "treatment_status",
            "treatment_owner",
            "treatment_due_date",
            "treatment_cost",
            "residual_likelihood",
            "residual_likelihood_score",
            "residual_impact",
            "residual_impact_score",
            "residual_risk_score",
            "residual_risk_level",
            "business_unit",
            "asset",
            "threat",
            "vulnerability",
            "identified_date",
            "last_review_date",
            "next_review_date",
            "status",
            "framework_mappings",
            "tags",
            "notes",
            "created_by",
            "updated_by",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "risk_id",
            "risk_score",
            "risk_level",
            "residual_risk_score",
            "residual_risk_level",
            "created_at",
            "updated_at",
        ]

    def validate_title(self, value: str) -> str:
        title = value.strip()
        if not title:
            raise serializers.ValidationError("Title cannot be empty.")
        return title

    def validate_tags(self, value) -> list:
        if not isinstance(value, list) or not all(isinstance(tag, str) for tag in value):
            raise serializers.ValidationError("Tags must be a list of strings.")
        return value

    def create(self, validated_data: dict) -> Risk:
        return create_risk(validated_data)

    def update(self, instance: Risk, validated_data: dict) -> Risk:
        return update_risk(instance, validated_data)


class RiskTreatmentSerializer(serializers.Serializer):
    treatment = serializers.ChoiceField(choices=Risk.TREATMENT_CHOICES)
    treatment_description = serializers.CharField(required=False, allow_blank=True)
    treatment_owner = serializers.CharField(required=False, allow_blank=True, max_length=255)
    treatment_due_date = serializers.DateField(required=False, allow_null=True)
    treatment_cost = serializers.DecimalField(
        max_digits=12,
        decimal_places=2,
        min_value=0,
        required=False,
        allow_null=True,
    )
    updated_by = serializers.CharField(required=False, allow_blank=True, max_length=255)


class RiskResidualSerializer(serializers.Serializer):
    residual_likelihood = serializers.ChoiceField(choices=Risk.RATING_CHOICES, required=False, allow_blank=True)
    residual_likelihood_score = serializers.IntegerField(
        min_value=MIN_SCORE,
        max_value=MAX_SCORE,
        required=False,
        allow_null=True,
    )
    residual_impact = serializers.ChoiceField(choices=Risk.RATING_CHOICES, required=False, allow_blank=True)
    residual_impact_score = serializers.IntegerField(
        min_value=MIN_SCORE,
        max_value=MAX_SCORE,
        required=False,
        allow_null=True,
    )
    updated_by = serializers.CharField(required=False, allow_blank=True, max_length=255)
