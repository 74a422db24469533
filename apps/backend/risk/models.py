from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone

from core.choices import RISK_LEVEL_CHOICES


SCORE_VALIDATORS = [MinValueValidator(1), MaxValueValidator(5)]


class Risk(models.Model):
    CATEGORY_TECHNICAL = "Technical"
    CATEGORY_OPERATIONAL = "Operational"
    CATEGORY_STRATEGIC = "Strategic"
    CATEGORY_FINANCIAL = "Financial"
    CATEGORY_COMPLIANCE = "Compliance"
    CATEGORY_REPUTATIONAL = "Reputational"
    CATEGORY_CHOICES = [
        (CATEGORY_TECHNICAL, "Technical"),
        (CATEGORY_OPERATIONAL, "Operational"),
        (CATEGORY_STRATEGIC, "Strategic"),
        (CATEGORY_FINANCIAL, "Financial"),
        (CATEGORY_COMPLIANCE, "Compliance"),
        (CATEGORY_REPUTATIONAL, "Reputational"),
    ]

    RATING_VERY_LOW = "Very Low"
    RATING_LOW = "Low"
    RATING_MEDIUM = "Medium"
    RATING_HIGH = "High"
    RATING_VERY_HIGH = "Very High"
    RATING_CHOICES = [
        (RATING_VERY_LOW, "Very Low"),
        (RATING_LOW, "Low"),
        (RATING_MEDIUM, "Medium"),
        (RATING_HIGH, "High"),
        (RATING_VERY_HIGH, "Very High"),
    ]

    TREATMENT_AVOID = "Avoid"
    TREATMENT_TRANSFER = "Transfer"
    TREATMENT_MITIGATE = "Mitigate"
    TREATMENT_ACCEPT = "Accept"
    TREATMENT_CHOICES = [
        (TREATMENT_AVOID, "Avoid"),
        (TREATMENT_TRANSFER, "Transfer"),
        (TREATMENT_MITIGATE, "Mitigate"),
        (TREATMENT_ACCEPT, "Accept"),
    ]

    TREATMENT_STATUS_PLANNED = "Planned"
    TREATMENT_STATUS_IN_PROGRESS = "In Progress"
    TREATMENT_STATUS_COMPLETED = "Completed"
    TREATMENT_STATUS_ON_HOLD = "On Hold"
    TREATMENT_STATUS_CANCELLED = "Cancelled"
    TREATMENT_STATUS_CHOICES = [
        (TREATMENT_STATUS_PLANNED, "Planned"),
        (TREATMENT_STATUS_IN_PROGRESS, "In Progress"),
        (TREATMENT_STATUS_COMPLETED, "Completed"),
        (TREATMENT_STATUS_ON_HOLD, "On Hold"),
        (TREATMENT_STATUS_CANCELLED, "Cancelled"),
    ]

    STATUS_ACTIVE = "Active"
    STATUS_INACTIVE = "Inactive"
    STATUS_CLOSED = "Closed"
    STATUS_UNDER_REVIEW = "Under Review"
    STATUS_CHOICES = [
        (STATUS_ACTIVE, "Active"),
        (STATUS_INACTIVE, "Inactive"),
        (STATUS_CLOSED, "Closed"),
        (STATUS_UNDER_REVIEW, "Under Review"),
    ]

    risk_id = models.CharField(max_length=32, unique=True)
    title = models.CharField(max_length=255)
    description = models.TextField()
    category = models.CharField(max_length=32, choices=CATEGORY_CHOICES)
    sub_category = models.CharField(max_length=128, blank=True)

    likelihood = models.CharField(max_length=16, choices=RATING_CHOICES)
    likelihood_score = models.PositiveSmallIntegerField(validators=SCORE_VALIDATORS)
    impact = models.CharField(max_length=16, choices=RATING_CHOICES)
    impact_score = models.PositiveSmallIntegerField(validators=SCORE_VALIDATORS)
    risk_score = models.PositiveSmallIntegerField(null=True, blank=True)
    risk_level = models.CharField(max_length=16, choices=RISK_LEVEL_CHOICES, blank=True)

    treatment = models.CharField(max_length=16, choices=TREATMENT_CHOICES)
    treatment_description = models.TextField(blank=True)
    treatment_status = models.CharField(
        max_length=16,
        choices=TREATMENT_STATUS_CHOICES,
        default=TREATMENT_STATUS_PLANNED,
    )
    treatment_owner = models.CharField(max_length=255, blank=True)
    treatment_due_date = models.DateField(null=True, blank=True)
    treatment_cost = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(0)],
    )

    residual_likelihood = models.CharField(max_length=16, choices=RATING_CHOICES, blank=True)
    residual_likelihood_score = models.PositiveSmallIntegerField(null=True, blank=True, validators=SCORE_VALIDATORS)
    residual_impact = models.CharField(max_length=16, choices=RATING_CHOICES, blank=True)
    residual_impact_score = models.PositiveSmallIntegerField(null=True, blank=True, validators=SCORE_VALIDATORS)
    residual_risk_score = models.PositiveSmallIntegerField(null=True, blank=True)
    residual_risk_level = models.CharField(max_length=16, choices=RISK_LEVEL_CHOICES, null=True, blank=True)

    business_unit = models.CharField(max_length=255, blank=True)
    asset = models.CharField(max_length=255, blank=True)
    threat = models.CharField(max_length=255, blank=True)
    vulnerability = models.CharField(max_length=255, blank=True)

    identified_date = models.DateField(default=timezone.localdate)
    last_review_date = models.DateField(default=timezone.localdate)
    next_review_date = models.DateField()
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_ACTIVE)

    tags = models.JSONField(default=list, blank=True)
    notes = models.TextField(blank=True)

    created_by = models.CharField(max_length=255, blank=True)
    updated_by = models.CharField(max_length=255, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-risk_score", "-created_at"]

    def __str__(self) -> str:
        return f"{self.risk_id} - {self.title}"


class RiskFrameworkMapping(models.Model):
    risk = models.ForeignKey(Risk, on_delete=models.CASCADE, related_name="framework_mappings")
    framework = models.ForeignKey(
        "compliance.ComplianceFramework",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="risk_mappings",
    )
    control_id = models.CharField(max_length=64, blank=True)
    control_title = models.CharField(max_length=255, blank=True)
    requirement = models.TextField(blank=True)

    class Meta:
        ordering = ["risk_id", "id"]

    def __str__(self) -> str:
        return f"risk={self.risk_id}, framework={self.framework_id}, control={self.control_id}"
