from django.core.exceptions import ValidationError
from django.core.serializers.json import DjangoJSONEncoder
from django.core.validators import MinValueValidator
from django.db import models

from core.choices import PRIORITY_CHOICES, RISK_LEVEL_CHOICES


class ComplianceFramework(models.Model):
    TYPE_CYBERSECURITY = "Cybersecurity"
    TYPE_DATA_PROTECTION = "Data Protection"
    TYPE_FINANCIAL = "Financial"
    TYPE_OPERATIONAL = "Operational"
    TYPE_INDUSTRY_SPECIFIC = "Industry Specific"
    TYPE_CUSTOM = "Custom"
    TYPE_CHOICES = [
        (TYPE_CYBERSECURITY, "Cybersecurity"),
        (TYPE_DATA_PROTECTION, "Data Protection"),
        (TYPE_FINANCIAL, "Financial"),
        (TYPE_OPERATIONAL, "Operational"),
        (TYPE_INDUSTRY_SPECIFIC, "Industry Specific"),
        (TYPE_CUSTOM, "Custom"),
    ]

    STATUS_ACTIVE = "Active"
    STATUS_INACTIVE = "Inactive"
    STATUS_DEPRECATED = "Deprecated"
    STATUS_CHOICES = [
        (STATUS_ACTIVE, "Active"),
        (STATUS_INACTIVE, "Inactive"),
        (STATUS_DEPRECATED, "Deprecated"),
    ]

    FREQUENCY_MONTHLY = "Monthly"
    FREQUENCY_QUARTERLY = "Quarterly"
    FREQUENCY_SEMI_ANNUALLY = "Semi-Annually"
    FREQUENCY_ANNUALLY = "Annually"
    FREQUENCY_AS_NEEDED = "As Needed"
    FREQUENCY_CHOICES = [
        (FREQUENCY_MONTHLY, "Monthly"),
        (FREQUENCY_QUARTERLY, "Quarterly"),
        (FREQUENCY_SEMI_ANNUALLY, "Semi-Annually"),
        (FREQUENCY_ANNUALLY, "Annually"),
        (FREQUENCY_AS_NEEDED, "As Needed"),
    ]

    SCORING_PASS_FAIL = "Pass/Fail"
    SCORING_PERCENTAGE = "Percentage"
    SCORING_WEIGHTED = "Weighted Score"
    SCORING_CUSTOM = "Custom"
    SCORING_CHOICES = [
        (SCORING_PASS_FAIL, "Pass/Fail"),
        (SCORING_PERCENTAGE, "Percentage"),
        (SCORING_WEIGHTED, "Weighted Score"),
        (SCORING_CUSTOM, "Custom"),
    ]

    name = models.CharField(max_length=255, unique=True)
    version = models.CharField(max_length=64)
    description = models.TextField()
    framework_type = models.CharField(max_length=32, choices=TYPE_CHOICES)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_ACTIVE)

    assessment_frequency = models.CharField(max_length=32, choices=FREQUENCY_CHOICES, blank=True)
    assessment_methodology = models.CharField(max_length=255, blank=True)
    scoring_method = models.CharField(max_length=32, choices=SCORING_CHOICES, blank=True)
    pass_threshold = models.FloatField(null=True, blank=True)
    warning_threshold = models.FloatField(null=True, blank=True)
    fail_threshold = models.FloatField(null=True, blank=True)

    publisher = models.CharField(max_length=255, blank=True)
    website = models.URLField(blank=True)
    effective_date = models.DateField(null=True, blank=True)
    expiry_date = models.DateField(null=True, blank=True)
    last_updated = models.DateTimeField(null=True, blank=True)
    is_custom = models.BooleanField(default=False)
    created_by = models.CharField(max_length=255, blank=True)
    tags = models.JSONField(default=list, blank=True)
    industry = models.JSONField(default=list, blank=True)
    region = models.JSONField(default=list, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return f"{self.name} {self.version}"


class FrameworkControl(models.Model):
    framework = models.ForeignKey(ComplianceFramework, on_delete=models.CASCADE, related_name="controls")
    control_id = models.CharField(max_length=64)
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    category = models.CharField(max_length=128, blank=True)
    sub_category = models.CharField(max_length=128, blank=True)
    priority = models.CharField(max_length=16, choices=PRIORITY_CHOICES, blank=True)
    requirements = models.JSONField(default=list, blank=True)
    implementation_guidance = models.TextField(blank=True)
    testing_procedures = models.JSONField(default=list, blank=True)
    evidence_types = models.JSONField(default=list, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["framework_id", "id"]
        constraints = [
            models.UniqueConstraint(fields=["framework", "control_id"], name="uq_framework_control_id")
        ]

    def __str__(self) -> str:
        return f"{self.framework_id}:{self.control_id}"


class Assessment(models.Model):
    TYPE_SELF = "Self-Assessment"
    TYPE_INTERNAL_AUDIT = "Internal Audit"
    TYPE_EXTERNAL_AUDIT = "External Audit"
    TYPE_CONTINUOUS = "Continuous Monitoring"
    TYPE_RISK = "Risk Assessment"
    TYPE_CHOICES = [
        (TYPE_SELF, "Self-Assessment"),
        (TYPE_INTERNAL_AUDIT, "Internal Audit"),
        (TYPE_EXTERNAL_AUDIT, "External Audit"),
        (TYPE_CONTINUOUS, "Continuous Monitoring"),
        (TYPE_RISK, "Risk Assessment"),
    ]

    STATUS_PLANNED = "Planned"
    STATUS_IN_PROGRESS = "In Progress"
    STATUS_COMPLETED = "Completed"
    STATUS_CANCELLED = "Cancelled"
    STATUS_ON_HOLD = "On Hold"
    STATUS_CHOICES = [
        (STATUS_PLANNED, "Planned"),
        (STATUS_IN_PROGRESS, "In Progress"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_CANCELLED, "Cancelled"),
        (STATUS_ON_HOLD, "On Hold"),
    ]

    assessment_id = models.CharField(max_length=32, unique=True)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)

    # Nullable so deleting a framework leaves its assessments readable.
    framework = models.ForeignKey(
        ComplianceFramework,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="assessments",
    )
    scope = models.JSONField(default=dict, blank=True)

    assessment_type = models.CharField(max_length=32, choices=TYPE_CHOICES)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_PLANNED)

    planned_start_date = models.DateField()
    planned_end_date = models.DateField()
    actual_start_date = models.DateField(null=True, blank=True)
    actual_end_date = models.DateField(null=True, blank=True)

    assessor = models.CharField(max_length=255)
    team = models.JSONField(default=list, blank=True)

    overall_score = models.FloatField(null=True, blank=True)
    max_possible_score = models.FloatField(null=True, blank=True)
    compliance_percentage = models.FloatField(null=True, blank=True)
    risk_level = models.CharField(max_length=16, choices=RISK_LEVEL_CHOICES, null=True, blank=True)

    follow_up_required = models.BooleanField(default=False)
    follow_up_date = models.DateField(null=True, blank=True)
    follow_up_assessor = models.CharField(max_length=255, blank=True)

    created_by = models.CharField(max_length=255, blank=True)
    updated_by = models.CharField(max_length=255, blank=True)
    tags = models.JSONField(default=list, blank=True)
    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.assessment_id} - {self.name}"


class AssessmentResult(models.Model):
    STATUS_COMPLIANT = "Compliant"
    STATUS_NON_COMPLIANT = "Non-Compliant"
    STATUS_PARTIALLY_COMPLIANT = "Partially Compliant"
    STATUS_NOT_APPLICABLE = "Not Applicable"
    STATUS_NOT_ASSESSED = "Not Assessed"
    STATUS_CHOICES = [
        (STATUS_COMPLIANT, "Compliant"),
        (STATUS_NON_COMPLIANT, "Non-Compliant"),
        (STATUS_PARTIALLY_COMPLIANT, "Partially Compliant"),
        (STATUS_NOT_APPLICABLE, "Not Applicable"),
        (STATUS_NOT_ASSESSED, "Not Assessed"),
    ]
    GAP_STATUSES = (STATUS_NON_COMPLIANT, STATUS_PARTIALLY_COMPLIANT)

    assessment = models.ForeignKey(Assessment, on_delete=models.CASCADE, related_name="results")
    control_id = models.CharField(max_length=64)
    control_title = models.CharField(max_length=255, blank=True)
    status = models.CharField(max_length=32, choices=STATUS_CHOICES, default=STATUS_NOT_ASSESSED)
    score = models.FloatField(null=True, blank=True, validators=[MinValueValidator(0)])
    max_score = models.FloatField(null=True, blank=True, validators=[MinValueValidator(0)])
    evidence = models.JSONField(default=list, blank=True, encoder=DjangoJSONEncoder)
    findings = models.JSONField(default=list, blank=True, encoder=DjangoJSONEncoder)
    notes = models.TextField(blank=True)
    assessed_by = models.CharField(max_length=255, blank=True)
    assessed_date = models.DateField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["assessment_id", "id"]

    def __str__(self) -> str:
        return f"{self.assessment_id}:{self.control_id}:{self.status}"

    @staticmethod
    def check_score(score, max_score) -> None:
        if score is not None and max_score is not None and score > max_score:
            raise ValidationError({"score": "Score cannot exceed max_score."})

    def clean(self) -> None:
        super().clean()
        self.check_score(self.score, self.max_score)


class AssessmentRecommendation(models.Model):
    STATUS_OPEN = "Open"
    STATUS_IN_PROGRESS = "In Progress"
    STATUS_COMPLETED = "Completed"
    STATUS_CANCELLED = "Cancelled"
    STATUS_CHOICES = [
        (STATUS_OPEN, "Open"),
        (STATUS_IN_PROGRESS, "In Progress"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    assessment = models.ForeignKey(Assessment, on_delete=models.CASCADE, related_name="recommendations")
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    priority = models.CharField(max_length=16, choices=PRIORITY_CHOICES, blank=True)
    assigned_to = models.CharField(max_length=255, blank=True)
    due_date = models.DateField(null=True, blank=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_OPEN)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.assessment_id} - {self.title}"
