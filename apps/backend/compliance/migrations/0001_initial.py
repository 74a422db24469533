import django.core.serializers.json
import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


PRIORITY_CHOICES = [("Low", "Low"), ("Medium", "Medium"), ("High", "High"), ("Critical", "Critical")]
RISK_LEVEL_CHOICES = [
    ("Very Low", "Very Low"),
    ("Low", "Low"),
    ("Medium", "Medium"),
    ("High", "High"),
    ("Very High", "Very High"),
    ("Critical", "Critical"),
]


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="ComplianceFramework",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255, unique=True)),
                ("version", models.CharField(max_length=64)),
                ("description", models.TextField()),
                (
                    "framework_type",
                    models.CharField(
                        choices=[
                            ("Cybersecurity", "Cybersecurity"),
                            ("Data Protection", "Data Protection"),
                            ("Financial", "Financial"),
                            ("Operational", "Operational"),
                            ("Industry Specific", "Industry Specific"),
                            ("Custom", "Custom"),
                        ],
                        max_length=32,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[("Active", "Active"), ("Inactive", "Inactive"), ("Deprecated", "Deprecated")],
                        default="Active",
                        max_length=16,
                    ),
                ),
                (
                    "assessment_frequency",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("Monthly", "Monthly"),
                            ("Quarterly", "Quarterly"),
                            ("Semi-Annually", "Semi-Annually"),
                            ("Annually", "Annually"),
                            ("As Needed", "As Needed"),
                        ],
                        max_length=32,
                    ),
                ),
                ("assessment_methodology", models.CharField(blank=True, max_length=255)),
                (
                    "scoring_method",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("Pass/Fail", "Pass/Fail"),
                            ("Percentage", "Percentage"),
                            ("Weighted Score", "Weighted Score"),
                            ("Custom", "Custom"),
                        ],
                        max_length=32,
                    ),
                ),
                ("pass_threshold", models.FloatField(blank=True, null=True)),
                ("warning_threshold", models.FloatField(blank=True, null=True)),
                ("fail_threshold", models.FloatField(blank=True, null=True)),
                ("publisher", models.CharField(blank=True, max_length=255)),
                ("website", models.URLField(blank=True)),
                ("effective_date", models.DateField(blank=True, null=True)),
                ("expiry_date", models.DateField(blank=True, null=True)),
                ("last_updated", models.DateTimeField(blank=True, null=True)),
                ("is_custom", models.BooleanField(default=False)),
                ("created_by", models.CharField(blank=True, max_length=255)),
                ("tags", models.JSONField(blank=True, default=list)),
                ("industry", models.JSONField(blank=True, default=list)),
                ("region", models.JSONField(blank=True, default=list)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="FrameworkControl",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("control_id", models.CharField(max_length=64)),
                ("title", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True)),
                ("category", models.CharField(blank=True, max_length=128)),
                ("sub_category", models.CharField(blank=True, max_length=128)),
                ("priority", models.CharField(blank=True, choices=PRIORITY_CHOICES, max_length=16)),
                ("requirements", models.JSONField(blank=True, default=list)),
                ("implementation_guidance", models.TextField(blank=True)),
                ("testing_procedures", models.JSONField(blank=True, default=list)),
                ("evidence_types", models.JSONField(blank=True, default=list)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "framework",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="controls",
                        to="compliance.complianceframework",
                    ),
                ),
            ],
            options={
                "ordering": ["framework_id", "id"],
                "constraints": [
                    models.UniqueConstraint(fields=("framework", "control_id"), name="uq_framework_control_id")
                ],
            },
        ),
        migrations.CreateModel(
            name="Assessment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("assessment_id", models.CharField(max_length=32, unique=True)),
                ("name", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True)),
                ("scope", models.JSONField(blank=True, default=dict)),
                (
                    "assessment_type",
                    models.CharField(
                        choices=[
                            ("Self-Assessment", "Self-Assessment"),
                            ("Internal Audit", "Internal Audit"),
                            ("External Audit", "External Audit"),
                            ("Continuous Monitoring", "Continuous Monitoring"),
                            ("Risk Assessment", "Risk Assessment"),
                        ],
                        max_length=32,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("Planned", "Planned"),
                            ("In Progress", "In Progress"),
                            ("Completed", "Completed"),
                            ("Cancelled", "Cancelled"),
                            ("On Hold", "On Hold"),
                        ],
                        default="Planned",
                        max_length=16,
                    ),
                ),
                ("planned_start_date", models.DateField()),
                ("planned_end_date", models.DateField()),
                ("actual_start_date", models.DateField(blank=True, null=True)),
                ("actual_end_date", models.DateField(blank=True, null=True)),
                ("assessor", models.CharField(max_length=255)),
                ("team", models.JSONField(blank=True, default=list)),
                ("overall_score", models.FloatField(blank=True, null=True)),
                ("max_possible_score", models.FloatField(blank=True, null=True)),
                ("compliance_percentage", models.FloatField(blank=True, null=True)),
                ("risk_level", models.CharField(blank=True, choices=RISK_LEVEL_CHOICES, max_length=16, null=True)),
                ("follow_up_required", models.BooleanField(default=False)),
                ("follow_up_date", models.DateField(blank=True, null=True)),
                ("follow_up_assessor", models.CharField(blank=True, max_length=255)),
                ("created_by", models.CharField(blank=True, max_length=255)),
                ("updated_by", models.CharField(blank=True, max_length=255)),
                ("tags", models.JSONField(blank=True, default=list)),
                ("notes", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "framework",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="assessments",
                        to="compliance.complianceframework",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="AssessmentResult",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("control_id", models.CharField(max_length=64)),
                ("control_title", models.CharField(blank=True, max_length=255)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("Compliant", "Compliant"),
                            ("Non-Compliant", "Non-Compliant"),
                            ("Partially Compliant", "Partially Compliant"),
                            ("Not Applicable", "Not Applicable"),
                            ("Not Assessed", "Not Assessed"),
                        ],
                        default="Not Assessed",
                        max_length=32,
                    ),
                ),
                (
                    "score",
                    models.FloatField(blank=True, null=True, validators=[django.core.validators.MinValueValidator(0)]),
                ),
                (
                    "max_score",
                    models.FloatField(blank=True, null=True, validators=[django.core.validators.MinValueValidator(0)]),
                ),
                (
                    "evidence",
                    models.JSONField(blank=True, default=list, encoder=django.core.serializers.json.DjangoJSONEncoder),
                ),
                (
                    "findings",
                    models.JSONField(blank=True, default=list, encoder=django.core.serializers.json.DjangoJSONEncoder),
                ),
                ("notes", models.TextField(blank=True)),
                ("assessed_by", models.CharField(blank=True, max_length=255)),
                ("assessed_date", models.DateField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "assessment",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="results",
                        to="compliance.assessment",
                    ),
                ),
            ],
            options={
                "ordering": ["assessment_id", "id"],
            },
        ),
        migrations.CreateModel(
            name="AssessmentRecommendation",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True)),
                ("priority", models.CharField(blank=True, choices=PRIORITY_CHOICES, max_length=16)),
                ("assigned_to", models.CharField(blank=True, max_length=255)),
                ("due_date", models.DateField(blank=True, null=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("Open", "Open"),
                            ("In Progress", "In Progress"),
                            ("Completed", "Completed"),
                            ("Cancelled", "Cancelled"),
                        ],
                        default="Open",
                        max_length=16,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "assessment",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="recommendations",
                        to="compliance.assessment",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
    ]
