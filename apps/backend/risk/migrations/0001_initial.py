import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


RATING_CHOICES = [
    ("Very Low", "Very Low"),
    ("Low", "Low"),
    ("Medium", "Medium"),
    ("High", "High"),
    ("Very High", "Very High"),
]
RISK_LEVEL_CHOICES = RATING_CHOICES + [("Critical", "Critical")]


def score_validators():
    return [django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(5)]


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("compliance", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Risk",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("risk_id", models.CharField(max_length=32, unique=True)),
                ("title", models.CharField(max_length=255)),
                ("description", models.TextField()),
                (
                    "category",
                    models.CharField(
                        choices=[
                            ("Technical", "Technical"),
                            ("Operational", "Operational"),
                            ("Strategic", "Strategic"),
                            ("Financial", "Financial"),
                            ("Compliance", "Compliance"),
                            ("Reputational", "Reputational"),
                        ],
                        max_length=32,
                    ),
                ),
                ("sub_category", models.CharField(blank=True, max_length=128)),
                ("likelihood", models.CharField(choices=RATING_CHOICES, max_length=16)),
                ("likelihood_score", models.PositiveSmallIntegerField(validators=score_validators())),
                ("impact", models.CharField(choices=RATING_CHOICES, max_length=16)),
                ("impact_score", models.PositiveSmallIntegerField(validators=score_validators())),
                ("risk_score", models.PositiveSmallIntegerField(blank=True, null=True)),
                ("risk_level", models.CharField(blank=True, choices=RISK_LEVEL_CHOICES, max_length=16)),
                (
                    "treatment",
                    models.CharField(
                        choices=[
                            ("Avoid", "Avoid"),
                            ("Transfer", "Transfer"),
                            ("Mitigate", "Mitigate"),
                            ("Accept", "Accept"),
                        ],
                        max_length=16,
                    ),
                ),
                ("treatment_description", models.TextField(blank=True)),
                (
                    "treatment_status",
                    models.CharField(
                        choices=[
                            ("Planned", "Planned"),
                            ("In Progress", "In Progress"),
                            ("Completed", "Completed"),
                            ("On Hold", "On Hold"),
                            ("Cancelled", "Cancelled"),
                        ],
                        default="Planned",
                        max_length=16,
                    ),
                ),
                ("treatment_owner", models.CharField(blank=True, max_length=255)),
                ("treatment_due_date", models.DateField(blank=True, null=True)),
                (
                    "treatment_cost",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        max_digits=12,
                        null=True,
                        validators=[django.core.validators.MinValueValidator(0)],
                    ),
                ),
                ("residual_likelihood", models.CharField(blank=True, choices=RATING_CHOICES, max_length=16)),
                (
                    "residual_likelihood_score",
                    models.PositiveSmallIntegerField(blank=True, null=True, validators=score_validators()),
                ),
                ("residual_impact", models.CharField(blank=True, choices=RATING_CHOICES, max_length=16)),
                (
                    "residual_impact_score",
                    models.PositiveSmallIntegerField(blank=True, null=True, validators=score_validators()),
                ),
                ("residual_risk_score", models.PositiveSmallIntegerField(blank=True, null=True)),
                (
                    "residual_risk_level",
                    models.CharField(blank=True, choices=RISK_LEVEL_CHOICES, max_length=16, null=True),
                ),
                ("business_unit", models.CharField(blank=True, max_length=255)),
                ("asset", models.CharField(blank=True, max_length=255)),
                ("threat", models.CharField(blank=True, max_length=255)),
                ("vulnerability", models.CharField(blank=True, max_length=255)),
                ("identified_date", models.DateField(default=django.utils.timezone.localdate)),
                ("last_review_date", models.DateField(default=django.utils.timezone.localdate)),
                ("next_review_date", models.DateField()),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("Active", "Active"),
                            ("Inactive", "Inactive"),
                            ("Closed", "Closed"),
                            ("Under Review", "Under Review"),
                        ],
                        default="Active",
                        max_length=16,
                    ),
                ),
                ("tags", models.JSONField(blank=True, default=list)),
                ("notes", models.TextField(blank=True)),
                ("created_by", models.CharField(blank=True, max_length=255)),
                ("updated_by", models.CharField(blank=True, max_length=255)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["-risk_score", "-created_at"],
            },
        ),
        migrations.CreateModel(
            name="RiskFrameworkMapping",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("control_id", models.CharField(blank=True, max_length=64)),
                ("control_title", models.CharField(blank=True, max_length=255)),
                ("requirement", models.TextField(blank=True)),
                (
                    "framework",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="risk_mappings",
                        to="compliance.complianceframework",
                    ),
                ),
                (
                    "risk",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="framework_mappings",
                        to="risk.risk",
                    ),
                ),
            ],
            options={
                "ordering": ["risk_id", "id"],
            },
        ),
    ]
