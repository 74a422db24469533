from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Tuple

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from compliance.models import ComplianceFramework, FrameworkControl

logger = logging.getLogger(__name__)

UPLOAD_DEFAULTS = {
    "version": "1.0",
    "description": "Uploaded framework",
    "framework_type": ComplianceFramework.TYPE_CUSTOM,
    "assessment_frequency": ComplianceFramework.FREQUENCY_ANNUALLY,
    "assessment_methodology": "Custom",
    "scoring_method": ComplianceFramework.SCORING_PASS_FAIL,
    "pass_threshold": 80,
    "warning_threshold": 60,
    "fail_threshold": 40,
    "publisher": "Custom",
}

DEFAULT_FRAMEWORKS = [
    {
        "name": "ISO 27005",
        "version": "2018",
        "description": "Information security risk management standard",
        "framework_type": ComplianceFramework.TYPE_CYBERSECURITY,
        "assessment_frequency": ComplianceFramework.FREQUENCY_ANNUALLY,
        "assessment_methodology": "Risk-based assessment",
        "scoring_method": ComplianceFramework.SCORING_WEIGHTED,
        "pass_threshold": 80,
        "warning_threshold": 60,
        "fail_threshold": 40,
        "controls": [
            {
                "control_id": "A.5.1.1",
                "title": "Information Security Policies",
                "description": "Management direction and support for information security",
                "category": "Governance",
                "priority": "High",
                "requirements": [
                    "Documented information security policies",
                    "Regular policy review and updates",
                    "Policy communication to all stakeholders",
                ],
            },
            {
                "control_id": "A.6.1.1",
                "title": "Information Security Roles and Responsibilities",
                "description": "All information security responsibilities shall be defined and allocated",
                "category": "Organization",
                "priority": "High",
                "requirements": [
                    "Clear role definitions",
                    "Responsibility allocation",
                    "Regular role reviews",
                ],
            },
        ],
    },
    {
        "name": "NIST RMF",
        "version": "2.0",
        "description": "Risk Management Framework for Information Systems and Organizations",
        "framework_type": ComplianceFramework.TYPE_CYBERSECURITY,
        "assessment_frequency": ComplianceFramework.FREQUENCY_QUARTERLY,
        "assessment_methodology": "Continuous monitoring",
        "scoring_method": ComplianceFramework.SCORING_PASS_FAIL,
        "pass_threshold": 100,
        "warning_threshold": 80,
        "fail_threshold": 60,
        "controls": [
            {
                "control_id": "AC-1",
                "title": "Access Control Policy and Procedures",
                "description": "Develop, document, and disseminate access control policy and procedures",
                "category": "Access Control",
                "priority": "High",
                "requirements": [
                    "Documented access control policy",
                    "Procedures for access control implementation",
                    "Regular policy updates",
                ],
            },
            {
                "control_id": "AC-2",
                "title": "Account Management",
                "description": "Manage information system accounts",
                "category": "Access Control",
                "priority": "High",
                "requirements": [
                    "Account identification and naming",
                    "Account establishment and activation",
                    "Account modification and termination",
                ],
            },
        ],
    },
    {
        "name": "GDPR",
        "version": "2018",
        "description": "General Data Protection Regulation",
        "framework_type": ComplianceFramework.TYPE_DATA_PROTECTION,
        "assessment_frequency": ComplianceFramework.FREQUENCY_SEMI_ANNUALLY,
        "assessment_methodology": "Compliance assessment",
        "scoring_method": ComplianceFramework.SCORING_PASS_FAIL,
        "pass_threshold": 100,
        "warning_threshold": 90,
        "fail_threshold": 80,
        "controls": [
            {
                "control_id": "Art. 5",
                "title": "Principles relating to processing of personal data",
                "description": "Personal data shall be processed lawfully, fairly and in a transparent manner",
                "category": "Data Processing",
                "priority": "Critical",
                "requirements": [
                    "Lawfulness of processing",
                    "Fairness and transparency",
                    "Purpose limitation",
                    "Data minimization",
                    "Accuracy",
                    "Storage limitation",
                    "Integrity and confidentiality",
                ],
            },
            {
                "control_id": "Art. 25",
                "title": "Data protection by design and by default",
                "description": "Implement appropriate technical and organizational measures",
                "category": "Technical Measures",
                "priority": "High",
                "requirements": [
                    "Privacy by design implementation",
                    "Data protection by default",
                    "Technical and organizational measures",
                ],
            },
        ],
    },
]


def replace_controls(framework: ComplianceFramework, controls: Iterable[Dict[str, Any]]) -> None:
    FrameworkControl.objects.filter(framework=framework).delete()
    FrameworkControl.objects.bulk_create(
        [FrameworkControl(framework=framework, **control) for control in controls]
    )


@transaction.atomic
def create_framework(data: Dict[str, Any]) -> ComplianceFramework:
    data = dict(data)
    controls = data.pop("controls", [])
    framework = ComplianceFramework.objects.create(**data)
    replace_controls(framework, controls)
    logger.info("Created framework %s with %s controls", framework.name, len(controls))
    return framework


@transaction.atomic
def update_framework(framework: ComplianceFramework, data: Dict[str, Any]) -> ComplianceFramework:
    data = dict(data)
    controls = data.pop("controls", None)
    for name, value in data.items():
        setattr(framework, name, value)
    framework.save()
    if controls is not None:
        replace_controls(framework, controls)
    logger.info("Updated framework %s", framework.name)
    return framework


@transaction.atomic
def upsert_framework(data: Dict[str, Any]) -> Tuple[ComplianceFramework, bool]:
    """Create a framework, or update the one with the same name in place.

    Only fields present in ``data`` are changed on update; controls are
    replaced wholesale when given. Returns ``(framework, created)``.
    """
    data = {name: value for name, value in data.items() if value is not None}
    existing = ComplianceFramework.objects.select_for_update().filter(name=data.get("name")).first()

    if existing is None:
        payload = {**UPLOAD_DEFAULTS, **data}
        return create_framework(payload), True

    data.pop("name", None)
    data["last_updated"] = timezone.now()
    return update_framework(existing, data), False


@transaction.atomic
def initialize_default_frameworks() -> List[ComplianceFramework]:
    """Seed the default catalog; does nothing once any framework exists."""
    if ComplianceFramework.objects.exists():
        logger.info("Frameworks already initialized; skipping default catalog")
        return []
    return [create_framework(definition) for definition in DEFAULT_FRAMEWORKS]


def _check_control_id(framework: ComplianceFramework, control_id: str, exclude_pk=None) -> None:
    duplicates = FrameworkControl.objects.filter(framework=framework, control_id=control_id)
    if exclude_pk is not None:
        duplicates = duplicates.exclude(pk=exclude_pk)
    if duplicates.exists():
        raise ValidationError({"control_id": f"Control {control_id} already exists in {framework.name}."})


def add_control(framework: ComplianceFramework, data: Dict[str, Any]) -> FrameworkControl:
    _check_control_id(framework, data.get("control_id"))
    control = FrameworkControl.objects.create(framework=framework, **data)
    logger.info("Added control %s to framework %s", control.control_id, framework.name)
    return control


def update_control(control: FrameworkControl, data: Dict[str, Any]) -> FrameworkControl:
    if "control_id" in data:
        _check_control_id(control.framework, data["control_id"], exclude_pk=control.pk)
    for name, value in data.items():
        setattr(control, name, value)
    control.save()
    return control


def delete_control(control: FrameworkControl) -> None:
    logger.info("Removed control %s from framework %s", control.control_id, control.framework_id)
    control.delete()
