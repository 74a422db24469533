from django.urls import include, path
from rest_framework.routers import DefaultRouter

from compliance.views import (
    AssessmentViewSet,
    ComplianceDashboardView,
    ComplianceFrameworkViewSet,
    ComplianceGapsView,
    ComplianceReportView,
    ComplianceStatusView,
    ComplianceTrendsView,
)
from risk.views import RiskViewSet

router = DefaultRouter()
router.register(r"risks", RiskViewSet, basename="risk")
router.register(r"compliance-frameworks", ComplianceFrameworkViewSet, basename="compliance-framework")
router.register(r"assessments", AssessmentViewSet, basename="assessment")

urlpatterns = [
    path("", include(router.urls)),
    path("compliance/dashboard/", ComplianceDashboardView.as_view(), name="compliance-dashboard"),
    path("compliance/status/<int:framework_id>/", ComplianceStatusView.as_view(), name="compliance-status"),
    path("compliance/trends/", ComplianceTrendsView.as_view(), name="compliance-trends"),
    path("compliance/gaps/", ComplianceGapsView.as_view(), name="compliance-gaps"),
    path("compliance/report/", ComplianceReportView.as_view(), name="compliance-report"),
]
