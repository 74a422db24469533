from django.shortcuts import get_object_or_404
from rest_framework import decorators, exceptions, response, status, viewsets
from rest_framework.views import APIView

from .models import Assessment, AssessmentRecommendation, AssessmentResult, ComplianceFramework, FrameworkControl
from .serializers import (
    AssessmentRecommendationSerializer,
    AssessmentResultSerializer,
    AssessmentSerializer,
    ComplianceFrameworkSerializer,
    ComplianceReportRequestSerializer,
    FrameworkControlSerializer,
    FrameworkUploadSerializer,
)
from .services.aggregation import (
    assessment_overview,
    compliance_report,
    compliance_trends,
    dashboard_stats,
    framework_compliance,
)
from .services.assessments import (
    add_recommendation,
    add_result,
    complete_assessment,
    delete_assessment,
    delete_result,
    start_assessment,
    update_recommendation,
    update_result,
)
from .services.frameworks import (
    add_control,
    delete_control,
    initialize_default_frameworks,
    update_control,
    upsert_framework,
)
from .services.gaps import compliance_gaps


def _numeric_param(request, name: str):
    value = request.query_params.get(name)
    if not value:
        return None
    if not value.isdigit():
        raise exceptions.ValidationError({name: f"{name} must be a numeric id."})
    return int(value)


class ComplianceFrameworkViewSet(viewsets.ModelViewSet):
    serializer_class = ComplianceFrameworkSerializer
    search_fields = ("name", "description")
    ordering_fields = ("name", "created_at", "updated_at")

    def get_queryset(self):
        queryset = ComplianceFramework.objects.prefetch_related("controls")

        framework_type = self.request.query_params.get("type")
        status_value = self.request.query_params.get("status")
        if framework_type:
            queryset = queryset.filter(framework_type=framework_type)
        if status_value:
            queryset = queryset.filter(status=status_value)

        return queryset.order_by("name")

    def _refreshed(self, framework: ComplianceFramework):
        framework = self.get_queryset().get(pk=framework.pk)
        return self.get_serializer(framework).data

    @decorators.action(detail=True, methods=["get", "post"], url_path="controls")
    def controls(self, request, pk=None):
        framework = self.get_object()
        if request.method == "GET":
            serializer = FrameworkControlSerializer(framework.controls.all(), many=True)
            return response.Response(serializer.data)

        serializer = FrameworkControlSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        add_control(framework, serializer.validated_data)
        return response.Response(self._refreshed(framework), status=status.HTTP_201_CREATED)

    @decorators.action(
        detail=True,
        methods=["put", "patch", "delete"],
        url_path=r"controls/(?P<control_pk>[^/.]+)",
    )
    def control_detail(self, request, pk=None, control_pk=None):
        framework = self.get_object()
        control = get_object_or_404(FrameworkControl, pk=control_pk, framework=framework)

        if request.method == "DELETE":
            delete_control(control)
            return response.Response(self._refreshed(framework))

        serializer = FrameworkControlSerializer(control, data=request.data, partial=request.method == "PATCH")
        serializer.is_valid(raise_exception=True)
        update_control(control, serializer.validated_data)
        return response.Response(self._refreshed(framework))

    @decorators.action(detail=False, methods=["post"], url_path="upload")
    def upload(self, request):
        serializer = FrameworkUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        framework, created = upsert_framework(serializer.validated_data)
        payload = {
            "action": "created" if created else "updated",
            "framework": ComplianceFrameworkSerializer(framework).data,
        }
        return response.Response(payload, status=status.HTTP_201_CREATED if created else status.HTTP_200_OK)

    @decorators.action(detail=False, methods=["post"], url_path="initialize")
    def initialize(self, request):
        frameworks = initialize_default_frameworks()
        if not frameworks:
            return response.Response({"message": "Frameworks already initialized", "frameworks": []})
        data = ComplianceFrameworkSerializer(frameworks, many=True).data
        return response.Response(
            {"message": "Default frameworks initialized", "frameworks": data},
            status=status.HTTP_201_CREATED,
        )


class AssessmentViewSet(viewsets.ModelViewSet):
    serializer_class = AssessmentSerializer
    search_fields = ("assessment_id", "name", "description", "assessor")
    ordering_fields = ("created_at", "updated_at", "planned_start_date", "compliance_percentage")

    filter_params = ("status", "assessment_type")

    def get_queryset(self):
        queryset = Assessment.objects.select_related("framework").prefetch_related("results", "recommendations")

        for name in self.filter_params:
            value = self.request.query_params.get(name)
            if value:
                queryset = queryset.filter(**{name: value})

        framework_id = _numeric_param(self.request, "framework")
        if framework_id is not None:
            queryset = queryset.filter(framework_id=framework_id)

        return queryset.order_by("-created_at", "-id")

    def perform_destroy(self, instance):
        delete_assessment(instance)

    def _refreshed(self, assessment: Assessment):
        assessment = self.get_queryset().get(pk=assessment.pk)
        return self.get_serializer(assessment).data

    @decorators.action(detail=False, methods=["get"], url_path="stats")
    def stats(self, request):
        return response.Response(assessment_overview())

    @decorators.action(detail=True, methods=["post"], url_path="results")
    def results(self, request, pk=None):
        assessment = self.get_object()
        serializer = AssessmentResultSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        add_result(assessment, serializer.validated_data)
        return response.Response(self._refreshed(assessment), status=status.HTTP_201_CREATED)

    @decorators.action(
        detail=True,
        methods=["put", "patch", "delete"],
        url_path=r"results/(?P<result_pk>[^/.]+)",
    )
    def result_detail(self, request, pk=None, result_pk=None):
        assessment = self.get_object()
        result = get_object_or_404(AssessmentResult, pk=result_pk, assessment=assessment)

        if request.method == "DELETE":
            delete_result(result)
            return response.Response(self._refreshed(assessment))

        serializer = AssessmentResultSerializer(result, data=request.data, partial=request.method == "PATCH")
        serializer.is_valid(raise_exception=True)
        update_result(result, serializer.validated_data)
        return response.Response(self._refreshed(assessment))

    @decorators.action(detail=True, methods=["patch", "post"], url_path="start")
    def start(self, request, pk=None):
        assessment = start_assessment(self.get_object(), actor=request.data.get("updated_by"))
        return response.Response(self._refreshed(assessment))

    @decorators.action(detail=True, methods=["patch", "post"], url_path="complete")
    def complete(self, request, pk=None):
        assessment = complete_assessment(self.get_object(), actor=request.data.get("updated_by"))
        return response.Response(self._refreshed(assessment))

    @decorators.action(detail=True, methods=["post"], url_path="recommendations")
    def recommendations(self, request, pk=None):
        assessment = self.get_object()
        serializer = AssessmentRecommendationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        add_recommendation(assessment, serializer.validated_data)
        return response.Response(self._refreshed(assessment), status=status.HTTP_201_CREATED)

    @decorators.action(
        detail=True,
        methods=["put", "patch"],
        url_path=r"recommendations/(?P<recommendation_pk>[^/.]+)",
    )
    def recommendation_detail(self, request, pk=None, recommendation_pk=None):
        assessment = self.get_object()
        recommendation = get_object_or_404(AssessmentRecommendation, pk=recommendation_pk, assessment=assessment)
        serializer = AssessmentRecommendationSerializer(
            recommendation,
            data=request.data,
            partial=request.method == "PATCH",
        )
        serializer.is_valid(raise_exception=True)
        update_recommendation(recommendation, serializer.validated_data)
        return response.Response(self._refreshed(assessment))


class ComplianceDashboardView(APIView):
    def get(self, request):
        return response.Response(dashboard_stats())


class ComplianceStatusView(APIView):
    def get(self, request, framework_id: int):
        return response.Response(framework_compliance(framework_id))


class ComplianceTrendsView(APIView):
    def get(self, request):
        months = request.query_params.get("months")
        if months is None:
            return response.Response(compliance_trends())
        try:
            months = int(months)
        except ValueError:
            raise exceptions.ValidationError({"months": "months must be a positive integer."})
        if months < 1:
            raise exceptions.ValidationError({"months": "months must be a positive integer."})
        return response.Response(compliance_trends(months))


class ComplianceGapsView(APIView):
    def get(self, request):
        return response.Response(compliance_gaps(_numeric_param(request, "framework")))


class ComplianceReportView(APIView):
    def post(self, request):
        serializer = ComplianceReportRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        params = serializer.validated_data
        framework = params.get("framework")
        report = compliance_report(
            framework_id=framework.pk if framework else None,
            start_date=params.get("start_date"),
            end_date=params.get("end_date"),
            include_risks=params["include_risks"],
            include_assessments=params["include_assessments"],
        )
        return response.Response(report)
