from rest_framework import decorators, exceptions, response, status, viewsets

from compliance.services.aggregation import risk_overview

from .models import Risk
from .serializers import RiskResidualSerializer, RiskSerializer, RiskTreatmentSerializer
from .services.register import delete_risk, update_residual, update_treatment


class RiskViewSet(viewsets.ModelViewSet):
    serializer_class = RiskSerializer
    search_fields = ("risk_id", "title", "description")
    ordering_fields = ("created_at", "updated_at", "risk_score", "next_review_date", "risk_id")

    filter_params = ("category", "risk_level", "treatment", "status", "business_unit")

    def get_queryset(self):
        queryset = Risk.objects.prefetch_related("framework_mappings__framework")

        for name in self.filter_params:
            value = self.request.query_params.get(name)
            if value:
                queryset = queryset.filter(**{name: value})

        framework_id = self.request.query_params.get("framework")
        if framework_id:
            if not framework_id.isdigit():
                raise exceptions.ValidationError({"framework": "Framework filter must be a numeric id."})
            queryset = queryset.filter(framework_mappings__framework_id=int(framework_id)).distinct()

        return queryset.order_by("-risk_score", "-created_at", "-id")

    def perform_destroy(self, instance):
        delete_risk(instance)

    @decorators.action(detail=False, methods=["get"], url_path="stats")
    def stats(self, request):
        return response.Response(risk_overview())

    @decorators.action(detail=True, methods=["patch"], url_path="treatment")
    def treatment(self, request, pk=None):
        risk = self.get_object()
        serializer = RiskTreatmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        risk = update_treatment(risk, data, actor=data.pop("updated_by", None))
        return response.Response(self.get_serializer(risk).data, status=status.HTTP_200_OK)

    @decorators.action(detail=True, methods=["patch"], url_path="residual")
    def residual(self, request, pk=None):
        risk = self.get_object()
        serializer = RiskResidualSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        risk = update_residual(risk, data, actor=data.pop("updated_by", None))
        return response.Response(self.get_serializer(risk).data, status=status.HTTP_200_OK)
