from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import APIView

from records import protocol
from records.exceptions import ServiceError, StoreError
from records.serializers import (
    ApplyResultSerializer,
    ApplySerializer,
    RecordSerializer,
    ServiceErrorSerializer,
)
from records.store import get_store_manager


def _service_error_response(exc: ServiceError) -> Response:
    return Response({"detail": exc.message}, status=status.HTTP_503_SERVICE_UNAVAILABLE)


class RecordView(APIView):
    """Read the shared record."""

    @extend_schema(
        operation_id="fetch_record",
        summary="Read the shared record",
        description="Return the four fields and the version they were committed at.",
        responses={
            200: OpenApiResponse(
                response=RecordSerializer,
                description="The committed record",
            ),
            503: OpenApiResponse(
                response=ServiceErrorSerializer,
                description="The store could not be read",
            ),
        },
        tags=["Record"],
    )
    def get(self, request):
        try:
            record = protocol.fetch()
        except ServiceError as exc:
            return _service_error_response(exc)
        return Response(RecordSerializer(record).data)


class ApplyView(APIView):
    """Apply a version-checked update to the shared record."""

    @extend_schema(
        operation_id="apply_record",
        summary="Update the shared record",
        description=(
            "Replace the four fields if expected_version equals the committed version, "
            "incrementing the version by one. A stale expected_version is not an error: "
            "the response is 200 with success false."
        ),
        request=ApplySerializer,
        responses={
            200: OpenApiResponse(
                response=ApplyResultSerializer,
                description="The update was applied (true) or rejected as a conflict (false)",
            ),
            400: OpenApiResponse(description="Invalid update request"),
            503: OpenApiResponse(
                response=ServiceErrorSerializer,
                description="The store failed; nothing was written",
            ),
        },
        tags=["Record"],
    )
    def post(self, request):
        serializer = ApplySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            success = protocol.apply(
                data["field1"],
                data["field2"],
                data["field3"],
                data["field4"],
                data["expected_version"],
            )
        except ValueError as exc:
            raise ValidationError({"detail": str(exc)})
        except ServiceError as exc:
            return _service_error_response(exc)

        return Response(ApplyResultSerializer({"success": success}).data, status=status.HTTP_200_OK)


class HealthCheckView(APIView):
    """Health check and store readiness endpoint."""

    @extend_schema(
        operation_id="health_check",
        summary="Health check",
        description="Returns 200 when the store is initialized and reachable.",
        responses={
            200: OpenApiResponse(description="Service and store are healthy"),
            503: OpenApiResponse(description="Store unavailable"),
        },
        tags=["Health & Monitoring"],
    )
    def get(self, request):
        try:
            store = get_store_manager()
            record_count = store.record_count()
        except StoreError:
            return Response(
                {"status": "unhealthy", "store": {"ready": False}},
                status=status.HTTP_503_SERVICE_UNAVAILABLE,
            )

        return Response({
            "status": "healthy",
            "store": {
                "ready": store.is_ready,
                "alias": store.alias,
                "records": record_count,
            },
        }, status=status.HTTP_200_OK)
