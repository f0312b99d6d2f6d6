"""
Departments app views.

Thin views over ``DirectoryService`` and ``ConnectionService``:

- ``DepartmentViewSet``  — /api/departments/  (list, retrieve, transfer-targets)
- ``ConnectionViewSet``  — /api/connections/  (list, create, deactivate, reactivate)
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response

from core.domain.exceptions import NotFound, PermissionDenied

from .models import Department
from .serializers import (
    DepartmentConnectionCreateSerializer,
    DepartmentConnectionSerializer,
    DepartmentSerializer,
)
from .services import ConnectionService, DirectoryService


class DepartmentViewSet(viewsets.ViewSet):
    """
    Read-only access to the organisational directory.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="List departments",
        responses={200: DepartmentSerializer(many=True)},
        tags=["Departments"],
    )
    def list(self, request: Request) -> Response:
        qs = Department.objects.prefetch_related("sub_departments")
        return Response(DepartmentSerializer(qs, many=True).data)

    @extend_schema(
        summary="Retrieve department",
        responses={
            200: DepartmentSerializer,
            404: OpenApiResponse(description="Department not found."),
        },
        tags=["Departments"],
    )
    def retrieve(self, request: Request, pk: int = None) -> Response:
        try:
            department = Department.objects.prefetch_related("sub_departments").get(pk=pk)
        except Department.DoesNotExist:
            raise NotFound(f"Department with id {pk} not found.")
        return Response(DepartmentSerializer(department).data)

    @action(detail=False, methods=["get"], url_path="transfer-targets")
    @extend_schema(
        summary="Departments the caller may transfer to",
        description=(
            "The caller's own department plus every department joined to it "
            "by an active transfer-enabled connection."
        ),
        responses={
            200: DepartmentSerializer(many=True),
            403: OpenApiResponse(description="Caller has no department assignment."),
        },
        tags=["Departments"],
    )
    def transfer_targets(self, request: Request) -> Response:
        department_id = getattr(request.user, "assigned_department_id", None)
        if department_id is None:
            raise PermissionDenied("You are not assigned to a department.")
        qs = DirectoryService.connected_departments(department_id)
        return Response(DepartmentSerializer(qs, many=True).data)


class ConnectionViewSet(viewsets.ViewSet):
    """
    Department connection management.

    Endpoints
    ---------
    GET  /api/connections/?department=<id>
    POST /api/connections/
    POST /api/connections/{id}/deactivate/
    POST /api/connections/{id}/reactivate/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="List connections",
        parameters=[
            OpenApiParameter(
                name="department",
                type=int,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Only connections touching this department.",
            ),
        ],
        responses={200: DepartmentConnectionSerializer(many=True)},
        tags=["Connections"],
    )
    def list(self, request: Request) -> Response:
        department = request.query_params.get("department")
        department_id = int(department) if department and department.isdigit() else None
        qs = ConnectionService.list_connections(department_id)
        return Response(DepartmentConnectionSerializer(qs, many=True).data)

    @extend_schema(
        summary="Create connection",
        request=DepartmentConnectionCreateSerializer,
        responses={
            201: DepartmentConnectionSerializer,
            400: OpenApiResponse(description="Validation error."),
            403: OpenApiResponse(description="Not an administrator of either department."),
            409: OpenApiResponse(description="Connection already exists."),
        },
        tags=["Connections"],
    )
    def create(self, request: Request) -> Response:
        serializer = DepartmentConnectionCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        connection = ConnectionService.create_connection(
            request.user,
            source_department_id=data["source_department"],
            target_department_id=data["target_department"],
            connection_type=data["connection_type"],
            notes=data.get("notes", ""),
        )
        return Response(
            DepartmentConnectionSerializer(connection).data,
            status=status.HTTP_201_CREATED,
        )

    @action(detail=True, methods=["post"], url_path="deactivate")
    @extend_schema(
        summary="Deactivate connection",
        request=None,
        responses={200: DepartmentConnectionSerializer},
        tags=["Connections"],
    )
    def deactivate(self, request: Request, pk: int = None) -> Response:
        connection = ConnectionService.set_active(request.user, pk, active=False)
        return Response(DepartmentConnectionSerializer(connection).data)

    @action(detail=True, methods=["post"], url_path="reactivate")
    @extend_schema(
        summary="Reactivate connection",
        request=None,
        responses={200: DepartmentConnectionSerializer},
        tags=["Connections"],
    )
    def reactivate(self, request: Request, pk: int = None) -> Response:
        connection = ConnectionService.set_active(request.user, pk, active=True)
        return Response(DepartmentConnectionSerializer(connection).data)
