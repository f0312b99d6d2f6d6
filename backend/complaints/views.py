"""
Complaints app ViewSets.

Architecture: Views are intentionally thin.
Every view follows the strict three-step pattern:

    1. Parse / validate input via a serializer.
    2. Delegate all business logic to the appropriate service class.
    3. Serialize the result and return a DRF ``Response``.

Domain exceptions raised by the services are translated to HTTP
responses by ``core.domain.exception_handler``.

ViewSets
--------
- ``ComplaintViewSet`` — complaint reads, status changes, role context,
  the per-complaint transfer ledger and the communication thread.
- ``TransferViewSet``  — deciding transfers, the incoming inbox, and
  statistics.
"""

from __future__ import annotations

import logging

from drf_spectacular.utils import (
    OpenApiParameter,
    OpenApiResponse,
    extend_schema,
)
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response

from .serializers import (
    ComplaintCommunicationCreateSerializer,
    ComplaintCommunicationSerializer,
    ComplaintDetailSerializer,
    ComplaintFilterSerializer,
    ComplaintListSerializer,
    ComplaintStatusLogSerializer,
    ComplaintStatusUpdateSerializer,
    ComplaintTransferSerializer,
    RoleContextSerializer,
    TransferInitiateSerializer,
    TransferRejectSerializer,
    TransferStatsQuerySerializer,
    TransferStatsSerializer,
)
from .services import (
    CommunicationService,
    ComplaintQueryService,
    ComplaintRoleResolver,
    ComplaintStatusService,
    CustodyTransferService,
    TransferLedgerService,
)

logger = logging.getLogger(__name__)

_ERROR_RESPONSES = {
    400: OpenApiResponse(description="Validation error, unknown destination, same unit, or units not connected."),
    403: OpenApiResponse(description="Caller's role context does not allow this operation."),
    404: OpenApiResponse(description="Not found."),
    409: OpenApiResponse(description="Pending transfer exists, transfer already decided, or invalid transition."),
}


class ComplaintViewSet(viewsets.ViewSet):
    """
    Central ViewSet for complaints.

    Uses ``viewsets.ViewSet`` (not ``ModelViewSet``) so every action is
    explicitly defined; complaints are never created, updated or deleted
    through generic CRUD here.
    """

    permission_classes = [IsAuthenticated]
    lookup_value_regex = r"\d+"

    def _get_complaint(self, request: Request, pk):
        return ComplaintQueryService.get_visible_complaint(request.user, pk)

    # ── Reads ────────────────────────────────────────────────────────

    @extend_schema(
        summary="List complaints",
        description="Complaints visible to the caller's unit, newest first.",
        parameters=[
            OpenApiParameter(name="status", type=str, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="owned_only", type=bool, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="search", type=str, location=OpenApiParameter.QUERY, required=False),
        ],
        responses={200: ComplaintListSerializer(many=True)},
        tags=["Complaints"],
    )
    def list(self, request: Request) -> Response:
        filters = ComplaintFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)
        qs = ComplaintQueryService.get_filtered_queryset(request.user, filters.validated_data)
        return Response(ComplaintListSerializer(qs, many=True).data)

    @extend_schema(
        summary="Retrieve complaint",
        responses={200: ComplaintDetailSerializer, 404: _ERROR_RESPONSES[404]},
        tags=["Complaints"],
    )
    def retrieve(self, request: Request, pk: int = None) -> Response:
        complaint = self._get_complaint(request, pk)
        return Response(ComplaintDetailSerializer(complaint).data)

    @action(detail=True, methods=["get"], url_path="role-context")
    @extend_schema(
        summary="Caller's role context",
        description=(
            "What the caller may do with this complaint right now: whether "
            "they hold custody, whether a transfer is pending, and whether "
            "they may initiate, decide, or change status."
        ),
        responses={200: RoleContextSerializer, 404: _ERROR_RESPONSES[404]},
        tags=["Complaints"],
    )
    def role_context(self, request: Request, pk: int = None) -> Response:
        complaint = self._get_complaint(request, pk)
        ctx = ComplaintRoleResolver.for_user(request.user, complaint)
        return Response(RoleContextSerializer(ctx.as_dict()).data)

    @action(detail=True, methods=["get"], url_path="status-log")
    @extend_schema(
        summary="Status history",
        responses={200: ComplaintStatusLogSerializer(many=True)},
        tags=["Complaints"],
    )
    def status_log(self, request: Request, pk: int = None) -> Response:
        complaint = self._get_complaint(request, pk)
        logs = ComplaintStatusService.status_log(complaint)
        return Response(ComplaintStatusLogSerializer(logs, many=True).data)

    # ── Status gate ──────────────────────────────────────────────────

    @action(detail=True, methods=["post"], url_path="status")
    @extend_schema(
        summary="Change complaint status",
        description=(
            "Only the unit holding the complaint may change its status, and "
            "only while no transfer is pending. Resolving or rejecting needs a note."
        ),
        request=ComplaintStatusUpdateSerializer,
        responses={200: ComplaintDetailSerializer, **_ERROR_RESPONSES},
        tags=["Complaints"],
    )
    def update_status(self, request: Request, pk: int = None) -> Response:
        """
        POST /api/complaints/{id}/status/

        Steps
        -----
        1. Validate ``request.data`` with ``ComplaintStatusUpdateSerializer``.
        2. Delegate to ``ComplaintStatusService.update_status``.
        3. Return HTTP 200 with ``ComplaintDetailSerializer``.
        """
        serializer = ComplaintStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        complaint = ComplaintStatusService.update_status(
            pk,
            request.user,
            serializer.validated_data["status"],
            serializer.validated_data.get("note", ""),
        )
        return Response(ComplaintDetailSerializer(complaint).data, status=status.HTTP_200_OK)

    # ── Transfer ledger ──────────────────────────────────────────────

    @extend_schema(
        methods=["GET"],
        summary="Transfer history",
        description="Every transfer attempt for this complaint, oldest first.",
        responses={200: ComplaintTransferSerializer(many=True), 404: _ERROR_RESPONSES[404]},
        tags=["Transfers"],
    )
    @extend_schema(
        methods=["POST"],
        summary="Initiate transfer",
        description=(
            "Ask another unit to take custody. Custody moves only when the "
            "destination accepts. Notes of at least 20 characters are "
            "required when the reason is 'other'."
        ),
        request=TransferInitiateSerializer,
        responses={201: ComplaintTransferSerializer, **_ERROR_RESPONSES},
        tags=["Transfers"],
    )
    @action(detail=True, methods=["get", "post"], url_path="transfers")
    def transfers(self, request: Request, pk: int = None) -> Response:
        """
        GET  /api/complaints/{id}/transfers/ → history
        POST /api/complaints/{id}/transfers/ → initiate
        """
        if request.method == "GET":
            complaint = self._get_complaint(request, pk)
            history = TransferLedgerService.history(complaint.pk)
            return Response(ComplaintTransferSerializer(history, many=True).data)

        serializer = TransferInitiateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        transfer = CustodyTransferService.initiate_transfer(
            pk,
            request.user,
            to_department_id=data["to_department"],
            to_sub_department_id=data["to_sub_department"],
            reason=data["reason"],
            notes=data.get("notes", ""),
        )
        return Response(
            ComplaintTransferSerializer(transfer).data,
            status=status.HTTP_201_CREATED,
        )

    @action(detail=True, methods=["get"], url_path="transfers/pending")
    @extend_schema(
        summary="Pending transfer",
        description="The outstanding transfer for this complaint, or 204 when there is none.",
        responses={
            200: ComplaintTransferSerializer,
            204: OpenApiResponse(description="No pending transfer."),
            404: _ERROR_RESPONSES[404],
        },
        tags=["Transfers"],
    )
    def pending_transfer(self, request: Request, pk: int = None) -> Response:
        complaint = self._get_complaint(request, pk)
        pending = TransferLedgerService.find_pending(complaint.pk)
        if pending is None:
            return Response(status=status.HTTP_204_NO_CONTENT)
        return Response(ComplaintTransferSerializer(pending).data)

    # ── Communication thread ─────────────────────────────────────────

    @extend_schema(
        methods=["GET"],
        summary="Complaint thread",
        responses={200: ComplaintCommunicationSerializer(many=True)},
        tags=["Communications"],
    )
    @extend_schema(
        methods=["POST"],
        summary="Post to complaint thread",
        request=ComplaintCommunicationCreateSerializer,
        responses={201: ComplaintCommunicationSerializer, 403: _ERROR_RESPONSES[403]},
        tags=["Communications"],
    )
    @action(detail=True, methods=["get", "post"], url_path="communications")
    def communications(self, request: Request, pk: int = None) -> Response:
        complaint = self._get_complaint(request, pk)
        if request.method == "GET":
            thread = CommunicationService.thread(complaint)
            return Response(ComplaintCommunicationSerializer(thread, many=True).data)

        serializer = ComplaintCommunicationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        message = CommunicationService.post_from_user(
            request.user,
            complaint,
            serializer.validated_data["message"],
            serializer.validated_data.get("tagged_departments", []),
        )
        return Response(
            ComplaintCommunicationSerializer(message).data,
            status=status.HTTP_201_CREATED,
        )


class TransferViewSet(viewsets.ViewSet):
    """
    Transfer decisions and inboxes.

    Endpoints
    ---------
    GET  /api/transfers/incoming/    → pending transfers addressed to my unit
    GET  /api/transfers/stats/       → counts per status (admins)
    GET  /api/transfers/{id}/        → one transfer
    POST /api/transfers/{id}/accept/ → accept, returns the complaint
    POST /api/transfers/{id}/reject/ → reject, returns the transfer
    """

    permission_classes = [IsAuthenticated]
    lookup_value_regex = r"\d+"

    @extend_schema(
        summary="Retrieve transfer",
        responses={200: ComplaintTransferSerializer, 404: _ERROR_RESPONSES[404]},
        tags=["Transfers"],
    )
    def retrieve(self, request: Request, pk: int = None) -> Response:
        transfer = TransferLedgerService.get(pk)
        ComplaintQueryService.get_visible_complaint(request.user, transfer.complaint_id)
        return Response(ComplaintTransferSerializer(transfer).data)

    @action(detail=True, methods=["post"], url_path="accept")
    @extend_schema(
        summary="Accept transfer",
        description=(
            "Destination unit (or a super admin) accepts a pending transfer. "
            "Custody moves to the destination. Returns the complaint."
        ),
        request=None,
        responses={200: ComplaintDetailSerializer, **_ERROR_RESPONSES},
        tags=["Transfers"],
    )
    def accept(self, request: Request, pk: int = None) -> Response:
        """
        POST /api/transfers/{id}/accept/

        Steps
        -----
        1. Delegate to ``CustodyTransferService.accept_transfer(pk, request.user)``.
        2. Return HTTP 200 with ``ComplaintDetailSerializer``.
        """
        complaint = CustodyTransferService.accept_transfer(pk, request.user)
        return Response(ComplaintDetailSerializer(complaint).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=["post"], url_path="reject")
    @extend_schema(
        summary="Reject transfer",
        description=(
            "Destination unit (or a super admin) rejects a pending transfer "
            "with a reason of at least 10 characters. Custody stays put."
        ),
        request=TransferRejectSerializer,
        responses={200: ComplaintTransferSerializer, **_ERROR_RESPONSES},
        tags=["Transfers"],
    )
    def reject(self, request: Request, pk: int = None) -> Response:
        serializer = TransferRejectSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        transfer = CustodyTransferService.reject_transfer(
            pk,
            request.user,
            serializer.validated_data["rejection_reason"],
        )
        return Response(ComplaintTransferSerializer(transfer).data, status=status.HTTP_200_OK)

    @action(detail=False, methods=["get"], url_path="incoming")
    @extend_schema(
        summary="Incoming pending transfers",
        description="Pending transfers awaiting a decision from the caller's unit.",
        responses={200: ComplaintTransferSerializer(many=True)},
        tags=["Transfers"],
    )
    def incoming(self, request: Request) -> Response:
        qs = TransferLedgerService.pending_for_unit(request.user)
        return Response(ComplaintTransferSerializer(qs, many=True).data)

    @action(detail=False, methods=["get"], url_path="stats")
    @extend_schema(
        summary="Transfer statistics",
        description="Counts per status for a department over a period (default: last 30 days).",
        parameters=[
            OpenApiParameter(name="department", type=int, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="start", type=str, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="end", type=str, location=OpenApiParameter.QUERY, required=False),
        ],
        responses={200: TransferStatsSerializer, 403: _ERROR_RESPONSES[403]},
        tags=["Transfers"],
    )
    def stats(self, request: Request) -> Response:
        query = TransferStatsQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        data = TransferLedgerService.stats(
            request.user,
            department_id=query.validated_data.get("department"),
            start=query.validated_data.get("start"),
            end=query.validated_data.get("end"),
        )
        return Response(TransferStatsSerializer(data).data)
