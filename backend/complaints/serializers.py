"""
Complaints app serializers.

Contains all Request and Response serializers for the Complaints API.
Serializers handle field definitions, read/write constraints, and field-level
validation only.  **No custody rules or transition logic live here** —
those belong in ``services.py``.

Structure
---------
1. Filter / query-param serializers
2. Complaint read serializers (list, detail, status log, role context)
3. Transfer serializers (read, initiate, reject, stats)
4. Communication thread serializers
"""

from __future__ import annotations

from rest_framework import serializers

from accounts.serializers import UserSummarySerializer
from core.constants import (
    REJECTION_REASON_MAX_LENGTH,
    RESOLUTION_NOTE_MAX_LENGTH,
    TRANSFER_NOTES_MAX_LENGTH,
)
from departments.serializers import DepartmentSummarySerializer, SubDepartmentSerializer

from .models import (
    Complaint,
    ComplaintCommunication,
    ComplaintStatus,
    ComplaintStatusLog,
    ComplaintTransfer,
    TransferReason,
)


# ═══════════════════════════════════════════════════════════════════
#  1. Filter / Query-Parameter Serializers
# ═══════════════════════════════════════════════════════════════════


class ComplaintFilterSerializer(serializers.Serializer):
    """
    Validates query-parameter filters for ``GET /api/complaints/``.

    Query Parameters
    ----------------
    ``status``      : str  — one of ``ComplaintStatus`` values
    ``owned_only``  : bool — only complaints the caller's unit holds
    ``search``      : str  — matches complaint number or title
    """

    status = serializers.ChoiceField(choices=ComplaintStatus.choices, required=False)
    owned_only = serializers.BooleanField(required=False, default=False)
    search = serializers.CharField(required=False, allow_blank=True, max_length=100)


class TransferStatsQuerySerializer(serializers.Serializer):
    """Query parameters for ``GET /api/transfers/stats/``."""

    department = serializers.IntegerField(required=False, min_value=1)
    start = serializers.DateTimeField(required=False)
    end = serializers.DateTimeField(required=False)


# ═══════════════════════════════════════════════════════════════════
#  2. Complaint Read Serializers
# ═══════════════════════════════════════════════════════════════════


class ComplaintListSerializer(serializers.ModelSerializer):
    owner_department = DepartmentSummarySerializer(read_only=True)
    owner_sub_department = SubDepartmentSerializer(read_only=True)

    class Meta:
        model = Complaint
        fields = [
            "id",
            "complaint_number",
            "title",
            "status",
            "owner_department",
            "owner_sub_department",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ComplaintDetailSerializer(serializers.ModelSerializer):
    """
    Full complaint representation returned by detail, status-change and
    accept-transfer endpoints.
    """

    owner_department = DepartmentSummarySerializer(read_only=True)
    owner_sub_department = SubDepartmentSerializer(read_only=True)
    assigned_officer = UserSummarySerializer(read_only=True)
    closed_by = UserSummarySerializer(read_only=True)

    class Meta:
        model = Complaint
        fields = [
            "id",
            "complaint_number",
            "title",
            "description",
            "status",
            "owner_department",
            "owner_sub_department",
            "assigned_officer",
            "resolution_note",
            "rejection_reason",
            "closed_by",
            "closed_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ComplaintStatusLogSerializer(serializers.ModelSerializer):
    changed_by = UserSummarySerializer(read_only=True)

    class Meta:
        model = ComplaintStatusLog
        fields = ["id", "from_status", "to_status", "changed_by", "message", "created_at"]
        read_only_fields = fields


class RoleContextSerializer(serializers.Serializer):
    """
    The caller's capabilities on one complaint, as computed by
    ``ComplaintRoleResolver``.
    """

    is_current_owner = serializers.BooleanField()
    is_source = serializers.BooleanField()
    is_destination = serializers.BooleanField()
    has_pending_transfer = serializers.BooleanField()
    can_initiate_transfer = serializers.BooleanField()
    can_accept_or_reject = serializers.BooleanField()
    can_update_status = serializers.BooleanField()
    pending_transfer_id = serializers.IntegerField(allow_null=True)


class ComplaintStatusUpdateSerializer(serializers.Serializer):
    """
    Request body for ``POST /api/complaints/{id}/status/``.

    ``note`` is required by the service when moving to ``resolved`` or
    ``rejected``.
    """

    status = serializers.ChoiceField(choices=ComplaintStatus.choices)
    note = serializers.CharField(
        required=False,
        allow_blank=True,
        default="",
        max_length=RESOLUTION_NOTE_MAX_LENGTH,
    )


# ═══════════════════════════════════════════════════════════════════
#  3. Transfer Serializers
# ═══════════════════════════════════════════════════════════════════


class ComplaintTransferSerializer(serializers.ModelSerializer):
    """Read serializer for one transfer ledger record."""

    complaint_number = serializers.CharField(source="complaint.complaint_number", read_only=True)
    from_department = DepartmentSummarySerializer(read_only=True)
    from_sub_department = SubDepartmentSerializer(read_only=True)
    to_department = DepartmentSummarySerializer(read_only=True)
    to_sub_department = SubDepartmentSerializer(read_only=True)
    initiated_by = UserSummarySerializer(read_only=True)
    resolved_by = UserSummarySerializer(read_only=True)

    class Meta:
        model = ComplaintTransfer
        fields = [
            "id",
            "complaint",
            "complaint_number",
            "from_department",
            "from_sub_department",
            "to_department",
            "to_sub_department",
            "transfer_type",
            "reason",
            "notes",
            "status",
            "initiated_by",
            "initiated_by_level",
            "initiated_at",
            "resolved_by",
            "resolved_at",
            "rejection_reason",
        ]
        read_only_fields = fields


class TransferInitiateSerializer(serializers.Serializer):
    """
    Request body for ``POST /api/complaints/{id}/transfers/``.

    The "notes required for OTHER" rule is enforced in the service so
    that it applies to every caller.
    """

    to_department = serializers.IntegerField(min_value=1)
    to_sub_department = serializers.IntegerField(min_value=1)
    reason = serializers.ChoiceField(choices=TransferReason.choices)
    notes = serializers.CharField(
        required=False,
        allow_blank=True,
        default="",
        max_length=TRANSFER_NOTES_MAX_LENGTH,
    )


class TransferRejectSerializer(serializers.Serializer):
    """Request body for ``POST /api/transfers/{id}/reject/``."""

    rejection_reason = serializers.CharField(
        allow_blank=True,
        max_length=REJECTION_REASON_MAX_LENGTH,
    )


class _StatusCountsSerializer(serializers.Serializer):
    total = serializers.IntegerField()
    pending = serializers.IntegerField()
    accepted = serializers.IntegerField()
    rejected = serializers.IntegerField()


class _ReasonCountSerializer(serializers.Serializer):
    reason = serializers.CharField()
    count = serializers.IntegerField()


class TransferStatsSerializer(_StatusCountsSerializer):
    """Response of ``GET /api/transfers/stats/``."""

    department = serializers.IntegerField(allow_null=True)
    start = serializers.DateTimeField()
    end = serializers.DateTimeField()
    by_reason = _ReasonCountSerializer(many=True)
    incoming = _StatusCountsSerializer(required=False)
    outgoing = _StatusCountsSerializer(required=False)


# ═══════════════════════════════════════════════════════════════════
#  4. Communication Thread
# ═══════════════════════════════════════════════════════════════════


class ComplaintCommunicationSerializer(serializers.ModelSerializer):
    author = UserSummarySerializer(read_only=True)
    tagged_departments = DepartmentSummarySerializer(many=True, read_only=True)

    class Meta:
        model = ComplaintCommunication
        fields = ["id", "author", "message", "message_type", "tagged_departments", "created_at"]
        read_only_fields = fields


class ComplaintCommunicationCreateSerializer(serializers.Serializer):
    message = serializers.CharField(max_length=2000)
    tagged_departments = serializers.ListField(
        child=serializers.IntegerField(min_value=1),
        required=False,
        default=list,
    )
