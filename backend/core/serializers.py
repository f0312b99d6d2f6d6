"""
Core app serializers.

Response serializers for the cross-app endpoints in ``core.views``:
system constants and notifications.
"""

from __future__ import annotations

from rest_framework import serializers


# ════════════════════════════════════════════════════════════════════
#  System Constants / Enums
# ════════════════════════════════════════════════════════════════════

class ChoiceItemSerializer(serializers.Serializer):
    """
    A single key-label pair representing one choice/enum option.

    Example::

        {"value": "wrong_department", "label": "Wrong Department"}
    """

    value = serializers.CharField(
        help_text="Machine-readable value to send in API requests.",
    )
    label = serializers.CharField(
        help_text="Human-readable display label for the UI.",
    )


class LimitsSerializer(serializers.Serializer):
    """Field-length rules the frontend mirrors in its forms."""

    transfer_notes_max_length = serializers.IntegerField()
    transfer_other_notes_min_length = serializers.IntegerField()
    rejection_reason_min_length = serializers.IntegerField()
    rejection_reason_max_length = serializers.IntegerField()


class SystemConstantsSerializer(serializers.Serializer):
    """
    Top-level response serializer for ``GET /api/core/constants/``.

    Response shape::

        {
            "complaint_statuses": [{"value": "open", "label": "Open"}, ...],
            "transfer_reasons": [...],
            "transfer_statuses": [...],
            "connection_types": [...],
            "access_levels": [...],
            "limits": {"transfer_other_notes_min_length": 20, ...}
        }
    """

    complaint_statuses = ChoiceItemSerializer(
        many=True,
        help_text="Complaint lifecycle statuses.",
    )
    transfer_reasons = ChoiceItemSerializer(
        many=True,
        help_text="Reasons a unit may give when transferring a complaint.",
    )
    transfer_statuses = ChoiceItemSerializer(
        many=True,
        help_text="Transfer request statuses (pending / accepted / rejected).",
    )
    connection_types = ChoiceItemSerializer(
        many=True,
        help_text="Department connection types.",
    )
    access_levels = ChoiceItemSerializer(
        many=True,
        help_text="User access levels.",
    )
    limits = LimitsSerializer()


# ════════════════════════════════════════════════════════════════════
#  Notifications
# ════════════════════════════════════════════════════════════════════

class NotificationSerializer(serializers.Serializer):
    """
    Read-only serializer for ``Notification`` instances.
    """

    id = serializers.IntegerField(read_only=True, help_text="Notification PK.")
    event_type = serializers.CharField(
        read_only=True,
        help_text="Machine-readable event key, e.g. ``transfer_requested``.",
    )
    title = serializers.CharField(
        read_only=True,
        help_text="Short notification title.",
    )
    message = serializers.CharField(
        read_only=True,
        help_text="Full notification message body.",
    )
    payload = serializers.JSONField(
        read_only=True,
        help_text="Event context (complaint number, units, transfer id...).",
    )
    is_read = serializers.BooleanField(
        read_only=True,
        help_text="Whether the recipient has marked this notification as read.",
    )
    created_at = serializers.DateTimeField(
        read_only=True,
        help_text="When the notification was created.",
    )
    content_type = serializers.StringRelatedField(
        read_only=True,
        help_text="Related content type (if any).",
    )
    object_id = serializers.IntegerField(
        read_only=True,
        allow_null=True,
        help_text="PK of the related object (if any).",
    )
