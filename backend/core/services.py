"""
Core app service layer.

Cross-app helpers that don't belong to a single domain app:

* ``SystemConstantsService`` — choice enumerations for frontend dropdowns.
* ``NotificationService``    — per-user notification inbox.
"""

from __future__ import annotations

import logging
from typing import Any

from django.db.models import QuerySet

from core.domain.exceptions import NotFound

logger = logging.getLogger(__name__)


# ════════════════════════════════════════════════════════════════════
#  System Constants Service
# ════════════════════════════════════════════════════════════════════

class SystemConstantsService:
    """
    Gathers all system-wide choice enumerations into a single dict for
    the frontend.

    This service is **stateless** — it does not depend on the requesting
    user.
    """

    @staticmethod
    def get_constants() -> dict[str, Any]:
        """Return all system constants as a dict."""
        from accounts.models import AccessLevel
        from complaints.models import (
            ComplaintStatus,
            TransferReason,
            TransferStatus,
        )
        from core import constants
        from departments.models import ConnectionType

        to_list = SystemConstantsService._choices_to_list

        return {
            "complaint_statuses": to_list(ComplaintStatus),
            "transfer_reasons": to_list(TransferReason),
            "transfer_statuses": to_list(TransferStatus),
            "connection_types": to_list(ConnectionType),
            "access_levels": to_list(AccessLevel),
            "limits": {
                "transfer_notes_max_length": constants.TRANSFER_NOTES_MAX_LENGTH,
                "transfer_other_notes_min_length": constants.TRANSFER_OTHER_NOTES_MIN_LENGTH,
                "rejection_reason_min_length": constants.REJECTION_REASON_MIN_LENGTH,
                "rejection_reason_max_length": constants.REJECTION_REASON_MAX_LENGTH,
            },
        }

    @staticmethod
    def _choices_to_list(
        choices_class: type,
    ) -> list[dict[str, str]]:
        """
        Convert a Django ``TextChoices`` class to a list of
        ``{"value": ..., "label": ...}`` dicts.
        """
        return [
            {"value": str(value), "label": str(label)}
            for value, label in choices_class.choices
        ]


# ═══════════════════════════════════════════════════════════════════
#  Notification Service
# ═══════════════════════════════════════════════════════════════════

class NotificationService:
    """Inbox operations scoped to one recipient."""

    def __init__(self, user: Any) -> None:
        self.user = user

    def _inbox(self) -> QuerySet:
        from core.models import Notification

        return Notification.objects.filter(recipient=self.user)

    def list_notifications(self, *, unread_only: bool = False) -> QuerySet:
        qs = self._inbox().select_related("content_type").order_by("-created_at")
        if unread_only:
            qs = qs.filter(is_read=False)
        return qs

    def mark_as_read(self, notification_id: int) -> Any:
        notification = self._inbox().filter(pk=notification_id).first()
        if notification is None:
            raise NotFound(f"Notification with id {notification_id} not found.")

        if not notification.is_read:
            notification.is_read = True
            notification.save(update_fields=["is_read", "updated_at"])
            logger.debug("Notification %s marked as read by %s", notification_id, self.user)
        return notification

    def mark_all_as_read(self) -> int:
        """Mark every unread notification as read; return how many changed."""
        from django.utils import timezone

        updated = self._inbox().filter(is_read=False).update(is_read=True, updated_at=timezone.now())
        logger.debug("%s notifications marked as read by %s", updated, self.user)
        return updated
