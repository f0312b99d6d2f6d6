"""
core.domain.notifications — Synchronous notification creation helper.

Centralises notification creation so every app uses one consistent
entry-point rather than directly constructing ``Notification`` objects.

Design decisions
----------------
* **Best-effort** — custody services schedule notifications through
  ``core.domain.transactions.run_after_commit`` so a delivery failure
  is logged and never rolls back the operation that triggered it.
* **Supports multiple recipients** — pass a single ``User`` or an
  iterable of ``User`` instances.  The actor is never notified about
  their own action.
* **Templated text** — titles and messages are looked up by
  ``event_type`` and formatted with the ``payload`` dict, which is also
  persisted on the notification for the client.
* **Generic relation** — ``related_object`` is optional; if provided
  its ``ContentType`` and PK are stored via the ``Notification`` model's
  ``GenericForeignKey``.

Usage::

    from core.domain.notifications import NotificationService

    NotificationService.create(
        actor=request.user,
        recipients=transfer.initiated_by,
        event_type="transfer_accepted",
        payload={"complaint_number": complaint.complaint_number},
        related_object=transfer,
    )
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable

from django.contrib.contenttypes.models import ContentType
from django.db import models

if TYPE_CHECKING:
    from accounts.models import User
    from core.models import Notification

logger = logging.getLogger(__name__)

# ── Event-type → human-readable templates ───────────────────────────
# Templates are formatted with the notification payload.
_EVENT_TEMPLATES: dict[str, tuple[str, str]] = {
    # event_type: (title_template, message_template)
    "transfer_requested": (
        "Incoming Complaint Transfer",
        "Complaint {complaint_number} has been sent to {to_unit} by {from_unit} and awaits your decision.",
    ),
    "transfer_accepted": (
        "Transfer Accepted",
        "{to_unit} accepted complaint {complaint_number}. Custody has moved.",
    ),
    "transfer_rejected": (
        "Transfer Rejected",
        "{to_unit} rejected the transfer of complaint {complaint_number}: {rejection_reason}",
    ),
    "complaint_status_changed": (
        "Complaint Status Updated",
        "Complaint {complaint_number} moved from {from_status} to {to_status}.",
    ),
}


class _SafeDict(dict):
    """Leave unknown ``{placeholders}`` untouched instead of raising."""

    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


class NotificationService:
    """
    Stateless helper for creating ``Notification`` records.

    All methods are classmethods — no instance state is needed.
    """

    @classmethod
    def render(cls, event_type: str, payload: dict[str, Any] | None = None) -> tuple[str, str]:
        """Return the ``(title, message)`` pair for an event."""
        title, message = _EVENT_TEMPLATES.get(
            event_type,
            (event_type.replace("_", " ").title(), f"Event: {event_type}"),
        )
        values = _SafeDict(payload or {})
        return title.format_map(values), message.format_map(values)

    @classmethod
    def create(
        cls,
        *,
        actor: User | None,
        recipients: User | Iterable[User],
        event_type: str,
        payload: dict[str, Any] | None = None,
        related_object: models.Model | None = None,
    ) -> list[Notification]:
        """
        Create one ``Notification`` per recipient.

        Args:
            actor:          The user who performed the action.  Excluded
                            from the recipients.
            recipients:     A single ``User`` or iterable of ``User``
                            instances.
            event_type:     Key into ``_EVENT_TEMPLATES``.  If unknown
                            the raw event_type is used as title.
            payload:        Context dict used for template interpolation;
                            stored on each notification.
            related_object: Optional model instance linked via
                            ``GenericForeignKey``.

        Returns:
            List of created ``Notification`` instances.
        """
        from core.models import Notification  # circular import

        # Normalise recipients to a list
        if isinstance(recipients, models.Model):
            recipients = [recipients]
        recipients = [
            r for r in recipients
            if actor is None or r.pk != actor.pk
        ]

        if not recipients:
            logger.info(
                "No recipients for event_type=%s by actor=%s; nothing sent",
                event_type,
                actor,
            )
            return []

        payload = payload or {}
        title, message = cls.render(event_type, payload)

        # Resolve GenericFK fields
        content_type = None
        object_id = None
        if related_object is not None:
            content_type = ContentType.objects.get_for_model(related_object)
            object_id = related_object.pk

        notifications = Notification.objects.bulk_create([
            Notification(
                recipient=recipient,
                event_type=event_type,
                title=title,
                message=message,
                payload=payload,
                content_type=content_type,
                object_id=object_id,
            )
            for recipient in recipients
        ])

        logger.info(
            "Created %d notification(s) [%s] by actor=%s",
            len(notifications),
            event_type,
            actor,
        )
        return notifications
