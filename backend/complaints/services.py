"""
Complaints app service layer.

This module contains **all** business logic for complaint custody and
lifecycle.  Views call these services and never touch the ORM directly.

Architecture
------------
Services are organised into classes by concern:

- ``ComplaintQueryService``   — scoped listing and visibility checks.
- ``ComplaintIntakeService``  — creating complaints (admin / seeding entry-point).
- ``TransferLedgerService``   — the append-only transfer history and the
                                "is there a pending transfer" predicate.
- ``ComplaintRoleResolver``   — pure computation of a caller's capabilities
                                on one complaint (``RoleContext``).
- ``CustodyTransferService``  — initiate / accept / reject a transfer.
- ``ComplaintStatusService``  — lifecycle status changes gated by custody.
- ``CommunicationService``    — the complaint's inter-unit message thread.

Concurrency
-----------
Every mutating operation runs in ``transaction.atomic()`` and starts by
locking the complaint row (``select_for_update``).  All writes for one
complaint are therefore serialised.  On top of that:

* ``TransferLedgerService.append`` is backed by a partial unique
  constraint (one pending row per complaint).
* ``TransferLedgerService.resolve`` is a compare-and-swap
  (``UPDATE ... WHERE status = 'pending'``); zero affected rows means a
  concurrent caller already decided the transfer.

Thread messages and notifications are scheduled with
``run_after_commit`` and never roll back the custody change that
triggered them.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from typing import Any

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import Count, Q, QuerySet
from django.utils import timezone

from accounts.models import AccessLevel
from accounts.services import (
    CallerIdentityService,
    CallerUnit,
    StaffDirectoryService,
)
from core.constants import (
    REJECTION_REASON_MAX_LENGTH,
    REJECTION_REASON_MIN_LENGTH,
    RESOLUTION_NOTE_MAX_LENGTH,
    TRANSFER_NOTES_MAX_LENGTH,
    TRANSFER_OTHER_NOTES_MIN_LENGTH,
    TRANSFER_STATS_DEFAULT_DAYS,
)
from core.domain.exceptions import (
    InvalidTransition,
    NotConnected,
    NotFound,
    PendingTransferExists,
    PermissionDenied,
    SameUnit,
    StaleState,
    TerminalState,
    ValidationFailed,
)
from core.domain.notifications import NotificationService
from core.domain.transactions import lock_for_update, run_after_commit
from departments.models import SubDepartment
from departments.services import DirectoryService, OrgUnit

from .models import (
    TERMINAL_COMPLAINT_STATUSES,
    Complaint,
    ComplaintCommunication,
    ComplaintStatus,
    ComplaintStatusLog,
    ComplaintTransfer,
    MessageType,
    TransferReason,
    TransferStatus,
    TransferType,
)

logger = logging.getLogger(__name__)

User = get_user_model()


# ═══════════════════════════════════════════════════════════════════
#  Status transition map
# ═══════════════════════════════════════════════════════════════════

#: Allowed forward transitions.  Terminal statuses have no entry.
ALLOWED_STATUS_TRANSITIONS: dict[str, frozenset[str]] = {
    ComplaintStatus.OPEN: frozenset({
        ComplaintStatus.IN_PROGRESS,
        ComplaintStatus.RESOLVED,
        ComplaintStatus.REJECTED,
    }),
    ComplaintStatus.IN_PROGRESS: frozenset({
        ComplaintStatus.RESOLVED,
        ComplaintStatus.REJECTED,
    }),
}


def _unit_label(department, sub_department) -> str:
    if sub_department is None:
        return department.name
    return f"{department.name} / {sub_department.name}"


# ═══════════════════════════════════════════════════════════════════
#  Query Service
# ═══════════════════════════════════════════════════════════════════


class ComplaintQueryService:
    """
    Read-side access to complaints, scoped by the caller's position.

    Visibility rules
    ----------------
    * ``SUPER_ADMIN`` sees everything.
    * ``ADMIN`` sees complaints held by, or transferred to / from, any
      unit of their department.
    * ``OFFICER`` sees complaints held by, or transferred to / from,
      their own unit.
    * ``PUBLIC`` sees the complaints they filed.
    """

    @staticmethod
    def base_queryset() -> QuerySet:
        return Complaint.objects.select_related(
            "owner_department",
            "owner_sub_department",
            "assigned_officer",
            "closed_by",
            "citizen",
        )

    @classmethod
    def visible_to(cls, user) -> QuerySet:
        qs = cls.base_queryset()
        caller = CallerIdentityService.resolve_caller_unit(user)
        level = caller.access_level

        if level == AccessLevel.SUPER_ADMIN:
            return qs
        if level == AccessLevel.PUBLIC:
            return qs.filter(citizen_id=caller.user_id)
        if not caller.is_assigned:
            return qs.none()

        if level == AccessLevel.ADMIN:
            scope = (
                Q(owner_department_id=caller.department_id)
                | Q(transfers__from_department_id=caller.department_id)
                | Q(transfers__to_department_id=caller.department_id)
            )
        else:
            scope = (
                Q(
                    owner_department_id=caller.department_id,
                    owner_sub_department_id=caller.sub_department_id,
                )
                | Q(
                    transfers__from_department_id=caller.department_id,
                    transfers__from_sub_department_id=caller.sub_department_id,
                )
                | Q(
                    transfers__to_department_id=caller.department_id,
                    transfers__to_sub_department_id=caller.sub_department_id,
                )
            )
        return qs.filter(scope).distinct()

    @classmethod
    def get_filtered_queryset(cls, user, filters: dict[str, Any]) -> QuerySet:
        """
        Apply optional ``status`` / ``owned_only`` / ``search`` filters on
        top of the visibility scope.
        """
        qs = cls.visible_to(user)

        status_value = filters.get("status")
        if status_value:
            qs = qs.filter(status=status_value)

        if filters.get("owned_only"):
            caller = CallerIdentityService.resolve_caller_unit(user)
            if caller.access_level == AccessLevel.ADMIN:
                qs = qs.filter(owner_department_id=caller.department_id)
            elif caller.access_level == AccessLevel.OFFICER:
                qs = qs.filter(
                    owner_department_id=caller.department_id,
                    owner_sub_department_id=caller.sub_department_id,
                )

        search = filters.get("search")
        if search:
            qs = qs.filter(
                Q(complaint_number__icontains=search) | Q(title__icontains=search)
            )

        return qs.order_by("-created_at")

    @classmethod
    def get_visible_complaint(cls, user, complaint_id: int) -> Complaint:
        """
        Return the complaint if the caller may see it.

        Raises:
            NotFound: Missing or outside the caller's scope.
        """
        complaint = cls.visible_to(user).filter(pk=complaint_id).first()
        if complaint is None:
            raise NotFound(f"Complaint with id {complaint_id} not found.")
        return complaint


# ═══════════════════════════════════════════════════════════════════
#  Intake Service
# ═══════════════════════════════════════════════════════════════════


class ComplaintIntakeService:
    """
    Creates complaints with their initial custody.

    Citizen intake (forms, uploads, receipts) happens outside this
    service; it is the single entry-point those flows, the admin site and
    the seeding command use.
    """

    @staticmethod
    @transaction.atomic
    def create_complaint(
        *,
        title: str,
        department,
        sub_department=None,
        description: str = "",
        citizen=None,
    ) -> Complaint:
        if sub_department is not None and sub_department.department_id != department.pk:
            raise ValidationFailed(
                "Sub-department does not belong to the department.",
                field="sub_department",
            )
        complaint = Complaint.objects.create(
            title=title,
            description=description,
            owner_department=department,
            owner_sub_department=sub_department,
            citizen=citizen,
        )
        logger.info(
            "Complaint %s created in unit %s/%s",
            complaint.complaint_number,
            department.pk,
            getattr(sub_department, "pk", None),
        )
        return complaint


# ═══════════════════════════════════════════════════════════════════
#  Transfer Ledger
# ═══════════════════════════════════════════════════════════════════


class TransferLedgerService:
    """
    The durable, ordered record of every transfer attempt.

    Records are appended as ``pending`` and resolved exactly once to
    ``accepted`` or ``rejected``.  Nothing here deletes or reopens a
    record.  Callers that need linearizability wrap these calls in a
    transaction holding the complaint row lock.
    """

    @staticmethod
    def _queryset() -> QuerySet:
        return ComplaintTransfer.objects.select_related(
            "from_department",
            "from_sub_department",
            "to_department",
            "to_sub_department",
            "initiated_by",
            "resolved_by",
        )

    @classmethod
    def find_pending(cls, complaint_id: int) -> ComplaintTransfer | None:
        return cls._queryset().filter(
            complaint_id=complaint_id,
            status=TransferStatus.PENDING,
        ).first()

    @classmethod
    def history(cls, complaint_id: int) -> QuerySet:
        """
        All transfer records of a complaint, oldest first.

        Returns an unevaluated ``QuerySet``: iterating it hits the
        database, and it can be re-iterated or re-filtered freely.
        """
        return cls._queryset().filter(complaint_id=complaint_id).order_by("initiated_at", "id")

    @classmethod
    def get(cls, transfer_id: int) -> ComplaintTransfer:
        try:
            return cls._queryset().get(pk=transfer_id)
        except ComplaintTransfer.DoesNotExist:
            raise NotFound(f"Transfer with id {transfer_id} not found.")

    @classmethod
    def append(
        cls,
        *,
        complaint: Complaint,
        to_sub_department: SubDepartment,
        reason: str,
        notes: str,
        initiated_by,
        initiated_by_level: str,
    ) -> ComplaintTransfer:
        """
        Insert a new pending record snapshotting the complaint's current
        custody as the ``from`` unit.

        Raises:
            PendingTransferExists: A pending record already exists.
        """
        existing = cls.find_pending(complaint.pk)
        if existing is not None:
            raise PendingTransferExists(transfer_id=existing.pk)

        to_department_id = to_sub_department.department_id
        transfer_type = (
            TransferType.INTERNAL
            if to_department_id == complaint.owner_department_id
            else TransferType.INTER_DEPARTMENT
        )
        try:
            with transaction.atomic():
                transfer = ComplaintTransfer.objects.create(
                    complaint=complaint,
                    from_department_id=complaint.owner_department_id,
                    from_sub_department_id=complaint.owner_sub_department_id,
                    to_department_id=to_department_id,
                    to_sub_department=to_sub_department,
                    transfer_type=transfer_type,
                    reason=reason,
                    notes=notes,
                    initiated_by=initiated_by,
                    initiated_by_level=initiated_by_level,
                )
        except IntegrityError:
            # Lost a race against another append for the same complaint.
            existing = cls.find_pending(complaint.pk)
            if existing is None:
                raise
            raise PendingTransferExists(transfer_id=existing.pk)
        return transfer

    @classmethod
    def resolve(
        cls,
        transfer_id: int,
        outcome: str,
        resolved_by,
        note: str = "",
    ) -> ComplaintTransfer:
        """
        Move a record from ``pending`` to ``outcome`` with a single
        conditional UPDATE.

        Raises:
            NotFound:   No such transfer.
            StaleState: The record was no longer pending.
        """
        if outcome not in (TransferStatus.ACCEPTED, TransferStatus.REJECTED):
            raise ValueError(f"Invalid transfer outcome: {outcome!r}")

        updated = (
            ComplaintTransfer.objects
            .filter(pk=transfer_id, status=TransferStatus.PENDING)
            .update(
                status=outcome,
                resolved_by=resolved_by,
                resolved_at=timezone.now(),
                rejection_reason=note if outcome == TransferStatus.REJECTED else "",
            )
        )
        transfer = cls.get(transfer_id)
        if updated == 0:
            raise StaleState(
                transfer_id=transfer.pk,
                status=transfer.status,
                resolved_by=transfer.resolved_by,
                resolved_at=transfer.resolved_at,
            )
        return transfer

    @classmethod
    def pending_for_unit(cls, user) -> QuerySet:
        """Pending transfers awaiting a decision from the caller's unit."""
        caller = CallerIdentityService.resolve_caller_unit(user)
        qs = cls._queryset().select_related("complaint").filter(status=TransferStatus.PENDING)

        if caller.access_level == AccessLevel.SUPER_ADMIN:
            return qs.order_by("initiated_at", "id")
        if caller.access_level == AccessLevel.PUBLIC or not caller.is_assigned:
            return qs.none()
        if caller.access_level == AccessLevel.ADMIN:
            qs = qs.filter(to_department_id=caller.department_id)
        else:
            qs = qs.filter(
                to_department_id=caller.department_id,
                to_sub_department_id=caller.sub_department_id,
            )
        return qs.order_by("initiated_at", "id")

    @staticmethod
    def _counts(qs: QuerySet) -> dict[str, int]:
        return qs.aggregate(
            total=Count("id"),
            pending=Count("id", filter=Q(status=TransferStatus.PENDING)),
            accepted=Count("id", filter=Q(status=TransferStatus.ACCEPTED)),
            rejected=Count("id", filter=Q(status=TransferStatus.REJECTED)),
        )

    @classmethod
    def stats(
        cls,
        user,
        *,
        department_id: int | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> dict[str, Any]:
        """
        Transfer counts per status within ``[start, end]``.

        ``SUPER_ADMIN`` may query any department or the whole system;
        an ``ADMIN`` only their own department.  The window defaults to
        the last ``TRANSFER_STATS_DEFAULT_DAYS`` days.

        Raises:
            PermissionDenied: Caller is not an administrator of the
                              requested department.
            ValidationFailed: ``start`` is after ``end``.
        """
        caller = CallerIdentityService.resolve_caller_unit(user)
        if caller.access_level == AccessLevel.ADMIN and caller.department_id is not None:
            if department_id is None:
                department_id = caller.department_id
            elif department_id != caller.department_id:
                raise PermissionDenied("Administrators can only view statistics for their own department.")
        elif caller.access_level != AccessLevel.SUPER_ADMIN:
            raise PermissionDenied("Only administrators can view transfer statistics.")

        end = end or timezone.now()
        start = start or end - timedelta(days=TRANSFER_STATS_DEFAULT_DAYS)
        if start > end:
            raise ValidationFailed("Start must not be after end.", field="start")

        window = ComplaintTransfer.objects.filter(initiated_at__gte=start, initiated_at__lte=end)
        if department_id is not None:
            window = window.filter(
                Q(from_department_id=department_id) | Q(to_department_id=department_id)
            )

        result: dict[str, Any] = {
            "department": department_id,
            "start": start,
            "end": end,
            **cls._counts(window),
            "by_reason": list(
                window.values("reason").annotate(count=Count("id")).order_by("-count", "reason")
            ),
        }
        if department_id is not None:
            result["incoming"] = cls._counts(window.filter(to_department_id=department_id))
            result["outgoing"] = cls._counts(window.filter(from_department_id=department_id))
        return result


# ═══════════════════════════════════════════════════════════════════
#  Role Resolver
# ═══════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class RoleContext:
    """
    What a caller may do with one complaint right now.

    Computed per request from the complaint and its pending transfer.
    Never cached.
    """

    is_current_owner: bool = False
    is_source: bool = False
    is_destination: bool = False
    has_pending_transfer: bool = False
    can_initiate_transfer: bool = False
    can_accept_or_reject: bool = False
    can_update_status: bool = False
    pending_transfer_id: int | None = None

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


class ComplaintRoleResolver:
    """
    The single place that decides a caller's capabilities on a complaint.

    Unit matching
    -------------
    * ``OFFICER`` matches a unit when both department and sub-department
      equal their assignment.
    * ``ADMIN`` matches every unit of their department.
    * ``SUPER_ADMIN`` is treated as current owner of everything and may
      decide any pending transfer.
    * ``PUBLIC`` matches nothing.
    """

    @staticmethod
    def unit_matches(caller: CallerUnit, department_id: int | None, sub_department_id: int | None) -> bool:
        if caller.department_id is None or caller.department_id != department_id:
            return False
        if caller.access_level == AccessLevel.ADMIN:
            return True
        if caller.access_level in (AccessLevel.OFFICER, AccessLevel.SUPER_ADMIN):
            return caller.sub_department_id is not None and caller.sub_department_id == sub_department_id
        return False

    @classmethod
    def can_decide(cls, caller: CallerUnit, transfer: ComplaintTransfer) -> bool:
        """Whether ``caller`` speaks for the transfer's destination, whatever its status."""
        if caller.access_level == AccessLevel.SUPER_ADMIN:
            return True
        return cls.unit_matches(caller, transfer.to_department_id, transfer.to_sub_department_id)

    @classmethod
    def resolve(
        cls,
        caller: CallerUnit,
        complaint: Complaint,
        pending: ComplaintTransfer | None,
        *,
        strict: bool = False,
    ) -> RoleContext:
        """
        Build the ``RoleContext`` for ``caller`` on ``complaint``.

        An officer or admin without an organisational assignment gets an
        all-false context, or ``PermissionDenied`` when ``strict`` (as
        used by every mutating operation).
        """
        has_pending = pending is not None
        pending_id = pending.pk if has_pending else None

        if not caller.is_assigned:
            if strict:
                raise PermissionDenied("Your account is not assigned to a department or sub-department.")
            return RoleContext(has_pending_transfer=has_pending, pending_transfer_id=pending_id)

        is_super = caller.access_level == AccessLevel.SUPER_ADMIN
        is_owner = is_super or cls.unit_matches(
            caller, complaint.owner_department_id, complaint.owner_sub_department_id,
        )

        is_source = is_destination = False
        if has_pending:
            is_source = cls.unit_matches(caller, pending.from_department_id, pending.from_sub_department_id)
            is_destination = cls.unit_matches(caller, pending.to_department_id, pending.to_sub_department_id)

        return RoleContext(
            is_current_owner=is_owner,
            is_source=is_source,
            is_destination=is_destination,
            has_pending_transfer=has_pending,
            can_initiate_transfer=is_owner and not has_pending,
            can_accept_or_reject=has_pending and cls.can_decide(caller, pending),
            can_update_status=is_owner and not has_pending,
            pending_transfer_id=pending_id,
        )

    @classmethod
    def for_user(cls, user, complaint: Complaint) -> RoleContext:
        """Non-strict context for read endpoints."""
        caller = CallerIdentityService.resolve_caller_unit(user)
        pending = TransferLedgerService.find_pending(complaint.pk)
        return cls.resolve(caller, complaint, pending)


# ═══════════════════════════════════════════════════════════════════
#  Communication Service
# ═══════════════════════════════════════════════════════════════════


class CommunicationService:
    """The complaint's inter-unit message thread."""

    @staticmethod
    def post_thread_message(
        *,
        complaint: Complaint,
        author,
        text: str,
        tagged_departments=(),
        message_type: str = MessageType.GENERAL,
    ) -> ComplaintCommunication:
        text = (text or "").strip()
        if not text:
            raise ValidationFailed("Message cannot be empty.", field="message")
        message = ComplaintCommunication.objects.create(
            complaint=complaint,
            author=author,
            message=text,
            message_type=message_type,
        )
        if tagged_departments:
            message.tagged_departments.set(tagged_departments)
        return message

    @staticmethod
    def thread(complaint: Complaint) -> QuerySet:
        return (
            ComplaintCommunication.objects
            .filter(complaint=complaint)
            .select_related("author")
            .prefetch_related("tagged_departments")
            .order_by("created_at", "id")
        )

    @classmethod
    def post_from_user(cls, user, complaint: Complaint, text: str, tagged_department_ids=()) -> ComplaintCommunication:
        """
        A staff member posts to the thread of a complaint they can see.

        Raises:
            PermissionDenied: Citizens cannot post to the inter-unit thread.
        """
        if user.access_level == AccessLevel.PUBLIC:
            raise PermissionDenied("Only staff can post to the complaint thread.")
        from departments.models import Department

        tagged = list(Department.objects.filter(pk__in=tagged_department_ids))
        return cls.post_thread_message(
            complaint=complaint,
            author=user,
            text=text,
            tagged_departments=tagged,
        )


# ═══════════════════════════════════════════════════════════════════
#  Custody State Machine
# ═══════════════════════════════════════════════════════════════════


class CustodyTransferService:
    """
    Initiate, accept and reject custody transfers.

    Each operation is one transaction holding the complaint row lock.
    Custody (``owner_department`` / ``owner_sub_department``) changes
    only in ``accept_transfer``, in the same transaction that marks the
    ledger record accepted.
    """

    @staticmethod
    def _validate_transfer_input(reason: str, notes: str) -> str:
        if reason not in TransferReason.values:
            raise ValidationFailed(f"Unknown transfer reason '{reason}'.", field="reason")
        notes = (notes or "").strip()
        if len(notes) > TRANSFER_NOTES_MAX_LENGTH:
            raise ValidationFailed(
                f"Notes cannot exceed {TRANSFER_NOTES_MAX_LENGTH} characters.",
                field="notes",
            )
        if reason == TransferReason.OTHER and len(notes) < TRANSFER_OTHER_NOTES_MIN_LENGTH:
            raise ValidationFailed(
                f"Notes of at least {TRANSFER_OTHER_NOTES_MIN_LENGTH} characters are "
                f"required when the reason is 'Other'.",
                field="notes",
            )
        return notes

    @staticmethod
    def _validate_rejection_reason(rejection_reason: str) -> str:
        rejection_reason = (rejection_reason or "").strip()
        if not rejection_reason:
            raise ValidationFailed("A rejection reason is required.", field="rejection_reason")
        if len(rejection_reason) < REJECTION_REASON_MIN_LENGTH:
            raise ValidationFailed(
                f"Rejection reason must be at least {REJECTION_REASON_MIN_LENGTH} characters.",
                field="rejection_reason",
            )
        if len(rejection_reason) > REJECTION_REASON_MAX_LENGTH:
            raise ValidationFailed(
                f"Rejection reason cannot exceed {REJECTION_REASON_MAX_LENGTH} characters.",
                field="rejection_reason",
            )
        return rejection_reason

    # ── initiate ─────────────────────────────────────────────────────

    @classmethod
    def initiate_transfer(
        cls,
        complaint_id: int,
        user,
        *,
        to_department_id: int,
        to_sub_department_id: int,
        reason: str,
        notes: str = "",
    ) -> ComplaintTransfer:
        """
        Ask another unit to take custody of a complaint.

        Custody does not move here; the destination must accept first.

        Raises:
            ValidationFailed:      Bad reason / notes, or an unknown or
                                   inactive destination.
            NotFound:              No such complaint.
            PermissionDenied:      Caller is not the current custodian.
            PendingTransferExists: A transfer is already outstanding.
            TerminalState:         The complaint is closed.
            SameUnit:              Destination equals current custody.
            NotConnected:          Departments may not exchange complaints.
        """
        notes = cls._validate_transfer_input(reason, notes)
        caller = CallerIdentityService.resolve_caller_unit(user)

        with transaction.atomic():
            complaint = lock_for_update(Complaint, complaint_id)
            pending = TransferLedgerService.find_pending(complaint.pk)
            ctx = ComplaintRoleResolver.resolve(caller, complaint, pending, strict=True)

            if not ctx.is_current_owner:
                raise PermissionDenied("Only the unit holding this complaint can transfer it.")
            if pending is not None:
                raise PendingTransferExists(transfer_id=pending.pk)
            if complaint.is_terminal:
                raise TerminalState(current=complaint.status)

            if (
                complaint.owner_department_id == to_department_id
                and complaint.owner_sub_department_id == to_sub_department_id
            ):
                raise SameUnit()

            to_sub_department = DirectoryService.get_sub_department(to_department_id, to_sub_department_id)
            if to_sub_department is None:
                raise ValidationFailed(
                    "Target sub-department does not exist in the target department.",
                    field="to_sub_department",
                )
            to_unit = OrgUnit(to_department_id, to_sub_department_id)
            if not DirectoryService.is_unit_active(to_unit):
                raise ValidationFailed(
                    "Target department or sub-department is inactive.",
                    field="to_sub_department",
                )

            from_unit = OrgUnit(complaint.owner_department_id, complaint.owner_sub_department_id)
            if not DirectoryService.are_units_connected(from_unit, to_unit):
                raise NotConnected()

            transfer = TransferLedgerService.append(
                complaint=complaint,
                to_sub_department=to_sub_department,
                reason=reason,
                notes=notes,
                initiated_by=user,
                initiated_by_level=caller.access_level,
            )
            run_after_commit(
                "connection statistics",
                DirectoryService.record_transfer,
                from_unit.department_id,
                to_unit.department_id,
            )
            run_after_commit(
                "transfer thread message",
                cls._announce_initiated,
                transfer_id=transfer.pk,
                actor=user,
            )

        logger.info(
            "Transfer %s initiated for complaint %s: %s -> %s by %s",
            transfer.pk,
            complaint.complaint_number,
            from_unit,
            to_unit,
            user,
        )
        return TransferLedgerService.get(transfer.pk)

    # ── accept ───────────────────────────────────────────────────────

    @classmethod
    def accept_transfer(cls, transfer_id: int, user) -> Complaint:
        """
        Accept a pending transfer and move custody to its destination.

        The ledger update and the custody change commit together.  The
        assigned officer is cleared so the receiving unit can claim the
        complaint.

        Raises:
            NotFound:         No such transfer.
            StaleState:       The transfer was already decided.
            PermissionDenied: Caller may not decide this transfer.
        """
        caller = CallerIdentityService.resolve_caller_unit(user)
        complaint_id = TransferLedgerService.get(transfer_id).complaint_id

        with transaction.atomic():
            complaint, transfer = cls._lock_pending(complaint_id, transfer_id, caller)
            transfer = TransferLedgerService.resolve(transfer.pk, TransferStatus.ACCEPTED, user)

            complaint.owner_department_id = transfer.to_department_id
            complaint.owner_sub_department_id = transfer.to_sub_department_id
            complaint.assigned_officer = None
            complaint.save(update_fields=[
                "owner_department",
                "owner_sub_department",
                "assigned_officer",
                "updated_at",
            ])

            run_after_commit(
                "transfer accepted message",
                cls._announce_decided,
                transfer_id=transfer.pk,
                actor=user,
            )

        logger.info(
            "Transfer %s accepted by %s; complaint %s now held by %s/%s",
            transfer.pk,
            user,
            complaint.complaint_number,
            transfer.to_department_id,
            transfer.to_sub_department_id,
        )
        return ComplaintQueryService.base_queryset().get(pk=complaint.pk)

    # ── reject ───────────────────────────────────────────────────────

    @classmethod
    def reject_transfer(cls, transfer_id: int, user, rejection_reason: str) -> ComplaintTransfer:
        """
        Reject a pending transfer.  Custody stays with the source unit,
        which may initiate a new transfer straight away.

        Raises:
            ValidationFailed: Missing or too short ``rejection_reason``.
            NotFound:         No such transfer.
            StaleState:       The transfer was already decided.
            PermissionDenied: Caller may not decide this transfer.
        """
        rejection_reason = cls._validate_rejection_reason(rejection_reason)
        caller = CallerIdentityService.resolve_caller_unit(user)
        complaint_id = TransferLedgerService.get(transfer_id).complaint_id

        with transaction.atomic():
            complaint, transfer = cls._lock_pending(complaint_id, transfer_id, caller)
            transfer = TransferLedgerService.resolve(
                transfer.pk, TransferStatus.REJECTED, user, rejection_reason,
            )

            run_after_commit(
                "transfer rejected message",
                cls._announce_decided,
                transfer_id=transfer.pk,
                actor=user,
            )

        logger.info(
            "Transfer %s rejected by %s; complaint %s stays with %s/%s",
            transfer.pk,
            user,
            complaint.complaint_number,
            complaint.owner_department_id,
            complaint.owner_sub_department_id,
        )
        return transfer

    # ── helpers ──────────────────────────────────────────────────────

    @staticmethod
    def _lock_pending(
        complaint_id: int,
        transfer_id: int,
        caller: CallerUnit,
    ) -> tuple[Complaint, ComplaintTransfer]:
        """
        Lock the complaint, then re-read the transfer under the lock and
        check it is decidable by ``caller`` and still pending, in that
        order: callers outside the destination never learn who decided
        a transfer.
        """
        complaint = lock_for_update(Complaint, complaint_id)
        transfer = TransferLedgerService.get(transfer_id)
        if not caller.is_assigned or not ComplaintRoleResolver.can_decide(caller, transfer):
            raise PermissionDenied("Only the destination unit can accept or reject this transfer.")
        if not transfer.is_pending:
            raise StaleState(
                transfer_id=transfer.pk,
                status=transfer.status,
                resolved_by=transfer.resolved_by,
                resolved_at=transfer.resolved_at,
            )
        return complaint, transfer

    @staticmethod
    def _announce_initiated(*, transfer_id: int, actor) -> None:
        transfer = TransferLedgerService.get(transfer_id)
        complaint = transfer.complaint
        from_label = _unit_label(transfer.from_department, transfer.from_sub_department)
        to_label = _unit_label(transfer.to_department, transfer.to_sub_department)

        text = (
            f"Transfer requested from {from_label} to {to_label}. "
            f"Reason: {transfer.get_reason_display()}."
        )
        if transfer.notes:
            text += f" Notes: {transfer.notes}"
        CommunicationService.post_thread_message(
            complaint=complaint,
            author=actor,
            text=text,
            tagged_departments=[transfer.to_department],
            message_type=MessageType.TRANSFER,
        )
        NotificationService.create(
            actor=actor,
            recipients=StaffDirectoryService.staff_for_unit(
                OrgUnit(transfer.to_department_id, transfer.to_sub_department_id),
            ),
            event_type="transfer_requested",
            payload={
                "complaint_number": complaint.complaint_number,
                "transfer_id": transfer.pk,
                "from_unit": from_label,
                "to_unit": to_label,
            },
            related_object=transfer,
        )

    @staticmethod
    def _announce_decided(*, transfer_id: int, actor) -> None:
        transfer = TransferLedgerService.get(transfer_id)
        complaint = transfer.complaint
        to_label = _unit_label(transfer.to_department, transfer.to_sub_department)

        if transfer.status == TransferStatus.ACCEPTED:
            event_type = "transfer_accepted"
            text = f"Transfer accepted by {to_label}. The complaint is now handled there."
        else:
            event_type = "transfer_rejected"
            text = f"Transfer rejected by {to_label}. Reason: {transfer.rejection_reason}"

        CommunicationService.post_thread_message(
            complaint=complaint,
            author=actor,
            text=text,
            tagged_departments=[transfer.from_department, transfer.to_department],
            message_type=MessageType.TRANSFER,
        )
        NotificationService.create(
            actor=actor,
            recipients=transfer.initiated_by,
            event_type=event_type,
            payload={
                "complaint_number": complaint.complaint_number,
                "transfer_id": transfer.pk,
                "to_unit": to_label,
                "rejection_reason": transfer.rejection_reason,
            },
            related_object=transfer,
        )


# ═══════════════════════════════════════════════════════════════════
#  Case Status Gate
# ═══════════════════════════════════════════════════════════════════


class ComplaintStatusService:
    """
    Lifecycle status changes.

    Only the current custodian may change the status, and never while a
    transfer is pending.  Transitions only move forward.
    """

    @staticmethod
    def update_status(
        complaint_id: int,
        user,
        new_status: str,
        note: str = "",
    ) -> Complaint:
        """
        Move a complaint to ``new_status``.

        ``resolved`` requires ``note`` (stored as the resolution note);
        ``rejected`` requires it too (stored as the rejection reason).

        Raises:
            NotFound:              No such complaint.
            PermissionDenied:      Caller is not the current custodian.
            PendingTransferExists: A transfer must be decided first.
            TerminalState:         The complaint is already closed.
            InvalidTransition:     Not a forward transition.
            ValidationFailed:      Unknown status, or missing / too long note.
        """
        if new_status not in ComplaintStatus.values:
            raise ValidationFailed(f"Unknown status '{new_status}'.", field="status")
        note = (note or "").strip()
        caller = CallerIdentityService.resolve_caller_unit(user)

        with transaction.atomic():
            complaint = lock_for_update(Complaint, complaint_id)
            pending = TransferLedgerService.find_pending(complaint.pk)
            ctx = ComplaintRoleResolver.resolve(caller, complaint, pending, strict=True)

            if not ctx.is_current_owner:
                raise PermissionDenied("Only the unit holding this complaint can change its status.")
            if ctx.has_pending_transfer:
                raise PendingTransferExists(
                    "A transfer is pending for this complaint; it must be accepted or "
                    "rejected before the status can change.",
                    transfer_id=ctx.pending_transfer_id,
                )

            current = complaint.status
            if current in TERMINAL_COMPLAINT_STATUSES:
                raise TerminalState(current=current, target=new_status)
            if new_status not in ALLOWED_STATUS_TRANSITIONS.get(current, frozenset()):
                raise InvalidTransition(
                    current=current,
                    target=new_status,
                    reason="Complaints only move forward.",
                )

            if new_status in TERMINAL_COMPLAINT_STATUSES:
                if not note:
                    field_label = "resolution note" if new_status == ComplaintStatus.RESOLVED else "rejection reason"
                    raise ValidationFailed(f"A {field_label} is required.", field="note")
                if len(note) > RESOLUTION_NOTE_MAX_LENGTH:
                    raise ValidationFailed(
                        f"Note cannot exceed {RESOLUTION_NOTE_MAX_LENGTH} characters.",
                        field="note",
                    )

            update_fields = ["status", "updated_at"]
            complaint.status = new_status
            if new_status == ComplaintStatus.RESOLVED:
                complaint.resolution_note = note
                update_fields.append("resolution_note")
            elif new_status == ComplaintStatus.REJECTED:
                complaint.rejection_reason = note
                update_fields.append("rejection_reason")
            if new_status in TERMINAL_COMPLAINT_STATUSES:
                complaint.closed_by = user
                complaint.closed_at = timezone.now()
                update_fields += ["closed_by", "closed_at"]
            complaint.save(update_fields=update_fields)

            ComplaintStatusLog.objects.create(
                complaint=complaint,
                from_status=current,
                to_status=new_status,
                changed_by=user,
                message=note,
            )

            recipients = [complaint.citizen] if complaint.citizen_id else []
            if complaint.assigned_officer_id:
                recipients.append(complaint.assigned_officer)
            run_after_commit(
                "status change notification",
                NotificationService.create,
                actor=user,
                recipients=recipients,
                event_type="complaint_status_changed",
                payload={
                    "complaint_number": complaint.complaint_number,
                    "from_status": current,
                    "to_status": new_status,
                },
                related_object=complaint,
            )

        logger.info(
            "Complaint %s status %s -> %s by %s",
            complaint.complaint_number,
            current,
            new_status,
            user,
        )
        return ComplaintQueryService.base_queryset().get(pk=complaint.pk)

    @staticmethod
    def status_log(complaint: Complaint) -> QuerySet:
        return complaint.status_logs.select_related("changed_by").order_by("created_at", "id")
