"""
Complaints app models.

Defines the citizen ``Complaint``, the append-only ``ComplaintTransfer``
ledger that moves custody between units, the ``ComplaintStatusLog``
audit trail, and the inter-unit ``ComplaintCommunication`` thread.

Custody (``owner_department`` / ``owner_sub_department``) and ``status``
are written only by ``complaints.services``.  Direct ORM writes
elsewhere bypass the locking that keeps them consistent.
"""

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone

from core.models import TimeStampedModel


# ────────────────────────────────────────────────────────────────────
#  Choices
# ────────────────────────────────────────────────────────────────────

class ComplaintStatus(models.TextChoices):
    """
    Lifecycle of a complaint.

    ``RESOLVED`` and ``REJECTED`` are terminal.
    """

    OPEN = "open", "Open"
    IN_PROGRESS = "in_progress", "In Progress"
    RESOLVED = "resolved", "Resolved"
    REJECTED = "rejected", "Rejected"


TERMINAL_COMPLAINT_STATUSES = frozenset({
    ComplaintStatus.RESOLVED,
    ComplaintStatus.REJECTED,
})


class TransferStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    ACCEPTED = "accepted", "Accepted"
    REJECTED = "rejected", "Rejected"


class TransferReason(models.TextChoices):
    CLARIFICATION = "clarification", "Clarification"
    RE_VERIFICATION = "re_verification", "Re-verification"
    FURTHER_INVESTIGATION = "further_investigation", "Further Investigation"
    SPECIALIZED_HANDLING = "specialized_handling", "Specialized Handling"
    WRONG_DEPARTMENT = "wrong_department", "Wrong Department"
    ESCALATION = "escalation", "Escalation"
    OTHER = "other", "Other"


class TransferType(models.TextChoices):
    """Whether a transfer stays inside one department or crosses departments."""

    INTERNAL = "internal", "Within Department"
    INTER_DEPARTMENT = "inter_department", "Between Departments"


class MessageType(models.TextChoices):
    GENERAL = "general", "General"
    TRANSFER = "transfer", "Transfer"
    STATUS = "status", "Status Update"


# ────────────────────────────────────────────────────────────────────
#  Complaint
# ────────────────────────────────────────────────────────────────────

class Complaint(TimeStampedModel):
    """
    A citizen grievance.

    Exactly one unit holds custody at any time.  Only that unit may
    change the status, and only while no transfer is pending.
    """

    complaint_number = models.CharField(
        max_length=20,
        unique=True,
        null=True,
        blank=True,
        verbose_name="Complaint Number",
        help_text="Human-readable reference, e.g. GRV2026000042.",
    )
    title = models.CharField(max_length=255, verbose_name="Title")
    description = models.TextField(blank=True, default="", verbose_name="Description")
    citizen = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="filed_complaints",
        verbose_name="Filed By",
    )

    # ── Custody ──────────────────────────────────────────────────────
    owner_department = models.ForeignKey(
        "departments.Department",
        on_delete=models.PROTECT,
        related_name="owned_complaints",
        verbose_name="Owner Department",
    )
    owner_sub_department = models.ForeignKey(
        "departments.SubDepartment",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="owned_complaints",
        verbose_name="Owner Sub-Department",
    )
    assigned_officer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="assigned_complaints",
        verbose_name="Assigned Officer",
    )

    # ── Lifecycle ────────────────────────────────────────────────────
    status = models.CharField(
        max_length=16,
        choices=ComplaintStatus.choices,
        default=ComplaintStatus.OPEN,
        verbose_name="Status",
        db_index=True,
    )
    resolution_note = models.TextField(blank=True, default="", verbose_name="Resolution Note")
    rejection_reason = models.TextField(blank=True, default="", verbose_name="Rejection Reason")
    closed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="closed_complaints",
        verbose_name="Closed By",
    )
    closed_at = models.DateTimeField(null=True, blank=True, verbose_name="Closed At")

    class Meta:
        verbose_name = "Complaint"
        verbose_name_plural = "Complaints"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["owner_department", "owner_sub_department"]),
            models.Index(fields=["owner_department", "status"]),
        ]

    def __str__(self):
        return f"{self.complaint_number} — {self.title}"

    def save(self, *args, **kwargs):
        super().save(*args, **kwargs)
        if not self.complaint_number:
            # Number derives from the PK, so it is assigned after the insert.
            year = (self.created_at or timezone.now()).year
            self.complaint_number = f"GRV{year}{self.pk:06d}"
            type(self).objects.filter(pk=self.pk).update(
                complaint_number=self.complaint_number,
            )

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_COMPLAINT_STATUSES


class ComplaintStatusLog(TimeStampedModel):
    """
    Immutable audit trail of every status change on a complaint.
    """

    complaint = models.ForeignKey(
        Complaint,
        on_delete=models.CASCADE,
        related_name="status_logs",
        verbose_name="Complaint",
    )
    from_status = models.CharField(
        max_length=16,
        choices=ComplaintStatus.choices,
        verbose_name="From Status",
    )
    to_status = models.CharField(
        max_length=16,
        choices=ComplaintStatus.choices,
        verbose_name="To Status",
    )
    changed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="complaint_status_changes",
        verbose_name="Changed By",
    )
    message = models.TextField(blank=True, default="", verbose_name="Message")

    class Meta:
        verbose_name = "Complaint Status Log"
        verbose_name_plural = "Complaint Status Logs"
        ordering = ["created_at", "id"]

    def __str__(self):
        return f"{self.complaint}: {self.from_status} → {self.to_status}"


# ────────────────────────────────────────────────────────────────────
#  Transfer ledger
# ────────────────────────────────────────────────────────────────────

class ComplaintTransfer(models.Model):
    """
    One attempt to move custody of a complaint to another unit.

    Rows are never deleted.  ``status`` moves from ``pending`` to exactly
    one of ``accepted`` / ``rejected`` and never changes again.  At most
    one pending row may exist per complaint; the partial unique
    constraint below enforces that at the database level.
    """

    complaint = models.ForeignKey(
        Complaint,
        on_delete=models.CASCADE,
        related_name="transfers",
        verbose_name="Complaint",
    )

    # ── Custody snapshot at creation / requested destination ─────────
    from_department = models.ForeignKey(
        "departments.Department",
        on_delete=models.PROTECT,
        related_name="outgoing_transfers",
        verbose_name="From Department",
    )
    from_sub_department = models.ForeignKey(
        "departments.SubDepartment",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="outgoing_transfers",
        verbose_name="From Sub-Department",
    )
    to_department = models.ForeignKey(
        "departments.Department",
        on_delete=models.PROTECT,
        related_name="incoming_transfers",
        verbose_name="To Department",
    )
    to_sub_department = models.ForeignKey(
        "departments.SubDepartment",
        on_delete=models.PROTECT,
        related_name="incoming_transfers",
        verbose_name="To Sub-Department",
    )

    transfer_type = models.CharField(
        max_length=20,
        choices=TransferType.choices,
        verbose_name="Transfer Type",
    )
    reason = models.CharField(
        max_length=32,
        choices=TransferReason.choices,
        verbose_name="Reason",
    )
    notes = models.CharField(max_length=500, blank=True, default="", verbose_name="Notes")

    status = models.CharField(
        max_length=16,
        choices=TransferStatus.choices,
        default=TransferStatus.PENDING,
        verbose_name="Status",
        db_index=True,
    )

    initiated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="initiated_transfers",
        verbose_name="Initiated By",
    )
    initiated_by_level = models.CharField(
        max_length=16,
        verbose_name="Initiator Access Level",
    )
    initiated_at = models.DateTimeField(default=timezone.now, verbose_name="Initiated At")

    resolved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="resolved_transfers",
        verbose_name="Resolved By",
    )
    resolved_at = models.DateTimeField(null=True, blank=True, verbose_name="Resolved At")
    rejection_reason = models.CharField(
        max_length=500,
        blank=True,
        default="",
        verbose_name="Rejection Reason",
    )

    class Meta:
        verbose_name = "Complaint Transfer"
        verbose_name_plural = "Complaint Transfers"
        ordering = ["initiated_at", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["complaint"],
                condition=Q(status="pending"),
                name="uniq_pending_transfer_per_complaint",
            ),
            models.CheckConstraint(
                condition=(
                    Q(status="pending", resolved_at__isnull=True)
                    | (~Q(status="pending") & Q(resolved_at__isnull=False))
                ),
                name="transfer_resolved_at_matches_status",
            ),
        ]
        indexes = [
            models.Index(fields=["to_department", "status"]),
            models.Index(fields=["from_department", "status"]),
        ]

    def __str__(self):
        return f"Transfer #{self.pk} of {self.complaint_id} ({self.status})"

    @property
    def is_pending(self) -> bool:
        return self.status == TransferStatus.PENDING


# ────────────────────────────────────────────────────────────────────
#  Communication thread
# ────────────────────────────────────────────────────────────────────

class ComplaintCommunication(TimeStampedModel):
    """
    A message in a complaint's inter-unit thread.  Transfer operations
    post ``transfer`` messages here, tagging the departments involved.
    """

    complaint = models.ForeignKey(
        Complaint,
        on_delete=models.CASCADE,
        related_name="communications",
        verbose_name="Complaint",
    )
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="complaint_messages",
        verbose_name="Author",
    )
    message = models.TextField(verbose_name="Message")
    message_type = models.CharField(
        max_length=16,
        choices=MessageType.choices,
        default=MessageType.GENERAL,
        verbose_name="Message Type",
    )
    tagged_departments = models.ManyToManyField(
        "departments.Department",
        blank=True,
        related_name="tagged_in_messages",
        verbose_name="Tagged Departments",
    )

    class Meta:
        verbose_name = "Complaint Communication"
        verbose_name_plural = "Complaint Communications"
        ordering = ["created_at", "id"]

    def __str__(self):
        return f"[{self.message_type}] {self.complaint_id}: {self.message[:40]}"
