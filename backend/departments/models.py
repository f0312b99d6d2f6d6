"""
Departments app models.

The organisational directory: departments, their sub-departments, and
the connection graph saying which departments may exchange complaints.
A (department, sub-department) pair is a *unit*; complaints are held by
exactly one unit at a time.
"""

from django.conf import settings
from django.db import models

from core.models import TimeStampedModel


class ConnectionType(models.TextChoices):
    """What a connection between two departments allows."""

    TRANSFER_ENABLED = "transfer_enabled", "Transfer Enabled"
    COMMUNICATION_ENABLED = "communication_enabled", "Communication Enabled"
    BOTH = "both", "Transfer & Communication"


class Department(TimeStampedModel):
    """
    A top-level government department (e.g. Water Supply, Electricity).
    """

    name = models.CharField(max_length=150, unique=True, verbose_name="Name")
    code = models.CharField(
        max_length=20,
        unique=True,
        verbose_name="Code",
        help_text="Short unique code, e.g. 'WTR'.",
    )
    description = models.TextField(blank=True, default="", verbose_name="Description")
    is_active = models.BooleanField(default=True, verbose_name="Active")

    class Meta:
        verbose_name = "Department"
        verbose_name_plural = "Departments"
        ordering = ["name"]

    def __str__(self):
        return f"{self.name} ({self.code})"


class SubDepartment(TimeStampedModel):
    """
    A sub-department inside a department.  Officers are assigned to a
    sub-department and complaints are held at sub-department granularity.
    """

    department = models.ForeignKey(
        Department,
        on_delete=models.CASCADE,
        related_name="sub_departments",
        verbose_name="Department",
    )
    name = models.CharField(max_length=150, verbose_name="Name")
    code = models.CharField(max_length=20, verbose_name="Code")
    is_active = models.BooleanField(default=True, verbose_name="Active")

    class Meta:
        verbose_name = "Sub-Department"
        verbose_name_plural = "Sub-Departments"
        ordering = ["department__name", "name"]
        constraints = [
            models.UniqueConstraint(
                fields=["department", "code"],
                name="uniq_subdepartment_code_per_department",
            ),
        ]

    def __str__(self):
        return f"{self.department.code}/{self.name}"


class DepartmentConnection(TimeStampedModel):
    """
    An administrator-established link allowing two departments to
    exchange complaints.  Connections are bidirectional: a row from A to B
    also connects B to A, and only one row may exist per unordered pair.

    Connections are never deleted; deactivating one stops new transfers
    while keeping the statistics.
    """

    source_department = models.ForeignKey(
        Department,
        on_delete=models.CASCADE,
        related_name="outgoing_connections",
        verbose_name="Source Department",
    )
    target_department = models.ForeignKey(
        Department,
        on_delete=models.CASCADE,
        related_name="incoming_connections",
        verbose_name="Target Department",
    )
    connection_type = models.CharField(
        max_length=32,
        choices=ConnectionType.choices,
        default=ConnectionType.BOTH,
        verbose_name="Connection Type",
    )
    is_active = models.BooleanField(default=True, verbose_name="Active")
    established_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="established_connections",
        verbose_name="Established By",
    )
    notes = models.CharField(max_length=500, blank=True, default="", verbose_name="Notes")

    # ── Statistics ───────────────────────────────────────────────────
    transfer_count = models.PositiveIntegerField(default=0, verbose_name="Transfer Count")
    last_transfer_at = models.DateTimeField(null=True, blank=True, verbose_name="Last Transfer At")

    class Meta:
        verbose_name = "Department Connection"
        verbose_name_plural = "Department Connections"
        ordering = ["-transfer_count", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["source_department", "target_department"],
                name="uniq_department_connection",
            ),
            models.CheckConstraint(
                condition=~models.Q(source_department=models.F("target_department")),
                name="connection_departments_differ",
            ),
        ]
        indexes = [
            models.Index(fields=["is_active", "source_department"]),
            models.Index(fields=["is_active", "target_department"]),
        ]

    def __str__(self):
        return f"{self.source_department.code} <-> {self.target_department.code}"

    @property
    def allows_transfer(self) -> bool:
        return self.connection_type in (ConnectionType.TRANSFER_ENABLED, ConnectionType.BOTH)
