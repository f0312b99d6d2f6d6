"""
Departments app service layer.

``DirectoryService`` is the read-mostly lookup the complaint custody
logic consults: is a unit active, may two units exchange complaints.
``ConnectionService`` lets administrators manage the connection graph.

Units are passed around as ``OrgUnit`` values (plain ids) so callers
never need model instances to ask a directory question.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from django.db import IntegrityError, transaction
from django.db.models import F, Q, QuerySet
from django.utils import timezone

from core.domain.exceptions import (
    Conflict,
    NotFound,
    PermissionDenied,
    ValidationFailed,
)

from .models import ConnectionType, Department, DepartmentConnection, SubDepartment

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrgUnit:
    """A (department, sub-department) pair identifying one unit."""

    department_id: int
    sub_department_id: int | None

    def __str__(self) -> str:
        return f"{self.department_id}/{self.sub_department_id}"


# ═══════════════════════════════════════════════════════════════════
#  Directory lookups
# ═══════════════════════════════════════════════════════════════════


class DirectoryService:
    """
    Read-only questions about the organisational directory.

    ``record_transfer`` is the single write: it bumps the statistics on
    the connection a cross-department transfer travelled over.
    """

    @staticmethod
    def get_sub_department(department_id: int, sub_department_id: int) -> SubDepartment | None:
        """
        Return the sub-department if it exists *and* belongs to the
        given department, otherwise ``None``.
        """
        return (
            SubDepartment.objects
            .select_related("department")
            .filter(pk=sub_department_id, department_id=department_id)
            .first()
        )

    @staticmethod
    def is_unit_active(unit: OrgUnit) -> bool:
        """
        A unit is active when its department is active and, if given,
        its sub-department is active and belongs to that department.
        """
        if not Department.objects.filter(pk=unit.department_id, is_active=True).exists():
            return False
        if unit.sub_department_id is None:
            return True
        return SubDepartment.objects.filter(
            pk=unit.sub_department_id,
            department_id=unit.department_id,
            is_active=True,
        ).exists()

    @staticmethod
    def find_connection(
        department_a_id: int,
        department_b_id: int,
        *,
        active_only: bool = True,
    ) -> DepartmentConnection | None:
        """Return the connection between two departments in either direction."""
        qs = DepartmentConnection.objects.filter(
            Q(source_department_id=department_a_id, target_department_id=department_b_id)
            | Q(source_department_id=department_b_id, target_department_id=department_a_id)
        )
        if active_only:
            qs = qs.filter(is_active=True)
        return qs.first()

    @classmethod
    def are_units_connected(cls, from_unit: OrgUnit, to_unit: OrgUnit) -> bool:
        """
        Units inside the same department can always exchange complaints.
        Across departments an active connection permitting transfers
        must exist.
        """
        if from_unit.department_id == to_unit.department_id:
            return True
        connection = cls.find_connection(from_unit.department_id, to_unit.department_id)
        return connection is not None and connection.allows_transfer

    @classmethod
    def record_transfer(cls, from_department_id: int, to_department_id: int) -> None:
        """Increment the transfer statistics of the connection used."""
        if from_department_id == to_department_id:
            return
        updated = (
            DepartmentConnection.objects
            .filter(
                Q(source_department_id=from_department_id, target_department_id=to_department_id)
                | Q(source_department_id=to_department_id, target_department_id=from_department_id),
                is_active=True,
            )
            .update(
                transfer_count=F("transfer_count") + 1,
                last_transfer_at=timezone.now(),
            )
        )
        if not updated:
            logger.warning(
                "No active connection to record transfer %s -> %s",
                from_department_id,
                to_department_id,
            )

    @staticmethod
    def connected_departments(department_id: int) -> QuerySet:
        """
        Departments a unit in ``department_id`` may transfer to: the
        department itself plus every active transfer-enabled neighbour.
        """
        links = DepartmentConnection.objects.filter(
            is_active=True,
            connection_type__in=[ConnectionType.TRANSFER_ENABLED, ConnectionType.BOTH],
        )
        neighbour_ids = set(
            links.filter(source_department_id=department_id)
            .values_list("target_department_id", flat=True)
        ) | set(
            links.filter(target_department_id=department_id)
            .values_list("source_department_id", flat=True)
        )
        neighbour_ids.add(department_id)
        return (
            Department.objects
            .filter(pk__in=neighbour_ids, is_active=True)
            .prefetch_related("sub_departments")
        )


# ═══════════════════════════════════════════════════════════════════
#  Connection management
# ═══════════════════════════════════════════════════════════════════


class ConnectionService:
    """
    Administrative management of the department connection graph.

    ``SUPER_ADMIN`` manages any connection; an ``ADMIN`` only those
    touching their own department.
    """

    @staticmethod
    def _ensure_can_manage(actor: Any, *department_ids: int) -> None:
        from accounts.models import AccessLevel

        level = getattr(actor, "access_level", None)
        if level == AccessLevel.SUPER_ADMIN:
            return
        if level == AccessLevel.ADMIN and actor.assigned_department_id in department_ids:
            return
        raise PermissionDenied("Only administrators of a connected department can manage this connection.")

    @staticmethod
    def list_connections(department_id: int | None = None) -> QuerySet:
        qs = DepartmentConnection.objects.select_related(
            "source_department", "target_department", "established_by",
        )
        if department_id is not None:
            qs = qs.filter(
                Q(source_department_id=department_id) | Q(target_department_id=department_id)
            )
        return qs

    @classmethod
    @transaction.atomic
    def create_connection(
        cls,
        actor: Any,
        *,
        source_department_id: int,
        target_department_id: int,
        connection_type: str = ConnectionType.BOTH,
        notes: str = "",
    ) -> DepartmentConnection:
        """
        Connect two departments.

        Raises:
            ValidationFailed: Same department on both ends.
            NotFound:         Either department does not exist.
            PermissionDenied: Actor may not manage these departments.
            Conflict:         A connection already exists (either direction).
        """
        if source_department_id == target_department_id:
            raise ValidationFailed(
                "Source and target departments must be different.",
                field="target_department",
            )
        found = Department.objects.filter(
            pk__in=[source_department_id, target_department_id],
        ).count()
        if found != 2:
            raise NotFound("One or both departments were not found.")

        cls._ensure_can_manage(actor, source_department_id, target_department_id)

        if DirectoryService.find_connection(
            source_department_id, target_department_id, active_only=False,
        ):
            raise Conflict("A connection already exists between these departments.")

        try:
            with transaction.atomic():
                connection = DepartmentConnection.objects.create(
                    source_department_id=source_department_id,
                    target_department_id=target_department_id,
                    connection_type=connection_type,
                    notes=notes,
                    established_by=actor,
                )
        except IntegrityError:
            raise Conflict("A connection already exists between these departments.")

        logger.info(
            "Connection %s established between departments %s and %s by %s",
            connection.pk,
            source_department_id,
            target_department_id,
            actor,
        )
        return connection

    @classmethod
    @transaction.atomic
    def set_active(cls, actor: Any, connection_id: int, *, active: bool) -> DepartmentConnection:
        """Deactivate or reactivate a connection."""
        try:
            connection = DepartmentConnection.objects.select_for_update().get(pk=connection_id)
        except DepartmentConnection.DoesNotExist:
            raise NotFound(f"Connection with id {connection_id} not found.")

        cls._ensure_can_manage(
            actor, connection.source_department_id, connection.target_department_id,
        )

        if connection.is_active != active:
            connection.is_active = active
            connection.save(update_fields=["is_active", "updated_at"])
            logger.info(
                "Connection %s %s by %s",
                connection.pk,
                "reactivated" if active else "deactivated",
                actor,
            )
        return connection
