"""
Accounts app service layer.

Turns an authenticated ``User`` into the organisational position the
complaint custody rules reason about, and answers "who works in this
unit" for notification fan-out.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from django.contrib.auth import get_user_model
from django.db.models import Q, QuerySet

from departments.services import OrgUnit

from .models import AccessLevel

logger = logging.getLogger(__name__)

User = get_user_model()


@dataclass(frozen=True)
class CallerUnit:
    """
    The caller's organisational position.

    ``department_id`` / ``sub_department_id`` are ``None`` when the user
    has no assignment.  ``user_id`` is carried for audit columns only and
    never participates in authority decisions.
    """

    access_level: str
    department_id: int | None = None
    sub_department_id: int | None = None
    user_id: int | None = None

    @property
    def is_assigned(self) -> bool:
        """
        Whether the caller's scope can be resolved.  Officers need a
        sub-department, admins a department.  Super admins and citizens
        don't need an assignment.
        """
        if self.access_level == AccessLevel.OFFICER:
            return self.department_id is not None and self.sub_department_id is not None
        if self.access_level == AccessLevel.ADMIN:
            return self.department_id is not None
        return True


class CallerIdentityService:
    """Resolves the organisational position of an authenticated user."""

    @staticmethod
    def resolve_caller_unit(user) -> CallerUnit:
        if user is None or not user.is_authenticated:
            return CallerUnit(access_level=AccessLevel.PUBLIC)
        return CallerUnit(
            access_level=user.access_level,
            department_id=user.assigned_department_id,
            sub_department_id=user.assigned_sub_department_id,
            user_id=user.pk,
        )


class StaffDirectoryService:
    """Who to tell about things happening in a unit."""

    @staticmethod
    def staff_for_unit(unit: OrgUnit) -> QuerySet:
        """
        Active officers of the exact unit plus active admins of its
        department.
        """
        officers = Q(
            access_level=AccessLevel.OFFICER,
            assigned_department_id=unit.department_id,
            assigned_sub_department_id=unit.sub_department_id,
        )
        admins = Q(
            access_level=AccessLevel.ADMIN,
            assigned_department_id=unit.department_id,
        )
        return User.objects.filter(officers | admins, is_active=True)


class CurrentUserService:
    """Profile access for the authenticated user."""

    @staticmethod
    def get_profile(user):
        return (
            User.objects
            .select_related("assigned_department", "assigned_sub_department")
            .get(pk=user.pk)
        )
