"""
Accounts app models.

Custom ``User`` model extending Django's ``AbstractUser`` with the
caller's organisational position: an access level and, for staff, the
department / sub-department they are assigned to.  Complaint custody
rules are computed from exactly these fields.
"""

from django.contrib.auth.models import AbstractUser
from django.db import models


class AccessLevel(models.TextChoices):
    """
    How far a user's authority reaches.

    * ``PUBLIC``      — citizens; no authority over any unit.
    * ``OFFICER``     — authority over their own sub-department only.
    * ``ADMIN``       — authority over every sub-department of their department.
    * ``SUPER_ADMIN`` — authority over everything.
    """

    PUBLIC = "public", "Public"
    OFFICER = "officer", "Officer"
    ADMIN = "admin", "Department Admin"
    SUPER_ADMIN = "super_admin", "Super Admin"


class User(AbstractUser):
    """
    Custom user model for the grievance redressal system.

    Login is supported via *any one* of username / officer_id / email
    together with the password.

    Staff users (officers and department admins) carry an assignment to
    a unit.  An officer without a sub-department, or an admin without a
    department, is *unassigned* and gets no write authority.
    """

    email = models.EmailField(
        unique=True,
        verbose_name="Email Address",
    )
    officer_id = models.CharField(
        max_length=32,
        unique=True,
        null=True,
        blank=True,
        verbose_name="Officer ID",
        help_text="Staff identifier, usable as a login identifier.",
    )
    phone_number = models.CharField(
        max_length=15,
        blank=True,
        default="",
        verbose_name="Phone Number",
    )
    access_level = models.CharField(
        max_length=16,
        choices=AccessLevel.choices,
        default=AccessLevel.PUBLIC,
        verbose_name="Access Level",
        db_index=True,
    )

    # ── Organisational assignment ────────────────────────────────────
    assigned_department = models.ForeignKey(
        "departments.Department",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="staff",
        verbose_name="Assigned Department",
    )
    assigned_sub_department = models.ForeignKey(
        "departments.SubDepartment",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="staff",
        verbose_name="Assigned Sub-Department",
    )

    REQUIRED_FIELDS = ["email", "first_name", "last_name"]

    class Meta:
        verbose_name = "User"
        verbose_name_plural = "Users"
        indexes = [
            models.Index(fields=["assigned_department", "assigned_sub_department"]),
        ]

    def __str__(self):
        return self.get_full_name() or self.username
