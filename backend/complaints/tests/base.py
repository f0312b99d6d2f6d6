"""
Shared directory and staff layout for the complaints test modules.

Layout::

    WTR (Water)        OPS, BIL        ── connected (both) ──   ELC (Electricity)  GRD
    HLT (Health)       HOS             ── not connected to anything

A complaint filed by ``citizen`` starts out held by WTR/OPS.
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.urls import reverse
from rest_framework.test import APIClient

from accounts.models import AccessLevel
from complaints.services import ComplaintIntakeService
from departments.models import ConnectionType, Department, DepartmentConnection, SubDepartment

User = get_user_model()

PASSWORD = "Custody!Pass42"


class CustodyTestData:
    """Mixin for ``TestCase`` subclasses; provides ``setUpTestData``."""

    @classmethod
    def setUpTestData(cls):
        cls.water = Department.objects.create(name="Water Supply", code="WTR")
        cls.water_ops = SubDepartment.objects.create(department=cls.water, name="Operations", code="OPS")
        cls.water_billing = SubDepartment.objects.create(department=cls.water, name="Billing", code="BIL")

        cls.power = Department.objects.create(name="Electricity", code="ELC")
        cls.power_grid = SubDepartment.objects.create(department=cls.power, name="Grid", code="GRD")

        cls.health = Department.objects.create(name="Health", code="HLT")
        cls.health_hospital = SubDepartment.objects.create(department=cls.health, name="Hospitals", code="HOS")

        cls.connection = DepartmentConnection.objects.create(
            source_department=cls.water,
            target_department=cls.power,
            connection_type=ConnectionType.BOTH,
        )

        cls.citizen = cls._make_user("citizen", AccessLevel.PUBLIC)
        cls.water_officer = cls._make_user(
            "water_ops_officer", AccessLevel.OFFICER, cls.water, cls.water_ops,
        )
        cls.billing_officer = cls._make_user(
            "water_billing_officer", AccessLevel.OFFICER, cls.water, cls.water_billing,
        )
        cls.water_admin = cls._make_user("water_admin", AccessLevel.ADMIN, cls.water)
        cls.power_officer = cls._make_user(
            "power_grid_officer", AccessLevel.OFFICER, cls.power, cls.power_grid,
        )
        cls.power_admin = cls._make_user("power_admin", AccessLevel.ADMIN, cls.power)
        cls.super_admin = cls._make_user("super_admin", AccessLevel.SUPER_ADMIN)
        cls.unassigned_officer = cls._make_user("unassigned_officer", AccessLevel.OFFICER)

        cls.complaint = ComplaintIntakeService.create_complaint(
            title="No water supply since Monday",
            description="Ward 12 has had no supply for three days.",
            department=cls.water,
            sub_department=cls.water_ops,
            citizen=cls.citizen,
        )

    @classmethod
    def _make_user(cls, username, access_level, department=None, sub_department=None):
        return User.objects.create_user(
            username=username,
            password=PASSWORD,
            email=f"{username}@example.com",
            first_name=username.split("_")[0].title(),
            last_name="Tester",
            officer_id=None if access_level == AccessLevel.PUBLIC else f"ID-{username}",
            access_level=access_level,
            assigned_department=department,
            assigned_sub_department=sub_department,
        )


class CustodyAPITestMixin(CustodyTestData):
    """Adds a real-login helper and URL shortcuts on top of the data."""

    def setUp(self):
        self.client = APIClient()

    def login_as(self, user) -> str:
        """Authenticate via the real login endpoint and set the Bearer token."""
        resp = self.client.post(
            reverse("accounts:login"),
            {"identifier": user.username, "password": PASSWORD},
            format="json",
        )
        self.assertEqual(resp.status_code, 200, msg=f"Login failed: {resp.data}")
        token = resp.data["access"]
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
        return token

    def transfers_url(self, complaint=None):
        return reverse("complaint-transfers", kwargs={"pk": (complaint or self.complaint).pk})

    def initiate(self, to_sub_department, reason="wrong_department", notes="", complaint=None):
        return self.client.post(
            self.transfers_url(complaint),
            {
                "to_department": to_sub_department.department_id,
                "to_sub_department": to_sub_department.pk,
                "reason": reason,
                "notes": notes,
            },
            format="json",
        )

    def accept(self, transfer_id):
        return self.client.post(reverse("transfer-accept", kwargs={"pk": transfer_id}), format="json")

    def reject(self, transfer_id, reason="insufficient grounds"):
        return self.client.post(
            reverse("transfer-reject", kwargs={"pk": transfer_id}),
            {"rejection_reason": reason},
            format="json",
        )

    def change_status(self, new_status, note="", complaint=None):
        return self.client.post(
            reverse("complaint-update-status", kwargs={"pk": (complaint or self.complaint).pk}),
            {"status": new_status, "note": note},
            format="json",
        )
