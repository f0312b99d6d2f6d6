"""
Root conftest.py — shared fixtures for the entire test suite.

Provides:
  - ``api_client`` fixture returning a DRF ``APIClient``.
  - ``create_user`` factory fixture for creating test users.
  - ``create_unit`` factory fixture for departments / sub-departments.
  - ``auth_header`` fixture for authenticated requests (JWT).
"""

from __future__ import annotations

import pytest
from rest_framework.test import APIClient


@pytest.fixture()
def api_client() -> APIClient:
    """Unauthenticated DRF test client."""
    return APIClient()


@pytest.fixture()
def create_unit(db):
    """
    Factory fixture that returns a ``(department, sub_department)`` pair.

    Usage::

        def test_something(create_unit):
            water, water_ops = create_unit("WTR", "OPS")
            _, water_billing = create_unit("WTR", "BIL")   # same department
    """
    from departments.models import Department, SubDepartment

    def _factory(dept_code: str, sub_code: str | None = None, **sub_kwargs):
        department, _ = Department.objects.get_or_create(
            code=dept_code,
            defaults={"name": f"Department {dept_code}"},
        )
        if sub_code is None:
            return department, None
        sub_department, _ = SubDepartment.objects.get_or_create(
            department=department,
            code=sub_code,
            defaults={"name": f"{dept_code} {sub_code}", **sub_kwargs},
        )
        return department, sub_department

    return _factory


@pytest.fixture()
def create_user(db):
    """
    Factory fixture that creates a user with sensible defaults.

    Usage::

        def test_something(create_user):
            user = create_user(username="alice")
            # or a staff member placed in a unit:
            officer = create_user(
                username="bob",
                access_level=AccessLevel.OFFICER,
                department=water,
                sub_department=water_ops,
            )
    """
    from accounts.models import AccessLevel, User

    _counter = 0

    def _factory(
        *,
        username: str | None = None,
        password: str = "TestPass123!",
        email: str | None = None,
        officer_id: str | None = None,
        access_level: str = AccessLevel.PUBLIC,
        department=None,
        sub_department=None,
        is_active: bool = True,
        **kwargs,
    ) -> User:
        nonlocal _counter
        _counter += 1
        if username is None:
            username = f"testuser{_counter}"
        if email is None:
            email = f"{username}@test.local"
        if officer_id is None and access_level != AccessLevel.PUBLIC:
            officer_id = f"OFF{_counter:05d}"

        return User.objects.create_user(
            username=username,
            password=password,
            email=email,
            officer_id=officer_id,
            access_level=access_level,
            assigned_department=department,
            assigned_sub_department=sub_department,
            is_active=is_active,
            **kwargs,
        )

    return _factory


@pytest.fixture()
def auth_header(create_user, api_client):
    """
    Returns a helper function that creates a user and returns an
    ``Authorization`` header dict with a valid JWT access token.

    Usage::

        def test_protected(auth_header, api_client):
            header = auth_header(username="alice")
            api_client.credentials(HTTP_AUTHORIZATION=header["Authorization"])
            resp = api_client.get("/api/accounts/me/")
            assert resp.status_code != 401

    The returned dict looks like::

        {"Authorization": "Bearer eyJ..."}
    """
    from rest_framework_simplejwt.tokens import AccessToken

    def _make(
        *,
        username: str | None = None,
        **user_kwargs,
    ) -> dict[str, str]:
        user = create_user(username=username, **user_kwargs)
        token = AccessToken.for_user(user)
        return {"Authorization": f"Bearer {token}"}

    return _make
