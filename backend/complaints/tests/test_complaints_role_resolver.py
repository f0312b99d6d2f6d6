"""
Unit tests for ``ComplaintRoleResolver``.

The resolver is a pure function of the caller's position, the complaint's
custody and the pending transfer, so these tests build unsaved model
instances and never touch the database.
"""

from __future__ import annotations

import pytest

from accounts.models import AccessLevel
from accounts.services import CallerUnit
from complaints.models import Complaint, ComplaintTransfer
from complaints.services import ComplaintRoleResolver
from core.domain.exceptions import PermissionDenied

WATER, WATER_OPS, WATER_BILLING = 1, 11, 12
POWER, POWER_GRID = 2, 21


def _complaint(department=WATER, sub_department=WATER_OPS) -> Complaint:
    return Complaint(
        pk=100,
        owner_department_id=department,
        owner_sub_department_id=sub_department,
    )


def _pending(to_department=POWER, to_sub_department=POWER_GRID) -> ComplaintTransfer:
    return ComplaintTransfer(
        pk=7,
        complaint_id=100,
        from_department_id=WATER,
        from_sub_department_id=WATER_OPS,
        to_department_id=to_department,
        to_sub_department_id=to_sub_department,
    )


def _officer(department, sub_department) -> CallerUnit:
    return CallerUnit(AccessLevel.OFFICER, department, sub_department, user_id=1)


def _admin(department) -> CallerUnit:
    return CallerUnit(AccessLevel.ADMIN, department, None, user_id=2)


SUPER = CallerUnit(AccessLevel.SUPER_ADMIN, user_id=3)
CITIZEN = CallerUnit(AccessLevel.PUBLIC, user_id=4)


class TestOwnership:

    def test_officer_of_custodian_unit_owns_and_may_act(self):
        ctx = ComplaintRoleResolver.resolve(_officer(WATER, WATER_OPS), _complaint(), None)

        assert ctx.is_current_owner
        assert ctx.can_initiate_transfer
        assert ctx.can_update_status
        assert not ctx.can_accept_or_reject
        assert not ctx.has_pending_transfer
        assert ctx.pending_transfer_id is None

    def test_officer_of_sibling_unit_is_not_owner(self):
        ctx = ComplaintRoleResolver.resolve(_officer(WATER, WATER_BILLING), _complaint(), None)

        assert not ctx.is_current_owner
        assert not ctx.can_initiate_transfer
        assert not ctx.can_update_status

    def test_admin_owns_every_unit_of_their_department(self):
        ctx = ComplaintRoleResolver.resolve(_admin(WATER), _complaint(), None)
        assert ctx.is_current_owner

        other = ComplaintRoleResolver.resolve(_admin(POWER), _complaint(), None)
        assert not other.is_current_owner

    def test_department_level_custody_matches_admin_but_not_officer(self):
        complaint = _complaint(sub_department=None)

        assert ComplaintRoleResolver.resolve(_admin(WATER), complaint, None).is_current_owner
        assert not ComplaintRoleResolver.resolve(
            _officer(WATER, WATER_OPS), complaint, None,
        ).is_current_owner

    def test_super_admin_owns_everything(self):
        ctx = ComplaintRoleResolver.resolve(SUPER, _complaint(POWER, POWER_GRID), None)

        assert ctx.is_current_owner
        assert ctx.can_update_status

    def test_citizen_has_no_capabilities(self):
        ctx = ComplaintRoleResolver.resolve(CITIZEN, _complaint(), None)

        assert ctx.as_dict() == {
            "is_current_owner": False,
            "is_source": False,
            "is_destination": False,
            "has_pending_transfer": False,
            "can_initiate_transfer": False,
            "can_accept_or_reject": False,
            "can_update_status": False,
            "pending_transfer_id": None,
        }


class TestPendingTransfer:

    def test_pending_blocks_owner_from_initiating_and_updating(self):
        ctx = ComplaintRoleResolver.resolve(_officer(WATER, WATER_OPS), _complaint(), _pending())

        assert ctx.is_current_owner
        assert ctx.is_source
        assert ctx.has_pending_transfer
        assert ctx.pending_transfer_id == 7
        assert not ctx.can_initiate_transfer
        assert not ctx.can_update_status
        assert not ctx.can_accept_or_reject

    def test_destination_officer_may_decide(self):
        ctx = ComplaintRoleResolver.resolve(_officer(POWER, POWER_GRID), _complaint(), _pending())

        assert ctx.is_destination
        assert ctx.can_accept_or_reject
        assert not ctx.is_current_owner
        assert not ctx.is_source

    def test_destination_department_admin_may_decide(self):
        ctx = ComplaintRoleResolver.resolve(_admin(POWER), _complaint(), _pending())

        assert ctx.is_destination
        assert ctx.can_accept_or_reject

    def test_super_admin_may_decide_any_pending_transfer(self):
        ctx = ComplaintRoleResolver.resolve(SUPER, _complaint(), _pending())

        assert ctx.can_accept_or_reject
        assert not ctx.can_initiate_transfer

    @pytest.mark.parametrize("caller", [
        _officer(WATER, WATER_BILLING),
        _officer(POWER, 99),
        _admin(WATER),
        CITIZEN,
    ])
    def test_non_destination_callers_may_not_decide(self, caller):
        ctx = ComplaintRoleResolver.resolve(caller, _complaint(), _pending())

        assert not ctx.can_accept_or_reject

    def test_internal_transfer_destination_inside_same_department(self):
        pending = _pending(to_department=WATER, to_sub_department=WATER_BILLING)

        billing = ComplaintRoleResolver.resolve(_officer(WATER, WATER_BILLING), _complaint(), pending)
        assert billing.is_destination
        assert billing.can_accept_or_reject
        assert not billing.is_current_owner

        admin = ComplaintRoleResolver.resolve(_admin(WATER), _complaint(), pending)
        assert admin.is_source and admin.is_destination
        assert admin.can_accept_or_reject


class TestUnassignedCaller:

    @pytest.mark.parametrize("caller", [
        CallerUnit(AccessLevel.OFFICER, None, None, user_id=9),
        CallerUnit(AccessLevel.OFFICER, WATER, None, user_id=9),
        CallerUnit(AccessLevel.ADMIN, None, None, user_id=9),
    ])
    def test_lenient_resolution_defaults_to_false(self, caller):
        ctx = ComplaintRoleResolver.resolve(caller, _complaint(), _pending())

        assert not any([
            ctx.is_current_owner,
            ctx.is_source,
            ctx.is_destination,
            ctx.can_initiate_transfer,
            ctx.can_accept_or_reject,
            ctx.can_update_status,
        ])
        assert ctx.has_pending_transfer

    def test_strict_resolution_raises(self):
        caller = CallerUnit(AccessLevel.OFFICER, WATER, None, user_id=9)

        with pytest.raises(PermissionDenied):
            ComplaintRoleResolver.resolve(caller, _complaint(), None, strict=True)
