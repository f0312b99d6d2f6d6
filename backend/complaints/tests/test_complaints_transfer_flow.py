"""
Integration tests for complaint custody transfers through the real endpoints.

Covers the initiate → accept / reject flows, the status gate after a
custody change, and the error codes a client sees when it loses a race
or picks an invalid destination.
"""

from __future__ import annotations

from django.test import TestCase
from django.urls import reverse
from rest_framework import status

from complaints.models import (
    Complaint,
    ComplaintCommunication,
    ComplaintStatus,
    ComplaintTransfer,
    MessageType,
    TransferStatus,
    TransferType,
)
from core.models import Notification

from .base import CustodyAPITestMixin


class TestTransferInitiate(CustodyAPITestMixin, TestCase):

    def test_owner_initiates_transfer_to_connected_unit(self):
        self.login_as(self.water_officer)
        resp = self.initiate(self.power_grid, reason="wrong_department", notes="")

        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, msg=resp.data)
        self.assertEqual(resp.data["status"], TransferStatus.PENDING)
        self.assertEqual(resp.data["from_department"]["id"], self.water.pk)
        self.assertEqual(resp.data["from_sub_department"]["id"], self.water_ops.pk)
        self.assertEqual(resp.data["to_department"]["id"], self.power.pk)
        self.assertEqual(resp.data["to_sub_department"]["id"], self.power_grid.pk)
        self.assertEqual(resp.data["transfer_type"], TransferType.INTER_DEPARTMENT)

        ledger = ComplaintTransfer.objects.filter(complaint=self.complaint)
        self.assertEqual(ledger.count(), 1)
        self.assertEqual(ledger.get().status, TransferStatus.PENDING)

        self.complaint.refresh_from_db()
        self.assertEqual(self.complaint.owner_department_id, self.water.pk)
        self.assertEqual(self.complaint.owner_sub_department_id, self.water_ops.pk)

    def test_second_initiate_while_pending_is_conflict(self):
        self.login_as(self.water_officer)
        first = self.initiate(self.power_grid)
        self.assertEqual(first.status_code, status.HTTP_201_CREATED)

        resp = self.initiate(self.water_billing, reason="clarification")

        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(resp.data["code"], "transfer_pending")
        self.assertEqual(resp.data["transfer_id"], first.data["id"])
        self.assertEqual(ComplaintTransfer.objects.filter(complaint=self.complaint).count(), 1)

    def test_unconnected_destination_is_rejected_without_ledger_row(self):
        self.login_as(self.water_officer)
        resp = self.initiate(self.health_hospital)

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["code"], "units_not_connected")
        self.assertFalse(ComplaintTransfer.objects.filter(complaint=self.complaint).exists())

    def test_deactivated_connection_blocks_transfer(self):
        self.connection.is_active = False
        self.connection.save(update_fields=["is_active"])
        self.login_as(self.water_officer)

        resp = self.initiate(self.power_grid)

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["code"], "units_not_connected")

    def test_same_department_transfer_needs_no_connection(self):
        self.login_as(self.water_officer)
        resp = self.initiate(self.water_billing, reason="specialized_handling")

        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, msg=resp.data)
        self.assertEqual(resp.data["transfer_type"], TransferType.INTERNAL)

    def test_transfer_to_current_unit_is_same_unit_error(self):
        self.login_as(self.water_officer)
        resp = self.initiate(self.water_ops)

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["code"], "same_unit")

    def test_sub_department_outside_target_department_is_validation_error(self):
        self.login_as(self.water_officer)
        resp = self.client.post(
            self.transfers_url(),
            {
                "to_department": self.power.pk,
                "to_sub_department": self.health_hospital.pk,
                "reason": "wrong_department",
            },
            format="json",
        )

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["code"], "validation_failed")
        self.assertEqual(resp.data["field"], "to_sub_department")

    def test_inactive_destination_is_validation_error(self):
        self.power_grid.is_active = False
        self.power_grid.save(update_fields=["is_active"])
        self.login_as(self.water_officer)

        resp = self.initiate(self.power_grid)

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["code"], "validation_failed")

    def test_other_reason_requires_twenty_characters_of_notes(self):
        self.login_as(self.water_officer)

        short = self.initiate(self.power_grid, reason="other", notes="too short")
        self.assertEqual(short.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(short.data["field"], "notes")

        padded = self.initiate(self.power_grid, reason="other", notes="   short   " + " " * 20)
        self.assertEqual(padded.status_code, status.HTTP_400_BAD_REQUEST)

        ok = self.initiate(
            self.power_grid,
            reason="other",
            notes="Pipeline damage caused by a cable fault.",
        )
        self.assertEqual(ok.status_code, status.HTTP_201_CREATED, msg=ok.data)

    def test_non_owner_cannot_initiate(self):
        self.login_as(self.power_officer)
        resp = self.initiate(self.water_billing)
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(resp.data["code"], "permission_denied")

    def test_officer_of_sibling_unit_cannot_initiate(self):
        self.login_as(self.billing_officer)
        resp = self.initiate(self.power_grid)

        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_department_admin_can_initiate_for_any_unit_of_department(self):
        self.login_as(self.water_admin)
        resp = self.initiate(self.power_grid)

        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, msg=resp.data)
        self.assertEqual(resp.data["initiated_by_level"], "admin")

    def test_unassigned_officer_is_forbidden(self):
        self.login_as(self.unassigned_officer)
        resp = self.initiate(self.power_grid)

        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_closed_complaint_cannot_be_transferred(self):
        Complaint.objects.filter(pk=self.complaint.pk).update(status=ComplaintStatus.RESOLVED)
        self.login_as(self.water_officer)

        resp = self.initiate(self.power_grid)

        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(resp.data["code"], "terminal_state")

    def test_unknown_reason_is_rejected_by_serializer(self):
        self.login_as(self.water_officer)
        resp = self.initiate(self.power_grid, reason="bored")

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("reason", resp.data)

    def test_initiate_posts_thread_message_and_notifies_destination(self):
        self.login_as(self.water_officer)
        with self.captureOnCommitCallbacks(execute=True):
            resp = self.initiate(self.power_grid, notes="Transformer outage, not a pipe fault.")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)

        message = ComplaintCommunication.objects.get(complaint=self.complaint)
        self.assertEqual(message.message_type, MessageType.TRANSFER)
        self.assertEqual(list(message.tagged_departments.all()), [self.power])
        self.assertIn("Transformer outage", message.message)

        recipients = set(
            Notification.objects.filter(event_type="transfer_requested")
            .values_list("recipient__username", flat=True)
        )
        self.assertEqual(recipients, {"power_grid_officer", "power_admin"})

    def test_connection_statistics_are_recorded_after_commit(self):
        self.login_as(self.water_officer)
        with self.captureOnCommitCallbacks(execute=False) as callbacks:
            self.initiate(self.power_grid)

        self.connection.refresh_from_db()
        self.assertEqual(self.connection.transfer_count, 0)

        for callback in callbacks:
            callback()

        self.connection.refresh_from_db()
        self.assertEqual(self.connection.transfer_count, 1)
        self.assertIsNotNone(self.connection.last_transfer_at)


class TestTransferDecisions(CustodyAPITestMixin, TestCase):

    def setUp(self):
        super().setUp()
        self.login_as(self.water_officer)
        resp = self.initiate(self.power_grid)
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, msg=resp.data)
        self.transfer_id = resp.data["id"]

    def test_destination_accepts_and_custody_moves(self):
        self.login_as(self.power_officer)
        resp = self.accept(self.transfer_id)

        self.assertEqual(resp.status_code, status.HTTP_200_OK, msg=resp.data)
        self.assertEqual(resp.data["owner_department"]["id"], self.power.pk)
        self.assertEqual(resp.data["owner_sub_department"]["id"], self.power_grid.pk)

        transfer = ComplaintTransfer.objects.get(pk=self.transfer_id)
        self.assertEqual(transfer.status, TransferStatus.ACCEPTED)
        self.assertEqual(transfer.resolved_by, self.power_officer)
        self.assertIsNotNone(transfer.resolved_at)

    def test_status_gate_follows_custody_after_accept(self):
        self.login_as(self.power_officer)
        self.assertEqual(self.accept(self.transfer_id).status_code, status.HTTP_200_OK)

        self.login_as(self.water_officer)
        former = self.change_status(ComplaintStatus.IN_PROGRESS)
        self.assertEqual(former.status_code, status.HTTP_403_FORBIDDEN)

        self.login_as(self.power_officer)
        current = self.change_status(ComplaintStatus.IN_PROGRESS)
        self.assertEqual(current.status_code, status.HTTP_200_OK, msg=current.data)
        self.assertEqual(current.data["status"], ComplaintStatus.IN_PROGRESS)

    def test_accept_clears_assigned_officer(self):
        Complaint.objects.filter(pk=self.complaint.pk).update(assigned_officer=self.water_officer)
        self.login_as(self.power_officer)
        self.accept(self.transfer_id)

        self.complaint.refresh_from_db()
        self.assertIsNone(self.complaint.assigned_officer_id)

    def test_source_unit_cannot_decide_its_own_transfer(self):
        resp = self.accept(self.transfer_id)

        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(
            ComplaintTransfer.objects.get(pk=self.transfer_id).status,
            TransferStatus.PENDING,
        )

    def test_destination_department_admin_may_decide(self):
        self.login_as(self.power_admin)
        resp = self.accept(self.transfer_id)

        self.assertEqual(resp.status_code, status.HTTP_200_OK, msg=resp.data)

    def test_super_admin_may_decide(self):
        self.login_as(self.super_admin)
        resp = self.reject(self.transfer_id, "Routing error, keep it in water.")

        self.assertEqual(resp.status_code, status.HTTP_200_OK, msg=resp.data)
        self.assertEqual(resp.data["status"], TransferStatus.REJECTED)

    def test_second_accept_is_stale(self):
        self.login_as(self.power_officer)
        self.assertEqual(self.accept(self.transfer_id).status_code, status.HTTP_200_OK)

        resp = self.accept(self.transfer_id)

        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(resp.data["code"], "stale_state")
        self.assertEqual(resp.data["status"], TransferStatus.ACCEPTED)
        self.assertEqual(resp.data["transfer_id"], self.transfer_id)
        self.assertIsNotNone(resp.data["resolved_at"])
        self.assertIn("already been decided", resp.data["detail"])

    def test_outsider_cannot_learn_who_decided(self):
        self.login_as(self.power_officer)
        self.assertEqual(self.accept(self.transfer_id).status_code, status.HTTP_200_OK)

        for outsider in (self.billing_officer, self.water_officer):
            self.login_as(outsider)
            resp = self.reject(self.transfer_id, "Trying to see who decided.")

            self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN, msg=outsider.username)
            self.assertEqual(resp.data["code"], "permission_denied")
            self.assertNotIn("resolved_by", resp.data)
            self.assertNotIn("resolved_at", resp.data)

    def test_reject_after_accept_is_stale(self):
        self.login_as(self.power_officer)
        self.accept(self.transfer_id)

        resp = self.reject(self.transfer_id, "changed my mind entirely")

        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(resp.data["code"], "stale_state")
        self.complaint.refresh_from_db()
        self.assertEqual(self.complaint.owner_department_id, self.power.pk)

    def test_reject_keeps_custody_and_reenables_initiate(self):
        self.login_as(self.power_officer)
        resp = self.reject(self.transfer_id, "insufficient grounds")

        self.assertEqual(resp.status_code, status.HTTP_200_OK, msg=resp.data)
        self.assertEqual(resp.data["status"], TransferStatus.REJECTED)
        self.assertEqual(resp.data["rejection_reason"], "insufficient grounds")

        self.complaint.refresh_from_db()
        self.assertEqual(self.complaint.owner_department_id, self.water.pk)
        self.assertEqual(self.complaint.owner_sub_department_id, self.water_ops.pk)

        self.login_as(self.water_officer)
        ctx = self.client.get(reverse("complaint-role-context", kwargs={"pk": self.complaint.pk}))
        self.assertTrue(ctx.data["can_initiate_transfer"])
        self.assertFalse(ctx.data["has_pending_transfer"])

        again = self.initiate(self.water_billing, reason="clarification")
        self.assertEqual(again.status_code, status.HTTP_201_CREATED, msg=again.data)
        self.assertEqual(ComplaintTransfer.objects.filter(complaint=self.complaint).count(), 2)

    def test_reject_requires_meaningful_reason(self):
        self.login_as(self.power_officer)

        for bad in ("", "   ", "nope"):
            resp = self.reject(self.transfer_id, bad)
            self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST, msg=bad)
            self.assertEqual(resp.data["field"], "rejection_reason")

        self.assertEqual(
            ComplaintTransfer.objects.get(pk=self.transfer_id).status,
            TransferStatus.PENDING,
        )

    def test_decision_notifies_initiator_and_posts_thread_message(self):
        self.login_as(self.power_officer)
        with self.captureOnCommitCallbacks(execute=True):
            self.reject(self.transfer_id, "Not an electrical issue at all.")

        notification = Notification.objects.get(event_type="transfer_rejected")
        self.assertEqual(notification.recipient, self.water_officer)
        self.assertIn("Not an electrical issue", notification.message)
        self.assertEqual(notification.payload["transfer_id"], self.transfer_id)

        messages = ComplaintCommunication.objects.filter(
            complaint=self.complaint,
            message_type=MessageType.TRANSFER,
        )
        self.assertTrue(messages.filter(message__startswith="Transfer rejected").exists())

    def test_status_change_blocked_while_pending(self):
        resp = self.change_status(ComplaintStatus.IN_PROGRESS)

        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(resp.data["code"], "transfer_pending")
        self.assertEqual(resp.data["transfer_id"], self.transfer_id)

    def test_pending_and_history_endpoints(self):
        pending = self.client.get(
            reverse("complaint-pending-transfer", kwargs={"pk": self.complaint.pk}),
        )
        self.assertEqual(pending.status_code, status.HTTP_200_OK)
        self.assertEqual(pending.data["id"], self.transfer_id)

        self.login_as(self.power_officer)
        self.accept(self.transfer_id)

        none = self.client.get(
            reverse("complaint-pending-transfer", kwargs={"pk": self.complaint.pk}),
        )
        self.assertEqual(none.status_code, status.HTTP_204_NO_CONTENT)

        history = self.client.get(self.transfers_url())
        self.assertEqual(history.status_code, status.HTTP_200_OK)
        self.assertEqual([t["id"] for t in history.data], [self.transfer_id])
        self.assertEqual(history.data[0]["status"], TransferStatus.ACCEPTED)

    def test_incoming_inbox_lists_pending_for_destination(self):
        self.login_as(self.power_officer)
        resp = self.client.get(reverse("transfer-incoming"))

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual([t["id"] for t in resp.data], [self.transfer_id])

        self.login_as(self.billing_officer)
        resp = self.client.get(reverse("transfer-incoming"))
        self.assertEqual(resp.data, [])

    def test_destination_can_see_complaint_while_pending(self):
        self.login_as(self.power_officer)
        resp = self.client.get(reverse("complaint-detail", kwargs={"pk": self.complaint.pk}))

        self.assertEqual(resp.status_code, status.HTTP_200_OK)

        ctx = self.client.get(reverse("complaint-role-context", kwargs={"pk": self.complaint.pk}))
        self.assertTrue(ctx.data["is_destination"])
        self.assertTrue(ctx.data["can_accept_or_reject"])
        self.assertFalse(ctx.data["is_current_owner"])

    def test_unknown_transfer_is_not_found(self):
        self.login_as(self.power_officer)
        resp = self.accept(999999)

        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(resp.data["code"], "not_found")
