"""
Race tests for transfer decisions.

Two workers decide the same pending transfer at the same time; exactly
one wins and the other is told the transfer was already decided.  Runs
on every backend: PostgreSQL serialises the workers on the complaint row
lock, SQLite on the database write lock taken at BEGIN.
"""

from __future__ import annotations

import threading

from django.db import connection
from django.test import TransactionTestCase

from complaints.models import Complaint, ComplaintTransfer, TransferStatus
from complaints.services import CustodyTransferService
from core.domain.exceptions import PendingTransferExists, StaleState

from .base import CustodyTestData


class TestConcurrentDecisions(CustodyTestData, TransactionTestCase):

    def setUp(self):
        # TransactionTestCase flushes tables between tests and never calls
        # setUpTestData on its own.
        self.setUpTestData()
        self.transfer = CustodyTransferService.initiate_transfer(
            self.complaint.pk,
            self.water_officer,
            to_department_id=self.power.pk,
            to_sub_department_id=self.power_grid.pk,
            reason="wrong_department",
        )

    def _race(self, *calls):
        """Run ``calls`` in parallel threads; return (results, errors)."""
        barrier = threading.Barrier(len(calls))
        results, errors = [], []

        def worker(fn):
            try:
                barrier.wait()
                results.append(fn())
            except Exception as exc:  # collected for assertions
                errors.append(exc)
            finally:
                connection.close()

        threads = [threading.Thread(target=worker, args=(fn,)) for fn in calls]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)
        return results, errors

    def test_concurrent_accepts_yield_one_success(self):
        results, errors = self._race(
            lambda: CustodyTransferService.accept_transfer(self.transfer.pk, self.power_officer),
            lambda: CustodyTransferService.accept_transfer(self.transfer.pk, self.power_admin),
        )

        self.assertEqual(len(results), 1)
        self.assertEqual(len(errors), 1)
        self.assertIsInstance(errors[0], StaleState)

        complaint = Complaint.objects.get(pk=self.complaint.pk)
        self.assertEqual(complaint.owner_sub_department_id, self.power_grid.pk)

    def test_concurrent_accept_and_reject_yield_one_success(self):
        results, errors = self._race(
            lambda: CustodyTransferService.accept_transfer(self.transfer.pk, self.power_officer),
            lambda: CustodyTransferService.reject_transfer(
                self.transfer.pk, self.power_admin, "Conflicting decision from admin.",
            ),
        )

        self.assertEqual(len(results), 1)
        self.assertEqual(len(errors), 1)
        self.assertIsInstance(errors[0], StaleState)

        transfer = ComplaintTransfer.objects.get(pk=self.transfer.pk)
        complaint = Complaint.objects.get(pk=self.complaint.pk)
        if transfer.status == TransferStatus.ACCEPTED:
            self.assertEqual(complaint.owner_department_id, self.power.pk)
        else:
            self.assertEqual(transfer.status, TransferStatus.REJECTED)
            self.assertEqual(complaint.owner_department_id, self.water.pk)

    def test_concurrent_initiates_leave_one_pending_row(self):
        CustodyTransferService.reject_transfer(self.transfer.pk, self.power_officer, "Start over from scratch.")

        results, errors = self._race(
            lambda: CustodyTransferService.initiate_transfer(
                self.complaint.pk,
                self.water_officer,
                to_department_id=self.power.pk,
                to_sub_department_id=self.power_grid.pk,
                reason="escalation",
            ),
            lambda: CustodyTransferService.initiate_transfer(
                self.complaint.pk,
                self.water_admin,
                to_department_id=self.water.pk,
                to_sub_department_id=self.water_billing.pk,
                reason="clarification",
            ),
        )

        self.assertEqual(len(results), 1)
        self.assertEqual(len(errors), 1)
        self.assertIsInstance(errors[0], PendingTransferExists)
        self.assertEqual(
            ComplaintTransfer.objects.filter(
                complaint_id=self.complaint.pk,
                status=TransferStatus.PENDING,
            ).count(),
            1,
        )
