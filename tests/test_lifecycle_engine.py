"""
Tests for the transition tables: applications, background checks, leases, inspections,
maintenance and payments.
Run from the repo root: python -m pytest tests/test_lifecycle_engine.py -v
"""
import unittest
from datetime import date

from models.enums import (
    ApplicationStatus,
    BackgroundCheckStatus,
    InspectionStatus,
    LeaseStatus,
    MaintenanceStatus,
    PaymentStatus,
)
from services import lifecycle_engine as engine
from services.errors import InvalidTransition, PreconditionFailed, ValidationFailed

TODAY = date(2025, 6, 1)
CTX = engine.LeaseContext(today=TODAY, start_date=date(2025, 1, 1), end_date=date(2025, 12, 31))


class TestApplicationTransitions(unittest.TestCase):
    def test_pending_actions(self):
        A = engine.ApplicationAction
        self.assertEqual(engine.transition_application(ApplicationStatus.PENDING, A.APPROVE), ApplicationStatus.APPROVED)
        self.assertEqual(engine.transition_application(ApplicationStatus.PENDING, A.REJECT), ApplicationStatus.REJECTED)
        self.assertEqual(engine.transition_application("PENDING", "withdraw"), ApplicationStatus.WITHDRAWN)

    def test_terminal_statuses_reject_every_action(self):
        """Only PENDING applications can change status."""
        for status in (ApplicationStatus.APPROVED, ApplicationStatus.REJECTED, ApplicationStatus.WITHDRAWN):
            for action in engine.ApplicationAction:
                with self.assertRaises(InvalidTransition) as ctx:
                    engine.transition_application(status, action)
                self.assertEqual(ctx.exception.from_status, status.value)
                self.assertEqual(ctx.exception.attempted, action.value)

    def test_landlord_notes_append(self):
        self.assertEqual(engine.append_landlord_note(None, " good refs "), "good refs")
        self.assertEqual(engine.append_landlord_note("a", "b"), "a\nb")
        self.assertEqual(engine.append_landlord_note("a", "  "), "a")


class TestBackgroundCheckTransitions(unittest.TestCase):
    def test_start_and_complete(self):
        started = engine.transition_background_check(None, BackgroundCheckStatus.PENDING)
        self.assertEqual(started, BackgroundCheckStatus.PENDING)
        self.assertEqual(
            engine.transition_background_check(started, BackgroundCheckStatus.COMPLETED),
            BackgroundCheckStatus.COMPLETED,
        )

    def test_restart_after_failure(self):
        self.assertEqual(
            engine.transition_background_check(BackgroundCheckStatus.FAILED, BackgroundCheckStatus.PENDING),
            BackgroundCheckStatus.PENDING,
        )

    def test_cannot_start_twice(self):
        with self.assertRaises(InvalidTransition):
            engine.transition_background_check(BackgroundCheckStatus.PENDING, BackgroundCheckStatus.PENDING)

    def test_result_without_check_in_progress(self):
        with self.assertRaises(InvalidTransition):
            engine.transition_background_check(None, BackgroundCheckStatus.COMPLETED)
        with self.assertRaises(InvalidTransition):
            engine.transition_background_check(BackgroundCheckStatus.COMPLETED, BackgroundCheckStatus.FAILED)


class TestLeaseTransitions(unittest.TestCase):
    def test_happy_path(self):
        status = engine.transition_lease(LeaseStatus.DRAFT, engine.SendForSignature(), CTX)
        self.assertEqual(status, LeaseStatus.PENDING_SIGNATURE)
        status = engine.transition_lease(status, engine.Sign(), CTX)
        self.assertEqual(status, LeaseStatus.ACTIVE)

    def test_recall_to_draft(self):
        self.assertEqual(
            engine.transition_lease(LeaseStatus.PENDING_SIGNATURE, engine.RecallToDraft(), CTX), LeaseStatus.DRAFT
        )

    def test_draft_cannot_be_terminated(self):
        with self.assertRaises(InvalidTransition) as ctx:
            engine.transition_lease(LeaseStatus.DRAFT, engine.Terminate(termination_date=TODAY), CTX)
        self.assertIn("cannot terminate a DRAFT lease", str(ctx.exception))

    def test_terminate_allowed_statuses(self):
        for status in (LeaseStatus.ACTIVE, LeaseStatus.PENDING_SIGNATURE):
            self.assertEqual(
                engine.transition_lease(status, engine.Terminate(termination_date=TODAY), CTX), LeaseStatus.TERMINATED
            )
        for status in (LeaseStatus.EXPIRED, LeaseStatus.TERMINATED):
            with self.assertRaises(InvalidTransition):
                engine.transition_lease(status, engine.Terminate(termination_date=TODAY), CTX)

    def test_termination_date_bounds(self):
        with self.assertRaises(PreconditionFailed):
            engine.transition_lease(LeaseStatus.ACTIVE, engine.Terminate(termination_date=date(2025, 5, 31)), CTX)
        with self.assertRaises(PreconditionFailed):
            engine.transition_lease(LeaseStatus.ACTIVE, engine.Terminate(termination_date=date(2026, 1, 1)), CTX)
        self.assertEqual(
            engine.transition_lease(LeaseStatus.ACTIVE, engine.Terminate(termination_date=CTX.end_date), CTX),
            LeaseStatus.TERMINATED,
        )

    def test_expire_requires_end_date_passed(self):
        with self.assertRaises(PreconditionFailed):
            engine.transition_lease(LeaseStatus.ACTIVE, engine.Expire(), CTX)
        late = engine.LeaseContext(today=date(2026, 1, 1), start_date=CTX.start_date, end_date=CTX.end_date)
        self.assertEqual(engine.transition_lease(LeaseStatus.ACTIVE, engine.Expire(), late), LeaseStatus.EXPIRED)

    def test_renew_only_active_and_strictly_later(self):
        self.assertEqual(
            engine.transition_lease(LeaseStatus.ACTIVE, engine.Renew(new_end_date=date(2026, 1, 1)), CTX),
            LeaseStatus.ACTIVE,
        )
        with self.assertRaises(PreconditionFailed):
            engine.transition_lease(LeaseStatus.ACTIVE, engine.Renew(new_end_date=CTX.end_date), CTX)
        with self.assertRaises(InvalidTransition):
            engine.transition_lease(LeaseStatus.DRAFT, engine.Renew(new_end_date=date(2026, 12, 31)), CTX)

    def test_renewal_minimum_extension(self):
        engine.check_renewal(date(2025, 12, 31), date(2026, 1, 31), min_extension_months=1)
        with self.assertRaises(PreconditionFailed):
            engine.check_renewal(date(2025, 12, 31), date(2026, 1, 30), min_extension_months=1)

    def test_add_months_clamps_day(self):
        self.assertEqual(engine.add_months(date(2025, 1, 31), 1), date(2025, 2, 28))
        self.assertEqual(engine.add_months(date(2025, 12, 15), 2), date(2026, 2, 15))

    def test_status_update_action(self):
        self.assertIsInstance(engine.status_update_action(LeaseStatus.DRAFT, LeaseStatus.PENDING_SIGNATURE), engine.SendForSignature)
        self.assertIsInstance(engine.status_update_action(LeaseStatus.PENDING_SIGNATURE, LeaseStatus.ACTIVE), engine.Sign)
        with self.assertRaises(InvalidTransition):
            engine.status_update_action(LeaseStatus.DRAFT, LeaseStatus.ACTIVE)
        with self.assertRaises(ValidationFailed):
            engine.status_update_action(LeaseStatus.ACTIVE, LeaseStatus.TERMINATED)

    def test_closed_leases_have_no_actions(self):
        self.assertEqual(engine.allowed_lease_actions(LeaseStatus.EXPIRED), [])
        self.assertEqual(engine.allowed_lease_actions(LeaseStatus.TERMINATED), [])
        self.assertIn("terminate", engine.allowed_lease_actions(LeaseStatus.ACTIVE))

    def test_create_lease_status(self):
        self.assertEqual(engine.create_lease_status(ApplicationStatus.APPROVED, False), LeaseStatus.DRAFT)
        with self.assertRaises(PreconditionFailed):
            engine.create_lease_status(ApplicationStatus.PENDING, False)
        with self.assertRaises(PreconditionFailed):
            engine.create_lease_status(ApplicationStatus.APPROVED, True)


class TestSimpleStatusTables(unittest.TestCase):
    def test_inspection(self):
        t = engine.INSPECTION_TRANSITIONS
        self.assertEqual(
            engine.transition_status("Inspection", t, InspectionStatus.SCHEDULED, InspectionStatus.IN_PROGRESS),
            InspectionStatus.IN_PROGRESS,
        )
        with self.assertRaises(InvalidTransition):
            engine.transition_status("Inspection", t, InspectionStatus.SCHEDULED, InspectionStatus.COMPLETED)

    def test_maintenance(self):
        t = engine.MAINTENANCE_TRANSITIONS
        with self.assertRaises(InvalidTransition):
            engine.transition_status("MaintenanceRequest", t, MaintenanceStatus.COMPLETED, MaintenanceStatus.OPEN)

    def test_payment(self):
        t = engine.PAYMENT_TRANSITIONS
        self.assertEqual(
            engine.transition_status("Payment", t, PaymentStatus.COMPLETED, PaymentStatus.REFUNDED),
            PaymentStatus.REFUNDED,
        )
        with self.assertRaises(InvalidTransition):
            engine.transition_status("Payment", t, PaymentStatus.FAILED, PaymentStatus.COMPLETED)


if __name__ == "__main__":
    unittest.main()
