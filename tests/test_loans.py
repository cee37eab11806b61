"""
Test suite for loans module

Tests loan application, underwriting decisions, the lifecycle state machine,
partial updates and idempotent deletion.
"""

import pytest
from decimal import Decimal
from datetime import date, timedelta

from loan_core.storage import InMemoryStorage
from loan_core.audit import AuditTrail, AuditEventType
from loan_core.errors import InvalidArgumentError, NotFoundError
from loan_core.loans import LoanManager, LoanRequest, LoanPatch, DocumentRef, UNSET
from loan_core.models import LoanStatus, LoanType
from loan_core.notifications import NotificationManager, NotificationType
from loan_core.repositories import LoanRepository, NotificationRepository, UserRepository
from loan_core.users import UserManager


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def audit_trail(storage):
    return AuditTrail(storage)


@pytest.fixture
def notification_manager(storage):
    return NotificationManager(NotificationRepository(storage))


@pytest.fixture
def loan_manager(storage, audit_trail, notification_manager):
    return LoanManager(LoanRepository(storage), UserRepository(storage), audit_trail, notification_manager)


@pytest.fixture
def borrower(storage, audit_trail):
    return UserManager(UserRepository(storage), audit_trail).register_user(
        "ravi@example.com", "pw", "Ravi Kumar"
    )


@pytest.fixture
def loan(loan_manager, borrower):
    return loan_manager.apply_for_loan(
        borrower.id,
        LoanRequest(loan_type="PERSONAL", principal="100000", interest_rate="12", tenure_months=12)
    )


def backdate(loan_manager, loan, days=30):
    """Move a loan's start date into the past"""
    loan.start_date = date.today() - timedelta(days=days)
    loan_manager.loans.save(loan)
    return loan.start_date


class TestApplyForLoan:
    """Test loan applications"""

    def test_new_loan_is_pending(self, loan, borrower):
        assert loan.status == LoanStatus.PENDING
        assert loan.loan_type == LoanType.PERSONAL
        assert loan.user_id == borrower.id
        assert loan.start_date == date.today()
        assert loan.rejection_reason is None

    def test_balance_equals_principal(self, loan):
        assert loan.principal == Decimal('100000.00')
        assert loan.outstanding_balance == loan.principal

    def test_emi_computed(self, loan):
        assert loan.emi == Decimal('8884.88')

    def test_explicit_emi_kept(self, loan_manager, borrower):
        """Test a supplied EMI wins, which also allows 0% loans"""
        loan = loan_manager.apply_for_loan(
            borrower.id,
            LoanRequest(loan_type="education", principal="1200", interest_rate="0", tenure_months=12, emi="100")
        )

        assert loan.emi == Decimal('100.00')
        assert loan.loan_type == LoanType.EDUCATION

    def test_zero_rate_without_emi_rejected(self, loan_manager, borrower):
        with pytest.raises(InvalidArgumentError):
            loan_manager.apply_for_loan(
                borrower.id,
                LoanRequest(loan_type="PERSONAL", principal="1200", interest_rate="0", tenure_months=12)
            )

    def test_out_of_range_principal_rejected(self, loan_manager, borrower):
        with pytest.raises(InvalidArgumentError):
            loan_manager.apply_for_loan(
                borrower.id,
                LoanRequest(loan_type="PERSONAL", principal="1e30", interest_rate="12",
                            tenure_months=12, emi="100")
            )
        assert loan_manager.get_all_loans() == []

    def test_document_reference_stored(self, loan_manager, borrower):
        loan = loan_manager.apply_for_loan(
            borrower.id,
            LoanRequest(
                loan_type="HOME", principal="500000", interest_rate="8.5", tenure_months=240,
                document=DocumentRef(name="salary.pdf", path="uploads/salary.pdf")
            )
        )

        assert loan.document_name == "salary.pdf"
        assert loan.document_path == "uploads/salary.pdf"

    def test_invalid_fields(self, loan_manager, borrower):
        bad_requests = [
            LoanRequest(loan_type="YACHT", principal="1000", interest_rate="10", tenure_months=12),
            LoanRequest(loan_type="CAR", principal="0", interest_rate="10", tenure_months=12),
            LoanRequest(loan_type="CAR", principal="1000", interest_rate="-1", tenure_months=12),
            LoanRequest(loan_type="CAR", principal="1000", interest_rate="10", tenure_months=0),
            LoanRequest(loan_type="CAR", principal="lots", interest_rate="10", tenure_months=12),
        ]
        for request in bad_requests:
            with pytest.raises(InvalidArgumentError):
                loan_manager.apply_for_loan(borrower.id, request)

        assert loan_manager.get_all_loans() == []

    def test_unknown_user(self, loan_manager):
        with pytest.raises(NotFoundError):
            loan_manager.apply_for_loan(
                "missing",
                LoanRequest(loan_type="CAR", principal="1000", interest_rate="10", tenure_months=12)
            )

    def test_application_audited_and_notified(self, loan, loan_manager, audit_trail, notification_manager):
        events = audit_trail.get_events_for_entity("loan", loan.id)
        assert [e.event_type for e in events] == [AuditEventType.LOAN_APPLIED]

        inbox = notification_manager.get_user_notifications(loan.user_id)
        assert [n.type for n in inbox] == [NotificationType.LOAN_APPLIED]
        assert inbox[0].message == "Your personal loan application for ₹100,000.00 has been received"

    def test_notification_uses_currency_symbol(self, storage, audit_trail, notification_manager, borrower):
        loan_manager = LoanManager(
            LoanRepository(storage), UserRepository(storage), audit_trail, notification_manager,
            currency_symbol="$"
        )
        loan = loan_manager.apply_for_loan(
            borrower.id,
            LoanRequest(loan_type="CAR", principal="2500.5", interest_rate="9", tenure_months=24)
        )
        loan_manager.decide_loan(loan.id, "approve")

        messages = [n.message for n in notification_manager.get_user_notifications(borrower.id)]
        assert "Your loan of $2,500.50 has been approved" in messages


class TestDecideLoan:
    """Test approve and reject decisions"""

    @pytest.mark.parametrize("action", ["approve", "accept", "APPROVE", " Accept "])
    def test_approve(self, loan_manager, loan, action):
        backdate(loan_manager, loan)
        decided = loan_manager.decide_loan(loan.id, action)

        assert decided.status == LoanStatus.ACTIVE
        assert decided.is_active
        assert decided.rejection_reason is None
        assert decided.start_date == date.today()
        assert loan_manager.get_loan(loan.id).status == LoanStatus.ACTIVE

    def test_reject_with_reason(self, loan_manager, loan, notification_manager):
        decided = loan_manager.decide_loan(loan.id, "Reject", reason="  Insufficient income ")

        assert decided.status == LoanStatus.REJECTED
        assert decided.rejection_reason == "  Insufficient income "
        types = {n.type for n in notification_manager.get_user_notifications(loan.user_id)}
        assert NotificationType.LOAN_REJECTED in types

    def test_reject_keeps_start_date(self, loan_manager, loan):
        started = backdate(loan_manager, loan)
        decided = loan_manager.decide_loan(loan.id, "reject")

        assert decided.start_date == started
        assert decided.rejection_reason is None

    def test_approve_after_reject_clears_reason(self, loan_manager, loan):
        loan_manager.decide_loan(loan.id, "reject", reason="Missing documents")
        decided = loan_manager.decide_loan(loan.id, "approve")

        assert decided.status == LoanStatus.ACTIVE
        assert decided.rejection_reason is None

    def test_reapproving_active_loan_keeps_start_date(self, loan_manager, loan):
        loan_manager.decide_loan(loan.id, "approve")
        active = loan_manager.get_loan(loan.id)
        started = backdate(loan_manager, active)

        assert loan_manager.decide_loan(loan.id, "approve").start_date == started

    def test_invalid_action_leaves_loan_unchanged(self, loan_manager, loan, audit_trail):
        before = loan_manager.get_loan(loan.id)

        with pytest.raises(InvalidArgumentError):
            loan_manager.decide_loan(loan.id, "maybe")

        assert loan_manager.get_loan(loan.id) == before
        assert len(audit_trail.get_events_for_entity("loan", loan.id)) == 1

    def test_unknown_loan(self, loan_manager):
        with pytest.raises(NotFoundError):
            loan_manager.decide_loan("missing", "approve")

    def test_decision_with_document(self, loan_manager, loan):
        decided = loan_manager.decide_loan(
            loan.id, "approve", document=DocumentRef(name="sanction.pdf", path="uploads/sanction.pdf")
        )

        assert decided.document_name == "sanction.pdf"
        assert loan_manager.get_loan(loan.id).document_path == "uploads/sanction.pdf"

    def test_decision_audited(self, loan_manager, loan, audit_trail):
        loan_manager.decide_loan(loan.id, "approve")

        events = audit_trail.get_events_for_entity("loan", loan.id)
        assert events[-1].event_type == AuditEventType.LOAN_APPROVED
        assert events[-1].metadata["previous_status"] == "PENDING"
        assert audit_trail.verify_integrity()['valid']


class TestUpdateLoan:
    """Test partial updates"""

    def test_only_supplied_fields_change(self, loan_manager, loan):
        updated = loan_manager.update_loan(loan.id, LoanPatch(outstanding_balance="91000.50"))

        assert updated.outstanding_balance == Decimal('91000.50')
        assert updated.status == LoanStatus.PENDING
        assert updated.principal == loan.principal
        assert updated.emi == loan.emi

    def test_patch_provided(self):
        patch = LoanPatch(status="ACTIVE", rejection_reason=None)

        assert patch.provided() == {"status": "ACTIVE", "rejection_reason": None}
        assert LoanPatch().provided() == {}
        assert not UNSET

    def test_patch_from_dict_rejects_unknown_fields(self):
        with pytest.raises(InvalidArgumentError, match="principal"):
            LoanPatch.from_dict({"principal": "1"})

    def test_status_to_active_restamps_start_date(self, loan_manager, loan):
        backdate(loan_manager, loan)
        updated = loan_manager.update_loan(loan.id, LoanPatch(status="active"))

        assert updated.status == LoanStatus.ACTIVE
        assert updated.start_date == date.today()

    def test_status_to_completed(self, loan_manager, loan):
        loan_manager.decide_loan(loan.id, "approve")
        updated = loan_manager.update_loan(loan.id, LoanPatch(status="COMPLETED", outstanding_balance="0"))

        assert updated.status == LoanStatus.COMPLETED
        assert updated.outstanding_balance == Decimal('0.00')

    def test_reject_via_patch(self, loan_manager, loan):
        updated = loan_manager.update_loan(
            loan.id, LoanPatch(status="REJECTED", rejection_reason="Low score")
        )

        assert updated.status == LoanStatus.REJECTED
        assert updated.rejection_reason == "Low score"

    def test_leaving_rejected_clears_reason(self, loan_manager, loan):
        loan_manager.decide_loan(loan.id, "reject", reason="Low score")
        updated = loan_manager.update_loan(loan.id, LoanPatch(status="PENDING"))

        assert updated.rejection_reason is None

    def test_reason_on_non_rejected_loan_refused(self, loan_manager, loan):
        with pytest.raises(InvalidArgumentError):
            loan_manager.update_loan(loan.id, LoanPatch(rejection_reason="Why not"))

    def test_clear_document(self, loan_manager, loan):
        loan_manager.update_loan(loan.id, LoanPatch(document_name="a.pdf", document_path="uploads/a.pdf"))
        updated = loan_manager.update_loan(loan.id, LoanPatch(document_name=None, document_path=None))

        assert updated.document_name is None
        assert updated.document_path is None

    def test_invalid_values_change_nothing(self, loan_manager, loan):
        before = loan_manager.get_loan(loan.id)
        bad_patches = [
            LoanPatch(status="UNKNOWN"),
            LoanPatch(status=None),
            LoanPatch(outstanding_balance=None),
            LoanPatch(outstanding_balance="-5"),
            LoanPatch(status="ACTIVE", outstanding_balance="abc"),
        ]
        for patch in bad_patches:
            with pytest.raises(InvalidArgumentError):
                loan_manager.update_loan(loan.id, patch)

        assert loan_manager.get_loan(loan.id) == before

    def test_unknown_loan(self, loan_manager):
        with pytest.raises(NotFoundError):
            loan_manager.update_loan("missing", LoanPatch(status="ACTIVE"))


class TestDeleteLoan:
    """Test loan deletion"""

    def test_delete_twice(self, loan_manager, loan, audit_trail):
        assert loan_manager.delete_loan(loan.id) is True
        assert loan_manager.delete_loan(loan.id) is False

        with pytest.raises(NotFoundError):
            loan_manager.get_loan(loan.id)
        deletions = [
            e for e in audit_trail.get_events_for_entity("loan", loan.id)
            if e.event_type == AuditEventType.LOAN_DELETED
        ]
        assert len(deletions) == 1

    def test_delete_unknown_is_noop(self, loan_manager):
        assert loan_manager.delete_loan("missing") is False


class TestQueriesAndSchedule:
    """Test loan queries and schedule preview"""

    def test_user_loans(self, loan_manager, loan, borrower):
        assert [l.id for l in loan_manager.get_user_loans(borrower.id)] == [loan.id]
        assert loan_manager.get_user_loans("someone-else") == []

    def test_repayment_schedule(self, loan_manager, loan):
        schedule = loan_manager.repayment_schedule(loan.id)

        assert len(schedule) == 12
        assert schedule[0].installment == Decimal('8884.88')
        assert schedule[0].due_date > loan.start_date
        assert schedule[-1].closing_balance == Decimal('0.00')
