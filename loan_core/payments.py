"""
Payment Module

Installment records and their status model. A payment starts PENDING and is
moved to PAID or OVERDUE by explicit calls only; "past due and still pending"
is evaluated at query time and never written back.
"""

from datetime import date
from typing import Any, List, Optional
import uuid

from .audit import AuditTrail, AuditEventType
from .errors import InvalidArgumentError, NotFoundError
from .logging_config import get_logger, log_action
from .money import ZERO, parse_money
from .models import Payment, PaymentStatus, parse_enum, utc_now
from .notifications import NotificationManager, NotificationType
from .repositories import LoanRepository, PaymentRepository


class PaymentManager:
    """
    Manages installment records and status changes
    """

    def __init__(
        self,
        payments: PaymentRepository,
        loans: LoanRepository,
        audit_trail: AuditTrail,
        notification_manager: Optional[NotificationManager] = None
    ):
        self.payments = payments
        self.loans = loans
        self.audit_trail = audit_trail
        self.notification_manager = notification_manager
        self.storage = payments.storage
        self.logger = get_logger("loan_core.payments")

    def create_payment(
        self,
        loan_id: str,
        amount: Any,
        due_date: date,
        status: Any = PaymentStatus.PENDING
    ) -> Payment:
        """
        Record an installment obligation for a loan

        The owning user is copied from the loan.

        Raises:
            NotFoundError: If the loan does not exist
            InvalidArgumentError: Non-positive amount or unknown status
        """
        loan = self.loans.find_by_id(loan_id)
        if not loan:
            raise NotFoundError("loan", loan_id)

        amount = parse_money(amount, "amount")
        if amount <= ZERO:
            raise InvalidArgumentError("amount must be positive")
        status = parse_enum(PaymentStatus, status, "payment status")

        now = utc_now()
        payment = Payment(
            id=str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
            loan_id=loan.id,
            user_id=loan.user_id,
            amount=amount,
            due_date=due_date,
            status=status,
            paid_date=date.today() if status == PaymentStatus.PAID else None
        )

        with self.storage.atomic():
            self.payments.save(payment)
            self.audit_trail.log_event(
                event_type=AuditEventType.PAYMENT_CREATED,
                entity_type="payment",
                entity_id=payment.id,
                user_id=payment.user_id,
                metadata={
                    "loan_id": loan.id,
                    "amount": amount,
                    "due_date": due_date,
                    "status": status.value
                }
            )

        log_action(self.logger, "info", "Payment created", user_id=payment.user_id,
                   action="create", resource=f"payment:{payment.id}",
                   extra={"loan_id": loan.id, "amount": str(amount)})
        return payment

    def update_payment_status(self, payment_id: str, status: Any) -> Payment:
        """
        Set a payment's status

        PAID stamps paid_date with today; any other status clears it.

        Raises:
            NotFoundError: If the payment does not exist
            InvalidArgumentError: If status is not PENDING, PAID or OVERDUE
        """
        payment = self.payments.find_by_id(payment_id)
        if not payment:
            raise NotFoundError("payment", payment_id)
        new_status = parse_enum(PaymentStatus, status, "payment status")

        previous_status = payment.status
        payment.status = new_status
        payment.paid_date = date.today() if new_status == PaymentStatus.PAID else None
        payment.updated_at = utc_now()

        with self.storage.atomic():
            self.payments.save(payment)
            self.audit_trail.log_event(
                event_type=AuditEventType.PAYMENT_STATUS_CHANGED,
                entity_type="payment",
                entity_id=payment.id,
                user_id=payment.user_id,
                metadata={
                    "previous_status": previous_status.value,
                    "status": new_status.value,
                    "paid_date": payment.paid_date
                }
            )
            if new_status == PaymentStatus.PAID and self.notification_manager:
                self.notification_manager.create_notification(
                    payment.user_id, NotificationType.PAYMENT_RECEIVED,
                    f"Payment of {payment.amount} received"
                )

        log_action(self.logger, "info", f"Payment marked {new_status.value}", user_id=payment.user_id,
                   action="update_status", resource=f"payment:{payment.id}",
                   extra={"previous_status": previous_status.value})
        return payment

    def mark_paid(self, payment_id: str) -> Payment:
        return self.update_payment_status(payment_id, PaymentStatus.PAID)

    def is_overdue(self, payment: Payment, as_of: Optional[date] = None) -> bool:
        return payment.is_overdue(as_of)

    def get_payment(self, payment_id: str) -> Payment:
        payment = self.payments.find_by_id(payment_id)
        if not payment:
            raise NotFoundError("payment", payment_id)
        return payment

    def get_user_payments(self, user_id: str) -> List[Payment]:
        payments = self.payments.find_by_user_id(user_id)
        payments.sort(key=lambda p: p.due_date)
        return payments

    def get_pending_payments(self, user_id: str) -> List[Payment]:
        payments = self.payments.find_by_user_id_and_status(user_id, PaymentStatus.PENDING)
        payments.sort(key=lambda p: p.due_date)
        return payments

    def get_loan_payments(self, loan_id: str) -> List[Payment]:
        payments = self.payments.find_by_loan_id(loan_id)
        payments.sort(key=lambda p: p.due_date)
        return payments

    def get_all_payments(self) -> List[Payment]:
        return self.payments.find_all()

    def get_overdue_payments(self, as_of: Optional[date] = None) -> List[Payment]:
        """Payments that are logically overdue on the given date"""
        return [p for p in self.payments.find_all() if p.is_overdue(as_of)]
