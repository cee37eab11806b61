"""
Loan Module

Handles loan application, underwriting decisions, partial updates, deletion
and repayment schedule previews. Owns the loan lifecycle state machine:

    PENDING -> ACTIVE | REJECTED
    ACTIVE  -> COMPLETED | DEFAULTED

Entering ACTIVE restamps the start date: the application date and the
disbursement date are different things.
"""

from datetime import date
from dataclasses import dataclass, fields
from typing import Any, Dict, List, Optional
import uuid

from .audit import AuditTrail, AuditEventType
from .emi import ScheduleRow, add_months, amortization_schedule, compute_emi
from .errors import InvalidArgumentError, NotFoundError
from .logging_config import get_logger, log_action
from .money import ZERO, format_money, parse_decimal, parse_money, parse_positive_int
from .models import Loan, LoanStatus, LoanType, parse_enum, utc_now
from .notifications import NotificationManager, NotificationType
from .repositories import LoanRepository, UserRepository


APPROVE_ACTIONS = frozenset({"approve", "accept"})
REJECT_ACTIONS = frozenset({"reject"})


class _Unset:
    """Marker for a patch field that was not supplied"""

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET = _Unset()


@dataclass(frozen=True)
class DocumentRef:
    """Supporting document stored by the upload service"""
    name: str
    path: str


@dataclass
class LoanRequest:
    """Loan application as received from the borrower"""
    loan_type: Any
    principal: Any
    interest_rate: Any
    tenure_months: Any
    emi: Any = None
    document: Optional[DocumentRef] = None


@dataclass
class LoanPatch:
    """
    Partial loan update

    Fields left as UNSET are not touched. An explicit None clears an
    optional field (rejection reason, document) and is rejected for
    required ones (status, outstanding balance).
    """
    status: Any = UNSET
    outstanding_balance: Any = UNSET
    rejection_reason: Any = UNSET
    document_name: Any = UNSET
    document_path: Any = UNSET

    def provided(self) -> Dict[str, Any]:
        """Only the fields the caller actually supplied"""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not UNSET
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LoanPatch':
        allowed = {f.name for f in fields(cls)}
        unknown = set(data) - allowed
        if unknown:
            raise InvalidArgumentError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")
        return cls(**data)


class LoanManager:
    """
    Manages loan lifecycle from application through closure
    """

    def __init__(
        self,
        loans: LoanRepository,
        users: UserRepository,
        audit_trail: AuditTrail,
        notification_manager: Optional[NotificationManager] = None,
        currency_symbol: str = "₹"
    ):
        self.loans = loans
        self.users = users
        self.audit_trail = audit_trail
        self.notification_manager = notification_manager
        self.currency_symbol = currency_symbol
        self.storage = loans.storage
        self.logger = get_logger("loan_core.loans")

    def apply_for_loan(self, user_id: str, request: LoanRequest) -> Loan:
        """
        Create a loan application

        The loan starts PENDING with start_date = today and
        outstanding_balance = principal. EMI is computed unless the request
        supplies one.

        Args:
            user_id: Applicant user ID
            request: Loan application fields

        Returns:
            Created Loan

        Raises:
            NotFoundError: If the user does not exist
            InvalidArgumentError: If any request field is malformed
        """
        user = self.users.find_by_id(user_id)
        if not user:
            raise NotFoundError("user", user_id)

        loan_type = parse_enum(LoanType, request.loan_type, "loan type")
        principal = parse_money(request.principal, "principal")
        interest_rate = parse_decimal(request.interest_rate, "interest rate")
        tenure_months = parse_positive_int(request.tenure_months, "tenure months")

        if principal <= ZERO:
            raise InvalidArgumentError("principal must be positive")
        if interest_rate < ZERO:
            raise InvalidArgumentError("interest rate must not be negative")

        if request.emi is None:
            emi = compute_emi(principal, interest_rate, tenure_months)
        else:
            emi = parse_money(request.emi, "emi")
            if emi <= ZERO:
                raise InvalidArgumentError("emi must be positive")

        now = utc_now()
        loan = Loan(
            id=str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
            user_id=user.id,
            loan_type=loan_type,
            principal=principal,
            interest_rate=interest_rate,
            tenure_months=tenure_months,
            start_date=date.today(),
            emi=emi,
            outstanding_balance=principal,
            status=LoanStatus.PENDING,
            document_name=request.document.name if request.document else None,
            document_path=request.document.path if request.document else None
        )

        with self.storage.atomic():
            self.loans.save(loan)
            self.audit_trail.log_event(
                event_type=AuditEventType.LOAN_APPLIED,
                entity_type="loan",
                entity_id=loan.id,
                user_id=user.id,
                metadata={
                    "loan_type": loan_type.value,
                    "principal": principal,
                    "interest_rate": interest_rate,
                    "tenure_months": tenure_months,
                    "emi": emi
                }
            )
            self._notify(loan, NotificationType.LOAN_APPLIED,
                         f"Your {loan_type.value.lower()} loan application for "
                         f"{format_money(principal, self.currency_symbol)} has been received")

        log_action(self.logger, "info", "Loan application received", user_id=user.id,
                   action="apply", resource=f"loan:{loan.id}",
                   extra={"principal": str(principal), "emi": str(emi)})
        return loan

    def decide_loan(
        self,
        loan_id: str,
        action: str,
        reason: Optional[str] = None,
        document: Optional[DocumentRef] = None
    ) -> Loan:
        """
        Approve or reject a loan

        Args:
            loan_id: Loan to decide
            action: "approve" / "accept" or "reject" (case-insensitive)
            reason: Rejection reason, stored verbatim on reject
            document: Optional supporting document saved with the decision

        Returns:
            Updated Loan

        Raises:
            NotFoundError: If the loan does not exist
            InvalidArgumentError: If the action is not recognised
        """
        loan = self.get_loan(loan_id)

        action_key = (action or "").strip().lower()
        if action_key not in APPROVE_ACTIONS | REJECT_ACTIONS:
            self.logger.warning(f"Invalid decision action '{action}' for loan {loan_id}")
            raise InvalidArgumentError(f"Invalid action '{action}'; use 'approve' or 'reject'")

        previous_status = loan.status
        if action_key in APPROVE_ACTIONS:
            self._transition(loan, LoanStatus.ACTIVE)
            loan.rejection_reason = None
            event_type = AuditEventType.LOAN_APPROVED
            notification_type = NotificationType.LOAN_APPROVED
            message = f"Your loan of {format_money(loan.principal, self.currency_symbol)} has been approved"
        else:
            self._transition(loan, LoanStatus.REJECTED)
            loan.rejection_reason = reason
            event_type = AuditEventType.LOAN_REJECTED
            notification_type = NotificationType.LOAN_REJECTED
            message = f"Your loan of {format_money(loan.principal, self.currency_symbol)} has been rejected"
            if reason:
                message += f": {reason}"

        if document:
            loan.document_name = document.name
            loan.document_path = document.path
        loan.updated_at = utc_now()

        with self.storage.atomic():
            self.loans.save(loan)
            self.audit_trail.log_event(
                event_type=event_type,
                entity_type="loan",
                entity_id=loan.id,
                user_id=loan.user_id,
                metadata={
                    "previous_status": previous_status.value,
                    "status": loan.status.value,
                    "rejection_reason": loan.rejection_reason,
                    "start_date": loan.start_date,
                    "document": document.name if document else None
                }
            )
            self._notify(loan, notification_type, message)

        log_action(self.logger, "info", f"Loan {loan.status.value.lower()}", user_id=loan.user_id,
                   action="decide", resource=f"loan:{loan.id}",
                   extra={"previous_status": previous_status.value})
        return loan

    def update_loan(self, loan_id: str, patch: LoanPatch) -> Loan:
        """
        Apply a partial update

        Only supplied fields change. A status that moves the loan into
        ACTIVE restamps start_date; leaving REJECTED clears the reason.

        Raises:
            NotFoundError: If the loan does not exist
            InvalidArgumentError: If a supplied value is invalid
        """
        loan = self.get_loan(loan_id)
        changes = patch.provided()
        previous_status = loan.status

        # Validate everything before touching the loan
        new_status = loan.status
        if 'status' in changes:
            if changes['status'] is None:
                raise InvalidArgumentError("status cannot be cleared")
            new_status = parse_enum(LoanStatus, changes['status'], "loan status")

        new_balance = loan.outstanding_balance
        if 'outstanding_balance' in changes:
            if changes['outstanding_balance'] is None:
                raise InvalidArgumentError("outstanding balance cannot be cleared")
            new_balance = parse_money(changes['outstanding_balance'], "outstanding balance")
            if new_balance < ZERO:
                raise InvalidArgumentError("outstanding balance must not be negative")

        new_reason = changes.get('rejection_reason', loan.rejection_reason)
        if new_status != LoanStatus.REJECTED:
            if 'rejection_reason' in changes and new_reason:
                raise InvalidArgumentError("rejection reason is only allowed on rejected loans")
            new_reason = None

        self._transition(loan, new_status)
        loan.outstanding_balance = new_balance
        loan.rejection_reason = new_reason
        if 'document_name' in changes:
            loan.document_name = changes['document_name']
        if 'document_path' in changes:
            loan.document_path = changes['document_path']
        loan.updated_at = utc_now()

        with self.storage.atomic():
            self.loans.save(loan)
            self.audit_trail.log_event(
                event_type=AuditEventType.LOAN_UPDATED,
                entity_type="loan",
                entity_id=loan.id,
                user_id=loan.user_id,
                metadata={
                    "previous_status": previous_status.value,
                    "fields": sorted(changes)
                }
            )

        log_action(self.logger, "info", "Loan updated", user_id=loan.user_id,
                   action="update", resource=f"loan:{loan.id}",
                   extra={"fields": sorted(changes)})
        return loan

    def delete_loan(self, loan_id: str) -> bool:
        """
        Delete a loan; deleting a missing loan is a no-op

        Payments referencing the loan are left in place.

        Returns:
            True if a record was removed
        """
        with self.storage.atomic():
            removed = self.loans.delete_by_id(loan_id)
            if removed:
                self.audit_trail.log_event(
                    event_type=AuditEventType.LOAN_DELETED,
                    entity_type="loan",
                    entity_id=loan_id
                )

        if removed:
            log_action(self.logger, "info", "Loan deleted", action="delete", resource=f"loan:{loan_id}")
        return removed

    def get_loan(self, loan_id: str) -> Loan:
        loan = self.loans.find_by_id(loan_id)
        if not loan:
            raise NotFoundError("loan", loan_id)
        return loan

    def get_user_loans(self, user_id: str) -> List[Loan]:
        return self.loans.find_by_user_id(user_id)

    def get_all_loans(self) -> List[Loan]:
        return self.loans.find_all()

    def repayment_schedule(self, loan_id: str) -> List[ScheduleRow]:
        """Amortization preview starting one month after start_date"""
        loan = self.get_loan(loan_id)
        return amortization_schedule(
            loan.principal,
            loan.interest_rate,
            loan.tenure_months,
            first_due_date=add_months(loan.start_date, 1),
            emi=loan.emi
        )

    def _transition(self, loan: Loan, new_status: LoanStatus) -> None:
        """Set status; first entry into ACTIVE restamps start_date"""
        if new_status == LoanStatus.ACTIVE and not loan.is_active:
            loan.start_date = date.today()
        loan.status = new_status

    def _notify(self, loan: Loan, notification_type: str, message: str) -> None:
        if self.notification_manager:
            self.notification_manager.create_notification(loan.user_id, notification_type, message)
