"""
Domain Records Module

Users, loans, payments, CIBIL scores and notifications as StorageRecord
dataclasses, plus the closed enums that back their status fields.
"""

from decimal import Decimal
from datetime import datetime, date, timezone
from dataclasses import dataclass
from typing import Any, Dict, Optional, Type, TypeVar
from enum import Enum

from .errors import InvalidArgumentError
from .storage import StorageRecord


E = TypeVar('E', bound=Enum)


class Role(Enum):
    """User roles"""
    USER = "USER"
    ADMIN = "ADMIN"


class LoanType(Enum):
    """Loan products"""
    PERSONAL = "PERSONAL"
    HOME = "HOME"
    CAR = "CAR"
    EDUCATION = "EDUCATION"
    BUSINESS = "BUSINESS"


class LoanStatus(Enum):
    """Loan lifecycle states"""
    PENDING = "PENDING"        # Application received, awaiting decision
    ACTIVE = "ACTIVE"          # Approved and in repayment
    REJECTED = "REJECTED"      # Declined by underwriting
    COMPLETED = "COMPLETED"    # Fully repaid
    DEFAULTED = "DEFAULTED"    # Borrower defaulted


class PaymentStatus(Enum):
    """Installment states"""
    PENDING = "PENDING"
    PAID = "PAID"
    OVERDUE = "OVERDUE"


def parse_enum(enum_cls: Type[E], value: Any, field_name: str) -> E:
    """
    Match a value against a closed enum, case-insensitively

    Raises:
        InvalidArgumentError: If the value is not one of the enum members
    """
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        key = value.strip().upper()
        if key in enum_cls.__members__:
            return enum_cls[key]
    allowed = "|".join(enum_cls.__members__)
    raise InvalidArgumentError(f"Invalid {field_name} '{value}', expected one of {allowed}")


def _get_date(data: Dict[str, Any], field: str) -> Optional[date]:
    if data.get(field):
        return date.fromisoformat(data[field])
    return None


def _timestamps(data: Dict[str, Any]) -> Dict[str, datetime]:
    return {
        'created_at': datetime.fromisoformat(data['created_at']),
        'updated_at': datetime.fromisoformat(data['updated_at']),
    }


@dataclass
class User(StorageRecord):
    """Registered borrower or administrator"""
    email: str
    password_hash: str
    name: str
    role: Role = Role.USER
    phone: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'User':
        return cls(
            id=data['id'],
            **_timestamps(data),
            email=data['email'],
            password_hash=data['password_hash'],
            name=data['name'],
            role=Role(data.get('role', Role.USER.value)),
            phone=data.get('phone')
        )


@dataclass
class Loan(StorageRecord):
    """Credit extension owned by a user"""
    user_id: str
    loan_type: LoanType
    principal: Decimal
    interest_rate: Decimal              # Annual percent, e.g. 12 for 12%
    tenure_months: int
    start_date: date
    emi: Decimal
    outstanding_balance: Decimal
    status: LoanStatus = LoanStatus.PENDING
    rejection_reason: Optional[str] = None
    document_name: Optional[str] = None
    document_path: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status == LoanStatus.ACTIVE

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Loan':
        return cls(
            id=data['id'],
            **_timestamps(data),
            user_id=data['user_id'],
            loan_type=LoanType(data['loan_type']),
            principal=Decimal(data['principal']),
            interest_rate=Decimal(data['interest_rate']),
            tenure_months=int(data['tenure_months']),
            start_date=date.fromisoformat(data['start_date']),
            emi=Decimal(data['emi']),
            outstanding_balance=Decimal(data['outstanding_balance']),
            status=LoanStatus(data['status']),
            rejection_reason=data.get('rejection_reason'),
            document_name=data.get('document_name'),
            document_path=data.get('document_path')
        )


@dataclass
class Payment(StorageRecord):
    """Scheduled or recorded installment obligation"""
    loan_id: str
    user_id: str
    amount: Decimal
    due_date: date
    status: PaymentStatus = PaymentStatus.PENDING
    paid_date: Optional[date] = None

    def is_overdue(self, as_of: Optional[date] = None) -> bool:
        """Stored OVERDUE, or still PENDING past its due date"""
        if self.status == PaymentStatus.OVERDUE:
            return True
        as_of = as_of or date.today()
        return self.status == PaymentStatus.PENDING and self.due_date < as_of

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Payment':
        return cls(
            id=data['id'],
            **_timestamps(data),
            loan_id=data['loan_id'],
            user_id=data['user_id'],
            amount=Decimal(data['amount']),
            due_date=date.fromisoformat(data['due_date']),
            status=PaymentStatus(data['status']),
            paid_date=_get_date(data, 'paid_date')
        )


@dataclass
class CibilScore(StorageRecord):
    """Credit score with its five sub-factors, one per user"""
    user_id: str
    score: int
    last_updated: datetime
    payment_history: Optional[int] = None
    credit_utilization: Optional[int] = None
    credit_age: Optional[int] = None
    credit_mix: Optional[int] = None
    recent_inquiries: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CibilScore':
        return cls(
            id=data['id'],
            **_timestamps(data),
            user_id=data['user_id'],
            score=int(data['score']),
            last_updated=datetime.fromisoformat(data['last_updated']),
            payment_history=data.get('payment_history'),
            credit_utilization=data.get('credit_utilization'),
            credit_age=data.get('credit_age'),
            credit_mix=data.get('credit_mix'),
            recent_inquiries=data.get('recent_inquiries')
        )


@dataclass
class Notification(StorageRecord):
    """In-app message for a user; also feeds the admin activity log"""
    user_id: str
    type: str
    message: str
    read: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Notification':
        return cls(
            id=data['id'],
            **_timestamps(data),
            user_id=data['user_id'],
            type=data['type'],
            message=data['message'],
            read=bool(data.get('read', False))
        )


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
