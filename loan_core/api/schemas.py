"""
Pydantic schemas for API requests and responses

Monetary amounts cross the boundary as decimal strings.
"""

from datetime import date, datetime
from typing import Dict, Optional, Any
from pydantic import BaseModel, Field

from ..cibil import CibilFactors, score_category
from ..emi import ScheduleRow
from ..loans import DocumentRef, LoanRequest
from ..models import CibilScore, Loan, Notification, Payment, User
from ..money import money_to_str
from ..reporting import UserSummary


class DocumentModel(BaseModel):
    name: str
    path: str
    size_bytes: Optional[int] = Field(None, description="Size reported by the upload service")

    def to_document(self) -> DocumentRef:
        return DocumentRef(name=self.name, path=self.path)


# User schemas
class RegisterUserRequest(BaseModel):
    email: str
    password: str
    name: str
    phone: Optional[str] = None
    role: Optional[str] = None


class UserResponse(BaseModel):
    id: str
    email: str
    name: str
    role: str
    phone: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_user(cls, user: User) -> 'UserResponse':
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            role=user.role.value,
            phone=user.phone,
            created_at=user.created_at
        )


class UserSummaryResponse(BaseModel):
    user_id: str
    active_loans: int
    total_outstanding: str
    monthly_emi: str
    pending_payments: int
    cibil_score: Optional[int] = None

    @classmethod
    def from_summary(cls, summary: UserSummary) -> 'UserSummaryResponse':
        return cls(
            user_id=summary.user_id,
            active_loans=summary.active_loans,
            total_outstanding=money_to_str(summary.total_outstanding),
            monthly_emi=money_to_str(summary.monthly_emi),
            pending_payments=summary.pending_payments,
            cibil_score=summary.cibil_score
        )


# Loan schemas
class ApplyLoanRequest(BaseModel):
    user_id: str
    loan_type: str
    principal: str = Field(..., description="Decimal amount as string")
    interest_rate: str = Field(..., description="Annual rate in percent")
    tenure_months: int
    emi: Optional[str] = Field(None, description="Explicit EMI; computed when omitted")
    document: Optional[DocumentModel] = None

    def to_loan_request(self) -> LoanRequest:
        return LoanRequest(
            loan_type=self.loan_type,
            principal=self.principal,
            interest_rate=self.interest_rate,
            tenure_months=self.tenure_months,
            emi=self.emi,
            document=self.document.to_document() if self.document else None
        )


class LoanResponse(BaseModel):
    id: str
    user_id: str
    loan_type: str
    principal: str
    interest_rate: str
    tenure_months: int
    start_date: date
    emi: str
    outstanding_balance: str
    status: str
    rejection_reason: Optional[str] = None
    document_name: Optional[str] = None
    document_path: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_loan(cls, loan: Loan) -> 'LoanResponse':
        return cls(
            id=loan.id,
            user_id=loan.user_id,
            loan_type=loan.loan_type.value,
            principal=money_to_str(loan.principal),
            interest_rate=str(loan.interest_rate),
            tenure_months=loan.tenure_months,
            start_date=loan.start_date,
            emi=money_to_str(loan.emi),
            outstanding_balance=money_to_str(loan.outstanding_balance),
            status=loan.status.value,
            rejection_reason=loan.rejection_reason,
            document_name=loan.document_name,
            document_path=loan.document_path,
            created_at=loan.created_at,
            updated_at=loan.updated_at
        )


class EMIRequest(BaseModel):
    principal: str = Field(..., description="Decimal amount as string")
    interest_rate: str = Field(..., description="Annual rate in percent")
    tenure_months: int


class EMIResponse(BaseModel):
    emi: str
    total_interest: str
    total_payment: str


class ScheduleRowModel(BaseModel):
    installment_number: int
    due_date: date
    installment: str
    interest: str
    principal: str
    closing_balance: str

    @classmethod
    def from_row(cls, row: ScheduleRow) -> 'ScheduleRowModel':
        return cls(
            installment_number=row.installment_number,
            due_date=row.due_date,
            installment=money_to_str(row.installment),
            interest=money_to_str(row.interest),
            principal=money_to_str(row.principal),
            closing_balance=money_to_str(row.closing_balance)
        )


class LoanDecisionRequest(BaseModel):
    action: str = Field(..., description="approve, accept or reject")
    reason: Optional[str] = None
    document: Optional[DocumentModel] = None


# Payment schemas
class CreatePaymentRequest(BaseModel):
    loan_id: str
    amount: str = Field(..., description="Decimal amount as string")
    due_date: date
    status: Optional[str] = None


class PaymentResponse(BaseModel):
    id: str
    loan_id: str
    user_id: str
    amount: str
    due_date: date
    status: str
    paid_date: Optional[date] = None
    overdue: bool

    @classmethod
    def from_payment(cls, payment: Payment, as_of: Optional[date] = None) -> 'PaymentResponse':
        return cls(
            id=payment.id,
            loan_id=payment.loan_id,
            user_id=payment.user_id,
            amount=money_to_str(payment.amount),
            due_date=payment.due_date,
            status=payment.status.value,
            paid_date=payment.paid_date,
            overdue=payment.is_overdue(as_of)
        )


# CIBIL schemas
class CibilUpdateRequest(BaseModel):
    payment_history: int
    credit_utilization: int
    credit_age: int
    credit_mix: int
    recent_inquiries: int
    score: Optional[int] = Field(None, description="Explicit score; computed when omitted")

    def to_factors(self) -> CibilFactors:
        return CibilFactors(
            payment_history=self.payment_history,
            credit_utilization=self.credit_utilization,
            credit_age=self.credit_age,
            credit_mix=self.credit_mix,
            recent_inquiries=self.recent_inquiries
        )


class CibilResponse(BaseModel):
    user_id: str
    score: int
    category: str
    last_updated: datetime
    factors: Dict[str, Optional[int]]

    @classmethod
    def from_score(cls, record: CibilScore) -> 'CibilResponse':
        return cls(
            user_id=record.user_id,
            score=record.score,
            category=score_category(record.score),
            last_updated=record.last_updated,
            factors={
                'payment_history': record.payment_history,
                'credit_utilization': record.credit_utilization,
                'credit_age': record.credit_age,
                'credit_mix': record.credit_mix,
                'recent_inquiries': record.recent_inquiries,
            }
        )


# Admin schemas
class DashboardStatsResponse(BaseModel):
    totalUsers: int
    activeLoans: int
    pendingLoans: int
    rejectedLoans: int
    totalLoans: int
    pendingPayments: int
    totalPayments: int
    totalDisbursed: str


class TrendPoint(BaseModel):
    month: str
    year: int
    amount: str


class ActivityEntry(BaseModel):
    msg: str
    time: datetime
    type: str


class DistributionEntry(BaseModel):
    name: str
    value: int


class MessageResponse(BaseModel):
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


# Auth and inbox schemas
class LoginRequest(BaseModel):
    email: str
    password: str


class NotificationResponse(BaseModel):
    id: str
    type: str
    message: str
    read: bool
    created_at: datetime

    @classmethod
    def from_notification(cls, notification: Notification) -> 'NotificationResponse':
        return cls(
            id=notification.id,
            type=notification.type,
            message=notification.message,
            read=notification.read,
            created_at=notification.created_at
        )
