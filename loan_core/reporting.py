"""
Reporting Engine Module

Read-only aggregations behind the admin dashboard and the per-user summary:
headline counts, loan type distribution, monthly disbursement trend, recent
activity and the flat loan report used for CSV export.
"""

from decimal import Decimal
from datetime import date
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional
import calendar
import re

from .errors import InvalidArgumentError, NotFoundError
from .logging_config import get_logger
from .money import ZERO, round_money
from .models import LoanStatus, PaymentStatus
from .repositories import (
    CibilScoreRepository, LoanRepository, NotificationRepository,
    PaymentRepository, UserRepository
)


REPORT_MONTH_PATTERN = re.compile(r"^(\d{4})-(\d{2})$")


@dataclass
class DashboardStats:
    """Headline counts for the admin dashboard"""
    total_users: int
    active_loans: int
    pending_loans: int
    rejected_loans: int
    total_loans: int
    pending_payments: int
    total_payments: int
    total_disbursed: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class LoanReportRow:
    """One line of the loan export"""
    loan_id: str
    user_name: str
    loan_type: str
    principal: Decimal
    status: str
    start_date: date


@dataclass
class UserSummary:
    """Borrower dashboard figures"""
    user_id: str
    active_loans: int
    total_outstanding: Decimal
    monthly_emi: Decimal
    pending_payments: int
    cibil_score: Optional[int]


def parse_report_month(month: str) -> tuple:
    """Parse 'YYYY-MM' into (year, month)"""
    match = REPORT_MONTH_PATTERN.match(month or "")
    if not match:
        raise InvalidArgumentError(f"month must be YYYY-MM, got '{month}'")
    year, month_num = int(match.group(1)), int(match.group(2))
    if not 1 <= month_num <= 12:
        raise InvalidArgumentError(f"month must be YYYY-MM, got '{month}'")
    return year, month_num


def _shift_month(year: int, month: int, delta: int) -> tuple:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


class ReportingEngine:
    """
    Aggregation engine for dashboards and exports

    Every method performs a full scan of the relevant repositories.
    """

    def __init__(
        self,
        users: UserRepository,
        loans: LoanRepository,
        payments: PaymentRepository,
        notifications: NotificationRepository,
        cibil_scores: Optional[CibilScoreRepository] = None
    ):
        self.users = users
        self.loans = loans
        self.payments = payments
        self.notifications = notifications
        self.cibil_scores = cibil_scores
        self.logger = get_logger("loan_core.reporting")

    def dashboard_stats(self) -> DashboardStats:
        """
        Admin dashboard counts

        rejected_loans counts REJECTED and DEFAULTED; pending_payments counts
        PENDING and OVERDUE. total_disbursed sums every principal on file,
        whatever the loan status.
        """
        loans = self.loans.find_all()
        payments = self.payments.find_all()

        stats = DashboardStats(
            total_users=self.users.count(),
            active_loans=sum(1 for l in loans if l.is_active),
            pending_loans=sum(1 for l in loans if l.status == LoanStatus.PENDING),
            rejected_loans=sum(
                1 for l in loans if l.status in (LoanStatus.REJECTED, LoanStatus.DEFAULTED)
            ),
            total_loans=len(loans),
            pending_payments=sum(
                1 for p in payments if p.status in (PaymentStatus.PENDING, PaymentStatus.OVERDUE)
            ),
            total_payments=len(payments),
            total_disbursed=round_money(sum((l.principal for l in loans), ZERO))
        )
        self.logger.debug(f"Dashboard stats computed over {len(loans)} loans")
        return stats

    def loan_distribution(self) -> List[Dict[str, Any]]:
        """Loan count per type, in order of first appearance"""
        counts: Dict[str, int] = {}
        for loan in self.loans.find_all():
            counts[loan.loan_type.value] = counts.get(loan.loan_type.value, 0) + 1
        return [{"name": name, "value": value} for name, value in counts.items()]

    def disbursement_trend(self, as_of: Optional[date] = None, months: int = 6) -> List[Dict[str, Any]]:
        """
        Principal disbursed per calendar month

        Covers the `months` calendar months ending with the month of `as_of`
        (today by default), oldest first. Loans are bucketed by start_date
        keyed on (year, month), so the same month in different years never
        collides. Empty months report zero.
        """
        if months < 1:
            raise InvalidArgumentError("months must be at least 1")
        as_of = as_of or date.today()

        buckets: Dict[tuple, Decimal] = {}
        for offset in range(months - 1, -1, -1):
            buckets[_shift_month(as_of.year, as_of.month, -offset)] = ZERO

        for loan in self.loans.find_all():
            key = (loan.start_date.year, loan.start_date.month)
            if key in buckets:
                buckets[key] += loan.principal

        return [
            {
                "month": calendar.month_abbr[month],
                "year": year,
                "amount": round_money(amount)
            }
            for (year, month), amount in buckets.items()
        ]

    def recent_activity(self, limit: int = 10) -> List[Dict[str, Any]]:
        """Newest notification records as activity log entries"""
        notifications = sorted(
            self.notifications.find_all(),
            key=lambda n: n.created_at,
            reverse=True
        )
        return [
            {"msg": n.message, "time": n.created_at, "type": n.type}
            for n in notifications[:max(limit, 0)]
        ]

    def loan_report(self, month: Optional[str] = None) -> List[LoanReportRow]:
        """
        Flat loan listing, optionally restricted to loans started in one month

        Args:
            month: 'YYYY-MM' filter on start_date
        """
        period = parse_report_month(month) if month else None
        names = {u.id: u.name for u in self.users.find_all()}

        rows = []
        for loan in sorted(self.loans.find_all(), key=lambda l: l.start_date):
            if period and (loan.start_date.year, loan.start_date.month) != period:
                continue
            rows.append(LoanReportRow(
                loan_id=loan.id,
                user_name=names.get(loan.user_id, "Unknown"),
                loan_type=loan.loan_type.value,
                principal=loan.principal,
                status=loan.status.value,
                start_date=loan.start_date
            ))
        return rows

    def user_summary(self, user_id: str) -> UserSummary:
        """
        Borrower dashboard: active loans, outstanding and EMI totals,
        pending installments and current credit score

        Raises:
            NotFoundError: If the user does not exist
        """
        if not self.users.find_by_id(user_id):
            raise NotFoundError("user", user_id)

        active = [l for l in self.loans.find_by_user_id(user_id) if l.is_active]
        pending = self.payments.find_by_user_id_and_status(user_id, PaymentStatus.PENDING)
        score = self.cibil_scores.find_by_user_id(user_id) if self.cibil_scores else None

        return UserSummary(
            user_id=user_id,
            active_loans=len(active),
            total_outstanding=round_money(sum((l.outstanding_balance for l in active), ZERO)),
            monthly_emi=round_money(sum((l.emi for l in active), ZERO)),
            pending_payments=len(pending),
            cibil_score=score.score if score else None
        )
