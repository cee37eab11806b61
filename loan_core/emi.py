"""
EMI Calculator Module

Equated monthly installment computation using the standard reducing-balance
formula, plus a read-only amortization preview. All financial math is Decimal.
"""

from decimal import Decimal, InvalidOperation, Overflow
from datetime import date
from dataclasses import dataclass
from typing import Any, List, Optional
import calendar

from .errors import InvalidArgumentError
from .money import ZERO, ONE, parse_decimal, parse_positive_int, round_money, round_rate


MONTHS_PER_YEAR_PERCENT = Decimal('1200')  # 12 months * 100 percent


@dataclass(frozen=True)
class ScheduleRow:
    """Single installment in an amortization schedule"""
    installment_number: int
    due_date: date
    installment: Decimal
    interest: Decimal
    principal: Decimal
    closing_balance: Decimal


def monthly_rate(annual_rate_percent: Decimal) -> Decimal:
    """Annual percent to monthly fraction, kept at 10 fractional digits"""
    return round_rate(annual_rate_percent / MONTHS_PER_YEAR_PERCENT)


def _validate(principal: Any, annual_rate_percent: Any, tenure_months: Any):
    principal = parse_decimal(principal, "principal")
    rate = parse_decimal(annual_rate_percent, "interest rate")
    tenure = parse_positive_int(tenure_months, "tenure months")

    if principal <= ZERO:
        raise InvalidArgumentError("principal must be positive")
    if rate < ZERO:
        raise InvalidArgumentError("interest rate must not be negative")

    return principal, rate, tenure


def compute_emi(principal: Any, annual_rate_percent: Any, tenure_months: Any) -> Decimal:
    """
    Calculate the equated monthly installment

    EMI = P * r * (1 + r)^n / ((1 + r)^n - 1), with r = annual% / 1200.

    Args:
        principal: Loan amount
        annual_rate_percent: Annual interest rate in percent (12 for 12%)
        tenure_months: Number of monthly installments

    Returns:
        Installment rounded to 2 places, half-up

    Raises:
        InvalidArgumentError: For non-positive principal or tenure, a negative
            rate, or a rate that leaves no compounding (0% loans)
    """
    principal, rate, tenure = _validate(principal, annual_rate_percent, tenure_months)

    r = monthly_rate(rate)
    try:
        factor = (ONE + r) ** tenure
        denominator = factor - ONE
        if denominator == ZERO:
            raise InvalidArgumentError(
                "EMI is undefined for a zero interest rate; "
                "zero-interest products need an explicit installment"
            )
        emi = principal * r * factor / denominator
    except (InvalidOperation, Overflow):
        raise InvalidArgumentError(
            f"EMI cannot be computed for rate {rate}% over {tenure} months"
        )

    return round_money(emi)


def total_interest(principal: Any, annual_rate_percent: Any, tenure_months: Any) -> Decimal:
    """Total interest paid over the tenure at the rounded EMI"""
    emi = compute_emi(principal, annual_rate_percent, tenure_months)
    principal = parse_decimal(principal, "principal")
    tenure = parse_positive_int(tenure_months, "tenure months")
    return round_money(emi * tenure - principal)


def add_months(start_date: date, months: int) -> date:
    """Add months to a date, handling month-end edge cases"""
    month = start_date.month - 1 + months
    year = start_date.year + month // 12
    month = month % 12 + 1
    day = min(start_date.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def amortization_schedule(
    principal: Any,
    annual_rate_percent: Any,
    tenure_months: Any,
    first_due_date: Optional[date] = None,
    emi: Optional[Decimal] = None
) -> List[ScheduleRow]:
    """
    Generate an equal installment amortization schedule

    Interest accrues on the opening balance each month. The final row pays
    off whatever balance is left so the schedule closes at exactly zero.
    The schedule is a preview; no payment rows are created from it.
    """
    principal, rate, tenure = _validate(principal, annual_rate_percent, tenure_months)
    if emi is None:
        emi = compute_emi(principal, rate, tenure)

    r = monthly_rate(rate)
    due_date = first_due_date or add_months(date.today(), 1)
    balance = round_money(principal)
    schedule = []

    for number in range(1, tenure + 1):
        interest = round_money(balance * r)
        principal_part = emi - interest

        # Final installment (or an early payoff) settles the exact balance
        if number == tenure or principal_part >= balance:
            principal_part = balance
        installment = principal_part + interest
        balance = balance - principal_part

        schedule.append(ScheduleRow(
            installment_number=number,
            due_date=add_months(due_date, number - 1),
            installment=installment,
            interest=interest,
            principal=principal_part,
            closing_balance=balance
        ))

        if balance == ZERO:
            break

    return schedule
