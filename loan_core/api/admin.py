"""
Admin endpoints (dashboard, underwriting decisions, reports)
"""

from typing import List, Optional
import csv
import io

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from .dependencies import LoanSystem, get_loan_system
from .loans import check_document_size
from .schemas import (
    ActivityEntry, DashboardStatsResponse, DistributionEntry, LoanDecisionRequest,
    LoanResponse, TrendPoint, UserResponse
)
from ..money import money_to_str


router = APIRouter()

REPORT_HEADER = ["Loan ID", "User", "Type", "Principal", "Status", "Date"]


@router.get("/stats", response_model=DashboardStatsResponse)
async def get_dashboard_stats(system: LoanSystem = Depends(get_loan_system)):
    """Headline counts for the admin dashboard"""
    stats = system.reporting_engine.dashboard_stats()
    return DashboardStatsResponse(
        totalUsers=stats.total_users,
        activeLoans=stats.active_loans,
        pendingLoans=stats.pending_loans,
        rejectedLoans=stats.rejected_loans,
        totalLoans=stats.total_loans,
        pendingPayments=stats.pending_payments,
        totalPayments=stats.total_payments,
        totalDisbursed=money_to_str(stats.total_disbursed)
    )


@router.get("/users", response_model=List[UserResponse])
async def list_users(system: LoanSystem = Depends(get_loan_system)):
    """List all users"""
    return [UserResponse.from_user(u) for u in system.user_manager.get_all_users()]


@router.get("/distribution", response_model=List[DistributionEntry])
async def get_loan_distribution(system: LoanSystem = Depends(get_loan_system)):
    """Loan count per loan type"""
    return system.reporting_engine.loan_distribution()


@router.get("/trends", response_model=List[TrendPoint])
async def get_disbursement_trend(system: LoanSystem = Depends(get_loan_system)):
    """Principal disbursed per month, oldest first"""
    trend = system.reporting_engine.disbursement_trend(months=system.config.trend_months)
    return [
        TrendPoint(month=point["month"], year=point["year"], amount=money_to_str(point["amount"]))
        for point in trend
    ]


@router.get("/logs", response_model=List[ActivityEntry])
async def get_recent_activity(system: LoanSystem = Depends(get_loan_system)):
    """Most recent notifications as an activity feed"""
    return system.reporting_engine.recent_activity(limit=system.config.recent_activity_limit)


@router.post("/loan/{loan_id}/decision", response_model=LoanResponse)
async def decide_loan(
    loan_id: str,
    request: LoanDecisionRequest,
    system: LoanSystem = Depends(get_loan_system)
):
    """Approve or reject a loan application"""
    check_document_size(request.document, system)
    loan = system.loan_manager.decide_loan(
        loan_id,
        request.action,
        reason=request.reason,
        document=request.document.to_document() if request.document else None
    )
    return LoanResponse.from_loan(loan)


@router.get("/report/download")
async def download_loan_report(
    month: Optional[str] = Query(None, description="Restrict to loans started in YYYY-MM"),
    system: LoanSystem = Depends(get_loan_system)
):
    """Loan report as CSV"""
    rows = system.reporting_engine.loan_report(month)

    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(REPORT_HEADER)
    for row in rows:
        writer.writerow([
            row.loan_id,
            row.user_name,
            row.loan_type,
            money_to_str(row.principal),
            row.status,
            row.start_date.isoformat()
        ])

    filename = f"loan_report_{month}.csv" if month else "loan_report.csv"
    return Response(
        content=buffer.getvalue(),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )
