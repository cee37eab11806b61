"""
Payment endpoints
"""

from typing import List
from fastapi import APIRouter, Depends, Query, status

from .dependencies import LoanSystem, get_loan_system
from .schemas import CreatePaymentRequest, PaymentResponse
from ..models import PaymentStatus


router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED, response_model=PaymentResponse)
async def create_payment(
    request: CreatePaymentRequest,
    system: LoanSystem = Depends(get_loan_system)
):
    """Record an installment for a loan"""
    payment = system.payment_manager.create_payment(
        loan_id=request.loan_id,
        amount=request.amount,
        due_date=request.due_date,
        status=request.status or PaymentStatus.PENDING
    )
    return PaymentResponse.from_payment(payment)


@router.get("", response_model=List[PaymentResponse])
async def list_payments(system: LoanSystem = Depends(get_loan_system)):
    """List all payments"""
    return [PaymentResponse.from_payment(p) for p in system.payment_manager.get_all_payments()]


@router.get("/user/{user_id}", response_model=List[PaymentResponse])
async def get_user_payments(user_id: str, system: LoanSystem = Depends(get_loan_system)):
    """A user's payments ordered by due date"""
    return [PaymentResponse.from_payment(p) for p in system.payment_manager.get_user_payments(user_id)]


@router.get("/user/{user_id}/pending", response_model=List[PaymentResponse])
async def get_pending_payments(user_id: str, system: LoanSystem = Depends(get_loan_system)):
    """A user's PENDING payments ordered by due date"""
    return [PaymentResponse.from_payment(p) for p in system.payment_manager.get_pending_payments(user_id)]


@router.get("/loan/{loan_id}", response_model=List[PaymentResponse])
async def get_loan_payments(loan_id: str, system: LoanSystem = Depends(get_loan_system)):
    """Payments recorded against a loan"""
    return [PaymentResponse.from_payment(p) for p in system.payment_manager.get_loan_payments(loan_id)]


@router.put("/{payment_id}/status", response_model=PaymentResponse)
async def update_payment_status(
    payment_id: str,
    status: str = Query(..., description="PENDING, PAID or OVERDUE"),
    system: LoanSystem = Depends(get_loan_system)
):
    """Set a payment's status; PAID stamps today's date"""
    payment = system.payment_manager.update_payment_status(payment_id, status)
    return PaymentResponse.from_payment(payment)
