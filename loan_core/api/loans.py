"""
Loan endpoints
"""

from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Body, Depends, HTTPException, status

from .dependencies import LoanSystem, get_loan_system
from .schemas import (
    ApplyLoanRequest, DocumentModel, EMIRequest, EMIResponse, LoanResponse,
    MessageResponse, ScheduleRowModel
)
from ..emi import compute_emi, total_interest
from ..loans import LoanPatch
from ..money import money_to_str, parse_money


router = APIRouter()


def check_document_size(document: Optional[DocumentModel], system: LoanSystem) -> None:
    """Reject documents larger than the configured upload limit"""
    if document and document.size_bytes is not None:
        limit = system.config.max_document_size_bytes
        if document.size_bytes > limit:
            raise HTTPException(
                status_code=400,
                detail=f"Document exceeds the {limit // 1024}KB limit"
            )


@router.post("/apply", status_code=status.HTTP_201_CREATED, response_model=LoanResponse)
async def apply_for_loan(
    request: ApplyLoanRequest,
    system: LoanSystem = Depends(get_loan_system)
):
    """Submit a loan application"""
    check_document_size(request.document, system)
    loan = system.loan_manager.apply_for_loan(request.user_id, request.to_loan_request())
    return LoanResponse.from_loan(loan)


@router.post("/emi", response_model=EMIResponse)
async def calculate_emi(request: EMIRequest):
    """EMI preview without creating a loan"""
    emi = compute_emi(request.principal, request.interest_rate, request.tenure_months)
    interest = total_interest(request.principal, request.interest_rate, request.tenure_months)
    return EMIResponse(
        emi=money_to_str(emi),
        total_interest=money_to_str(interest),
        total_payment=money_to_str(parse_money(request.principal, "principal") + interest)
    )


@router.get("", response_model=List[LoanResponse])
async def list_loans(system: LoanSystem = Depends(get_loan_system)):
    """List all loans"""
    return [LoanResponse.from_loan(loan) for loan in system.loan_manager.get_all_loans()]


@router.get("/user/{user_id}", response_model=List[LoanResponse])
async def get_user_loans(user_id: str, system: LoanSystem = Depends(get_loan_system)):
    """List a user's loans"""
    return [LoanResponse.from_loan(loan) for loan in system.loan_manager.get_user_loans(user_id)]


@router.get("/{loan_id}", response_model=LoanResponse)
async def get_loan(loan_id: str, system: LoanSystem = Depends(get_loan_system)):
    """Get loan details"""
    return LoanResponse.from_loan(system.loan_manager.get_loan(loan_id))


@router.patch("/{loan_id}", response_model=LoanResponse)
async def update_loan(
    loan_id: str,
    changes: Dict[str, Any] = Body(...),
    system: LoanSystem = Depends(get_loan_system)
):
    """Partially update a loan; only the supplied fields change"""
    loan = system.loan_manager.update_loan(loan_id, LoanPatch.from_dict(changes))
    return LoanResponse.from_loan(loan)


@router.delete("/{loan_id}", response_model=MessageResponse)
async def delete_loan(loan_id: str, system: LoanSystem = Depends(get_loan_system)):
    """Delete a loan; deleting an unknown id succeeds"""
    removed = system.loan_manager.delete_loan(loan_id)
    return MessageResponse(message="Loan deleted", details={"loan_id": loan_id, "removed": removed})


@router.get("/{loan_id}/schedule", response_model=List[ScheduleRowModel])
async def get_repayment_schedule(loan_id: str, system: LoanSystem = Depends(get_loan_system)):
    """Amortization schedule for a loan"""
    return [ScheduleRowModel.from_row(row) for row in system.loan_manager.repayment_schedule(loan_id)]
