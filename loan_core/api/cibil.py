"""
CIBIL score endpoints
"""

from fastapi import APIRouter, Depends, HTTPException

from .dependencies import LoanSystem, get_loan_system
from .schemas import CibilResponse, CibilUpdateRequest


router = APIRouter()


@router.get("/user/{user_id}", response_model=CibilResponse)
async def get_cibil_score(user_id: str, system: LoanSystem = Depends(get_loan_system)):
    """Get a user's current score"""
    record = system.cibil_manager.get_score(user_id)
    if not record:
        raise HTTPException(status_code=404, detail=f"No CIBIL score for user {user_id}")
    return CibilResponse.from_score(record)


@router.put("/user/{user_id}", response_model=CibilResponse)
async def update_cibil_score(
    user_id: str,
    request: CibilUpdateRequest,
    system: LoanSystem = Depends(get_loan_system)
):
    """Record a user's score from its sub-factors"""
    record = system.cibil_manager.record_score(user_id, request.to_factors(), score=request.score)
    return CibilResponse.from_score(record)
