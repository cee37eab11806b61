"""
User endpoints
"""

from typing import List
from fastapi import APIRouter, Depends, HTTPException, status

from .dependencies import LoanSystem, get_loan_system
from .schemas import (
    LoginRequest, NotificationResponse, RegisterUserRequest, UserResponse,
    UserSummaryResponse
)


router = APIRouter()


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=UserResponse)
async def register_user(
    request: RegisterUserRequest,
    system: LoanSystem = Depends(get_loan_system)
):
    """Register a new borrower"""
    user = system.user_manager.register_user(
        email=request.email,
        password=request.password,
        name=request.name,
        phone=request.phone,
        role=request.role
    )
    return UserResponse.from_user(user)


@router.post("/login", response_model=UserResponse)
async def login(request: LoginRequest, system: LoanSystem = Depends(get_loan_system)):
    """Check credentials; token issuance happens in front of this service"""
    user = system.user_manager.get_user_by_email(request.email)
    if not user or not system.user_manager.verify_password(user, request.password):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return UserResponse.from_user(user)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: str, system: LoanSystem = Depends(get_loan_system)):
    """Get user details"""
    return UserResponse.from_user(system.user_manager.get_user(user_id))


@router.get("/{user_id}/summary", response_model=UserSummaryResponse)
async def get_user_summary(user_id: str, system: LoanSystem = Depends(get_loan_system)):
    """Borrower dashboard figures"""
    summary = system.reporting_engine.user_summary(user_id)
    return UserSummaryResponse.from_summary(summary)


@router.get("/{user_id}/notifications", response_model=List[NotificationResponse])
async def get_notifications(user_id: str, system: LoanSystem = Depends(get_loan_system)):
    """A user's notifications, newest first"""
    notifications = system.notification_manager.get_user_notifications(user_id)
    return [NotificationResponse.from_notification(n) for n in notifications]


@router.put("/notifications/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read(notification_id: str, system: LoanSystem = Depends(get_loan_system)):
    """Mark a notification as read"""
    notification = system.notification_manager.mark_as_read(notification_id)
    return NotificationResponse.from_notification(notification)
