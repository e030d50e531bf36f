"""
Authentication Routes

POST /auth/login - Login and get JWT token
POST /auth/change-password - Change own password (students, faculty)
GET /auth/me - Get current user info
"""

from fastapi import APIRouter, Depends

from portal.core.auth import get_current_actor
from portal.models.actor import Actor
from portal.services import account_service
from portal.schemas.schemas import (
    LoginRequest, ChangePasswordRequest, TokenResponse, UserResponse, MessageResponse
)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/login", response_model=TokenResponse)
async def login(request: LoginRequest):
    """
    Login and receive JWT access token.

    Include token in requests: Authorization: Bearer <token>
    """
    return TokenResponse(**account_service.authenticate(request.login_id, request.password))


@router.post("/change-password", response_model=MessageResponse)
async def change_password(request: ChangePasswordRequest, actor: Actor = Depends(get_current_actor)):
    """Change own password. Clears the must-change-password flag."""
    account_service.change_password(actor, request.current_password, request.new_password)
    return MessageResponse(message="Password changed successfully")


@router.get("/me", response_model=UserResponse)
async def get_me(actor: Actor = Depends(get_current_actor)):
    """Get current authenticated user's info."""
    return UserResponse(**account_service.get_user(actor.user_id))
