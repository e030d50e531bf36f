"""
Admin Routes

POST /admin/users - Create student/faculty account
GET /admin/users - List all non-admin users
DELETE /admin/users/{user_id} - Delete user and related data
POST /admin/users/{user_id}/reset - Reset user data
"""

from typing import List

from fastapi import APIRouter, Depends

from portal.core.auth import get_current_admin
from portal.models.actor import Actor
from portal.services import account_service
from portal.schemas.schemas import UserCreate, UserCreatedResponse, UserResponse, MessageResponse

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.post("/users", response_model=UserCreatedResponse, status_code=201)
async def create_user(data: UserCreate, admin: Actor = Depends(get_current_admin)):
    """Create an account. The generated default password is returned once."""
    return UserCreatedResponse(**account_service.create_user(admin, data))


@router.get("/users", response_model=List[UserResponse])
async def list_users(admin: Actor = Depends(get_current_admin)):
    return [UserResponse(**u) for u in account_service.list_users(admin)]


@router.delete("/users/{user_id}", response_model=MessageResponse)
async def delete_user(user_id: int, admin: Actor = Depends(get_current_admin)):
    """Delete a user. Faculty lose their proposals, students their applications."""
    account_service.delete_user(admin, user_id)
    return MessageResponse(message="User and related data deleted successfully")


@router.post("/users/{user_id}/reset", response_model=MessageResponse)
async def reset_user(user_id: int, admin: Actor = Depends(get_current_admin)):
    account_service.reset_user(admin, user_id)
    return MessageResponse(message="User data reset successfully")
