"""
Pydantic Schemas - Request/Response Validation

All API request and response schemas in one file for simplicity.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict
from datetime import datetime, date
from enum import Enum


# ============================================================
# ENUMS
# ============================================================

class UserRole(str, Enum):
    student = "student"
    faculty = "faculty"
    admin = "admin"


class ProposalStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class ReviewDecision(str, Enum):
    approve = "approve"
    reject = "reject"


class ApplicationStatus(str, Enum):
    pending = "pending"
    selected = "selected"
    rejected = "rejected"


# ============================================================
# AUTH SCHEMAS
# ============================================================

class LoginRequest(BaseModel):
    login_id: str
    password: str

class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=6)

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: int
    login_id: str
    role: str
    name: str
    must_change_password: bool

class UserResponse(BaseModel):
    user_id: int
    login_id: str
    name: str
    role: str
    research_area: Optional[str] = None
    created_at: datetime


# ============================================================
# ADMIN SCHEMAS
# ============================================================

class UserCreate(BaseModel):
    login_id: str
    name: str = Field(..., min_length=2, max_length=100)
    role: UserRole
    research_area: Optional[str] = Field(None, max_length=100)
    date_of_birth: Optional[date] = None

class UserCreatedResponse(BaseModel):
    user_id: int
    login_id: str
    name: str
    role: str
    default_password: str


# ============================================================
# FACULTY DIRECTORY SCHEMAS
# ============================================================

class FacultyResponse(BaseModel):
    user_id: int
    login_id: str
    name: str
    research_area: str
    pending_reviews: int

class AreaDirectoryResponse(BaseModel):
    areas: Dict[str, List[FacultyResponse]]


# ============================================================
# PROPOSAL SCHEMAS
# ============================================================

class ProposalCreate(BaseModel):
    title: str = Field(..., min_length=3, max_length=200)
    abstract: str = Field(..., min_length=1, max_length=2500)
    timeline: str = Field(..., min_length=1, max_length=200)
    seats: int = Field(..., ge=1)

class RejectRequest(BaseModel):
    comment: str = Field(..., max_length=2500)

    @field_validator("comment")
    @classmethod
    def comment_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Feedback comment is required")
        return value

class ReviewResponse(BaseModel):
    reviewer_id: Optional[int] = None
    reviewer_name: str
    decision: ReviewDecision
    comment: Optional[str] = None
    reviewed_at: datetime

class ProposalResponse(BaseModel):
    proposal_id: int
    faculty_id: int
    faculty_name: str
    research_area: str
    title: str
    abstract: str
    timeline: str
    seats: int
    seats_remaining: int
    status: ProposalStatus
    approvals: int
    reviewer_ids: List[int] = []
    reviews: List[ReviewResponse] = []
    created_at: datetime
    updated_at: datetime


# ============================================================
# APPLICATION SCHEMAS
# ============================================================

class ApplicationCreate(BaseModel):
    proposal_id: int

class ApplicationResponse(BaseModel):
    application_id: int
    student_id: int
    student_name: str
    proposal_id: int
    proposal_title: str
    status: ApplicationStatus
    applied_at: datetime
    updated_at: datetime


# ============================================================
# GENERIC SCHEMAS
# ============================================================

class MessageResponse(BaseModel):
    message: str
    success: bool = True

class ErrorResponse(BaseModel):
    detail: str
    error: str
    retryable: bool = False
