"""
Schemas module - Request/Response schemas for API endpoints.
"""

from portal.schemas.schemas import (
    UserRole,
    ProposalStatus,
    ReviewDecision,
    ApplicationStatus,
)

__all__ = ["UserRole", "ProposalStatus", "ReviewDecision", "ApplicationStatus"]
