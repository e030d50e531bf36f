"""
Proposal Routes

GET /proposals - List proposals (students: approved only)
POST /proposals - Submit proposal (faculty only)
GET /proposals/my - Own proposals (faculty only)
GET /proposals/review - Proposals awaiting my review (faculty only)
GET /proposals/{proposal_id} - Proposal details with panel and reviews
POST /proposals/{proposal_id}/approve - Approve as panel member
POST /proposals/{proposal_id}/reject - Reject with feedback as panel member
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from portal.core.auth import get_current_actor, get_current_faculty
from portal.models.actor import Actor
from portal.services import proposal_service, review_service
from portal.schemas.schemas import (
    ProposalCreate, ProposalResponse, ProposalStatus, RejectRequest
)

router = APIRouter(prefix="/proposals", tags=["Proposals"])


@router.get("", response_model=List[ProposalResponse])
async def list_proposals(
    status: Optional[ProposalStatus] = Query(None),
    actor: Actor = Depends(get_current_actor)
):
    return [ProposalResponse(**p) for p in proposal_service.list_proposals(actor, status)]


@router.post("", response_model=ProposalResponse, status_code=201)
async def create_proposal(data: ProposalCreate, faculty: Actor = Depends(get_current_faculty)):
    """Submit a proposal. A panel of reviewers from the same research area is assigned."""
    return ProposalResponse(**proposal_service.submit_proposal(faculty, data))


@router.get("/my", response_model=List[ProposalResponse])
async def my_proposals(faculty: Actor = Depends(get_current_faculty)):
    return [ProposalResponse(**p) for p in proposal_service.list_own_proposals(faculty)]


@router.get("/review", response_model=List[ProposalResponse])
async def proposals_to_review(faculty: Actor = Depends(get_current_faculty)):
    return [ProposalResponse(**p) for p in proposal_service.list_awaiting_review(faculty)]


@router.get("/{proposal_id}", response_model=ProposalResponse)
async def get_proposal(proposal_id: int, actor: Actor = Depends(get_current_actor)):
    return ProposalResponse(**proposal_service.get_proposal_for(actor, proposal_id))


@router.post("/{proposal_id}/approve", response_model=ProposalResponse)
async def approve_proposal(proposal_id: int, faculty: Actor = Depends(get_current_faculty)):
    return ProposalResponse(**review_service.approve(faculty, proposal_id))


@router.post("/{proposal_id}/reject", response_model=ProposalResponse)
async def reject_proposal(proposal_id: int, request: RejectRequest,
                          faculty: Actor = Depends(get_current_faculty)):
    """Reject with feedback. One rejection closes the review."""
    return ProposalResponse(**review_service.reject(faculty, proposal_id, request.comment))
