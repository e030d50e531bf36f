"""
Review Consensus

Records panel decisions and moves a proposal out of 'pending'.

Policy: unanimous panel.
- one 'reject' (with non-blank feedback) rejects the proposal at once,
  whatever approvals came before it
- the proposal is approved when every panel member has approved

pending -> approved | rejected, both terminal. A proposal never reopens;
the owner submits a new one instead.

When the proposal leaves 'pending', each panel member's load counter drops
by one. The transition UPDATE is guarded on status = 'pending', so this
happens exactly once per proposal.
"""

from typing import List, Optional

import structlog
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from portal.core.config import get_settings
from portal.core.errors import (
    AlreadyReviewed, InvalidInput, NotAuthorized, NotFound, ReviewClosed
)
from portal.db.database import get_db_session
from portal.models.actor import Actor
from portal.schemas.schemas import UserRole, ProposalStatus, ReviewDecision
from portal.services.assignment_service import release_reviewers
from portal.services.proposal_service import get_proposal

settings = get_settings()
log = structlog.get_logger(__name__)


def _validate_feedback(decision: ReviewDecision, comment: Optional[str]) -> Optional[str]:
    if decision == ReviewDecision.reject:
        if not comment or not comment.strip():
            raise InvalidInput("Feedback comment is required when rejecting a project")
        if len(comment) > settings.max_feedback_chars:
            raise InvalidInput("Feedback comment must not exceed 500 words")
        return comment
    if comment and len(comment) > settings.max_feedback_chars:
        raise InvalidInput("Feedback comment must not exceed 500 words")
    return comment or None


def record_review(actor: Actor, proposal_id: int, decision: ReviewDecision,
                  comment: Optional[str] = None) -> dict:
    """
    Record one panel member's decision and apply the consensus rule.

    Raises:
        NotFound: unknown proposal
        NotAuthorized: actor is not on the proposal's panel
        AlreadyReviewed: actor already decided on this proposal
        ReviewClosed: proposal is already approved or rejected
        InvalidInput: reject without feedback, or feedback too long
    """
    actor.require(UserRole.faculty, action="review projects")
    decision = ReviewDecision(decision)

    with get_db_session() as db:
        proposal = db.execute(
            text("SELECT proposal_id, status FROM proposals WHERE proposal_id = :pid"),
            {"pid": proposal_id}
        ).mappings().first()
        if not proposal:
            raise NotFound("Project not found")

        panel = db.execute(
            text("SELECT reviewer_id FROM proposal_reviewers WHERE proposal_id = :pid"),
            {"pid": proposal_id}
        ).scalars().all()
        if actor.user_id not in panel:
            raise NotAuthorized("You are not assigned to review this project")

        reviewed = db.execute(
            text("SELECT 1 FROM reviews WHERE proposal_id = :pid AND reviewer_id = :rid"),
            {"pid": proposal_id, "rid": actor.user_id}
        ).first()
        if reviewed:
            raise AlreadyReviewed()

        if proposal["status"] != ProposalStatus.pending.value:
            raise ReviewClosed()

        comment = _validate_feedback(decision, comment)

        # Takes the row lock on the proposal; concurrent reviews of the same
        # proposal queue up here and re-check the status afterwards.
        approvals = db.execute(
            text("""
                UPDATE proposals
                SET approvals = approvals + :inc, updated_at = CURRENT_TIMESTAMP
                WHERE proposal_id = :pid AND status = 'pending'
                RETURNING approvals
            """),
            {"pid": proposal_id, "inc": 1 if decision == ReviewDecision.approve else 0}
        ).scalar_one_or_none()
        if approvals is None:
            raise ReviewClosed()

        try:
            db.execute(
                text("""
                    INSERT INTO reviews (proposal_id, reviewer_id, decision, comment)
                    VALUES (:pid, :rid, :decision, :comment)
                """),
                {"pid": proposal_id, "rid": actor.user_id, "decision": decision.value, "comment": comment}
            )
        except IntegrityError as exc:
            raise AlreadyReviewed() from exc

        new_status = None
        if decision == ReviewDecision.reject:
            new_status = ProposalStatus.rejected
        elif approvals >= len(panel):
            new_status = ProposalStatus.approved

        if new_status:
            _finalize(db, proposal_id, new_status)

    log.info(
        "review_recorded",
        proposal_id=proposal_id,
        reviewer_id=actor.user_id,
        decision=decision.value,
        approvals=approvals,
    )
    if new_status:
        log.info("proposal_finalized", proposal_id=proposal_id, status=new_status.value)
    return get_proposal(proposal_id)


def _finalize(db: Session, proposal_id: int, status: ProposalStatus) -> None:
    result = db.execute(
        text("""
            UPDATE proposals SET status = :status, updated_at = CURRENT_TIMESTAMP
            WHERE proposal_id = :pid AND status = 'pending'
        """),
        {"pid": proposal_id, "status": status.value}
    )
    if result.rowcount != 1:
        raise ReviewClosed()
    release_reviewers(db, proposal_id)


def withdraw_reviewer(db: Session, reviewer_id: int) -> List[int]:
    """
    Take a departing faculty member off every panel.

    On pending proposals their approval stops counting, so the remaining
    members still have to approve unanimously. A pending proposal whose
    remaining members have all approved already is approved here and its
    panel load released. Past reviews stay, unattributed.

    Runs inside the caller's transaction. Returns the ids of proposals
    approved this way.
    """
    pending = db.execute(
        text("""
            SELECT pr.proposal_id FROM proposal_reviewers pr
            JOIN proposals p ON p.proposal_id = pr.proposal_id
            WHERE pr.reviewer_id = :rid AND p.status = 'pending'
            ORDER BY pr.proposal_id
        """),
        {"rid": reviewer_id}
    ).scalars().all()

    db.execute(
        text("""
            UPDATE proposals SET approvals = approvals - 1, updated_at = CURRENT_TIMESTAMP
            WHERE status = 'pending' AND approvals > 0 AND proposal_id IN (
                SELECT proposal_id FROM reviews WHERE reviewer_id = :rid AND decision = 'approve'
            )
        """),
        {"rid": reviewer_id}
    )
    db.execute(text("DELETE FROM proposal_reviewers WHERE reviewer_id = :rid"), {"rid": reviewer_id})
    db.execute(text("UPDATE reviews SET reviewer_id = NULL WHERE reviewer_id = :rid"), {"rid": reviewer_id})

    approved = []
    for proposal_id in pending:
        row = db.execute(
            text("""
                SELECT p.approvals,
                       (SELECT COUNT(*) FROM proposal_reviewers pr WHERE pr.proposal_id = p.proposal_id) AS panel_size
                FROM proposals p WHERE p.proposal_id = :pid
            """),
            {"pid": proposal_id}
        ).mappings().one()
        # an emptied panel approves nothing
        if row["panel_size"] and row["approvals"] >= row["panel_size"]:
            _finalize(db, proposal_id, ProposalStatus.approved)
            approved.append(proposal_id)

    log.info("reviewer_withdrawn", reviewer_id=reviewer_id, pending_panels=len(pending), approved=approved)
    return approved


def approve(actor: Actor, proposal_id: int) -> dict:
    return record_review(actor, proposal_id, ReviewDecision.approve)


def reject(actor: Actor, proposal_id: int, comment: str) -> dict:
    return record_review(actor, proposal_id, ReviewDecision.reject, comment)
