"""
Proposal Service - submission and read accessors.

Submission goes through the assignment engine; status changes after
that belong to the review service.
"""

from typing import List, Optional

import structlog
from sqlalchemy import text, bindparam

from portal.core.config import get_settings
from portal.core.errors import InvalidInput, NotFound
from portal.db.database import get_db_session, execute_raw_sql
from portal.models.actor import Actor
from portal.schemas.schemas import UserRole, ProposalStatus, ProposalCreate
from portal.services.assignment_service import assign_reviewers

settings = get_settings()
log = structlog.get_logger(__name__)


PROPOSAL_SELECT = """
    SELECT p.proposal_id, p.faculty_id, u.name AS faculty_name, p.research_area,
           p.title, p.abstract, p.timeline, p.seats, p.seats_remaining,
           p.status, p.approvals, p.created_at, p.updated_at
    FROM proposals p JOIN users u ON p.faculty_id = u.user_id
"""


# ============================================================
# SUBMISSION
# ============================================================

def submit_proposal(actor: Actor, data: ProposalCreate) -> dict:
    """
    Create a pending proposal with its review panel.

    Panel selection, load reservation, proposal insert and panel insert
    commit together or not at all.
    """
    actor.require(UserRole.faculty, action="create projects")
    if not actor.research_area:
        raise InvalidInput("Faculty account has no research area")
    if len(data.abstract) > settings.max_abstract_chars:
        raise InvalidInput("Abstract cannot exceed 500 words (approx. 2500 characters)")
    if data.seats < 1:
        raise InvalidInput("A project needs at least one seat")

    with get_db_session() as db:
        panel = assign_reviewers(db, actor.research_area, actor.user_id)

        result = db.execute(
            text("""
                INSERT INTO proposals (faculty_id, research_area, title, abstract, timeline,
                    seats, seats_remaining, status, approvals)
                VALUES (:fid, :area, :title, :abstract, :timeline, :seats, :seats, 'pending', 0)
                RETURNING proposal_id
            """),
            {
                "fid": actor.user_id, "area": actor.research_area, "title": data.title,
                "abstract": data.abstract, "timeline": data.timeline, "seats": data.seats
            }
        )
        proposal_id = result.scalar_one()

        db.execute(
            text("""
                INSERT INTO proposal_reviewers (proposal_id, reviewer_id, position)
                VALUES (:pid, :rid, :pos)
            """),
            [
                {"pid": proposal_id, "rid": reviewer["user_id"], "pos": position}
                for position, reviewer in enumerate(panel)
            ]
        )

    log.info(
        "proposal_submitted",
        proposal_id=proposal_id,
        faculty_id=actor.user_id,
        area=actor.research_area,
        reviewer_ids=[r["user_id"] for r in panel],
    )
    return get_proposal(proposal_id)


# ============================================================
# READ ACCESSORS
# ============================================================

def _attach_reviews(rows: List[dict]) -> List[dict]:
    """Add reviewer_ids (panel order) and reviews (submission order) to proposal rows."""
    if not rows:
        return rows
    ids = [r["proposal_id"] for r in rows]
    with get_db_session() as db:
        panel_rows = db.execute(
            text("""
                SELECT proposal_id, reviewer_id FROM proposal_reviewers
                WHERE proposal_id IN :ids ORDER BY proposal_id, position
            """).bindparams(bindparam("ids", expanding=True)),
            {"ids": ids}
        ).mappings().all()
        review_rows = db.execute(
            text("""
                SELECT r.proposal_id, r.reviewer_id, COALESCE(u.name, 'Former faculty') AS reviewer_name,
                       r.decision, r.comment, r.reviewed_at
                FROM reviews r LEFT JOIN users u ON r.reviewer_id = u.user_id
                WHERE r.proposal_id IN :ids ORDER BY r.review_id
            """).bindparams(bindparam("ids", expanding=True)),
            {"ids": ids}
        ).mappings().all()

    by_id = {r["proposal_id"]: r for r in rows}
    for r in rows:
        r["reviewer_ids"] = []
        r["reviews"] = []
    for p in panel_rows:
        by_id[p["proposal_id"]]["reviewer_ids"].append(p["reviewer_id"])
    for rv in review_rows:
        review = dict(rv)
        by_id[review.pop("proposal_id")]["reviews"].append(review)
    return rows


def get_proposal(proposal_id: int) -> dict:
    results = execute_raw_sql(PROPOSAL_SELECT + " WHERE p.proposal_id = :pid", {"pid": proposal_id})
    if not results:
        raise NotFound("Project not found")
    return _attach_reviews(results)[0]


def get_proposal_for(actor: Actor, proposal_id: int) -> dict:
    """Students only see approved proposals."""
    proposal = get_proposal(proposal_id)
    if actor.is_student and proposal["status"] != ProposalStatus.approved.value:
        raise NotFound("Project not found")
    return proposal


def list_proposals(actor: Actor, status: Optional[ProposalStatus] = None) -> List[dict]:
    """All proposals, newest first. Students are limited to approved ones."""
    if actor.is_student:
        status = ProposalStatus.approved
    sql = PROPOSAL_SELECT
    params = {}
    if status:
        sql += " WHERE p.status = :status"
        params["status"] = status.value
    sql += " ORDER BY p.created_at DESC, p.proposal_id DESC"
    return _attach_reviews(execute_raw_sql(sql, params))


def list_own_proposals(actor: Actor) -> List[dict]:
    actor.require(UserRole.faculty, action="access this endpoint")
    sql = PROPOSAL_SELECT + " WHERE p.faculty_id = :fid ORDER BY p.created_at DESC, p.proposal_id DESC"
    return _attach_reviews(execute_raw_sql(sql, {"fid": actor.user_id}))


def list_awaiting_review(actor: Actor) -> List[dict]:
    """Pending proposals on the actor's panel that the actor has not reviewed, oldest first."""
    actor.require(UserRole.faculty, action="review projects")
    sql = PROPOSAL_SELECT + """
        JOIN proposal_reviewers pr ON pr.proposal_id = p.proposal_id AND pr.reviewer_id = :rid
        WHERE p.status = 'pending'
          AND NOT EXISTS (
              SELECT 1 FROM reviews r WHERE r.proposal_id = p.proposal_id AND r.reviewer_id = :rid
          )
        ORDER BY p.created_at, p.proposal_id
    """
    return _attach_reviews(execute_raw_sql(sql, {"rid": actor.user_id}))
