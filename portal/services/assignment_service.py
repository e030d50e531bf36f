"""
Reviewer Assignment Engine

Picks the review panel for a new proposal.

HOW IT WORKS:
1. Ring = faculty of the proposer's research area, proposer excluded,
   sorted by login_id (recomputed on every submission)
2. offset = (proposals already in the area * panel_size) mod len(ring)
3. Panel = panel_size consecutive ring entries from offset, wrapping

Successive proposals in an area therefore walk around the ring instead of
landing on the same faculty every time.

The load counter (users.pending_reviews) is only changed here:
+1 per panel member on assignment, -1 per panel member when the
proposal's review cycle ends.
"""

from typing import List, Optional, Sequence

import structlog
from sqlalchemy import text, bindparam
from sqlalchemy.orm import Session

from portal.core.config import get_settings
from portal.core.errors import InsufficientReviewers, WorkloadExceeded
from portal.services.directory_service import faculty_ring

settings = get_settings()
log = structlog.get_logger(__name__)


def select_panel(ring: Sequence, prior_proposals: int, panel_size: Optional[int] = None) -> list:
    """
    Pick panel_size consecutive ring entries starting at the rotation offset.

    Args:
        ring: eligible faculty, already ordered by login_id
        prior_proposals: proposals previously submitted in the area
        panel_size: reviewers per proposal (defaults to settings.panel_size)

    Raises:
        InsufficientReviewers: ring is smaller than the panel
    """
    if panel_size is None:
        panel_size = settings.panel_size
    if panel_size < 1:
        raise ValueError(f"panel_size must be at least 1, got {panel_size}")
    if len(ring) < panel_size:
        raise InsufficientReviewers(
            f"Not enough faculty in this area of research for proper review "
            f"({len(ring)} eligible, {panel_size} required)"
        )

    offset = (prior_proposals * panel_size) % len(ring)
    return [ring[(offset + i) % len(ring)] for i in range(panel_size)]


def count_area_proposals(db: Session, area: str) -> int:
    result = db.execute(
        text("SELECT COUNT(*) FROM proposals WHERE research_area = :area"),
        {"area": area}
    )
    return result.scalar_one()


def assign_reviewers(db: Session, area: str, proposer_id: int) -> List[dict]:
    """
    Select the panel and reserve one unit of review load on each member.

    Runs inside the caller's transaction; any raise here rolls back the
    whole submission, so no counter is touched unless the proposal is
    created as well.

    Raises:
        InsufficientReviewers: fewer than panel_size eligible faculty
        WorkloadExceeded: a panel member is at the max_pending_reviews ceiling
    """
    ring = faculty_ring(db, area, proposer_id)
    prior = count_area_proposals(db, area)
    panel = select_panel(ring, prior)

    overloaded = [f for f in panel if f["pending_reviews"] >= settings.max_pending_reviews]
    if overloaded:
        log.info(
            "assignment_refused",
            area=area,
            reason="workload",
            overloaded=[f["login_id"] for f in overloaded],
        )
        raise WorkloadExceeded()

    reviewer_ids = [f["user_id"] for f in panel]

    # Guarded increment: a concurrent assignment may have filled someone up
    # between the read above and this write.
    result = db.execute(
        text("""
            UPDATE users SET pending_reviews = pending_reviews + 1
            WHERE user_id IN :ids AND pending_reviews < :ceiling
        """).bindparams(bindparam("ids", expanding=True)),
        {"ids": reviewer_ids, "ceiling": settings.max_pending_reviews}
    )
    if result.rowcount != len(reviewer_ids):
        raise WorkloadExceeded()

    log.info(
        "reviewers_assigned",
        area=area,
        prior_proposals=prior,
        ring_size=len(ring),
        panel=[f["login_id"] for f in panel],
    )
    return panel


def release_reviewers(db: Session, proposal_id: int) -> int:
    """Drop one unit of review load from every panel member of a proposal."""
    result = db.execute(
        text("""
            UPDATE users SET pending_reviews = pending_reviews - 1
            WHERE pending_reviews > 0 AND user_id IN (
                SELECT reviewer_id FROM proposal_reviewers WHERE proposal_id = :pid
            )
        """),
        {"pid": proposal_id}
    )
    return result.rowcount
