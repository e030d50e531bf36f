"""
Application Consistency Engine

Rules enforced here:
- a student holds at most max_applications_per_student applications,
  counted across every status (users.application_count)
- at most one application per (student, proposal)
- applying takes a seat; a proposal's seats_remaining never drops below 0
- a student has at most one 'selected' application system-wide
- selecting a student rejects all of their other applications, without
  giving those seats back
- an explicit reject by the proposal owner gives the seat back

Each operation is one transaction. Every write is guarded (conditional
UPDATE or unique constraint) so a concurrent request that slipped past the
pre-checks still fails cleanly and rolls back.
"""

from typing import List

import structlog
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from portal.core.config import get_settings
from portal.core.errors import (
    AlreadySelectedElsewhere, ApplicationLimitExceeded, DuplicateApplication,
    NotApplicable, NotAuthorized, NotFound
)
from portal.db.database import get_db_session, execute_raw_sql
from portal.models.actor import Actor
from portal.schemas.schemas import ApplicationStatus, UserRole

settings = get_settings()
log = structlog.get_logger(__name__)


APPLICATION_SELECT = """
    SELECT a.application_id, a.student_id, s.name AS student_name, a.proposal_id,
           p.title AS proposal_title, a.status, a.applied_at, a.updated_at
    FROM applications a
    JOIN users s ON a.student_id = s.user_id
    JOIN proposals p ON a.proposal_id = p.proposal_id
"""


def get_application(application_id: int) -> dict:
    results = execute_raw_sql(APPLICATION_SELECT + " WHERE a.application_id = :aid", {"aid": application_id})
    if not results:
        raise NotFound("Application not found")
    return results[0]


# ============================================================
# APPLY
# ============================================================

def apply(actor: Actor, proposal_id: int) -> dict:
    """
    Create a pending application and take one seat.

    Raises:
        NotFound: unknown proposal
        ApplicationLimitExceeded: student already holds the maximum
        DuplicateApplication: student already applied to this proposal
        NotApplicable: proposal not approved, or no seats left
    """
    actor.require(UserRole.student, action="apply to projects")
    cap = settings.max_applications_per_student

    with get_db_session() as db:
        proposal = db.execute(
            text("SELECT proposal_id, status, seats_remaining FROM proposals WHERE proposal_id = :pid"),
            {"pid": proposal_id}
        ).mappings().first()
        if not proposal:
            raise NotFound("Project not found")

        # Per-student lock and cap check in one statement
        result = db.execute(
            text("""
                UPDATE users SET application_count = application_count + 1
                WHERE user_id = :sid AND application_count < :cap
            """),
            {"sid": actor.user_id, "cap": cap}
        )
        if result.rowcount != 1:
            raise ApplicationLimitExceeded(f"Cannot apply to more than {cap} projects")

        existing = db.execute(
            text("SELECT 1 FROM applications WHERE student_id = :sid AND proposal_id = :pid"),
            {"sid": actor.user_id, "pid": proposal_id}
        ).first()
        if existing:
            raise DuplicateApplication()

        result = db.execute(
            text("""
                UPDATE proposals SET seats_remaining = seats_remaining - 1, updated_at = CURRENT_TIMESTAMP
                WHERE proposal_id = :pid AND status = 'approved' AND seats_remaining > 0
            """),
            {"pid": proposal_id}
        )
        if result.rowcount != 1:
            raise NotApplicable()

        try:
            application_id = db.execute(
                text("""
                    INSERT INTO applications (student_id, proposal_id, status)
                    VALUES (:sid, :pid, 'pending')
                    RETURNING application_id
                """),
                {"sid": actor.user_id, "pid": proposal_id}
            ).scalar_one()
        except IntegrityError as exc:
            raise DuplicateApplication() from exc

    log.info(
        "application_created",
        application_id=application_id,
        student_id=actor.user_id,
        proposal_id=proposal_id,
        seats_remaining=proposal["seats_remaining"] - 1,
    )
    return get_application(application_id)


# ============================================================
# SELECT / REJECT (proposal owner)
# ============================================================

def _load_owned(db, actor: Actor, application_id: int) -> dict:
    row = db.execute(
        text("""
            SELECT a.application_id, a.student_id, a.proposal_id, a.status, p.faculty_id
            FROM applications a JOIN proposals p ON a.proposal_id = p.proposal_id
            WHERE a.application_id = :aid
        """),
        {"aid": application_id}
    ).mappings().first()
    if not row:
        raise NotFound("Application not found")
    if row["faculty_id"] != actor.user_id:
        raise NotAuthorized("Not authorized for this application")
    return dict(row)


def select(actor: Actor, application_id: int) -> dict:
    """
    Select the student for this application.

    Every other application of the same student is set to 'rejected'.
    Their seats are not restored.

    Raises:
        NotFound, NotAuthorized, AlreadySelectedElsewhere
        NotApplicable: the application was already rejected
    """
    actor.require(UserRole.faculty, action="select students")

    with get_db_session() as db:
        application = _load_owned(db, actor, application_id)
        student_id = application["student_id"]

        existing = db.execute(
            text("SELECT application_id FROM applications WHERE student_id = :sid AND status = 'selected'"),
            {"sid": student_id}
        ).first()
        if existing:
            raise AlreadySelectedElsewhere()

        if application["status"] == ApplicationStatus.rejected.value:
            raise NotApplicable("A rejected application cannot be selected")

        # ux_applications_one_selected rejects a concurrent second selection
        try:
            db.execute(
                text("""
                    UPDATE applications SET status = 'selected', updated_at = CURRENT_TIMESTAMP
                    WHERE application_id = :aid
                """),
                {"aid": application_id}
            )
        except IntegrityError as exc:
            raise AlreadySelectedElsewhere() from exc

        result = db.execute(
            text("""
                UPDATE applications SET status = 'rejected', updated_at = CURRENT_TIMESTAMP
                WHERE student_id = :sid AND application_id != :aid AND status != 'rejected'
            """),
            {"sid": student_id, "aid": application_id}
        )
        siblings_rejected = result.rowcount

    log.info(
        "application_selected",
        application_id=application_id,
        student_id=student_id,
        proposal_id=application["proposal_id"],
        siblings_rejected=siblings_rejected,
    )
    return get_application(application_id)


def reject(actor: Actor, application_id: int) -> dict:
    """
    Reject the application and give its seat back to the proposal.

    Rejecting an application that is already rejected changes nothing.

    Raises:
        NotFound, NotAuthorized
    """
    actor.require(UserRole.faculty, action="reject applications")

    with get_db_session() as db:
        application = _load_owned(db, actor, application_id)

        result = db.execute(
            text("""
                UPDATE applications SET status = 'rejected', updated_at = CURRENT_TIMESTAMP
                WHERE application_id = :aid AND status != 'rejected'
            """),
            {"aid": application_id}
        )
        seat_restored = False
        if result.rowcount == 1:
            seat_restored = db.execute(
                text("""
                    UPDATE proposals SET seats_remaining = seats_remaining + 1, updated_at = CURRENT_TIMESTAMP
                    WHERE proposal_id = :pid AND seats_remaining < seats
                """),
                {"pid": application["proposal_id"]}
            ).rowcount == 1

    log.info(
        "application_rejected",
        application_id=application_id,
        proposal_id=application["proposal_id"],
        seat_restored=seat_restored,
    )
    return get_application(application_id)


# ============================================================
# READ ACCESSORS
# ============================================================

def list_for_student(actor: Actor) -> List[dict]:
    actor.require(UserRole.student, action="access this endpoint")
    return execute_raw_sql(
        APPLICATION_SELECT + " WHERE a.student_id = :sid ORDER BY a.applied_at DESC, a.application_id DESC",
        {"sid": actor.user_id}
    )


def list_for_faculty(actor: Actor) -> List[dict]:
    """Applications to any proposal owned by the actor."""
    actor.require(UserRole.faculty, action="access this endpoint")
    return execute_raw_sql(
        APPLICATION_SELECT + " WHERE p.faculty_id = :fid ORDER BY a.applied_at DESC, a.application_id DESC",
        {"fid": actor.user_id}
    )
