"""
Relational schema.

Tables:
- users:               students, faculty and admins (role column)
- proposals:           faculty project proposals
- proposal_reviewers:  the fixed review panel of each proposal
- reviews:             one decision per (proposal, reviewer)
- applications:        student applications to approved proposals

Constraints carry part of the consistency rules:
- UNIQUE (proposal_id, reviewer_id) on reviews       -> one review per reviewer
- UNIQUE (student_id, proposal_id) on applications   -> no duplicate applications
- partial UNIQUE (student_id) WHERE status='selected' -> one selection per student
- CHECK 0 <= seats_remaining <= seats
"""

from sqlalchemy import (
    MetaData, Table, Column, Integer, String, Text, Boolean, DateTime,
    ForeignKey, UniqueConstraint, CheckConstraint, Index, func, text, true
)

from portal.db.database import engine

metadata = MetaData()

users = Table(
    "users", metadata,
    Column("user_id", Integer, primary_key=True, autoincrement=True),
    Column("login_id", String(32), nullable=False, unique=True),
    Column("password_hash", String(255), nullable=False),
    Column("role", String(16), nullable=False),
    Column("name", String(100), nullable=False),
    Column("research_area", String(100), index=True),
    Column("must_change_password", Boolean, nullable=False, server_default=true()),
    Column("pending_reviews", Integer, nullable=False, server_default=text("0")),
    Column("application_count", Integer, nullable=False, server_default=text("0")),
    Column("created_at", DateTime, nullable=False, server_default=func.now()),
    CheckConstraint("pending_reviews >= 0", name="ck_users_pending_reviews"),
    CheckConstraint("application_count >= 0", name="ck_users_application_count"),
)

proposals = Table(
    "proposals", metadata,
    Column("proposal_id", Integer, primary_key=True, autoincrement=True),
    Column("faculty_id", Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False),
    Column("research_area", String(100), nullable=False, index=True),
    Column("title", String(200), nullable=False),
    Column("abstract", Text, nullable=False),
    Column("timeline", String(200), nullable=False),
    Column("seats", Integer, nullable=False),
    Column("seats_remaining", Integer, nullable=False),
    Column("status", String(16), nullable=False, server_default=text("'pending'")),
    Column("approvals", Integer, nullable=False, server_default=text("0")),
    Column("created_at", DateTime, nullable=False, server_default=func.now()),
    Column("updated_at", DateTime, nullable=False, server_default=func.now()),
    CheckConstraint("seats >= 1", name="ck_proposals_seats"),
    CheckConstraint(
        "seats_remaining >= 0 AND seats_remaining <= seats",
        name="ck_proposals_seats_remaining",
    ),
)

proposal_reviewers = Table(
    "proposal_reviewers", metadata,
    Column("proposal_id", Integer, ForeignKey("proposals.proposal_id", ondelete="CASCADE"), primary_key=True),
    Column("reviewer_id", Integer, ForeignKey("users.user_id", ondelete="CASCADE"), primary_key=True),
    Column("position", Integer, nullable=False),
)

reviews = Table(
    "reviews", metadata,
    Column("review_id", Integer, primary_key=True, autoincrement=True),
    Column("proposal_id", Integer, ForeignKey("proposals.proposal_id", ondelete="CASCADE"), nullable=False),
    Column("reviewer_id", Integer, ForeignKey("users.user_id", ondelete="SET NULL")),
    Column("decision", String(16), nullable=False),
    Column("comment", Text),
    Column("reviewed_at", DateTime, nullable=False, server_default=func.now()),
    UniqueConstraint("proposal_id", "reviewer_id", name="uq_reviews_proposal_reviewer"),
)

applications = Table(
    "applications", metadata,
    Column("application_id", Integer, primary_key=True, autoincrement=True),
    Column("student_id", Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False),
    Column("proposal_id", Integer, ForeignKey("proposals.proposal_id", ondelete="CASCADE"), nullable=False),
    Column("status", String(16), nullable=False, server_default=text("'pending'")),
    Column("applied_at", DateTime, nullable=False, server_default=func.now()),
    Column("updated_at", DateTime, nullable=False, server_default=func.now()),
    UniqueConstraint("student_id", "proposal_id", name="uq_applications_student_proposal"),
)

Index(
    "ux_applications_one_selected",
    applications.c.student_id,
    unique=True,
    postgresql_where=text("status = 'selected'"),
    sqlite_where=text("status = 'selected'"),
)


def init_schema():
    """Create all tables and indexes (no-op for existing ones)."""
    metadata.create_all(engine)


def drop_schema():
    metadata.drop_all(engine)
