"""
Account Service - login, password changes and admin user management.

Login ids:
- student: registration number YYBBBNNNNN (e.g. 24CSE12345)
- faculty: six digits

Default passwords handed out on creation (user must change on first login):
- student: date of birth as DDMMYY
- faculty: first 4 characters of the research area + first 3 of the name,
  whitespace removed
"""

import re
from datetime import date
from typing import List, Optional

import structlog
from sqlalchemy import text
from sqlalchemy.orm import Session

from portal.core.auth import hash_password, verify_password, create_access_token
from portal.core.errors import InvalidCredentials, InvalidInput, NotAuthorized, NotFound
from portal.db.database import get_db_session, execute_raw_sql
from portal.models.actor import Actor
from portal.schemas.schemas import UserRole, UserCreate
from portal.services import review_service
from portal.services.assignment_service import release_reviewers

log = structlog.get_logger(__name__)

STUDENT_LOGIN_RE = re.compile(r"^\d{2}[A-Z]{3}\d{5}$")
FACULTY_LOGIN_RE = re.compile(r"^\d{6}$")

DEMO_ADMIN = ("admin123", "admin123", "System Administrator")
DEMO_AREA = "Computer Science"
DEMO_FACULTY = [
    ("123456", "Dr. John Smith"),
    ("123457", "Dr. Alice Brown"),
    ("123458", "Dr. Ravi Kumar"),
    ("123459", "Dr. Mei Chen"),
    ("123460", "Dr. Omar Haddad"),
    ("123461", "Dr. Sara Lopez"),
]
DEMO_STUDENT = ("24CSE12345", "Jane Doe", date(2000, 1, 1))


# ============================================================
# DEFAULT PASSWORDS
# ============================================================

def default_student_password(date_of_birth: date) -> str:
    return date_of_birth.strftime("%d%m%y")


def default_faculty_password(research_area: str, name: str) -> str:
    area_prefix = re.sub(r"\s+", "", research_area)[:4]
    name_prefix = re.sub(r"\s+", "", name)[:3]
    return area_prefix + name_prefix


# ============================================================
# AUTH
# ============================================================

def authenticate(login_id: str, password: str) -> dict:
    """Check credentials and issue a JWT."""
    with get_db_session() as db:
        user = db.execute(
            text("""
                SELECT user_id, login_id, password_hash, role, name, must_change_password
                FROM users WHERE login_id = :login_id
            """),
            {"login_id": login_id}
        ).mappings().first()

    if not user or not verify_password(password, user["password_hash"]):
        log.info("login_failed", login_id=login_id)
        raise InvalidCredentials()

    token = create_access_token(data={"sub": str(user["user_id"]), "role": user["role"]})
    log.info("login_succeeded", user_id=user["user_id"], role=user["role"])
    return {
        "access_token": token,
        "user_id": user["user_id"],
        "login_id": user["login_id"],
        "role": user["role"],
        "name": user["name"],
        "must_change_password": bool(user["must_change_password"]),
    }


def change_password(actor: Actor, current_password: str, new_password: str) -> None:
    actor.require(UserRole.student, UserRole.faculty, action="change password through this endpoint")
    with get_db_session() as db:
        row = db.execute(
            text("SELECT password_hash FROM users WHERE user_id = :id"),
            {"id": actor.user_id}
        ).first()
        if not row:
            raise NotFound("User not found")
        if not verify_password(current_password, row[0]):
            raise InvalidInput("Current password is incorrect")
        db.execute(
            text("UPDATE users SET password_hash = :hash, must_change_password = :flag WHERE user_id = :id"),
            {"hash": hash_password(new_password), "flag": False, "id": actor.user_id}
        )
    log.info("password_changed", user_id=actor.user_id)


def get_user(user_id: int) -> dict:
    results = execute_raw_sql(
        "SELECT user_id, login_id, name, role, research_area, created_at FROM users WHERE user_id = :id",
        {"id": user_id}
    )
    if not results:
        raise NotFound("User not found")
    return results[0]


# ============================================================
# ADMIN
# ============================================================

def _insert_user(db: Session, login_id: str, name: str, role: UserRole, password: str,
                 research_area: Optional[str] = None, must_change_password: bool = True) -> int:
    return db.execute(
        text("""
            INSERT INTO users (login_id, password_hash, role, name, research_area, must_change_password)
            VALUES (:login_id, :hash, :role, :name, :area, :flag)
            RETURNING user_id
        """),
        {
            "login_id": login_id, "hash": hash_password(password), "role": role.value,
            "name": name, "area": research_area, "flag": must_change_password
        }
    ).scalar_one()


def create_user(actor: Actor, data: UserCreate) -> dict:
    """
    Create a student or faculty account with its default password.

    The default password is returned once so the admin can hand it out.
    """
    actor.require(UserRole.admin, action="create users")

    if data.role == UserRole.student:
        if not STUDENT_LOGIN_RE.match(data.login_id):
            raise InvalidInput("Invalid format for Registration Number. Use YYBBBNNNNN.")
        if not data.date_of_birth:
            raise InvalidInput("Date of birth is required for students")
        password = default_student_password(data.date_of_birth)
        research_area = None
    elif data.role == UserRole.faculty:
        if not FACULTY_LOGIN_RE.match(data.login_id):
            raise InvalidInput("Invalid format for Login ID. Use 6 digits only.")
        if not data.research_area or not data.research_area.strip():
            raise InvalidInput("Area of research is required for faculty")
        research_area = data.research_area.strip()
        password = default_faculty_password(research_area, data.name)
    else:
        raise InvalidInput("Only student and faculty accounts can be created")

    with get_db_session() as db:
        exists = db.execute(
            text("SELECT 1 FROM users WHERE login_id = :login_id"),
            {"login_id": data.login_id}
        ).first()
        if exists:
            raise InvalidInput("Login ID already exists")
        user_id = _insert_user(db, data.login_id, data.name, data.role, password, research_area)

    log.info("user_created", user_id=user_id, login_id=data.login_id, role=data.role.value)
    return {
        "user_id": user_id,
        "login_id": data.login_id,
        "name": data.name,
        "role": data.role.value,
        "default_password": password,
    }


def list_users(actor: Actor) -> List[dict]:
    actor.require(UserRole.admin, action="view users")
    return execute_raw_sql("""
        SELECT user_id, login_id, name, role, research_area, created_at
        FROM users WHERE role != 'admin'
        ORDER BY created_at DESC, user_id DESC
    """)


def _purge_faculty_proposals(db: Session, faculty_id: int) -> None:
    """Remove a faculty member's proposals and everything hanging off them."""
    pending = db.execute(
        text("SELECT proposal_id FROM proposals WHERE faculty_id = :fid AND status = 'pending'"),
        {"fid": faculty_id}
    ).scalars().all()
    for proposal_id in pending:
        release_reviewers(db, proposal_id)

    # Applicants lose an application, so their cap counters go down with it
    db.execute(
        text("""
            UPDATE users SET application_count = application_count - (
                SELECT COUNT(*) FROM applications a JOIN proposals p ON a.proposal_id = p.proposal_id
                WHERE a.student_id = users.user_id AND p.faculty_id = :fid
            )
            WHERE user_id IN (
                SELECT a.student_id FROM applications a JOIN proposals p ON a.proposal_id = p.proposal_id
                WHERE p.faculty_id = :fid
            )
        """),
        {"fid": faculty_id}
    )

    owned = "SELECT proposal_id FROM proposals WHERE faculty_id = :fid"
    for table in ("applications", "reviews", "proposal_reviewers"):
        db.execute(text(f"DELETE FROM {table} WHERE proposal_id IN ({owned})"), {"fid": faculty_id})
    db.execute(text("DELETE FROM proposals WHERE faculty_id = :fid"), {"fid": faculty_id})


def _purge_student_applications(db: Session, student_id: int) -> None:
    """Remove a student's applications, giving back seats still held."""
    db.execute(
        text("""
            UPDATE proposals SET seats_remaining = seats_remaining + 1, updated_at = CURRENT_TIMESTAMP
            WHERE seats_remaining < seats AND proposal_id IN (
                SELECT proposal_id FROM applications WHERE student_id = :sid AND status != 'rejected'
            )
        """),
        {"sid": student_id}
    )
    db.execute(text("DELETE FROM applications WHERE student_id = :sid"), {"sid": student_id})
    db.execute(text("UPDATE users SET application_count = 0 WHERE user_id = :sid"), {"sid": student_id})


def _load_managed_user(db: Session, user_id: int) -> dict:
    user = db.execute(
        text("SELECT user_id, role FROM users WHERE user_id = :id"),
        {"id": user_id}
    ).mappings().first()
    if not user:
        raise NotFound("User not found")
    if user["role"] == UserRole.admin.value:
        raise NotAuthorized("Admin accounts cannot be managed here")
    return dict(user)


def delete_user(actor: Actor, user_id: int) -> None:
    actor.require(UserRole.admin, action="delete users")
    with get_db_session() as db:
        user = _load_managed_user(db, user_id)
        if user["role"] == UserRole.faculty.value:
            _purge_faculty_proposals(db, user_id)
            review_service.withdraw_reviewer(db, user_id)
        else:
            _purge_student_applications(db, user_id)
        db.execute(text("DELETE FROM users WHERE user_id = :id"), {"id": user_id})
    log.info("user_deleted", user_id=user_id, role=user["role"])


def reset_user(actor: Actor, user_id: int) -> None:
    """Wipe a user's proposals or applications and force a password change."""
    actor.require(UserRole.admin, action="reset users")
    with get_db_session() as db:
        user = _load_managed_user(db, user_id)
        if user["role"] == UserRole.faculty.value:
            _purge_faculty_proposals(db, user_id)
        else:
            _purge_student_applications(db, user_id)
        db.execute(
            text("UPDATE users SET must_change_password = :flag WHERE user_id = :id"),
            {"flag": True, "id": user_id}
        )
    log.info("user_reset", user_id=user_id, role=user["role"])


# ============================================================
# DEMO DATA
# ============================================================

def seed_demo_data() -> dict:
    """Wipe everything except admins and create a small demo population."""
    with get_db_session() as db:
        for table in ("applications", "reviews", "proposal_reviewers", "proposals"):
            db.execute(text(f"DELETE FROM {table}"))
        db.execute(text("DELETE FROM users WHERE role != 'admin'"))

        admin_login, admin_password, admin_name = DEMO_ADMIN
        exists = db.execute(
            text("SELECT 1 FROM users WHERE login_id = :login_id"),
            {"login_id": admin_login}
        ).first()
        if not exists:
            _insert_user(db, admin_login, admin_name, UserRole.admin, admin_password,
                         must_change_password=False)

        for login_id, name in DEMO_FACULTY:
            _insert_user(db, login_id, name, UserRole.faculty,
                         default_faculty_password(DEMO_AREA, name), DEMO_AREA)

        login_id, name, dob = DEMO_STUDENT
        _insert_user(db, login_id, name, UserRole.student, default_student_password(dob))

    log.info("demo_data_seeded", faculty=len(DEMO_FACULTY), students=1)
    return {"faculty": len(DEMO_FACULTY), "students": 1}
