"""
Faculty Directory - read-only view of faculty by research area.

Faculty are always ordered by login_id, which is the stable identifier
the reviewer rotation is built on.
"""

from typing import Dict, List, Optional

from sqlalchemy import text
from sqlalchemy.orm import Session

from portal.db.database import execute_raw_sql


FACULTY_COLUMNS = "user_id, login_id, name, research_area, pending_reviews"


def list_faculty(area: Optional[str] = None) -> List[dict]:
    """All faculty, optionally restricted to one research area."""
    sql = f"SELECT {FACULTY_COLUMNS} FROM users WHERE role = 'faculty'"
    params = {}
    if area:
        sql += " AND research_area = :area"
        params["area"] = area
    sql += " ORDER BY login_id"
    return execute_raw_sql(sql, params)


def faculty_by_area() -> Dict[str, List[dict]]:
    """Faculty grouped by research area, each group ordered by login_id."""
    grouped: Dict[str, List[dict]] = {}
    for row in list_faculty():
        if row["research_area"]:
            grouped.setdefault(row["research_area"], []).append(row)
    return grouped


def faculty_ring(db: Session, area: str, exclude_user_id: int) -> List[dict]:
    """
    The rotation ring for an area: its faculty minus the proposer.

    Read through the caller's session so that the ring is computed inside
    the same transaction that commits the assignment. Never cached, since
    faculty can be added or removed between proposals.
    """
    result = db.execute(
        text(f"""
            SELECT {FACULTY_COLUMNS} FROM users
            WHERE role = 'faculty' AND research_area = :area AND user_id != :exclude
            ORDER BY login_id
        """),
        {"area": area, "exclude": exclude_user_id}
    )
    return [dict(row) for row in result.mappings().all()]
