"""
Database module - SQLAlchemy engine, sessions and table definitions.
"""
from portal.db.database import get_db_session, execute_raw_sql, check_database_connection
from portal.db.schema import init_schema

__all__ = [
    "get_db_session",
    "execute_raw_sql",
    "check_database_connection",
    "init_schema",
]
