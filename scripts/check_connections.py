#!/usr/bin/env python3
"""
Connection Check Script

Run this to verify the database is reachable and the schema exists.
Usage: python scripts/check_connections.py
"""
import sys
sys.path.insert(0, '.')

from portal.db.database import check_database_connection
from portal.db.schema import init_schema
from portal.core.config import get_settings


def main():
    settings = get_settings()
    print("=" * 50)
    print("PROJECT PORTAL - CONNECTION CHECK")
    print("=" * 50)

    print("\n[1] Testing database...")
    if settings.database_url:
        print(f"    URL: {settings.database_url}")
    else:
        print(f"    URL: postgresql://{settings.postgres_user}:****@{settings.postgres_host}:{settings.postgres_port}/{settings.postgres_db}")
    if not check_database_connection():
        print("    ❌ Database: FAILED")
        return 1
    print("    ✅ Database: CONNECTED")

    print("\n[2] Creating missing tables...")
    init_schema()
    print("    ✅ Schema ready")

    print("\n" + "=" * 50)
    print("Connection check complete!")
    print("=" * 50)
    return 0


if __name__ == "__main__":
    sys.exit(main())
