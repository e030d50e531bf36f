#!/usr/bin/env python3
"""
Demo Seed Script

Wipes all non-admin data and creates:
- admin123 / admin123
- six Computer Science faculty (123456 .. 123461), default passwords
- one student 24CSE12345 / 010100

Run: python scripts/seed_demo.py
"""
import sys
sys.path.insert(0, '.')

from portal.db.schema import init_schema
from portal.services.account_service import (
    seed_demo_data, default_faculty_password, DEMO_AREA, DEMO_FACULTY, DEMO_STUDENT
)


def main():
    init_schema()
    seed_demo_data()
    print("Demo data created:")
    print("    admin   admin123 / admin123")
    for login_id, name in DEMO_FACULTY:
        print(f"    faculty {login_id} / {default_faculty_password(DEMO_AREA, name)}  ({name})")
    login_id, name, dob = DEMO_STUDENT
    print(f"    student {login_id} / {dob.strftime('%d%m%y')}  ({name})")


if __name__ == "__main__":
    main()
