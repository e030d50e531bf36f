"""
Research Project Portal
Faculty propose research projects, peers review them, students apply.

Architecture:
- PostgreSQL: users, proposals, review panels, reviews, applications
- FastAPI: HTTP API under /api
- Services: assignment, review consensus and application rules
"""

__version__ = "1.0.0"
