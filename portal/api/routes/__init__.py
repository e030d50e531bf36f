"""
API Routes - Combines all route modules into single router.
"""

from fastapi import APIRouter

from portal.api.routes.auth_routes import router as auth_router
from portal.api.routes.admin_routes import router as admin_router
from portal.api.routes.faculty_routes import router as faculty_router
from portal.api.routes.proposal_routes import router as proposal_router
from portal.api.routes.application_routes import router as application_router

# Main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(auth_router)
api_router.include_router(admin_router)
api_router.include_router(faculty_router)
api_router.include_router(proposal_router)
api_router.include_router(application_router)
