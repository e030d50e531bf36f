"""
Research Project Portal - Main Application

FastAPI backend with:
- PostgreSQL (or SQLite via DATABASE_URL) through SQLAlchemy
- JWT authentication
- Peer review of faculty proposals and student applications

Run: uvicorn portal.main:app --reload
"""

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import structlog

from portal.api.routes import api_router
from portal.core.config import get_settings
from portal.core.errors import PortalError
from portal.core.logging import configure_logging
from portal.db.database import check_database_connection
from portal.db.schema import init_schema
from portal.services.account_service import seed_demo_data
from portal.schemas.schemas import MessageResponse

settings = get_settings()
log = structlog.get_logger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Research Project Portal",
    description="""
    Faculty propose research projects, peer faculty review them, students apply.

    ## Features
    - **Authentication**: JWT-based auth for students, faculty and admins
    - **Admin**: Account creation with default passwords, delete and reset
    - **Proposals**: Submission with automatic 5-member review panel, rotating through the research area
    - **Reviews**: Unanimous approval; a single rejection with feedback closes the review
    - **Applications**: Up to 3 per student, seat accounting, one selection per student
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# CORS middleware (allow all for development)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PortalError)
async def portal_error_handler(request: Request, exc: PortalError):
    """Map classified service failures onto HTTP responses."""
    log.info("request_rejected", path=request.url.path, error=exc.kind.value, retryable=exc.retryable)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": exc.kind.value, "retryable": exc.retryable},
    )


# Include API routes
app.include_router(api_router, prefix="/api")


# Startup event
@app.on_event("startup")
async def startup_event():
    """Configure logging and create missing tables."""
    configure_logging()
    init_schema()
    log.info("startup_complete", environment=settings.environment)


@app.get("/", tags=["Health"])
async def root():
    return {"status": "healthy", "app": "Research Project Portal"}


@app.get("/health", tags=["Health"])
async def health_check():
    """Detailed health check."""
    return {
        "status": "healthy",
        "database": "connected" if check_database_connection() else "disconnected"
    }


@app.post("/api/init-demo", response_model=MessageResponse, tags=["Demo"])
async def init_demo():
    """Reset the database to demo accounts. Only available in debug mode."""
    if not settings.debug:
        raise HTTPException(status_code=404, detail="Not found")
    seed_demo_data()
    return MessageResponse(message="Demo data initialized successfully")
