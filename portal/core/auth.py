"""
Authentication Utility - JWT and Password handling.

Provides:
- Password hashing with bcrypt
- JWT token creation/verification
- FastAPI dependencies resolving the bearer token into an Actor
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import text

from portal.core.config import get_settings
from portal.db.database import get_db_session
from portal.models.actor import Actor
from portal.schemas.schemas import UserRole

settings = get_settings()

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Bearer token extractor
bearer_scheme = HTTPBearer()


def hash_password(password: str) -> str:
    """Hash password with bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against hash."""
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Optional[dict]:
    """Decode and verify JWT token."""
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


async def get_current_actor(credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme)) -> Actor:
    """
    FastAPI dependency - resolve the bearer token into an Actor.

    Usage:
        @router.get("/protected")
        async def route(actor: Actor = Depends(get_current_actor)):
            return actor
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired token",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = decode_token(credentials.credentials)
    if not payload:
        raise credentials_exception

    user_id = payload.get("sub")
    if not user_id:
        raise credentials_exception

    # Verify user still exists (admin may have deleted the account)
    with get_db_session() as db:
        result = db.execute(
            text("SELECT user_id, role, login_id, name, research_area FROM users WHERE user_id = :id"),
            {"id": int(user_id)}
        )
        user = result.fetchone()

    if not user:
        raise credentials_exception

    return Actor(
        user_id=user[0], role=UserRole(user[1]), login_id=user[2],
        name=user[3], research_area=user[4]
    )


async def get_current_student(actor: Actor = Depends(get_current_actor)) -> Actor:
    """Dependency - Require student role."""
    if not actor.is_student:
        raise HTTPException(status_code=403, detail="Students only")
    return actor


async def get_current_faculty(actor: Actor = Depends(get_current_actor)) -> Actor:
    """Dependency - Require faculty role."""
    if not actor.is_faculty:
        raise HTTPException(status_code=403, detail="Faculty only")
    return actor


async def get_current_admin(actor: Actor = Depends(get_current_actor)) -> Actor:
    """Dependency - Require admin role."""
    if not actor.is_admin:
        raise HTTPException(status_code=403, detail="Admin only")
    return actor
