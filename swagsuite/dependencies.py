"""
dependencies.py — Shared FastAPI Dependencies

Authentication and authorization dependencies. All routers import from here
instead of defining their own auth logic. Login itself happens elsewhere;
this service only reads the session cookie or the service API key.

Business Rules:
- get_user returns None if not logged in (non-throwing)
- require_user raises 401 if not logged in, 403 if deactivated
- x-api-key equal to settings.api_key authenticates as the service user
- require_manager raises 403 unless role is manager or admin
- require_admin raises 403 if user.role != "admin"

Called by: all routers
Depends on: models, database, config
"""

from fastapi import Depends, HTTPException, Request
from loguru import logger
from sqlalchemy.orm import Session

from .config import settings
from .database import get_db
from .models import User

SERVICE_USER_EMAIL = "service@swagsuite.local"


# ── Authentication ────────────────────────────────────────────────────


def get_user(request: Request, db: Session) -> User | None:
    """Return current user from session, or None if not logged in."""
    uid = request.session.get("user_id") if "session" in request.scope else None
    if not uid:
        return None
    return db.get(User, uid)


def _service_user(request: Request, db: Session) -> User | None:
    api_key = request.headers.get("x-api-key")
    if not api_key or not settings.api_key or api_key != settings.api_key:
        return None
    user = db.query(User).filter_by(email=SERVICE_USER_EMAIL).first()
    if user is None:
        logger.warning("x-api-key accepted but service user {} is missing", SERVICE_USER_EMAIL)
    return user


def require_user(request: Request, db: Session = Depends(get_db)) -> User:
    """Dependency: raises 401 if no authenticated user, 403 if deactivated."""
    user = get_user(request, db) or _service_user(request, db)
    if not user:
        raise HTTPException(401, "Not authenticated")
    if not user.is_active:
        if "session" in request.scope:
            request.session.clear()
        raise HTTPException(403, "Account deactivated — contact admin")
    return user


# ── Authorization ─────────────────────────────────────────────────────


def is_admin(user: User) -> bool:
    return user.role == "admin"


def require_manager(user: User = Depends(require_user)) -> User:
    """Dependency: raises 403 unless the user is a manager or admin."""
    if user.role not in ("manager", "admin"):
        raise HTTPException(403, "Manager access required")
    return user


def require_admin(user: User = Depends(require_user)) -> User:
    """Dependency: raises 403 if user is not an admin."""
    if not is_admin(user):
        raise HTTPException(403, "Admin access required")
    return user
