"""
routers/admin.py — User administration and integration status

Business Rules:
- Any signed-in user may list users (for assignment pickers)
- Only admins may change roles; an admin cannot demote themselves
- Integration status reports which credentials are configured; it never
  calls the third-party services

Called by: main.py (router mount)
Depends on: models, dependencies, config
"""

from fastapi import APIRouter, Depends, HTTPException
from loguru import logger
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..dependencies import require_admin, require_user
from ..models import User
from ..schemas.users import UserRoleUpdate
from ..services.activity_service import log_activity

router = APIRouter()

# integration name -> settings fields that must all be non-empty
INTEGRATION_CREDENTIALS = {
    "slack": ("slack_bot_token", "slack_channel_id"),
    "hubspot": ("hubspot_api_key",),
    "ss_activewear": ("ss_activewear_account", "ss_activewear_api_key"),
    "quickbooks": ("quickbooks_client_id", "quickbooks_client_secret"),
    "sage": ("sage_account_id", "sage_api_key"),
}


def user_to_dict(u: User) -> dict:
    return {
        "id": u.id,
        "email": u.email,
        "username": u.username,
        "first_name": u.first_name,
        "last_name": u.last_name,
        "name": u.name,
        "role": u.role,
        "is_active": bool(u.is_active),
        "profile_image_url": u.profile_image_url,
        "last_login_at": u.last_login_at.isoformat() if u.last_login_at else None,
    }


def integration_status() -> dict:
    return {
        name: {"configured": all(getattr(settings, f) for f in fields)}
        for name, fields in INTEGRATION_CREDENTIALS.items()
    }


# ── Users ────────────────────────────────────────────────────────────────


@router.get("/api/users")
async def list_users(
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    users = db.query(User).filter(User.is_active.is_(True)).order_by(User.email).all()
    return [user_to_dict(u) for u in users]


@router.patch("/api/users/{user_id}/role")
async def update_user_role(
    user_id: int,
    payload: UserRoleUpdate,
    user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    target = db.get(User, user_id)
    if not target:
        raise HTTPException(404, "User not found")
    if target.id == user.id and payload.role != "admin":
        raise HTTPException(400, "Admins cannot remove their own admin role")
    old_role = target.role
    target.role = payload.role
    log_activity(
        db,
        user_id=user.id,
        entity_type="user",
        entity_id=target.id,
        action="role_changed",
        metadata={"from": old_role, "to": payload.role},
    )
    db.commit()
    logger.info("User role changed", user_id=target.id, old_role=old_role, new_role=payload.role)
    return user_to_dict(target)


# ── Integrations ─────────────────────────────────────────────────────────


@router.get("/api/integrations/status")
async def get_integration_status(user: User = Depends(require_user)):
    return integration_status()
