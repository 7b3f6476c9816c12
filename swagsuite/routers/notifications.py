"""
routers/notifications.py — Notification & Activity Feed Routes

Business Rules:
- Users only see and modify their own notifications
- Activities are read-only through the API

Called by: main.py (router mount)
Depends on: models, dependencies, services.notification_service, services.activity_service
"""

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import require_user
from ..models import Notification, User
from ..services.activity_service import activity_to_dict, list_activities
from ..services.notification_service import (
    mark_all_read,
    notification_to_dict,
    unread_count,
)

router = APIRouter()


def _own_notification(db: Session, notification_id: int, user: User) -> Notification:
    n = db.get(Notification, notification_id)
    if not n or n.recipient_id != user.id:
        raise HTTPException(404, "Notification not found")
    return n


# ── Notifications ────────────────────────────────────────────────────────


@router.get("/api/notifications")
async def list_notifications(
    limit: int = Query(50, ge=1, le=200),
    unread_only: bool = False,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    query = db.query(Notification).filter(Notification.recipient_id == user.id)
    if unread_only:
        query = query.filter(Notification.is_read.is_(False))
    rows = query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()
    return [notification_to_dict(n) for n in rows]


@router.get("/api/notifications/unread-count")
async def get_unread_count(
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    return {"count": unread_count(db, user.id)}


@router.patch("/api/notifications/mark-all-read")
async def mark_all_notifications_read(
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    return {"updated": mark_all_read(db, user.id)}


@router.patch("/api/notifications/{notification_id}/read")
async def mark_notification_read(
    notification_id: int,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    n = _own_notification(db, notification_id, user)
    n.is_read = True
    db.commit()
    return notification_to_dict(n)


@router.delete("/api/notifications/{notification_id}", status_code=204)
async def delete_notification(
    notification_id: int,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    db.delete(_own_notification(db, notification_id, user))
    db.commit()
    return Response(status_code=204)


# ── Activities ───────────────────────────────────────────────────────────


@router.get("/api/activities")
async def get_activities(
    entity_type: str | None = None,
    entity_id: int | None = None,
    limit: int = Query(50, ge=1, le=500),
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    return [activity_to_dict(a) for a in list_activities(db, entity_type, entity_id, limit)]
