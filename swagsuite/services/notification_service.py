"""
notification_service.py — In-app notifications

Business Rules:
- Notifications are per-recipient; nobody is notified of their own actions
- next_action_due fires at most once per order per recipient per day
- Listing is newest first

Called by: services/order_service.py, services/sequence_service.py,
           scheduler.py, routers/notifications.py
Depends on: models
"""

from datetime import datetime, timedelta, timezone

from loguru import logger
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..models import Notification, Order


def notify(
    db: Session,
    *,
    recipient_id: int,
    type: str,
    title: str,
    message: str,
    sender_id: int | None = None,
    order_id: int | None = None,
    activity_id: int | None = None,
    created_at: datetime | None = None,
) -> Notification | None:
    """Queue a notification. Returns None when the recipient is the sender."""
    if sender_id is not None and sender_id == recipient_id:
        return None
    n = Notification(
        recipient_id=recipient_id,
        sender_id=sender_id,
        order_id=order_id,
        activity_id=activity_id,
        type=type,
        title=title,
        message=message,
        created_at=created_at or datetime.now(timezone.utc),
    )
    db.add(n)
    return n


def unread_count(db: Session, user_id: int) -> int:
    return (
        db.query(func.count(Notification.id))
        .filter(Notification.recipient_id == user_id, Notification.is_read.is_(False))
        .scalar()
        or 0
    )


def mark_all_read(db: Session, user_id: int) -> int:
    updated = (
        db.query(Notification)
        .filter(Notification.recipient_id == user_id, Notification.is_read.is_(False))
        .update({Notification.is_read: True}, synchronize_session="fetch")
    )
    db.commit()
    return updated


def notification_to_dict(n: Notification) -> dict:
    return {
        "id": n.id,
        "type": n.type,
        "title": n.title,
        "message": n.message,
        "is_read": bool(n.is_read),
        "order_id": n.order_id,
        "sender_id": n.sender_id,
        "sender_name": n.sender.name if n.sender else None,
        "created_at": n.created_at.isoformat() if n.created_at else None,
    }


# ── Next-action reminders ─────────────────────────────────────────────


def _already_notified_today(db: Session, order_id: int, recipient_id: int, day_start: datetime) -> bool:
    return (
        db.query(Notification.id)
        .filter(
            Notification.order_id == order_id,
            Notification.recipient_id == recipient_id,
            Notification.type == "next_action_due",
            Notification.created_at >= day_start,
        )
        .first()
        is not None
    )


def send_next_action_reminders(db: Session, now: datetime | None = None) -> int:
    """Notify assigned user and CSR for orders whose next action is due today.

    Returns the number of notifications created. Caller owns the session.
    """
    now = now or datetime.now(timezone.utc)
    day_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    day_end = day_start + timedelta(days=1)
    # Stored datetimes are naive UTC on SQLite; compare with naive bounds
    start, end = day_start.replace(tzinfo=None), day_end.replace(tzinfo=None)

    orders = (
        db.query(Order)
        .filter(
            Order.next_action_date >= start,
            Order.next_action_date < end,
            Order.status.notin_(["delivered", "cancelled"]),
        )
        .all()
    )
    created = 0
    for order in orders:
        recipients = {uid for uid in (order.assigned_user_id, order.csr_user_id) if uid}
        for uid in sorted(recipients):
            if _already_notified_today(db, order.id, uid, start):
                continue
            notify(
                db,
                recipient_id=uid,
                type="next_action_due",
                title=f"Next action due: {order.order_number}",
                message=order.next_action_notes or "A follow-up is scheduled for today.",
                order_id=order.id,
                created_at=now,
            )
            created += 1
    if created:
        db.commit()
        logger.info("Next-action reminders sent", count=created)
    return created
