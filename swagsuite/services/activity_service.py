"""Activity service — append-only audit trail.

Every create/update/delete handler and the order lifecycle record an
Activity row. Rows are never updated or deleted through the API.

Usage:
    from swagsuite.services.activity_service import log_activity, list_activities
"""

from sqlalchemy.orm import Session

from ..models import Activity


def log_activity(
    db: Session,
    *,
    user_id: int | None,
    entity_type: str,
    entity_id: int,
    action: str,
    description: str = "",
    metadata: dict | None = None,
) -> Activity:
    """Add an Activity to the session. Caller commits."""
    activity = Activity(
        user_id=user_id,
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        description=description or f"{entity_type} {action}",
        meta=metadata,
    )
    db.add(activity)
    return activity


def list_activities(
    db: Session,
    entity_type: str | None = None,
    entity_id: int | None = None,
    limit: int = 50,
) -> list[Activity]:
    query = db.query(Activity)
    if entity_type:
        query = query.filter(Activity.entity_type == entity_type)
    if entity_id is not None:
        query = query.filter(Activity.entity_id == entity_id)
    return query.order_by(Activity.created_at.desc(), Activity.id.desc()).limit(limit).all()


def activity_to_dict(a: Activity) -> dict:
    return {
        "id": a.id,
        "user_id": a.user_id,
        "user_name": a.user.name if a.user else None,
        "entity_type": a.entity_type,
        "entity_id": a.entity_id,
        "action": a.action,
        "description": a.description,
        "metadata": a.meta or {},
        "created_at": a.created_at.isoformat() if a.created_at else None,
    }
