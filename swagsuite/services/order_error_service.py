"""
order_error_service.py — Order error log and cost statistics

Business Rules:
- Errors are listed newest error_date first, ties broken by id
- Resolving is idempotent: an already-resolved error keeps its first
  resolved_at / resolved_by
- Editing is_resolved back to false clears resolved_at / resolved_by
- Statistics count every error; cost_to_company sums as money (2 dp)
- error_date range filters are inclusive on both ends

Called by: routers/order_errors.py
Depends on: models
"""

from datetime import datetime, timezone
from decimal import Decimal

from loguru import logger
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..models import OrderError


def list_errors(
    db: Session,
    *,
    order_id: int | None = None,
    error_type: str | None = None,
    is_resolved: bool | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
) -> list[OrderError]:
    query = db.query(OrderError)
    if order_id is not None:
        query = query.filter(OrderError.order_id == order_id)
    if error_type:
        query = query.filter(OrderError.error_type == error_type)
    if is_resolved is not None:
        query = query.filter(OrderError.is_resolved.is_(is_resolved))
    if start is not None:
        query = query.filter(OrderError.error_date >= start)
    if end is not None:
        query = query.filter(OrderError.error_date <= end)
    return query.order_by(OrderError.error_date.desc(), OrderError.id.desc()).all()


def resolve_error(db: Session, error: OrderError, user_id: int | None, now: datetime | None = None) -> OrderError:
    """Mark an error resolved. Caller commits."""
    if error.is_resolved and error.resolved_at is not None:
        return error
    error.is_resolved = True
    error.resolved_at = now or datetime.now(timezone.utc)
    error.resolved_by = user_id
    logger.info("Order error resolved", error_id=error.id, user_id=user_id)
    return error


def apply_error_changes(error: OrderError, changes: dict, user_id: int | None) -> None:
    """Set fields from a partial update, keeping the resolution stamp consistent."""
    resolved = changes.pop("is_resolved", None)
    for field, value in changes.items():
        setattr(error, field, value)
    if resolved is True and not error.is_resolved:
        error.is_resolved = True
        error.resolved_at = datetime.now(timezone.utc)
        error.resolved_by = user_id
    elif resolved is False:
        error.is_resolved = False
        error.resolved_at = None
        error.resolved_by = None


def error_statistics(db: Session) -> dict:
    total = db.query(func.count(OrderError.id)).scalar() or 0
    resolved = db.query(func.count(OrderError.id)).filter(OrderError.is_resolved.is_(True)).scalar() or 0
    cost = db.query(func.coalesce(func.sum(OrderError.cost_to_company), 0)).scalar()
    by_type = dict(db.query(OrderError.error_type, func.count(OrderError.id)).group_by(OrderError.error_type).all())
    by_party = dict(
        db.query(OrderError.responsible_party, func.count(OrderError.id))
        .group_by(OrderError.responsible_party)
        .all()
    )
    return {
        "totalErrors": total,
        "resolvedErrors": resolved,
        "unresolvedErrors": total - resolved,
        "costToCompany": float(Decimal(str(cost)).quantize(Decimal("0.01"))),
        "errorsByType": by_type,
        "errorsByResponsibleParty": by_party,
    }


def _iso(value):
    return value.isoformat() if value else None


def error_to_dict(e: OrderError) -> dict:
    return {
        "id": e.id,
        "order_id": e.order_id,
        "order_number": e.order.order_number if e.order else None,
        "error_date": _iso(e.error_date),
        "project_number": e.project_number,
        "error_type": e.error_type,
        "client_name": e.client_name,
        "vendor_name": e.vendor_name,
        "responsible_party": e.responsible_party,
        "resolution": e.resolution,
        "cost_to_company": float(e.cost_to_company) if e.cost_to_company is not None else 0.0,
        "production_rep": e.production_rep,
        "order_rep": e.order_rep,
        "client_rep": e.client_rep,
        "additional_notes": e.additional_notes,
        "is_resolved": bool(e.is_resolved),
        "resolved_at": _iso(e.resolved_at),
        "resolved_by": e.resolved_by,
        "created_by": e.created_by,
        "created_at": _iso(e.created_at),
        "updated_at": _iso(e.updated_at),
    }
