"""
routers/order_errors.py — Order Error Tracking & Production Board Routes

Business Rules:
- Static error routes (statistics, by-order, by-type, by-date-range) are
  registered before /api/errors/{error_id}
- by-date-range requires both start_date and end_date (400 otherwise)
- Every create/update/resolve/delete writes an "error" activity
- An error may reference an order (404 if unknown) or stand alone
- Production updates reject unknown stage ids (400) and audit as stage_updated

Called by: main.py (router mount)
Depends on: models, dependencies, services.order_error_service,
            services.production_service, services.order_service
"""

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Response
from loguru import logger
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import require_user
from ..models import Order, OrderError, User
from ..schemas.order_errors import ErrorType, OrderErrorCreate, OrderErrorUpdate, ProductionUpdate
from ..services.activity_service import log_activity
from ..services.order_error_service import (
    apply_error_changes,
    error_statistics,
    error_to_dict,
    list_errors,
    resolve_error,
)
from ..services.order_service import order_to_dict
from ..services.production_service import PRODUCTION_STAGES, UnknownStageError, update_production

router = APIRouter()


def _get_error(db: Session, error_id: int) -> OrderError:
    error = db.get(OrderError, error_id)
    if not error:
        raise HTTPException(404, "Error not found")
    return error


def _check_order(db: Session, order_id: int | None) -> None:
    if order_id and not db.get(Order, order_id):
        raise HTTPException(404, "Order not found")


def _log(db: Session, user: User, error: OrderError, action: str, description: str) -> None:
    log_activity(
        db,
        user_id=user.id,
        entity_type="error",
        entity_id=error.id,
        action=action,
        description=description,
    )


# ── Errors ───────────────────────────────────────────────────────────────


@router.get("/api/errors")
async def get_errors(
    is_resolved: bool | None = None,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    return [error_to_dict(e) for e in list_errors(db, is_resolved=is_resolved)]


@router.get("/api/errors/statistics")
async def get_error_statistics(
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    return error_statistics(db)


@router.get("/api/errors/by-order/{order_id}")
async def get_errors_by_order(
    order_id: int,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    return [error_to_dict(e) for e in list_errors(db, order_id=order_id)]


@router.get("/api/errors/by-type/{error_type}")
async def get_errors_by_type(
    error_type: ErrorType,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    return [error_to_dict(e) for e in list_errors(db, error_type=error_type)]


@router.get("/api/errors/by-date-range")
async def get_errors_by_date_range(
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    if start_date is None or end_date is None:
        raise HTTPException(400, "Start date and end date are required")
    return [error_to_dict(e) for e in list_errors(db, start=start_date, end=end_date)]


@router.get("/api/errors/{error_id}")
async def get_error(
    error_id: int,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    return error_to_dict(_get_error(db, error_id))


@router.post("/api/errors", status_code=201)
async def create_error(
    payload: OrderErrorCreate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    _check_order(db, payload.order_id)
    data = payload.model_dump(exclude_none=True)
    error = OrderError(**data, created_by=user.id)
    db.add(error)
    db.flush()
    _log(db, user, error, "created", f"Created error: {error.error_type} for client {error.client_name}")
    db.commit()
    logger.info("Order error logged", error_id=error.id, order_id=error.order_id, error_type=error.error_type)
    return error_to_dict(error)


@router.patch("/api/errors/{error_id}")
async def update_error(
    error_id: int,
    payload: OrderErrorUpdate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    error = _get_error(db, error_id)
    changes = payload.model_dump(exclude_unset=True)
    for field in ("error_type", "client_name", "responsible_party", "resolution", "error_date"):
        if field in changes and changes[field] is None:
            raise HTTPException(400, f"{field} cannot be cleared")
    _check_order(db, changes.get("order_id"))
    apply_error_changes(error, changes, user.id)
    _log(db, user, error, "updated", f"Updated error: {error.error_type}")
    db.commit()
    return error_to_dict(error)


@router.post("/api/errors/{error_id}/resolve")
async def resolve(
    error_id: int,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    error = resolve_error(db, _get_error(db, error_id), user.id)
    _log(db, user, error, "resolved", f"Resolved error: {error.error_type}")
    db.commit()
    return error_to_dict(error)


@router.delete("/api/errors/{error_id}", status_code=204)
async def delete_error(
    error_id: int,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    error = _get_error(db, error_id)
    _log(db, user, error, "deleted", f"Deleted error: {error.error_type}")
    db.delete(error)
    db.commit()
    return Response(status_code=204)


# ── Production board ─────────────────────────────────────────────────────


@router.get("/api/production/stages")
async def get_production_stages(user: User = Depends(require_user)):
    return list(PRODUCTION_STAGES)


@router.patch("/api/orders/{order_id}/production")
async def update_order_production(
    order_id: int,
    payload: ProductionUpdate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    order = db.get(Order, order_id)
    if not order:
        raise HTTPException(404, "Order not found")
    try:
        update_production(db, order, user.id, **payload.model_dump(exclude_unset=True))
    except UnknownStageError as e:
        raise HTTPException(400, str(e))
    db.commit()
    return order_to_dict(order)
