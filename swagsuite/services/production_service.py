"""
production_service.py — Production board stages for orders

Business Rules:
- Stages are a fixed, ordered list; current_stage and every entry of
  stages_completed must be a known stage id
- stages_completed is stored in board order without duplicates
- Moving to a stage does not mark earlier stages complete; the board sends
  the completed list explicitly
- A status sent alongside the stage goes through the normal order status
  change (activity + assignee notification)
- Every production update writes a stage_updated activity

Called by: routers/order_errors.py
Depends on: models, activity_service, order_service
"""

from loguru import logger
from sqlalchemy.orm import Session

from ..models import Order
from .activity_service import log_activity
from .order_service import change_status

PRODUCTION_STAGES = (
    {"id": "sales-booked", "name": "Sales Order Booked", "order": 1, "color": "bg-blue-100 text-blue-800"},
    {"id": "po-placed", "name": "Purchase Order Placed", "order": 2, "color": "bg-purple-100 text-purple-800"},
    {
        "id": "confirmation-received",
        "name": "Confirmation Received",
        "order": 3,
        "color": "bg-indigo-100 text-indigo-800",
    },
    {"id": "proof-received", "name": "Proof Received", "order": 4, "color": "bg-yellow-100 text-yellow-800"},
    {"id": "proof-approved", "name": "Proof Approved", "order": 5, "color": "bg-orange-100 text-orange-800"},
    {"id": "order-placed", "name": "Order Placed", "order": 6, "color": "bg-teal-100 text-teal-800"},
    {"id": "invoice-paid", "name": "Invoice Paid", "order": 7, "color": "bg-green-100 text-green-800"},
    {"id": "shipping-scheduled", "name": "Shipping Scheduled", "order": 8, "color": "bg-cyan-100 text-cyan-800"},
    {"id": "shipped", "name": "Shipped", "order": 9, "color": "bg-emerald-100 text-emerald-800"},
)

STAGE_ORDER = {s["id"]: s["order"] for s in PRODUCTION_STAGES}
STAGE_NAMES = {s["id"]: s["name"] for s in PRODUCTION_STAGES}


class UnknownStageError(ValueError):
    """Stage id is not on the production board."""


def _check_stage(stage_id: str) -> None:
    if stage_id not in STAGE_ORDER:
        raise UnknownStageError(f"Unknown production stage: {stage_id}")


def update_production(
    db: Session,
    order: Order,
    actor_id: int | None,
    *,
    current_stage: str | None = None,
    stages_completed: list[str] | None = None,
    stage_data: dict | None = None,
    status: str | None = None,
    tracking_number: str | None = None,
) -> Order:
    """Apply a production board update and audit it. Caller commits."""
    if current_stage is not None:
        _check_stage(current_stage)
    if stages_completed is not None:
        for stage_id in stages_completed:
            _check_stage(stage_id)

    if current_stage is not None:
        order.current_stage = current_stage
    if stages_completed is not None:
        order.stages_completed = sorted(set(stages_completed), key=STAGE_ORDER.__getitem__)
    if stage_data is not None:
        order.stage_data = {**(order.stage_data or {}), **stage_data}
    if tracking_number:
        order.tracking_number = tracking_number
    if status:
        change_status(db, order, status, actor_id)

    label = STAGE_NAMES.get(order.current_stage) if current_stage else order.status
    log_activity(
        db,
        user_id=actor_id,
        entity_type="order",
        entity_id=order.id,
        action="stage_updated",
        description=f"Updated production stage to: {label}",
        metadata={"current_stage": order.current_stage, "stages_completed": list(order.stages_completed or [])},
    )
    logger.info("Production stage updated", order_id=order.id, stage=order.current_stage)
    return order
