"""
schemas/order_errors.py — Pydantic models for order error tracking and the production board

Business Rules:
- error_type, responsible_party and resolution are closed vocabularies (422)
- client_name is required and non-empty
- cost_to_company >= 0
- Production stage ids are checked against the board in the service (400)

Called by: routers/order_errors.py
Depends on: pydantic
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from .orders import OrderStatus

ErrorType = Literal["pricing", "in_hands_date", "shipping", "printing", "artwork_proofing", "oos", "other"]
ResponsibleParty = Literal["customer", "vendor", "company"]
Resolution = Literal["refund", "credit_for_future_order", "reprint", "courier_shipping", "other"]


class OrderErrorCreate(BaseModel):
    order_id: int | None = None
    error_date: datetime | None = None
    project_number: str | None = None
    error_type: ErrorType
    client_name: str
    vendor_name: str | None = None
    responsible_party: ResponsibleParty
    resolution: Resolution
    cost_to_company: Decimal = Field(default=Decimal("0"), ge=0)
    production_rep: str | None = None
    order_rep: str | None = None
    client_rep: str | None = None
    additional_notes: str | None = None

    @field_validator("client_name")
    @classmethod
    def client_name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Client name is required")
        return v


class OrderErrorUpdate(BaseModel):
    order_id: int | None = None
    error_date: datetime | None = None
    project_number: str | None = None
    error_type: ErrorType | None = None
    client_name: str | None = None
    vendor_name: str | None = None
    responsible_party: ResponsibleParty | None = None
    resolution: Resolution | None = None
    cost_to_company: Decimal | None = Field(default=None, ge=0)
    production_rep: str | None = None
    order_rep: str | None = None
    client_rep: str | None = None
    additional_notes: str | None = None
    is_resolved: bool | None = None

    @field_validator("client_name")
    @classmethod
    def client_name_not_blank(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            raise ValueError("Client name is required")
        return v.strip() if v else v


# ── Production board ─────────────────────────────────────────────────


class ProductionUpdate(BaseModel):
    current_stage: str | None = None
    stages_completed: list[str] | None = None
    stage_data: dict | None = None
    status: OrderStatus | None = None
    tracking_number: str | None = None
