"""
schemas/orders.py — Pydantic models for orders and order-attached records

Business Rules:
- status must be one of the seven lifecycle values; anything else is a 422
- quantity > 0, prices >= 0
- total_price is accepted but recomputed server-side as quantity * unit_price
- Communications: type is client_email | vendor_email | internal_note,
  direction is inbound | outbound

Called by: routers/orders.py
Depends on: pydantic
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field, field_validator

OrderStatus = Literal[
    "quote",
    "pending_approval",
    "approved",
    "in_production",
    "shipped",
    "delivered",
    "cancelled",
]
OrderType = Literal["quote", "sales_order", "rush_order"]


# ── Order items ──────────────────────────────────────────────────────


class OrderItemCreate(BaseModel):
    product_id: int | None = None
    supplier_id: int | None = None
    quantity: int = Field(gt=0)
    unit_price: Decimal = Field(ge=0)
    total_price: Decimal | None = None
    cost: Decimal | None = Field(default=None, ge=0)
    decoration_cost: Decimal | None = Field(default=None, ge=0)
    charges: Decimal | None = Field(default=None, ge=0)
    size_pricing: dict | None = None
    color: str | None = None
    size: str | None = None
    imprint_location: str | None = None
    imprint_method: str | None = None
    notes: str | None = None


class OrderItemUpdate(BaseModel):
    product_id: int | None = None
    supplier_id: int | None = None
    quantity: int | None = Field(default=None, gt=0)
    unit_price: Decimal | None = Field(default=None, ge=0)
    total_price: Decimal | None = None
    cost: Decimal | None = Field(default=None, ge=0)
    decoration_cost: Decimal | None = Field(default=None, ge=0)
    charges: Decimal | None = Field(default=None, ge=0)
    size_pricing: dict | None = None
    color: str | None = None
    size: str | None = None
    imprint_location: str | None = None
    imprint_method: str | None = None
    notes: str | None = None


# ── Orders ───────────────────────────────────────────────────────────


class OrderCreate(BaseModel):
    order_number: str | None = None
    company_id: int | None = None
    contact_id: int | None = None
    assigned_user_id: int | None = None
    csr_user_id: int | None = None
    status: OrderStatus = "quote"
    order_type: OrderType = "quote"
    tax: Decimal = Field(default=Decimal("0"), ge=0)
    shipping: Decimal = Field(default=Decimal("0"), ge=0)
    order_discount: Decimal = Field(default=Decimal("0"), ge=0)
    in_hands_date: datetime | None = None
    event_date: datetime | None = None
    supplier_in_hands_date: datetime | None = None
    is_firm: bool = False
    is_rush: bool = False
    next_action_date: datetime | None = None
    next_action_notes: str | None = None
    customer_po: str | None = None
    payment_terms: str | None = None
    notes: str | None = None
    customer_notes: str | None = None
    internal_notes: str | None = None
    supplier_notes: str | None = None
    shipping_address: str | None = None
    billing_address: str | None = None
    shipping_method: str | None = None
    items: list[OrderItemCreate] = Field(default_factory=list)

    @field_validator("order_number")
    @classmethod
    def order_number_not_blank(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        return v or None


class OrderUpdate(BaseModel):
    company_id: int | None = None
    contact_id: int | None = None
    assigned_user_id: int | None = None
    csr_user_id: int | None = None
    status: OrderStatus | None = None
    order_type: OrderType | None = None
    tax: Decimal | None = Field(default=None, ge=0)
    shipping: Decimal | None = Field(default=None, ge=0)
    order_discount: Decimal | None = Field(default=None, ge=0)
    in_hands_date: datetime | None = None
    event_date: datetime | None = None
    supplier_in_hands_date: datetime | None = None
    is_firm: bool | None = None
    is_rush: bool | None = None
    next_action_date: datetime | None = None
    next_action_notes: str | None = None
    customer_po: str | None = None
    payment_terms: str | None = None
    notes: str | None = None
    customer_notes: str | None = None
    internal_notes: str | None = None
    supplier_notes: str | None = None
    shipping_address: str | None = None
    billing_address: str | None = None
    tracking_number: str | None = None
    shipping_method: str | None = None


# ── Communications & files ───────────────────────────────────────────


class CommunicationCreate(BaseModel):
    communication_type: Literal["client_email", "vendor_email", "internal_note"]
    direction: Literal["inbound", "outbound"] = "outbound"
    recipient_email: str
    recipient_name: str | None = None
    subject: str
    body: str
    metadata: dict | None = None

    @field_validator("recipient_email", "subject")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Field is required")
        return v


class AttachmentCreate(BaseModel):
    filename: str
    original_filename: str
    storage_path: str
    communication_id: int | None = None
    mime_type: str | None = None
    file_size: int | None = Field(default=None, ge=0)
    category: str = "attachment"


class ArtworkFileCreate(BaseModel):
    file_name: str
    original_name: str
    file_path: str
    file_size: int | None = Field(default=None, ge=0)
    mime_type: str | None = None
    thumbnail_path: str | None = None
