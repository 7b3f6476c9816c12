"""
schemas/catalog.py — Pydantic models for suppliers, categories, products,
and vendor approval requests.

Business Rules:
- Supplier, category and product names are required and non-empty
- colors/sizes/imprint_methods accept a list or a comma-separated string
- Approval review decision is approved or rejected

Called by: routers/catalog.py
Depends on: pydantic
"""

from __future__ import annotations

from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field, field_validator


def _name_required(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Name is required")
    return v


# ── Suppliers ────────────────────────────────────────────────────────


class SupplierCreate(BaseModel):
    name: str
    email: str | None = None
    phone: str | None = None
    website: str | None = None
    address: str | None = None
    contact_person: str | None = None
    payment_terms: str | None = None
    notes: str | None = None
    is_preferred: bool = False
    do_not_order: bool = False
    esp_id: str | None = None
    asi_id: str | None = None
    sage_id: str | None = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        return _name_required(v)


class SupplierUpdate(BaseModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    website: str | None = None
    address: str | None = None
    contact_person: str | None = None
    payment_terms: str | None = None
    notes: str | None = None
    is_preferred: bool | None = None
    do_not_order: bool | None = None
    esp_id: str | None = None
    asi_id: str | None = None
    sage_id: str | None = None


# ── Categories ───────────────────────────────────────────────────────


class CategoryCreate(BaseModel):
    name: str
    description: str | None = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        return _name_required(v)


# ── Products ─────────────────────────────────────────────────────────


class ProductCreate(BaseModel):
    name: str
    supplier_id: int | None = None
    category_id: int | None = None
    description: str | None = None
    sku: str | None = None
    supplier_sku: str | None = None
    base_price: Decimal | None = Field(default=None, ge=0)
    minimum_quantity: int = Field(default=1, ge=1)
    brand: str | None = None
    colors: list[str] | str | None = None
    sizes: list[str] | str | None = None
    imprint_methods: list[str] | str | None = None
    lead_time: int | None = Field(default=None, ge=0)
    image_url: str | None = None
    product_type: str = "promotional"

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        return _name_required(v)


class ProductUpdate(BaseModel):
    name: str | None = None
    supplier_id: int | None = None
    category_id: int | None = None
    description: str | None = None
    sku: str | None = None
    supplier_sku: str | None = None
    base_price: Decimal | None = Field(default=None, ge=0)
    minimum_quantity: int | None = Field(default=None, ge=1)
    brand: str | None = None
    colors: list[str] | str | None = None
    sizes: list[str] | str | None = None
    imprint_methods: list[str] | str | None = None
    lead_time: int | None = Field(default=None, ge=0)
    image_url: str | None = None
    product_type: str | None = None


# ── Vendor approvals ─────────────────────────────────────────────────


class VendorApprovalCreate(BaseModel):
    supplier_id: int
    product_id: int | None = None
    order_id: int | None = None
    reason: str | None = None


class VendorApprovalReview(BaseModel):
    status: Literal["approved", "rejected"]
    review_notes: str | None = None
