"""
schemas/crm.py — Pydantic models for CRM endpoints

Validates Companies, Contacts, and Leads.

Business Rules:
- Company name is required and non-empty
- Contact and lead first/last names are required and non-empty
- A contact belongs to a company or a supplier, never both
- Lead status must be one of: new, contacted, qualified, converted, lost

Called by: routers/crm.py
Depends on: pydantic
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, field_validator, model_validator

LeadStatus = Literal["new", "contacted", "qualified", "converted", "lost"]


def _required(v: str, label: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError(f"{label} is required")
    return v


# ── Companies ────────────────────────────────────────────────────────


class CompanyCreate(BaseModel):
    name: str
    email: str | None = None
    phone: str | None = None
    website: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    country: str = "US"
    industry: str | None = None
    notes: str | None = None
    social_media_links: dict[str, str] | None = None
    engagement_level: Literal["high", "medium", "low"] | None = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        return _required(v, "Company name")


class CompanyUpdate(BaseModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    website: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    country: str | None = None
    industry: str | None = None
    notes: str | None = None
    social_media_links: dict[str, str] | None = None
    customer_score: int | None = None
    engagement_level: Literal["high", "medium", "low"] | None = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str | None) -> str | None:
        return _required(v, "Company name") if v is not None else v


# ── Contacts ─────────────────────────────────────────────────────────


class ContactCreate(BaseModel):
    first_name: str
    last_name: str
    company_id: int | None = None
    supplier_id: int | None = None
    email: str | None = None
    phone: str | None = None
    title: str | None = None
    is_primary: bool = False
    receive_order_emails: bool = True
    billing_address: str | None = None
    shipping_address: str | None = None

    @field_validator("first_name", "last_name")
    @classmethod
    def names_not_blank(cls, v: str) -> str:
        return _required(v, "Name")

    @model_validator(mode="after")
    def one_parent(self):
        if self.company_id and self.supplier_id:
            raise ValueError("A contact belongs to a company or a supplier, not both")
        return self


class ContactUpdate(BaseModel):
    first_name: str | None = None
    last_name: str | None = None
    company_id: int | None = None
    supplier_id: int | None = None
    email: str | None = None
    phone: str | None = None
    title: str | None = None
    is_primary: bool | None = None
    receive_order_emails: bool | None = None
    billing_address: str | None = None
    shipping_address: str | None = None

    @model_validator(mode="after")
    def one_parent(self):
        if self.company_id and self.supplier_id:
            raise ValueError("A contact belongs to a company or a supplier, not both")
        return self


# ── Leads ────────────────────────────────────────────────────────────


class LeadCreate(BaseModel):
    first_name: str
    last_name: str
    email: str | None = None
    phone: str | None = None
    company_name: str | None = None
    title: str | None = None
    source: str | None = None
    status: LeadStatus = "new"
    estimated_value: Decimal | None = None
    next_follow_up_date: datetime | None = None
    notes: str | None = None
    assigned_user_id: int | None = None

    @field_validator("first_name", "last_name")
    @classmethod
    def names_not_blank(cls, v: str) -> str:
        return _required(v, "Name")


class LeadUpdate(BaseModel):
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    company_name: str | None = None
    title: str | None = None
    source: str | None = None
    status: LeadStatus | None = None
    estimated_value: Decimal | None = None
    next_follow_up_date: datetime | None = None
    notes: str | None = None
    assigned_user_id: int | None = None


class LeadConvert(BaseModel):
    """Optional overrides applied when turning a lead into a company."""

    company_name: str | None = None
    industry: str | None = None
