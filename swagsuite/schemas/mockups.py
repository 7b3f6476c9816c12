"""
schemas/mockups.py — Pydantic models for the mockup builder and presentations

Business Rules:
- Logo x/y are percent offsets in [0, 90] (default 50)
- Logo width/height are pixels in [20, 300] (default 100)
- rotation in [-180, 180] degrees, opacity in [0, 100] percent (default 100)
- Template type is company | customer

Called by: routers/mockups.py
Depends on: pydantic
"""

from __future__ import annotations

from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field, field_validator


class LogoPlacement(BaseModel):
    id: str | None = None
    url: str | None = None
    name: str | None = None
    x: float = Field(default=50, ge=0, le=90)
    y: float = Field(default=50, ge=0, le=90)
    width: float = Field(default=100, ge=20, le=300)
    height: float = Field(default=100, ge=20, le=300)
    rotation: float = Field(default=0, ge=-180, le=180)
    opacity: float = Field(default=100, ge=0, le=100)
    color: str | None = None
    background_removed: bool = False


class TemplateCreate(BaseModel):
    name: str
    type: Literal["company", "customer"] = "company"
    product_id: int | None = None
    header: str | None = None
    footer: str | None = None
    logos: list[LogoPlacement] = Field(default_factory=list)
    is_active: bool = True

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Template name is required")
        return v


class TemplateUpdate(BaseModel):
    name: str | None = None
    type: Literal["company", "customer"] | None = None
    product_id: int | None = None
    header: str | None = None
    footer: str | None = None
    logos: list[LogoPlacement] | None = None
    is_active: bool | None = None


class PresentationCreate(BaseModel):
    title: str
    description: str | None = None
    company_id: int | None = None
    contact_id: int | None = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Presentation title is required")
        return v


class PresentationProductCreate(BaseModel):
    product_id: int | None = None
    product_name: str | None = None
    suggested_price: Decimal | None = Field(default=None, ge=0)
    suggested_quantity: int | None = Field(default=None, gt=0)
    notes: str | None = None
    sort_order: int | None = None
