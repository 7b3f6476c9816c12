"""
schemas/artwork.py — Pydantic models for the artwork kanban board

Business Rules:
- Column color is a #RRGGBB hex string, default #6B7280
- Card priority is low | medium | high | urgent (default medium)
- Move target position is >= 0; the service clamps it to the column length

Called by: routers/artwork.py
Depends on: pydantic
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

Priority = Literal["low", "medium", "high", "urgent"]
HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"


class ColumnCreate(BaseModel):
    name: str
    position: int | None = Field(default=None, ge=0)
    color: str = Field(default="#6B7280", pattern=HEX_COLOR)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Column name is required")
        return v


class ColumnUpdate(BaseModel):
    name: str | None = None
    position: int | None = Field(default=None, ge=0)
    color: str | None = Field(default=None, pattern=HEX_COLOR)


class ChecklistItem(BaseModel):
    text: str
    done: bool = False


class CardCreate(BaseModel):
    title: str
    column_id: int
    description: str | None = None
    order_id: int | None = None
    company_id: int | None = None
    assigned_user_id: int | None = None
    position: int | None = Field(default=None, ge=0)
    priority: Priority = "medium"
    due_date: datetime | None = None
    labels: list[str] = Field(default_factory=list)
    attachments: list[dict] = Field(default_factory=list)
    checklist: list[ChecklistItem] = Field(default_factory=list)

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Card title is required")
        return v


class CardUpdate(BaseModel):
    title: str | None = None
    description: str | None = None
    order_id: int | None = None
    company_id: int | None = None
    assigned_user_id: int | None = None
    priority: Priority | None = None
    due_date: datetime | None = None
    labels: list[str] | None = None
    attachments: list[dict] | None = None
    checklist: list[ChecklistItem] | None = None


class CardMove(BaseModel):
    column_id: int
    position: int = Field(ge=0)


class CardComment(BaseModel):
    text: str

    @field_validator("text")
    @classmethod
    def text_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Comment text is required")
        return v
