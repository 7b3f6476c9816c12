"""
schemas/sequences.py — Pydantic models for the sequence builder

Business Rules:
- Sequence status: draft | active | paused | archived
- Step type: email | task | call | linkedin_message
- Delays are non-negative; delay_days defaults to 1
- Enrollment targets a company contact or a lead

Called by: routers/sequences.py
Depends on: pydantic
"""

from __future__ import annotations

from datetime import date as date_type
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field, field_validator

SequenceStatus = Literal["draft", "active", "paused", "archived"]
StepType = Literal["email", "task", "call", "linkedin_message"]


class SequenceCreate(BaseModel):
    name: str
    description: str | None = None
    status: SequenceStatus = "draft"
    automation: int = Field(default=100, ge=0, le=100)
    settings: dict | None = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Sequence name is required")
        return v


class SequenceUpdate(BaseModel):
    name: str | None = None
    description: str | None = None
    status: SequenceStatus | None = None
    automation: int | None = Field(default=None, ge=0, le=100)
    settings: dict | None = None


class StepCreate(BaseModel):
    type: StepType
    title: str
    content: str | None = None
    delay_days: int = Field(default=1, ge=0)
    delay_hours: int = Field(default=0, ge=0, le=23)
    delay_minutes: int = Field(default=0, ge=0, le=59)
    settings: dict | None = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Step title is required")
        return v


class StepUpdate(BaseModel):
    type: StepType | None = None
    title: str | None = None
    content: str | None = None
    delay_days: int | None = Field(default=None, ge=0)
    delay_hours: int | None = Field(default=None, ge=0, le=23)
    delay_minutes: int | None = Field(default=None, ge=0, le=59)
    settings: dict | None = None


class StepReorder(BaseModel):
    step_ids: list[int]


class EnrollmentCreate(BaseModel):
    sequence_id: int
    contact_id: int
    contact_type: Literal["company", "lead"] = "company"


class AnalyticsCreate(BaseModel):
    date: date_type
    total_enrollments: int = Field(default=0, ge=0)
    active_enrollments: int = Field(default=0, ge=0)
    completed_enrollments: int = Field(default=0, ge=0)
    response_rate: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    open_rate: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    click_rate: Decimal = Field(default=Decimal("0"), ge=0, le=100)
