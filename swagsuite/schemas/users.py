"""
schemas/users.py — Pydantic models for user administration

Called by: routers/admin.py
Depends on: pydantic
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


class UserRoleUpdate(BaseModel):
    role: Literal["user", "manager", "admin"]
