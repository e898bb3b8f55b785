"""User, identity and pricing grade schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import Field

from .common import CamelModel, Role


class UserRead(CamelModel):
    id: UUID
    email: Optional[str] = None
    name: str
    role: Role
    is_approved: bool
    base_rate: Optional[Decimal] = None
    grade_id: Optional[UUID] = None
    created_at: datetime


class UserMeUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)


class RegistrationRequest(CamelModel):
    """Body of the first-login callback. Email and external id come from the token."""
    name: str = Field(min_length=1, max_length=100)


class ApprovalUpdate(CamelModel):
    approved: bool


class GradeAssign(CamelModel):
    grade_id: Optional[UUID] = None


class BaseRateUpdate(CamelModel):
    base_rate: Optional[Decimal] = Field(default=None, ge=0)


# ---------------------------------------------------------------------------
# Pricing grades
# ---------------------------------------------------------------------------

class GradeCreate(CamelModel):
    name: str = Field(min_length=1, max_length=50)
    base_rate: Decimal = Field(gt=0)
    color: str = Field(min_length=1)
    sort_order: Optional[int] = None


class GradeUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    base_rate: Optional[Decimal] = Field(default=None, gt=0)
    color: Optional[str] = Field(default=None, min_length=1)


class GradeRead(CamelModel):
    id: UUID
    name: str
    base_rate: Decimal
    color: str
    sort_order: int
    star_count: int = 0


class GradeOrder(CamelModel):
    id: UUID
    sort_order: int


class GradeReorder(CamelModel):
    items: List[GradeOrder] = Field(min_length=1)
