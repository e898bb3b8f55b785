"""User model."""

from decimal import Decimal
from typing import Optional
import uuid

from sqlmodel import Field, SQLModel

from .base import MONEY, TimestampMixin, UUIDMixin


class User(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "users"

    auth_id: str = Field(unique=True, index=True, nullable=False)  # identity provider subject
    email: Optional[str] = Field(default=None, unique=True, index=True)
    name: str = Field(nullable=False)
    role: str = Field(nullable=False, default="STAR")  # ADMIN | STAR
    is_approved: bool = Field(default=False, nullable=False)
    base_rate: Optional[Decimal] = Field(default=None, sa_type=MONEY)
    grade_id: Optional[uuid.UUID] = Field(default=None, foreign_key="pricing_grades.id", index=True)
