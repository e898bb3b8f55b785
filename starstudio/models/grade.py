"""Pricing grade model."""

from decimal import Decimal

from sqlmodel import Field, SQLModel

from .base import MONEY, TimestampMixin, UUIDMixin


class PricingGrade(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "pricing_grades"

    name: str = Field(nullable=False)
    base_rate: Decimal = Field(nullable=False, sa_type=MONEY)
    color: str = Field(nullable=False, default="#64748b")
    sort_order: int = Field(nullable=False, default=0, index=True)
