"""Settlement and settlement item models."""

from datetime import datetime
from decimal import Decimal
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import MONEY, TimestampMixin, UUIDMixin


class Settlement(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "settlements"
    __table_args__ = (
        sa.UniqueConstraint("star_id", "year", "month", name="uq_settlement_star_period"),
    )

    star_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True)
    year: int = Field(nullable=False)
    month: int = Field(nullable=False)
    status: str = Field(nullable=False, default="PENDING")  # PENDING | COMPLETED
    # Derived: always sum(items.final_amount).
    total_amount: Decimal = Field(default=Decimal("0"), nullable=False, sa_type=MONEY)
    payment_date: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))
    note: Optional[str] = None


class SettlementItem(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "settlement_items"

    settlement_id: uuid.UUID = Field(foreign_key="settlements.id", nullable=False, index=True)
    submission_id: Optional[uuid.UUID] = Field(default=None, foreign_key="submissions.id", unique=True)
    star_id: uuid.UUID = Field(foreign_key="users.id", nullable=False)
    item_type: str = Field(nullable=False, default="SUBMISSION")  # SUBMISSION | AI_TOOL_SUPPORT
    description: Optional[str] = None
    base_amount: Decimal = Field(nullable=False, sa_type=MONEY)
    adjusted_amount: Optional[Decimal] = Field(default=None, sa_type=MONEY)
    final_amount: Decimal = Field(nullable=False, sa_type=MONEY)


class SystemSetting(SQLModel, table=True):
    __tablename__ = "system_settings"

    key: str = Field(primary_key=True)
    value: str = Field(nullable=False)
    label: Optional[str] = None
