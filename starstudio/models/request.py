"""Project request model."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import MONEY, TimestampMixin, UUIDMixin


class ProjectRequest(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "project_requests"
    __table_args__ = (
        sa.CheckConstraint("max_assignees >= 1", name="max_assignees_positive"),
    )

    title: str = Field(nullable=False)
    categories: List[str] = Field(default_factory=list, sa_type=sa.JSON, nullable=False)
    deadline: datetime = Field(nullable=False, sa_type=sa.DateTime(timezone=True))
    assignment_type: str = Field(nullable=False, default="SINGLE")  # SINGLE | MULTIPLE
    max_assignees: int = Field(nullable=False, default=1)
    estimated_budget: Optional[Decimal] = Field(default=None, sa_type=MONEY)
    requirements: Optional[str] = None
    reference_urls: List[str] = Field(default_factory=list, sa_type=sa.JSON, nullable=False)
    status: str = Field(nullable=False, default="OPEN", index=True)  # OPEN | FULL | CLOSED | CANCELLED
    created_by_id: uuid.UUID = Field(foreign_key="users.id", nullable=False)
