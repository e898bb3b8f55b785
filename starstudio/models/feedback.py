"""Reviewer feedback model."""

from typing import Any, Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Feedback(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "feedback"

    submission_id: uuid.UUID = Field(foreign_key="submissions.id", nullable=False, index=True)
    author_id: uuid.UUID = Field(foreign_key="users.id", nullable=False)
    type: str = Field(nullable=False, default="GENERAL")
    priority: str = Field(nullable=False, default="NORMAL")
    status: str = Field(nullable=False, default="PENDING")  # PENDING | RESOLVED | WONTFIX
    content: str = Field(nullable=False)
    start_time: Optional[float] = None  # seconds into the video
    end_time: Optional[float] = None
    annotation: Optional[Any] = Field(default=None, sa_type=sa.JSON)
