"""Submission and video models."""

from datetime import datetime
from decimal import Decimal
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import MONEY, TimestampMixin, UUIDMixin


class Video(UUIDMixin, TimestampMixin, SQLModel, table=True):
    """Published aggregate of an approved submission."""

    __tablename__ = "videos"

    owner_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True)
    title: str = Field(nullable=False)
    stream_uid: Optional[str] = Field(default=None, index=True)
    thumbnail_url: Optional[str] = None
    status: str = Field(nullable=False, default="DRAFT")  # DRAFT | PUBLISHED
    custom_rate: Optional[Decimal] = Field(default=None, sa_type=MONEY)
    duration_seconds: Optional[float] = None
    width: Optional[int] = None
    height: Optional[int] = None


class Submission(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "submissions"
    __table_args__ = (
        sa.UniqueConstraint("assignment_id", "version_slot", name="uq_submission_slot"),
    )

    assignment_id: Optional[uuid.UUID] = Field(default=None, foreign_key="project_assignments.id", index=True)
    star_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True)
    video_id: Optional[uuid.UUID] = Field(default=None, foreign_key="videos.id")
    version: str = Field(nullable=False, default="1.0")
    version_slot: int = Field(nullable=False, default=0)
    version_title: str = Field(nullable=False)
    description: Optional[str] = None
    stream_uid: Optional[str] = Field(default=None, index=True)
    thumbnail_url: Optional[str] = None
    status: str = Field(nullable=False, default="PENDING", index=True)
    reviewer_id: Optional[uuid.UUID] = Field(default=None, foreign_key="users.id")
    review_reason: Optional[str] = None
    approved_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True), index=True)
    reviewed_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))
    duration_seconds: Optional[float] = None
    width: Optional[int] = None
    height: Optional[int] = None
