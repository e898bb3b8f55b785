"""Project assignment model: a star's claim on a request."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class ProjectAssignment(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "project_assignments"
    __table_args__ = (
        # One row per star per request, rejected rows included: no reapplying.
        sa.UniqueConstraint("star_id", "request_id", name="uq_assignment_star_request"),
    )

    star_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True)
    request_id: uuid.UUID = Field(foreign_key="project_requests.id", nullable=False, index=True)
    status: str = Field(nullable=False, default="PENDING_APPROVAL", index=True)
    rejection_reason: Optional[str] = Field(default=None, max_length=500)
    reviewed_by_id: Optional[uuid.UUID] = Field(default=None, foreign_key="users.id")
    reviewed_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))
