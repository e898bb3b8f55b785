"""Project assignment schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import Field

from .common import AssignmentStatus, CamelModel


class AssignmentReject(CamelModel):
    """Body for POST /assignments/{id}/reject."""
    rejection_reason: Optional[str] = Field(default=None, max_length=500)


class AssignmentRead(CamelModel):
    id: UUID
    star_id: UUID
    request_id: UUID
    status: AssignmentStatus
    rejection_reason: Optional[str] = None
    reviewed_by_id: Optional[UUID] = None
    reviewed_at: Optional[datetime] = None
    request_title: Optional[str] = None
    star_name: Optional[str] = None
    created_at: datetime
    updated_at: datetime
