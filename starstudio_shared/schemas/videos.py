"""Published video schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import Field

from .common import CamelModel, VideoStatus


class VideoRateUpdate(CamelModel):
    """Body for PATCH /videos/{id}/rate. ``null`` clears the override."""
    custom_rate: Optional[Decimal] = Field(ge=0)


class VideoRead(CamelModel):
    id: UUID
    owner_id: UUID
    title: str
    stream_uid: Optional[str] = None
    thumbnail_url: Optional[str] = None
    status: VideoStatus
    custom_rate: Optional[Decimal] = None
    duration_seconds: Optional[float] = None
    width: Optional[int] = None
    height: Optional[int] = None
    created_at: datetime
    updated_at: datetime
