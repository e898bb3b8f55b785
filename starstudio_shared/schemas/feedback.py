"""Reviewer feedback schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import Field, model_validator

from .common import CamelModel, FeedbackPriority, FeedbackStatus, FeedbackType


class FeedbackCreate(CamelModel):
    submission_id: UUID
    type: FeedbackType = FeedbackType.GENERAL
    priority: FeedbackPriority = FeedbackPriority.NORMAL
    content: str = Field(min_length=1)
    start_time: Optional[float] = Field(default=None, ge=0)
    end_time: Optional[float] = Field(default=None, ge=0)
    annotation: Optional[Any] = None

    @model_validator(mode="after")
    def check_timecode(self) -> "FeedbackCreate":
        self.content = self.content.strip()
        if not self.content:
            raise ValueError("content must not be blank")
        if self.start_time is not None and self.end_time is not None and self.end_time < self.start_time:
            raise ValueError("endTime must not be before startTime")
        return self


class FeedbackUpdate(CamelModel):
    content: Optional[str] = Field(default=None, min_length=1)
    priority: Optional[FeedbackPriority] = None
    status: Optional[FeedbackStatus] = None
    annotation: Optional[Any] = None


class FeedbackRead(CamelModel):
    id: UUID
    submission_id: UUID
    author_id: UUID
    type: FeedbackType
    priority: FeedbackPriority
    status: FeedbackStatus
    content: str
    start_time: Optional[float] = None
    end_time: Optional[float] = None
    annotation: Optional[Any] = None
    created_at: datetime
    updated_at: datetime
