"""Submission, upload and AI analysis schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from pydantic import AnyHttpUrl, Field

from .common import AnalysisStatus, CamelModel, SubmissionStatus


class SubmissionCreate(CamelModel):
    assignment_id: UUID
    version_slot: int = Field(default=0, ge=0, le=5)
    version_title: str = Field(min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=2000)
    stream_uid: str = Field(min_length=1)
    thumbnail_url: Optional[AnyHttpUrl] = None


class SubmissionReject(CamelModel):
    reason: Optional[str] = Field(default=None, max_length=2000)


class SubmissionRead(CamelModel):
    id: UUID
    assignment_id: Optional[UUID] = None
    star_id: UUID
    video_id: Optional[UUID] = None
    version: str
    version_slot: int
    version_title: str
    description: Optional[str] = None
    stream_uid: Optional[str] = None
    thumbnail_url: Optional[str] = None
    status: SubmissionStatus
    reviewer_id: Optional[UUID] = None
    review_reason: Optional[str] = None
    approved_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    duration_seconds: Optional[float] = None
    width: Optional[int] = None
    height: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class UploadUrlRequest(CamelModel):
    max_duration_seconds: int = Field(default=600, ge=1, le=3600)


class UploadUrlResponse(CamelModel):
    upload_url: str
    video_id: str


class AnalysisRead(CamelModel):
    submission_id: UUID
    status: AnalysisStatus
    summary: Optional[str] = None
    scores: Optional[dict[str, Any]] = None
    todo_items: List[dict[str, Any]] = Field(default_factory=list)
    insights: List[dict[str, Any]] = Field(default_factory=list)
    model: Optional[str] = None
    error_message: Optional[str] = None
