"""Background work tracking: queued tasks and AI analysis results."""

from typing import Any, List, Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class BackgroundTask(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "background_tasks"

    kind: str = Field(nullable=False, index=True)  # propagate_video_status | run_ai_analysis
    payload: dict = Field(default_factory=dict, sa_type=sa.JSON, nullable=False)
    status: str = Field(nullable=False, default="QUEUED", index=True)  # QUEUED | RUNNING | DONE | ERROR
    attempts: int = Field(nullable=False, default=0)
    last_error: Optional[str] = None


class AiAnalysis(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "ai_analyses"

    submission_id: uuid.UUID = Field(foreign_key="submissions.id", nullable=False, unique=True)
    status: str = Field(nullable=False, default="PROCESSING")  # PROCESSING | DONE | ERROR
    summary: Optional[str] = None
    scores: Optional[dict] = Field(default=None, sa_type=sa.JSON)
    todo_items: List[Any] = Field(default_factory=list, sa_type=sa.JSON, nullable=False)
    insights: List[Any] = Field(default_factory=list, sa_type=sa.JSON, nullable=False)
    model: Optional[str] = None
    error_message: Optional[str] = None
