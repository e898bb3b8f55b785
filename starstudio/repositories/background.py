"""Background task and AI analysis repositories."""

from __future__ import annotations

from typing import Optional
import uuid

from sqlmodel import select

from starstudio.models.background import AiAnalysis, BackgroundTask

from .base import Repository


class TaskRepository(Repository[BackgroundTask]):
    model = BackgroundTask

    async def list_by_kind(self, kind: str) -> list[BackgroundTask]:
        return await self.all(
            select(BackgroundTask).where(BackgroundTask.kind == kind).order_by(BackgroundTask.created_at)
        )


class AnalysisRepository(Repository[AiAnalysis]):
    model = AiAnalysis

    async def get_for_submission(self, submission_id: uuid.UUID) -> Optional[AiAnalysis]:
        return await self.first(select(AiAnalysis).where(AiAnalysis.submission_id == submission_id))
