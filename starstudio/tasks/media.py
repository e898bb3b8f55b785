"""
ARQ background jobs that follow a submission review.

Each job receives the id of its ``BackgroundTask`` row, marks it RUNNING,
does its work and records DONE or ERROR. Transient failures are retried
with a linear backoff until the worker's ``max_tries`` is reached. Both
jobs are idempotent, so a retry or a duplicate enqueue is harmless.
"""

from __future__ import annotations

import uuid
from typing import Awaitable, Callable, Optional

import structlog
from arq.worker import Retry

from starstudio.core.uow import UnitOfWork
from starstudio.integrations.gemini import AnalysisError
from starstudio.models.background import AiAnalysis
from starstudio.models.submission import Video
from starstudio_shared.schemas.common import (
    AnalysisStatus,
    SubmissionStatus,
    TaskState,
    VideoStatus,
)

log = structlog.get_logger()

RETRY_DELAY_SECONDS = 5


async def _set_task_state(ctx: dict, task_id: uuid.UUID, state: TaskState, error: Optional[str] = None) -> None:
    async with UnitOfWork(ctx["session_factory"]) as uow:
        task = await uow.tasks.get(task_id)
        if task is not None:
            task.status = state.value
            task.last_error = error
            await uow.tasks.add(task)


async def _run_tracked(ctx: dict, task_id: str, work: Callable[[dict, dict], Awaitable[str]]) -> str:
    tid = uuid.UUID(task_id)
    async with UnitOfWork(ctx["session_factory"]) as uow:
        task = await uow.tasks.get(tid)
        if task is None:
            log.warning("task.missing", task_id=task_id)
            return "missing"
        task.status = TaskState.RUNNING.value
        task.attempts += 1
        await uow.tasks.add(task)
        kind, payload = task.kind, dict(task.payload)

    try:
        outcome = await work(ctx, payload)
    except Exception as exc:
        job_try = ctx.get("job_try", 1)
        max_tries = ctx.get("max_tries", 1)
        if job_try < max_tries:
            log.warning("task.retrying", task_id=task_id, kind=kind, job_try=job_try, error=str(exc))
            await _set_task_state(ctx, tid, TaskState.QUEUED, str(exc))
            raise Retry(defer=job_try * RETRY_DELAY_SECONDS) from exc
        log.exception("task.failed", task_id=task_id, kind=kind)
        await _set_task_state(ctx, tid, TaskState.ERROR, str(exc))
        return "error"

    await _set_task_state(ctx, tid, TaskState.DONE)
    log.info("task.done", task_id=task_id, kind=kind, outcome=outcome)
    return outcome


# ---------------------------------------------------------------------------
# Video status propagation
# ---------------------------------------------------------------------------

async def _propagate(ctx: dict, payload: dict) -> str:
    async with UnitOfWork(ctx["session_factory"]) as uow:
        submission = await uow.submissions.get(uuid.UUID(payload["submission_id"]))
        if submission is None:
            return "missing"

        video = await uow.videos.get(submission.video_id) if submission.video_id else None

        if submission.status == SubmissionStatus.APPROVED.value:
            if video is None:
                video = Video(owner_id=submission.star_id, title=submission.version_title)
            video.title = submission.version_title
            video.stream_uid = submission.stream_uid
            video.thumbnail_url = submission.thumbnail_url
            video.duration_seconds = submission.duration_seconds
            video.width = submission.width
            video.height = submission.height
            video.status = VideoStatus.PUBLISHED.value
            await uow.videos.add(video)
            submission.video_id = video.id
            await uow.submissions.add(submission)
            return "published"

        if submission.status == SubmissionStatus.REJECTED.value:
            if video is not None and video.status != VideoStatus.DRAFT.value:
                video.status = VideoStatus.DRAFT.value
                await uow.videos.add(video)
            return "draft"

        return "skipped"


async def propagate_video_status(ctx: dict, task_id: str) -> str:
    """Publish the video of an approved submission, or unpublish a rejected one."""
    return await _run_tracked(ctx, task_id, _propagate)


# ---------------------------------------------------------------------------
# AI analysis
# ---------------------------------------------------------------------------

async def _analyze(ctx: dict, payload: dict) -> str:
    submission_id = uuid.UUID(payload["submission_id"])
    async with UnitOfWork(ctx["session_factory"]) as uow:
        submission = await uow.submissions.get(submission_id)
        if submission is None or not submission.stream_uid:
            return "skipped"
        analysis = await uow.analyses.get_for_submission(submission_id)
        if analysis is not None and analysis.status in (
            AnalysisStatus.PROCESSING.value,
            AnalysisStatus.DONE.value,
        ):
            return "skipped"
        if analysis is None:
            analysis = AiAnalysis(submission_id=submission_id)
        analysis.status = AnalysisStatus.PROCESSING.value
        analysis.error_message = None
        await uow.analyses.add(analysis)
        stream_uid = submission.stream_uid

    analyzer = ctx["analyzer"]
    try:
        url = await ctx["stream"].get_download_url(stream_uid)
        if not url:
            raise AnalysisError("video download URL is not available")
        result = await analyzer.analyze(url)
    except Exception as exc:
        async with UnitOfWork(ctx["session_factory"]) as uow:
            analysis = await uow.analyses.get_for_submission(submission_id)
            analysis.status = AnalysisStatus.ERROR.value
            analysis.error_message = str(exc)[:1000]
            await uow.analyses.add(analysis)
        raise

    async with UnitOfWork(ctx["session_factory"]) as uow:
        analysis = await uow.analyses.get_for_submission(submission_id)
        analysis.status = AnalysisStatus.DONE.value
        analysis.summary = result["summary"]
        analysis.scores = result["scores"]
        analysis.todo_items = result["todoItems"]
        analysis.insights = result["insights"]
        analysis.model = analyzer.model_name
        await uow.analyses.add(analysis)
    return "done"


async def run_ai_analysis(ctx: dict, task_id: str) -> str:
    """Analyse an approved submission's video and store the result."""
    return await _run_tracked(ctx, task_id, _analyze)
