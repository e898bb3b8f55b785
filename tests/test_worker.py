"""
Tests for the ARQ jobs that follow a submission review.

Jobs are called directly with a hand-built worker context; no Redis is
involved.
"""

from __future__ import annotations

import uuid

import pytest
from arq.worker import Retry

from starstudio.core.uow import UnitOfWork
from starstudio.integrations.gemini import mock_result
from starstudio.models.background import BackgroundTask
from starstudio.models.submission import Video
from starstudio.tasks import media
from starstudio.tasks.worker import WorkerSettings
from starstudio_shared.schemas.common import TaskKind


class FakeStream:
    def __init__(self, url="https://videodelivery.net/uid/downloads/default.mp4"):
        self.url = url

    async def get_download_url(self, video_id):
        return self.url


class FakeAnalyzer:
    model_name = "gemini-test"

    def __init__(self, error: Exception | None = None):
        self.error = error
        self.calls = []

    async def analyze(self, url):
        self.calls.append(url)
        if self.error is not None:
            raise self.error
        return mock_result()


@pytest.fixture
def ctx(session_factory):
    return {
        "session_factory": session_factory,
        "stream": FakeStream(),
        "analyzer": FakeAnalyzer(),
        "job_try": 1,
        "max_tries": 3,
    }


async def _task(session_factory, kind: TaskKind, submission) -> str:
    async with UnitOfWork(session_factory) as u:
        task = await u.tasks.add(BackgroundTask(kind=kind.value, payload={"submission_id": str(submission.id)}))
        return str(task.id)


async def _load_task(session_factory, task_id):
    async with UnitOfWork(session_factory) as u:
        return await u.tasks.get(uuid.UUID(task_id))


class TestWorkerSettings:
    def test_registers_both_jobs(self):
        names = {f.__name__ for f in WorkerSettings.functions}
        assert names == {TaskKind.PROPAGATE_VIDEO_STATUS.value, TaskKind.RUN_AI_ANALYSIS.value}


class TestPropagateVideoStatus:
    async def test_approved_submission_publishes_video(self, ctx, session_factory, star, make_submission):
        submission = await make_submission(star, status="APPROVED", title="Final cut")
        task_id = await _task(session_factory, TaskKind.PROPAGATE_VIDEO_STATUS, submission)

        assert await media.propagate_video_status(ctx, task_id) == "published"

        async with UnitOfWork(session_factory) as u:
            refreshed = await u.submissions.get(submission.id)
            video = await u.videos.get(refreshed.video_id)
            assert video.status == "PUBLISHED"
            assert video.title == "Final cut"
            assert video.stream_uid == submission.stream_uid
        task = await _load_task(session_factory, task_id)
        assert (task.status, task.attempts) == ("DONE", 1)

    async def test_rerun_reuses_video(self, ctx, session_factory, star, make_submission):
        submission = await make_submission(star, status="APPROVED")
        await media.propagate_video_status(ctx, await _task(session_factory, TaskKind.PROPAGATE_VIDEO_STATUS, submission))
        await media.propagate_video_status(ctx, await _task(session_factory, TaskKind.PROPAGATE_VIDEO_STATUS, submission))

        async with UnitOfWork(session_factory) as u:
            from sqlmodel import select

            videos = await u.videos.all(select(Video))
            assert len(videos) == 1

    async def test_rejected_submission_unpublishes(self, ctx, session_factory, star, make_submission):
        async with UnitOfWork(session_factory) as u:
            video = await u.videos.add(Video(owner_id=star.id, title="Live", status="PUBLISHED"))
        submission = await make_submission(star, status="REJECTED", video_id=video.id)

        assert await media.propagate_video_status(
            ctx, await _task(session_factory, TaskKind.PROPAGATE_VIDEO_STATUS, submission)
        ) == "draft"
        async with UnitOfWork(session_factory) as u:
            assert (await u.videos.get(video.id)).status == "DRAFT"

    async def test_missing_task_row(self, ctx):
        assert await media.propagate_video_status(ctx, str(uuid.uuid4())) == "missing"


class TestRunAiAnalysis:
    async def test_stores_result(self, ctx, session_factory, star, make_submission):
        submission = await make_submission(star, status="APPROVED")
        task_id = await _task(session_factory, TaskKind.RUN_AI_ANALYSIS, submission)

        assert await media.run_ai_analysis(ctx, task_id) == "done"
        async with UnitOfWork(session_factory) as u:
            analysis = await u.analyses.get_for_submission(submission.id)
            assert analysis.status == "DONE"
            assert analysis.scores["overall"] == 72
            assert len(analysis.todo_items) == 3
            assert analysis.model == "gemini-test"
        assert ctx["analyzer"].calls == [ctx["stream"].url]

    async def test_done_analysis_is_not_repeated(self, ctx, session_factory, star, make_submission):
        submission = await make_submission(star, status="APPROVED")
        await media.run_ai_analysis(ctx, await _task(session_factory, TaskKind.RUN_AI_ANALYSIS, submission))
        assert await media.run_ai_analysis(
            ctx, await _task(session_factory, TaskKind.RUN_AI_ANALYSIS, submission)
        ) == "skipped"
        assert len(ctx["analyzer"].calls) == 1

    async def test_no_upload_is_skipped(self, ctx, session_factory, star, make_submission):
        submission = await make_submission(star, status="APPROVED", stream_uid=None)
        assert await media.run_ai_analysis(
            ctx, await _task(session_factory, TaskKind.RUN_AI_ANALYSIS, submission)
        ) == "skipped"

    async def test_failure_is_retried_then_recorded(self, ctx, session_factory, star, make_submission):
        ctx["analyzer"] = FakeAnalyzer(error=RuntimeError("model unavailable"))
        submission = await make_submission(star, status="APPROVED")
        task_id = await _task(session_factory, TaskKind.RUN_AI_ANALYSIS, submission)

        with pytest.raises(Retry):
            await media.run_ai_analysis(ctx, task_id)
        task = await _load_task(session_factory, task_id)
        assert task.status == "QUEUED"
        assert "model unavailable" in task.last_error

        async with UnitOfWork(session_factory) as u:
            analysis = await u.analyses.get_for_submission(submission.id)
            assert analysis.status == "ERROR"
            assert analysis.error_message == "model unavailable"

        ctx["job_try"] = 3
        assert await media.run_ai_analysis(ctx, task_id) == "error"
        task = await _load_task(session_factory, task_id)
        assert (task.status, task.attempts) == ("ERROR", 2)
        assert len(ctx["analyzer"].calls) == 2
