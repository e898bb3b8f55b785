"""
Submission review tests.

Tests cover:
- Creating versions against an assignment (ownership, state, slot uniqueness)
- Approval completing the assignment and queueing follow-up jobs
- Rejection leaving the assignment untouched
- Spec sync from the video host (mock mode)
"""

from __future__ import annotations

import uuid

import pytest

from conftest import auth_headers, principal_of
from starstudio.api.deps import get_stream_client
from starstudio.core.errors import Conflict, Forbidden, InvalidState, NotFound
from starstudio.core.uow import UnitOfWork
from starstudio.integrations.stream import StreamClient
from starstudio.main import app
from starstudio.repositories.workflow import SubmissionRepository
from starstudio.services import submissions as submission_service
from starstudio_shared.schemas.common import SubmissionStatus, TaskKind
from starstudio_shared.schemas.submissions import SubmissionCreate


def _create_body(assignment, slot=0, title="First cut"):
    return SubmissionCreate(
        assignment_id=assignment.id,
        version_slot=slot,
        version_title=title,
        stream_uid=f"uid-{slot}",
    )


class TestCreate:
    async def test_first_version_moves_assignment_to_submitted(
        self, uow, session_factory, admin, star, make_request, make_assignment
    ):
        request = await make_request(admin)
        assignment = await make_assignment(star, request, status="IN_PROGRESS")

        read = await submission_service.create(uow, principal_of(star), _create_body(assignment))
        assert read.version == "1.0"
        assert read.status == SubmissionStatus.PENDING

        async with UnitOfWork(session_factory) as check:
            assert (await check.assignments.get(assignment.id)).status == "SUBMITTED"

    async def test_second_slot_gets_next_version(self, uow, admin, star, make_request, make_assignment):
        request = await make_request(admin)
        assignment = await make_assignment(star, request)
        await submission_service.create(uow, principal_of(star), _create_body(assignment, 0))
        second = await submission_service.create(uow, principal_of(star), _create_body(assignment, 1, "Recut"))
        assert second.version == "2.0"
        assert second.version_title == "Recut"

    async def test_taken_slot_conflicts(self, uow, admin, star, make_request, make_assignment):
        request = await make_request(admin)
        assignment = await make_assignment(star, request)
        await submission_service.create(uow, principal_of(star), _create_body(assignment, 2))
        with pytest.raises(Conflict):
            await submission_service.create(uow, principal_of(star), _create_body(assignment, 2))

    async def test_racing_slot_hits_unique_constraint(
        self, uow, admin, star, make_request, make_assignment, monkeypatch
    ):
        request = await make_request(admin)
        assignment = await make_assignment(star, request)
        await submission_service.create(uow, principal_of(star), _create_body(assignment, 3))

        async def free(self, assignment_id, version_slot):
            return False

        monkeypatch.setattr(SubmissionRepository, "slot_taken", free)
        with pytest.raises(Conflict):
            await submission_service.create(uow, principal_of(star), _create_body(assignment, 3))

    async def test_pending_assignment_cannot_submit(self, uow, admin, star, make_request, make_assignment):
        request = await make_request(admin)
        assignment = await make_assignment(star, request, status="PENDING_APPROVAL")
        with pytest.raises(InvalidState):
            await submission_service.create(uow, principal_of(star), _create_body(assignment))

    async def test_other_stars_assignment_forbidden(
        self, uow, admin, star, make_user, make_request, make_assignment
    ):
        request = await make_request(admin)
        assignment = await make_assignment(star, request)
        other = await make_user(name="Other")
        with pytest.raises(Forbidden):
            await submission_service.create(uow, principal_of(other), _create_body(assignment))


class TestReview:
    async def test_approve_completes_assignment_and_queues_jobs(
        self, uow, session_factory, queue, arq_pool, admin, star, make_request, make_assignment, make_submission
    ):
        request = await make_request(admin)
        assignment = await make_assignment(star, request, status="SUBMITTED")
        submission = await make_submission(star, assignment)

        read = await submission_service.approve(uow, principal_of(admin), submission.id, queue)
        assert read.status == SubmissionStatus.APPROVED
        assert read.approved_at is not None
        assert read.reviewer_id == admin.id

        async with UnitOfWork(session_factory) as check:
            assert (await check.assignments.get(assignment.id)).status == "COMPLETED"
            tasks = await check.tasks.list_by_kind(TaskKind.RUN_AI_ANALYSIS.value)
            assert len(tasks) == 1
            assert tasks[0].payload == {"submission_id": str(submission.id)}

        kinds = [job[0] for job in arq_pool.jobs]
        assert kinds == [TaskKind.PROPAGATE_VIDEO_STATUS.value, TaskKind.RUN_AI_ANALYSIS.value]

    async def test_approve_survives_enqueue_failure(
        self, uow, session_factory, admin, star, make_request, make_assignment, make_submission
    ):
        from starstudio.services.task_queue import TaskQueue

        async def broken_pool():
            raise ConnectionError("redis is down")

        request = await make_request(admin)
        assignment = await make_assignment(star, request, status="SUBMITTED")
        submission = await make_submission(star, assignment)

        read = await submission_service.approve(
            uow, principal_of(admin), submission.id, TaskQueue(session_factory, broken_pool)
        )
        assert read.status == SubmissionStatus.APPROVED

        async with UnitOfWork(session_factory) as check:
            assert (await check.submissions.get(submission.id)).status == "APPROVED"
            tasks = await check.tasks.list_by_kind(TaskKind.PROPAGATE_VIDEO_STATUS.value)
            assert tasks[0].status == "ERROR"
            assert "redis is down" in tasks[0].last_error

    async def test_reject_keeps_assignment_state(
        self, uow, session_factory, queue, arq_pool, admin, star, make_request, make_assignment, make_submission
    ):
        request = await make_request(admin)
        assignment = await make_assignment(star, request, status="SUBMITTED")
        submission = await make_submission(star, assignment)

        read = await submission_service.reject(
            uow, principal_of(admin), submission.id, queue, "Audio clipping at 0:42"
        )
        assert read.status == SubmissionStatus.REJECTED
        assert read.review_reason == "Audio clipping at 0:42"

        async with UnitOfWork(session_factory) as check:
            assert (await check.assignments.get(assignment.id)).status == "SUBMITTED"
        assert [job[0] for job in arq_pool.jobs] == [TaskKind.PROPAGATE_VIDEO_STATUS.value]

    async def test_approve_missing_submission(self, uow, queue, admin):
        with pytest.raises(NotFound):
            await submission_service.approve(uow, principal_of(admin), uuid.uuid4(), queue)


class TestSyncSpecs:
    async def test_copies_specs_from_mock_host(self, uow, admin, star, make_submission):
        submission = await make_submission(star, stream_uid="abc123")
        read = await submission_service.sync_specs(uow, principal_of(star), submission.id, StreamClient())
        assert read.duration_seconds == 120.0
        assert (read.width, read.height) == (1920, 1080)
        assert read.thumbnail_url.endswith("/abc123/thumbnails/thumbnail.jpg")

    async def test_without_upload_is_invalid_state(self, uow, star, make_submission):
        submission = await make_submission(star, stream_uid=None)
        with pytest.raises(InvalidState):
            await submission_service.sync_specs(uow, principal_of(star), submission.id, StreamClient())


class TestSubmissionEndpoints:
    async def test_upload_url_in_mock_mode(self, client, star):
        app.dependency_overrides[get_stream_client] = lambda: StreamClient()
        resp = await client.post("/api/v1/submissions/upload-url", headers=auth_headers(star))
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["videoId"].startswith("mock-")
        assert data["uploadUrl"].endswith(data["videoId"])

    async def test_create_and_list_mine(self, client, admin, star, make_request, make_assignment):
        request = await make_request(admin)
        assignment = await make_assignment(star, request)
        resp = await client.post(
            "/api/v1/submissions/",
            json={
                "assignmentId": str(assignment.id),
                "versionSlot": 0,
                "versionTitle": "Director's cut",
                "streamUid": "uid-xyz",
            },
            headers=auth_headers(star),
        )
        assert resp.status_code == 201
        assert resp.json()["data"]["version"] == "1.0"

        resp = await client.get("/api/v1/submissions/mine", headers=auth_headers(star))
        assert resp.json()["total"] == 1

    async def test_slot_out_of_range_rejected(self, client, admin, star, make_request, make_assignment):
        request = await make_request(admin)
        assignment = await make_assignment(star, request)
        resp = await client.post(
            "/api/v1/submissions/",
            json={"assignmentId": str(assignment.id), "versionSlot": 6, "versionTitle": "x", "streamUid": "u"},
            headers=auth_headers(star),
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "VALIDATION_ERROR"

    async def test_admin_approves_over_http(self, client, arq_pool, admin, star, make_request, make_assignment, make_submission):
        request = await make_request(admin)
        assignment = await make_assignment(star, request, status="SUBMITTED")
        submission = await make_submission(star, assignment)

        resp = await client.post(f"/api/v1/submissions/{submission.id}/approve", headers=auth_headers(admin))
        assert resp.status_code == 200
        assert resp.json()["data"]["status"] == "APPROVED"
        assert len(arq_pool.jobs) == 2

    async def test_star_cannot_read_other_submission(self, client, star, make_user, make_submission):
        other = await make_user(name="Other")
        submission = await make_submission(other)
        resp = await client.get(f"/api/v1/submissions/{submission.id}", headers=auth_headers(star))
        assert resp.status_code == 403

    async def test_analysis_missing_is_404(self, client, star, make_submission):
        submission = await make_submission(star)
        resp = await client.get(f"/api/v1/submissions/{submission.id}/analysis", headers=auth_headers(star))
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "NOT_FOUND"
