"""
Submission review: stars upload versions against an assignment, admins
approve or reject them.

Approval completes the linked assignment in the same transaction. Video
status propagation and AI analysis are queued only after commit and can
never fail the review itself.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

import structlog
from sqlalchemy.exc import IntegrityError

from starstudio.core.auth import Principal
from starstudio.core.errors import Conflict, Forbidden, InvalidState, NotFound
from starstudio.core.uow import UnitOfWork
from starstudio.integrations.stream import StreamClient
from starstudio.models.submission import Submission
from starstudio.services.task_queue import TaskQueue
from starstudio_shared.schemas.common import (
    AssignmentStatus,
    Page,
    PageParams,
    SubmissionStatus,
    TaskKind,
    total_pages,
)
from starstudio_shared.schemas.submissions import (
    AnalysisRead,
    SubmissionCreate,
    SubmissionRead,
    UploadUrlResponse,
)

log = structlog.get_logger()

# Assignment states a star may upload against.
SUBMITTABLE = {
    AssignmentStatus.ACCEPTED.value,
    AssignmentStatus.IN_PROGRESS.value,
    AssignmentStatus.SUBMITTED.value,
}


def _page(items, total: int, params: PageParams) -> Page[SubmissionRead]:
    return Page[SubmissionRead](
        data=[SubmissionRead.model_validate(s) for s in items],
        total=total,
        page=params.page,
        page_size=params.page_size,
        total_pages=total_pages(total, params.page_size),
    )


async def _get_or_404(uow: UnitOfWork, submission_id: uuid.UUID) -> Submission:
    submission = await uow.submissions.get(submission_id)
    if submission is None:
        raise NotFound("Submission not found.")
    return submission


def _check_access(principal: Principal, submission: Submission) -> None:
    if not principal.is_admin and submission.star_id != principal.user_id:
        raise Forbidden("This submission belongs to another star.")


# ---------------------------------------------------------------------------
# Star actions
# ---------------------------------------------------------------------------

async def create_upload_url(stream: StreamClient, max_duration_seconds: int = 600) -> UploadUrlResponse:
    session = await stream.create_upload_session(max_duration_seconds)
    log.info("submission.upload_url_issued", video_id=session.video_id)
    return UploadUrlResponse(upload_url=session.upload_url, video_id=session.video_id)


async def create(uow: UnitOfWork, principal: Principal, body: SubmissionCreate) -> SubmissionRead:
    async with uow:
        assignment = await uow.assignments.get(body.assignment_id)
        if assignment is None:
            raise NotFound("Assignment not found.")
        if assignment.star_id != principal.user_id:
            raise Forbidden("This assignment belongs to another star.")
        if assignment.status not in SUBMITTABLE:
            raise InvalidState("Submissions are not accepted for this assignment.")
        if await uow.submissions.slot_taken(assignment.id, body.version_slot):
            raise Conflict(f"Version slot {body.version_slot} is already used.")

        count = await uow.submissions.count_for_assignment(assignment.id)
        try:
            submission = await uow.submissions.add(
                Submission(
                    assignment_id=assignment.id,
                    star_id=principal.user_id,
                    version=f"{count + 1}.0",
                    version_slot=body.version_slot,
                    version_title=body.version_title.strip(),
                    description=body.description,
                    stream_uid=body.stream_uid,
                    thumbnail_url=str(body.thumbnail_url) if body.thumbnail_url else None,
                )
            )
        except IntegrityError:
            raise Conflict(f"Version slot {body.version_slot} is already used.") from None

        assignment.status = AssignmentStatus.SUBMITTED.value
        await uow.assignments.add(assignment)

        log.info(
            "submission.created",
            submission_id=str(submission.id),
            assignment_id=str(assignment.id),
            version_slot=body.version_slot,
        )
        return SubmissionRead.model_validate(submission)


async def list_mine(uow: UnitOfWork, principal: Principal, params: PageParams) -> Page[SubmissionRead]:
    async with uow:
        items, total = await uow.submissions.list(params, star_id=principal.user_id)
        return _page(items, total, params)


async def get(uow: UnitOfWork, principal: Principal, submission_id: uuid.UUID) -> SubmissionRead:
    async with uow:
        submission = await _get_or_404(uow, submission_id)
        _check_access(principal, submission)
        return SubmissionRead.model_validate(submission)


async def get_analysis(uow: UnitOfWork, principal: Principal, submission_id: uuid.UUID) -> AnalysisRead:
    async with uow:
        submission = await _get_or_404(uow, submission_id)
        _check_access(principal, submission)
        analysis = await uow.analyses.get_for_submission(submission_id)
        if analysis is None:
            raise NotFound("No analysis exists for this submission.")
        return AnalysisRead.model_validate(analysis)


# ---------------------------------------------------------------------------
# Admin review
# ---------------------------------------------------------------------------

async def list_all(
    uow: UnitOfWork,
    principal: Principal,
    params: PageParams,
    *,
    status: Optional[SubmissionStatus] = None,
    star_id: Optional[uuid.UUID] = None,
    assignment_id: Optional[uuid.UUID] = None,
) -> Page[SubmissionRead]:
    async with uow:
        items, total = await uow.submissions.list(
            params,
            status=status.value if status else None,
            star_id=star_id,
            assignment_id=assignment_id,
        )
        return _page(items, total, params)


async def approve(
    uow: UnitOfWork,
    principal: Principal,
    submission_id: uuid.UUID,
    queue: TaskQueue,
) -> SubmissionRead:
    async with uow:
        submission = await _get_or_404(uow, submission_id)
        now = datetime.now(timezone.utc)
        submission.status = SubmissionStatus.APPROVED.value
        submission.reviewer_id = principal.user_id
        submission.approved_at = now
        submission.reviewed_at = now
        await uow.submissions.add(submission)

        if submission.assignment_id is not None:
            assignment = await uow.assignments.get(submission.assignment_id)
            if assignment is not None:
                assignment.status = AssignmentStatus.COMPLETED.value
                await uow.assignments.add(assignment)

        result = SubmissionRead.model_validate(submission)

    log.info("submission.approved", submission_id=str(submission_id))
    payload = {"submission_id": str(submission_id)}
    await queue.submit(TaskKind.PROPAGATE_VIDEO_STATUS, payload)
    await queue.submit(TaskKind.RUN_AI_ANALYSIS, payload)
    return result


async def reject(
    uow: UnitOfWork,
    principal: Principal,
    submission_id: uuid.UUID,
    queue: TaskQueue,
    reason: Optional[str] = None,
) -> SubmissionRead:
    async with uow:
        submission = await _get_or_404(uow, submission_id)
        submission.status = SubmissionStatus.REJECTED.value
        submission.reviewer_id = principal.user_id
        submission.reviewed_at = datetime.now(timezone.utc)
        submission.review_reason = reason or None
        await uow.submissions.add(submission)
        result = SubmissionRead.model_validate(submission)

    log.info("submission.rejected", submission_id=str(submission_id))
    await queue.submit(TaskKind.PROPAGATE_VIDEO_STATUS, {"submission_id": str(submission_id)})
    return result


async def sync_specs(
    uow: UnitOfWork,
    principal: Principal,
    submission_id: uuid.UUID,
    stream: StreamClient,
) -> SubmissionRead:
    """Copy duration and resolution from the video host onto the submission."""
    async with uow:
        submission = await _get_or_404(uow, submission_id)
        _check_access(principal, submission)
        stream_uid = submission.stream_uid

    if not stream_uid:
        raise InvalidState("This submission has no uploaded video.")
    status = await stream.get_asset_status(stream_uid)
    if status is None:
        raise NotFound("The video host does not know this video.")

    async with uow:
        submission = await _get_or_404(uow, submission_id)
        if status.duration_seconds is not None:
            submission.duration_seconds = status.duration_seconds
        if status.width:
            submission.width = status.width
        if status.height:
            submission.height = status.height
        if status.thumbnail_url and not submission.thumbnail_url:
            submission.thumbnail_url = status.thumbnail_url
        await uow.submissions.add(submission)
        log.info("submission.specs_synced", submission_id=str(submission_id), state=status.state)
        return SubmissionRead.model_validate(submission)
