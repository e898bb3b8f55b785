"""
Timestamped reviewer feedback on submissions.
"""

from __future__ import annotations

import uuid

import structlog

from starstudio.core.auth import Principal
from starstudio.core.errors import Forbidden, NotFound, ValidationError
from starstudio.core.uow import UnitOfWork
from starstudio.models.feedback import Feedback
from starstudio_shared.schemas.feedback import FeedbackCreate, FeedbackRead, FeedbackUpdate

log = structlog.get_logger()


async def _get_or_404(uow: UnitOfWork, feedback_id: uuid.UUID) -> Feedback:
    feedback = await uow.feedback.get(feedback_id)
    if feedback is None:
        raise NotFound("Feedback not found.")
    return feedback


async def create(uow: UnitOfWork, principal: Principal, body: FeedbackCreate) -> FeedbackRead:
    async with uow:
        submission = await uow.submissions.get(body.submission_id)
        if submission is None:
            raise NotFound("Submission not found.")
        feedback = await uow.feedback.add(
            Feedback(
                submission_id=submission.id,
                author_id=principal.user_id,
                type=body.type.value,
                priority=body.priority.value,
                content=body.content,
                start_time=body.start_time,
                end_time=body.end_time,
                annotation=body.annotation,
            )
        )
        log.info("feedback.created", feedback_id=str(feedback.id), submission_id=str(submission.id))
        return FeedbackRead.model_validate(feedback)


async def list_for_submission(
    uow: UnitOfWork, principal: Principal, submission_id: uuid.UUID
) -> list[FeedbackRead]:
    async with uow:
        submission = await uow.submissions.get(submission_id)
        if submission is None:
            raise NotFound("Submission not found.")
        if not principal.is_admin and submission.star_id != principal.user_id:
            raise Forbidden("This submission belongs to another star.")
        return [FeedbackRead.model_validate(f) for f in await uow.feedback.list_for_submission(submission_id)]


async def update(
    uow: UnitOfWork, principal: Principal, feedback_id: uuid.UUID, body: FeedbackUpdate
) -> FeedbackRead:
    async with uow:
        feedback = await _get_or_404(uow, feedback_id)
        if body.content is not None:
            content = body.content.strip()
            if not content:
                raise ValidationError("content: must not be blank")
            feedback.content = content
        if body.priority is not None:
            feedback.priority = body.priority.value
        if body.status is not None:
            feedback.status = body.status.value
        if "annotation" in body.model_fields_set:
            feedback.annotation = body.annotation
        await uow.feedback.add(feedback)
        return FeedbackRead.model_validate(feedback)


async def delete(uow: UnitOfWork, principal: Principal, feedback_id: uuid.UUID) -> None:
    async with uow:
        feedback = await _get_or_404(uow, feedback_id)
        await uow.feedback.delete(feedback)
        log.info("feedback.deleted", feedback_id=str(feedback_id))
