"""Repositories for the production workflow: requests, assignments, submissions."""

from __future__ import annotations

from datetime import datetime
from typing import Optional
import uuid

from sqlalchemy import func
from sqlmodel import select

from starstudio.models.assignment import ProjectAssignment
from starstudio.models.feedback import Feedback
from starstudio.models.request import ProjectRequest
from starstudio.models.submission import Submission, Video
from starstudio.models.user import User
from starstudio_shared.schemas.common import (
    ACTIVE_ASSIGNMENT_STATUSES,
    AssignmentStatus,
    FeedbackStatus,
    PageParams,
    RequestStatus,
    SubmissionStatus,
)

from .base import Repository

_ACTIVE = [s.value for s in ACTIVE_ASSIGNMENT_STATUSES]


class RequestRepository(Repository[ProjectRequest]):
    model = ProjectRequest

    async def get_for_update(self, id: uuid.UUID) -> Optional[ProjectRequest]:
        """Load a request holding a row lock until the transaction ends.

        ``populate_existing`` refreshes an instance already in the identity map.
        """
        result = await self.session.execute(
            select(ProjectRequest)
            .where(ProjectRequest.id == id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def count_active(self, request_id: uuid.UUID) -> int:
        result = await self.session.execute(
            select(func.count(ProjectAssignment.id)).where(
                ProjectAssignment.request_id == request_id,
                ProjectAssignment.status.in_(_ACTIVE),
            )
        )
        return int(result.scalar_one())

    async def active_counts(self, request_ids: list[uuid.UUID]) -> dict[uuid.UUID, int]:
        if not request_ids:
            return {}
        result = await self.session.execute(
            select(ProjectAssignment.request_id, func.count(ProjectAssignment.id))
            .where(
                ProjectAssignment.request_id.in_(request_ids),
                ProjectAssignment.status.in_(_ACTIVE),
            )
            .group_by(ProjectAssignment.request_id)
        )
        return {request_id: count for request_id, count in result.all()}

    async def list(
        self,
        params: PageParams,
        *,
        status: Optional[str] = None,
        category: Optional[str] = None,
        search: Optional[str] = None,
    ) -> tuple[list[ProjectRequest], int]:
        stmt = select(ProjectRequest)
        if status:
            stmt = stmt.where(ProjectRequest.status == status)
        if search:
            stmt = stmt.where(ProjectRequest.title.ilike(f"%{search}%"))
        stmt = stmt.order_by(ProjectRequest.deadline, ProjectRequest.created_at.desc())
        if category:
            # Categories live in a JSON array; filter in Python to stay portable.
            items = [r for r in await self.all(stmt) if category in (r.categories or [])]
            return items[params.offset:params.offset + params.page_size], len(items)
        return await self.paginate(stmt, params)

    async def open_board(self, params: PageParams, category: Optional[str] = None):
        return await self.list(params, status=RequestStatus.OPEN.value, category=category)

    async def category_counts(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for categories in (await self.session.execute(select(ProjectRequest.categories))).scalars():
            for name in set(categories or []):
                counts[name] = counts.get(name, 0) + 1
        return counts


class AssignmentRepository(Repository[ProjectAssignment]):
    model = ProjectAssignment

    def _joined(self):
        return (
            select(ProjectAssignment, ProjectRequest.title, User.name)
            .join(ProjectRequest, ProjectRequest.id == ProjectAssignment.request_id)
            .join(User, User.id == ProjectAssignment.star_id)
        )

    async def get_by_star_and_request(
        self, star_id: uuid.UUID, request_id: uuid.UUID
    ) -> Optional[ProjectAssignment]:
        return await self.first(
            select(ProjectAssignment).where(
                ProjectAssignment.star_id == star_id,
                ProjectAssignment.request_id == request_id,
            )
        )

    async def list_pending(self, params: PageParams):
        stmt = (
            self._joined()
            .where(ProjectAssignment.status == AssignmentStatus.PENDING_APPROVAL.value)
            .order_by(ProjectAssignment.created_at)
        )
        return await self.paginate(stmt, params, rows=True)

    async def list_for_star(self, star_id: uuid.UUID, params: PageParams, status: Optional[str] = None):
        stmt = self._joined().where(ProjectAssignment.star_id == star_id)
        if status:
            stmt = stmt.where(ProjectAssignment.status == status)
        stmt = stmt.order_by(ProjectAssignment.created_at.desc())
        return await self.paginate(stmt, params, rows=True)


class SubmissionRepository(Repository[Submission]):
    model = Submission

    async def slot_taken(self, assignment_id: uuid.UUID, version_slot: int) -> bool:
        found = await self.first(
            select(Submission).where(
                Submission.assignment_id == assignment_id,
                Submission.version_slot == version_slot,
            )
        )
        return found is not None

    async def count_for_assignment(self, assignment_id: uuid.UUID) -> int:
        return await self.count(select(Submission).where(Submission.assignment_id == assignment_id))

    async def count_by_status(self, status: str) -> int:
        return await self.count(select(Submission).where(Submission.status == status))

    async def list(
        self,
        params: PageParams,
        *,
        status: Optional[str] = None,
        star_id: Optional[uuid.UUID] = None,
        assignment_id: Optional[uuid.UUID] = None,
    ) -> tuple[list[Submission], int]:
        stmt = select(Submission)
        if status:
            stmt = stmt.where(Submission.status == status)
        if star_id:
            stmt = stmt.where(Submission.star_id == star_id)
        if assignment_id:
            stmt = stmt.where(Submission.assignment_id == assignment_id)
        stmt = stmt.order_by(Submission.created_at.desc())
        return await self.paginate(stmt, params)

    async def approved_between(self, start: datetime, end: datetime) -> list[Submission]:
        return await self.all(
            select(Submission)
            .where(
                Submission.status == SubmissionStatus.APPROVED.value,
                Submission.approved_at >= start,
                Submission.approved_at < end,
            )
            .order_by(Submission.approved_at)
        )


class VideoRepository(Repository[Video]):
    model = Video

    async def list_by_ids(self, ids: list[uuid.UUID]) -> list[Video]:
        if not ids:
            return []
        return await self.all(select(Video).where(Video.id.in_(ids)))


class FeedbackRepository(Repository[Feedback]):
    model = Feedback

    async def count_pending_for_star(self, star_id: uuid.UUID) -> int:
        return await self.count(
            select(Feedback)
            .join(Submission, Submission.id == Feedback.submission_id)
            .where(Submission.star_id == star_id, Feedback.status == FeedbackStatus.PENDING.value)
        )

    async def list_for_submission(self, submission_id: uuid.UUID) -> list[Feedback]:
        return await self.all(
            select(Feedback)
            .where(Feedback.submission_id == submission_id)
            .order_by(Feedback.start_time.is_(None), Feedback.start_time, Feedback.created_at)
        )
