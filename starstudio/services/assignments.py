"""
Assignment lifecycle: a star's claim on a production request.

State machine:
    PENDING_APPROVAL -> ACCEPTED | REJECTED
    ACCEPTED -> IN_PROGRESS -> SUBMITTED -> COMPLETED
COMPLETED is also set directly by submission approval. REJECTED and
COMPLETED are terminal.

Approval is the capacity-critical path: it locks the request row,
re-counts active assignments and flips the request to FULL in the same
transaction as the approval write.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

import structlog
from sqlalchemy.exc import IntegrityError

from starstudio.core.auth import Principal
from starstudio.core.errors import Conflict, Forbidden, InvalidState, NotFound, ValidationError
from starstudio.core.uow import UnitOfWork
from starstudio.models.assignment import ProjectAssignment
from starstudio_shared.schemas.assignments import AssignmentRead
from starstudio_shared.schemas.common import (
    AssignmentStatus,
    Page,
    PageParams,
    RequestStatus,
    total_pages,
)

log = structlog.get_logger()

MAX_REJECTION_REASON = 500


def to_read(
    assignment: ProjectAssignment,
    request_title: Optional[str] = None,
    star_name: Optional[str] = None,
) -> AssignmentRead:
    read = AssignmentRead.model_validate(assignment)
    read.request_title = request_title
    read.star_name = star_name
    return read


def _page(rows, total: int, params: PageParams) -> Page[AssignmentRead]:
    return Page[AssignmentRead](
        data=[to_read(a, title, name) for a, title, name in rows],
        total=total,
        page=params.page,
        page_size=params.page_size,
        total_pages=total_pages(total, params.page_size),
    )


async def _get_or_404(uow: UnitOfWork, assignment_id: uuid.UUID) -> ProjectAssignment:
    assignment = await uow.assignments.get(assignment_id)
    if assignment is None:
        raise NotFound("Assignment not found.")
    return assignment


# ---------------------------------------------------------------------------
# Star actions
# ---------------------------------------------------------------------------

async def accept(uow: UnitOfWork, principal: Principal, request_id: uuid.UUID) -> AssignmentRead:
    """Apply for a request. The assignment waits for admin approval."""
    async with uow:
        request = await uow.requests.get(request_id)
        if request is None:
            raise NotFound("Request not found.")
        if request.status != RequestStatus.OPEN.value:
            raise InvalidState("This request is not accepting applicants.")

        existing = await uow.assignments.get_by_star_and_request(principal.user_id, request_id)
        if existing is not None:
            raise Conflict("You have already applied for this request.")

        try:
            assignment = await uow.assignments.add(
                ProjectAssignment(star_id=principal.user_id, request_id=request_id)
            )
        except IntegrityError:
            # A concurrent apply won the unique constraint.
            raise Conflict("You have already applied for this request.") from None
        log.info("assignment.requested", assignment_id=str(assignment.id), request_id=str(request_id))
        return to_read(assignment, request.title, principal.name)


async def start(uow: UnitOfWork, principal: Principal, assignment_id: uuid.UUID) -> AssignmentRead:
    """Mark an accepted assignment as in progress."""
    async with uow:
        assignment = await _get_or_404(uow, assignment_id)
        if assignment.star_id != principal.user_id:
            raise Forbidden("This assignment belongs to another star.")
        if assignment.status != AssignmentStatus.ACCEPTED.value:
            raise InvalidState("Only accepted assignments can be started.")
        assignment.status = AssignmentStatus.IN_PROGRESS.value
        await uow.assignments.add(assignment)
        log.info("assignment.started", assignment_id=str(assignment.id))
        return to_read(assignment)


async def list_mine(
    uow: UnitOfWork,
    principal: Principal,
    params: PageParams,
    status: Optional[AssignmentStatus] = None,
) -> Page[AssignmentRead]:
    async with uow:
        rows, total = await uow.assignments.list_for_star(
            principal.user_id, params, status.value if status else None
        )
        return _page(rows, total, params)


# ---------------------------------------------------------------------------
# Admin review
# ---------------------------------------------------------------------------

async def list_pending(uow: UnitOfWork, principal: Principal, params: PageParams) -> Page[AssignmentRead]:
    async with uow:
        rows, total = await uow.assignments.list_pending(params)
        return _page(rows, total, params)


async def approve(uow: UnitOfWork, principal: Principal, assignment_id: uuid.UUID) -> AssignmentRead:
    async with uow:
        assignment = await _get_or_404(uow, assignment_id)
        if assignment.status != AssignmentStatus.PENDING_APPROVAL.value:
            raise InvalidState("Only pending assignments can be approved.")

        # Serialize approvals per request: lock first, then count.
        request = await uow.requests.get_for_update(assignment.request_id)
        if request is None:
            raise NotFound("Request not found.")
        active = await uow.requests.count_active(request.id)
        if active >= request.max_assignees:
            raise Conflict("This request has no remaining capacity.")

        assignment.status = AssignmentStatus.ACCEPTED.value
        assignment.reviewed_by_id = principal.user_id
        assignment.reviewed_at = datetime.now(timezone.utc)
        await uow.assignments.add(assignment)

        if active + 1 >= request.max_assignees:
            request.status = RequestStatus.FULL.value
            await uow.requests.add(request)

        log.info(
            "assignment.approved",
            assignment_id=str(assignment.id),
            request_id=str(request.id),
            active=active + 1,
            max_assignees=request.max_assignees,
        )
        return to_read(assignment, request.title)


async def reject(
    uow: UnitOfWork,
    principal: Principal,
    assignment_id: uuid.UUID,
    reason: Optional[str] = None,
) -> AssignmentRead:
    if reason is not None and len(reason) > MAX_REJECTION_REASON:
        raise ValidationError(f"Rejection reason must be at most {MAX_REJECTION_REASON} characters.")

    async with uow:
        assignment = await _get_or_404(uow, assignment_id)
        if assignment.status != AssignmentStatus.PENDING_APPROVAL.value:
            raise InvalidState("Only pending assignments can be rejected.")

        assignment.status = AssignmentStatus.REJECTED.value
        assignment.rejection_reason = reason or None
        assignment.reviewed_by_id = principal.user_id
        assignment.reviewed_at = datetime.now(timezone.utc)
        await uow.assignments.add(assignment)
        log.info("assignment.rejected", assignment_id=str(assignment.id))
        return to_read(assignment)
