"""
Project requests: the production jobs admins post for stars.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog

from starstudio.core.auth import Principal
from starstudio.core.errors import Conflict, NotFound, ValidationError
from starstudio.core.uow import UnitOfWork
from starstudio.models.request import ProjectRequest
from starstudio_shared.schemas.common import Page, PageParams, RequestStatus, total_pages
from starstudio_shared.schemas.requests import CategoryRead, RequestCreate, RequestRead, RequestUpdate

log = structlog.get_logger()


def to_read(request: ProjectRequest, current_assignees: int = 0) -> RequestRead:
    read = RequestRead.model_validate(request)
    read.current_assignees = current_assignees
    return read


async def _get_or_404(uow: UnitOfWork, request_id: uuid.UUID) -> ProjectRequest:
    request = await uow.requests.get(request_id)
    if request is None:
        raise NotFound("Request not found.")
    return request


async def _page(uow: UnitOfWork, items, total: int, params: PageParams) -> Page[RequestRead]:
    counts = await uow.requests.active_counts([r.id for r in items])
    return Page[RequestRead](
        data=[to_read(r, counts.get(r.id, 0)) for r in items],
        total=total,
        page=params.page,
        page_size=params.page_size,
        total_pages=total_pages(total, params.page_size),
    )


async def create(uow: UnitOfWork, principal: Principal, body: RequestCreate) -> RequestRead:
    async with uow:
        request = await uow.requests.add(
            ProjectRequest(
                title=body.title,
                categories=body.categories,
                deadline=body.deadline,
                assignment_type=body.assignment_type.value,
                max_assignees=body.max_assignees,
                estimated_budget=body.estimated_budget,
                requirements=body.requirements,
                reference_urls=[str(u) for u in body.reference_urls],
                created_by_id=principal.user_id,
            )
        )
        log.info("request.created", request_id=str(request.id), max_assignees=request.max_assignees)
        return to_read(request)


async def update(
    uow: UnitOfWork, principal: Principal, request_id: uuid.UUID, body: RequestUpdate
) -> RequestRead:
    changes = body.model_dump(exclude_unset=True)
    async with uow:
        request = await uow.requests.get_for_update(request_id)
        if request is None:
            raise NotFound("Request not found.")
        active = await uow.requests.count_active(request.id)

        max_assignees = changes.get("max_assignees") or request.max_assignees
        if max_assignees < active:
            raise Conflict(f"{active} stars are already assigned; capacity cannot go below that.")

        for key in ("title", "deadline", "max_assignees", "estimated_budget", "requirements", "categories"):
            if key in changes and changes[key] is not None:
                setattr(request, key, changes[key])
        if "title" in changes and changes["title"]:
            request.title = changes["title"].strip()
        if body.assignment_type is not None:
            request.assignment_type = body.assignment_type.value
        if body.reference_urls is not None:
            request.reference_urls = [str(u) for u in body.reference_urls]

        if body.status is not None:
            if body.status == RequestStatus.FULL:
                raise ValidationError("FULL is set by approvals reaching capacity, not by hand.")
            if body.status == RequestStatus.OPEN and active >= max_assignees:
                raise Conflict("A request at capacity cannot be reopened.")
            request.status = body.status.value
        elif request.status == RequestStatus.FULL.value and active < max_assignees:
            request.status = RequestStatus.OPEN.value
        elif request.status == RequestStatus.OPEN.value and active >= max_assignees:
            request.status = RequestStatus.FULL.value

        await uow.requests.add(request)
        log.info("request.updated", request_id=str(request.id), fields=sorted(changes))
        return to_read(request, active)


async def board(
    uow: UnitOfWork, principal: Principal, params: PageParams, category: Optional[str] = None
) -> Page[RequestRead]:
    """Open requests stars can apply for."""
    async with uow:
        items, total = await uow.requests.open_board(params, category)
        return await _page(uow, items, total, params)


async def list_requests(
    uow: UnitOfWork,
    principal: Principal,
    params: PageParams,
    *,
    status: Optional[RequestStatus] = None,
    search: Optional[str] = None,
) -> Page[RequestRead]:
    async with uow:
        items, total = await uow.requests.list(
            params, status=status.value if status else None, search=search
        )
        return await _page(uow, items, total, params)


async def get(uow: UnitOfWork, principal: Principal, request_id: uuid.UUID) -> RequestRead:
    async with uow:
        request = await _get_or_404(uow, request_id)
        return to_read(request, await uow.requests.count_active(request.id))


async def list_categories(uow: UnitOfWork, principal: Principal) -> list[CategoryRead]:
    """Every category used by a request, with how many requests carry it."""
    async with uow:
        counts = await uow.requests.category_counts()
        return [CategoryRead(name=name, request_count=counts[name]) for name in sorted(counts)]
