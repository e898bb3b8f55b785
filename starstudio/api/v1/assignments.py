"""
Assignment endpoints: admin approval queue and the star's own assignments.
"""

from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Body, Depends

from starstudio.api.deps import get_uow, page_params
from starstudio.core.auth import Principal, require_admin, require_star
from starstudio.core.uow import UnitOfWork
from starstudio.services import assignments as assignment_service
from starstudio_shared.schemas.assignments import AssignmentRead, AssignmentReject
from starstudio_shared.schemas.common import AssignmentStatus, DataResponse, Page, PageParams

router = APIRouter()


@router.get("/pending", response_model=Page[AssignmentRead])
async def list_pending_endpoint(
    params: PageParams = Depends(page_params),
    principal: Principal = Depends(require_admin),
    uow: UnitOfWork = Depends(get_uow),
):
    return await assignment_service.list_pending(uow, principal, params)


@router.get("/mine", response_model=Page[AssignmentRead])
async def list_mine_endpoint(
    status: Optional[AssignmentStatus] = None,
    params: PageParams = Depends(page_params),
    principal: Principal = Depends(require_star),
    uow: UnitOfWork = Depends(get_uow),
):
    return await assignment_service.list_mine(uow, principal, params, status)


@router.post("/{assignment_id}/approve", response_model=DataResponse[AssignmentRead])
async def approve_endpoint(
    assignment_id: uuid.UUID,
    principal: Principal = Depends(require_admin),
    uow: UnitOfWork = Depends(get_uow),
):
    return DataResponse(data=await assignment_service.approve(uow, principal, assignment_id))


@router.post("/{assignment_id}/reject", response_model=DataResponse[AssignmentRead])
async def reject_endpoint(
    assignment_id: uuid.UUID,
    body: Optional[AssignmentReject] = Body(None),
    principal: Principal = Depends(require_admin),
    uow: UnitOfWork = Depends(get_uow),
):
    reason = body.rejection_reason if body else None
    return DataResponse(data=await assignment_service.reject(uow, principal, assignment_id, reason))


@router.post("/{assignment_id}/start", response_model=DataResponse[AssignmentRead])
async def start_endpoint(
    assignment_id: uuid.UUID,
    principal: Principal = Depends(require_star),
    uow: UnitOfWork = Depends(get_uow),
):
    return DataResponse(data=await assignment_service.start(uow, principal, assignment_id))
