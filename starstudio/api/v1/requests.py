"""
Project request endpoints: the board stars browse and the admin CRUD.
"""

from __future__ import annotations

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends

from starstudio.api.deps import get_uow, page_params
from starstudio.core.auth import Principal, require_admin, require_approved, require_star
from starstudio.core.uow import UnitOfWork
from starstudio.services import assignments as assignment_service
from starstudio.services import requests as request_service
from starstudio_shared.schemas.assignments import AssignmentRead
from starstudio_shared.schemas.common import DataResponse, Page, PageParams, RequestStatus
from starstudio_shared.schemas.requests import CategoryRead, RequestCreate, RequestRead, RequestUpdate

router = APIRouter()


@router.get("/board", response_model=Page[RequestRead])
async def board_endpoint(
    category: Optional[str] = None,
    params: PageParams = Depends(page_params),
    principal: Principal = Depends(require_approved),
    uow: UnitOfWork = Depends(get_uow),
):
    return await request_service.board(uow, principal, params, category)


@router.get("/categories", response_model=DataResponse[List[CategoryRead]])
async def list_categories_endpoint(
    principal: Principal = Depends(require_approved),
    uow: UnitOfWork = Depends(get_uow),
):
    return DataResponse(data=await request_service.list_categories(uow, principal))


@router.get("/", response_model=Page[RequestRead])
async def list_requests_endpoint(
    status: Optional[RequestStatus] = None,
    search: Optional[str] = None,
    params: PageParams = Depends(page_params),
    principal: Principal = Depends(require_admin),
    uow: UnitOfWork = Depends(get_uow),
):
    return await request_service.list_requests(uow, principal, params, status=status, search=search)


@router.post("/", response_model=DataResponse[RequestRead], status_code=201)
async def create_request_endpoint(
    body: RequestCreate,
    principal: Principal = Depends(require_admin),
    uow: UnitOfWork = Depends(get_uow),
):
    return DataResponse(data=await request_service.create(uow, principal, body))


@router.get("/{request_id}", response_model=DataResponse[RequestRead])
async def get_request_endpoint(
    request_id: uuid.UUID,
    principal: Principal = Depends(require_approved),
    uow: UnitOfWork = Depends(get_uow),
):
    return DataResponse(data=await request_service.get(uow, principal, request_id))


@router.patch("/{request_id}", response_model=DataResponse[RequestRead])
async def update_request_endpoint(
    request_id: uuid.UUID,
    body: RequestUpdate,
    principal: Principal = Depends(require_admin),
    uow: UnitOfWork = Depends(get_uow),
):
    return DataResponse(data=await request_service.update(uow, principal, request_id, body))


@router.post("/{request_id}/accept", response_model=DataResponse[AssignmentRead], status_code=201)
async def accept_request_endpoint(
    request_id: uuid.UUID,
    principal: Principal = Depends(require_star),
    uow: UnitOfWork = Depends(get_uow),
):
    """Apply for a request; the resulting assignment awaits admin approval."""
    return DataResponse(data=await assignment_service.accept(uow, principal, request_id))
