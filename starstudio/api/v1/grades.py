"""
Pricing grade endpoints (admin).
"""

from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends

from starstudio.api.deps import deleted, get_uow
from starstudio.core.auth import Principal, require_admin
from starstudio.core.uow import UnitOfWork
from starstudio.services import users as user_service
from starstudio_shared.schemas.common import DataResponse
from starstudio_shared.schemas.users import GradeCreate, GradeRead, GradeReorder, GradeUpdate

router = APIRouter()


@router.get("/", response_model=DataResponse[List[GradeRead]])
async def list_grades_endpoint(
    principal: Principal = Depends(require_admin),
    uow: UnitOfWork = Depends(get_uow),
):
    return DataResponse(data=await user_service.list_grades(uow, principal))


@router.post("/", response_model=DataResponse[GradeRead], status_code=201)
async def create_grade_endpoint(
    body: GradeCreate,
    principal: Principal = Depends(require_admin),
    uow: UnitOfWork = Depends(get_uow),
):
    return DataResponse(data=await user_service.create_grade(uow, principal, body))


@router.put("/reorder", response_model=DataResponse[List[GradeRead]])
async def reorder_grades_endpoint(
    body: GradeReorder,
    principal: Principal = Depends(require_admin),
    uow: UnitOfWork = Depends(get_uow),
):
    return DataResponse(data=await user_service.reorder_grades(uow, principal, body))


@router.patch("/{grade_id}", response_model=DataResponse[GradeRead])
async def update_grade_endpoint(
    grade_id: uuid.UUID,
    body: GradeUpdate,
    principal: Principal = Depends(require_admin),
    uow: UnitOfWork = Depends(get_uow),
):
    return DataResponse(data=await user_service.update_grade(uow, principal, grade_id, body))


@router.delete("/{grade_id}", response_model=DataResponse[dict])
async def delete_grade_endpoint(
    grade_id: uuid.UUID,
    principal: Principal = Depends(require_admin),
    uow: UnitOfWork = Depends(get_uow),
):
    await user_service.delete_grade(uow, principal, grade_id)
    return DataResponse(data=deleted(grade_id))
