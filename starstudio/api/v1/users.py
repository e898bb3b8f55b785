"""
User endpoints: own profile, and admin account management.
"""

from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends

from starstudio.api.deps import get_uow, page_params
from starstudio.core.auth import Principal, get_principal, require_admin
from starstudio.core.uow import UnitOfWork
from starstudio.services import users as user_service
from starstudio_shared.schemas.common import DataResponse, Page, PageParams, Role
from starstudio_shared.schemas.users import (
    ApprovalUpdate,
    BaseRateUpdate,
    GradeAssign,
    UserMeUpdate,
    UserRead,
)

router = APIRouter()
admin_router = APIRouter()


# ---------------------------------------------------------------------------
# Own profile (unapproved accounts may read and edit it)
# ---------------------------------------------------------------------------

@router.get("/me", response_model=DataResponse[UserRead])
async def get_me_endpoint(
    principal: Principal = Depends(get_principal),
    uow: UnitOfWork = Depends(get_uow),
):
    return DataResponse(data=await user_service.get_me(uow, principal))


@router.patch("/me", response_model=DataResponse[UserRead])
async def update_me_endpoint(
    body: UserMeUpdate,
    principal: Principal = Depends(get_principal),
    uow: UnitOfWork = Depends(get_uow),
):
    return DataResponse(data=await user_service.update_me(uow, principal, body))


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------

@admin_router.get("/users", response_model=Page[UserRead])
async def list_users_endpoint(
    role: Optional[Role] = None,
    approved: Optional[bool] = None,
    search: Optional[str] = None,
    params: PageParams = Depends(page_params),
    principal: Principal = Depends(require_admin),
    uow: UnitOfWork = Depends(get_uow),
):
    return await user_service.list_users(uow, principal, params, role=role, approved=approved, search=search)


@admin_router.patch("/users/{user_id}/approval", response_model=DataResponse[UserRead])
async def set_approval_endpoint(
    user_id: uuid.UUID,
    body: ApprovalUpdate,
    principal: Principal = Depends(require_admin),
    uow: UnitOfWork = Depends(get_uow),
):
    return DataResponse(data=await user_service.set_approval(uow, principal, user_id, body.approved))


@admin_router.patch("/stars/{star_id}/grade", response_model=DataResponse[UserRead])
async def assign_grade_endpoint(
    star_id: uuid.UUID,
    body: GradeAssign,
    principal: Principal = Depends(require_admin),
    uow: UnitOfWork = Depends(get_uow),
):
    return DataResponse(data=await user_service.assign_grade(uow, principal, star_id, body.grade_id))


@admin_router.patch("/stars/{star_id}/base-rate", response_model=DataResponse[UserRead])
async def set_base_rate_endpoint(
    star_id: uuid.UUID,
    body: BaseRateUpdate,
    principal: Principal = Depends(require_admin),
    uow: UnitOfWork = Depends(get_uow),
):
    return DataResponse(data=await user_service.set_base_rate(uow, principal, star_id, body.base_rate))
