"""
Feedback endpoints (admin authoring). Reading lives under /submissions/{id}/feedback.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends

from starstudio.api.deps import deleted, get_uow
from starstudio.core.auth import Principal, require_admin
from starstudio.core.uow import UnitOfWork
from starstudio.services import feedback as feedback_service
from starstudio_shared.schemas.common import DataResponse
from starstudio_shared.schemas.feedback import FeedbackCreate, FeedbackRead, FeedbackUpdate

router = APIRouter()


@router.post("/", response_model=DataResponse[FeedbackRead], status_code=201)
async def create_feedback_endpoint(
    body: FeedbackCreate,
    principal: Principal = Depends(require_admin),
    uow: UnitOfWork = Depends(get_uow),
):
    return DataResponse(data=await feedback_service.create(uow, principal, body))


@router.patch("/{feedback_id}", response_model=DataResponse[FeedbackRead])
async def update_feedback_endpoint(
    feedback_id: uuid.UUID,
    body: FeedbackUpdate,
    principal: Principal = Depends(require_admin),
    uow: UnitOfWork = Depends(get_uow),
):
    return DataResponse(data=await feedback_service.update(uow, principal, feedback_id, body))


@router.delete("/{feedback_id}", response_model=DataResponse[dict])
async def delete_feedback_endpoint(
    feedback_id: uuid.UUID,
    principal: Principal = Depends(require_admin),
    uow: UnitOfWork = Depends(get_uow),
):
    await feedback_service.delete(uow, principal, feedback_id)
    return DataResponse(data=deleted(feedback_id))
