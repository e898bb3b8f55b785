"""
Submission endpoints: uploads by stars, review by admins, feedback threads.
"""

from __future__ import annotations

import uuid
from typing import List, Optional

from fastapi import APIRouter, Body, Depends

from starstudio.api.deps import get_stream_client, get_task_queue, get_uow, page_params
from starstudio.core.auth import Principal, require_admin, require_approved, require_star
from starstudio.core.uow import UnitOfWork
from starstudio.integrations.stream import StreamClient
from starstudio.services import feedback as feedback_service
from starstudio.services import submissions as submission_service
from starstudio.services.task_queue import TaskQueue
from starstudio_shared.schemas.common import DataResponse, Page, PageParams, SubmissionStatus
from starstudio_shared.schemas.feedback import FeedbackRead
from starstudio_shared.schemas.submissions import (
    AnalysisRead,
    SubmissionCreate,
    SubmissionRead,
    SubmissionReject,
    UploadUrlRequest,
    UploadUrlResponse,
)

router = APIRouter()


# ---------------------------------------------------------------------------
# Star uploads
# ---------------------------------------------------------------------------

@router.post("/upload-url", response_model=DataResponse[UploadUrlResponse])
async def upload_url_endpoint(
    body: Optional[UploadUrlRequest] = Body(None),
    principal: Principal = Depends(require_star),
    stream: StreamClient = Depends(get_stream_client),
):
    max_duration = body.max_duration_seconds if body else UploadUrlRequest().max_duration_seconds
    return DataResponse(data=await submission_service.create_upload_url(stream, max_duration))


@router.post("/", response_model=DataResponse[SubmissionRead], status_code=201)
async def create_submission_endpoint(
    body: SubmissionCreate,
    principal: Principal = Depends(require_star),
    uow: UnitOfWork = Depends(get_uow),
):
    return DataResponse(data=await submission_service.create(uow, principal, body))


@router.get("/mine", response_model=Page[SubmissionRead])
async def list_mine_endpoint(
    params: PageParams = Depends(page_params),
    principal: Principal = Depends(require_star),
    uow: UnitOfWork = Depends(get_uow),
):
    return await submission_service.list_mine(uow, principal, params)


# ---------------------------------------------------------------------------
# Review
# ---------------------------------------------------------------------------

@router.get("/", response_model=Page[SubmissionRead])
async def list_submissions_endpoint(
    status: Optional[SubmissionStatus] = None,
    star_id: Optional[uuid.UUID] = None,
    assignment_id: Optional[uuid.UUID] = None,
    params: PageParams = Depends(page_params),
    principal: Principal = Depends(require_admin),
    uow: UnitOfWork = Depends(get_uow),
):
    return await submission_service.list_all(
        uow, principal, params, status=status, star_id=star_id, assignment_id=assignment_id
    )


@router.get("/{submission_id}", response_model=DataResponse[SubmissionRead])
async def get_submission_endpoint(
    submission_id: uuid.UUID,
    principal: Principal = Depends(require_approved),
    uow: UnitOfWork = Depends(get_uow),
):
    return DataResponse(data=await submission_service.get(uow, principal, submission_id))


@router.post("/{submission_id}/approve", response_model=DataResponse[SubmissionRead])
async def approve_submission_endpoint(
    submission_id: uuid.UUID,
    principal: Principal = Depends(require_admin),
    uow: UnitOfWork = Depends(get_uow),
    queue: TaskQueue = Depends(get_task_queue),
):
    return DataResponse(data=await submission_service.approve(uow, principal, submission_id, queue))


@router.post("/{submission_id}/reject", response_model=DataResponse[SubmissionRead])
async def reject_submission_endpoint(
    submission_id: uuid.UUID,
    body: Optional[SubmissionReject] = Body(None),
    principal: Principal = Depends(require_admin),
    uow: UnitOfWork = Depends(get_uow),
    queue: TaskQueue = Depends(get_task_queue),
):
    reason = body.reason if body else None
    return DataResponse(
        data=await submission_service.reject(uow, principal, submission_id, queue, reason)
    )


@router.post("/{submission_id}/sync-specs", response_model=DataResponse[SubmissionRead])
async def sync_specs_endpoint(
    submission_id: uuid.UUID,
    principal: Principal = Depends(require_approved),
    uow: UnitOfWork = Depends(get_uow),
    stream: StreamClient = Depends(get_stream_client),
):
    return DataResponse(data=await submission_service.sync_specs(uow, principal, submission_id, stream))


@router.get("/{submission_id}/analysis", response_model=DataResponse[AnalysisRead])
async def get_analysis_endpoint(
    submission_id: uuid.UUID,
    principal: Principal = Depends(require_approved),
    uow: UnitOfWork = Depends(get_uow),
):
    return DataResponse(data=await submission_service.get_analysis(uow, principal, submission_id))


@router.get("/{submission_id}/feedback", response_model=DataResponse[List[FeedbackRead]])
async def list_feedback_endpoint(
    submission_id: uuid.UUID,
    principal: Principal = Depends(require_approved),
    uow: UnitOfWork = Depends(get_uow),
):
    return DataResponse(data=await feedback_service.list_for_submission(uow, principal, submission_id))
