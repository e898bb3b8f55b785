"""
Published video endpoints (admin).
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends

from starstudio.api.deps import get_uow
from starstudio.core.auth import Principal, require_admin
from starstudio.core.uow import UnitOfWork
from starstudio.services import videos as video_service
from starstudio_shared.schemas.common import DataResponse
from starstudio_shared.schemas.videos import VideoRateUpdate, VideoRead

router = APIRouter()


@router.get("/{video_id}", response_model=DataResponse[VideoRead])
async def get_video_endpoint(
    video_id: uuid.UUID,
    principal: Principal = Depends(require_admin),
    uow: UnitOfWork = Depends(get_uow),
):
    return DataResponse(data=await video_service.get(uow, principal, video_id))


@router.patch("/{video_id}/rate", response_model=DataResponse[VideoRead])
async def set_video_rate_endpoint(
    video_id: uuid.UUID,
    body: VideoRateUpdate,
    principal: Principal = Depends(require_admin),
    uow: UnitOfWork = Depends(get_uow),
):
    """Set or clear the per-video rate used first when settling."""
    return DataResponse(data=await video_service.set_rate(uow, principal, video_id, body))
