"""
Notification badge endpoint.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from starstudio.api.deps import get_uow
from starstudio.core.auth import Principal, require_approved
from starstudio.core.uow import UnitOfWork
from starstudio.services import notifications as notification_service
from starstudio_shared.schemas.common import DataResponse
from starstudio_shared.schemas.notifications import BadgeCounts

router = APIRouter()


@router.get("/badge", response_model=DataResponse[BadgeCounts], response_model_exclude_none=True)
async def badge_endpoint(
    principal: Principal = Depends(require_approved),
    uow: UnitOfWork = Depends(get_uow),
):
    return DataResponse(data=await notification_service.badge(uow, principal))
