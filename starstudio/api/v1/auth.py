"""
Identity callback: first-login registration of the local user.

The identity provider authenticates the caller; this endpoint only maps
its subject onto a local account (created as an unapproved star).
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from starstudio.api.deps import get_uow
from starstudio.core.auth import Identity, get_identity
from starstudio.core.uow import UnitOfWork
from starstudio.services import users as user_service
from starstudio_shared.schemas.common import DataResponse
from starstudio_shared.schemas.users import RegistrationRequest, UserRead

router = APIRouter()


@router.post("/callback", response_model=DataResponse[UserRead])
async def auth_callback(
    body: RegistrationRequest,
    identity: Identity = Depends(get_identity),
    uow: UnitOfWork = Depends(get_uow),
):
    user = await user_service.register_from_identity(uow, identity, body.name)
    return DataResponse(data=user)
