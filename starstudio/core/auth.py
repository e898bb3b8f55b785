"""
Authentication and authorization.

Access tokens are issued by the external identity provider (HS256 JWT,
audience ``authenticated``). ``sub`` is the external user id and ``email``
the address. Tokens are mapped onto local ``User`` rows to build the
request-scoped ``Principal`` every service call receives.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

import jwt
import structlog
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import sessionmaker

from starstudio.core.config import get_settings
from starstudio.core.database import get_session_factory
from starstudio.core.errors import Forbidden, Unauthorized
from starstudio.core.uow import UnitOfWork
from starstudio.models.user import User
from starstudio_shared.schemas.common import Role

log = structlog.get_logger()

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Identity:
    """Who the identity provider says is calling."""

    external_id: str
    email: Optional[str] = None


@dataclass(frozen=True)
class Principal:
    """The local user behind a request."""

    user_id: uuid.UUID
    role: str
    is_approved: bool
    name: str = ""
    base_rate: Optional[Decimal] = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value

    @property
    def is_star(self) -> bool:
        return self.role == Role.STAR.value

    @classmethod
    def from_user(cls, user: User) -> "Principal":
        return cls(
            user_id=user.id,
            role=user.role,
            is_approved=user.is_approved,
            name=user.name,
            base_rate=user.base_rate,
        )


# ---------------------------------------------------------------------------
# Token verification
# ---------------------------------------------------------------------------

def decode_access_token(token: str) -> dict:
    """Decode and verify an access token. Raises jwt.PyJWTError on failure."""
    settings = get_settings()
    return jwt.decode(
        token,
        settings.auth_jwt_secret,
        algorithms=[settings.auth_jwt_algorithm],
        audience=settings.auth_jwt_audience,
    )


def get_authenticated_identity(token: Optional[str]) -> Optional[Identity]:
    """Map a bearer token to an Identity, or None when absent or invalid."""
    if not token:
        return None
    try:
        payload = decode_access_token(token)
    except jwt.PyJWTError as exc:
        log.info("auth.token_rejected", reason=str(exc))
        return None
    sub = payload.get("sub")
    if not sub:
        return None
    return Identity(external_id=str(sub), email=payload.get("email"))


# ---------------------------------------------------------------------------
# Authentication dependencies
# ---------------------------------------------------------------------------

async def get_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Identity:
    identity = get_authenticated_identity(credentials.credentials if credentials else None)
    if identity is None:
        raise Unauthorized("A valid bearer token is required.")
    return identity


async def get_principal(
    identity: Identity = Depends(get_identity),
    session_factory: sessionmaker = Depends(get_session_factory),
) -> Principal:
    async with UnitOfWork(session_factory) as uow:
        user = await uow.users.get_by_auth_id(identity.external_id)
        if user is None:
            raise Unauthorized("Account is not registered.")
        return Principal.from_user(user)


# ---------------------------------------------------------------------------
# Authorization dependencies (role checks)
# ---------------------------------------------------------------------------

async def require_approved(principal: Principal = Depends(get_principal)) -> Principal:
    """Admins, or stars whose account has been approved."""
    if not principal.is_admin and not principal.is_approved:
        raise Forbidden("Account is awaiting approval.")
    return principal


async def require_admin(principal: Principal = Depends(get_principal)) -> Principal:
    if not principal.is_admin:
        raise Forbidden("Administrator access required.")
    return principal


async def require_star(principal: Principal = Depends(require_approved)) -> Principal:
    """An approved star; admins do not take on production work."""
    if not principal.is_star:
        raise Forbidden("Only stars can perform this action.")
    return principal
