"""User and pricing grade repositories."""

from __future__ import annotations

from typing import Optional
import uuid

from sqlalchemy import func, update
from sqlmodel import select

from starstudio.models.grade import PricingGrade
from starstudio.models.user import User
from starstudio_shared.schemas.common import PageParams

from .base import Repository


class UserRepository(Repository[User]):
    model = User

    async def get_by_auth_id(self, auth_id: str) -> Optional[User]:
        return await self.first(select(User).where(User.auth_id == auth_id))

    async def get_by_email(self, email: str) -> Optional[User]:
        return await self.first(select(User).where(User.email == email))

    async def list(
        self,
        params: PageParams,
        *,
        role: Optional[str] = None,
        approved: Optional[bool] = None,
        search: Optional[str] = None,
    ) -> tuple[list[User], int]:
        stmt = select(User)
        if role:
            stmt = stmt.where(User.role == role)
        if approved is not None:
            stmt = stmt.where(User.is_approved == approved)
        if search:
            stmt = stmt.where(User.name.ilike(f"%{search}%"))
        stmt = stmt.order_by(User.created_at.desc())
        return await self.paginate(stmt, params)

    async def list_by_ids(self, ids: list[uuid.UUID]) -> list[User]:
        if not ids:
            return []
        return await self.all(select(User).where(User.id.in_(ids)))

    async def clear_grade(self, grade_id: uuid.UUID) -> None:
        await self.session.execute(
            update(User).where(User.grade_id == grade_id).values(grade_id=None)
        )


class GradeRepository(Repository[PricingGrade]):
    model = PricingGrade

    async def list_ordered(self) -> list[PricingGrade]:
        return await self.all(
            select(PricingGrade).order_by(PricingGrade.sort_order, PricingGrade.created_at)
        )

    async def list_by_ids(self, ids: list[uuid.UUID]) -> list[PricingGrade]:
        if not ids:
            return []
        return await self.all(select(PricingGrade).where(PricingGrade.id.in_(ids)))

    async def next_sort_order(self) -> int:
        result = await self.session.execute(select(func.max(PricingGrade.sort_order)))
        current = result.scalar_one_or_none()
        return 0 if current is None else current + 1

    async def star_counts(self) -> dict[uuid.UUID, int]:
        result = await self.session.execute(
            select(User.grade_id, func.count(User.id))
            .where(User.grade_id.is_not(None))
            .group_by(User.grade_id)
        )
        return {grade_id: count for grade_id, count in result.all()}
