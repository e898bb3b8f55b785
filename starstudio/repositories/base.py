"""Generic repository over a single SQLModel table."""

from __future__ import annotations

from typing import Any, Generic, Optional, Sequence, TypeVar
import uuid

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel, select

from starstudio_shared.schemas.common import PageParams

M = TypeVar("M", bound=SQLModel)


class Repository(Generic[M]):
    model: type[M]

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, id: uuid.UUID) -> Optional[M]:
        return await self.session.get(self.model, id)

    async def add(self, obj: M) -> M:
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def delete(self, obj: M) -> None:
        await self.session.delete(obj)
        await self.session.flush()

    async def all(self, stmt) -> list[Any]:
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def first(self, stmt) -> Optional[Any]:
        result = await self.session.execute(stmt.limit(1))
        return result.scalars().first()

    async def count(self, stmt) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(stmt.order_by(None).subquery())
        )
        return int(result.scalar_one())

    async def paginate(self, stmt, params: PageParams, *, rows: bool = False) -> tuple[Sequence[Any], int]:
        """Run ``stmt`` for one page. Returns (items, total)."""
        total = await self.count(stmt)
        result = await self.session.execute(stmt.offset(params.offset).limit(params.page_size))
        items = result.all() if rows else result.scalars().all()
        return list(items), total
