"""Portfolio repositories."""

from __future__ import annotations

from typing import Optional
import uuid

from sqlalchemy import func
from sqlmodel import select

from starstudio.models.portfolio import Portfolio, PortfolioItem

from .base import Repository


class PortfolioRepository(Repository[Portfolio]):
    model = Portfolio

    async def get_for_user(self, user_id: uuid.UUID) -> Optional[Portfolio]:
        return await self.first(select(Portfolio).where(Portfolio.user_id == user_id))

    async def items(self, portfolio_id: uuid.UUID) -> list[PortfolioItem]:
        return await self.all(
            select(PortfolioItem)
            .where(PortfolioItem.portfolio_id == portfolio_id)
            .order_by(PortfolioItem.sort_order, PortfolioItem.created_at)
        )

    async def get_item(self, item_id: uuid.UUID) -> Optional[PortfolioItem]:
        return await self.session.get(PortfolioItem, item_id)

    async def add_item(self, item: PortfolioItem) -> PortfolioItem:
        self.session.add(item)
        await self.session.flush()
        return item

    async def delete_item(self, item: PortfolioItem) -> None:
        await self.session.delete(item)
        await self.session.flush()

    async def next_sort_order(self, portfolio_id: uuid.UUID) -> int:
        result = await self.session.execute(
            select(func.max(PortfolioItem.sort_order)).where(PortfolioItem.portfolio_id == portfolio_id)
        )
        current = result.scalar_one_or_none()
        return 0 if current is None else current + 1
