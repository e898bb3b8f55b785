"""
Star portfolios: one per user, created on first access, with ordered items.
"""

from __future__ import annotations

import uuid

import structlog

from starstudio.core.auth import Principal
from starstudio.core.errors import NotFound, ValidationError
from starstudio.core.uow import UnitOfWork
from starstudio.models.portfolio import Portfolio, PortfolioItem
from starstudio_shared.schemas.portfolios import (
    PortfolioItemCreate,
    PortfolioItemRead,
    PortfolioItemUpdate,
    PortfolioRead,
    PortfolioUpdate,
)

log = structlog.get_logger()

URL_FIELDS = ("showreel", "website", "thumbnail_url", "video_url")


def _plain(changes: dict) -> dict:
    return {k: (str(v) if k in URL_FIELDS and v is not None else v) for k, v in changes.items()}


async def _read(uow: UnitOfWork, portfolio: Portfolio) -> PortfolioRead:
    read = PortfolioRead.model_validate(portfolio)
    read.items = [PortfolioItemRead.model_validate(i) for i in await uow.portfolios.items(portfolio.id)]
    return read


async def _ensure(uow: UnitOfWork, user_id: uuid.UUID) -> Portfolio:
    portfolio = await uow.portfolios.get_for_user(user_id)
    if portfolio is None:
        portfolio = await uow.portfolios.add(Portfolio(user_id=user_id))
        log.info("portfolio.created", user_id=str(user_id))
    return portfolio


async def _owned_item(uow: UnitOfWork, portfolio: Portfolio, item_id: uuid.UUID) -> PortfolioItem:
    item = await uow.portfolios.get_item(item_id)
    if item is None or item.portfolio_id != portfolio.id:
        raise NotFound("Portfolio item not found.")
    return item


async def get_mine(uow: UnitOfWork, principal: Principal) -> PortfolioRead:
    async with uow:
        return await _read(uow, await _ensure(uow, principal.user_id))


async def update_mine(uow: UnitOfWork, principal: Principal, body: PortfolioUpdate) -> PortfolioRead:
    async with uow:
        portfolio = await _ensure(uow, principal.user_id)
        for key, value in _plain(body.model_dump(exclude_unset=True)).items():
            setattr(portfolio, key, value if key != "social_links" else (value or {}))
        await uow.portfolios.add(portfolio)
        return await _read(uow, portfolio)


async def get_for_user(uow: UnitOfWork, user_id: uuid.UUID) -> PortfolioRead:
    """Public view of a star's portfolio."""
    async with uow:
        portfolio = await uow.portfolios.get_for_user(user_id)
        if portfolio is None:
            raise NotFound("Portfolio not found.")
        return await _read(uow, portfolio)


# ---------------------------------------------------------------------------
# Items
# ---------------------------------------------------------------------------

async def add_item(uow: UnitOfWork, principal: Principal, body: PortfolioItemCreate) -> PortfolioItemRead:
    async with uow:
        portfolio = await _ensure(uow, principal.user_id)
        item = await uow.portfolios.add_item(
            PortfolioItem(
                portfolio_id=portfolio.id,
                sort_order=await uow.portfolios.next_sort_order(portfolio.id),
                **_plain(body.model_dump()),
            )
        )
        return PortfolioItemRead.model_validate(item)


async def update_item(
    uow: UnitOfWork, principal: Principal, item_id: uuid.UUID, body: PortfolioItemUpdate
) -> PortfolioItemRead:
    async with uow:
        portfolio = await _ensure(uow, principal.user_id)
        item = await _owned_item(uow, portfolio, item_id)
        for key, value in _plain(body.model_dump(exclude_unset=True)).items():
            setattr(item, key, value)
        await uow.portfolios.add_item(item)
        return PortfolioItemRead.model_validate(item)


async def delete_item(uow: UnitOfWork, principal: Principal, item_id: uuid.UUID) -> None:
    async with uow:
        portfolio = await _ensure(uow, principal.user_id)
        item = await _owned_item(uow, portfolio, item_id)
        await uow.portfolios.delete_item(item)


async def reorder_items(
    uow: UnitOfWork, principal: Principal, ordered_ids: list[uuid.UUID]
) -> list[PortfolioItemRead]:
    async with uow:
        portfolio = await _ensure(uow, principal.user_id)
        items = {i.id: i for i in await uow.portfolios.items(portfolio.id)}
        if len(set(ordered_ids)) != len(ordered_ids) or any(i not in items for i in ordered_ids):
            raise ValidationError("orderedIds: every id must be an item of your portfolio, once.")
        for position, item_id in enumerate(ordered_ids):
            items[item_id].sort_order = position
            await uow.portfolios.add_item(items[item_id])
        return [PortfolioItemRead.model_validate(i) for i in await uow.portfolios.items(portfolio.id)]
