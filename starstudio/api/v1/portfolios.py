"""
Portfolio endpoints: a star's own portfolio and the public view.
"""

from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends

from starstudio.api.deps import deleted, get_uow
from starstudio.core.auth import Principal, require_approved
from starstudio.core.uow import UnitOfWork
from starstudio.services import portfolios as portfolio_service
from starstudio_shared.schemas.common import DataResponse
from starstudio_shared.schemas.portfolios import (
    PortfolioItemCreate,
    PortfolioItemRead,
    PortfolioItemUpdate,
    PortfolioRead,
    PortfolioReorder,
    PortfolioUpdate,
)

router = APIRouter()


@router.get("/me", response_model=DataResponse[PortfolioRead])
async def get_mine_endpoint(
    principal: Principal = Depends(require_approved),
    uow: UnitOfWork = Depends(get_uow),
):
    return DataResponse(data=await portfolio_service.get_mine(uow, principal))


@router.patch("/me", response_model=DataResponse[PortfolioRead])
async def update_mine_endpoint(
    body: PortfolioUpdate,
    principal: Principal = Depends(require_approved),
    uow: UnitOfWork = Depends(get_uow),
):
    return DataResponse(data=await portfolio_service.update_mine(uow, principal, body))


@router.post("/me/items", response_model=DataResponse[PortfolioItemRead], status_code=201)
async def add_item_endpoint(
    body: PortfolioItemCreate,
    principal: Principal = Depends(require_approved),
    uow: UnitOfWork = Depends(get_uow),
):
    return DataResponse(data=await portfolio_service.add_item(uow, principal, body))


@router.put("/me/items/reorder", response_model=DataResponse[List[PortfolioItemRead]])
async def reorder_items_endpoint(
    body: PortfolioReorder,
    principal: Principal = Depends(require_approved),
    uow: UnitOfWork = Depends(get_uow),
):
    return DataResponse(data=await portfolio_service.reorder_items(uow, principal, body.ordered_ids))


@router.patch("/me/items/{item_id}", response_model=DataResponse[PortfolioItemRead])
async def update_item_endpoint(
    item_id: uuid.UUID,
    body: PortfolioItemUpdate,
    principal: Principal = Depends(require_approved),
    uow: UnitOfWork = Depends(get_uow),
):
    return DataResponse(data=await portfolio_service.update_item(uow, principal, item_id, body))


@router.delete("/me/items/{item_id}", response_model=DataResponse[dict])
async def delete_item_endpoint(
    item_id: uuid.UUID,
    principal: Principal = Depends(require_approved),
    uow: UnitOfWork = Depends(get_uow),
):
    await portfolio_service.delete_item(uow, principal, item_id)
    return DataResponse(data=deleted(item_id))


@router.get("/{user_id}", response_model=DataResponse[PortfolioRead])
async def get_public_endpoint(
    user_id: uuid.UUID,
    uow: UnitOfWork = Depends(get_uow),
):
    """Public portfolio; no authentication required."""
    return DataResponse(data=await portfolio_service.get_for_user(uow, user_id))
