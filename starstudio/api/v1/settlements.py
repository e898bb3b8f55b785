"""
Settlement endpoints: monthly generation, item adjustment, payment status.
"""

from __future__ import annotations

import uuid
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query

from starstudio.api.deps import deleted, get_uow, page_params
from starstudio.core.auth import Principal, require_admin, require_approved
from starstudio.core.uow import UnitOfWork
from starstudio.services import settlements as settlement_service
from starstudio_shared.schemas.common import DataResponse, Page, PageParams, SettlementStatus
from starstudio_shared.schemas.settlements import (
    GenerationResult,
    ItemAdjust,
    ItemAdjustResult,
    SettingRead,
    SettingUpdate,
    SettlementComplete,
    SettlementDetail,
    SettlementGenerate,
    SettlementRead,
    SettlementUpdate,
)

router = APIRouter()
settings_router = APIRouter()


@router.post("/generate", response_model=DataResponse[GenerationResult])
async def generate_endpoint(
    body: SettlementGenerate,
    principal: Principal = Depends(require_admin),
    uow: UnitOfWork = Depends(get_uow),
):
    return DataResponse(data=await settlement_service.generate(uow, principal, body.year, body.month))


@router.get("/", response_model=Page[SettlementRead])
async def list_settlements_endpoint(
    year: Optional[int] = Query(None, ge=2020, le=2100),
    month: Optional[int] = Query(None, ge=1, le=12),
    status: Optional[SettlementStatus] = None,
    params: PageParams = Depends(page_params),
    principal: Principal = Depends(require_approved),
    uow: UnitOfWork = Depends(get_uow),
):
    """Admins see every settlement; stars see their own."""
    return await settlement_service.list_settlements(
        uow, principal, params, year=year, month=month, status=status
    )


@router.get("/{settlement_id}", response_model=DataResponse[SettlementDetail])
async def get_settlement_endpoint(
    settlement_id: uuid.UUID,
    principal: Principal = Depends(require_approved),
    uow: UnitOfWork = Depends(get_uow),
):
    return DataResponse(data=await settlement_service.get(uow, principal, settlement_id))


@router.patch("/{settlement_id}", response_model=DataResponse[SettlementRead])
async def update_settlement_endpoint(
    settlement_id: uuid.UUID,
    body: SettlementUpdate,
    principal: Principal = Depends(require_admin),
    uow: UnitOfWork = Depends(get_uow),
):
    return DataResponse(data=await settlement_service.update(uow, principal, settlement_id, body))


@router.delete("/{settlement_id}", response_model=DataResponse[dict])
async def delete_settlement_endpoint(
    settlement_id: uuid.UUID,
    principal: Principal = Depends(require_admin),
    uow: UnitOfWork = Depends(get_uow),
):
    await settlement_service.delete(uow, principal, settlement_id)
    return DataResponse(data=deleted(settlement_id))


@router.patch("/{settlement_id}/items/{item_id}", response_model=DataResponse[ItemAdjustResult])
async def adjust_item_endpoint(
    settlement_id: uuid.UUID,
    item_id: uuid.UUID,
    body: ItemAdjust,
    principal: Principal = Depends(require_admin),
    uow: UnitOfWork = Depends(get_uow),
):
    return DataResponse(
        data=await settlement_service.adjust_item(uow, principal, settlement_id, item_id, body)
    )


@router.post("/{settlement_id}/complete", response_model=DataResponse[SettlementRead])
async def complete_endpoint(
    settlement_id: uuid.UUID,
    body: Optional[SettlementComplete] = Body(None),
    principal: Principal = Depends(require_admin),
    uow: UnitOfWork = Depends(get_uow),
):
    payment_date = body.payment_date if body else None
    return DataResponse(data=await settlement_service.complete(uow, principal, settlement_id, payment_date))


@router.post("/{settlement_id}/cancel", response_model=DataResponse[SettlementRead])
async def cancel_endpoint(
    settlement_id: uuid.UUID,
    principal: Principal = Depends(require_admin),
    uow: UnitOfWork = Depends(get_uow),
):
    return DataResponse(data=await settlement_service.cancel(uow, principal, settlement_id))


# ---------------------------------------------------------------------------
# System settings (fees, tax rate, company name)
# ---------------------------------------------------------------------------

@settings_router.get("/", response_model=DataResponse[List[SettingRead]])
async def list_settings_endpoint(
    principal: Principal = Depends(require_admin),
    uow: UnitOfWork = Depends(get_uow),
):
    return DataResponse(data=await settlement_service.list_system_settings(uow, principal))


@settings_router.put("/", response_model=DataResponse[SettingRead])
async def update_setting_endpoint(
    body: SettingUpdate,
    principal: Principal = Depends(require_admin),
    uow: UnitOfWork = Depends(get_uow),
):
    return DataResponse(data=await settlement_service.update_system_setting(uow, principal, body))
