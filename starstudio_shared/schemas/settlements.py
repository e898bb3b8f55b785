"""Settlement schemas and the freelancer tax breakdown."""

from __future__ import annotations

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import Field, model_validator

from .common import CamelModel, SettlementItemType, SettlementStatus

INCOME_TAX_RATE = Decimal("0.03")
LOCAL_TAX_RATE = Decimal("0.003")


class SettlementGenerate(CamelModel):
    year: int = Field(ge=2020, le=2100)
    month: int = Field(ge=1, le=12)


class ItemAdjust(CamelModel):
    """Body for PATCH /settlements/{id}/items/{itemId}."""
    adjusted_amount: Optional[Decimal] = Field(default=None, ge=0)
    final_amount: Optional[Decimal] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def require_amount(self) -> "ItemAdjust":
        if self.adjusted_amount is None and self.final_amount is None:
            raise ValueError("adjustedAmount or finalAmount is required")
        return self


class SettlementUpdate(CamelModel):
    payment_date: Optional[datetime] = None
    note: Optional[str] = None


class SettlementComplete(CamelModel):
    payment_date: Optional[datetime] = None


class TaxBreakdown(CamelModel):
    income_tax: Decimal
    local_tax: Decimal
    total_tax: Decimal
    net_amount: Decimal


def calculate_tax(pre_tax_amount: Decimal) -> TaxBreakdown:
    """Income tax 3% + local income tax 0.3%, each rounded to whole units."""
    income = (pre_tax_amount * INCOME_TAX_RATE).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    local = (pre_tax_amount * LOCAL_TAX_RATE).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    total = income + local
    return TaxBreakdown(
        income_tax=income,
        local_tax=local,
        total_tax=total,
        net_amount=pre_tax_amount - total,
    )


class SettlementItemRead(CamelModel):
    id: UUID
    settlement_id: UUID
    submission_id: Optional[UUID] = None
    star_id: UUID
    item_type: SettlementItemType
    description: Optional[str] = None
    base_amount: Decimal
    adjusted_amount: Optional[Decimal] = None
    final_amount: Decimal
    created_at: datetime


class SettlementRead(CamelModel):
    id: UUID
    star_id: UUID
    year: int
    month: int
    status: SettlementStatus
    total_amount: Decimal
    payment_date: Optional[datetime] = None
    note: Optional[str] = None
    item_count: int = 0
    created_at: datetime
    updated_at: datetime


class SettlementDetail(SettlementRead):
    items: List[SettlementItemRead] = Field(default_factory=list)
    tax: Optional[TaxBreakdown] = None


class ItemAdjustResult(CamelModel):
    item: SettlementItemRead
    new_total_amount: Decimal


class SkippedStar(CamelModel):
    id: UUID
    name: str
    reason: str


class GenerationResult(CamelModel):
    created: List[SettlementRead] = Field(default_factory=list)
    updated: List[SettlementRead] = Field(default_factory=list)
    skipped_stars: List[SkippedStar] = Field(default_factory=list)
    completed_stars: List[SkippedStar] = Field(default_factory=list)


class SettingRead(CamelModel):
    key: str
    value: str
    label: Optional[str] = None


class SettingUpdate(CamelModel):
    key: str = Field(min_length=1)
    value: str
