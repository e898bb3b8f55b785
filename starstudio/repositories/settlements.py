"""Settlement, settlement item and system setting repositories."""

from __future__ import annotations

from decimal import Decimal
from typing import Optional
import uuid

from sqlalchemy import delete, func
from sqlmodel import select

from starstudio.models.settlement import Settlement, SettlementItem, SystemSetting
from starstudio_shared.schemas.common import PageParams

from .base import Repository


class SettlementRepository(Repository[Settlement]):
    model = Settlement

    async def get_for_period(self, star_id: uuid.UUID, year: int, month: int) -> Optional[Settlement]:
        return await self.first(
            select(Settlement).where(
                Settlement.star_id == star_id,
                Settlement.year == year,
                Settlement.month == month,
            )
        )

    async def list(
        self,
        params: PageParams,
        *,
        year: Optional[int] = None,
        month: Optional[int] = None,
        status: Optional[str] = None,
        star_id: Optional[uuid.UUID] = None,
    ) -> tuple[list[Settlement], int]:
        stmt = select(Settlement)
        if year is not None:
            stmt = stmt.where(Settlement.year == year)
        if month is not None:
            stmt = stmt.where(Settlement.month == month)
        if status:
            stmt = stmt.where(Settlement.status == status)
        if star_id:
            stmt = stmt.where(Settlement.star_id == star_id)
        stmt = stmt.order_by(Settlement.year.desc(), Settlement.month.desc(), Settlement.created_at)
        return await self.paginate(stmt, params)

    async def count_by_status(self, status: str) -> int:
        return await self.count(select(Settlement).where(Settlement.status == status))

    async def items(self, settlement_id: uuid.UUID) -> list[SettlementItem]:
        return await self.all(
            select(SettlementItem)
            .where(SettlementItem.settlement_id == settlement_id)
            .order_by(SettlementItem.created_at)
        )

    async def item_counts(self, settlement_ids: list[uuid.UUID]) -> dict[uuid.UUID, int]:
        if not settlement_ids:
            return {}
        result = await self.session.execute(
            select(SettlementItem.settlement_id, func.count(SettlementItem.id))
            .where(SettlementItem.settlement_id.in_(settlement_ids))
            .group_by(SettlementItem.settlement_id)
        )
        return {settlement_id: count for settlement_id, count in result.all()}

    async def get_item(self, item_id: uuid.UUID) -> Optional[SettlementItem]:
        return await self.session.get(SettlementItem, item_id)

    async def add_item(self, item: SettlementItem) -> SettlementItem:
        self.session.add(item)
        await self.session.flush()
        return item

    async def itemized_submission_ids(self, submission_ids: list[uuid.UUID]) -> set[uuid.UUID]:
        if not submission_ids:
            return set()
        result = await self.session.execute(
            select(SettlementItem.submission_id).where(SettlementItem.submission_id.in_(submission_ids))
        )
        return set(result.scalars().all())

    async def recompute_total(self, settlement: Settlement) -> Decimal:
        """Set ``total_amount`` to the exact sum of its items' final amounts."""
        items = await self.items(settlement.id)
        settlement.total_amount = sum((Decimal(i.final_amount) for i in items), Decimal("0"))
        self.session.add(settlement)
        await self.session.flush()
        return settlement.total_amount

    async def delete_with_items(self, settlement: Settlement) -> None:
        await self.session.execute(
            delete(SettlementItem).where(SettlementItem.settlement_id == settlement.id)
        )
        await self.delete(settlement)


class SettingRepository(Repository[SystemSetting]):
    model = SystemSetting

    async def get_value(self, key: str, default: Optional[str] = None) -> Optional[str]:
        setting = await self.session.get(SystemSetting, key)
        return setting.value if setting else default

    async def list_all(self) -> list[SystemSetting]:
        return await self.all(select(SystemSetting).order_by(SystemSetting.key))

    async def upsert(self, key: str, value: str, label: Optional[str] = None) -> SystemSetting:
        setting = await self.session.get(SystemSetting, key)
        if setting is None:
            setting = SystemSetting(key=key, value=value, label=label)
        else:
            setting.value = value
            if label is not None:
                setting.label = label
        return await self.add(setting)
