"""
Monthly settlement computation.

A settlement collects one item per approved submission of a star in a
calendar month (by approval time). ``total_amount`` is derived: every
mutation of an item amount recomputes it as the exact Decimal sum of the
items' final amounts in the same unit of work.

Effective rate for a submission, first match wins:
    1. the video's custom rate
    2. the star's pricing grade base rate
    3. the star's own base rate
"""

from __future__ import annotations

import uuid
from collections import defaultdict
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Optional

import structlog

from starstudio.core.auth import Principal
from starstudio.core.errors import Forbidden, InvalidState, NotFound
from starstudio.core.uow import UnitOfWork
from starstudio.models.grade import PricingGrade
from starstudio.models.settlement import Settlement, SettlementItem
from starstudio.models.submission import Submission, Video
from starstudio.models.user import User
from starstudio_shared.schemas.common import (
    Page,
    PageParams,
    SettlementItemType,
    SettlementStatus,
    total_pages,
)
from starstudio_shared.schemas.settlements import (
    GenerationResult,
    ItemAdjust,
    ItemAdjustResult,
    SettingRead,
    SettingUpdate,
    SettlementDetail,
    SettlementItemRead,
    SettlementRead,
    SettlementUpdate,
    SkippedStar,
    calculate_tax,
)

log = structlog.get_logger()

AI_TOOL_SUPPORT_FEE = "ai_tool_support_fee"


def period_bounds(year: int, month: int) -> tuple[datetime, datetime]:
    """[start, end) of a calendar month in UTC."""
    start = datetime(year, month, 1, tzinfo=timezone.utc)
    end = datetime(year + month // 12, month % 12 + 1, 1, tzinfo=timezone.utc)
    return start, end


def effective_rate(
    video: Optional[Video], grade: Optional[PricingGrade], star: User
) -> Optional[Decimal]:
    if video is not None and video.custom_rate is not None:
        return Decimal(video.custom_rate)
    if grade is not None:
        return Decimal(grade.base_rate)
    if star.base_rate is not None:
        return Decimal(star.base_rate)
    return None


def _to_read(settlement: Settlement, item_count: int = 0) -> SettlementRead:
    read = SettlementRead.model_validate(settlement)
    read.item_count = item_count
    return read


async def _get_or_404(uow: UnitOfWork, settlement_id: uuid.UUID) -> Settlement:
    settlement = await uow.settlements.get(settlement_id)
    if settlement is None:
        raise NotFound("Settlement not found.")
    return settlement


async def _support_fee(uow: UnitOfWork) -> Decimal:
    raw = await uow.settings.get_value(AI_TOOL_SUPPORT_FEE, "0")
    try:
        fee = Decimal(raw)
    except InvalidOperation:
        log.warning("settlement.invalid_fee_setting", value=raw)
        return Decimal("0")
    return fee if fee > 0 else Decimal("0")


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------

async def generate(uow: UnitOfWork, principal: Principal, year: int, month: int) -> GenerationResult:
    start, end = period_bounds(year, month)
    result = GenerationResult()

    async with uow:
        approved = await uow.submissions.approved_between(start, end)
        if not approved:
            raise NotFound(f"No approved submissions in {year}-{month:02d}.")

        by_star: dict[uuid.UUID, list[Submission]] = defaultdict(list)
        for submission in approved:
            by_star[submission.star_id].append(submission)

        stars = {u.id: u for u in await uow.users.list_by_ids(list(by_star))}
        grades = {
            g.id: g
            for g in await uow.grades.list_by_ids([u.grade_id for u in stars.values() if u.grade_id])
        }
        videos = {
            v.id: v
            for v in await uow.videos.list_by_ids([s.video_id for s in approved if s.video_id])
        }
        itemized = await uow.settlements.itemized_submission_ids([s.id for s in approved])
        fee = await _support_fee(uow)

        for star_id, submissions in by_star.items():
            star = stars.get(star_id)
            if star is None:
                continue
            settlement = await uow.settlements.get_for_period(star_id, year, month)
            if settlement is not None and settlement.status == SettlementStatus.COMPLETED.value:
                result.completed_stars.append(
                    SkippedStar(id=star.id, name=star.name, reason="Settlement already completed.")
                )
                continue

            pending = [s for s in submissions if s.id not in itemized]
            grade = grades.get(star.grade_id) if star.grade_id else None
            rates = {s.id: effective_rate(videos.get(s.video_id), grade, star) for s in pending}
            if any(rate is None for rate in rates.values()):
                result.skipped_stars.append(
                    SkippedStar(id=star.id, name=star.name, reason="No base rate configured.")
                )
                log.warning("settlement.star_skipped", star_id=str(star.id), reason="no_rate")
                continue

            created = settlement is None
            if created:
                settlement = await uow.settlements.add(
                    Settlement(star_id=star_id, year=year, month=month)
                )
                if fee > 0:
                    await uow.settlements.add_item(
                        SettlementItem(
                            settlement_id=settlement.id,
                            star_id=star_id,
                            item_type=SettlementItemType.AI_TOOL_SUPPORT.value,
                            description="AI tool support",
                            base_amount=fee,
                            final_amount=fee,
                        )
                    )
            elif not pending:
                continue

            for submission in pending:
                rate = rates[submission.id]
                await uow.settlements.add_item(
                    SettlementItem(
                        settlement_id=settlement.id,
                        submission_id=submission.id,
                        star_id=star_id,
                        item_type=SettlementItemType.SUBMISSION.value,
                        description=submission.version_title,
                        base_amount=rate,
                        final_amount=rate,
                    )
                )

            await uow.settlements.recompute_total(settlement)
            counts = await uow.settlements.item_counts([settlement.id])
            read = _to_read(settlement, counts.get(settlement.id, 0))
            (result.created if created else result.updated).append(read)

    log.info(
        "settlement.generated",
        year=year,
        month=month,
        created=len(result.created),
        updated=len(result.updated),
        skipped=len(result.skipped_stars),
        completed=len(result.completed_stars),
    )
    return result


# ---------------------------------------------------------------------------
# Item adjustment and status
# ---------------------------------------------------------------------------

async def adjust_item(
    uow: UnitOfWork,
    principal: Principal,
    settlement_id: uuid.UUID,
    item_id: uuid.UUID,
    body: ItemAdjust,
) -> ItemAdjustResult:
    async with uow:
        settlement = await _get_or_404(uow, settlement_id)
        item = await uow.settlements.get_item(item_id)
        if item is None or item.settlement_id != settlement.id:
            raise NotFound("Settlement item not found.")
        if settlement.status == SettlementStatus.COMPLETED.value:
            raise InvalidState("Completed settlements cannot be adjusted. Cancel it first.")

        if body.adjusted_amount is not None:
            item.adjusted_amount = body.adjusted_amount
        # An explicit final amount wins; otherwise it follows the adjustment.
        final = body.final_amount if body.final_amount is not None else body.adjusted_amount
        item.final_amount = final
        await uow.settlements.add_item(item)

        total = await uow.settlements.recompute_total(settlement)
        log.info(
            "settlement.item_adjusted",
            settlement_id=str(settlement.id),
            item_id=str(item.id),
            final_amount=str(final),
            total=str(total),
        )
        return ItemAdjustResult(item=SettlementItemRead.model_validate(item), new_total_amount=total)


async def complete(
    uow: UnitOfWork,
    principal: Principal,
    settlement_id: uuid.UUID,
    payment_date: Optional[datetime] = None,
) -> SettlementRead:
    async with uow:
        settlement = await _get_or_404(uow, settlement_id)
        if settlement.status == SettlementStatus.COMPLETED.value:
            raise InvalidState("Settlement is already completed.")
        settlement.status = SettlementStatus.COMPLETED.value
        settlement.payment_date = payment_date or datetime.now(timezone.utc)
        await uow.settlements.add(settlement)
        counts = await uow.settlements.item_counts([settlement.id])
        log.info("settlement.completed", settlement_id=str(settlement.id))
        return _to_read(settlement, counts.get(settlement.id, 0))


async def cancel(uow: UnitOfWork, principal: Principal, settlement_id: uuid.UUID) -> SettlementRead:
    """Reopen a settlement. Item amounts are left as they are."""
    async with uow:
        settlement = await _get_or_404(uow, settlement_id)
        settlement.status = SettlementStatus.PENDING.value
        settlement.payment_date = None
        await uow.settlements.add(settlement)
        counts = await uow.settlements.item_counts([settlement.id])
        log.info("settlement.cancelled", settlement_id=str(settlement.id))
        return _to_read(settlement, counts.get(settlement.id, 0))


async def update(
    uow: UnitOfWork,
    principal: Principal,
    settlement_id: uuid.UUID,
    body: SettlementUpdate,
) -> SettlementRead:
    async with uow:
        settlement = await _get_or_404(uow, settlement_id)
        for key, value in body.model_dump(exclude_unset=True).items():
            setattr(settlement, key, value)
        await uow.settlements.add(settlement)
        counts = await uow.settlements.item_counts([settlement.id])
        return _to_read(settlement, counts.get(settlement.id, 0))


async def delete(uow: UnitOfWork, principal: Principal, settlement_id: uuid.UUID) -> None:
    async with uow:
        settlement = await _get_or_404(uow, settlement_id)
        if settlement.status == SettlementStatus.COMPLETED.value:
            raise Forbidden("Completed settlements cannot be deleted.")
        await uow.settlements.delete_with_items(settlement)
        log.info("settlement.deleted", settlement_id=str(settlement_id))


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

async def get(uow: UnitOfWork, principal: Principal, settlement_id: uuid.UUID) -> SettlementDetail:
    async with uow:
        settlement = await _get_or_404(uow, settlement_id)
        if not principal.is_admin and settlement.star_id != principal.user_id:
            raise Forbidden("This settlement belongs to another star.")
        items = await uow.settlements.items(settlement.id)
        detail = SettlementDetail.model_validate(settlement)
        detail.item_count = len(items)
        detail.items = [SettlementItemRead.model_validate(i) for i in items]
        detail.tax = calculate_tax(Decimal(settlement.total_amount))
        return detail


async def list_settlements(
    uow: UnitOfWork,
    principal: Principal,
    params: PageParams,
    *,
    year: Optional[int] = None,
    month: Optional[int] = None,
    status: Optional[SettlementStatus] = None,
) -> Page[SettlementRead]:
    star_id = None if principal.is_admin else principal.user_id
    async with uow:
        items, total = await uow.settlements.list(
            params,
            year=year,
            month=month,
            status=status.value if status else None,
            star_id=star_id,
        )
        counts = await uow.settlements.item_counts([s.id for s in items])
        return Page[SettlementRead](
            data=[_to_read(s, counts.get(s.id, 0)) for s in items],
            total=total,
            page=params.page,
            page_size=params.page_size,
            total_pages=total_pages(total, params.page_size),
        )


# ---------------------------------------------------------------------------
# System settings
# ---------------------------------------------------------------------------

async def list_system_settings(uow: UnitOfWork, principal: Principal) -> list[SettingRead]:
    async with uow:
        return [SettingRead.model_validate(s) for s in await uow.settings.list_all()]


async def update_system_setting(uow: UnitOfWork, principal: Principal, body: SettingUpdate) -> SettingRead:
    async with uow:
        setting = await uow.settings.upsert(body.key, body.value)
        log.info("settings.updated", key=body.key)
        return SettingRead.model_validate(setting)
