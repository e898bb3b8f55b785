"""
Monthly settlement tests.

Tests cover:
- Generation from approved submissions (rate precedence, skipped and
  completed stars, support fee, incremental regeneration)
- Item adjustment and total recomputation
- Completion, cancellation and deletion rules
- The freelancer tax breakdown
- Total == sum of final amounts under arbitrary adjustments (hypothesis)
"""

from __future__ import annotations

import asyncio
import uuid
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from hypothesis import HealthCheck, given, settings as hyp_settings, strategies as st
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from conftest import auth_headers, principal_of
from starstudio.core.database import init_db, make_session_factory
from starstudio.core.errors import Forbidden, InvalidState, NotFound
from starstudio.core.uow import UnitOfWork
from starstudio.models.grade import PricingGrade
from starstudio.models.submission import Submission, Video
from starstudio.models.user import User
from starstudio.services import settlements as settlement_service
from starstudio_shared.schemas.common import PageParams, SettlementStatus
from starstudio_shared.schemas.settlements import ItemAdjust, calculate_tax

SEPT = datetime(2026, 9, 15, 12, 0, tzinfo=timezone.utc)


async def _video(session_factory, owner, custom_rate=None) -> Video:
    async with UnitOfWork(session_factory) as u:
        return await u.videos.add(Video(owner_id=owner.id, title="Published cut", custom_rate=custom_rate))


async def _grade(session_factory, base_rate) -> PricingGrade:
    async with UnitOfWork(session_factory) as u:
        return await u.grades.add(PricingGrade(name="Gold", base_rate=base_rate, color="#eab308"))


def _amounts(detail):
    return sorted(item.final_amount for item in detail.items)


class TestPeriod:
    def test_bounds(self):
        start, end = settlement_service.period_bounds(2026, 9)
        assert start == datetime(2026, 9, 1, tzinfo=timezone.utc)
        assert end == datetime(2026, 10, 1, tzinfo=timezone.utc)

    def test_december_rolls_into_next_year(self):
        _, end = settlement_service.period_bounds(2026, 12)
        assert end == datetime(2027, 1, 1, tzinfo=timezone.utc)


class TestGenerate:
    async def test_rate_precedence_and_adjustment(self, uow, session_factory, admin, star, make_submission):
        # One submission at the star's base rate, one at its video's custom rate.
        video = await _video(session_factory, star, Decimal("50000"))
        await make_submission(star, status="APPROVED", approved_at=SEPT, slot=0)
        await make_submission(star, status="APPROVED", approved_at=SEPT, slot=1, video_id=video.id)

        result = await settlement_service.generate(uow, principal_of(admin), 2026, 9)
        assert len(result.created) == 1
        created = result.created[0]
        assert created.total_amount == Decimal("150000")
        assert created.item_count == 2

        detail = await settlement_service.get(uow, principal_of(admin), created.id)
        assert _amounts(detail) == [Decimal("50000"), Decimal("100000")]

        base_item = next(i for i in detail.items if i.final_amount == Decimal("100000"))
        adjusted = await settlement_service.adjust_item(
            uow, principal_of(admin), created.id, base_item.id, ItemAdjust(adjusted_amount=Decimal("80000"))
        )
        assert adjusted.item.adjusted_amount == Decimal("80000")
        assert adjusted.item.final_amount == Decimal("80000")
        assert adjusted.item.base_amount == Decimal("100000")
        assert adjusted.new_total_amount == Decimal("130000")

        detail = await settlement_service.get(uow, principal_of(admin), created.id)
        assert detail.total_amount == Decimal("130000")

    async def test_grade_rate_beats_star_rate(self, uow, session_factory, admin, make_user, make_submission):
        grade = await _grade(session_factory, Decimal("90000"))
        star = await make_user(base_rate=Decimal("70000"), grade_id=grade.id)
        await make_submission(star, status="APPROVED", approved_at=SEPT)

        result = await settlement_service.generate(uow, principal_of(admin), 2026, 9)
        assert result.created[0].total_amount == Decimal("90000")

    async def test_explicit_final_amount_wins(self, uow, admin, star, make_submission):
        await make_submission(star, status="APPROVED", approved_at=SEPT)
        created = (await settlement_service.generate(uow, principal_of(admin), 2026, 9)).created[0]
        item = (await settlement_service.get(uow, principal_of(admin), created.id)).items[0]

        adjusted = await settlement_service.adjust_item(
            uow,
            principal_of(admin),
            created.id,
            item.id,
            ItemAdjust(adjusted_amount=Decimal("90000"), final_amount=Decimal("95000")),
        )
        assert adjusted.item.adjusted_amount == Decimal("90000")
        assert adjusted.new_total_amount == Decimal("95000")

    async def test_star_without_rate_is_skipped(self, uow, admin, star, make_user, make_submission):
        unpriced = await make_user(name="No Rate")
        await make_submission(unpriced, status="APPROVED", approved_at=SEPT)
        await make_submission(star, status="APPROVED", approved_at=SEPT)

        result = await settlement_service.generate(uow, principal_of(admin), 2026, 9)
        assert [s.star_id for s in result.created] == [star.id]
        assert [s.id for s in result.skipped_stars] == [unpriced.id]

    async def test_no_approved_submissions(self, uow, admin, star, make_submission):
        await make_submission(star, status="PENDING")
        await make_submission(star, status="APPROVED", approved_at=datetime(2026, 8, 31, 23, 59, tzinfo=timezone.utc))
        with pytest.raises(NotFound):
            await settlement_service.generate(uow, principal_of(admin), 2026, 9)

    async def test_support_fee_added_once(self, uow, admin, star, make_submission):
        async with uow:
            await uow.settings.upsert("ai_tool_support_fee", "10000")
        await make_submission(star, status="APPROVED", approved_at=SEPT, slot=0)

        created = (await settlement_service.generate(uow, principal_of(admin), 2026, 9)).created[0]
        assert created.total_amount == Decimal("110000")

        await make_submission(star, status="APPROVED", approved_at=SEPT, slot=1)
        updated = (await settlement_service.generate(uow, principal_of(admin), 2026, 9)).updated[0]
        assert updated.id == created.id
        assert updated.total_amount == Decimal("210000")
        assert updated.item_count == 3

    async def test_regeneration_keeps_adjustments(self, uow, admin, star, make_submission):
        await make_submission(star, status="APPROVED", approved_at=SEPT, slot=0)
        created = (await settlement_service.generate(uow, principal_of(admin), 2026, 9)).created[0]
        item = (await settlement_service.get(uow, principal_of(admin), created.id)).items[0]
        await settlement_service.adjust_item(
            uow, principal_of(admin), created.id, item.id, ItemAdjust(adjusted_amount=Decimal("60000"))
        )

        again = await settlement_service.generate(uow, principal_of(admin), 2026, 9)
        assert again.created == [] and again.updated == []

        await make_submission(star, status="APPROVED", approved_at=SEPT, slot=1)
        again = await settlement_service.generate(uow, principal_of(admin), 2026, 9)
        assert again.updated[0].total_amount == Decimal("160000")

    async def test_completed_settlement_is_reported_not_touched(self, uow, admin, star, make_submission):
        await make_submission(star, status="APPROVED", approved_at=SEPT, slot=0)
        created = (await settlement_service.generate(uow, principal_of(admin), 2026, 9)).created[0]
        await settlement_service.complete(uow, principal_of(admin), created.id)

        await make_submission(star, status="APPROVED", approved_at=SEPT, slot=1)
        result = await settlement_service.generate(uow, principal_of(admin), 2026, 9)
        assert [s.id for s in result.completed_stars] == [star.id]

        detail = await settlement_service.get(uow, principal_of(admin), created.id)
        assert detail.total_amount == Decimal("100000")
        assert len(detail.items) == 1


class TestStatusTransitions:
    async def _settlement(self, uow, admin, star, make_submission):
        await make_submission(star, status="APPROVED", approved_at=SEPT)
        return (await settlement_service.generate(uow, principal_of(admin), 2026, 9)).created[0]

    async def test_complete_then_cancel(self, uow, admin, star, make_submission):
        created = await self._settlement(uow, admin, star, make_submission)
        completed = await settlement_service.complete(uow, principal_of(admin), created.id)
        assert completed.status == SettlementStatus.COMPLETED
        assert completed.payment_date is not None

        with pytest.raises(InvalidState):
            await settlement_service.complete(uow, principal_of(admin), created.id)

        reopened = await settlement_service.cancel(uow, principal_of(admin), created.id)
        assert reopened.status == SettlementStatus.PENDING
        assert reopened.payment_date is None

    async def test_completed_settlement_is_frozen(self, uow, admin, star, make_submission):
        created = await self._settlement(uow, admin, star, make_submission)
        item = (await settlement_service.get(uow, principal_of(admin), created.id)).items[0]
        await settlement_service.complete(uow, principal_of(admin), created.id)

        with pytest.raises(InvalidState):
            await settlement_service.adjust_item(
                uow, principal_of(admin), created.id, item.id, ItemAdjust(adjusted_amount=Decimal("1"))
            )
        with pytest.raises(Forbidden):
            await settlement_service.delete(uow, principal_of(admin), created.id)

    async def test_delete_pending_removes_items(self, uow, session_factory, admin, star, make_submission):
        created = await self._settlement(uow, admin, star, make_submission)
        await settlement_service.delete(uow, principal_of(admin), created.id)
        async with UnitOfWork(session_factory) as check:
            assert await check.settlements.get(created.id) is None
            assert await check.settlements.items(created.id) == []

    async def test_item_from_other_settlement_is_not_found(self, uow, admin, star, make_user, make_submission):
        other = await make_user(name="Other", base_rate=Decimal("1000"))
        await make_submission(star, status="APPROVED", approved_at=SEPT)
        await make_submission(other, status="APPROVED", approved_at=SEPT)
        result = await settlement_service.generate(uow, principal_of(admin), 2026, 9)
        first, second = result.created
        foreign = (await settlement_service.get(uow, principal_of(admin), second.id)).items[0]
        with pytest.raises(NotFound):
            await settlement_service.adjust_item(
                uow, principal_of(admin), first.id, foreign.id, ItemAdjust(final_amount=Decimal("5"))
            )

    async def test_star_sees_only_own(self, uow, admin, star, make_user, make_submission):
        other = await make_user(name="Other", base_rate=Decimal("1000"))
        await make_submission(star, status="APPROVED", approved_at=SEPT)
        await make_submission(other, status="APPROVED", approved_at=SEPT)
        result = await settlement_service.generate(uow, principal_of(admin), 2026, 9)
        theirs = next(s for s in result.created if s.star_id == other.id)

        page = await settlement_service.list_settlements(uow, principal_of(star), PageParams.clamp(None, None))
        assert [s.star_id for s in page.data] == [star.id]
        with pytest.raises(Forbidden):
            await settlement_service.get(uow, principal_of(star), theirs.id)


class TestTax:
    def test_breakdown(self):
        tax = calculate_tax(Decimal("200000"))
        assert tax.income_tax == Decimal("6000")
        assert tax.local_tax == Decimal("600")
        assert tax.total_tax == Decimal("6600")
        assert tax.net_amount == Decimal("193400")

    def test_rounds_half_up_per_component(self):
        tax = calculate_tax(Decimal("12345"))
        assert tax.income_tax == Decimal("370")  # 370.35
        assert tax.local_tax == Decimal("37")  # 37.035
        assert tax.net_amount == Decimal("11938")


class TestSettlementEndpoints:
    async def test_generate_and_adjust_over_http(self, client, admin, star, make_submission):
        await make_submission(star, status="APPROVED", approved_at=SEPT)
        resp = await client.post(
            "/api/v1/settlements/generate", json={"year": 2026, "month": 9}, headers=auth_headers(admin)
        )
        assert resp.status_code == 200
        settlement = resp.json()["data"]["created"][0]
        assert Decimal(settlement["totalAmount"]) == Decimal("100000")

        resp = await client.get(f"/api/v1/settlements/{settlement['id']}", headers=auth_headers(star))
        assert resp.status_code == 200
        detail = resp.json()["data"]
        assert Decimal(detail["tax"]["totalTax"]) == Decimal("3300")

        resp = await client.patch(
            f"/api/v1/settlements/{settlement['id']}/items/{detail['items'][0]['id']}",
            json={"adjustedAmount": "120000"},
            headers=auth_headers(admin),
        )
        assert resp.status_code == 200
        assert Decimal(resp.json()["data"]["newTotalAmount"]) == Decimal("120000")

    async def test_adjust_requires_an_amount(self, client, admin):
        resp = await client.patch(
            f"/api/v1/settlements/{uuid.uuid4()}/items/{uuid.uuid4()}", json={}, headers=auth_headers(admin)
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "VALIDATION_ERROR"

    async def test_generate_is_admin_only(self, client, star):
        resp = await client.post(
            "/api/v1/settlements/generate", json={"year": 2026, "month": 9}, headers=auth_headers(star)
        )
        assert resp.status_code == 403

    async def test_system_settings_roundtrip(self, client, admin):
        resp = await client.put(
            "/api/v1/admin/settings/", json={"key": "ai_tool_support_fee", "value": "5000"}, headers=auth_headers(admin)
        )
        assert resp.status_code == 200
        resp = await client.get("/api/v1/admin/settings/", headers=auth_headers(admin))
        assert {"key": "ai_tool_support_fee", "value": "5000", "label": None} in resp.json()["data"]


# ---------------------------------------------------------------------------
# Property: the stored total always equals the exact sum of final amounts.
# ---------------------------------------------------------------------------

money = st.decimals(min_value=0, max_value=10_000_000, places=2, allow_nan=False, allow_infinity=False)


async def _total_matches_items(rates: list[Decimal], adjustments: list[tuple[int, Decimal]]) -> None:
    engine = create_async_engine(
        "sqlite+aiosqlite://", poolclass=StaticPool, connect_args={"check_same_thread": False}
    )
    try:
        await init_db(engine)
        factory = make_session_factory(engine)
        async with UnitOfWork(factory) as u:
            admin = await u.users.add(User(auth_id="a", email="a@example.com", name="Admin", role="ADMIN", is_approved=True))
            star = await u.users.add(User(auth_id="s", email="s@example.com", name="Star", role="STAR", is_approved=True))
            for slot, rate in enumerate(rates):
                video = await u.videos.add(Video(owner_id=star.id, title=f"v{slot}", custom_rate=rate))
                await u.submissions.add(
                    Submission(star_id=star.id, version_title=f"v{slot}", status="APPROVED",
                               approved_at=SEPT, video_id=video.id)
                )

        uow = UnitOfWork(factory)
        principal = principal_of(admin)
        created = (await settlement_service.generate(uow, principal, 2026, 9)).created[0]
        items = (await settlement_service.get(uow, principal, created.id)).items
        for index, amount in adjustments:
            await settlement_service.adjust_item(
                uow, principal, created.id, items[index % len(items)].id, ItemAdjust(adjusted_amount=amount)
            )

        detail = await settlement_service.get(uow, principal, created.id)
        assert detail.total_amount == sum((i.final_amount for i in detail.items), Decimal("0"))
    finally:
        await engine.dispose()


@hyp_settings(max_examples=25, deadline=None, suppress_health_check=[HealthCheck.too_slow])
@given(
    rates=st.lists(money, min_size=1, max_size=5),
    adjustments=st.lists(st.tuples(st.integers(min_value=0, max_value=10), money), max_size=6),
)
def test_total_is_sum_of_final_amounts(rates, adjustments):
    asyncio.run(_total_matches_items(rates, adjustments))
