"""
Navigation badge and category listing tests.
"""

from __future__ import annotations

from datetime import datetime, timezone

from conftest import auth_headers, principal_of
from starstudio.core.uow import UnitOfWork
from starstudio.models.feedback import Feedback
from starstudio.services import notifications as notification_service
from starstudio.services import settlements as settlement_service


async def _feedback(session_factory, submission, author, status="PENDING"):
    async with UnitOfWork(session_factory) as u:
        return await u.feedback.add(
            Feedback(submission_id=submission.id, author_id=author.id, content="Tighten the intro", status=status)
        )


class TestBadge:
    async def test_star_counts_pending_feedback_on_own_submissions(
        self, uow, session_factory, admin, star, make_user, make_submission
    ):
        mine = await make_submission(star)
        await _feedback(session_factory, mine, admin)
        await _feedback(session_factory, mine, admin)
        await _feedback(session_factory, mine, admin, status="RESOLVED")

        other = await make_user(name="Other")
        await _feedback(session_factory, await make_submission(other), admin)

        counts = await notification_service.badge(uow, principal_of(star))
        assert counts.unread_feedbacks == 2
        assert counts.unreviewed_submissions is None

    async def test_admin_counts_review_queues(self, uow, admin, star, make_submission):
        await make_submission(star, slot=0)
        await make_submission(star, slot=1)
        await make_submission(
            star, slot=2, status="APPROVED", approved_at=datetime(2026, 9, 10, tzinfo=timezone.utc)
        )
        await settlement_service.generate(uow, principal_of(admin), 2026, 9)

        counts = await notification_service.badge(uow, principal_of(admin))
        assert (counts.unreviewed_submissions, counts.pending_settlements) == (2, 1)
        assert counts.unread_feedbacks is None

    async def test_badge_over_http_omits_other_roles_fields(self, client, admin, star):
        resp = await client.get("/api/v1/notifications/badge", headers=auth_headers(star))
        assert resp.status_code == 200
        assert resp.json() == {"data": {"unreadFeedbacks": 0}}

        resp = await client.get("/api/v1/notifications/badge", headers=auth_headers(admin))
        assert resp.json() == {"data": {"unreviewedSubmissions": 0, "pendingSettlements": 0}}

    async def test_badge_requires_token(self, client):
        resp = await client.get("/api/v1/notifications/badge")
        assert resp.status_code == 401


class TestCategories:
    async def test_counts_sorted_by_name(self, client, admin, star, make_request):
        await make_request(admin, title="Teaser", categories=["short-form", "ads"])
        await make_request(admin, title="Vlog", categories=["vlog"])
        await make_request(admin, title="Promo", categories=["ads"])

        resp = await client.get("/api/v1/requests/categories", headers=auth_headers(star))
        assert resp.status_code == 200
        assert resp.json()["data"] == [
            {"name": "ads", "requestCount": 2},
            {"name": "short-form", "requestCount": 1},
            {"name": "vlog", "requestCount": 1},
        ]

    async def test_empty(self, client, admin):
        resp = await client.get("/api/v1/requests/categories", headers=auth_headers(admin))
        assert resp.json() == {"data": []}
