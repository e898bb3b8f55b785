"""
Tests for registration, the approval gate and pricing grades.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

import pytest

from conftest import auth_headers, make_token, principal_of
from starstudio.core.auth import Identity
from starstudio.core.errors import BadRequest, NotFound
from starstudio.core.uow import UnitOfWork
from starstudio.services import users as user_service
from starstudio_shared.schemas.users import GradeCreate, GradeOrder, GradeReorder


class TestRegistration:
    async def test_first_login_creates_unapproved_star(self, client):
        token = make_token("idp-123", "new@example.com")
        resp = await client.post(
            "/api/v1/auth/callback", json={"name": " New Star "}, headers={"Authorization": f"Bearer {token}"}
        )
        assert resp.status_code == 200
        user = resp.json()["data"]
        assert user["name"] == "New Star"
        assert user["role"] == "STAR"
        assert user["isApproved"] is False

        # Second login returns the same account.
        resp = await client.post(
            "/api/v1/auth/callback", json={"name": "Other"}, headers={"Authorization": f"Bearer {token}"}
        )
        assert resp.json()["data"]["id"] == user["id"]

    async def test_existing_email_is_linked(self, uow, session_factory, make_user):
        seeded = await make_user(name="Seeded")
        read = await user_service.register_from_identity(
            uow, Identity(external_id="idp-new", email=seeded.email), "Ignored"
        )
        assert read.id == seeded.id
        async with UnitOfWork(session_factory) as check:
            assert (await check.users.get(seeded.id)).auth_id == "idp-new"

    async def test_callback_requires_valid_token(self, client):
        resp = await client.post("/api/v1/auth/callback", json={"name": "x"})
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "UNAUTHORIZED"

        bad = make_token("idp-1", aud="someone-else")
        resp = await client.post(
            "/api/v1/auth/callback", json={"name": "x"}, headers={"Authorization": f"Bearer {bad}"}
        )
        assert resp.status_code == 401


class TestApprovalGate:
    async def test_unregistered_token_is_unauthorized(self, client):
        resp = await client.get(
            "/api/v1/users/me", headers={"Authorization": f"Bearer {make_token('nobody')}"}
        )
        assert resp.status_code == 401

    async def test_unapproved_star_reads_profile_but_not_board(self, client, make_user):
        newcomer = await make_user(approved=False, name="Newcomer")
        resp = await client.get("/api/v1/users/me", headers=auth_headers(newcomer))
        assert resp.status_code == 200
        assert resp.json()["data"]["isApproved"] is False

        resp = await client.get("/api/v1/requests/board", headers=auth_headers(newcomer))
        assert resp.status_code == 403

    async def test_admin_approves_account(self, client, admin, make_user):
        newcomer = await make_user(approved=False)
        resp = await client.patch(
            f"/api/v1/admin/users/{newcomer.id}/approval", json={"approved": True}, headers=auth_headers(admin)
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["isApproved"] is True

        resp = await client.get("/api/v1/requests/board", headers=auth_headers(newcomer))
        assert resp.status_code == 200

    async def test_list_pending_accounts(self, client, admin, star, make_user):
        await make_user(approved=False, name="Waiting")
        resp = await client.get("/api/v1/admin/users?approved=false", headers=auth_headers(admin))
        assert [u["name"] for u in resp.json()["data"]] == ["Waiting"]

    async def test_update_own_name(self, client, star):
        resp = await client.patch("/api/v1/users/me", json={"name": "Renamed"}, headers=auth_headers(star))
        assert resp.json()["data"]["name"] == "Renamed"


class TestGrades:
    async def test_assigning_grade_copies_rate(self, uow, admin, star):
        grade = await user_service.create_grade(
            uow, principal_of(admin), GradeCreate(name="Gold", base_rate=Decimal("150000"), color="#eab308")
        )
        read = await user_service.assign_grade(uow, principal_of(admin), star.id, grade.id)
        assert read.grade_id == grade.id
        assert read.base_rate == Decimal("150000")

        grades = await user_service.list_grades(uow, principal_of(admin))
        assert grades[0].star_count == 1

    async def test_clearing_grade_keeps_rate(self, uow, admin, star):
        grade = await user_service.create_grade(
            uow, principal_of(admin), GradeCreate(name="Silver", base_rate=Decimal("120000"), color="#94a3b8")
        )
        await user_service.assign_grade(uow, principal_of(admin), star.id, grade.id)
        read = await user_service.assign_grade(uow, principal_of(admin), star.id, None)
        assert read.grade_id is None
        assert read.base_rate == Decimal("120000")

    async def test_delete_grade_detaches_stars(self, uow, session_factory, admin, star):
        grade = await user_service.create_grade(
            uow, principal_of(admin), GradeCreate(name="Bronze", base_rate=Decimal("90000"), color="#b45309")
        )
        await user_service.assign_grade(uow, principal_of(admin), star.id, grade.id)
        await user_service.delete_grade(uow, principal_of(admin), grade.id)

        async with UnitOfWork(session_factory) as check:
            refreshed = await check.users.get(star.id)
            assert refreshed.grade_id is None
            assert refreshed.base_rate == Decimal("90000")

    async def test_sort_order_defaults_and_reorder(self, uow, admin):
        a = await user_service.create_grade(
            uow, principal_of(admin), GradeCreate(name="A", base_rate=Decimal("1"), color="#000")
        )
        b = await user_service.create_grade(
            uow, principal_of(admin), GradeCreate(name="B", base_rate=Decimal("2"), color="#111")
        )
        assert (a.sort_order, b.sort_order) == (0, 1)

        reordered = await user_service.reorder_grades(
            uow,
            principal_of(admin),
            GradeReorder(items=[GradeOrder(id=a.id, sort_order=5), GradeOrder(id=b.id, sort_order=2)]),
        )
        assert [g.name for g in reordered] == ["B", "A"]

    async def test_pricing_applies_to_stars_only(self, uow, admin):
        with pytest.raises(BadRequest):
            await user_service.set_base_rate(uow, principal_of(admin), admin.id, Decimal("1000"))

    async def test_unknown_grade(self, uow, admin, star):
        with pytest.raises(NotFound):
            await user_service.assign_grade(uow, principal_of(admin), star.id, uuid.uuid4())

    async def test_grade_endpoints(self, client, admin, star):
        resp = await client.post(
            "/api/v1/admin/grades/",
            json={"name": "Platinum", "baseRate": "200000", "color": "#e5e7eb"},
            headers=auth_headers(admin),
        )
        assert resp.status_code == 201
        grade_id = resp.json()["data"]["id"]

        resp = await client.patch(
            f"/api/v1/admin/stars/{star.id}/grade", json={"gradeId": grade_id}, headers=auth_headers(admin)
        )
        assert Decimal(resp.json()["data"]["baseRate"]) == Decimal("200000")

        resp = await client.post(
            "/api/v1/admin/grades/", json={"name": "Zero", "baseRate": "0", "color": "#fff"}, headers=auth_headers(admin)
        )
        assert resp.status_code == 400

        resp = await client.get("/api/v1/admin/grades/", headers=auth_headers(star))
        assert resp.status_code == 403
