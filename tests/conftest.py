"""
Shared fixtures: a fresh SQLite database per test, the app wired to it,
and factories for the workflow records.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import jwt
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine

from starstudio.api.deps import get_task_queue
from starstudio.core.auth import Principal
from starstudio.core.config import get_settings
from starstudio.core.database import get_session_factory, init_db, make_session_factory
from starstudio.core.uow import UnitOfWork
from starstudio.main import app
from starstudio.models.assignment import ProjectAssignment
from starstudio.models.request import ProjectRequest
from starstudio.models.submission import Submission
from starstudio.models.user import User
from starstudio.services.task_queue import TaskQueue


class FakeArqPool:
    """Records enqueued jobs instead of talking to Redis."""

    def __init__(self):
        self.jobs: list[tuple[str, tuple]] = []

    async def enqueue_job(self, function: str, *args, **kwargs):
        self.jobs.append((function, args))


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def uow(session_factory):
    return UnitOfWork(session_factory)


@pytest.fixture
def arq_pool():
    return FakeArqPool()


@pytest.fixture
def queue(session_factory, arq_pool):
    async def get_pool():
        return arq_pool

    return TaskQueue(session_factory, get_pool)


@pytest.fixture
async def client(session_factory, queue):
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_task_queue] = lambda: queue
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------

def make_token(auth_id: str, email: str | None = None, **overrides) -> str:
    settings = get_settings()
    payload = {
        "sub": auth_id,
        "email": email,
        "aud": settings.auth_jwt_audience,
        "exp": datetime.now(timezone.utc) + timedelta(hours=1),
    }
    payload.update(overrides)
    return jwt.encode(payload, settings.auth_jwt_secret, algorithm=settings.auth_jwt_algorithm)


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {make_token(user.auth_id, user.email)}"}


def principal_of(user: User) -> Principal:
    return Principal.from_user(user)


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

@pytest.fixture
def make_user(session_factory):
    async def _make(
        *,
        role: str = "STAR",
        approved: bool = True,
        name: str = "Test Star",
        base_rate: Decimal | None = None,
        grade_id: uuid.UUID | None = None,
    ) -> User:
        key = uuid.uuid4().hex[:10]
        async with UnitOfWork(session_factory) as u:
            return await u.users.add(
                User(
                    auth_id=f"auth-{key}",
                    email=f"{key}@example.com",
                    name=name,
                    role=role,
                    is_approved=approved,
                    base_rate=base_rate,
                    grade_id=grade_id,
                )
            )

    return _make


@pytest.fixture
async def admin(make_user) -> User:
    return await make_user(role="ADMIN", name="Admin")


@pytest.fixture
async def star(make_user) -> User:
    return await make_user(name="Star One", base_rate=Decimal("100000"))


@pytest.fixture
def make_request(session_factory):
    async def _make(
        created_by: User,
        *,
        max_assignees: int = 1,
        status: str = "OPEN",
        title: str = "Brand film",
        categories: list[str] | None = None,
    ) -> ProjectRequest:
        async with UnitOfWork(session_factory) as u:
            return await u.requests.add(
                ProjectRequest(
                    title=title,
                    categories=categories or ["ads"],
                    deadline=datetime.now(timezone.utc) + timedelta(days=14),
                    assignment_type="MULTIPLE" if max_assignees > 1 else "SINGLE",
                    max_assignees=max_assignees,
                    status=status,
                    created_by_id=created_by.id,
                )
            )

    return _make


@pytest.fixture
def make_assignment(session_factory):
    async def _make(star: User, request: ProjectRequest, *, status: str = "ACCEPTED") -> ProjectAssignment:
        async with UnitOfWork(session_factory) as u:
            return await u.assignments.add(
                ProjectAssignment(star_id=star.id, request_id=request.id, status=status)
            )

    return _make


@pytest.fixture
def make_submission(session_factory):
    async def _make(
        star: User,
        assignment: ProjectAssignment | None = None,
        *,
        status: str = "PENDING",
        slot: int = 0,
        approved_at: datetime | None = None,
        stream_uid: str | None = "uid-1",
        video_id: uuid.UUID | None = None,
        title: str = "First cut",
    ) -> Submission:
        async with UnitOfWork(session_factory) as u:
            return await u.submissions.add(
                Submission(
                    assignment_id=assignment.id if assignment else None,
                    star_id=star.id,
                    version_slot=slot,
                    version_title=title,
                    stream_uid=stream_uid,
                    status=status,
                    approved_at=approved_at,
                    video_id=video_id,
                )
            )

    return _make
