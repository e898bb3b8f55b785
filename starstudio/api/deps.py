"""Shared FastAPI dependencies for the v1 routers."""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Query
from sqlalchemy.orm import sessionmaker

from starstudio.core.database import get_session_factory
from starstudio.core.redis import get_arq_pool
from starstudio.core.uow import UnitOfWork
from starstudio.integrations.stream import StreamClient
from starstudio.services.task_queue import TaskQueue
from starstudio_shared.schemas.common import PageParams


async def get_uow(session_factory: sessionmaker = Depends(get_session_factory)) -> UnitOfWork:
    return UnitOfWork(session_factory)


async def get_task_queue(session_factory: sessionmaker = Depends(get_session_factory)) -> TaskQueue:
    return TaskQueue(session_factory, get_arq_pool)


async def get_stream_client() -> StreamClient:
    return StreamClient()


async def page_params(
    page: Optional[int] = Query(None),
    page_size: Optional[int] = Query(None, alias="pageSize"),
) -> PageParams:
    """Pagination query parameters; out-of-range values are clamped."""
    return PageParams.clamp(page, page_size)


def deleted(id) -> dict:
    return {"id": str(id), "deleted": True}
