"""
Background task queue.

``submit`` records a QUEUED ``BackgroundTask`` row in its own transaction
and hands the job to the ARQ worker. It is called only after the caller's
primary transaction has committed, and it never raises: a failure to
record or enqueue is logged and the task row (if any) is marked ERROR.
"""

from __future__ import annotations

import uuid
from typing import Awaitable, Callable, Optional

import structlog
from sqlalchemy.orm import sessionmaker

from starstudio.core.uow import UnitOfWork
from starstudio.models.background import BackgroundTask
from starstudio_shared.schemas.common import TaskKind, TaskState

log = structlog.get_logger()


class TaskQueue:
    def __init__(self, session_factory: sessionmaker, get_pool: Callable[[], Awaitable]):
        self._session_factory = session_factory
        self._get_pool = get_pool

    async def submit(self, kind: TaskKind, payload: dict) -> Optional[uuid.UUID]:
        task_id = None
        try:
            async with UnitOfWork(self._session_factory) as uow:
                task = await uow.tasks.add(BackgroundTask(kind=kind.value, payload=payload))
                task_id = task.id
            pool = await self._get_pool()
            await pool.enqueue_job(kind.value, str(task_id), _job_id=f"{kind.value}:{task_id}")
        except Exception as exc:
            log.exception("task_queue.submit_failed", kind=kind.value, task_id=str(task_id) if task_id else None)
            if task_id is not None:
                await self._mark_failed(task_id, f"enqueue failed: {exc}")
            return None

        log.info("task_queue.submitted", kind=kind.value, task_id=str(task_id))
        return task_id

    async def _mark_failed(self, task_id: uuid.UUID, message: str) -> None:
        try:
            async with UnitOfWork(self._session_factory) as uow:
                task = await uow.tasks.get(task_id)
                if task is not None:
                    task.status = TaskState.ERROR.value
                    task.last_error = message
                    await uow.tasks.add(task)
        except Exception:
            log.exception("task_queue.mark_failed_error", task_id=str(task_id))
