"""
ARQ worker entry point.

    arq starstudio.tasks.worker.WorkerSettings
"""

from __future__ import annotations

import structlog
from sqlalchemy.ext.asyncio import create_async_engine

from starstudio.core.config import get_settings
from starstudio.core.database import make_session_factory
from starstudio.core.logging import configure_logging
from starstudio.core.redis import redis_settings
from starstudio.integrations.gemini import GeminiAnalyzer
from starstudio.integrations.stream import StreamClient
from starstudio.tasks.media import propagate_video_status, run_ai_analysis

log = structlog.get_logger()
settings = get_settings()


async def startup(ctx: dict) -> None:
    configure_logging(settings.log_level, settings.log_format)
    engine = create_async_engine(settings.database_url, future=True)
    ctx["engine"] = engine
    ctx["session_factory"] = make_session_factory(engine)
    ctx["stream"] = StreamClient(settings)
    ctx["analyzer"] = GeminiAnalyzer(settings)
    ctx["max_tries"] = settings.task_max_tries
    log.info("worker.started", max_tries=settings.task_max_tries)


async def shutdown(ctx: dict) -> None:
    await ctx["engine"].dispose()
    log.info("worker.stopped")


class WorkerSettings:
    """ARQ worker configuration."""

    functions = [propagate_video_status, run_ai_analysis]
    on_startup = startup
    on_shutdown = shutdown
    redis_settings = redis_settings()
    max_tries = settings.task_max_tries
