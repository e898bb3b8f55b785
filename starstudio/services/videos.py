"""
Published videos. Admins can pin a per-video rate that takes precedence
over grade and star rates when settlements are generated.
"""

from __future__ import annotations

import uuid

import structlog

from starstudio.core.auth import Principal
from starstudio.core.errors import NotFound
from starstudio.core.uow import UnitOfWork
from starstudio.models.submission import Video
from starstudio_shared.schemas.videos import VideoRateUpdate, VideoRead

log = structlog.get_logger()


async def _get_or_404(uow: UnitOfWork, video_id: uuid.UUID) -> Video:
    video = await uow.videos.get(video_id)
    if video is None:
        raise NotFound("Video not found.")
    return video


async def get(uow: UnitOfWork, principal: Principal, video_id: uuid.UUID) -> VideoRead:
    async with uow:
        return VideoRead.model_validate(await _get_or_404(uow, video_id))


async def set_rate(
    uow: UnitOfWork, principal: Principal, video_id: uuid.UUID, body: VideoRateUpdate
) -> VideoRead:
    async with uow:
        video = await _get_or_404(uow, video_id)
        video.custom_rate = body.custom_rate
        await uow.videos.add(video)
        log.info(
            "video.rate_set",
            video_id=str(video.id),
            custom_rate=str(body.custom_rate) if body.custom_rate is not None else None,
        )
        return VideoRead.model_validate(video)
