"""
Video host client (Cloudflare Stream REST API).

Without an account id and API token the client runs in mock mode and
returns deterministic placeholder data, so local development and tests
never reach the network.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Optional

import httpx
import structlog

from starstudio.core.config import Settings, get_settings

log = structlog.get_logger()


class StreamError(Exception):
    """The video host answered with an unexpected status."""


@dataclass
class UploadSession:
    upload_url: str
    video_id: str


@dataclass
class AssetStatus:
    state: str  # queued | inprogress | ready | error
    duration_seconds: Optional[float] = None
    width: Optional[int] = None
    height: Optional[int] = None
    thumbnail_url: Optional[str] = None


class StreamClient:
    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = settings or get_settings()
        self._account_id = settings.stream_account_id
        self._token = settings.stream_api_token
        self._base_url = f"{settings.stream_api_base.rstrip('/')}/accounts/{self._account_id}/stream"
        self._delivery_base = settings.stream_delivery_base.rstrip("/")
        self._timeout = settings.stream_request_timeout_seconds
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(
            self._account_id
            and self._token
            and "placeholder" not in (self._account_id, self._token)
        )

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            headers={"Authorization": f"Bearer {self._token}"},
            timeout=httpx.Timeout(self._timeout),
            transport=self._transport,
        )

    async def create_upload_session(self, max_duration_seconds: int = 600) -> UploadSession:
        """Issue a one-time direct creator upload URL."""
        if not self.configured:
            uid = f"mock-{uuid.uuid4()}"
            return UploadSession(upload_url=f"https://upload.videodelivery.net/{uid}", video_id=uid)

        async with self._client() as client:
            resp = await client.post(
                "/direct_upload",
                json={"maxDurationSeconds": max_duration_seconds, "requireSignedURLs": True},
            )
        if resp.status_code >= 400:
            log.error("stream.upload_url_failed", status=resp.status_code)
            raise StreamError(f"direct_upload failed with {resp.status_code}")
        result = resp.json()["result"]
        return UploadSession(upload_url=result["uploadURL"], video_id=result["uid"])

    async def get_asset_status(self, video_id: str) -> Optional[AssetStatus]:
        """Encoding state and technical specs, or None if the asset is unknown."""
        if not self.configured:
            return AssetStatus(
                state="ready",
                duration_seconds=120.0,
                width=1920,
                height=1080,
                thumbnail_url=f"{self._delivery_base}/{video_id}/thumbnails/thumbnail.jpg",
            )

        async with self._client() as client:
            resp = await client.get(f"/{video_id}")
        if resp.status_code == 404:
            return None
        if resp.status_code >= 400:
            raise StreamError(f"asset lookup failed with {resp.status_code}")
        result = resp.json()["result"]
        source = result.get("input") or {}
        duration = result.get("duration")
        return AssetStatus(
            state=(result.get("status") or {}).get("state", "queued"),
            duration_seconds=float(duration) if duration is not None and duration >= 0 else None,
            width=source.get("width") or None,
            height=source.get("height") or None,
            thumbnail_url=result.get("thumbnail"),
        )

    async def get_download_url(self, video_id: str) -> Optional[str]:
        """mp4 download URL for analysis, enabling downloads when needed."""
        if not self.configured:
            return f"{self._delivery_base}/{video_id}/downloads/default.mp4"

        async with self._client() as client:
            resp = await client.get(f"/{video_id}/downloads")
            if resp.status_code < 400:
                default = (resp.json().get("result") or {}).get("default") or {}
                if default.get("url") and default.get("status") == "ready":
                    return default["url"]
            resp = await client.post(f"/{video_id}/downloads")
        if resp.status_code >= 400:
            log.warning("stream.download_enable_failed", video_id=video_id, status=resp.status_code)
            return None
        default = (resp.json().get("result") or {}).get("default") or {}
        return default.get("url")
