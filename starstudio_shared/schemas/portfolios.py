from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import AnyHttpUrl, Field

from .common import CamelModel


class PortfolioUpdate(CamelModel):
    bio: Optional[str] = None
    showreel: Optional[AnyHttpUrl] = None
    website: Optional[AnyHttpUrl] = None
    social_links: Optional[Dict[str, str]] = None


class PortfolioItemCreate(CamelModel):
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    thumbnail_url: Optional[AnyHttpUrl] = None
    video_url: Optional[AnyHttpUrl] = None


class PortfolioItemUpdate(CamelModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    thumbnail_url: Optional[AnyHttpUrl] = None
    video_url: Optional[AnyHttpUrl] = None


class PortfolioReorder(CamelModel):
    ordered_ids: List[UUID] = Field(min_length=1)


class PortfolioItemRead(CamelModel):
    id: UUID
    title: str
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    video_url: Optional[str] = None
    sort_order: int


class PortfolioRead(CamelModel):
    id: UUID
    user_id: UUID
    bio: Optional[str] = None
    showreel: Optional[str] = None
    website: Optional[str] = None
    social_links: Dict[str, str] = Field(default_factory=dict)
    items: List[PortfolioItemRead] = Field(default_factory=list)
