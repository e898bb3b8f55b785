"""Portfolio models (one portfolio per user, ordered items)."""

from typing import Dict, Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Portfolio(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "portfolios"

    user_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, unique=True)
    bio: Optional[str] = None
    showreel: Optional[str] = None
    website: Optional[str] = None
    social_links: Dict[str, str] = Field(default_factory=dict, sa_type=sa.JSON, nullable=False)


class PortfolioItem(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "portfolio_items"

    portfolio_id: uuid.UUID = Field(foreign_key="portfolios.id", nullable=False, index=True)
    title: str = Field(nullable=False)
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    video_url: Optional[str] = None
    sort_order: int = Field(nullable=False, default=0)
