"""Project request schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import AnyHttpUrl, Field, field_validator

from .common import AssignmentType, CamelModel, RequestStatus


def _clean_categories(value: Optional[List[str]]) -> Optional[List[str]]:
    if value is None:
        return value
    cleaned = [c.strip() for c in value]
    if any(not c for c in cleaned):
        raise ValueError("categories must not be blank")
    return cleaned


class RequestCreate(CamelModel):
    title: str = Field(min_length=2, max_length=200)
    categories: List[str] = Field(min_length=1)
    deadline: datetime
    assignment_type: AssignmentType = AssignmentType.SINGLE
    max_assignees: int = Field(default=1, ge=1, le=10)
    estimated_budget: Optional[Decimal] = Field(default=None, ge=0)
    requirements: Optional[str] = None
    reference_urls: List[AnyHttpUrl] = Field(default_factory=list)

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("title must be at least 2 characters")
        return v

    @field_validator("categories")
    @classmethod
    def strip_categories(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return _clean_categories(v)


class RequestUpdate(CamelModel):
    title: Optional[str] = Field(default=None, min_length=2, max_length=200)
    categories: Optional[List[str]] = Field(default=None, min_length=1)
    deadline: Optional[datetime] = None
    assignment_type: Optional[AssignmentType] = None
    max_assignees: Optional[int] = Field(default=None, ge=1, le=10)
    estimated_budget: Optional[Decimal] = Field(default=None, ge=0)
    requirements: Optional[str] = None
    reference_urls: Optional[List[AnyHttpUrl]] = None
    status: Optional[RequestStatus] = None

    @field_validator("categories")
    @classmethod
    def strip_categories(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return _clean_categories(v)


class RequestRead(CamelModel):
    id: UUID
    title: str
    categories: List[str]
    deadline: datetime
    assignment_type: AssignmentType
    max_assignees: int
    estimated_budget: Optional[Decimal] = None
    requirements: Optional[str] = None
    reference_urls: List[str] = Field(default_factory=list)
    status: RequestStatus
    created_by_id: UUID
    current_assignees: int = 0
    created_at: datetime
    updated_at: datetime


class CategoryRead(CamelModel):
    name: str
    request_count: int
