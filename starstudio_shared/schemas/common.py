from enum import Enum
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class Role(str, Enum):
    ADMIN = "ADMIN"
    STAR = "STAR"


class RequestStatus(str, Enum):
    OPEN = "OPEN"
    FULL = "FULL"
    CLOSED = "CLOSED"
    CANCELLED = "CANCELLED"


class AssignmentType(str, Enum):
    SINGLE = "SINGLE"
    MULTIPLE = "MULTIPLE"


class AssignmentStatus(str, Enum):
    PENDING_APPROVAL = "PENDING_APPROVAL"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    IN_PROGRESS = "IN_PROGRESS"
    SUBMITTED = "SUBMITTED"
    COMPLETED = "COMPLETED"


# Assignments that occupy a slot of the request's capacity.
ACTIVE_ASSIGNMENT_STATUSES: list[AssignmentStatus] = [
    AssignmentStatus.ACCEPTED,
    AssignmentStatus.IN_PROGRESS,
    AssignmentStatus.SUBMITTED,
    AssignmentStatus.COMPLETED,
]

TERMINAL_ASSIGNMENT_STATUSES: list[AssignmentStatus] = [
    AssignmentStatus.REJECTED,
    AssignmentStatus.COMPLETED,
]


class SubmissionStatus(str, Enum):
    PENDING = "PENDING"
    IN_REVIEW = "IN_REVIEW"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    REVISED = "REVISED"


class VideoStatus(str, Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"


class FeedbackType(str, Enum):
    SUBTITLE = "SUBTITLE"
    BGM = "BGM"
    CUT_EDIT = "CUT_EDIT"
    COLOR_GRADE = "COLOR_GRADE"
    GENERAL = "GENERAL"


class FeedbackPriority(str, Enum):
    LOW = "LOW"
    NORMAL = "NORMAL"
    HIGH = "HIGH"
    URGENT = "URGENT"


class FeedbackStatus(str, Enum):
    PENDING = "PENDING"
    RESOLVED = "RESOLVED"
    WONTFIX = "WONTFIX"


class SettlementStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"


class SettlementItemType(str, Enum):
    SUBMISSION = "SUBMISSION"
    AI_TOOL_SUPPORT = "AI_TOOL_SUPPORT"


class AnalysisStatus(str, Enum):
    PROCESSING = "PROCESSING"
    DONE = "DONE"
    ERROR = "ERROR"


class TaskKind(str, Enum):
    PROPAGATE_VIDEO_STATUS = "propagate_video_status"
    RUN_AI_ANALYSIS = "run_ai_analysis"


class TaskState(str, Enum):
    QUEUED = "QUEUED"
    RUNNING = "RUNNING"
    DONE = "DONE"
    ERROR = "ERROR"


class CamelModel(BaseModel):
    """Base for API payloads: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class DataResponse(CamelModel, Generic[T]):
    data: T


class Page(CamelModel, Generic[T]):
    data: List[T]
    total: int
    page: int
    page_size: int
    total_pages: int


class PageParams(BaseModel):
    """Pagination input, clamped rather than rejected."""

    page: int = 1
    page_size: int = 20

    @classmethod
    def clamp(cls, page: Optional[int], page_size: Optional[int]) -> "PageParams":
        page = 1 if page is None else max(1, page)
        page_size = 20 if page_size is None else min(50, max(1, page_size))
        return cls(page=page, page_size=page_size)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


def total_pages(total: int, page_size: int) -> int:
    return (total + page_size - 1) // page_size if total else 0
