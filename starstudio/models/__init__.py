# SQLModel definitions, imported here to ensure metadata is populated for Alembic.
from .base import UUIDMixin, TimestampMixin  # noqa: F401
from .grade import PricingGrade  # noqa: F401
from .user import User  # noqa: F401
from .request import ProjectRequest  # noqa: F401
from .assignment import ProjectAssignment  # noqa: F401
from .submission import Submission, Video  # noqa: F401
from .feedback import Feedback  # noqa: F401
from .settlement import Settlement, SettlementItem, SystemSetting  # noqa: F401
from .portfolio import Portfolio, PortfolioItem  # noqa: F401
from .background import AiAnalysis, BackgroundTask  # noqa: F401
