"""
Unit of work: one database transaction plus the repositories bound to it.

    async with UnitOfWork(session_factory) as uow:
        request = await uow.requests.get_for_update(request_id)
        ...

Leaving the block normally commits; any exception rolls back and propagates.
"""

from __future__ import annotations

from sqlalchemy.orm import sessionmaker

from starstudio.repositories.background import AnalysisRepository, TaskRepository
from starstudio.repositories.portfolios import PortfolioRepository
from starstudio.repositories.settlements import SettingRepository, SettlementRepository
from starstudio.repositories.users import GradeRepository, UserRepository
from starstudio.repositories.workflow import (
    AssignmentRepository,
    FeedbackRepository,
    RequestRepository,
    SubmissionRepository,
    VideoRepository,
)


class UnitOfWork:
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory
        self.session = None

    async def __aenter__(self) -> "UnitOfWork":
        self.session = self._session_factory()
        self.users = UserRepository(self.session)
        self.grades = GradeRepository(self.session)
        self.requests = RequestRepository(self.session)
        self.assignments = AssignmentRepository(self.session)
        self.submissions = SubmissionRepository(self.session)
        self.videos = VideoRepository(self.session)
        self.feedback = FeedbackRepository(self.session)
        self.settlements = SettlementRepository(self.session)
        self.settings = SettingRepository(self.session)
        self.portfolios = PortfolioRepository(self.session)
        self.tasks = TaskRepository(self.session)
        self.analyses = AnalysisRepository(self.session)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        try:
            if exc_type is None:
                await self.session.commit()
            else:
                await self.session.rollback()
        finally:
            await self.session.close()
            self.session = None
