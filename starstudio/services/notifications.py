"""Badge counts for the navigation bar."""

from __future__ import annotations

from starstudio.core.auth import Principal
from starstudio.core.uow import UnitOfWork
from starstudio_shared.schemas.common import SettlementStatus, SubmissionStatus
from starstudio_shared.schemas.notifications import BadgeCounts


async def badge(uow: UnitOfWork, principal: Principal) -> BadgeCounts:
    async with uow:
        if principal.is_admin:
            return BadgeCounts(
                unreviewed_submissions=await uow.submissions.count_by_status(SubmissionStatus.PENDING.value),
                pending_settlements=await uow.settlements.count_by_status(SettlementStatus.PENDING.value),
            )
        return BadgeCounts(unread_feedbacks=await uow.feedback.count_pending_for_star(principal.user_id))
