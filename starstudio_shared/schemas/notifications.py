"""Navigation badge counts."""

from __future__ import annotations

from typing import Optional

from .common import CamelModel


class BadgeCounts(CamelModel):
    # Stars get unread_feedbacks; admins get the two review queues.
    unread_feedbacks: Optional[int] = None
    unreviewed_submissions: Optional[int] = None
    pending_settlements: Optional[int] = None
