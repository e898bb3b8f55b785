"""
API v1 Router

Every endpoint answers with ``{"data": ...}`` on success (or the paginated
``{data, total, page, pageSize, totalPages}``) and ``{"error": {...}}`` on failure.
"""

from fastapi import APIRouter
from . import (
    assignments,
    auth,
    feedback,
    grades,
    notifications,
    portfolios,
    requests,
    settlements,
    submissions,
    users,
    videos,
)

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
router.include_router(users.router, prefix="/users", tags=["Users"])
router.include_router(users.admin_router, prefix="/admin", tags=["Admin"])
router.include_router(grades.router, prefix="/admin/grades", tags=["Pricing Grades"])
router.include_router(settlements.settings_router, prefix="/admin/settings", tags=["Settings"])
router.include_router(requests.router, prefix="/requests", tags=["Requests"])
router.include_router(assignments.router, prefix="/assignments", tags=["Assignments"])
router.include_router(submissions.router, prefix="/submissions", tags=["Submissions"])
router.include_router(feedback.router, prefix="/feedback", tags=["Feedback"])
router.include_router(settlements.router, prefix="/settlements", tags=["Settlements"])
router.include_router(portfolios.router, prefix="/portfolios", tags=["Portfolios"])
router.include_router(videos.router, prefix="/videos", tags=["Videos"])
router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])


@router.get("/", tags=["API"])
async def api_root():
    """API root: returns version and available endpoints."""
    return {
        "api": "v1",
        "version": "0.1.0",
        "endpoints": [
            "/auth/callback",
            "/users/me",
            "/admin/users",
            "/admin/grades",
            "/requests",
            "/requests/categories",
            "/assignments",
            "/submissions",
            "/feedback",
            "/settlements",
            "/portfolios",
            "/videos",
            "/notifications/badge",
        ],
    }
