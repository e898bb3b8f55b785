"""Initial schema: users, grades, requests, assignments, submissions, settlements.

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

MONEY = sa.Numeric(12, 2)
UUID = postgresql.UUID(as_uuid=True)
TS = sa.DateTime(timezone=True)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _id() -> sa.Column:
    return sa.Column("id", UUID, primary_key=True)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", TS, nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", TS, nullable=False, server_default=sa.func.now()),
    ]


SEED_SETTINGS = [
    ("ai_tool_support_fee", "0", "AI tool support fee per settlement"),
    ("tax_rate", "3.3", "Withholding tax rate (%)"),
    ("company_name", "StarStudio", "Company name on statements"),
]


def upgrade() -> None:
    op.create_table(
        "pricing_grades",
        _id(),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("base_rate", MONEY, nullable=False),
        sa.Column("color", sa.String(), nullable=False, server_default="#64748b"),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_index("ix_pricing_grades_sort_order", "pricing_grades", ["sort_order"])

    op.create_table(
        "users",
        _id(),
        sa.Column("auth_id", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("role", sa.String(), nullable=False, server_default="STAR"),
        sa.Column("is_approved", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("base_rate", MONEY, nullable=True),
        sa.Column("grade_id", UUID, sa.ForeignKey("pricing_grades.id"), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("role IN ('ADMIN', 'STAR')", name="ck_users_role"),
    )
    op.create_index("ix_users_auth_id", "users", ["auth_id"], unique=True)
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_grade_id", "users", ["grade_id"])

    op.create_table(
        "project_requests",
        _id(),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("categories", sa.JSON(), nullable=False),
        sa.Column("deadline", TS, nullable=False),
        sa.Column("assignment_type", sa.String(), nullable=False, server_default="SINGLE"),
        sa.Column("max_assignees", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("estimated_budget", MONEY, nullable=True),
        sa.Column("requirements", sa.Text(), nullable=True),
        sa.Column("reference_urls", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="OPEN"),
        sa.Column("created_by_id", UUID, sa.ForeignKey("users.id"), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("max_assignees >= 1", name="max_assignees_positive"),
    )
    op.create_index("ix_project_requests_status", "project_requests", ["status"])

    op.create_table(
        "project_assignments",
        _id(),
        sa.Column("star_id", UUID, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("request_id", UUID, sa.ForeignKey("project_requests.id"), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="PENDING_APPROVAL"),
        sa.Column("rejection_reason", sa.String(500), nullable=True),
        sa.Column("reviewed_by_id", UUID, sa.ForeignKey("users.id"), nullable=True),
        sa.Column("reviewed_at", TS, nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("star_id", "request_id", name="uq_assignment_star_request"),
    )
    op.create_index("ix_project_assignments_star_id", "project_assignments", ["star_id"])
    op.create_index("ix_project_assignments_request_id", "project_assignments", ["request_id"])
    op.create_index("ix_project_assignments_status", "project_assignments", ["status"])

    op.create_table(
        "videos",
        _id(),
        sa.Column("owner_id", UUID, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("stream_uid", sa.String(), nullable=True),
        sa.Column("thumbnail_url", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="DRAFT"),
        sa.Column("custom_rate", MONEY, nullable=True),
        sa.Column("duration_seconds", sa.Float(), nullable=True),
        sa.Column("width", sa.Integer(), nullable=True),
        sa.Column("height", sa.Integer(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_videos_owner_id", "videos", ["owner_id"])
    op.create_index("ix_videos_stream_uid", "videos", ["stream_uid"])

    op.create_table(
        "submissions",
        _id(),
        sa.Column("assignment_id", UUID, sa.ForeignKey("project_assignments.id"), nullable=True),
        sa.Column("star_id", UUID, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("video_id", UUID, sa.ForeignKey("videos.id"), nullable=True),
        sa.Column("version", sa.String(), nullable=False, server_default="1.0"),
        sa.Column("version_slot", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("version_title", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("stream_uid", sa.String(), nullable=True),
        sa.Column("thumbnail_url", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="PENDING"),
        sa.Column("reviewer_id", UUID, sa.ForeignKey("users.id"), nullable=True),
        sa.Column("review_reason", sa.Text(), nullable=True),
        sa.Column("approved_at", TS, nullable=True),
        sa.Column("reviewed_at", TS, nullable=True),
        sa.Column("duration_seconds", sa.Float(), nullable=True),
        sa.Column("width", sa.Integer(), nullable=True),
        sa.Column("height", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("assignment_id", "version_slot", name="uq_submission_slot"),
        sa.CheckConstraint("version_slot BETWEEN 0 AND 5", name="ck_submission_slot_range"),
    )
    op.create_index("ix_submissions_assignment_id", "submissions", ["assignment_id"])
    op.create_index("ix_submissions_star_id", "submissions", ["star_id"])
    op.create_index("ix_submissions_status", "submissions", ["status"])
    op.create_index("ix_submissions_approved_at", "submissions", ["approved_at"])
    op.create_index("ix_submissions_stream_uid", "submissions", ["stream_uid"])

    op.create_table(
        "feedback",
        _id(),
        sa.Column("submission_id", UUID, sa.ForeignKey("submissions.id", ondelete="CASCADE"), nullable=False),
        sa.Column("author_id", UUID, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("type", sa.String(), nullable=False, server_default="GENERAL"),
        sa.Column("priority", sa.String(), nullable=False, server_default="NORMAL"),
        sa.Column("status", sa.String(), nullable=False, server_default="PENDING"),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("start_time", sa.Float(), nullable=True),
        sa.Column("end_time", sa.Float(), nullable=True),
        sa.Column("annotation", sa.JSON(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "end_time IS NULL OR start_time IS NULL OR end_time >= start_time",
            name="ck_feedback_timecode",
        ),
    )
    op.create_index("ix_feedback_submission_id", "feedback", ["submission_id"])

    op.create_table(
        "settlements",
        _id(),
        sa.Column("star_id", UUID, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="PENDING"),
        sa.Column("total_amount", MONEY, nullable=False, server_default="0"),
        sa.Column("payment_date", TS, nullable=True),
        sa.Column("note", sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("star_id", "year", "month", name="uq_settlement_star_period"),
    )
    op.create_index("ix_settlements_star_id", "settlements", ["star_id"])

    op.create_table(
        "settlement_items",
        _id(),
        sa.Column("settlement_id", UUID, sa.ForeignKey("settlements.id", ondelete="CASCADE"), nullable=False),
        sa.Column("submission_id", UUID, sa.ForeignKey("submissions.id"), nullable=True, unique=True),
        sa.Column("star_id", UUID, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("item_type", sa.String(), nullable=False, server_default="SUBMISSION"),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("base_amount", MONEY, nullable=False),
        sa.Column("adjusted_amount", MONEY, nullable=True),
        sa.Column("final_amount", MONEY, nullable=False),
        *_timestamps(),
        sa.CheckConstraint("final_amount >= 0", name="ck_settlement_item_final_nonnegative"),
    )
    op.create_index("ix_settlement_items_settlement_id", "settlement_items", ["settlement_id"])

    op.create_table(
        "system_settings",
        sa.Column("key", sa.String(), primary_key=True),
        sa.Column("value", sa.String(), nullable=False),
        sa.Column("label", sa.String(), nullable=True),
    )
    settings_table = sa.table(
        "system_settings",
        sa.column("key", sa.String()),
        sa.column("value", sa.String()),
        sa.column("label", sa.String()),
    )
    op.bulk_insert(
        settings_table,
        [{"key": k, "value": v, "label": label} for k, v, label in SEED_SETTINGS],
    )

    op.create_table(
        "portfolios",
        _id(),
        sa.Column("user_id", UUID, sa.ForeignKey("users.id"), nullable=False, unique=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("showreel", sa.String(), nullable=True),
        sa.Column("website", sa.String(), nullable=True),
        sa.Column("social_links", sa.JSON(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "portfolio_items",
        _id(),
        sa.Column("portfolio_id", UUID, sa.ForeignKey("portfolios.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("thumbnail_url", sa.String(), nullable=True),
        sa.Column("video_url", sa.String(), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_index("ix_portfolio_items_portfolio_id", "portfolio_items", ["portfolio_id"])

    op.create_table(
        "ai_analyses",
        _id(),
        sa.Column("submission_id", UUID, sa.ForeignKey("submissions.id", ondelete="CASCADE"),
                  nullable=False, unique=True),
        sa.Column("status", sa.String(), nullable=False, server_default="PROCESSING"),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("scores", sa.JSON(), nullable=True),
        sa.Column("todo_items", sa.JSON(), nullable=False),
        sa.Column("insights", sa.JSON(), nullable=False),
        sa.Column("model", sa.String(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "background_tasks",
        _id(),
        sa.Column("kind", sa.String(), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="QUEUED"),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_error", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_background_tasks_kind", "background_tasks", ["kind"])
    op.create_index("ix_background_tasks_status", "background_tasks", ["status"])


def downgrade() -> None:
    for table in (
        "background_tasks",
        "ai_analyses",
        "portfolio_items",
        "portfolios",
        "system_settings",
        "settlement_items",
        "settlements",
        "feedback",
        "submissions",
        "videos",
        "project_assignments",
        "project_requests",
        "users",
        "pricing_grades",
    ):
        op.drop_table(table)
