"""initial schema (users, issues, history, attachments, comments, supports, reports, rejections, audit)

Revision ID: 7c1e2a9d4b10
Revises:
Create Date: 2026-10-17 09:00:00
"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "7c1e2a9d4b10"
down_revision = None
branch_labels = None
depends_on = None

NOW = sa.text("CURRENT_TIMESTAMP")
FALSE = sa.text("0")


def _has_table(name: str) -> bool:
    return name in sa.inspect(op.get_bind()).get_table_names()


def _index(table: str, *columns: str, name: str | None = None, unique: bool = False) -> None:
    op.create_index(name or f"ix_{table}_{columns[0]}", table, list(columns), unique=unique)


def upgrade():
    if not _has_table("users"):
        op.create_table(
            "users",
            sa.Column("id", sa.Integer, primary_key=True),
            sa.Column("email", sa.String(length=255), nullable=False),
            sa.Column("hashed_password", sa.String, nullable=False),
            sa.Column("nickname", sa.String(length=50), nullable=False),
            sa.Column("role", sa.String(length=20), nullable=False, server_default="citizen"),
            sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("1")),
            sa.Column("failed_login_attempts", sa.Integer, nullable=False, server_default=FALSE),
            sa.Column("locked_until", sa.DateTime, nullable=True),
            sa.Column("last_login_at", sa.DateTime, nullable=True),
            sa.Column("created_at", sa.DateTime, nullable=False, server_default=NOW),
            sa.Column("updated_at", sa.DateTime, nullable=False, server_default=NOW),
        )
        _index("users", "email", unique=True)
        _index("users", "role")
        _index("users", "locked_until")

    if not _has_table("issues"):
        op.create_table(
            "issues",
            sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
            sa.Column("author_id", sa.Integer, nullable=True),
            sa.Column("title", sa.String(length=200), nullable=False),
            sa.Column("summary", sa.String(length=500), nullable=False),
            sa.Column("enforcement_type", sa.String(length=30), nullable=False),
            sa.Column("field_category", sa.String(length=30), nullable=False),
            sa.Column("region", sa.String(length=20), nullable=False),
            sa.Column("occurred_at", sa.Date, nullable=False),
            sa.Column("content_overview", sa.Text, nullable=False),
            sa.Column("content_problem", sa.Text, nullable=False),
            sa.Column("content_common_sense", sa.Text, nullable=False),
            sa.Column("content_comparison", sa.Text, nullable=True),
            sa.Column("content_status", sa.Text, nullable=True),
            sa.Column("request_types", sa.JSON, nullable=False),
            sa.Column("status", sa.String(length=20), nullable=False, server_default="접수됨"),
            sa.Column("conclusion", sa.String(length=10), nullable=True),
            sa.Column("is_published", sa.Boolean, nullable=False, server_default=FALSE),
            sa.Column("published_at", sa.DateTime, nullable=True),
            sa.Column("support_count", sa.Integer, nullable=False, server_default=FALSE),
            sa.Column("created_at", sa.DateTime, nullable=False, server_default=NOW),
            sa.Column("updated_at", sa.DateTime, nullable=False, server_default=NOW),
            sa.ForeignKeyConstraint(["author_id"], ["users.id"], ondelete="SET NULL"),
        )
        for col in (
            "author_id", "enforcement_type", "field_category", "region", "status",
            "is_published", "published_at", "support_count", "created_at",
        ):
            _index("issues", col)
        _index("issues", "is_published", "created_at", name="ix_issues_published_created")
        _index("issues", "is_published", "support_count", name="ix_issues_published_support")

    if not _has_table("issue_agencies"):
        op.create_table(
            "issue_agencies",
            sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
            sa.Column("issue_id", sa.Integer, nullable=False),
            sa.Column("agency_type", sa.String(length=50), nullable=False),
            sa.Column("agency_name", sa.String(length=100), nullable=True),
            sa.ForeignKeyConstraint(["issue_id"], ["issues.id"], ondelete="CASCADE"),
        )
        _index("issue_agencies", "issue_id")

    if not _has_table("status_history"):
        op.create_table(
            "status_history",
            sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
            sa.Column("issue_id", sa.Integer, nullable=False),
            sa.Column("from_status", sa.String(length=20), nullable=True),
            sa.Column("to_status", sa.String(length=20), nullable=False),
            sa.Column("note", sa.String(length=1000), nullable=True),
            sa.Column("changed_by", sa.Integer, nullable=True),
            sa.Column("changed_at", sa.DateTime, nullable=False, server_default=NOW),
            sa.ForeignKeyConstraint(["issue_id"], ["issues.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["changed_by"], ["users.id"], ondelete="SET NULL"),
        )
        _index("status_history", "issue_id")
        _index("status_history", "issue_id", "changed_at", name="ix_status_history_issue_changed")

    if not _has_table("attachments"):
        op.create_table(
            "attachments",
            sa.Column("id", sa.Integer, primary_key=True),
            sa.Column("issue_id", sa.Integer, nullable=False),
            sa.Column("uploaded_by", sa.Integer, nullable=True),
            sa.Column("file_type", sa.String(length=20), nullable=False),
            sa.Column("original_name", sa.String(length=255), nullable=False),
            sa.Column("storage_path", sa.String(length=512), nullable=False, unique=True),
            sa.Column("content_type", sa.String(length=120), nullable=False),
            sa.Column("size_bytes", sa.Integer, nullable=False),
            sa.Column("file_url", sa.Text, nullable=False),
            sa.Column("url_expires_at", sa.DateTime, nullable=False),
            sa.Column("is_approved", sa.Boolean, nullable=False, server_default=FALSE),
            sa.Column("created_at", sa.DateTime, nullable=False, server_default=NOW),
            sa.ForeignKeyConstraint(["issue_id"], ["issues.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["uploaded_by"], ["users.id"], ondelete="SET NULL"),
        )
        for col in ("id", "issue_id", "uploaded_by", "url_expires_at", "is_approved", "created_at"):
            _index("attachments", col)
        _index("attachments", "issue_id", "is_approved", name="ix_attachments_issue_approved")

    if not _has_table("comments"):
        op.create_table(
            "comments",
            sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
            sa.Column("issue_id", sa.Integer, nullable=False),
            sa.Column("user_id", sa.Integer, nullable=True),
            sa.Column("parent_id", sa.Integer, nullable=True),
            sa.Column("type", sa.String(length=20), nullable=False, server_default="일반"),
            sa.Column("content", sa.Text, nullable=False),
            sa.Column("support_count", sa.Integer, nullable=False, server_default=FALSE),
            sa.Column("is_pinned", sa.Boolean, nullable=False, server_default=FALSE),
            sa.Column("is_hidden", sa.Boolean, nullable=False, server_default=FALSE),
            sa.Column("created_at", sa.DateTime, nullable=False, server_default=NOW),
            sa.ForeignKeyConstraint(["issue_id"], ["issues.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL"),
            sa.ForeignKeyConstraint(["parent_id"], ["comments.id"], ondelete="CASCADE"),
        )
        for col in ("issue_id", "user_id", "parent_id", "is_hidden"):
            _index("comments", col)
        _index("comments", "issue_id", "parent_id", name="ix_comments_issue_parent")

    if not _has_table("issue_supports"):
        op.create_table(
            "issue_supports",
            sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
            sa.Column("issue_id", sa.Integer, nullable=False),
            sa.Column("user_id", sa.Integer, nullable=False),
            sa.Column("created_at", sa.DateTime, nullable=False, server_default=NOW),
            sa.ForeignKeyConstraint(["issue_id"], ["issues.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
            sa.UniqueConstraint("issue_id", "user_id", name="uq_issue_support_once"),
        )
        for col in ("issue_id", "user_id", "created_at"):
            _index("issue_supports", col)

    if not _has_table("comment_supports"):
        op.create_table(
            "comment_supports",
            sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
            sa.Column("comment_id", sa.Integer, nullable=False),
            sa.Column("user_id", sa.Integer, nullable=False),
            sa.Column("created_at", sa.DateTime, nullable=False, server_default=NOW),
            sa.ForeignKeyConstraint(["comment_id"], ["comments.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
            sa.UniqueConstraint("comment_id", "user_id", name="uq_comment_support_once"),
        )
        for col in ("comment_id", "user_id"):
            _index("comment_supports", col)

    if not _has_table("reports"):
        op.create_table(
            "reports",
            sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
            sa.Column("issue_id", sa.Integer, nullable=False),
            sa.Column("reporter_id", sa.Integer, nullable=True),
            sa.Column("reason", sa.String(length=500), nullable=False),
            sa.Column("status", sa.String(length=10), nullable=False, server_default="검토중"),
            sa.Column("resolved_by", sa.Integer, nullable=True),
            sa.Column("resolved_at", sa.DateTime, nullable=True),
            sa.Column("created_at", sa.DateTime, nullable=False, server_default=NOW),
            sa.ForeignKeyConstraint(["issue_id"], ["issues.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["reporter_id"], ["users.id"], ondelete="SET NULL"),
            sa.ForeignKeyConstraint(["resolved_by"], ["users.id"], ondelete="SET NULL"),
        )
        for col in ("issue_id", "reporter_id", "status"):
            _index("reports", col)
        _index("reports", "status", "created_at", name="ix_reports_status_created")

    if not _has_table("issue_rejections"):
        # No FK to issues: the issue row is gone once rejected
        op.create_table(
            "issue_rejections",
            sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
            sa.Column("issue_id", sa.Integer, nullable=False),
            sa.Column("title", sa.String(length=200), nullable=False),
            sa.Column("author_id", sa.Integer, nullable=True),
            sa.Column("reason", sa.Text, nullable=False),
            sa.Column("rejected_by", sa.Integer, nullable=True),
            sa.Column("rejected_at", sa.DateTime, nullable=False, server_default=NOW),
        )
        _index("issue_rejections", "issue_id")
        _index("issue_rejections", "author_id")

    if not _has_table("audit_logs"):
        op.create_table(
            "audit_logs",
            sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
            sa.Column("user_id", sa.Integer, nullable=True),
            sa.Column("action", sa.String(length=64), nullable=False),
            sa.Column("entity_type", sa.String(length=32), nullable=True),
            sa.Column("entity_id", sa.Integer, nullable=True),
            sa.Column("meta", sa.Text, nullable=True),
            sa.Column("ip_address", sa.String(length=64), nullable=True),
            sa.Column("created_at", sa.DateTime, nullable=False, server_default=NOW),
        )
        _index("audit_logs", "user_id")
        _index("audit_logs", "action")


def downgrade():
    for table in (
        "audit_logs",
        "issue_rejections",
        "reports",
        "comment_supports",
        "issue_supports",
        "comments",
        "attachments",
        "status_history",
        "issue_agencies",
        "issues",
        "users",
    ):
        if _has_table(table):
            op.drop_table(table)
