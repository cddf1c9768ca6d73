# sinmungo/models/support.py
from __future__ import annotations

from sqlalchemy import Column, DateTime, ForeignKey, Integer, UniqueConstraint, func

from sinmungo.db.base import Base


class IssueSupport(Base):
    """One active support ("upvote") of a user on an issue."""

    __tablename__ = "issue_supports"
    __table_args__ = (UniqueConstraint("issue_id", "user_id", name="uq_issue_support_once"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    issue_id = Column(
        Integer, ForeignKey("issues.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at = Column(DateTime, nullable=False, server_default=func.now(), index=True)


class CommentSupport(Base):
    """One active support of a user on a comment."""

    __tablename__ = "comment_supports"
    __table_args__ = (UniqueConstraint("comment_id", "user_id", name="uq_comment_support_once"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    comment_id = Column(
        Integer, ForeignKey("comments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at = Column(DateTime, nullable=False, server_default=func.now())
