# sinmungo/models/comment.py
from __future__ import annotations

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
    text,
)
from sqlalchemy.orm import relationship

from sinmungo.db.base import Base


class Comment(Base):
    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, autoincrement=True)

    issue_id = Column(
        Integer, ForeignKey("issues.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    # One level of nesting is rendered; deeper replies are stored but not shown.
    parent_id = Column(
        Integer, ForeignKey("comments.id", ondelete="CASCADE"), nullable=True, index=True
    )

    # type: 사실보완 | 법률의견 | 일반 | 운영자코멘트
    type = Column(String(20), nullable=False, server_default="일반")
    content = Column(Text, nullable=False)

    support_count = Column(Integer, nullable=False, server_default=text("0"))

    # Moderation flags
    is_pinned = Column(Boolean, nullable=False, server_default=text("0"))
    is_hidden = Column(Boolean, nullable=False, server_default=text("0"), index=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())

    author = relationship("User", lazy="joined")
    supports = relationship("CommentSupport", cascade="all, delete-orphan", passive_deletes=True)


Index("ix_comments_issue_parent", Comment.issue_id, Comment.parent_id)
