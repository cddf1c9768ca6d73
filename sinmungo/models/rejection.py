# sinmungo/models/rejection.py
from __future__ import annotations

from sqlalchemy import Column, DateTime, Integer, String, Text, func

from sinmungo.db.base import Base


class IssueRejection(Base):
    """
    Append-only record of a rejected submission.

    Written in the same transaction that hard-deletes the issue, so issue_id is a
    plain integer (no FK): the row must outlive the issue it describes.
    """

    __tablename__ = "issue_rejections"

    id = Column(Integer, primary_key=True, autoincrement=True)

    issue_id = Column(Integer, nullable=False, index=True)
    title = Column(String(200), nullable=False)
    author_id = Column(Integer, nullable=True, index=True)

    reason = Column(Text, nullable=False)
    rejected_by = Column(Integer, nullable=True)
    rejected_at = Column(DateTime, nullable=False, server_default=func.now())
