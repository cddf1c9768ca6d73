# sinmungo/models/status_history.py
from __future__ import annotations

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, func

from sinmungo.db.base import Base


class StatusHistoryEntry(Base):
    """
    Append-only ledger of status transitions applied to an issue.

    Rows are never updated. For one issue, ordered by (changed_at, id), the first
    entry has from_status NULL and every later from_status equals the previous
    entry's to_status.
    """

    __tablename__ = "status_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    issue_id = Column(
        Integer, ForeignKey("issues.id", ondelete="CASCADE"), nullable=False, index=True
    )

    from_status = Column(String(20), nullable=True)
    to_status = Column(String(20), nullable=False)
    note = Column(String(1000), nullable=True)

    # Who made the change (NULL for system actions)
    changed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    changed_at = Column(DateTime, nullable=False, server_default=func.now())

    def __repr__(self) -> str:
        return (
            f"<StatusHistoryEntry issue={self.issue_id} {self.from_status!r} -> "
            f"{self.to_status!r} at={self.changed_at!r}>"
        )


Index("ix_status_history_issue_changed", StatusHistoryEntry.issue_id, StatusHistoryEntry.changed_at)
