# sinmungo/models/report.py
from __future__ import annotations

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, func
from sqlalchemy.orm import relationship

from sinmungo.db.base import Base


class Report(Base):
    """
    A citizen's report that an issue breaks the community rules.
    Opens as '검토중'; an admin closes it as '처리완료' or '기각' (terminal).
    """

    __tablename__ = "reports"

    id = Column(Integer, primary_key=True, autoincrement=True)

    issue_id = Column(
        Integer, ForeignKey("issues.id", ondelete="CASCADE"), nullable=False, index=True
    )
    reporter_id = Column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )

    reason = Column(String(500), nullable=False)
    status = Column(String(10), nullable=False, server_default="검토중", index=True)

    resolved_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    resolved_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())

    issue = relationship("Issue", lazy="joined", back_populates="reports")
    reporter = relationship("User", foreign_keys=[reporter_id], lazy="joined")


Index("ix_reports_status_created", Report.status, Report.created_at)
