# sinmungo/models/issue.py
from __future__ import annotations

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
    func,
    text,
)
from sqlalchemy.orm import relationship

from sinmungo.db.base import Base


class Issue(Base):
    """
    A citizen-submitted case of an allegedly disproportionate law-enforcement action.

    Lifecycle:
    - created unpublished (is_published = false) and waits in the moderation queue,
    - approval publishes it and starts the status history at '접수됨',
    - rejection hard-deletes it (the reason survives in issue_rejections).
    """

    __tablename__ = "issues"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Owner (immutable)
    author_id = Column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )

    # Descriptive fields (immutable after submission)
    title = Column(String(200), nullable=False)
    summary = Column(String(500), nullable=False)
    enforcement_type = Column(String(30), nullable=False, index=True)
    field_category = Column(String(30), nullable=False, index=True)
    region = Column(String(20), nullable=False, index=True)
    occurred_at = Column(Date, nullable=False)

    # Narrative sections
    content_overview = Column(Text, nullable=False)
    content_problem = Column(Text, nullable=False)
    content_common_sense = Column(Text, nullable=False)
    content_comparison = Column(Text, nullable=True)
    content_status = Column(Text, nullable=True)
    request_types = Column(JSON, nullable=False, default=list)

    # Workflow
    # status: 접수됨 | 검증중 | 공론화진행 | 기관전달 | 종결
    status = Column(String(20), nullable=False, server_default="접수됨", index=True)
    # conclusion: 개선 | 기각 | 보류 (only meaningful once status is 종결)
    conclusion = Column(String(10), nullable=True)
    is_published = Column(Boolean, nullable=False, server_default=text("0"), index=True)
    published_at = Column(DateTime, nullable=True, index=True)

    # Derived counter, kept equal to the number of issue_supports rows
    support_count = Column(Integer, nullable=False, server_default=text("0"), index=True)

    # Audit
    created_at = Column(DateTime, nullable=False, server_default=func.now(), index=True)
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    # Relations (children go away with the issue)
    author = relationship("User", lazy="joined")
    agencies = relationship(
        "IssueAgency",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="IssueAgency.id",
    )
    history = relationship(
        "StatusHistoryEntry",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="StatusHistoryEntry.id",
    )
    attachments = relationship(
        "Attachment", cascade="all, delete-orphan", passive_deletes=True, back_populates="issue"
    )
    comments = relationship("Comment", cascade="all, delete-orphan", passive_deletes=True)
    supports = relationship("IssueSupport", cascade="all, delete-orphan", passive_deletes=True)
    reports = relationship(
        "Report", cascade="all, delete-orphan", passive_deletes=True, back_populates="issue"
    )

    def __repr__(self) -> str:
        return (
            f"<Issue id={self.id} status={self.status!r} published={self.is_published!r} "
            f"support_count={self.support_count!r}>"
        )


class IssueAgency(Base):
    """Agency involved in an issue (e.g. the police station or ministry that acted)."""

    __tablename__ = "issue_agencies"

    id = Column(Integer, primary_key=True, autoincrement=True)
    issue_id = Column(
        Integer, ForeignKey("issues.id", ondelete="CASCADE"), nullable=False, index=True
    )
    agency_type = Column(String(50), nullable=False)
    agency_name = Column(String(100), nullable=True)


# Public listing filters
Index("ix_issues_published_created", Issue.is_published, Issue.created_at)
Index("ix_issues_published_support", Issue.is_published, Issue.support_count)
