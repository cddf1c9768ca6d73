# sinmungo/models/attachment.py
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


class Attachment(Base):
    """
    Evidentiary file bound to an issue.

    Hidden from non-admin readers until an admin approves it. Approval is one-way:
    approved attachments can no longer be deleted by their uploader.
    """

    __tablename__ = "attachments"

    id = Column(Integer, primary_key=True, index=True)

    issue_id = Column(
        Integer, ForeignKey("issues.id", ondelete="CASCADE"), nullable=False, index=True
    )
    uploaded_by = Column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )

    # File/meta
    file_type = Column(String(20), nullable=False)  # 판결문 | 처분서 | 공문 | 녹취요약 | 언론기사
    original_name = Column(String(255), nullable=False)
    storage_path = Column(String(512), nullable=False, unique=True)  # key inside the blob store
    content_type = Column(String(120), nullable=False)
    size_bytes = Column(Integer, nullable=False)

    # Signed, time-limited reference handed to readers
    file_url = Column(Text, nullable=False)
    url_expires_at = Column(DateTime, nullable=False, index=True)

    is_approved = Column(Boolean, nullable=False, server_default=text("0"), index=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now(), index=True)

    issue = relationship("Issue", back_populates="attachments")


Index("ix_attachments_issue_approved", Attachment.issue_id, Attachment.is_approved)
