# sinmungo/schemas/attachment.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from sinmungo.schemas.common import AttachmentFileType


class AttachmentOut(BaseModel):
    id: int
    issue_id: int
    file_type: AttachmentFileType
    original_name: str
    content_type: str
    size_bytes: int
    file_url: str
    url_expires_at: datetime
    is_approved: bool
    created_at: datetime

    class Config:
        from_attributes = True


class PendingAttachmentOut(AttachmentOut):
    issue_title: Optional[str] = None
