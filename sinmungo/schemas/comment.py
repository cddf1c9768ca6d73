# sinmungo/schemas/comment.py
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from sinmungo.schemas.common import CommentType


class CommentCreate(BaseModel):
    # Trimming and the 1000-char limit are checked by the service so the message
    # stays the same for HTTP and internal callers.
    content: str
    type: CommentType = "일반"
    parent_id: Optional[int] = None


class CommentOut(BaseModel):
    id: int
    issue_id: int
    user_id: Optional[int] = None
    parent_id: Optional[int] = None
    type: CommentType
    content: str
    support_count: int
    is_pinned: bool
    is_hidden: bool
    author_nickname: Optional[str] = None
    created_at: datetime
    replies: List["CommentOut"] = Field(default_factory=list)

    class Config:
        from_attributes = True


CommentOut.model_rebuild()


class CommentPin(BaseModel):
    pinned: bool = True
