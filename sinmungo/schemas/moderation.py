# sinmungo/schemas/moderation.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, constr


class IssueReject(BaseModel):
    reason: constr(strip_whitespace=True, min_length=1, max_length=2000)


class RejectionOut(BaseModel):
    id: int
    issue_id: int
    title: str
    author_id: Optional[int] = None
    reason: str
    rejected_by: Optional[int] = None
    rejected_at: datetime

    class Config:
        from_attributes = True


class DashboardStats(BaseModel):
    total_issues: int
    pending_approval: int
    pending_attachments: int
    pending_reports: int
    status_counts: Dict[str, int]
    pending_by_field_category: Dict[str, int]


class AuditEntryOut(BaseModel):
    id: int
    user_id: Optional[int] = None
    action: str
    entity_type: Optional[str] = None
    entity_id: Optional[int] = None
    meta: Dict[str, Any] = {}
    ip_address: Optional[str] = None
    created_at: datetime
