# sinmungo/schemas/report.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, constr

from sinmungo.schemas.common import ReportOutcome, ReportStatus


class ReportCreate(BaseModel):
    reason: constr(strip_whitespace=True, min_length=1, max_length=500)


class ReportOut(BaseModel):
    id: int
    issue_id: int
    reporter_id: Optional[int] = None
    reason: str
    status: ReportStatus
    resolved_at: Optional[datetime] = None
    created_at: datetime
    issue_title: Optional[str] = None
    reporter_nickname: Optional[str] = None

    class Config:
        from_attributes = True


class ReportResolve(BaseModel):
    outcome: ReportOutcome
