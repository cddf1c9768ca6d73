# sinmungo/schemas/status_history.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, constr, model_validator

from sinmungo.schemas.common import IssueConclusion, IssueStatus


class StatusHistoryOut(BaseModel):
    id: int
    issue_id: int
    from_status: Optional[IssueStatus] = None
    to_status: IssueStatus
    note: Optional[str] = None
    changed_at: datetime

    class Config:
        from_attributes = True


class StatusChange(BaseModel):
    """
    Admin request to move an issue to another status.
    A conclusion can only accompany the terminal status '종결'.
    """
    status: IssueStatus
    note: Optional[constr(strip_whitespace=True, max_length=1000)] = None
    conclusion: Optional[IssueConclusion] = None

    @model_validator(mode="after")
    def _conclusion_needs_terminal(self):
        if self.conclusion is not None and self.status != "종결":
            raise ValueError("conclusion is only allowed with status '종결'")
        return self
