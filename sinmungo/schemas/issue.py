# sinmungo/schemas/issue.py
from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field, constr

from sinmungo.schemas.attachment import AttachmentOut
from sinmungo.schemas.comment import CommentOut
from sinmungo.schemas.common import (
    EnforcementType,
    FieldCategory,
    IssueConclusion,
    IssueStatus,
    Region,
    RequestType,
)
from sinmungo.schemas.status_history import StatusHistoryOut


class AgencyIn(BaseModel):
    agency_type: constr(strip_whitespace=True, min_length=1, max_length=50)
    agency_name: Optional[constr(strip_whitespace=True, max_length=100)] = None


class AgencyOut(AgencyIn):
    class Config:
        from_attributes = True


class IssueBase(BaseModel):
    """
    Descriptive part of an issue, fixed at submission.
    """
    title: constr(strip_whitespace=True, min_length=5, max_length=200)
    summary: constr(strip_whitespace=True, min_length=10, max_length=500)
    enforcement_type: EnforcementType
    field_category: FieldCategory
    region: Region
    occurred_at: date = Field(..., description="When the enforcement action happened")

    content_overview: constr(strip_whitespace=True, min_length=1) = Field(
        ..., description="사건 개요"
    )
    content_problem: constr(strip_whitespace=True, min_length=1) = Field(
        ..., description="문제가 된 법집행 내용"
    )
    content_common_sense: constr(strip_whitespace=True, min_length=1) = Field(
        ..., description="상식적으로 문제되는 지점"
    )
    content_comparison: Optional[str] = Field(default=None, description="유사 사례와의 비교")
    content_status: Optional[str] = Field(default=None, description="현재 진행 상황")
    request_types: List[RequestType] = Field(default_factory=list)


class IssueCreate(IssueBase):
    """
    Submission payload. author_id comes from the authenticated user; the issue starts
    unpublished and waits for moderation.
    """
    agencies: List[AgencyIn] = Field(default_factory=list, max_length=10)


class IssueListItem(BaseModel):
    id: int
    title: str
    summary: str
    enforcement_type: str
    field_category: str
    region: str
    occurred_at: date
    status: IssueStatus
    conclusion: Optional[IssueConclusion] = None
    support_count: int
    is_published: bool
    published_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class PendingIssueOut(IssueListItem):
    author_id: Optional[int] = None
    agencies: List[AgencyOut] = Field(default_factory=list)


class IssueDetail(IssueListItem, IssueBase):
    author_id: Optional[int] = None
    agencies: List[AgencyOut] = Field(default_factory=list)
    attachments: List[AttachmentOut] = Field(default_factory=list)
    history: List[StatusHistoryOut] = Field(default_factory=list)
    comments: List[CommentOut] = Field(default_factory=list)
    user_supported: bool = False


class IssuePage(BaseModel):
    items: List[IssueListItem]
    total: int
    page: int
    per_page: int


class SupportResult(BaseModel):
    supported: bool
    support_count: int
