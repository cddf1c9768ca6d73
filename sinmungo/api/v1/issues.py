# sinmungo/api/v1/issues.py
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from sinmungo.core.auth import get_current_user, get_current_user_optional, get_db
from sinmungo.crud import issue as crud_issue
from sinmungo.models.user import User
from sinmungo.schemas.common import (
    EnforcementType,
    FieldCategory,
    IssueSort,
    IssueStatus,
    RankingPeriod,
    Region,
)
from sinmungo.schemas.issue import (
    IssueCreate,
    IssueDetail,
    IssueListItem,
    IssuePage,
    SupportResult,
)
from sinmungo.schemas.report import ReportCreate, ReportOut
from sinmungo.schemas.status_history import StatusHistoryOut
from sinmungo.services import issues as issue_service
from sinmungo.services.audit import ip_from_request
from sinmungo.services.status_workflow import get_status_history
from sinmungo.services.support import toggle_issue_support

router = APIRouter(prefix="/issues", tags=["issues"])


# ---------------------------
# PUBLIC READS
# ---------------------------
@router.get("", response_model=IssuePage)
def list_issues(
    enforcement_type: Optional[EnforcementType] = Query(None),
    field_category: Optional[FieldCategory] = Query(None),
    region: Optional[Region] = Query(None),
    status: Optional[IssueStatus] = Query(None),
    q: Optional[str] = Query(None, max_length=100, description="Search in title/summary"),
    sort: IssueSort = Query("latest"),
    page: int = Query(1, ge=1),
    per_page: int = Query(12, ge=1, le=50),
    db: Session = Depends(get_db),
):
    """Published issues only, whoever asks."""
    rows, total = crud_issue.list_published_issues(
        db,
        enforcement_type=enforcement_type,
        field_category=field_category,
        region=region,
        status=status,
        q=q,
        sort=sort,
        page=page,
        per_page=per_page,
    )
    return IssuePage(
        items=[IssueListItem.model_validate(r) for r in rows],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.get("/ranking", response_model=List[IssueListItem])
def ranking(
    period: RankingPeriod = Query("weekly"),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    return crud_issue.list_ranking(db, period=period, limit=limit)


@router.get("/{issue_id}", response_model=IssueDetail)
def get_issue(
    issue_id: int,
    db: Session = Depends(get_db),
    viewer: Optional[User] = Depends(get_current_user_optional),
):
    return issue_service.get_issue_detail(db, issue_id, viewer)


@router.get("/{issue_id}/history", response_model=List[StatusHistoryOut])
def issue_history(
    issue_id: int,
    db: Session = Depends(get_db),
    viewer: Optional[User] = Depends(get_current_user_optional),
):
    issue = issue_service.get_visible_issue(db, issue_id, viewer)
    return get_status_history(db, issue.id)


# ---------------------------
# AUTHENTICATED WRITES
# ---------------------------
@router.post("", response_model=IssueDetail, status_code=status.HTTP_201_CREATED)
def submit_issue(
    payload: IssueCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Submit an issue for moderation. It stays unpublished (visible only to its author
    and admins) until an admin approves it.
    """
    issue = issue_service.submit_issue(db, payload, actor=current_user, ip=ip_from_request(request))
    return issue_service.get_issue_detail(db, issue.id, current_user)


@router.post("/{issue_id}/support", response_model=SupportResult)
def toggle_support(
    issue_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    supported, count = toggle_issue_support(db, issue_id, actor=current_user)
    return SupportResult(supported=supported, support_count=count)


@router.post("/{issue_id}/reports", response_model=ReportOut, status_code=status.HTTP_201_CREATED)
def report_issue(
    issue_id: int,
    payload: ReportCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    report = issue_service.file_report(
        db, issue_id, payload.reason, actor=current_user, ip=ip_from_request(request)
    )
    return issue_service.report_to_dict(report)
