# sinmungo/api/v1/admin.py
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from sinmungo.core.auth import get_db
from sinmungo.core.rbac import require_admin
from sinmungo.models.user import User
from sinmungo.schemas.attachment import AttachmentOut, PendingAttachmentOut
from sinmungo.schemas.comment import CommentOut, CommentPin
from sinmungo.schemas.issue import IssueListItem, IssuePage, PendingIssueOut
from sinmungo.schemas.moderation import AuditEntryOut, DashboardStats, IssueReject, RejectionOut
from sinmungo.schemas.report import ReportOut, ReportResolve
from sinmungo.schemas.status_history import StatusChange
from sinmungo.services import moderation
from sinmungo.services.audit import ip_from_request, list_audit_entries
from sinmungo.services.comments import comment_to_dict
from sinmungo.services.issues import report_to_dict
from sinmungo.services.status_workflow import change_status
from sinmungo.services.storage import LocalBlobStore, get_blob_store

# Every route below requires an admin; the dependency runs before the handler body
router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("/dashboard", response_model=DashboardStats)
def dashboard(db: Session = Depends(get_db)):
    return moderation.dashboard_stats(db)


# ---------------------------
# ISSUES
# ---------------------------
@router.get("/issues", response_model=IssuePage)
def list_all_issues(
    page: int = Query(1, ge=1),
    per_page: int = Query(30, ge=1, le=100),
    db: Session = Depends(get_db),
):
    rows, total = moderation.list_all_issues_admin(db, page=page, per_page=per_page)
    return IssuePage(
        items=[IssueListItem.model_validate(r) for r in rows],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.get("/issues/pending", response_model=List[PendingIssueOut])
def pending_issues(db: Session = Depends(get_db)):
    return moderation.list_pending_issues(db)


@router.post("/issues/{issue_id}/approve", response_model=IssueListItem)
def approve_issue(
    issue_id: int,
    request: Request,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return moderation.approve_issue(db, issue_id, actor=admin, ip=ip_from_request(request))


@router.post("/issues/{issue_id}/reject", response_model=RejectionOut)
def reject_issue(
    issue_id: int,
    payload: IssueReject,
    request: Request,
    db: Session = Depends(get_db),
    store: LocalBlobStore = Depends(get_blob_store),
    admin: User = Depends(require_admin),
):
    """Deletes the issue and everything attached to it. The reason is kept in the rejection log."""
    return moderation.reject_issue(
        db, issue_id, payload.reason, actor=admin, store=store, ip=ip_from_request(request)
    )


@router.post("/issues/{issue_id}/status", response_model=IssueListItem)
def update_status(
    issue_id: int,
    payload: StatusChange,
    request: Request,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return change_status(
        db,
        issue_id,
        payload.status,
        actor=admin,
        note=payload.note,
        conclusion=payload.conclusion,
        ip=ip_from_request(request),
    )


@router.get("/rejections", response_model=List[RejectionOut])
def rejections(limit: int = Query(100, ge=1, le=500), db: Session = Depends(get_db)):
    return moderation.list_rejections(db, limit=limit)


# ---------------------------
# ATTACHMENTS
# ---------------------------
@router.get("/attachments/pending", response_model=List[PendingAttachmentOut])
def pending_attachments(db: Session = Depends(get_db)):
    return moderation.list_pending_attachments(db)


@router.post("/attachments/{attachment_id}/approve", response_model=AttachmentOut)
def approve_attachment(
    attachment_id: int,
    request: Request,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return moderation.approve_attachment(db, attachment_id, actor=admin, ip=ip_from_request(request))


# ---------------------------
# REPORTS
# ---------------------------
@router.get("/reports", response_model=List[ReportOut])
def open_reports(db: Session = Depends(get_db)):
    return [report_to_dict(r) for r in moderation.list_open_reports(db)]


@router.post("/reports/{report_id}/resolve", response_model=ReportOut)
def resolve_report(
    report_id: int,
    payload: ReportResolve,
    request: Request,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    report = moderation.resolve_report(
        db, report_id, payload.outcome, actor=admin, ip=ip_from_request(request)
    )
    return report_to_dict(report)


# ---------------------------
# COMMENTS
# ---------------------------
@router.post("/comments/{comment_id}/hide", response_model=CommentOut)
def hide_comment(
    comment_id: int,
    request: Request,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    obj = moderation.hide_comment(db, comment_id, actor=admin, ip=ip_from_request(request))
    return comment_to_dict(obj)


@router.post("/comments/{comment_id}/pin", response_model=CommentOut)
def pin_comment(
    comment_id: int,
    request: Request,
    payload: Optional[CommentPin] = None,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    pinned = payload.pinned if payload is not None else True
    obj = moderation.pin_comment(db, comment_id, pinned, actor=admin, ip=ip_from_request(request))
    return comment_to_dict(obj)


# ---------------------------
# AUDIT
# ---------------------------
@router.get("/audit", response_model=List[AuditEntryOut])
def audit_entries(
    entity_type: Optional[str] = Query(None, description="Exact match, e.g. issue"),
    entity_id: Optional[int] = Query(None),
    action: Optional[str] = Query(None, description="Exact match, e.g. ISSUE_APPROVED"),
    user_id: Optional[int] = Query(None, description="Who performed the action"),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    """Newest entries first."""
    return list_audit_entries(
        db,
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        user_id=user_id,
        limit=limit,
    )
