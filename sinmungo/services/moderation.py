# sinmungo/services/moderation.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from sinmungo.core.errors import Conflict, NotFound, StorageError, ValidationFailed
from sinmungo.crud import attachment as crud_attachment
from sinmungo.crud import comment as crud_comment
from sinmungo.crud import issue as crud_issue
from sinmungo.crud import report as crud_report
from sinmungo.models.attachment import Attachment
from sinmungo.models.comment import Comment
from sinmungo.models.issue import Issue
from sinmungo.models.rejection import IssueRejection
from sinmungo.models.report import Report
from sinmungo.models.user import User
from sinmungo.schemas.common import (
    FIELD_CATEGORIES,
    INITIAL_STATUS,
    ISSUE_STATUSES,
    OPEN_REPORT_STATUS,
)
from sinmungo.services.audit import audit_log
from sinmungo.services.status_workflow import append_history
from sinmungo.services.storage import LocalBlobStore

log = logging.getLogger("sinmungo.moderation")

APPROVAL_NOTE = "관리자 검토 완료 - 공개"
REPORT_OUTCOMES = ("처리완료", "기각")


def _load_issue(db: Session, issue_id: int) -> Issue:
    issue = crud_issue.get_issue(db, issue_id)
    if issue is None:
        raise NotFound("이슈를 찾을 수 없습니다.")
    return issue


# ---------------------------
# Issues
# ---------------------------
def list_pending_issues(db: Session) -> List[Issue]:
    return crud_issue.list_pending_issues(db)


def list_all_issues_admin(db: Session, page: int = 1, per_page: int = 30) -> Tuple[List[Issue], int]:
    return crud_issue.list_all_issues(db, page=page, per_page=per_page)


def approve_issue(db: Session, issue_id: int, *, actor: User, ip: Optional[str] = None) -> Issue:
    """
    Publish a pending issue: is_published, published_at, status '접수됨' and the first
    history entry (None -> '접수됨'), committed together.
    """
    issue = _load_issue(db, issue_id)
    if issue.is_published:
        raise Conflict("이미 공개된 이슈입니다.")

    issue.is_published = True
    issue.published_at = datetime.utcnow()
    issue.status = INITIAL_STATUS
    append_history(
        db,
        issue,
        from_status=None,
        to_status=INITIAL_STATUS,
        note=APPROVAL_NOTE,
        changed_by=actor.id,
    )
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(issue)

    log.info("issue approved id=%s by user=%s", issue.id, actor.id)
    audit_log(
        db,
        user_id=actor.id,
        action="ISSUE_APPROVED",
        entity_type="issue",
        entity_id=issue.id,
        meta={"title": issue.title},
        ip=ip,
    )
    return issue


def reject_issue(
    db: Session,
    issue_id: int,
    reason: str,
    *,
    actor: User,
    store: Optional[LocalBlobStore] = None,
    ip: Optional[str] = None,
) -> IssueRejection:
    """
    Permanently delete an issue, keeping the reason in issue_rejections.

    The rejection row and the delete commit together; child rows go with the issue.
    Stored attachment blobs are removed afterwards.
    """
    reason = (reason or "").strip()
    if not reason:
        raise ValidationFailed("거절 사유를 입력해 주세요.")

    issue = _load_issue(db, issue_id)
    blob_keys = [a.storage_path for a in issue.attachments]

    rejection = IssueRejection(
        issue_id=issue.id,
        title=issue.title,
        author_id=issue.author_id,
        reason=reason,
        rejected_by=actor.id,
    )
    db.add(rejection)
    db.delete(issue)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(rejection)

    log.info("issue rejected id=%s by user=%s blobs=%s", issue_id, actor.id, len(blob_keys))
    if store is not None and blob_keys:
        try:
            store.remove(blob_keys)
        except StorageError:
            # rows are gone already; leftovers are only reachable by path
            log.warning("blob cleanup failed for rejected issue id=%s keys=%s", issue_id, blob_keys, exc_info=True)

    audit_log(
        db,
        user_id=actor.id,
        action="ISSUE_REJECTED",
        entity_type="issue",
        entity_id=issue_id,
        meta={"reason": reason, "title": rejection.title},
        ip=ip,
    )
    return rejection


def list_rejections(db: Session, limit: int = 100) -> List[IssueRejection]:
    return (
        db.query(IssueRejection)
        .order_by(IssueRejection.rejected_at.desc(), IssueRejection.id.desc())
        .limit(limit)
        .all()
    )


# ---------------------------
# Attachments
# ---------------------------
def list_pending_attachments(db: Session) -> List[Dict[str, Any]]:
    out: List[Dict[str, Any]] = []
    for att, title in crud_attachment.list_pending(db):
        out.append(
            {
                "id": att.id,
                "issue_id": att.issue_id,
                "file_type": att.file_type,
                "original_name": att.original_name,
                "content_type": att.content_type,
                "size_bytes": att.size_bytes,
                "file_url": att.file_url,
                "url_expires_at": att.url_expires_at,
                "is_approved": att.is_approved,
                "created_at": att.created_at,
                "issue_title": title,
            }
        )
    return out


def approve_attachment(
    db: Session, attachment_id: int, *, actor: User, ip: Optional[str] = None
) -> Attachment:
    """Irreversible: there is no unapprove."""
    att = crud_attachment.get_attachment(db, attachment_id)
    if att is None:
        raise NotFound("파일을 찾을 수 없습니다.")
    if att.is_approved:
        return att

    att.is_approved = True
    db.add(att)
    db.commit()
    db.refresh(att)

    audit_log(
        db,
        user_id=actor.id,
        action="ATTACHMENT_APPROVED",
        entity_type="attachment",
        entity_id=att.id,
        meta={"issue_id": att.issue_id, "original_name": att.original_name},
        ip=ip,
    )
    return att


# ---------------------------
# Reports
# ---------------------------
def list_open_reports(db: Session) -> List[Report]:
    return crud_report.list_by_status(db, OPEN_REPORT_STATUS)


def resolve_report(
    db: Session, report_id: int, outcome: str, *, actor: User, ip: Optional[str] = None
) -> Report:
    if outcome not in REPORT_OUTCOMES:
        raise ValidationFailed(f"알 수 없는 처리 결과입니다: {outcome}")

    report = crud_report.get_report(db, report_id)
    if report is None:
        raise NotFound("신고를 찾을 수 없습니다.")
    if report.status != OPEN_REPORT_STATUS:
        raise Conflict("이미 처리된 신고입니다.")

    report.status = outcome
    report.resolved_by = actor.id
    report.resolved_at = datetime.utcnow()
    db.add(report)
    db.commit()
    db.refresh(report)

    audit_log(
        db,
        user_id=actor.id,
        action="REPORT_RESOLVED",
        entity_type="report",
        entity_id=report.id,
        meta={"issue_id": report.issue_id, "outcome": outcome},
        ip=ip,
    )
    return report


# ---------------------------
# Comments
# ---------------------------
def _load_comment(db: Session, comment_id: int) -> Comment:
    obj = crud_comment.get_comment(db, comment_id)
    if obj is None:
        raise NotFound("댓글을 찾을 수 없습니다.")
    return obj


def hide_comment(db: Session, comment_id: int, *, actor: User, ip: Optional[str] = None) -> Comment:
    obj = crud_comment.set_hidden(db, _load_comment(db, comment_id), True)
    audit_log(
        db,
        user_id=actor.id,
        action="COMMENT_HIDDEN",
        entity_type="comment",
        entity_id=obj.id,
        meta={"issue_id": obj.issue_id},
        ip=ip,
    )
    return obj


def pin_comment(
    db: Session, comment_id: int, pinned: bool, *, actor: User, ip: Optional[str] = None
) -> Comment:
    obj = crud_comment.set_pinned(db, _load_comment(db, comment_id), pinned)
    audit_log(
        db,
        user_id=actor.id,
        action="COMMENT_PINNED" if pinned else "COMMENT_UNPINNED",
        entity_type="comment",
        entity_id=obj.id,
        meta={"issue_id": obj.issue_id},
        ip=ip,
    )
    return obj


# ---------------------------
# Dashboard
# ---------------------------
def dashboard_stats(db: Session) -> Dict[str, Any]:
    total_issues = db.query(func.count(Issue.id)).scalar() or 0
    pending_approval = (
        db.query(func.count(Issue.id)).filter(Issue.is_published.is_(False)).scalar() or 0
    )
    pending_attachments = (
        db.query(func.count(Attachment.id)).filter(Attachment.is_approved.is_(False)).scalar() or 0
    )
    pending_reports = (
        db.query(func.count(Report.id)).filter(Report.status == OPEN_REPORT_STATUS).scalar() or 0
    )

    status_counts = {s: 0 for s in ISSUE_STATUSES}
    for status, count in db.query(Issue.status, func.count(Issue.id)).group_by(Issue.status):
        status_counts[status] = count

    pending_by_field_category = {c: 0 for c in FIELD_CATEGORIES}
    rows = (
        db.query(Issue.field_category, func.count(Issue.id))
        .filter(Issue.is_published.is_(False))
        .group_by(Issue.field_category)
    )
    for category, count in rows:
        pending_by_field_category[category] = count

    return {
        "total_issues": total_issues,
        "pending_approval": pending_approval,
        "pending_attachments": pending_attachments,
        "pending_reports": pending_reports,
        "status_counts": status_counts,
        "pending_by_field_category": pending_by_field_category,
    }
