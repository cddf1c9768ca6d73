# sinmungo/services/issues.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from sinmungo.core.errors import NotFound
from sinmungo.core.rbac import ensure_authenticated, is_admin
from sinmungo.crud import attachment as crud_attachment
from sinmungo.crud import issue as crud_issue
from sinmungo.crud import report as crud_report
from sinmungo.models.issue import Issue
from sinmungo.models.report import Report
from sinmungo.models.user import User
from sinmungo.schemas.issue import IssueCreate
from sinmungo.services.audit import audit_log
from sinmungo.services.status_workflow import get_status_history
from sinmungo.services.support import has_supported_issue

log = logging.getLogger("sinmungo.issues")


def can_view_issue(issue: Issue, viewer: Optional[User]) -> bool:
    """Published issues are public; unpublished ones only for their author and admins."""
    if issue.is_published:
        return True
    if viewer is None:
        return False
    return is_admin(viewer) or issue.author_id == viewer.id


def get_visible_issue(db: Session, issue_id: int, viewer: Optional[User]) -> Issue:
    issue = crud_issue.get_issue(db, issue_id)
    # Not found and not visible look the same to the caller
    if issue is None or not can_view_issue(issue, viewer):
        raise NotFound("이슈를 찾을 수 없습니다.")
    return issue


def submit_issue(
    db: Session, payload: IssueCreate, *, actor: Optional[User], ip: Optional[str] = None
) -> Issue:
    actor = ensure_authenticated(actor)
    issue = crud_issue.create_issue(db, payload, author_id=actor.id)
    log.info("issue submitted id=%s author=%s", issue.id, actor.id)
    audit_log(
        db,
        user_id=actor.id,
        action="ISSUE_SUBMITTED",
        entity_type="issue",
        entity_id=issue.id,
        meta={
            "title": issue.title,
            "enforcement_type": issue.enforcement_type,
            "field_category": issue.field_category,
            "region": issue.region,
        },
        ip=ip,
    )
    return issue


def get_issue_detail(db: Session, issue_id: int, viewer: Optional[User]) -> Dict[str, Any]:
    """
    One issue with its agencies, status history, attachments and visible comments.
    Non-admin readers only get approved attachments.
    """
    # comments imports this module
    from sinmungo.services.comments import list_comments

    issue = get_visible_issue(db, issue_id, viewer)
    attachments = crud_attachment.list_for_issue(db, issue.id, approved_only=not is_admin(viewer))

    detail: Dict[str, Any] = {
        c.name: getattr(issue, c.name) for c in Issue.__table__.columns
    }
    detail["agencies"] = list(issue.agencies)
    detail["attachments"] = attachments
    detail["history"] = get_status_history(db, issue.id)
    detail["comments"] = list_comments(db, issue.id)
    detail["user_supported"] = bool(viewer) and has_supported_issue(db, issue.id, viewer.id)
    return detail


def file_report(
    db: Session, issue_id: int, reason: str, *, actor: Optional[User], ip: Optional[str] = None
) -> Report:
    actor = ensure_authenticated(actor)
    issue = get_visible_issue(db, issue_id, actor)
    report = crud_report.create_report(db, issue_id=issue.id, reporter_id=actor.id, reason=reason)
    audit_log(
        db,
        user_id=actor.id,
        action="REPORT_FILED",
        entity_type="report",
        entity_id=report.id,
        meta={"issue_id": issue.id},
        ip=ip,
    )
    return report


def report_to_dict(r: Report) -> Dict[str, Any]:
    return {
        "id": r.id,
        "issue_id": r.issue_id,
        "reporter_id": r.reporter_id,
        "reason": r.reason,
        "status": r.status,
        "resolved_at": r.resolved_at,
        "created_at": r.created_at,
        "issue_title": r.issue.title if r.issue is not None else None,
        "reporter_nickname": r.reporter.nickname if r.reporter is not None else None,
    }
