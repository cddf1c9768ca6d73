import pytest

from sinmungo.core.errors import Conflict, NotFound, ValidationFailed
from sinmungo.models.comment import Comment
from sinmungo.models.issue import Issue
from sinmungo.models.rejection import IssueRejection
from sinmungo.models.status_history import StatusHistoryEntry
from sinmungo.services import moderation
from sinmungo.services.audit import list_audit_entries
from sinmungo.services.comments import create_comment
from sinmungo.services.issues import file_report
from sinmungo.services.status_workflow import get_status_history, verify_history_chain
from sinmungo.services.uploads import upload_attachment

PDF = b"%PDF-1.4 test"


def test_submitted_issue_waits_in_queue(db, pending_issue):
    assert pending_issue.is_published is False
    assert pending_issue.status == "접수됨"
    assert [i.id for i in moderation.list_pending_issues(db)] == [pending_issue.id]
    assert get_status_history(db, pending_issue.id) == []


def test_approve_publishes_and_writes_first_history_entry(db, pending_issue, admin):
    issue = moderation.approve_issue(db, pending_issue.id, actor=admin)

    assert issue.is_published is True
    assert issue.published_at is not None
    assert issue.status == "접수됨"

    history = get_status_history(db, issue.id)
    assert len(history) == 1
    assert history[0].from_status is None
    assert history[0].to_status == "접수됨"
    assert history[0].note == moderation.APPROVAL_NOTE
    assert history[0].changed_by == admin.id
    assert moderation.list_pending_issues(db) == []

    actions = [e["action"] for e in list_audit_entries(db, entity_type="issue", entity_id=issue.id)]
    assert "ISSUE_APPROVED" in actions


def test_approve_twice_is_a_conflict(db, published_issue, admin):
    with pytest.raises(Conflict):
        moderation.approve_issue(db, published_issue.id, actor=admin)
    assert len(get_status_history(db, published_issue.id)) == 1


def test_approve_unknown_issue(db, admin):
    with pytest.raises(NotFound):
        moderation.approve_issue(db, 999, actor=admin)


def test_reject_deletes_issue_and_keeps_reason(db, store, citizen, admin, published_issue):
    upload_attachment(
        db, store, actor=citizen, issue_id=published_issue.id, filename="a.pdf",
        content_type="application/pdf", data=PDF, file_type="공문",
    )
    create_comment(db, issue_id=published_issue.id, actor=citizen, content="저도 겪었습니다")
    issue_id, title = published_issue.id, published_issue.title

    rejection = moderation.reject_issue(db, issue_id, "허위 사실", actor=admin, store=store)

    assert rejection.issue_id == issue_id
    assert rejection.reason == "허위 사실"
    assert rejection.title == title
    db.expire_all()
    assert db.query(Issue).filter(Issue.id == issue_id).first() is None
    assert db.query(StatusHistoryEntry).filter(StatusHistoryEntry.issue_id == issue_id).count() == 0
    assert db.query(Comment).filter(Comment.issue_id == issue_id).count() == 0
    assert [p for p in store.root.rglob("*") if p.is_file()] == []
    assert [r.id for r in moderation.list_rejections(db)] == [rejection.id]


def test_reject_requires_reason(db, pending_issue, admin):
    with pytest.raises(ValidationFailed):
        moderation.reject_issue(db, pending_issue.id, "   ", actor=admin)
    assert db.query(Issue).count() == 1
    assert db.query(IssueRejection).count() == 0


def test_approve_attachment_is_one_way(db, store, citizen, admin, published_issue):
    att = upload_attachment(
        db, store, actor=citizen, issue_id=published_issue.id, filename="a.pdf",
        content_type="application/pdf", data=PDF, file_type="판결문",
    )
    pending = moderation.list_pending_attachments(db)
    assert [p["id"] for p in pending] == [att.id]
    assert pending[0]["issue_title"] == published_issue.title

    approved = moderation.approve_attachment(db, att.id, actor=admin)
    assert approved.is_approved is True
    assert moderation.list_pending_attachments(db) == []
    # approving again changes nothing
    assert moderation.approve_attachment(db, att.id, actor=admin).is_approved is True


def test_resolve_report(db, citizen, admin, published_issue):
    report = file_report(db, published_issue.id, "개인정보가 노출되어 있습니다", actor=citizen)
    assert [r.id for r in moderation.list_open_reports(db)] == [report.id]

    resolved = moderation.resolve_report(db, report.id, "처리완료", actor=admin)
    assert resolved.status == "처리완료"
    assert resolved.resolved_by == admin.id
    assert resolved.resolved_at is not None
    assert moderation.list_open_reports(db) == []

    with pytest.raises(Conflict):
        moderation.resolve_report(db, report.id, "기각", actor=admin)


def test_resolve_report_rejects_unknown_outcome(db, citizen, admin, published_issue):
    report = file_report(db, published_issue.id, "중복 게시", actor=citizen)
    with pytest.raises(ValidationFailed):
        moderation.resolve_report(db, report.id, "검토중", actor=admin)


def test_hide_and_pin_comment(db, citizen, admin, published_issue):
    c = create_comment(db, issue_id=published_issue.id, actor=citizen, content="근거 자료 추가합니다", type="사실보완")

    assert moderation.pin_comment(db, c.id, True, actor=admin).is_pinned is True
    assert moderation.hide_comment(db, c.id, actor=admin).is_hidden is True
    assert moderation.pin_comment(db, c.id, False, actor=admin).is_pinned is False


def test_dashboard_counts(db, store, citizen, admin, published_issue, issue_factory):
    second = issue_factory(field_category="환경")
    upload_attachment(
        db, store, actor=citizen, issue_id=published_issue.id, filename="a.png",
        content_type="image/png", data=b"\x89PNG", file_type="언론기사",
    )
    file_report(db, published_issue.id, "광고성 게시물", actor=citizen)

    stats = moderation.dashboard_stats(db)
    assert stats["total_issues"] == 2
    assert stats["pending_approval"] == 1
    assert stats["pending_attachments"] == 1
    assert stats["pending_reports"] == 1
    assert stats["status_counts"]["접수됨"] == 2
    assert stats["status_counts"]["종결"] == 0
    assert stats["pending_by_field_category"]["환경"] == 1
    assert stats["pending_by_field_category"]["교통"] == 0
    assert second.is_published is False
