from sinmungo.services.comments import create_comment
from sinmungo.services.issues import file_report
from sinmungo.services.uploads import upload_attachment


def test_admin_routes_need_admin(client, citizen, headers_for):
    assert client.get("/api/v1/admin/dashboard").status_code == 401
    r = client.get("/api/v1/admin/dashboard", headers=headers_for(citizen))
    assert r.status_code == 403
    assert r.json()["error"]["type"] == "permission_denied"


def test_moderation_queue_over_http(client, admin, pending_issue, headers_for):
    h = headers_for(admin)
    pending = client.get("/api/v1/admin/issues/pending", headers=h).json()
    assert [p["id"] for p in pending] == [pending_issue.id]
    assert pending[0]["agencies"][0]["agency_name"] == "마포구청"

    r = client.post(f"/api/v1/admin/issues/{pending_issue.id}/approve", headers=h)
    assert r.status_code == 200
    assert r.json()["is_published"] is True

    r = client.post(f"/api/v1/admin/issues/{pending_issue.id}/approve", headers=h)
    assert r.status_code == 409
    assert r.json()["error"]["type"] == "conflict"

    assert client.get("/api/v1/admin/issues/pending", headers=h).json() == []
    assert client.get("/api/v1/admin/issues", headers=h).json()["total"] == 1


def test_reject_over_http(client, admin, pending_issue, headers_for):
    h = headers_for(admin)
    issue_id = pending_issue.id
    r = client.post(f"/api/v1/admin/issues/{issue_id}/reject", json={"reason": "중복 제보"}, headers=h)
    assert r.status_code == 200
    assert r.json()["reason"] == "중복 제보"

    assert client.get(f"/api/v1/issues/{issue_id}", headers=h).status_code == 404
    rejections = client.get("/api/v1/admin/rejections", headers=h).json()
    assert [(x["issue_id"], x["reason"]) for x in rejections] == [(issue_id, "중복 제보")]


def test_status_change_over_http(client, admin, published_issue, headers_for):
    h = headers_for(admin)
    url = f"/api/v1/admin/issues/{published_issue.id}/status"

    r = client.post(url, json={"status": "검증중", "conclusion": "개선"}, headers=h)
    assert r.status_code == 422

    r = client.post(url, json={"status": "종결", "note": "개선 권고 수용", "conclusion": "개선"}, headers=h)
    assert r.status_code == 200
    assert (r.json()["status"], r.json()["conclusion"]) == ("종결", "개선")

    history = client.get(f"/api/v1/issues/{published_issue.id}/history").json()
    assert len(history) == 2


def test_attachment_review_over_http(client, db, store, citizen, admin, published_issue, headers_for):
    att = upload_attachment(
        db, store, actor=citizen, issue_id=published_issue.id, filename="공문.pdf",
        content_type="application/pdf", data=b"%PDF", file_type="공문",
    )
    h = headers_for(admin)
    pending = client.get("/api/v1/admin/attachments/pending", headers=h).json()
    assert pending[0]["issue_title"] == published_issue.title

    r = client.post(f"/api/v1/admin/attachments/{att.id}/approve", headers=h)
    assert r.json()["is_approved"] is True

    r = client.delete(f"/api/v1/attachments/{att.id}", headers=headers_for(citizen))
    assert r.status_code == 422
    assert r.json()["error"]["message"] == "승인된 파일은 삭제할 수 없습니다."


def test_reports_and_comments_over_http(client, db, citizen, admin, published_issue, headers_for):
    report = file_report(db, published_issue.id, "허위 사실이 포함되어 있습니다", actor=citizen)
    comment = create_comment(db, issue_id=published_issue.id, actor=citizen, content="부적절한 댓글")
    h = headers_for(admin)

    reports = client.get("/api/v1/admin/reports", headers=h).json()
    assert reports[0]["reporter_nickname"] == "제보자"
    r = client.post(f"/api/v1/admin/reports/{report.id}/resolve", json={"outcome": "기각"}, headers=h)
    assert r.json()["status"] == "기각"
    assert client.get("/api/v1/admin/reports", headers=h).json() == []

    r = client.post(f"/api/v1/admin/comments/{comment.id}/pin", headers=h)
    assert r.json()["is_pinned"] is True
    r = client.post(f"/api/v1/admin/comments/{comment.id}/pin", json={"pinned": False}, headers=h)
    assert r.json()["is_pinned"] is False
    r = client.post(f"/api/v1/admin/comments/{comment.id}/hide", headers=h)
    assert r.json()["is_hidden"] is True
    assert client.get(f"/api/v1/issues/{published_issue.id}/comments").json() == []


def test_dashboard_over_http(client, admin, pending_issue, headers_for):
    stats = client.get("/api/v1/admin/dashboard", headers=headers_for(admin)).json()
    assert stats["pending_approval"] == 1
    assert stats["pending_by_field_category"]["교통"] == 1


def test_audit_trail_over_http(client, admin, citizen, pending_issue, headers_for):
    h = headers_for(admin)
    client.post(f"/api/v1/admin/issues/{pending_issue.id}/approve", headers=h)
    client.post(
        f"/api/v1/admin/issues/{pending_issue.id}/status", json={"status": "검증중"}, headers=h
    )

    r = client.get(
        "/api/v1/admin/audit",
        params={"entity_type": "issue", "entity_id": pending_issue.id},
        headers=h,
    )
    assert r.status_code == 200
    entries = r.json()
    assert [e["action"] for e in entries][:2] == ["ISSUE_STATUS_CHANGED", "ISSUE_APPROVED"]
    assert entries[0]["meta"]["new_status"] == "검증중"
    assert entries[0]["user_id"] == admin.id

    only = client.get("/api/v1/admin/audit", params={"action": "ISSUE_APPROVED", "limit": 1}, headers=h).json()
    assert [e["action"] for e in only] == ["ISSUE_APPROVED"]

    assert client.get("/api/v1/admin/audit", headers=headers_for(citizen)).status_code == 403
    assert client.get("/api/v1/admin/audit", params={"limit": 0}, headers=h).status_code == 422
