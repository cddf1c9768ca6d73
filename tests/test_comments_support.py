import pytest

from sinmungo.core.errors import AuthenticationRequired, NotFound, PermissionDenied, ValidationFailed
from sinmungo.models.support import IssueSupport
from sinmungo.services import moderation
from sinmungo.services.comments import create_comment, list_comments
from sinmungo.services.support import has_supported_issue, toggle_comment_support, toggle_issue_support


def test_reply_is_always_general(db, citizen, other_citizen, published_issue):
    parent = create_comment(db, issue_id=published_issue.id, actor=citizen, content="판결문 첨부합니다", type="사실보완")
    reply = create_comment(
        db, issue_id=published_issue.id, actor=other_citizen, content="법리상 문제 있습니다",
        type="법률의견", parent_id=parent.id,
    )
    assert parent.type == "사실보완"
    assert reply.type == "일반"
    assert reply.parent_id == parent.id


def test_comment_content_is_trimmed_and_bounded(db, citizen, published_issue):
    with pytest.raises(ValidationFailed):
        create_comment(db, issue_id=published_issue.id, actor=citizen, content="   ")
    with pytest.raises(ValidationFailed):
        create_comment(db, issue_id=published_issue.id, actor=citizen, content="가" * 1001)

    c = create_comment(db, issue_id=published_issue.id, actor=citizen, content="  공감합니다  ")
    assert c.content == "공감합니다"
    assert len(create_comment(db, issue_id=published_issue.id, actor=citizen, content="가" * 1000).content) == 1000


def test_comment_needs_identity(db, published_issue):
    with pytest.raises(AuthenticationRequired):
        create_comment(db, issue_id=published_issue.id, actor=None, content="익명")


def test_operator_comment_is_admin_only(db, citizen, admin, published_issue):
    with pytest.raises(PermissionDenied):
        create_comment(db, issue_id=published_issue.id, actor=citizen, content="공지", type="운영자코멘트")
    c = create_comment(db, issue_id=published_issue.id, actor=admin, content="공지", type="운영자코멘트")
    assert c.type == "운영자코멘트"


def test_reply_to_comment_of_other_issue(db, citizen, admin, published_issue, issue_factory):
    other = moderation.approve_issue(db, issue_factory(title="다른 이슈의 제목입니다").id, actor=admin)
    parent = create_comment(db, issue_id=other.id, actor=citizen, content="다른 이슈 댓글")
    with pytest.raises(NotFound):
        create_comment(db, issue_id=published_issue.id, actor=citizen, content="답글", parent_id=parent.id)


def test_no_comments_on_hidden_issue_for_strangers(db, other_citizen, pending_issue):
    with pytest.raises(NotFound):
        create_comment(db, issue_id=pending_issue.id, actor=other_citizen, content="보이지 않는 이슈")


def test_listing_pins_first_and_drops_hidden(db, citizen, other_citizen, admin, published_issue):
    first = create_comment(db, issue_id=published_issue.id, actor=citizen, content="첫 댓글")
    second = create_comment(db, issue_id=published_issue.id, actor=citizen, content="두번째 댓글")
    hidden = create_comment(db, issue_id=published_issue.id, actor=citizen, content="욕설")
    reply = create_comment(db, issue_id=published_issue.id, actor=other_citizen, content="답글", parent_id=first.id)
    hidden_reply = create_comment(db, issue_id=published_issue.id, actor=other_citizen, content="숨김 답글", parent_id=first.id)
    toggle_comment_support(db, first.id, actor=other_citizen)
    moderation.pin_comment(db, second.id, True, actor=admin)
    moderation.hide_comment(db, hidden.id, actor=admin)
    moderation.hide_comment(db, hidden_reply.id, actor=admin)

    tree = list_comments(db, published_issue.id)
    assert [c["id"] for c in tree] == [second.id, first.id]
    assert [r["id"] for r in tree[1]["replies"]] == [reply.id]
    assert tree[1]["author_nickname"] == "제보자"


def test_issue_support_round_trip(db, citizen, published_issue):
    assert toggle_issue_support(db, published_issue.id, actor=citizen) == (True, 1)
    assert has_supported_issue(db, published_issue.id, citizen.id)
    assert toggle_issue_support(db, published_issue.id, actor=citizen) == (False, 0)
    assert not has_supported_issue(db, published_issue.id, citizen.id)


def test_support_count_matches_rows(db, citizen, other_citizen, published_issue):
    toggle_issue_support(db, published_issue.id, actor=citizen)
    toggle_issue_support(db, published_issue.id, actor=other_citizen)
    toggle_issue_support(db, published_issue.id, actor=citizen)

    rows = db.query(IssueSupport).filter(IssueSupport.issue_id == published_issue.id).count()
    db.refresh(published_issue)
    assert rows == published_issue.support_count == 1


def test_unpublished_issue_cannot_be_supported(db, citizen, pending_issue):
    with pytest.raises(NotFound):
        toggle_issue_support(db, pending_issue.id, actor=citizen)


def test_comment_support_round_trip(db, citizen, other_citizen, admin, published_issue):
    c = create_comment(db, issue_id=published_issue.id, actor=citizen, content="좋은 지적입니다")
    assert toggle_comment_support(db, c.id, actor=other_citizen) == (True, 1)
    assert toggle_comment_support(db, c.id, actor=other_citizen) == (False, 0)

    moderation.hide_comment(db, c.id, actor=admin)
    with pytest.raises(NotFound):
        toggle_comment_support(db, c.id, actor=other_citizen)


def test_comment_on_unpublished_issue_cannot_be_supported(db, citizen, other_citizen, pending_issue):
    c = create_comment(db, issue_id=pending_issue.id, actor=citizen, content="보완 자료를 곧 올리겠습니다")
    with pytest.raises(NotFound):
        toggle_comment_support(db, c.id, actor=other_citizen)
    with pytest.raises(NotFound):
        toggle_comment_support(db, c.id, actor=citizen)
    db.refresh(c)
    assert c.support_count == 0
