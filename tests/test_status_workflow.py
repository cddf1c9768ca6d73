import pytest

from sinmungo.core.errors import Conflict, InvalidTransition, NotFound, ValidationFailed
from sinmungo.services.moderation import approve_issue
from sinmungo.services.status_workflow import (
    FORWARD_POLICY,
    FORWARD_TRANSITIONS,
    OPEN_POLICY,
    change_status,
    get_status_history,
    get_transition_policy,
    verify_history_chain,
)


def test_close_with_conclusion_appends_to_history(db, published_issue, admin):
    issue = change_status(
        db, published_issue.id, "종결", actor=admin, note="기관 답변 완료", conclusion="개선"
    )

    assert issue.status == "종결"
    assert issue.conclusion == "개선"
    history = get_status_history(db, issue.id)
    assert [(h.from_status, h.to_status) for h in history] == [(None, "접수됨"), ("접수됨", "종결")]
    assert history[-1].note == "기관 답변 완료"
    assert verify_history_chain(history)


def test_each_change_extends_the_chain(db, published_issue, admin):
    for status in ("검증중", "공론화진행", "기관전달", "종결"):
        change_status(db, published_issue.id, status, actor=admin)

    history = get_status_history(db, published_issue.id)
    assert len(history) == 5
    assert history[-1].to_status == published_issue.status == "종결"
    assert verify_history_chain(history)


def test_conclusion_only_with_terminal_status(db, published_issue, admin):
    with pytest.raises(ValidationFailed):
        change_status(db, published_issue.id, "검증중", actor=admin, conclusion="기각")
    assert len(get_status_history(db, published_issue.id)) == 1


def test_leaving_terminal_status_clears_conclusion(db, published_issue, admin):
    change_status(db, published_issue.id, "종결", actor=admin, conclusion="보류")
    issue = change_status(db, published_issue.id, "검증중", actor=admin, note="재검토", policy=OPEN_POLICY)
    assert issue.conclusion is None
    assert verify_history_chain(get_status_history(db, issue.id))


def test_unknown_status_is_rejected(db, published_issue, admin):
    with pytest.raises(ValidationFailed):
        change_status(db, published_issue.id, "보류중", actor=admin)


def test_unknown_issue(db, admin):
    with pytest.raises(NotFound):
        change_status(db, 404, "검증중", actor=admin)


def test_forward_policy_blocks_backwards_moves(db, published_issue, admin):
    change_status(db, published_issue.id, "기관전달", actor=admin, policy=FORWARD_POLICY)
    with pytest.raises(InvalidTransition):
        change_status(db, published_issue.id, "검증중", actor=admin, policy=FORWARD_POLICY)

    db.expire_all()
    history = get_status_history(db, published_issue.id)
    assert [h.to_status for h in history] == ["접수됨", "기관전달"]


def test_forward_policy_allows_skipping_ahead(db, published_issue, admin):
    change_status(db, published_issue.id, "공론화진행", actor=admin, policy=FORWARD_POLICY)
    change_status(db, published_issue.id, "종결", actor=admin, policy=FORWARD_POLICY, conclusion="개선")

    for status in ("접수됨", "기관전달", "종결"):
        with pytest.raises(InvalidTransition):
            change_status(db, published_issue.id, status, actor=admin, policy=FORWARD_POLICY)
    assert verify_history_chain(get_status_history(db, published_issue.id))


def test_forward_table_covers_every_status():
    assert FORWARD_TRANSITIONS["접수됨"] == {"검증중", "공론화진행", "기관전달", "종결"}
    assert FORWARD_TRANSITIONS["기관전달"] == {"종결"}
    assert FORWARD_TRANSITIONS["종결"] == frozenset()


def test_unpublished_issue_cannot_change_status(db, pending_issue, admin):
    with pytest.raises(Conflict):
        change_status(db, pending_issue.id, "검증중", actor=admin)

    db.expire_all()
    assert get_status_history(db, pending_issue.id) == []

    approve_issue(db, pending_issue.id, actor=admin)
    change_status(db, pending_issue.id, "검증중", actor=admin)
    history = get_status_history(db, pending_issue.id)
    assert [(h.from_status, h.to_status) for h in history] == [(None, "접수됨"), ("접수됨", "검증중")]
    assert verify_history_chain(history)


def test_policy_from_env(monkeypatch):
    monkeypatch.setenv("STATUS_TRANSITION_POLICY", "forward")
    assert get_transition_policy() is FORWARD_POLICY
    assert get_transition_policy("open") is OPEN_POLICY
    with pytest.raises(ValueError):
        get_transition_policy("strict")


class _Entry:
    def __init__(self, from_status, to_status):
        self.from_status = from_status
        self.to_status = to_status


def test_verify_history_chain():
    assert verify_history_chain([])
    assert verify_history_chain([_Entry(None, "접수됨"), _Entry("접수됨", "검증중")])
    assert not verify_history_chain([_Entry("접수됨", "검증중")])
    assert not verify_history_chain([_Entry(None, "접수됨"), _Entry("검증중", "종결")])
