# sinmungo/services/status_workflow.py
from __future__ import annotations

import logging
import os
from typing import Dict, FrozenSet, Iterable, List, Optional, get_args

from sqlalchemy.orm import Session

from sinmungo.core.errors import Conflict, InvalidTransition, NotFound, ValidationFailed
from sinmungo.models.issue import Issue
from sinmungo.models.status_history import StatusHistoryEntry
from sinmungo.models.user import User
from sinmungo.schemas.common import ISSUE_STATUSES, TERMINAL_STATUS, IssueConclusion
from sinmungo.services.audit import audit_log

log = logging.getLogger("sinmungo.status")

CONCLUSIONS = get_args(IssueConclusion)

# Forward-only table: any later status may follow, so the terminal status is final.
FORWARD_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    status: frozenset(ISSUE_STATUSES[i + 1 :]) for i, status in enumerate(ISSUE_STATUSES)
}


class TransitionPolicy:
    """
    Decides which status may follow which.

    `allowed=None` means any status may follow any other (admin override).
    """

    def __init__(self, name: str, allowed: Optional[Dict[str, FrozenSet[str]]] = None):
        self.name = name
        self.allowed = allowed

    def check(self, from_status: Optional[str], to_status: str) -> None:
        if to_status not in ISSUE_STATUSES:
            raise ValidationFailed(f"알 수 없는 상태입니다: {to_status}")
        if self.allowed is None or from_status is None:
            return
        if to_status not in self.allowed.get(from_status, frozenset()):
            raise InvalidTransition(
                f"'{from_status}' 상태에서 '{to_status}' 상태로 변경할 수 없습니다.",
                details={"from_status": from_status, "to_status": to_status, "policy": self.name},
            )


OPEN_POLICY = TransitionPolicy("open")
FORWARD_POLICY = TransitionPolicy("forward", FORWARD_TRANSITIONS)
_POLICIES = {"open": OPEN_POLICY, "forward": FORWARD_POLICY}


def get_transition_policy(name: Optional[str] = None) -> TransitionPolicy:
    """Resolve the policy by name, defaulting to STATUS_TRANSITION_POLICY (open)."""
    key = (name or os.getenv("STATUS_TRANSITION_POLICY", "open")).strip().lower()
    try:
        return _POLICIES[key]
    except KeyError:
        raise ValueError(f"Unknown status transition policy: {key!r}")


def append_history(
    db: Session,
    issue: Issue,
    *,
    from_status: Optional[str],
    to_status: str,
    note: Optional[str],
    changed_by: Optional[int],
) -> StatusHistoryEntry:
    """Stage a history row in the caller's transaction (no commit)."""
    entry = StatusHistoryEntry(
        issue_id=issue.id,
        from_status=from_status,
        to_status=to_status,
        note=note,
        changed_by=changed_by,
    )
    db.add(entry)
    return entry


def change_status(
    db: Session,
    issue_id: int,
    new_status: str,
    *,
    actor: User,
    note: Optional[str] = None,
    conclusion: Optional[str] = None,
    policy: Optional[TransitionPolicy] = None,
    ip: Optional[str] = None,
) -> Issue:
    """
    Move an issue to new_status and append the matching history entry.

    Only published issues move. Status write and history append commit together.
    Leaving the terminal status clears the conclusion; a conclusion is only accepted
    with the terminal status.
    """
    policy = policy or get_transition_policy()

    issue = db.query(Issue).filter(Issue.id == issue_id).first()
    if issue is None:
        raise NotFound("이슈를 찾을 수 없습니다.")
    # History starts at approval
    if not issue.is_published:
        raise Conflict("공개되지 않은 이슈는 상태를 변경할 수 없습니다.")

    if conclusion is not None:
        if conclusion not in CONCLUSIONS:
            raise ValidationFailed(f"알 수 없는 종결 결과입니다: {conclusion}")
        if new_status != TERMINAL_STATUS:
            raise ValidationFailed("종결 결과는 '종결' 상태에서만 지정할 수 있습니다.")

    previous = issue.status
    policy.check(previous, new_status)

    issue.status = new_status
    if conclusion is not None:
        issue.conclusion = conclusion
    elif new_status != TERMINAL_STATUS:
        issue.conclusion = None

    append_history(
        db,
        issue,
        from_status=previous,
        to_status=new_status,
        note=note,
        changed_by=actor.id,
    )
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(issue)

    log.info(
        "issue status changed id=%s %s -> %s by user=%s policy=%s",
        issue.id, previous, new_status, actor.id, policy.name,
    )
    audit_log(
        db,
        user_id=actor.id,
        action="ISSUE_STATUS_CHANGED",
        entity_type="issue",
        entity_id=issue.id,
        meta={"old_status": previous, "new_status": new_status, "note": note, "conclusion": conclusion},
        ip=ip,
    )
    return issue


def get_status_history(db: Session, issue_id: int) -> List[StatusHistoryEntry]:
    return (
        db.query(StatusHistoryEntry)
        .filter(StatusHistoryEntry.issue_id == issue_id)
        .order_by(StatusHistoryEntry.changed_at.asc(), StatusHistoryEntry.id.asc())
        .all()
    )


def verify_history_chain(entries: Iterable[StatusHistoryEntry]) -> bool:
    """
    True when entries (in order) form a valid chain: the first from_status is None
    and every later from_status equals the previous to_status.
    """
    previous_to: Optional[str] = None
    for i, e in enumerate(entries):
        if i == 0:
            if e.from_status is not None:
                return False
        elif e.from_status != previous_to:
            return False
        previous_to = e.to_status
    return True
