# sinmungo/services/support.py
from __future__ import annotations

import logging
from typing import Tuple, Type

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from sinmungo.core.errors import NotFound
from sinmungo.models.comment import Comment
from sinmungo.models.issue import Issue
from sinmungo.models.support import CommentSupport, IssueSupport
from sinmungo.models.user import User

log = logging.getLogger("sinmungo.support")


def _toggle(
    db: Session,
    *,
    target,
    support_model: Type,
    target_column,
    user: User,
) -> Tuple[bool, int]:
    """
    Flip the (user, target) support row and resync target.support_count from the
    support table. Returns (supported, support_count).
    """
    existing = (
        db.query(support_model)
        .filter(target_column == target.id, support_model.user_id == user.id)
        .first()
    )
    if existing is not None:
        db.delete(existing)
        supported = False
    else:
        db.add(support_model(**{target_column.key: target.id, "user_id": user.id}))
        supported = True

    try:
        db.flush()
    except IntegrityError:
        # A concurrent toggle already inserted this pair: it is supported.
        db.rollback()
        supported = True

    count = db.query(func.count(support_model.id)).filter(target_column == target.id).scalar() or 0
    target.support_count = count
    db.add(target)
    db.commit()
    return supported, count


def has_supported_issue(db: Session, issue_id: int, user_id: int) -> bool:
    return (
        db.query(IssueSupport.id)
        .filter(IssueSupport.issue_id == issue_id, IssueSupport.user_id == user_id)
        .first()
        is not None
    )


def toggle_issue_support(db: Session, issue_id: int, *, actor: User) -> Tuple[bool, int]:
    issue = (
        db.query(Issue)
        .filter(Issue.id == issue_id, Issue.is_published.is_(True))
        .first()
    )
    if issue is None:
        raise NotFound("이슈를 찾을 수 없습니다.")
    supported, count = _toggle(
        db, target=issue, support_model=IssueSupport, target_column=IssueSupport.issue_id, user=actor
    )
    log.info("issue support toggled id=%s user=%s supported=%s count=%s", issue_id, actor.id, supported, count)
    return supported, count


def toggle_comment_support(db: Session, comment_id: int, *, actor: User) -> Tuple[bool, int]:
    comment = (
        db.query(Comment)
        .join(Issue, Issue.id == Comment.issue_id)
        .filter(
            Comment.id == comment_id,
            Comment.is_hidden.is_(False),
            Issue.is_published.is_(True),
        )
        .first()
    )
    if comment is None:
        raise NotFound("댓글을 찾을 수 없습니다.")
    supported, count = _toggle(
        db,
        target=comment,
        support_model=CommentSupport,
        target_column=CommentSupport.comment_id,
        user=actor,
    )
    log.info("comment support toggled id=%s user=%s supported=%s count=%s", comment_id, actor.id, supported, count)
    return supported, count
