# sinmungo/services/comments.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, get_args

from sqlalchemy.orm import Session

from sinmungo.core.errors import NotFound, PermissionDenied, ValidationFailed
from sinmungo.core.rbac import ensure_authenticated, is_admin
from sinmungo.crud import comment as crud_comment
from sinmungo.models.comment import Comment
from sinmungo.models.user import User
from sinmungo.schemas.common import (
    OPERATOR_COMMENT_TYPE,
    REPLY_COMMENT_TYPE,
    CommentType,
)
from sinmungo.services.issues import get_visible_issue

log = logging.getLogger("sinmungo.comments")

MAX_COMMENT_LENGTH = 1000
COMMENT_TYPES = get_args(CommentType)


def create_comment(
    db: Session,
    *,
    issue_id: int,
    actor: Optional[User],
    content: str,
    type: str = REPLY_COMMENT_TYPE,
    parent_id: Optional[int] = None,
) -> Comment:
    """
    Create a comment or a reply.

    Replies are always stored as '일반' whatever type was asked for. Nesting depth is
    not enforced here; the read path only renders one level.
    """
    actor = ensure_authenticated(actor)

    content = (content or "").strip()
    if not content:
        raise ValidationFailed("댓글 내용을 입력해 주세요.")
    if len(content) > MAX_COMMENT_LENGTH:
        raise ValidationFailed(f"댓글은 {MAX_COMMENT_LENGTH}자 이내로 작성해 주세요.")

    get_visible_issue(db, issue_id, actor)

    if parent_id is not None:
        parent = crud_comment.get_comment(db, parent_id)
        if parent is None or parent.issue_id != issue_id:
            raise NotFound("답글 대상 댓글을 찾을 수 없습니다.")
        type = REPLY_COMMENT_TYPE
    elif type not in COMMENT_TYPES:
        raise ValidationFailed(f"알 수 없는 댓글 유형입니다: {type}")

    if type == OPERATOR_COMMENT_TYPE and not is_admin(actor):
        raise PermissionDenied("운영자 코멘트는 관리자만 작성할 수 있습니다.")

    obj = crud_comment.create_comment(
        db,
        issue_id=issue_id,
        user_id=actor.id,
        content=content,
        type=type,
        parent_id=parent_id,
    )
    log.info("comment created id=%s issue=%s parent=%s type=%s", obj.id, issue_id, parent_id, type)
    return obj


def comment_to_dict(c: Comment) -> Dict[str, Any]:
    return {
        "id": c.id,
        "issue_id": c.issue_id,
        "user_id": c.user_id,
        "parent_id": c.parent_id,
        "type": c.type,
        "content": c.content,
        "support_count": c.support_count,
        "is_pinned": c.is_pinned,
        "is_hidden": c.is_hidden,
        "author_nickname": c.author.nickname if c.author is not None else None,
        "created_at": c.created_at,
        "replies": [],
    }


def list_comments(db: Session, issue_id: int, sort: str = "support_count") -> List[Dict[str, Any]]:
    """Visible top-level comments, each with its visible direct replies."""
    top = crud_comment.list_top_level(db, issue_id, sort=sort)
    replies = crud_comment.list_replies(db, [c.id for c in top])
    out: List[Dict[str, Any]] = []
    for c in top:
        item = comment_to_dict(c)
        item["replies"] = [comment_to_dict(r) for r in replies.get(c.id, [])]
        out.append(item)
    return out
