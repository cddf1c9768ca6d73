# sinmungo/api/v1/comments.py
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from sinmungo.core.auth import get_current_user, get_current_user_optional, get_db
from sinmungo.models.user import User
from sinmungo.schemas.comment import CommentCreate, CommentOut
from sinmungo.schemas.common import CommentSort
from sinmungo.schemas.issue import SupportResult
from sinmungo.services import comments as comment_service
from sinmungo.services.issues import get_visible_issue
from sinmungo.services.support import toggle_comment_support

router = APIRouter(tags=["comments"])


@router.get("/issues/{issue_id}/comments", response_model=List[CommentOut])
def list_comments(
    issue_id: int,
    sort: CommentSort = Query("support_count"),
    db: Session = Depends(get_db),
    viewer: Optional[User] = Depends(get_current_user_optional),
):
    """Top-level comments (pinned first) with their direct replies. Hidden ones are left out."""
    get_visible_issue(db, issue_id, viewer)
    return comment_service.list_comments(db, issue_id, sort=sort)


@router.post(
    "/issues/{issue_id}/comments",
    response_model=CommentOut,
    status_code=status.HTTP_201_CREATED,
)
def create_comment(
    issue_id: int,
    payload: CommentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    obj = comment_service.create_comment(
        db,
        issue_id=issue_id,
        actor=current_user,
        content=payload.content,
        type=payload.type,
        parent_id=payload.parent_id,
    )
    return comment_service.comment_to_dict(obj)


@router.post("/comments/{comment_id}/support", response_model=SupportResult)
def toggle_support(
    comment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    supported, count = toggle_comment_support(db, comment_id, actor=current_user)
    return SupportResult(supported=supported, support_count=count)
