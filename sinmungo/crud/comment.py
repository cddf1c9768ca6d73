# sinmungo/crud/comment.py
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from sinmungo.models.comment import Comment


def get_comment(db: Session, comment_id: int) -> Optional[Comment]:
    return db.query(Comment).filter(Comment.id == comment_id).first()


def create_comment(
    db: Session,
    *,
    issue_id: int,
    user_id: int,
    content: str,
    type: str,
    parent_id: Optional[int] = None,
) -> Comment:
    obj = Comment(
        issue_id=issue_id,
        user_id=user_id,
        parent_id=parent_id,
        type=type,
        content=content,
        support_count=0,
    )
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


def list_top_level(db: Session, issue_id: int, sort: str = "support_count") -> List[Comment]:
    """
    Visible top-level comments. Pinned first, then by the requested order;
    ties fall back to insertion order.
    """
    q = db.query(Comment).filter(
        Comment.issue_id == issue_id,
        Comment.parent_id.is_(None),
        Comment.is_hidden.is_(False),
    )
    if sort == "latest":
        primary = Comment.created_at.desc()
    else:
        primary = Comment.support_count.desc()
    return q.order_by(Comment.is_pinned.desc(), primary, Comment.id.asc()).all()


def list_replies(db: Session, parent_ids: List[int]) -> Dict[int, List[Comment]]:
    """Visible direct replies of the given comments, oldest first, grouped by parent."""
    out: Dict[int, List[Comment]] = {pid: [] for pid in parent_ids}
    if not parent_ids:
        return out
    rows = (
        db.query(Comment)
        .filter(Comment.parent_id.in_(parent_ids), Comment.is_hidden.is_(False))
        .order_by(Comment.created_at.asc(), Comment.id.asc())
        .all()
    )
    for r in rows:
        out[r.parent_id].append(r)
    return out


def set_hidden(db: Session, obj: Comment, hidden: bool = True) -> Comment:
    obj.is_hidden = hidden
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


def set_pinned(db: Session, obj: Comment, pinned: bool) -> Comment:
    obj.is_pinned = pinned
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj
