# sinmungo/crud/attachment.py
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from sinmungo.models.attachment import Attachment
from sinmungo.models.issue import Issue


def get_attachment(db: Session, attachment_id: int) -> Optional[Attachment]:
    return db.query(Attachment).filter(Attachment.id == attachment_id).first()


def list_for_issue(db: Session, issue_id: int, approved_only: bool = True) -> List[Attachment]:
    q = db.query(Attachment).filter(Attachment.issue_id == issue_id)
    if approved_only:
        q = q.filter(Attachment.is_approved.is_(True))
    return q.order_by(Attachment.created_at.asc(), Attachment.id.asc()).all()


def list_by_uploader(db: Session, user_id: int) -> List[Attachment]:
    return (
        db.query(Attachment)
        .filter(Attachment.uploaded_by == user_id)
        .order_by(Attachment.created_at.desc(), Attachment.id.desc())
        .all()
    )


def list_pending(db: Session) -> List[Tuple[Attachment, str]]:
    """Unapproved attachments joined with their issue's title, newest first."""
    return (
        db.query(Attachment, Issue.title)
        .join(Issue, Issue.id == Attachment.issue_id)
        .filter(Attachment.is_approved.is_(False))
        .order_by(Attachment.created_at.desc(), Attachment.id.desc())
        .all()
    )


def list_expiring(db: Session, before: datetime) -> List[Attachment]:
    return db.query(Attachment).filter(Attachment.url_expires_at < before).all()
