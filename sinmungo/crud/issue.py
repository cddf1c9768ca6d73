# sinmungo/crud/issue.py
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from sinmungo.models.issue import Issue, IssueAgency
from sinmungo.models.support import IssueSupport
from sinmungo.schemas.issue import IssueCreate

TRENDING_WINDOW_DAYS = 7
RANKING_WINDOWS = {"weekly": 7, "monthly": 30, "all": None}


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def get_issue(db: Session, issue_id: int) -> Optional[Issue]:
    return db.query(Issue).filter(Issue.id == issue_id).first()


def create_issue(db: Session, payload: IssueCreate, author_id: int) -> Issue:
    obj = Issue(
        author_id=author_id,
        title=payload.title,
        summary=payload.summary,
        enforcement_type=payload.enforcement_type,
        field_category=payload.field_category,
        region=payload.region,
        occurred_at=payload.occurred_at,
        content_overview=payload.content_overview,
        content_problem=payload.content_problem,
        content_common_sense=payload.content_common_sense,
        content_comparison=payload.content_comparison,
        content_status=payload.content_status,
        request_types=list(payload.request_types),
        # Waits in the moderation queue until an admin approves it
        is_published=False,
        support_count=0,
    )
    obj.agencies = [
        IssueAgency(agency_type=a.agency_type, agency_name=a.agency_name)
        for a in payload.agencies
    ]
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


def list_published_issues(
    db: Session,
    enforcement_type: Optional[str] = None,
    field_category: Optional[str] = None,
    region: Optional[str] = None,
    status: Optional[str] = None,
    q: Optional[str] = None,
    sort: str = "latest",
    page: int = 1,
    per_page: int = 12,
) -> Tuple[List[Issue], int]:
    query = db.query(Issue).filter(Issue.is_published.is_(True))

    if enforcement_type:
        query = query.filter(Issue.enforcement_type == enforcement_type)
    if field_category:
        query = query.filter(Issue.field_category == field_category)
    if region:
        query = query.filter(Issue.region == region)
    if status:
        query = query.filter(Issue.status == status)
    if q:
        # Case-insensitive partial match on title/summary; % and _ in the term are literal
        like_value = f"%{_escape_like(q.strip().lower())}%"
        query = query.filter(
            func.lower(Issue.title).like(like_value, escape="\\")
            | func.lower(Issue.summary).like(like_value, escape="\\")
        )

    total = query.count()

    if sort == "support_count":
        query = query.order_by(Issue.support_count.desc(), Issue.created_at.desc(), Issue.id.desc())
    elif sort == "trending":
        since = datetime.utcnow() - timedelta(days=TRENDING_WINDOW_DAYS)
        recent = (
            db.query(IssueSupport.issue_id, func.count(IssueSupport.id).label("recent"))
            .filter(IssueSupport.created_at >= since)
            .group_by(IssueSupport.issue_id)
            .subquery()
        )
        query = query.outerjoin(recent, recent.c.issue_id == Issue.id).order_by(
            func.coalesce(recent.c.recent, 0).desc(),
            Issue.support_count.desc(),
            Issue.created_at.desc(),
            Issue.id.desc(),
        )
    else:
        query = query.order_by(Issue.created_at.desc(), Issue.id.desc())

    rows = query.offset((page - 1) * per_page).limit(per_page).all()
    return rows, total


def list_ranking(db: Session, period: str = "weekly", limit: int = 20) -> List[Issue]:
    """
    Most supported published issues among those published within the period.
    """
    query = db.query(Issue).filter(Issue.is_published.is_(True))
    days = RANKING_WINDOWS.get(period)
    if days is not None:
        query = query.filter(Issue.published_at >= datetime.utcnow() - timedelta(days=days))
    return (
        query.order_by(Issue.support_count.desc(), Issue.published_at.desc(), Issue.id.asc())
        .limit(limit)
        .all()
    )


def list_pending_issues(db: Session) -> List[Issue]:
    return (
        db.query(Issue)
        .options(selectinload(Issue.agencies))
        .filter(Issue.is_published.is_(False))
        .order_by(Issue.created_at.desc(), Issue.id.desc())
        .all()
    )


def list_all_issues(db: Session, page: int = 1, per_page: int = 30) -> Tuple[List[Issue], int]:
    query = db.query(Issue)
    total = query.count()
    rows = (
        query.order_by(Issue.created_at.desc(), Issue.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )
    return rows, total
