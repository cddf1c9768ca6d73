# sinmungo/crud/report.py
from typing import List, Optional

from sqlalchemy.orm import Session

from sinmungo.models.report import Report


def get_report(db: Session, report_id: int) -> Optional[Report]:
    return db.query(Report).filter(Report.id == report_id).first()


def create_report(db: Session, *, issue_id: int, reporter_id: int, reason: str) -> Report:
    obj = Report(issue_id=issue_id, reporter_id=reporter_id, reason=reason, status="검토중")
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


def list_by_status(db: Session, status: str = "검토중") -> List[Report]:
    return (
        db.query(Report)
        .filter(Report.status == status)
        .order_by(Report.created_at.desc(), Report.id.desc())
        .all()
    )
