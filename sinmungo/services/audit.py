# sinmungo/services/audit.py
from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

from fastapi import Request
from sqlalchemy import Column, DateTime, Integer, String, Table, Text, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from sinmungo.db.base import Base

log = logging.getLogger("sinmungo.audit")

# Kept as a Core table: rows are written fire-and-forget and never mapped to objects.
audit_logs = Table(
    "audit_logs",
    Base.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, nullable=True, index=True),
    Column("action", String(64), nullable=False, index=True),
    Column("entity_type", String(32), nullable=True),
    Column("entity_id", Integer, nullable=True),
    Column("meta", Text, nullable=True),
    Column("ip_address", String(64), nullable=True),
    Column("created_at", DateTime, nullable=False, server_default=func.now()),
)


# -----------------------------
# Helpers
# -----------------------------
def ip_from_request(request: Optional[Request]) -> Optional[str]:
    """
    Best-effort client IP extraction compatible with proxies.
    Order:
      - X-Forwarded-For (first in the list)
      - X-Real-IP
      - request.client.host
    """
    if request is None:
        return None

    xff = request.headers.get("x-forwarded-for")
    if xff:
        first = xff.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()

    client = getattr(request, "client", None)
    return getattr(client, "host", None)


def _dumps_meta(meta: Optional[Dict[str, Any]]) -> str:
    # default=str covers dates and other non-JSON values
    return json.dumps(meta or {}, ensure_ascii=False, separators=(",", ":"), default=str)


# -----------------------------
# Core API
# -----------------------------
def audit_log(
    db: Session,
    *,
    user_id: Optional[int],
    action: str,
    entity_type: Optional[str],
    entity_id: Optional[int],
    meta: Optional[Dict[str, Any]] = None,
    ip: Optional[str] = None,
) -> None:
    """
    Inserts an audit record in its own commit.

    Best-effort: a failing insert is logged and rolled back, never raised, so callers
    must only invoke it after their own unit of work has been committed.
    """
    try:
        db.execute(
            audit_logs.insert().values(
                user_id=user_id,
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                meta=_dumps_meta(meta),
                ip_address=ip,
            )
        )
        db.commit()
    except SQLAlchemyError:
        log.warning("audit insert failed action=%s entity=%s:%s", action, entity_type, entity_id, exc_info=True)
        db.rollback()


def list_audit_entries(
    db: Session,
    *,
    entity_type: Optional[str] = None,
    entity_id: Optional[int] = None,
    action: Optional[str] = None,
    user_id: Optional[int] = None,
    limit: int = 100,
) -> List[Dict[str, Any]]:
    """Newest first; meta comes back parsed."""
    q = select(audit_logs)
    if entity_type:
        q = q.where(audit_logs.c.entity_type == entity_type)
    if entity_id is not None:
        q = q.where(audit_logs.c.entity_id == entity_id)
    if action:
        q = q.where(audit_logs.c.action == action)
    if user_id is not None:
        q = q.where(audit_logs.c.user_id == user_id)
    q = q.order_by(audit_logs.c.id.desc()).limit(limit)

    out: List[Dict[str, Any]] = []
    for row in db.execute(q).mappings():
        item = dict(row)
        item["meta"] = json.loads(item["meta"]) if item.get("meta") else {}
        out.append(item)
    return out
