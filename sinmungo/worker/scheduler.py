# sinmungo/worker/scheduler.py
from __future__ import annotations

import logging
import os

try:
    from tzlocal import get_localzone  # optional dependency
except ImportError:
    get_localzone = None  # type: ignore

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from sinmungo.db.session import SessionLocal
from sinmungo.services.storage import get_blob_store
from sinmungo.services.uploads import renew_expiring_attachment_urls

log = logging.getLogger("sinmungo.scheduler")


def _with_db(fn, **kwargs) -> int:
    """Run a job function with a fresh DB session; returns its int result, 0 on failure."""
    db = SessionLocal()
    try:
        return int(fn(db, **kwargs) or 0)
    except Exception:
        db.rollback()
        log.exception("scheduled job %s failed", getattr(fn, "__name__", fn))
        return 0
    finally:
        db.close()


def run_daily_maintenance() -> dict:
    """
    Daily pipeline:
      - re-sign attachment references expiring within ATTACHMENT_URL_RENEW_DAYS (default 30)
    """
    within_days = int(os.getenv("ATTACHMENT_URL_RENEW_DAYS", "30"))
    renewed = _with_db(
        renew_expiring_attachment_urls,
        store=get_blob_store(),
        within_days=within_days,
    )
    log.info("daily maintenance done renewed_urls=%s", renewed)
    return {"renewed_urls": renewed}


def make_scheduler() -> BackgroundScheduler:
    """
    Create and return a BackgroundScheduler instance configured from env:
      - APP_TIMEZONE           (default: system tz via tzlocal or 'UTC')
      - APP_SCHEDULER_HOUR     (default: 4)
      - APP_SCHEDULER_MINUTE   (default: 0)
    """
    tzname = os.getenv("APP_TIMEZONE")
    if not tzname:
        tzname = str(get_localzone()) if get_localzone else "UTC"

    hour = int(os.getenv("APP_SCHEDULER_HOUR", "4"))
    minute = int(os.getenv("APP_SCHEDULER_MINUTE", "0"))

    sched = BackgroundScheduler(timezone=tzname)
    sched.add_job(
        run_daily_maintenance,
        CronTrigger(hour=hour, minute=minute),
        id="daily_maintenance",
        replace_existing=True,
    )
    return sched
