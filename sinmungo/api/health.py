# sinmungo/api/health.py
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from sinmungo.core.auth import get_db
from sinmungo.services.storage import LocalBlobStore, get_blob_store

router = APIRouter(tags=["health"])


@router.get("/healthz")
def healthz() -> dict:
    # Liveness: 200 as long as the process answers
    return {
        "ok": True,
        "service": "sinmungo",
        "status": "healthy",
        "ts": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/readyz")
def readyz(db: Session = Depends(get_db), store: LocalBlobStore = Depends(get_blob_store)):
    # Readiness: DB ping + latency, and the attachment root must be writable
    t0 = time.perf_counter()
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"ok": False, "db": "down", "error": str(e)},
            headers={"Cache-Control": "no-store"},
        )
    latency_ms = (time.perf_counter() - t0) * 1000.0
    storage_ok = store.root.is_dir()
    return JSONResponse(
        status_code=200 if storage_ok else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "ok": storage_ok,
            "db": "up",
            "db_latency_ms": round(latency_ms, 2),
            "storage": "up" if storage_ok else "down",
        },
        headers={"Cache-Control": "no-store"},
    )
