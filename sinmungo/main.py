# sinmungo/main.py
from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import find_dotenv, load_dotenv
from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi

# ---------------------------
# Env loading (root .env first, then sinmungo/.env as fallback)
# ---------------------------
load_dotenv(find_dotenv(usecwd=True))
load_dotenv(Path(__file__).resolve().parent / ".env", override=False)

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
log = logging.getLogger("sinmungo")

# --- DB engine and models (models must be imported BEFORE create_all) ---
from sinmungo.db.session import engine
from sinmungo.models import Base
from sinmungo.services import audit  # noqa: F401  registers audit_logs on Base.metadata

from sinmungo.core.errors import register_exception_handlers
from sinmungo.middleware.request_logging import RequestLoggingMiddleware
from sinmungo.worker.scheduler import make_scheduler

# ---------------------------
# ROUTERS
# ---------------------------
from sinmungo.api import health
from sinmungo.api.v1 import admin, attachments, auth, comments, issues

# ---------------------------
# CREATE TABLES (dev-only; guard with env, use alembic elsewhere)
# ---------------------------
ENABLE_CREATE_ALL = os.getenv("ENABLE_CREATE_ALL", "1") == "1"

if ENABLE_CREATE_ALL:
    Base.metadata.create_all(bind=engine)

# ---------------------------
# APP
# ---------------------------
app = FastAPI(title="Sinmungo")

register_exception_handlers(app)
app.add_middleware(RequestLoggingMiddleware)

# ---------------------------
# ROUTER MOUNT
# ---------------------------
app.include_router(auth.router, prefix="/api/v1", tags=["auth"])
app.include_router(issues.router, prefix="/api/v1")
app.include_router(comments.router, prefix="/api/v1")
app.include_router(attachments.router, prefix="/api/v1")
app.include_router(admin.router, prefix="/api/v1")
app.include_router(health.router, prefix="/api")


# ---------------------------
# Scheduler (daily signed-URL renewal)
# ---------------------------
@app.on_event("startup")
def _start_scheduler():
    # Enable with ENABLE_SCHEDULER=1 (default 1). Time configured in worker/scheduler.py via env.
    app.state.scheduler = None
    if os.getenv("ENABLE_SCHEDULER", "1") != "1":
        return
    try:
        app.state.scheduler = make_scheduler()
        app.state.scheduler.start()
    except Exception:
        # keep API running if scheduler fails
        log.exception("scheduler failed to start")
        app.state.scheduler = None


@app.on_event("shutdown")
def _stop_scheduler():
    sched = getattr(app.state, "scheduler", None)
    if sched:
        sched.shutdown(wait=False)


# ---------------------------
# OpenAPI (dedupe operationId)
# ---------------------------
def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema

    openapi_schema = get_openapi(
        title="Sinmungo",
        version="1.0.0",
        description="Citizen reports of questionable law enforcement: moderation, status tracking and public debate",
        routes=app.routes,
    )

    openapi_schema.setdefault("components", {}).setdefault("securitySchemes", {})
    openapi_schema["components"]["securitySchemes"]["OAuth2PasswordBearer"] = {
        "type": "oauth2",
        "flows": {"password": {"tokenUrl": "/api/v1/login", "scopes": {}}},
    }

    # Same handler name in two routers (e.g. toggle_support) would clash
    seen = set()
    for path, methods in openapi_schema.get("paths", {}).items():
        for method, operation in methods.items():
            op_id = operation.get("operationId")
            if not op_id:
                continue
            if op_id in seen:
                tag = (operation.get("tags") or [""])[0]
                new_id = f"{op_id}_{tag}_{method.lower()}"
                n = 2
                while new_id in seen:
                    new_id = f"{op_id}_{tag}_{method.lower()}_{n}"
                    n += 1
                operation["operationId"] = new_id
                op_id = new_id
            seen.add(op_id)

    app.openapi_schema = openapi_schema
    return app.openapi_schema


app.openapi = custom_openapi
