from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text

from subfinder.api.deps import get_store
from subfinder.core.config import get_settings
from subfinder.db.bootstrap import find_schema_gaps
from subfinder.db.store import Store
from subfinder.services.notification_hub import notification_hub

router = APIRouter()


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/health/live")
def health_live() -> dict:
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/health/ready")
def health_ready(store: Store = Depends(get_store)) -> JSONResponse:
    settings = get_settings()
    db_ok = True
    missing_tables: list[str] = []
    missing_columns: dict[str, list[str]] = {}
    db_error: str | None = None

    try:
        with store.session() as db:
            db.execute(text("SELECT 1"))
        missing_tables, missing_columns = find_schema_gaps(store)
    except Exception as exc:  # pragma: no cover - environment dependent
        db_ok = False
        db_error = str(exc)

    schema_ok = not missing_tables and not missing_columns
    ready = db_ok and schema_ok

    payload = {
        "status": "ok" if ready else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": {
            "ok": db_ok,
            "schema_ok": schema_ok,
            "missing_tables": missing_tables,
            "missing_columns": missing_columns,
            "error": db_error,
        },
        "notifications": {
            "channel": settings.notification_channel,
            "smtp_configured": settings.smtp_configured,
            "connected_users": len(notification_hub.connected_users()),
        },
    }
    return JSONResponse(status_code=200 if ready else 503, content=payload)
