from __future__ import annotations

import logging

from sqlalchemy import inspect

import subfinder.models  # noqa: F401
from subfinder.db.base import Base
from subfinder.db.store import Store

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "organizations": {"id", "name", "parent_organization_id", "created_at", "updated_at"},
    "classes": {"id", "name", "organization_id", "created_at", "updated_at"},
    "users": {"id", "username", "hashed_password", "role", "is_active"},
    "substitute_requests": {
        "id",
        "class_id",
        "requested_by",
        "date_needed",
        "start_time",
        "end_time",
        "status",
        "assigned_substitute_id",
        "updated_at",
    },
    "notifications_log": {"id", "user_id", "request_id", "notification_type", "sent_at", "status"},
    "settings": {"key", "value"},
}


def find_schema_gaps(store: Store) -> tuple[list[str], dict[str, list[str]]]:
    with store.engine.connect() as connection:
        inspector = inspect(connection)
        table_names = set(inspector.get_table_names())
        missing_tables = sorted(name for name in REQUIRED_COLUMNS if name not in table_names)
        missing_columns: dict[str, list[str]] = {}
        for table_name, required in REQUIRED_COLUMNS.items():
            if table_name not in table_names:
                continue
            existing = {item["name"] for item in inspector.get_columns(table_name)}
            missing = sorted(required - existing)
            if missing:
                missing_columns[table_name] = missing
    return missing_tables, missing_columns


def _assert_required_columns(store: Store) -> None:
    missing_tables, missing_columns = find_schema_gaps(store)
    if missing_tables:
        raise RuntimeError(f"Missing required tables: {', '.join(missing_tables)}")
    if missing_columns:
        flattened = [f"{table}.{column}" for table, columns in missing_columns.items() for column in columns]
        raise RuntimeError(f"Missing required columns: {', '.join(flattened)}")


def ensure_runtime_schema(store: Store) -> None:
    try:
        Base.metadata.create_all(bind=store.engine)
        _assert_required_columns(store)
    except Exception as exc:
        logger.exception("Runtime schema bootstrap failed")
        raise RuntimeError("Runtime schema bootstrap failed") from exc
