from __future__ import annotations

from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import sessionmaker

from subfinder.core.config import Settings
from subfinder.db.store import Store


def _is_sqlite(url: str) -> bool:
    return make_url(url).get_backend_name() == "sqlite"


def ensure_database_directory(url: str) -> Path | None:
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite":
        return None
    database = parsed.database
    if not database or database == ":memory:":
        return None
    directory = Path(database).expanduser().resolve().parent
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def build_engine(url: str, **kwargs) -> Engine:
    if _is_sqlite(url):
        connect_args = kwargs.pop("connect_args", {})
        connect_args.setdefault("check_same_thread", False)
        return create_engine(url, connect_args=connect_args, **kwargs)
    return create_engine(url, pool_pre_ping=True, **kwargs)


def build_store(engine: Engine, *, lock_timeout_seconds: float = 10.0) -> Store:
    factory = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
    return Store(factory, lock_timeout_seconds=lock_timeout_seconds)


def create_store(settings: Settings) -> Store:
    ensure_database_directory(settings.database_url)
    engine = build_engine(settings.database_url)
    return build_store(engine, lock_timeout_seconds=settings.store_lock_timeout_seconds)
