from pathlib import Path

import pytest
from sqlalchemy import select, text
from sqlalchemy.pool import StaticPool

from subfinder.core.config import Settings
from subfinder.db.bootstrap import ensure_runtime_schema, find_schema_gaps
from subfinder.db.seed import seed_demo_data
from subfinder.db.session import build_engine, build_store, ensure_database_directory
from subfinder.models.organization import Organization
from subfinder.models.school_class import SchoolClass
from subfinder.models.user import User, UserRole
from subfinder.services import directory


@pytest.fixture()
def empty_store():
    engine = build_engine("sqlite+pysqlite://", poolclass=StaticPool)
    yield build_store(engine, lock_timeout_seconds=5)
    engine.dispose()


def test_runtime_schema_creates_missing_tables(empty_store):
    missing_tables, _ = find_schema_gaps(empty_store)
    assert "substitute_requests" in missing_tables

    ensure_runtime_schema(empty_store)

    assert find_schema_gaps(empty_store) == ([], {})


def test_runtime_schema_fails_on_incompatible_table(empty_store):
    with empty_store.engine.begin() as connection:
        connection.execute(text("CREATE TABLE users (id VARCHAR(36) PRIMARY KEY, username VARCHAR(100))"))

    with pytest.raises(RuntimeError, match="Runtime schema bootstrap failed") as excinfo:
        ensure_runtime_schema(empty_store)

    assert "users.hashed_password" in str(excinfo.value.__cause__)


def test_seed_demo_data_is_idempotent(store):
    assert seed_demo_data(store) == "Database seeded successfully"
    assert seed_demo_data(store) == "Database already seeded"

    with store.session() as db:
        assert len(db.execute(select(Organization)).scalars().all()) == 1
        assert len(db.execute(select(User)).scalars().all()) == 3
        classes = db.execute(select(SchoolClass)).scalars().all()
    assert [item.name for item in classes] == ["5th Grade Math"]

    admin = directory.authenticate(store, "admin", "admin-password")
    assert admin.role == UserRole.admin


def test_ensure_database_directory_creates_parent(tmp_path):
    target = tmp_path / "nested" / "data" / "database.db"

    created = ensure_database_directory(f"sqlite:///{target.as_posix()}")

    assert created == target.parent.resolve()
    assert target.parent.is_dir()
    assert ensure_database_directory("sqlite+pysqlite://") is None
    assert ensure_database_directory("postgresql://db.internal/subfinder") is None


def test_default_database_url_lives_in_data_dir(tmp_path):
    settings = Settings(_env_file=None, data_dir=tmp_path)

    assert settings.database_path == tmp_path / "database.db"
    assert settings.database_url == f"sqlite:///{(tmp_path / 'database.db').as_posix()}"
    assert settings.notification_channel == "desktop"
    assert not settings.smtp_configured


def test_explicit_database_url_wins(tmp_path):
    settings = Settings(_env_file=None, data_dir=tmp_path, database_url="sqlite:///elsewhere.db")
    assert settings.database_url == "sqlite:///elsewhere.db"


def test_settings_read_prefixed_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("SUBFINDER_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("SUBFINDER_NOTIFICATION_CHANNEL", "email")
    monkeypatch.setenv("SUBFINDER_SMTP_HOST", "smtp.example.com")
    monkeypatch.setenv("SUBFINDER_SMTP_FROM_EMAIL", "noreply@example.com")

    settings = Settings(_env_file=None)

    assert settings.data_dir == Path(str(tmp_path))
    assert settings.notification_channel == "email"
    assert settings.smtp_configured


def test_cors_origins_accept_comma_separated_values():
    settings = Settings(_env_file=None, cors_origins="http://a.example, http://b.example")
    assert settings.cors_origins == ["http://a.example", "http://b.example"]
