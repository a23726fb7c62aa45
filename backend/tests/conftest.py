from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

import subfinder.models  # noqa: F401
from subfinder.api.deps import get_notification_channel
from subfinder.core.exceptions import NotificationDeliveryError
from subfinder.db.base import Base
from subfinder.db.session import build_engine, build_store
from subfinder.main import app
from subfinder.models.notification_log import NotificationType
from subfinder.models.user import UserRole
from subfinder.schemas.organization import OrganizationCreate
from subfinder.schemas.school_class import ClassCreate
from subfinder.schemas.user import UserCreate
from subfinder.services import directory


class RecordingChannel:
    """Channel double: records deliveries, fails for user ids listed in ``failing``."""

    notification_type = NotificationType.desktop

    def __init__(self) -> None:
        self.delivered = []
        self.failing: dict[str, str] = {}

    def deliver(self, recipient, message) -> None:
        user_id = recipient.id if recipient is not None else None
        if user_id in self.failing:
            raise NotificationDeliveryError(self.failing[user_id])
        self.delivered.append((user_id, message))


@pytest.fixture()
def store():
    # One shared in-memory connection, so every thread sees the same database.
    engine = build_engine("sqlite+pysqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield build_store(engine, lock_timeout_seconds=5)
    engine.dispose()


@pytest.fixture()
def channel():
    return RecordingChannel()


@pytest.fixture()
def client(store, channel):
    app.state.store = store
    app.dependency_overrides[get_notification_channel] = lambda: channel

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    app.state.store = None


def _create_user(store, username, role, *, organization_id=None, first_name=None, last_name=None):
    return directory.create_user(
        store,
        UserCreate(
            username=username,
            password="password123",
            email=f"{username}@example.com",
            first_name=first_name or username.capitalize(),
            last_name=last_name or "Tester",
            role=role,
            organization_id=organization_id,
        ),
    )


@pytest.fixture()
def user_factory(store):
    def factory(username, role, **kwargs):
        return _create_user(store, username, role, **kwargs)

    return factory


@pytest.fixture()
def school(store):
    organization = directory.create_organization(store, OrganizationCreate(name="Lincoln Elementary"))
    math_class = directory.create_class(
        store,
        ClassCreate(name="5th Grade Math", organization_id=organization.id, subject="Mathematics"),
    )
    manager = _create_user(store, "manager", UserRole.org_manager, organization_id=organization.id)
    substitute = _create_user(store, "sub-alice", UserRole.substitute, first_name="Alice")
    other_substitute = _create_user(store, "sub-bob", UserRole.substitute, first_name="Bob")
    return SimpleNamespace(
        organization=organization,
        school_class=math_class,
        manager=manager,
        substitute=substitute,
        other_substitute=other_substitute,
    )
