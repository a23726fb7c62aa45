from __future__ import annotations

from datetime import datetime, timezone
from functools import partial
import smtplib

import anyio
import pytest

from subfinder.core.config import Settings
from subfinder.core.exceptions import NotificationDeliveryError
from subfinder.models.notification_log import NotificationStatus, NotificationType
from subfinder.models.user import UserRole
from subfinder.schemas.substitute_request import SubstituteRequestCreate
from subfinder.schemas.user import UserOut
from subfinder.services import dispatcher, notification_channels, request_lifecycle
from subfinder.services.notification_channels import (
    EmailChannel,
    OutboundNotification,
    RealtimeChannel,
    build_channel,
)
from subfinder.services.notification_hub import NotificationHub


def _settings(**overrides):
    defaults = dict(
        _env_file=None,
        notification_channel="email",
        smtp_host="smtp.primary.test",
        smtp_port=587,
        smtp_username="mailer",
        smtp_password="secret",
        smtp_from_email="noreply@example.com",
        smtp_use_tls=True,
        smtp_use_ssl=False,
        smtp_timeout_seconds=5,
    )
    defaults.update(overrides)
    return Settings(**defaults)


def _recipient(**overrides):
    now = datetime.now(timezone.utc)
    values = dict(
        id="user-1",
        username="sub-alice",
        email="alice@example.com",
        first_name="Alice",
        last_name="Tester",
        role=UserRole.substitute,
        organization_id=None,
        is_active=True,
        created_at=now,
        updated_at=now,
    )
    values.update(overrides)
    return UserOut(**values)


MESSAGE = OutboundNotification(
    notification_id="n-1",
    title="New Substitute Request",
    body="Substitute needed for 5th Grade Math on 2025-03-10",
    request_id="r-1",
    user_id="user-1",
)


class FakeSMTP:
    sent: list = []
    fail_with: Exception | None = None

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.logged_in = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False

    def starttls(self, context=None):
        return None

    def login(self, username, password):
        self.logged_in = username

    def send_message(self, message):
        if FakeSMTP.fail_with is not None:
            raise FakeSMTP.fail_with
        FakeSMTP.sent.append((self.host, self.logged_in, message))


@pytest.fixture()
def fake_smtp(monkeypatch):
    FakeSMTP.sent = []
    FakeSMTP.fail_with = None
    monkeypatch.setattr(notification_channels.smtplib, "SMTP", FakeSMTP)
    return FakeSMTP


def test_build_channel_follows_settings():
    assert isinstance(build_channel(_settings()), EmailChannel)
    assert isinstance(build_channel(_settings(notification_channel="desktop")), RealtimeChannel)


def test_email_channel_requires_smtp_configuration():
    channel = EmailChannel(_settings(smtp_host=None))

    with pytest.raises(NotificationDeliveryError, match="SMTP is not configured"):
        channel.deliver(_recipient(), MESSAGE)


def test_email_channel_sends_message(fake_smtp):
    channel = EmailChannel(_settings())
    assert channel.notification_type == NotificationType.email

    channel.deliver(_recipient(), MESSAGE)

    assert len(fake_smtp.sent) == 1
    host, username, message = fake_smtp.sent[0]
    assert host == "smtp.primary.test"
    assert username == "mailer"
    assert message["To"] == "alice@example.com"
    assert message["Subject"] == "Substitute Finder: New Substitute Request"
    assert "Substitute needed for 5th Grade Math" in message.get_content()


def test_email_channel_needs_a_recipient_address(fake_smtp):
    with pytest.raises(NotificationDeliveryError, match="no email address"):
        EmailChannel(_settings()).deliver(None, MESSAGE)
    assert fake_smtp.sent == []


def test_email_channel_maps_smtp_failures(fake_smtp):
    fake_smtp.fail_with = smtplib.SMTPAuthenticationError(535, b"bad credentials")
    with pytest.raises(NotificationDeliveryError, match="SMTP authentication failed"):
        EmailChannel(_settings()).deliver(_recipient(), MESSAGE)

    fake_smtp.fail_with = ConnectionRefusedError("connection refused")
    with pytest.raises(NotificationDeliveryError, match="SMTP delivery failed"):
        EmailChannel(_settings()).deliver(_recipient(), MESSAGE)


def test_realtime_channel_rejects_inactive_recipient():
    with pytest.raises(NotificationDeliveryError, match="inactive"):
        RealtimeChannel(NotificationHub()).deliver(_recipient(is_active=False), MESSAGE)


def test_realtime_channel_outside_server_is_a_failed_delivery():
    with pytest.raises(NotificationDeliveryError, match="unavailable outside the server"):
        RealtimeChannel(NotificationHub()).deliver(_recipient(), MESSAGE)


class FakeWebSocket:
    def __init__(self, broken=False):
        self.accepted = False
        self.broken = broken
        self.received: list[dict] = []

    async def accept(self):
        self.accepted = True

    async def send_json(self, payload):
        if self.broken:
            raise RuntimeError("socket closed")
        self.received.append(payload)


def test_hub_publishes_to_connected_user_and_drops_stale_sockets():
    hub = NotificationHub()
    live = FakeWebSocket()
    stale = FakeWebSocket(broken=True)
    other = FakeWebSocket()

    async def scenario():
        await hub.connect("user-1", live)
        await hub.connect("user-1", stale)
        await hub.connect("user-2", other)
        first = await hub.publish("user-1", {"event": "ping"})
        second = await hub.publish("user-1", {"event": "ping"})
        everyone = await hub.broadcast({"event": "all"})
        await hub.disconnect("user-2", other)
        nobody = await hub.publish("user-2", {"event": "ping"})
        return first, second, everyone, nobody

    first, second, everyone, nobody = anyio.run(scenario)

    assert live.accepted
    assert hub.connected_users() == ["user-1"]
    assert (first, second, everyone, nobody) == (1, 1, 2, 0)
    assert live.received == [{"event": "ping"}, {"event": "ping"}, {"event": "all"}]
    assert other.received == [{"event": "all"}]


def test_realtime_channel_requires_an_open_websocket():
    hub = NotificationHub()
    channel = RealtimeChannel(hub)
    online = FakeWebSocket()

    async def scenario():
        await hub.connect("user-1", online)
        await anyio.to_thread.run_sync(channel.deliver, _recipient(), MESSAGE)
        with pytest.raises(NotificationDeliveryError, match="Recipient is not connected"):
            await anyio.to_thread.run_sync(channel.deliver, _recipient(id="user-2"), MESSAGE)

    anyio.run(scenario)

    assert [item["notification"]["id"] for item in online.received] == ["n-1"]


def test_offline_recipient_is_logged_failed(store, school):
    hub = NotificationHub()
    channel = RealtimeChannel(hub)
    alice = school.substitute.id
    bob = school.other_substitute.id
    request = request_lifecycle.create_request(
        store,
        SubstituteRequestCreate(
            class_id=school.school_class.id,
            date_needed="2025-03-10",
            start_time="08:30",
            end_time="15:00",
        ),
        requester_id=school.manager.id,
    )
    bob_socket = FakeWebSocket()
    notify = partial(
        dispatcher.notify_candidates,
        store,
        channel,
        request_id=request.id,
        class_name="5th Grade Math",
        date_needed="2025-03-10",
        candidate_ids=[alice, bob],
    )

    async def scenario():
        await hub.connect(bob, bob_socket)
        return await anyio.to_thread.run_sync(notify)

    outcomes = anyio.run(scenario)

    assert outcomes == {alice: NotificationStatus.failed, bob: NotificationStatus.sent}
    assert len(bob_socket.received) == 1
    logs = {item.user_id: item for item in dispatcher.list_notification_logs(store)}
    assert logs[alice].status == NotificationStatus.failed
    assert logs[alice].error_message == "Recipient is not connected"
    assert logs[bob].status == NotificationStatus.sent
