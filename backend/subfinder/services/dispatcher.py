"""Notification fan-out for substitute requests.

Each candidate is handled on its own: one bad recipient or channel failure
never stops delivery to the rest, and every attempt leaves one row in the
notification log. Deliveries run outside the store lock; each log row is
written in its own store session.
"""
from __future__ import annotations

from datetime import date
import logging
import uuid

from sqlalchemy import select

from subfinder.core.exceptions import AppError, NotFoundError, NotificationDeliveryError
from subfinder.db.store import Store
from subfinder.db.types import utc_now
from subfinder.models.notification_log import NotificationLog, NotificationStatus, NotificationType
from subfinder.models.school_class import SchoolClass
from subfinder.models.substitute_request import SubstituteRequest
from subfinder.models.user import User, UserRole
from subfinder.schemas.notification import NotificationLogOut
from subfinder.schemas.user import UserOut
from subfinder.services.notification_channels import NotificationChannel, OutboundNotification

logger = logging.getLogger(__name__)

NEW_REQUEST_TITLE = "New Substitute Request"


def coverage_message_body(class_name: str, date_needed: date | str) -> str:
    day = date_needed.isoformat() if isinstance(date_needed, date) else date_needed
    return f"Substitute needed for {class_name} on {day}"


def log_notification(
    store: Store,
    *,
    user_id: str,
    request_id: str,
    notification_type: NotificationType,
    status: NotificationStatus,
    error_message: str | None = None,
) -> str:
    with store.session() as db:
        record = NotificationLog(
            user_id=user_id,
            request_id=request_id,
            notification_type=notification_type,
            sent_at=utc_now(),
            status=status,
            error_message=error_message,
        )
        db.add(record)
        db.flush()
        return record.id


def list_notification_logs(store: Store, user_id: str | None = None) -> list[NotificationLogOut]:
    query = select(NotificationLog).order_by(NotificationLog.sent_at.desc(), NotificationLog.id.desc())
    if user_id:
        query = query.where(NotificationLog.user_id == user_id)
    with store.session() as db:
        return [NotificationLogOut.model_validate(item) for item in db.execute(query).scalars()]


def send_notification(
    channel: NotificationChannel,
    *,
    title: str,
    body: str,
    request_id: str | None = None,
    recipient: UserOut | None = None,
) -> str:
    message = OutboundNotification(
        notification_id=str(uuid.uuid4()),
        title=title,
        body=body,
        request_id=request_id,
        user_id=recipient.id if recipient is not None else None,
    )
    channel.deliver(recipient, message)
    return message.notification_id


def describe_request(store: Store, request_id: str) -> tuple[str, date]:
    """Class name and date of a stored request, for building the message."""
    with store.session() as db:
        request = db.get(SubstituteRequest, request_id)
        if request is None:
            raise NotFoundError("Substitute request", request_id)
        school_class = db.get(SchoolClass, request.class_id)
        class_name = school_class.name if school_class is not None else "an unknown class"
        return class_name, request.date_needed


def _ineligibility_reason(recipient: UserOut | None) -> str | None:
    if recipient is None:
        return "Recipient not found"
    if recipient.role != UserRole.substitute:
        return "Recipient is not a substitute"
    if not recipient.is_active:
        return "Recipient account is inactive"
    return None


def notify_candidates(
    store: Store,
    channel: NotificationChannel,
    *,
    request_id: str,
    class_name: str,
    date_needed: date | str,
    candidate_ids: list[str] | set[str] | tuple[str, ...],
) -> dict[str, NotificationStatus]:
    requested_ids = sorted({item.strip() for item in candidate_ids if item and item.strip()})

    with store.session() as db:
        if db.get(SubstituteRequest, request_id) is None:
            raise NotFoundError("Substitute request", request_id)
        recipients: dict[str, UserOut] = {}
        if requested_ids:
            rows = db.execute(select(User).where(User.id.in_(requested_ids))).scalars()
            recipients = {row.id: UserOut.model_validate(row) for row in rows}

    body = coverage_message_body(class_name, date_needed)
    outcomes: dict[str, NotificationStatus] = {}
    for candidate_id in requested_ids:
        recipient = recipients.get(candidate_id)
        error = _ineligibility_reason(recipient)
        if error is None:
            try:
                send_notification(
                    channel,
                    title=NEW_REQUEST_TITLE,
                    body=body,
                    request_id=request_id,
                    recipient=recipient,
                )
            except NotificationDeliveryError as exc:
                error = exc.message
            except Exception as exc:  # pragma: no cover - third-party channel behavior
                logger.warning("Notification channel raised for user %s", candidate_id, exc_info=True)
                error = str(exc) or exc.__class__.__name__

        if error is None:
            outcome = NotificationStatus.sent
        else:
            outcome = NotificationStatus.failed
            logger.warning("Failed to notify user %s about request %s: %s", candidate_id, request_id, error)
        outcomes[candidate_id] = outcome

        try:
            log_notification(
                store,
                user_id=candidate_id,
                request_id=request_id,
                notification_type=channel.notification_type,
                status=outcome,
                error_message=error,
            )
        except AppError as exc:
            logger.warning(
                "Failed to log %s notification for user %s on request %s: %s",
                outcome.value,
                candidate_id,
                request_id,
                exc.message,
            )

    sent = sum(1 for item in outcomes.values() if item == NotificationStatus.sent)
    logger.info("Request %s: notified %d of %d candidate(s)", request_id, sent, len(outcomes))
    return outcomes
