"""Substitute request state machine.

A request starts ``open`` with no substitute. ``assign`` fills it,
``unassign`` reopens it and ``cancel`` ends it for good. Every change is a
single read-modify-write inside one store session, so two callers racing on
the same request are ordered and the loser sees the winner's state.
"""
from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from subfinder.core.exceptions import InvalidTransition, NotFoundError, ValidationError
from subfinder.db.store import Store
from subfinder.db.types import utc_now
from subfinder.models.school_class import SchoolClass
from subfinder.models.substitute_request import RequestEvent, RequestStatus, SubstituteRequest
from subfinder.models.user import User, UserRole
from subfinder.schemas.substitute_request import (
    SubstituteRequestCreate,
    SubstituteRequestOut,
    parse_time_to_minutes,
)

logger = logging.getLogger(__name__)

TRANSITIONS: dict[tuple[RequestStatus, RequestEvent], RequestStatus] = {
    (RequestStatus.open, RequestEvent.assign): RequestStatus.filled,
    (RequestStatus.filled, RequestEvent.unassign): RequestStatus.open,
    (RequestStatus.open, RequestEvent.cancel): RequestStatus.cancelled,
    (RequestStatus.filled, RequestEvent.cancel): RequestStatus.cancelled,
}


def _ordering():
    return (
        SubstituteRequest.date_needed.asc(),
        SubstituteRequest.start_time.asc(),
        SubstituteRequest.created_at.asc(),
        SubstituteRequest.id.asc(),
    )


def _require_substitute(db: Session, substitute_id: str | None) -> User:
    if not substitute_id:
        raise ValidationError("substitute_id is required to assign a request")
    substitute = db.get(User, substitute_id)
    if substitute is None:
        raise ValidationError(
            "Assigned substitute does not exist",
            details={"substitute_id": substitute_id},
        )
    if substitute.role != UserRole.substitute:
        raise ValidationError(
            "Assigned user is not a substitute",
            details={"substitute_id": substitute_id, "role": substitute.role.value},
        )
    if not substitute.is_active:
        raise ValidationError(
            "Assigned substitute is inactive",
            details={"substitute_id": substitute_id},
        )
    return substitute


def create_request(store: Store, payload: SubstituteRequestCreate, requester_id: str) -> SubstituteRequestOut:
    if parse_time_to_minutes(payload.start_time) >= parse_time_to_minutes(payload.end_time):
        raise ValidationError(
            "start_time must be earlier than end_time",
            details={"start_time": payload.start_time, "end_time": payload.end_time},
        )

    with store.session() as db:
        if db.get(SchoolClass, payload.class_id) is None:
            raise ValidationError("Class does not exist", details={"class_id": payload.class_id})
        if db.get(User, requester_id) is None:
            raise ValidationError("Requesting user does not exist", details={"requested_by": requester_id})

        now = utc_now()
        record = SubstituteRequest(
            class_id=payload.class_id,
            requested_by=requester_id,
            date_needed=payload.date_needed,
            start_time=payload.start_time,
            end_time=payload.end_time,
            reason=payload.reason,
            special_instructions=payload.special_instructions,
            status=RequestStatus.open,
            assigned_substitute_id=None,
            created_at=now,
            updated_at=now,
        )
        db.add(record)
        db.flush()
        created = SubstituteRequestOut.model_validate(record)

    logger.info("Substitute request %s created for class %s on %s", created.id, created.class_id, created.date_needed)
    return created


def transition_request(
    store: Store,
    request_id: str,
    event: RequestEvent,
    *,
    substitute_id: str | None = None,
) -> SubstituteRequestOut:
    with store.session() as db:
        record = db.get(SubstituteRequest, request_id)
        if record is None:
            raise NotFoundError("Substitute request", request_id)

        current = record.status
        target = TRANSITIONS.get((current, event))
        if target is None:
            raise InvalidTransition(request_id, current.value, event.value)

        if event == RequestEvent.assign:
            substitute = _require_substitute(db, substitute_id)
            record.assigned_substitute_id = substitute.id
        else:
            record.assigned_substitute_id = None

        record.status = target
        record.updated_at = utc_now()
        db.flush()
        updated = SubstituteRequestOut.model_validate(record)

    logger.info(
        "Substitute request %s: %s -> %s via %s",
        request_id,
        current.value,
        target.value,
        event.value,
    )
    return updated


def assign_substitute(store: Store, request_id: str, substitute_id: str) -> SubstituteRequestOut:
    return transition_request(store, request_id, RequestEvent.assign, substitute_id=substitute_id)


def unassign_substitute(store: Store, request_id: str) -> SubstituteRequestOut:
    return transition_request(store, request_id, RequestEvent.unassign)


def cancel_request(store: Store, request_id: str) -> SubstituteRequestOut:
    return transition_request(store, request_id, RequestEvent.cancel)


def get_request(store: Store, request_id: str) -> SubstituteRequestOut | None:
    with store.session() as db:
        record = db.get(SubstituteRequest, request_id)
        if record is None:
            return None
        return SubstituteRequestOut.model_validate(record)


def list_requests(store: Store, status: RequestStatus | None = None) -> list[SubstituteRequestOut]:
    query = select(SubstituteRequest).order_by(*_ordering())
    if status is not None:
        query = query.where(SubstituteRequest.status == status)
    with store.session() as db:
        return [SubstituteRequestOut.model_validate(item) for item in db.execute(query).scalars()]


def delete_request(store: Store, request_id: str) -> None:
    with store.session() as db:
        record = db.get(SubstituteRequest, request_id)
        if record is None:
            raise NotFoundError("Substitute request", request_id)
        db.delete(record)
    logger.info("Substitute request %s deleted", request_id)
