from datetime import date
import threading

import pytest

from subfinder.core.exceptions import InvalidTransition, NotFoundError, ValidationError
from subfinder.models.substitute_request import RequestEvent, RequestStatus
from subfinder.models.user import UserRole
from subfinder.schemas.substitute_request import SubstituteRequestCreate
from subfinder.schemas.user import UserUpdate
from subfinder.services import directory, request_lifecycle


def _payload(class_id, *, day="2025-03-10", start="08:30", end="15:00", **extra):
    return SubstituteRequestCreate(
        class_id=class_id,
        date_needed=day,
        start_time=start,
        end_time=end,
        **extra,
    )


def _assert_invariant(request):
    assert (request.assigned_substitute_id is not None) == (request.status == RequestStatus.filled)


def test_create_request_starts_open_without_substitute(store, school):
    created = request_lifecycle.create_request(
        store,
        _payload(school.school_class.id, reason="Conference", special_instructions="Worksheets on desk"),
        requester_id=school.manager.id,
    )

    assert created.status == RequestStatus.open
    assert created.assigned_substitute_id is None
    assert created.requested_by == school.manager.id
    assert created.date_needed == date(2025, 3, 10)

    fetched = request_lifecycle.get_request(store, created.id)
    assert fetched is not None
    assert fetched.model_dump(exclude={"created_at", "updated_at"}) == created.model_dump(
        exclude={"created_at", "updated_at"}
    )
    assert abs((fetched.created_at - created.created_at).total_seconds()) < 1


def test_create_request_rejects_unknown_class(store, school):
    with pytest.raises(ValidationError, match="Class does not exist"):
        request_lifecycle.create_request(store, _payload("missing-class"), requester_id=school.manager.id)
    assert request_lifecycle.list_requests(store) == []


def test_create_request_rejects_inverted_time_range(store, school):
    payload = SubstituteRequestCreate.model_construct(
        class_id=school.school_class.id,
        date_needed=date(2025, 3, 10),
        start_time="15:00",
        end_time="08:30",
        reason=None,
        special_instructions=None,
    )
    with pytest.raises(ValidationError, match="start_time must be earlier"):
        request_lifecycle.create_request(store, payload, requester_id=school.manager.id)


def test_schema_rejects_equal_start_and_end():
    with pytest.raises(ValueError):
        SubstituteRequestCreate(class_id="c", date_needed="2025-03-10", start_time="09:00", end_time="09:00")


def test_example_scenario_assign_then_cancel(store, school):
    request = request_lifecycle.create_request(store, _payload(school.school_class.id), requester_id=school.manager.id)
    assert request.status == RequestStatus.open

    filled = request_lifecycle.assign_substitute(store, request.id, school.substitute.id)
    assert filled.status == RequestStatus.filled
    assert filled.assigned_substitute_id == school.substitute.id
    assert filled.updated_at >= request.updated_at

    cancelled = request_lifecycle.cancel_request(store, request.id)
    assert cancelled.status == RequestStatus.cancelled
    assert cancelled.assigned_substitute_id is None


def test_unassign_reopens_request(store, school):
    request = request_lifecycle.create_request(store, _payload(school.school_class.id), requester_id=school.manager.id)
    request_lifecycle.assign_substitute(store, request.id, school.substitute.id)

    reopened = request_lifecycle.unassign_substitute(store, request.id)
    assert reopened.status == RequestStatus.open
    assert reopened.assigned_substitute_id is None

    refilled = request_lifecycle.assign_substitute(store, request.id, school.other_substitute.id)
    assert refilled.assigned_substitute_id == school.other_substitute.id


def test_assign_on_filled_request_is_rejected(store, school):
    request = request_lifecycle.create_request(store, _payload(school.school_class.id), requester_id=school.manager.id)
    request_lifecycle.assign_substitute(store, request.id, school.substitute.id)

    with pytest.raises(InvalidTransition):
        request_lifecycle.assign_substitute(store, request.id, school.other_substitute.id)

    current = request_lifecycle.get_request(store, request.id)
    assert current.assigned_substitute_id == school.substitute.id


def test_unassign_on_open_request_is_rejected(store, school):
    request = request_lifecycle.create_request(store, _payload(school.school_class.id), requester_id=school.manager.id)
    with pytest.raises(InvalidTransition) as excinfo:
        request_lifecycle.unassign_substitute(store, request.id)
    assert excinfo.value.status_code == 409
    assert excinfo.value.details == {"request_id": request.id, "status": "open", "event": "unassign"}


@pytest.mark.parametrize("event", list(RequestEvent))
def test_cancelled_is_terminal(store, school, event):
    request = request_lifecycle.create_request(store, _payload(school.school_class.id), requester_id=school.manager.id)
    cancelled = request_lifecycle.cancel_request(store, request.id)

    with pytest.raises(InvalidTransition):
        request_lifecycle.transition_request(store, request.id, event, substitute_id=school.substitute.id)

    after = request_lifecycle.get_request(store, request.id)
    assert after == cancelled


def test_cancel_filled_request_clears_substitute(store, school):
    request = request_lifecycle.create_request(store, _payload(school.school_class.id), requester_id=school.manager.id)
    request_lifecycle.assign_substitute(store, request.id, school.substitute.id)

    cancelled = request_lifecycle.cancel_request(store, request.id)
    assert cancelled.status == RequestStatus.cancelled
    assert cancelled.assigned_substitute_id is None


def test_assign_requires_active_substitute(store, school, user_factory):
    request = request_lifecycle.create_request(store, _payload(school.school_class.id), requester_id=school.manager.id)

    with pytest.raises(ValidationError, match="not a substitute"):
        request_lifecycle.assign_substitute(store, request.id, school.manager.id)

    with pytest.raises(ValidationError, match="does not exist"):
        request_lifecycle.assign_substitute(store, request.id, "ghost")

    with pytest.raises(ValidationError, match="required"):
        request_lifecycle.transition_request(store, request.id, RequestEvent.assign)

    retired = user_factory("sub-retired", UserRole.substitute)
    directory.update_user(store, retired.id, UserUpdate(is_active=False))
    with pytest.raises(ValidationError, match="inactive"):
        request_lifecycle.assign_substitute(store, request.id, retired.id)

    unchanged = request_lifecycle.get_request(store, request.id)
    assert unchanged.status == RequestStatus.open
    assert unchanged.assigned_substitute_id is None


def test_transition_unknown_request(store):
    with pytest.raises(NotFoundError):
        request_lifecycle.cancel_request(store, "missing")


def test_invariant_holds_across_a_sequence_of_operations(store, school):
    request = request_lifecycle.create_request(store, _payload(school.school_class.id), requester_id=school.manager.id)
    steps = [
        (RequestEvent.assign, school.substitute.id),
        (RequestEvent.unassign, None),
        (RequestEvent.assign, school.other_substitute.id),
        (RequestEvent.assign, school.substitute.id),
        (RequestEvent.unassign, None),
        (RequestEvent.unassign, None),
        (RequestEvent.cancel, None),
        (RequestEvent.assign, school.substitute.id),
    ]
    _assert_invariant(request)
    for event, substitute_id in steps:
        try:
            request_lifecycle.transition_request(store, request.id, event, substitute_id=substitute_id)
        except InvalidTransition:
            pass
        _assert_invariant(request_lifecycle.get_request(store, request.id))

    assert request_lifecycle.get_request(store, request.id).status == RequestStatus.cancelled


def test_list_requests_is_ordered_by_date_then_start_time(store, school):
    class_id = school.school_class.id
    requester = school.manager.id
    late = request_lifecycle.create_request(store, _payload(class_id, day="2025-03-12", start="08:00", end="09:00"), requester)
    afternoon = request_lifecycle.create_request(
        store, _payload(class_id, day="2025-03-10", start="13:00", end="15:00"), requester
    )
    morning = request_lifecycle.create_request(store, _payload(class_id, day="2025-03-10", start="08:30", end="12:00"), requester)
    early = request_lifecycle.create_request(store, _payload(class_id, day="2025-02-28", start="10:00", end="11:00"), requester)

    listed = [item.id for item in request_lifecycle.list_requests(store)]
    assert listed == [early.id, morning.id, afternoon.id, late.id]


def test_list_requests_by_status(store, school):
    class_id = school.school_class.id
    first = request_lifecycle.create_request(store, _payload(class_id, day="2025-03-10"), school.manager.id)
    second = request_lifecycle.create_request(store, _payload(class_id, day="2025-03-11"), school.manager.id)
    third = request_lifecycle.create_request(store, _payload(class_id, day="2025-03-12"), school.manager.id)
    request_lifecycle.assign_substitute(store, second.id, school.substitute.id)
    request_lifecycle.cancel_request(store, third.id)

    assert [item.id for item in request_lifecycle.list_requests(store, RequestStatus.open)] == [first.id]
    assert [item.id for item in request_lifecycle.list_requests(store, RequestStatus.filled)] == [second.id]
    assert [item.id for item in request_lifecycle.list_requests(store, RequestStatus.cancelled)] == [third.id]


def test_delete_request(store, school):
    request = request_lifecycle.create_request(store, _payload(school.school_class.id), requester_id=school.manager.id)
    request_lifecycle.delete_request(store, request.id)

    assert request_lifecycle.get_request(store, request.id) is None
    with pytest.raises(NotFoundError):
        request_lifecycle.delete_request(store, request.id)


def test_concurrent_assign_has_exactly_one_winner(store, school):
    request = request_lifecycle.create_request(store, _payload(school.school_class.id), requester_id=school.manager.id)
    barrier = threading.Barrier(2)
    results: dict[str, object] = {}

    def attempt(substitute_id: str) -> None:
        barrier.wait()
        try:
            results[substitute_id] = request_lifecycle.assign_substitute(store, request.id, substitute_id)
        except InvalidTransition as exc:
            results[substitute_id] = exc

    threads = [
        threading.Thread(target=attempt, args=(school.substitute.id,)),
        threading.Thread(target=attempt, args=(school.other_substitute.id,)),
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)

    winners = [key for key, value in results.items() if not isinstance(value, InvalidTransition)]
    losers = [key for key, value in results.items() if isinstance(value, InvalidTransition)]
    assert len(winners) == 1
    assert len(losers) == 1

    final = request_lifecycle.get_request(store, request.id)
    assert final.status == RequestStatus.filled
    assert final.assigned_substitute_id == winners[0]
