from fastapi import APIRouter, Depends, Query, Response, status

from subfinder.api.deps import get_current_user, get_notification_channel, get_store
from subfinder.core.exceptions import NotFoundError
from subfinder.db.store import Store
from subfinder.models.substitute_request import RequestStatus
from subfinder.schemas.notification import NotifyCandidatesOut, NotifyCandidatesRequest
from subfinder.schemas.substitute_request import (
    RequestTransition,
    SubstituteRequestCreate,
    SubstituteRequestOut,
)
from subfinder.schemas.user import UserOut
from subfinder.services import dispatcher, request_lifecycle
from subfinder.services.notification_channels import NotificationChannel

router = APIRouter()


@router.post("", response_model=SubstituteRequestOut, status_code=status.HTTP_201_CREATED)
def create_request(
    payload: SubstituteRequestCreate,
    current_user: UserOut = Depends(get_current_user),
    store: Store = Depends(get_store),
) -> SubstituteRequestOut:
    return request_lifecycle.create_request(store, payload, requester_id=current_user.id)


@router.get("", response_model=list[SubstituteRequestOut], dependencies=[Depends(get_current_user)])
def list_requests(
    status_filter: RequestStatus | None = Query(default=None, alias="status"),
    store: Store = Depends(get_store),
) -> list[SubstituteRequestOut]:
    return request_lifecycle.list_requests(store, status=status_filter)


@router.get("/{request_id}", response_model=SubstituteRequestOut, dependencies=[Depends(get_current_user)])
def get_request(request_id: str, store: Store = Depends(get_store)) -> SubstituteRequestOut:
    request = request_lifecycle.get_request(store, request_id)
    if request is None:
        raise NotFoundError("Substitute request", request_id)
    return request


@router.post(
    "/{request_id}/transitions",
    response_model=SubstituteRequestOut,
    dependencies=[Depends(get_current_user)],
)
def transition_request(
    request_id: str,
    payload: RequestTransition,
    store: Store = Depends(get_store),
) -> SubstituteRequestOut:
    return request_lifecycle.transition_request(
        store,
        request_id,
        payload.event,
        substitute_id=payload.substitute_id,
    )


@router.delete("/{request_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(get_current_user)])
def delete_request(request_id: str, store: Store = Depends(get_store)) -> Response:
    request_lifecycle.delete_request(store, request_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{request_id}/notify", response_model=NotifyCandidatesOut, dependencies=[Depends(get_current_user)])
def notify_candidates(
    request_id: str,
    payload: NotifyCandidatesRequest,
    store: Store = Depends(get_store),
    channel: NotificationChannel = Depends(get_notification_channel),
) -> NotifyCandidatesOut:
    class_name, date_needed = payload.class_name, payload.date_needed
    if class_name is None or date_needed is None:
        stored_class_name, stored_date = dispatcher.describe_request(store, request_id)
        class_name = class_name or stored_class_name
        date_needed = date_needed or stored_date
    outcomes = dispatcher.notify_candidates(
        store,
        channel,
        request_id=request_id,
        class_name=class_name,
        date_needed=date_needed,
        candidate_ids=payload.candidate_ids,
    )
    return NotifyCandidatesOut(request_id=request_id, outcomes=outcomes)
