from anyio import to_thread
from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status

from subfinder.api.deps import get_current_user, get_notification_channel, get_store, user_from_token
from subfinder.core.exceptions import NotFoundError
from subfinder.db.store import Store
from subfinder.schemas.notification import (
    NotificationLogCreate,
    NotificationLogCreated,
    NotificationLogOut,
    NotificationSend,
    NotificationSendOut,
)
from subfinder.services import directory, dispatcher
from subfinder.services.notification_channels import NotificationChannel
from subfinder.services.notification_hub import notification_hub

router = APIRouter()


@router.post("/notifications/send", response_model=NotificationSendOut, dependencies=[Depends(get_current_user)])
def send_notification(
    payload: NotificationSend,
    store: Store = Depends(get_store),
    channel: NotificationChannel = Depends(get_notification_channel),
) -> NotificationSendOut:
    recipient = None
    if payload.user_id:
        recipient = directory.get_user(store, payload.user_id)
        if recipient is None:
            raise NotFoundError("User", payload.user_id)
    notification_id = dispatcher.send_notification(
        channel,
        title=payload.title,
        body=payload.body,
        request_id=payload.request_id,
        recipient=recipient,
    )
    return NotificationSendOut(notification_id=notification_id)


@router.post(
    "/notifications/logs",
    response_model=NotificationLogCreated,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(get_current_user)],
)
def log_notification(payload: NotificationLogCreate, store: Store = Depends(get_store)) -> NotificationLogCreated:
    log_id = dispatcher.log_notification(
        store,
        user_id=payload.user_id,
        request_id=payload.request_id,
        notification_type=payload.notification_type,
        status=payload.status,
        error_message=payload.error_message,
    )
    return NotificationLogCreated(id=log_id)


@router.get("/notifications/logs", response_model=list[NotificationLogOut], dependencies=[Depends(get_current_user)])
def list_notification_logs(
    user_id: str | None = Query(default=None),
    store: Store = Depends(get_store),
) -> list[NotificationLogOut]:
    return dispatcher.list_notification_logs(store, user_id=user_id)


def _extract_ws_token(websocket: WebSocket) -> str | None:
    token = websocket.query_params.get("token")
    if token:
        return token

    auth_header = websocket.headers.get("authorization")
    if not auth_header:
        return None
    scheme, _, value = auth_header.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return value.strip() or None


@router.websocket("/notifications/ws")
async def notifications_websocket(websocket: WebSocket, store: Store = Depends(get_store)) -> None:
    token = _extract_ws_token(websocket)
    user = await to_thread.run_sync(user_from_token, store, token) if token else None
    if user is None:
        await websocket.close(code=1008)
        return

    await notification_hub.connect(user.id, websocket)
    try:
        await websocket.send_json({"event": "connected", "user_id": user.id})
        while True:
            message = await websocket.receive_text()
            if message.strip().lower() == "ping":
                await websocket.send_json({"event": "pong"})
    except WebSocketDisconnect:
        pass
    finally:
        await notification_hub.disconnect(user.id, websocket)
