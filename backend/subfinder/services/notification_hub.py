from __future__ import annotations

import asyncio
import logging

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class NotificationHub:
    """Live websocket connections of desktop clients, keyed by user id.

    ``publish`` and ``broadcast`` return how many sockets accepted the event.
    A socket whose send fails is forgotten.
    """

    def __init__(self) -> None:
        self._sockets: dict[str, set[WebSocket]] = {}
        self._lock = asyncio.Lock()

    def connected_users(self) -> list[str]:
        return sorted(self._sockets)

    async def connect(self, user_id: str, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self._sockets.setdefault(user_id, set()).add(websocket)

    async def disconnect(self, user_id: str, websocket: WebSocket) -> None:
        async with self._lock:
            self._forget(user_id, [websocket])

    async def publish(self, user_id: str, payload: dict) -> int:
        async with self._lock:
            targets = {user_id: list(self._sockets.get(user_id, ()))}
        return await self._deliver(targets, payload)

    async def broadcast(self, payload: dict) -> int:
        async with self._lock:
            targets = {user_id: list(sockets) for user_id, sockets in self._sockets.items()}
        return await self._deliver(targets, payload)

    def _forget(self, user_id: str, sockets: list[WebSocket]) -> None:
        # Caller holds the lock.
        active = self._sockets.get(user_id)
        if active is None:
            return
        active.difference_update(sockets)
        if not active:
            del self._sockets[user_id]

    async def _deliver(self, targets: dict[str, list[WebSocket]], payload: dict) -> int:
        delivered = 0
        stale: dict[str, list[WebSocket]] = {}
        for user_id, sockets in targets.items():
            for websocket in sockets:
                try:
                    await websocket.send_json(payload)
                except Exception:
                    stale.setdefault(user_id, []).append(websocket)
                    continue
                delivered += 1

        if stale:
            async with self._lock:
                for user_id, sockets in stale.items():
                    self._forget(user_id, sockets)
            logger.debug("Dropped %d stale notification websocket(s)", sum(len(items) for items in stale.values()))
        return delivered


notification_hub = NotificationHub()
