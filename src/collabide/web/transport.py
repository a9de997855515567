"""WebSocket binding of the presence transport."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from fastapi import WebSocket

LOGGER = logging.getLogger(__name__)

_QUEUE_SIZE = 256
_CLOSE = object()


class WebSocketHub:
    """Fire-and-forget delivery of ``{"event", "data"}`` frames to sockets.

    Every connection owns a bounded queue drained by its own sender task, so a
    slow client never blocks the sender of an event or the other recipients.
    Frames for a full queue or an unknown connection are dropped.
    """

    def __init__(self) -> None:
        self._queues: dict[str, asyncio.Queue] = {}
        self._tasks: dict[str, asyncio.Task] = {}
        self._loop: asyncio.AbstractEventLoop | None = None

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self._queues

    def register(self, connection_id: str, websocket: WebSocket) -> None:
        self._loop = asyncio.get_running_loop()
        queue: asyncio.Queue = asyncio.Queue(maxsize=_QUEUE_SIZE)
        self._queues[connection_id] = queue
        self._tasks[connection_id] = asyncio.create_task(self._pump(connection_id, websocket, queue))

    async def unregister(self, connection_id: str) -> None:
        queue = self._queues.pop(connection_id, None)
        task = self._tasks.pop(connection_id, None)
        if queue is None or task is None:
            return
        try:
            queue.put_nowait(_CLOSE)
        except asyncio.QueueFull:
            task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    def send(self, connection_id: str, event: str, payload: dict[str, Any]) -> None:
        queue = self._queues.get(connection_id)
        if queue is None or self._loop is None:
            LOGGER.debug("Dropping %s for unknown connection %s", event, connection_id)
            return
        frame = {"event": event, "data": payload}
        self._loop.call_soon_threadsafe(self._enqueue, connection_id, queue, frame)

    async def close(self) -> None:
        for connection_id in list(self._queues):
            await self.unregister(connection_id)

    @staticmethod
    def _enqueue(connection_id: str, queue: asyncio.Queue, frame: dict[str, Any]) -> None:
        try:
            queue.put_nowait(frame)
        except asyncio.QueueFull:
            LOGGER.warning("Send queue full; dropping %s for %s", frame["event"], connection_id)

    @staticmethod
    async def _pump(connection_id: str, websocket: WebSocket, queue: asyncio.Queue) -> None:
        while True:
            frame = await queue.get()
            if frame is _CLOSE:
                return
            try:
                await websocket.send_json(frame)
            except Exception:  # noqa: BLE001
                LOGGER.info("Socket send failed; stopping sender | connection=%s", connection_id)
                return


__all__ = ["WebSocketHub"]
