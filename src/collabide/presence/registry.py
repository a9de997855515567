"""Owned session store for presence rooms."""

from __future__ import annotations

import logging
from threading import RLock

from collabide.presence.room import RoomState

LOGGER = logging.getLogger(__name__)


class RoomRegistry:
    """Maps project ids to live :class:`RoomState` objects.

    One registry is created per server process and closed at shutdown. The
    presence manager is its only client; every access happens under
    :attr:`lock`.
    """

    def __init__(self) -> None:
        self._rooms: dict[str, RoomState] = {}
        self._lock = RLock()

    @property
    def lock(self) -> RLock:
        return self._lock

    def get(self, project_id: str) -> RoomState | None:
        with self._lock:
            return self._rooms.get(project_id)

    def get_or_create(self, project_id: str) -> RoomState:
        with self._lock:
            room = self._rooms.get(project_id)
            if room is None:
                room = RoomState(project_id=project_id)
                self._rooms[project_id] = room
                LOGGER.info("Room created | project=%s", project_id)
            return room

    def delete(self, project_id: str) -> bool:
        with self._lock:
            removed = self._rooms.pop(project_id, None) is not None
        if removed:
            LOGGER.info("Room deleted | project=%s", project_id)
        return removed

    def close(self) -> None:
        """Drop every room; the registry stays usable but starts empty."""
        with self._lock:
            count = len(self._rooms)
            self._rooms.clear()
        LOGGER.info("Room registry closed | rooms=%d", count)

    def __len__(self) -> int:
        with self._lock:
            return len(self._rooms)


__all__ = ["RoomRegistry"]
