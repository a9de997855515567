"""Presence/session manager: join, leave, cursor, typing and relay events."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Protocol

from collabide import config
from collabide.exceptions import CollabValidationError
from collabide.presence.registry import RoomRegistry
from collabide.presence.room import CursorPosition, Participant

LOGGER = logging.getLogger(__name__)

EVENT_CONNECTED = "connected"
EVENT_JOIN = "join-project"
EVENT_LEAVE = "leave-project"
EVENT_ROOM_STATE = "room-state"
EVENT_USER_JOINED = "user-joined"
EVENT_USER_LEFT = "user-left"
EVENT_CURSOR_MOVE = "cursor-move"
EVENT_TYPING_START = "typing-start"
EVENT_TYPING_STOP = "typing-stop"

# Relayed events and the payload fields forwarded to the rest of the room.
RELAY_FIELDS: dict[str, tuple[str, ...]] = {
    "code-change": ("fileId", "content"),
    "file-created": ("file",),
    "file-deleted": ("fileId",),
    "file-renamed": ("fileId", "newName"),
    "terminal-command": ("command",),
}


class PresenceTransport(Protocol):
    """Delivers one named event to one connection. Must not block."""

    def send(self, connection_id: str, event: str, payload: dict[str, Any]) -> None:
        ...


@dataclass(frozen=True, slots=True)
class _Delivery:
    connection_id: str
    event: str
    payload: dict[str, Any]


@dataclass(frozen=True, slots=True)
class _Session:
    project_id: str
    user: Participant


class PresenceManager:
    """Tracks which connection sits in which room and fans out presence events.

    State changes happen under the registry lock; deliveries are collected
    while holding it and sent afterwards, fire-and-forget. A transport error for
    one recipient is logged and never reaches the sender.
    """

    def __init__(self, registry: RoomRegistry, transport: PresenceTransport) -> None:
        self._registry = registry
        self._transport = transport
        self._sessions: dict[str, _Session] = {}
        self._handlers: dict[str, Callable[[str, Mapping[str, Any]], None]] = {
            EVENT_JOIN: self._handle_join,
            EVENT_LEAVE: lambda connection_id, _data: self.leave(connection_id),
            EVENT_CURSOR_MOVE: self.move_cursor,
            EVENT_TYPING_START: self.start_typing,
            EVENT_TYPING_STOP: self.stop_typing,
        }

    @property
    def registry(self) -> RoomRegistry:
        return self._registry

    def session_of(self, connection_id: str) -> tuple[str, Participant] | None:
        """Return ``(project_id, user)`` for a joined connection."""
        with self._registry.lock:
            session = self._sessions.get(connection_id)
        return (session.project_id, session.user) if session else None

    def connect(self, connection_id: str) -> None:
        self._deliver(
            [
                _Delivery(
                    connection_id,
                    EVENT_CONNECTED,
                    {"message": config.WELCOME_MESSAGE, "socketId": connection_id},
                )
            ]
        )

    def handle(self, connection_id: str, event: str, data: Any) -> None:
        """Dispatch one inbound event by name.

        Raises:
            CollabValidationError: For unknown events or malformed payloads.
        """
        if not isinstance(data, Mapping):
            raise CollabValidationError("Event data must be an object.", context={"event": event})
        handler = self._handlers.get(event)
        if handler is not None:
            handler(connection_id, data)
            return
        if event in RELAY_FIELDS:
            self.relay(connection_id, event, data)
            return
        raise CollabValidationError("Unknown presence event.", context={"event": event})

    def join(self, connection_id: str, project_id: str, user: Participant) -> None:
        """Attach ``user`` to ``project_id`` through ``connection_id``."""
        if not project_id:
            raise CollabValidationError("join-project requires a projectId.")

        deliveries: list[_Delivery] = []
        with self._registry.lock:
            current = self._sessions.get(connection_id)
            if current is not None and (current.project_id != project_id or current.user.id != user.id):
                deliveries.extend(self._detach(connection_id))

            room = self._registry.get_or_create(project_id)
            added = room.attach(connection_id, user)
            self._sessions[connection_id] = _Session(project_id=project_id, user=user)
            joined = {"user": user.to_dict(), "users": room.user_list()}
            deliveries.extend(
                _Delivery(member, EVENT_USER_JOINED, joined) for member in room.connection_ids()
            )
            deliveries.append(_Delivery(connection_id, EVENT_ROOM_STATE, room.snapshot()))
            member_count = len(room.users)

        LOGGER.info(
            "User joined room | project=%s | user=%s | new=%s | members=%d",
            project_id,
            user.id,
            added,
            member_count,
        )
        self._deliver(deliveries)

    def leave(self, connection_id: str) -> None:
        """Explicitly leave the current room; the connection stays open."""
        with self._registry.lock:
            deliveries = self._detach(connection_id)
        self._deliver(deliveries)

    def disconnect(self, connection_id: str) -> None:
        """Transport-level disconnect; same effect as leaving."""
        LOGGER.debug("Connection closed | connection=%s", connection_id)
        self.leave(connection_id)

    def move_cursor(self, connection_id: str, data: Mapping[str, Any]) -> None:
        try:
            cursor = CursorPosition(line=int(data.get("line")), column=int(data.get("column")))
        except (TypeError, ValueError) as exc:
            raise CollabValidationError("cursor-move requires integer line and column.") from exc

        with self._registry.lock:
            session, room = self._joined_room(connection_id, EVENT_CURSOR_MOVE)
            if room is None:
                return
            room.cursors[session.user.id] = cursor
            payload = {
                "userId": session.user.id,
                "line": cursor.line,
                "column": cursor.column,
                "fileId": data.get("fileId"),
            }
            deliveries = self._to_others(room.connection_ids(exclude=connection_id), EVENT_CURSOR_MOVE, payload)
        self._deliver(deliveries)

    def start_typing(self, connection_id: str, data: Mapping[str, Any]) -> None:
        self._set_typing(connection_id, data, EVENT_TYPING_START)

    def stop_typing(self, connection_id: str, data: Mapping[str, Any]) -> None:
        self._set_typing(connection_id, data, EVENT_TYPING_STOP)

    def relay(self, connection_id: str, event: str, data: Mapping[str, Any]) -> None:
        """Forward a file/code/terminal event to everyone else in the room."""
        fields = RELAY_FIELDS.get(event)
        if fields is None:
            raise CollabValidationError("Event cannot be relayed.", context={"event": event})
        with self._registry.lock:
            session, room = self._joined_room(connection_id, event)
            if room is None:
                return
            payload = {name: data.get(name) for name in fields}
            payload["userId"] = session.user.id
            deliveries = self._to_others(room.connection_ids(exclude=connection_id), event, payload)
        self._deliver(deliveries)

    def _handle_join(self, connection_id: str, data: Mapping[str, Any]) -> None:
        project_id = str(data.get("projectId") or "").strip()
        self.join(connection_id, project_id, Participant.from_payload(data.get("user"), project_id))

    def _set_typing(self, connection_id: str, data: Mapping[str, Any], event: str) -> None:
        file_id = data.get("fileId")
        with self._registry.lock:
            session, room = self._joined_room(connection_id, event)
            if room is None:
                return
            if event == EVENT_TYPING_START:
                room.typing[session.user.id] = str(file_id) if file_id is not None else ""
            else:
                room.typing.pop(session.user.id, None)
            payload = {"userId": session.user.id, "fileId": file_id}
            deliveries = self._to_others(room.connection_ids(exclude=connection_id), event, payload)
        self._deliver(deliveries)

    def _joined_room(self, connection_id: str, event: str):
        session = self._sessions.get(connection_id)
        room = self._registry.get(session.project_id) if session else None
        if session is None or room is None:
            LOGGER.warning("Dropping %s from a connection outside any room | connection=%s", event, connection_id)
            return session, None
        return session, room

    def _detach(self, connection_id: str) -> list[_Delivery]:
        """Remove a connection from its room; caller holds the registry lock."""
        session = self._sessions.pop(connection_id, None)
        if session is None:
            return []
        room = self._registry.get(session.project_id)
        if room is None:
            return []

        user_id = room.detach(connection_id)
        if user_id is None or room.has_connection_for(user_id):
            return []

        room.remove_user(user_id)
        LOGGER.info(
            "User left room | project=%s | user=%s | remaining=%d",
            session.project_id,
            user_id,
            len(room.users),
        )
        if room.is_empty:
            self._registry.delete(session.project_id)
            return []
        payload = {"userId": user_id, "users": room.user_list()}
        return self._to_others(room.connection_ids(), EVENT_USER_LEFT, payload)

    @staticmethod
    def _to_others(connection_ids: list[str], event: str, payload: dict[str, Any]) -> list[_Delivery]:
        return [_Delivery(connection_id, event, payload) for connection_id in connection_ids]

    def _deliver(self, deliveries: list[_Delivery]) -> None:
        for delivery in deliveries:
            try:
                self._transport.send(delivery.connection_id, delivery.event, delivery.payload)
            except Exception:  # noqa: BLE001
                LOGGER.warning(
                    "Presence delivery failed | connection=%s | event=%s",
                    delivery.connection_id,
                    delivery.event,
                    exc_info=True,
                )


__all__ = [
    "EVENT_CONNECTED",
    "EVENT_CURSOR_MOVE",
    "EVENT_JOIN",
    "EVENT_LEAVE",
    "EVENT_ROOM_STATE",
    "EVENT_TYPING_START",
    "EVENT_TYPING_STOP",
    "EVENT_USER_JOINED",
    "EVENT_USER_LEFT",
    "PresenceManager",
    "PresenceTransport",
    "RELAY_FIELDS",
]
