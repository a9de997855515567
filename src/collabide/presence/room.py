"""In-memory state of one project room."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from collabide.exceptions import CollabValidationError


@dataclass(frozen=True, slots=True)
class Participant:
    """A user present in a room. Identity is the ``id`` alone."""

    id: str
    name: str = ""
    project_id: str | None = None

    @classmethod
    def from_payload(cls, payload: Any, project_id: str | None = None) -> "Participant":
        if not isinstance(payload, Mapping):
            raise CollabValidationError("User payload must be an object.")
        user_id = str(payload.get("id") or "").strip()
        if not user_id:
            raise CollabValidationError("User payload is missing an id.")
        return cls(
            id=user_id,
            name=str(payload.get("name") or user_id),
            project_id=project_id or payload.get("projectId"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "projectId": self.project_id}


@dataclass(frozen=True, slots=True)
class CursorPosition:
    line: int
    column: int

    def to_dict(self) -> dict[str, int]:
        return {"line": self.line, "column": self.column}


@dataclass
class RoomState:
    """Users, cursors, typing markers and live connections of one project.

    ``users`` keeps join order. A user may be attached through several
    connections (tabs); they stay in the room until the last one detaches.
    """

    project_id: str
    users: dict[str, Participant] = field(default_factory=dict)
    cursors: dict[str, CursorPosition] = field(default_factory=dict)
    typing: dict[str, str] = field(default_factory=dict)
    connections: dict[str, str] = field(default_factory=dict)

    def attach(self, connection_id: str, user: Participant) -> bool:
        """Bind a connection to ``user``; return True when the user is new to the room."""
        self.connections[connection_id] = user.id
        if user.id in self.users:
            return False
        self.users[user.id] = user
        return True

    def detach(self, connection_id: str) -> str | None:
        """Unbind a connection and return the user id it belonged to."""
        return self.connections.pop(connection_id, None)

    def has_connection_for(self, user_id: str) -> bool:
        return user_id in self.connections.values()

    def remove_user(self, user_id: str) -> None:
        self.users.pop(user_id, None)
        self.cursors.pop(user_id, None)
        self.typing.pop(user_id, None)
        for connection_id in [key for key, value in self.connections.items() if value == user_id]:
            del self.connections[connection_id]

    def connection_ids(self, *, exclude: str | None = None) -> list[str]:
        return [connection_id for connection_id in self.connections if connection_id != exclude]

    @property
    def is_empty(self) -> bool:
        return not self.users

    def user_list(self) -> list[dict[str, Any]]:
        return [user.to_dict() for user in self.users.values()]

    def snapshot(self) -> dict[str, Any]:
        """Full state sent to a joining participant."""
        return {
            "users": self.user_list(),
            "cursors": {user_id: cursor.to_dict() for user_id, cursor in self.cursors.items()},
            "typing": dict(self.typing),
        }


__all__ = ["CursorPosition", "Participant", "RoomState"]
