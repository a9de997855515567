"""Presence rooms and the manager that fans out collaboration events."""

from collabide.presence.manager import PresenceManager, PresenceTransport
from collabide.presence.registry import RoomRegistry
from collabide.presence.room import CursorPosition, Participant, RoomState

__all__ = [
    "CursorPosition",
    "Participant",
    "PresenceManager",
    "PresenceTransport",
    "RoomRegistry",
    "RoomState",
]
