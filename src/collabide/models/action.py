"""Typed agent actions parsed from model output."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ActionKind(str, Enum):
    """Closed set of operations the execution engine understands."""

    CREATE_FILE = "create_file"
    EDIT_FILE = "edit_file"
    DELETE_FILE = "delete_file"
    RUN_COMMAND = "run_command"
    CREATE_PROJECT = "create_project"
    EXPLAIN = "explain"
    UNRECOGNIZED = "unrecognized"

    @classmethod
    def parse(cls, token: str) -> "ActionKind":
        """Map a raw kind token to a variant; unknown tokens become UNRECOGNIZED."""
        value = (token or "").strip()
        for member in cls:
            if member is not cls.UNRECOGNIZED and member.value == value:
                return member
        return cls.UNRECOGNIZED


@dataclass(frozen=True, slots=True)
class Action:
    """One reasoned instruction emitted by the agent.

    ``raw_kind`` keeps the token exactly as the model wrote it so that
    unrecognized kinds can still be reported back to the client.
    """

    kind: ActionKind
    reasoning: str
    raw_kind: str = field(default="")
    target: str | None = None
    content: str | None = None
    command: str | None = None

    def __post_init__(self) -> None:
        if not self.raw_kind:
            object.__setattr__(self, "raw_kind", self.kind.value)

    @property
    def command_line(self) -> str | None:
        """Return the shell command, falling back to TARGET as models often use it."""
        return self.command or self.target

    def describe(self) -> str:
        """Return a compact description for logging."""
        subject = self.command_line if self.kind is ActionKind.RUN_COMMAND else self.target
        return f"{self.raw_kind}:{subject or '-'}"

    def to_dict(self) -> dict[str, Any]:
        """Render the wire form returned to clients."""
        payload: dict[str, Any] = {"type": self.raw_kind, "reasoning": self.reasoning}
        if self.target is not None:
            payload["target"] = self.target
        if self.content is not None:
            payload["content"] = self.content
        if self.command is not None:
            payload["command"] = self.command
        return payload


__all__ = ["Action", "ActionKind"]
