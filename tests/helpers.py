"""Reusable helpers for collabide's automated tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import SimpleNamespace
from typing import Any


class _FakeMessages:
    def __init__(self, owner: "FakeAnthropicClient") -> None:
        self._owner = owner

    def create(self, **kwargs: Any) -> SimpleNamespace:
        self._owner.calls.append(kwargs)
        if self._owner.error is not None:
            raise self._owner.error
        text = self._owner.responses.pop(0) if self._owner.responses else ""
        blocks = [SimpleNamespace(type="text", text=text)] if text is not None else []
        return SimpleNamespace(content=blocks, stop_reason="end_turn")


class FakeAnthropicClient:
    """Stand-in for ``anthropic.Anthropic`` that replays queued completions."""

    def __init__(self, *responses: str | None) -> None:
        self.responses: list[str | None] = list(responses)
        self.calls: list[dict[str, Any]] = []
        self.error: Exception | None = None
        self.messages = _FakeMessages(self)

    def queue(self, *responses: str | None) -> None:
        self.responses.extend(responses)

    @property
    def last_call(self) -> dict[str, Any]:
        return self.calls[-1]


@dataclass
class RecordingTransport:
    """Presence transport that keeps every delivery for assertions."""

    sent: list[tuple[str, str, dict[str, Any]]] = field(default_factory=list)

    def send(self, connection_id: str, event: str, payload: dict[str, Any]) -> None:
        self.sent.append((connection_id, event, payload))

    def events_for(self, connection_id: str) -> list[tuple[str, dict[str, Any]]]:
        return [(event, payload) for target, event, payload in self.sent if target == connection_id]

    def names_for(self, connection_id: str) -> list[str]:
        return [event for event, _ in self.events_for(connection_id)]

    def clear(self) -> None:
        self.sent.clear()


def action_block(kind: str, *, target: str | None = None, content: str | None = None,
                 command: str | None = None, reasoning: str | None = "because") -> str:
    """Render one action block in the agent protocol."""
    lines = [f"ACTION: {kind}"]
    if target is not None:
        lines.append(f"TARGET: {target}")
    if command is not None:
        lines.append(f"COMMAND: {command}")
    if content is not None:
        lines.append(f"CONTENT: {content}")
    if reasoning is not None:
        lines.append(f"REASONING: {reasoning}")
    return "\n".join(lines) + "\n"


def mirrored_names(mirror: Any, project_id: str) -> list[str]:
    """Return the sorted file names present in a project's mirror directory."""
    directory = mirror.project_dir(project_id)
    if not directory.is_dir():
        return []
    return sorted(entry.name for entry in directory.iterdir() if entry.is_file())


def mirrored_text(mirror: Any, project_id: str, name: str) -> str | None:
    """Return the mirrored content of ``name`` or None when the file is absent."""
    path = mirror.path_for(project_id, name)
    return path.read_text(encoding="utf-8") if path.is_file() else None
