"""Client-facing reflection of an action batch: per-action status and file changes."""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Iterable, Sequence

from collabide.event_bus import EventBus
from collabide.events import ActionFinished, ActionStarted
from collabide.models.action import Action, ActionKind
from collabide.models.file_record import FileRecord

LOGGER = logging.getLogger(__name__)


class ActionStatus(str, Enum):
    PENDING = "pending"
    EXECUTING = "executing"
    COMPLETED = "completed"
    ERROR = "error"


class ChangeType(str, Enum):
    CREATED = "created"
    MODIFIED = "modified"
    DELETED = "deleted"


@dataclass
class TimelineEntry:
    action: Action
    status: ActionStatus = ActionStatus.PENDING
    detail: str | None = None

    @property
    def notice(self) -> str | None:
        """Terminal line for the action once it has completed."""
        if self.status is not ActionStatus.COMPLETED:
            return None
        return action_notice(self.action)

    def to_dict(self) -> dict[str, Any]:
        payload = self.action.to_dict()
        payload["status"] = self.status.value
        payload["notice"] = self.notice
        return payload


@dataclass(frozen=True, slots=True)
class FileChange:
    name: str
    change_type: ChangeType
    content: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.change_type.value,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
        }


def action_notice(action: Action) -> str | None:
    """Return the terminal line a client shows for ``action``, if any."""
    if action.kind is ActionKind.CREATE_FILE:
        return f"Created file: {action.target}"
    if action.kind is ActionKind.EDIT_FILE:
        return f"Modified file: {action.target}"
    if action.kind is ActionKind.DELETE_FILE:
        return f"Deleted file: {action.target}"
    if action.kind is ActionKind.RUN_COMMAND:
        return f"Executed: {action.command_line}"
    return None


def summarize_file_changes(
    before: Iterable[FileRecord],
    after: Iterable[FileRecord],
) -> list[FileChange]:
    """Diff two file lists by name: created and modified first, then deleted."""
    previous = {record.name: record for record in before}
    current = list(after)
    changes: list[FileChange] = []
    for record in current:
        old = previous.get(record.name)
        if old is None:
            changes.append(FileChange(record.name, ChangeType.CREATED, record.content))
        elif old.content != record.content:
            changes.append(FileChange(record.name, ChangeType.MODIFIED, record.content))
    remaining = {record.name for record in current}
    changes.extend(
        FileChange(name, ChangeType.DELETED) for name in previous if name not in remaining
    )
    return changes


def _random_delay() -> float:
    return random.uniform(1.0, 3.0)


class ActionTimeline:
    """Tracks the display status of every action in one batch.

    Entries start ``pending``. When the engine's events are available the
    timeline follows them through :meth:`bind`; otherwise :meth:`simulate`
    walks the entries in order with a pause between steps.
    """

    def __init__(
        self,
        actions: Sequence[Action],
        on_change: Callable[[int, TimelineEntry], None] | None = None,
    ) -> None:
        self.entries = [TimelineEntry(action) for action in actions]
        self._on_change = on_change
        self._bus: EventBus | None = None
        self._batch_id: str | None = None

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def statuses(self) -> list[ActionStatus]:
        return [entry.status for entry in self.entries]

    @property
    def finished(self) -> bool:
        return all(
            entry.status in (ActionStatus.COMPLETED, ActionStatus.ERROR) for entry in self.entries
        )

    def bind(self, event_bus: EventBus, batch_id: str) -> None:
        """Follow engine events of ``batch_id`` until :meth:`unbind` is called."""
        self.unbind()
        self._bus = event_bus
        self._batch_id = batch_id
        event_bus.subscribe(ActionStarted, self._on_started)
        event_bus.subscribe(ActionFinished, self._on_finished)

    def unbind(self) -> None:
        if self._bus is None:
            return
        self._bus.unsubscribe(ActionStarted, self._on_started)
        self._bus.unsubscribe(ActionFinished, self._on_finished)
        self._bus = None
        self._batch_id = None

    def mark(self, index: int, status: ActionStatus, detail: str | None = None) -> None:
        if not 0 <= index < len(self.entries):
            LOGGER.debug("Ignoring status for unknown action index %s", index)
            return
        entry = self.entries[index]
        entry.status = status
        entry.detail = detail
        if self._on_change is not None:
            self._on_change(index, entry)

    def simulate(
        self,
        delay: Callable[[], float] = _random_delay,
        sleep: Callable[[float], None] = time.sleep,
    ) -> list[str]:
        """Walk pending entries to completed and return their notices."""
        notices: list[str] = []
        for index, entry in enumerate(self.entries):
            if entry.status is not ActionStatus.PENDING:
                continue
            self.mark(index, ActionStatus.EXECUTING)
            sleep(delay())
            self.mark(index, ActionStatus.COMPLETED)
            notice = entry.notice
            if notice:
                notices.append(notice)
        return notices

    def to_list(self) -> list[dict[str, Any]]:
        return [entry.to_dict() for entry in self.entries]

    def _on_started(self, event: ActionStarted) -> None:
        if event.batch_id == self._batch_id:
            self.mark(event.index, ActionStatus.EXECUTING)

    def _on_finished(self, event: ActionFinished) -> None:
        if event.batch_id == self._batch_id:
            status = ActionStatus.COMPLETED if event.success else ActionStatus.ERROR
            self.mark(event.index, status, event.detail)


__all__ = [
    "ActionStatus",
    "ActionTimeline",
    "ChangeType",
    "FileChange",
    "TimelineEntry",
    "action_notice",
    "summarize_file_changes",
]
