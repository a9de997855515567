"""Typed lifecycle events published by the execution engine."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class BatchEvent:
    """Base class for every event tied to one execution batch."""

    batch_id: str


@dataclass(frozen=True, slots=True)
class BatchStarted(BatchEvent):
    """Emitted before the first action of a batch runs."""

    project_id: str | None = None
    action_count: int = 0


@dataclass(frozen=True, slots=True)
class ActionStarted(BatchEvent):
    """Emitted right before an action is applied."""

    index: int = 0
    kind: str = ""
    target: str | None = None


@dataclass(frozen=True, slots=True)
class ActionFinished(BatchEvent):
    """Emitted once an action has been applied or has failed."""

    index: int = 0
    kind: str = ""
    success: bool = True
    detail: str | None = None


@dataclass(frozen=True, slots=True)
class BatchCompleted(BatchEvent):
    """Summary emitted when every action of a batch has been visited."""

    status: str = "success"
    duration: float | None = None


ExecutionEvent = BatchStarted | ActionStarted | ActionFinished | BatchCompleted

__all__ = [
    "ActionFinished",
    "ActionStarted",
    "BatchCompleted",
    "BatchEvent",
    "BatchStarted",
    "ExecutionEvent",
]
