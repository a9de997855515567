"""Per-project serialization of execution batches."""

from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator

LOGGER = logging.getLogger(__name__)


@dataclass
class _Slot:
    lock: threading.Lock = field(default_factory=threading.Lock)
    users: int = 0


class ProjectRunQueue:
    """Hands out one lock per project so batches for a project run one at a time.

    Batches for different projects never wait on each other. Requests without a
    project id touch no shared mirror or store rows and are not serialized.
    A project's slot is dropped as soon as nobody holds or waits for it.
    """

    def __init__(self) -> None:
        self._slots: dict[str, _Slot] = {}
        self._guard = threading.Lock()

    def _acquire_slot(self, project_id: str) -> _Slot:
        with self._guard:
            slot = self._slots.get(project_id)
            if slot is None:
                slot = _Slot()
                self._slots[project_id] = slot
            slot.users += 1
            return slot

    def _release_slot(self, project_id: str, slot: _Slot) -> None:
        with self._guard:
            slot.users -= 1
            if slot.users == 0 and self._slots.get(project_id) is slot:
                del self._slots[project_id]

    @contextmanager
    def hold(self, project_id: str | None) -> Iterator[None]:
        """Block until the project's batch slot is free, then hold it."""
        if not project_id:
            yield
            return
        slot = self._acquire_slot(project_id)
        try:
            started = time.perf_counter()
            with slot.lock:
                waited = time.perf_counter() - started
                if waited > 0.05:
                    LOGGER.info("Waited for project run slot | project=%s | waited=%.2fs", project_id, waited)
                yield
        finally:
            self._release_slot(project_id, slot)

    def is_busy(self, project_id: str) -> bool:
        """Return True while a batch for ``project_id`` is running."""
        with self._guard:
            slot = self._slots.get(project_id)
        return bool(slot and slot.lock.locked())

    def active_count(self) -> int:
        """Return how many projects currently hold or wait for a slot."""
        with self._guard:
            return len(self._slots)


__all__ = ["ProjectRunQueue"]
