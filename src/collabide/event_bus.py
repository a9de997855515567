"""In-process event bus carrying execution lifecycle events to observers."""

from __future__ import annotations

import logging
from collections import defaultdict
from contextlib import contextmanager
from threading import RLock
from typing import Callable, DefaultDict, Iterator, List, Type, TypeVar

LOGGER = logging.getLogger(__name__)
EventT = TypeVar("EventT")
EventHandler = Callable[[EventT], None]


class EventBus:
    """Pub-sub dispatcher keyed by event class.

    Handlers registered for a base class also receive subclasses. A failing
    handler is logged and never interrupts delivery to the others or the
    publisher, so execution is never aborted by an observer.
    """

    def __init__(self) -> None:
        self._handlers: DefaultDict[type, List[EventHandler]] = defaultdict(list)
        self._lock = RLock()

    def subscribe(self, event_type: Type[EventT], handler: EventHandler) -> None:
        """Register a handler for the given event class."""
        if handler is None or event_type is None:
            raise ValueError("Both event_type and handler must be provided.")
        with self._lock:
            if handler not in self._handlers[event_type]:
                self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: Type[EventT], handler: EventHandler) -> None:
        """Remove a previously registered handler; unknown handlers are ignored."""
        with self._lock:
            listeners = self._handlers.get(event_type)
            if not listeners or handler not in listeners:
                return
            listeners.remove(handler)
            if not listeners:
                del self._handlers[event_type]

    @contextmanager
    def subscribed(self, event_type: Type[EventT], handler: EventHandler) -> Iterator[None]:
        """Keep ``handler`` subscribed for the duration of a ``with`` block."""
        self.subscribe(event_type, handler)
        try:
            yield
        finally:
            self.unsubscribe(event_type, handler)

    def emit(self, event: object) -> None:
        """Publish an event instance to interested subscribers."""
        if event is None:
            return
        for handler in self._handlers_for(type(event)):
            try:
                handler(event)
            except Exception:  # noqa: BLE001
                LOGGER.exception("Event handler failed for %s", type(event).__name__)

    def _handlers_for(self, event_type: type) -> list[EventHandler]:
        with self._lock:
            ordered: list[EventHandler] = []
            for cls in event_type.mro()[:-1]:
                for handler in self._handlers.get(cls, ()):
                    if handler not in ordered:
                        ordered.append(handler)
            return ordered


__all__ = ["EventBus"]
