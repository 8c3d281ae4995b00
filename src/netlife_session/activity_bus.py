from __future__ import annotations

import logging
from collections import defaultdict
from typing import Callable


ActivityHandler = Callable[[str], None]


class ActivityBus:
    """In-process interaction event source (stands in for document-level listeners).

    Dispatch is synchronous: every listener registered for the event type runs
    before ``dispatch`` returns.
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[ActivityHandler]] = defaultdict(list)
        self.log = logging.getLogger("ActivityBus")

    def add_listener(self, event_type: str, handler: ActivityHandler) -> None:
        self._listeners[event_type].append(handler)

    def remove_listener(self, event_type: str, handler: ActivityHandler) -> None:
        handlers = self._listeners.get(event_type)
        if not handlers:
            return
        try:
            handlers.remove(handler)
        except ValueError:
            return
        if not handlers:
            del self._listeners[event_type]

    def listener_count(self, event_type: str | None = None) -> int:
        if event_type is not None:
            return len(self._listeners.get(event_type, ()))
        return sum(len(h) for h in self._listeners.values())

    def dispatch(self, event_type: str) -> int:
        # Copy so handlers may detach themselves mid-dispatch.
        handlers = list(self._listeners.get(event_type, ()))
        for handler in handlers:
            try:
                handler(event_type)
            except Exception:
                self.log.exception("activity listener failed", extra={"event_type": event_type})
        return len(handlers)
