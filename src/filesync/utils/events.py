"""Synchronous notification channels."""

import threading
from typing import Callable, List


class Event:
    """A single kind of notification with any number of subscribers.

    Handlers run synchronously on the emitting thread, in the order they
    were connected. Each emission works on a snapshot of the handler list,
    so a handler may connect or disconnect handlers while it runs.
    """

    def __init__(self, name: str):
        self.name = name
        self._handlers: List[Callable] = []
        self._lock = threading.Lock()

    def connect(self, handler: Callable) -> None:
        """Subscribe a handler; connecting the same handler twice is a no-op."""
        with self._lock:
            if handler not in self._handlers:
                self._handlers.append(handler)

    def disconnect(self, handler: Callable) -> None:
        """Unsubscribe a handler if it is connected."""
        with self._lock:
            if handler in self._handlers:
                self._handlers.remove(handler)

    def emit(self, *args) -> None:
        """Call every connected handler with ``args``."""
        with self._lock:
            handlers = self._handlers[:]

        for handler in handlers:
            handler(*args)

    @property
    def handler_count(self) -> int:
        """Number of connected handlers."""
        with self._lock:
            return len(self._handlers)

    def __repr__(self) -> str:
        return f"Event({self.name!r}, handlers={self.handler_count})"
