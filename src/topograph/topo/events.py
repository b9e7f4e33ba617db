"""
Change notification for topology stores.

Every mutating store operation produces one ChangeEvent and hands it to the
store's ListenerRegistry. Listeners are called synchronously, in
registration order, on the mutating thread.

Failure contract: a listener that raises is isolated. The exception is
logged with its traceback, the remaining listeners still run and the
mutating call completes normally.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChangeEvent:
    """What one store mutation changed."""
    namespace: str
    added: tuple = ()
    updated: tuple = ()
    removed: tuple = ()
    cleared: bool = False

    @property
    def kind(self) -> str:
        if self.cleared:
            return "cleared"
        parts = [
            name for name, items in (
                ("added", self.added),
                ("updated", self.updated),
                ("removed", self.removed),
            ) if items
        ]
        return parts[0] if len(parts) == 1 else "changed"

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.updated or self.removed or self.cleared)


# (store, event) -> None
VertexListener = Callable[[Any, ChangeEvent], None]
EdgeListener = Callable[[Any, ChangeEvent], None]


class ListenerRegistry:
    """Ordered set of listeners bound to one store."""

    def __init__(self, owner: Any):
        self._owner = owner
        self._listeners: list[Callable] = []

    def __len__(self) -> int:
        return len(self._listeners)

    def __contains__(self, listener) -> bool:
        return any(existing == listener for existing in self._listeners)

    def add(self, listener: Callable) -> None:
        if listener in self:
            return
        self._listeners.append(listener)

    def remove(self, listener: Callable) -> None:
        self._listeners = [
            existing for existing in self._listeners if existing != listener
        ]

    def notify(self, event: ChangeEvent) -> int:
        """Call every listener with (owner, event). Returns the failure count."""
        failures = 0
        # Snapshot so listeners may (un)register while being notified.
        for listener in list(self._listeners):
            try:
                listener(self._owner, event)
            except Exception:
                failures += 1
                logger.exception(
                    "Listener %r failed on %s event in namespace %s",
                    listener, event.kind, event.namespace,
                )
        return failures
