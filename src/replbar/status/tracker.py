"""Keep the current connection in sync with the active context."""

from __future__ import annotations

from typing import Any, Callable, Optional

from ..core.bus import Bus, EventPayload
from ..util.log import Log
from .connection import connection_name
from .events import ContextChanged
from .registry import ConnectionRegistry

log = Log.create({"service": "status.tracker"})

Resolver = Callable[[], Optional[Any]]


class ContextTracker:
    """Update the registry's current connection on context changes.

    ``resolve`` returns the connection of the active context, or ``None``.
    A notification that resolves to the connection already current is
    dropped without rendering.
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        resolve: Resolver,
        on_change: Callable[[], None],
    ):
        self.registry = registry
        self.resolve = resolve
        self.on_change = on_change
        self._unsubscribe: Optional[Callable[[], None]] = None

    def notify(self) -> bool:
        """Handle one context change. Returns True when the current connection moved."""
        connection = self.resolve()
        previous = self.registry.current
        if connection == previous:
            return False

        self.registry.set_current(connection)
        log.debug("context switched", {
            "from": connection_name(previous) if previous is not None else None,
            "to": connection_name(connection) if connection is not None else None,
        })
        self.on_change()
        return True

    def _on_event(self, payload: EventPayload) -> None:
        del payload
        self.notify()

    @property
    def attached(self) -> bool:
        return self._unsubscribe is not None

    def attach(self) -> None:
        """Subscribe to context-change events on the bound Bus."""
        if self._unsubscribe is not None:
            return
        self._unsubscribe = Bus.subscribe(ContextChanged, self._on_event)

    def detach(self) -> None:
        if self._unsubscribe is None:
            return
        self._unsubscribe()
        self._unsubscribe = None
