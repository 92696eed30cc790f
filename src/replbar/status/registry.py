"""In-memory busy/idle registry and current-connection pointer."""

from __future__ import annotations

import threading
from typing import Any, Dict, Optional, Tuple

from ..util.log import Log
from .connection import ConnectionState, connection_name

log = Log.create({"service": "status.registry"})


class ConnectionRegistry:
    """Busy/idle map plus the connection of the active context.

    Entries are created on first mark and never removed; unknown
    connections read as idle. Every operation takes the same lock, so
    marks from a reader thread and renders on the main loop never
    observe a torn update.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._states: Dict[Any, ConnectionState] = {}
        self._current: Optional[Any] = None

    def set_busy(self, connection: Any) -> None:
        self._set(connection, ConnectionState.BUSY)

    def set_idle(self, connection: Any) -> None:
        self._set(connection, ConnectionState.IDLE)

    def _set(self, connection: Any, state: ConnectionState) -> None:
        with self._lock:
            previous = self._states.get(connection, ConnectionState.IDLE)
            self._states[connection] = state
        if previous is not state:
            log.debug("connection state changed", {
                "connection": connection_name(connection),
                "state": state.value,
            })

    def state(self, connection: Any) -> ConnectionState:
        with self._lock:
            return self._states.get(connection, ConnectionState.IDLE)

    def is_busy(self, connection: Any) -> bool:
        return self.state(connection) is ConnectionState.BUSY

    def set_current(self, connection: Optional[Any]) -> None:
        """Point at the active context's connection; ``None`` clears it."""
        with self._lock:
            self._current = connection
        log.debug("current connection changed", {
            "connection": connection_name(connection) if connection is not None else None,
        })

    @property
    def current(self) -> Optional[Any]:
        with self._lock:
            return self._current

    def is_current(self, connection: Any) -> bool:
        with self._lock:
            return self._current is not None and self._current == connection

    def flags(self, connection: Any) -> Tuple[bool, bool]:
        """(busy, current) for ``connection`` from a single locked read."""
        with self._lock:
            busy = self._states.get(connection) is ConnectionState.BUSY
            current = self._current is not None and self._current == connection
        return busy, current

    def snapshot(self) -> Dict[Any, ConnectionState]:
        """Copy of every recorded state, including dangling entries."""
        with self._lock:
            return dict(self._states)
