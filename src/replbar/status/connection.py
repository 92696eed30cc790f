"""Connection handles and their busy/idle state."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Hashable, Sequence


class ConnectionState(str, Enum):
    """Busy/idle flag attached to a connection."""

    BUSY = "busy"
    IDLE = "idle"


@dataclass(frozen=True)
class Connection:
    """Opaque, hashable session handle.

    Identity is ``key`` alone; ``name`` is display text and may differ
    between two handles for the same session.
    """

    key: Hashable
    name: str = field(default="", compare=False)

    def __str__(self) -> str:
        return self.name or str(self.key)


SessionSource = Callable[[], Sequence[Any]]


def connection_name(connection: Any) -> str:
    """Human-readable name of a connection handle."""
    name = getattr(connection, "name", None)
    if isinstance(name, str) and name:
        return name
    return str(connection)
