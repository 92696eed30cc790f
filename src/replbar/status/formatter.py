"""Status line rendering in polybar color markup.

A label is ``%{F<color>}<text>%{F-}``; the current connection is wrapped
once more in an outer foreground pair so it stands out from other idle
connections. Labels are joined in session-source order.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional, Sequence, Tuple

from ..core.config_schema import StatusConfig
from .connection import connection_name
from .registry import ConnectionRegistry

RESET = "-"


def color_open(color: str) -> str:
    return f"%{{F{color}}}"


def color_reset() -> str:
    return color_open(RESET)


def colorize(text: str, color: str) -> str:
    """Wrap ``text`` in a foreground open/reset pair."""
    return f"{color_open(color)}{text}{color_reset()}"


def mnemonic_for(name: str, table: Iterable[Tuple[str, str]]) -> Optional[str]:
    """First mnemonic whose pattern occurs in ``name``, in table order."""
    for pattern, mnemonic in table:
        if pattern in name:
            return mnemonic
    return None


class DisplayFormatter:
    """Render per-connection labels and the joined status line.

    Reads the registry; never writes to it.
    """

    def __init__(self, registry: ConnectionRegistry, config: Optional[StatusConfig] = None):
        self.registry = registry
        self.config = config or StatusConfig()

    def text(self, connection: Any) -> str:
        name = connection_name(connection)
        return mnemonic_for(name, self.config.mnemonics) or name

    def color(self, connection: Any) -> str:
        busy, current = self.registry.flags(connection)
        return self._color(busy, current)

    def _color(self, busy: bool, current: bool) -> str:
        if busy:
            return self.config.busy_color
        if current:
            return self.config.current_color
        return self.config.idle_color

    def label(self, connection: Any) -> str:
        # One read, so the inner color and the outer wrapper always agree
        busy, current = self.registry.flags(connection)
        rendered = colorize(self.text(connection), self._color(busy, current))
        if not current:
            return rendered
        outer = RESET if busy else self.config.indicator_color
        return colorize(rendered, outer)

    def render(self, connections: Sequence[Any]) -> str:
        if not connections:
            return ""
        return self.config.separator.join(self.label(c) for c in connections)
