"""Shared test helpers."""

from __future__ import annotations

from typing import Any, Callable, List, Optional

from replbar.status import Connection


def conns(*names: str) -> List[Connection]:
    """Synthetic connections keyed by position."""
    return [Connection(key=f"conn-{index}", name=name) for index, name in enumerate(names)]


class RecordingSink:
    """Sink collecting every published line."""

    def __init__(self) -> None:
        self.lines: List[str] = []

    def __call__(self, text: str) -> None:
        self.lines.append(text)


class FakeTransport:
    """Request primitive that keeps callbacks for the test to fire."""

    def __init__(self) -> None:
        self.calls: List[tuple] = []
        self.callbacks: List[Optional[Callable[..., Any]]] = []

    def __call__(self, request: Any, callback: Optional[Callable[..., Any]], connection: Any, *extra: Any, **kwargs: Any) -> str:
        self.calls.append((request, connection, extra, kwargs))
        self.callbacks.append(callback)
        return f"sent:{request}"
