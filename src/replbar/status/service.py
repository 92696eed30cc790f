"""Status line facade: state, rendering and publishing in one place."""

from __future__ import annotations

from typing import Any, Callable, Optional

from ..core.config_schema import StatusConfig
from ..util.error import describe_error
from ..util.log import Log
from .connection import SessionSource
from .formatter import DisplayFormatter
from .interceptor import RequestChannel, RequestInterceptor
from .registry import ConnectionRegistry
from .tracker import ContextTracker, Resolver

log = Log.create({"service": "status"})

Sink = Callable[[str], None]


class StatusLine:
    """Owns the registry and the components that write to it.

    Every state change ends in :meth:`refresh`, which renders from live
    state and hands the text to the sink. Sink failures are logged and
    never undo or block the state change that triggered them.
    """

    def __init__(
        self,
        source: SessionSource,
        sink: Optional[Sink] = None,
        *,
        config: Optional[StatusConfig] = None,
        registry: Optional[ConnectionRegistry] = None,
        channel: Optional[RequestChannel] = None,
        resolve: Optional[Resolver] = None,
    ):
        self.source = source
        self.sink = sink
        self.registry = registry or ConnectionRegistry()
        self.formatter = DisplayFormatter(self.registry, config)
        self.interceptor = RequestInterceptor(self.registry, self.refresh, channel)
        self.tracker: Optional[ContextTracker] = None
        if resolve is not None:
            self.tracker = ContextTracker(self.registry, resolve, self.refresh)

    @property
    def config(self) -> StatusConfig:
        return self.formatter.config

    def configure(self, **overrides: Any) -> StatusConfig:
        """Override colors, separator or mnemonics at runtime.

        Takes ``StatusConfig`` field names; values are validated the same
        way config files are.
        """
        unknown = set(overrides) - set(StatusConfig.model_fields)
        if unknown:
            raise ValueError(f"unknown status options: {', '.join(sorted(unknown))}")
        data = self.formatter.config.model_dump()
        data.update(overrides)
        self.formatter.config = StatusConfig.model_validate(data)
        log.info("status config updated", {"fields": sorted(overrides)})
        return self.formatter.config

    def status_string(self) -> str:
        return self.formatter.render(list(self.source()))

    def refresh(self) -> str:
        """Render and publish. Returns the rendered text."""
        text = self.status_string()
        self.publish(text)
        return text

    def publish(self, text: str) -> None:
        if self.sink is None:
            return
        try:
            self.sink(text)
        except Exception as e:
            log.error("publish failed", {"error": describe_error(e)})

    def stop_all_spinners(self) -> None:
        """Force every enumerated connection idle, then publish once."""
        connections = list(self.source())
        for connection in connections:
            self.registry.set_idle(connection)
        log.info("stopped all spinners", {"count": len(connections)})
        self.refresh()

    def attach(self) -> None:
        """Install request interception and context tracking where configured."""
        if self.interceptor.channel is not None:
            self.interceptor.attach()
        if self.tracker is not None:
            self.tracker.attach()

    def detach(self) -> None:
        self.interceptor.detach()
        if self.tracker is not None:
            self.tracker.detach()
