"""Application lifecycle container for the status line."""

from __future__ import annotations

from contextvars import Token
from typing import Optional

from ..core.bus import Bus
from ..core.config import Config
from ..publish import close_sink, sink_from_config
from ..status.connection import SessionSource
from ..status.events import ContextChanged, ContextChangedProps
from ..status.interceptor import RequestChannel
from ..status.service import Sink, StatusLine
from ..status.tracker import Resolver
from ..util.log import Log

log = Log.create({"service": "runtime"})


class StatusApp:
    """Owns the Bus and the StatusLine for one host process.

    ``startup`` binds the bus, installs request interception and context
    tracking, and publishes an initial line; ``shutdown`` undoes all of it.
    Nothing here is module-global, so two apps (or two tests) never share
    busy/idle state.
    """

    def __init__(
        self,
        source: SessionSource,
        *,
        config: Optional[Config] = None,
        sink: Optional[Sink] = None,
        channel: Optional[RequestChannel] = None,
        resolve: Optional[Resolver] = None,
    ) -> None:
        self.config = config or Config()
        self.bus = Bus()
        self.status = StatusLine(
            source,
            sink if sink is not None else sink_from_config(self.config.publish),
            config=self.config.status,
            channel=channel,
            resolve=resolve,
        )
        self._bus_token: Optional[Token[Bus]] = None
        self.started = False

    def startup(self) -> None:
        if self.started:
            return

        self._bus_token = Bus.provide(self.bus)
        try:
            self.status.attach()
        except Exception:
            Bus.restore(self._bus_token)
            self._bus_token = None
            raise

        self.started = True
        log.info("status app started", {
            "intercepting": self.status.interceptor.attached,
            "tracking": self.status.tracker is not None,
        })
        self.status.refresh()

    def shutdown(self) -> None:
        if not self.started:
            return

        self.status.detach()
        close_sink(self.status.sink)
        self.bus.clear()
        if self._bus_token is not None:
            Bus.restore(self._bus_token)
            self._bus_token = None
        self.started = False
        log.info("status app stopped")

    async def context_changed(self) -> None:
        """Announce an active-context switch to the tracker."""
        await Bus.publish(ContextChanged, ContextChangedProps())

    def __enter__(self) -> "StatusApp":
        self.startup()
        return self

    def __exit__(self, *args: object) -> None:
        self.shutdown()
