"""Derive busy/idle state from request/response traffic.

A request primitive has the shape::

    send(request, callback, connection, *extra, **kwargs)

and calls ``callback(response)`` when the response arrives. The
interceptor wraps such a primitive so the connection is marked busy before
the request goes out and idle once its callback has run.
"""

from __future__ import annotations

import functools
from typing import Any, Callable, Optional

from ..util.log import Log
from .connection import connection_name
from .registry import ConnectionRegistry

log = Log.create({"service": "status.interceptor"})

Send = Callable[..., Any]
ResponseCallback = Callable[..., Any]


class RequestChannel:
    """Extension point owning the request primitive callers go through.

    Callers always invoke :meth:`send`; whatever is installed decides what
    actually happens. :meth:`restore` puts the original primitive back.
    """

    def __init__(self, send: Send):
        self.original = send
        self._active = send

    def send(self, request: Any, callback: Optional[ResponseCallback], connection: Any, *extra: Any, **kwargs: Any) -> Any:
        return self._active(request, callback, connection, *extra, **kwargs)

    __call__ = send

    @property
    def installed(self) -> bool:
        """True while something other than the original primitive is active."""
        return self._active is not self.original

    def is_active(self, send: Send) -> bool:
        return self._active is send

    def install(self, send: Send) -> None:
        self._active = send

    def restore(self) -> None:
        self._active = self.original


class RequestInterceptor:
    """Mark connections busy on request and idle on response.

    State is a flag, not a counter: with two requests outstanding on one
    connection, the first response marks it idle. A request whose callback
    never fires leaves its connection busy until ``stop_all_spinners``.
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        on_change: Callable[[], None],
        channel: Optional[RequestChannel] = None,
    ):
        self.registry = registry
        self.on_change = on_change
        self.channel = channel
        self._installed: Optional[Send] = None

    @property
    def attached(self) -> bool:
        """True while this interceptor's own wrapper is the active primitive."""
        return (
            self.channel is not None
            and self._installed is not None
            and self.channel.is_active(self._installed)
        )

    def wrap(self, send: Send) -> Send:
        """Return a replacement for ``send`` with busy/idle side effects."""

        @functools.wraps(send)
        def intercepted(request: Any, callback: Optional[ResponseCallback], connection: Any, *extra: Any, **kwargs: Any) -> Any:
            self._mark(connection, busy=True)
            return send(request, self._wrap_callback(callback, connection), connection, *extra, **kwargs)

        return intercepted

    def _wrap_callback(self, callback: Optional[ResponseCallback], connection: Any) -> ResponseCallback:
        fired = False

        def on_response(response: Any, *args: Any, **kwargs: Any) -> Any:
            nonlocal fired
            first = not fired
            fired = True
            try:
                if callback is None:
                    return None
                return callback(response, *args, **kwargs)
            finally:
                # Only the first response of a request drives the idle transition
                if first:
                    self._mark(connection, busy=False)

        return on_response

    def _mark(self, connection: Any, *, busy: bool) -> None:
        if busy:
            self.registry.set_busy(connection)
        else:
            self.registry.set_idle(connection)
        log.debug("request busy" if busy else "response received", {
            "connection": connection_name(connection),
        })
        self.on_change()

    def attach(self) -> None:
        """Install the wrapper on the channel. No-op when already attached."""
        if self.channel is None:
            raise RuntimeError("RequestInterceptor has no channel to attach to")
        if self.attached:
            return
        if self.channel.installed:
            raise RuntimeError("request channel is already intercepted by another RequestInterceptor")
        self._installed = self.wrap(self.channel.original)
        self.channel.install(self._installed)
        log.info("request interception attached")

    def detach(self) -> None:
        """Restore the original primitive. No-op unless this interceptor is attached."""
        if not self.attached:
            self._installed = None
            return
        self.channel.restore()
        self._installed = None
        log.info("request interception detached")
