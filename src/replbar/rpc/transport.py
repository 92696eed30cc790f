"""Callback-style JSON-RPC transport.

Each connection is a pair of byte streams speaking JSON-RPC 2.0 with
``Content-Length`` framing (the LSP wire format). Requests are issued with
a response callback; the reader matches responses to callbacks by id.

``JsonRpcTransport.send`` has the request primitive shape expected by
:class:`replbar.status.RequestChannel`, so busy/idle tracking can be
layered on top without the transport knowing about it.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, BinaryIO, Callable, Dict, Optional

from pylsp_jsonrpc.streams import JsonRpcStreamReader, JsonRpcStreamWriter

from ..status.connection import connection_name
from ..util.log import Log

log = Log.create({"service": "rpc.transport"})

# Error code reported to callbacks still pending when a connection closes
CONNECTION_CLOSED = -32099

ResponseCallback = Callable[[Any], Any]
Dispatch = Callable[[Callable[[], None]], Any]


class TransportError(Exception):
    """JSON-RPC error response, delivered to the request's callback."""

    def __init__(self, code: int, message: str, data: Any = None):
        self.code = code
        self.message = message
        self.data = data
        super().__init__(f"[{code}] {message}")


def _direct(fn: Callable[[], None]) -> None:
    fn()


@dataclass
class _Endpoint:
    reader: JsonRpcStreamReader
    writer: JsonRpcStreamWriter
    pending: Dict[int, ResponseCallback] = field(default_factory=dict)
    thread: Optional[threading.Thread] = None


class JsonRpcTransport:
    """JSON-RPC requests over any number of stream-backed connections.

    Args:
        dispatch: Runs a response handler. Defaults to calling it on the
            reader thread; pass ``loop.call_soon_threadsafe`` to hand
            responses to an event loop instead.
    """

    def __init__(self, dispatch: Optional[Dispatch] = None):
        self._dispatch = dispatch or _direct
        self._endpoints: Dict[Any, _Endpoint] = {}
        self._lock = threading.Lock()
        self._request_id = 0

    def open(self, connection: Any, rfile: BinaryIO, wfile: BinaryIO) -> None:
        """Register the streams of a connection. Does not start reading."""
        with self._lock:
            if connection in self._endpoints:
                raise ValueError(f"connection already open: {connection_name(connection)}")
            self._endpoints[connection] = _Endpoint(
                reader=JsonRpcStreamReader(rfile),
                writer=JsonRpcStreamWriter(wfile),
            )
        log.info("connection opened", {"connection": connection_name(connection)})

    def start(self, connection: Any) -> threading.Thread:
        """Read responses for ``connection`` on a daemon thread."""
        endpoint = self._endpoint(connection)
        thread = threading.Thread(
            target=self.listen,
            args=(connection,),
            name=f"jsonrpc-{connection_name(connection)}",
            daemon=True,
        )
        endpoint.thread = thread
        thread.start()
        return thread

    def listen(self, connection: Any) -> None:
        """Block reading messages until the stream ends."""
        endpoint = self._endpoint(connection)
        try:
            endpoint.reader.listen(lambda message: self.handle_message(connection, message))
        except Exception as e:
            log.error("error reading JSON-RPC messages", {
                "connection": connection_name(connection),
                "error": str(e),
            })

    def send(self, request: Dict[str, Any], callback: Optional[ResponseCallback], connection: Any) -> int:
        """Write a request and remember its callback. Returns the request id.

        ``request`` carries ``method`` and optionally ``params``.
        """
        endpoint = self._endpoint(connection)
        with self._lock:
            self._request_id += 1
            request_id = self._request_id
            if callback is not None:
                endpoint.pending[request_id] = callback

        message: Dict[str, Any] = {
            "jsonrpc": "2.0",
            "id": request_id,
            "method": request["method"],
        }
        if request.get("params") is not None:
            message["params"] = request["params"]

        try:
            endpoint.writer.write(message)
        except Exception:
            with self._lock:
                endpoint.pending.pop(request_id, None)
            raise
        return request_id

    def handle_message(self, connection: Any, message: Dict[str, Any]) -> None:
        """Route one incoming message to the callback of its request."""
        if "id" not in message or ("result" not in message and "error" not in message):
            log.debug("ignoring server message", {
                "connection": connection_name(connection),
                "method": message.get("method"),
            })
            return

        with self._lock:
            endpoint = self._endpoints.get(connection)
            callback = endpoint.pending.pop(message["id"], None) if endpoint else None
        if callback is None:
            log.warn("response for unknown request", {
                "connection": connection_name(connection),
                "id": message["id"],
            })
            return

        if "error" in message:
            error = message["error"] or {}
            response: Any = TransportError(
                error.get("code", -32603),
                error.get("message", "Unknown error"),
                error.get("data"),
            )
        else:
            response = message.get("result")
        self._dispatch(lambda: callback(response))

    def pending(self, connection: Any) -> int:
        """Number of requests on ``connection`` still waiting for a response."""
        with self._lock:
            endpoint = self._endpoints.get(connection)
            return len(endpoint.pending) if endpoint else 0

    def close(self, connection: Any) -> None:
        """Close the write side and fail every pending request."""
        with self._lock:
            endpoint = self._endpoints.pop(connection, None)
        if endpoint is None:
            return

        try:
            endpoint.writer.close()
        except Exception as e:
            log.warn("error closing writer", {"connection": connection_name(connection), "error": str(e)})

        for callback in endpoint.pending.values():
            error = TransportError(CONNECTION_CLOSED, "connection closed")
            self._dispatch(lambda cb=callback, err=error: cb(err))
        endpoint.pending.clear()
        log.info("connection closed", {"connection": connection_name(connection)})

    def _endpoint(self, connection: Any) -> _Endpoint:
        with self._lock:
            endpoint = self._endpoints.get(connection)
        if endpoint is None:
            raise KeyError(f"connection not open: {connection_name(connection)}")
        return endpoint
