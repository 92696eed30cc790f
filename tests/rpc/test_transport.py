from __future__ import annotations

import io
import json
from typing import Any

from pylsp_jsonrpc.streams import JsonRpcStreamWriter

from replbar.rpc.transport import CONNECTION_CLOSED, JsonRpcTransport, TransportError
from replbar.status import ConnectionRegistry, RequestChannel, RequestInterceptor
from tests.helpers import conns


def _frames(data: bytes) -> list[dict[str, Any]]:
    messages = []
    for chunk in data.split(b"Content-Length: ")[1:]:
        _, body = chunk.split(b"\r\n\r\n", 1)
        messages.append(json.loads(body))
    return messages


def _responses(*messages: dict[str, Any]) -> io.BytesIO:
    buffer = io.BytesIO()
    writer = JsonRpcStreamWriter(buffer)
    for message in messages:
        writer.write(message)
    return io.BytesIO(buffer.getvalue())


def test_send_writes_framed_request() -> None:
    [conn] = conns("lsp")
    wfile = io.BytesIO()
    transport = JsonRpcTransport()
    transport.open(conn, io.BytesIO(), wfile)

    request_id = transport.send({"method": "eval", "params": {"code": "(+ 1 2)"}}, lambda r: None, conn)

    assert _frames(wfile.getvalue()) == [
        {"jsonrpc": "2.0", "id": request_id, "method": "eval", "params": {"code": "(+ 1 2)"}},
    ]
    assert transport.pending(conn) == 1


def test_listen_routes_results_and_errors_to_callbacks() -> None:
    [conn] = conns("lsp")
    results: dict[str, Any] = {}
    rfile = _responses(
        {"jsonrpc": "2.0", "method": "window/logMessage", "params": {"message": "hi"}},
        {"jsonrpc": "2.0", "id": 2, "error": {"code": -32601, "message": "Method not found"}},
        {"jsonrpc": "2.0", "id": 1, "result": 3},
    )
    transport = JsonRpcTransport()
    transport.open(conn, rfile, io.BytesIO())

    transport.send({"method": "eval"}, lambda r: results.setdefault("first", r), conn)
    transport.send({"method": "nope"}, lambda r: results.setdefault("second", r), conn)
    transport.listen(conn)

    assert results["first"] == 3
    assert isinstance(results["second"], TransportError)
    assert results["second"].code == -32601
    assert transport.pending(conn) == 0


def test_unknown_response_id_is_ignored() -> None:
    [conn] = conns("lsp")
    transport = JsonRpcTransport()
    transport.open(conn, io.BytesIO(), io.BytesIO())

    transport.handle_message(conn, {"jsonrpc": "2.0", "id": 99, "result": None})

    assert transport.pending(conn) == 0


def test_dispatch_hook_receives_response_handlers() -> None:
    [conn] = conns("lsp")
    queued: list = []
    seen: list = []
    transport = JsonRpcTransport(dispatch=queued.append)
    transport.open(conn, io.BytesIO(), io.BytesIO())

    transport.send({"method": "eval"}, seen.append, conn)
    transport.handle_message(conn, {"jsonrpc": "2.0", "id": 1, "result": "ok"})
    assert seen == []

    queued.pop()()
    assert seen == ["ok"]


def test_close_fails_pending_requests() -> None:
    [conn] = conns("lsp")
    seen: list = []
    transport = JsonRpcTransport()
    transport.open(conn, io.BytesIO(), io.BytesIO())
    transport.send({"method": "eval"}, seen.append, conn)

    transport.close(conn)
    transport.close(conn)

    assert len(seen) == 1
    assert isinstance(seen[0], TransportError)
    assert seen[0].code == CONNECTION_CLOSED


def test_interceptor_tracks_transport_traffic() -> None:
    a, b = conns("lsp-a", "lsp-b")
    registry = ConnectionRegistry()
    transport = JsonRpcTransport()
    transport.open(a, _responses({"jsonrpc": "2.0", "id": 1, "error": {"code": 1, "message": "failed"}}), io.BytesIO())
    transport.open(b, io.BytesIO(), io.BytesIO())
    channel = RequestChannel(transport.send)
    RequestInterceptor(registry, lambda: None, channel).attach()

    channel.send({"method": "eval"}, None, a)
    channel.send({"method": "eval"}, None, b)
    assert registry.is_busy(a) and registry.is_busy(b)

    transport.listen(a)

    assert registry.is_busy(a) is False
    assert registry.is_busy(b) is True
