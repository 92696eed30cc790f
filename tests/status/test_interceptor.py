from __future__ import annotations

import pytest

from replbar.status import Connection, ConnectionRegistry, RequestChannel, RequestInterceptor
from tests.helpers import FakeTransport


def _setup() -> tuple[ConnectionRegistry, RequestInterceptor, FakeTransport, list[bool]]:
    registry = ConnectionRegistry()
    renders: list[bool] = []
    transport = FakeTransport()
    conn = Connection("a", "repl")
    interceptor = RequestInterceptor(
        registry,
        lambda: renders.append(registry.is_busy(conn)),
        RequestChannel(transport),
    )
    return registry, interceptor, transport, renders


def test_request_marks_busy_before_delegating() -> None:
    registry, interceptor, transport, renders = _setup()
    conn = Connection("a", "repl")
    seen: list[bool] = []

    def send(request, callback, connection):  # type: ignore[no-untyped-def]
        seen.append(registry.is_busy(connection))
        return transport(request, callback, connection)

    result = interceptor.wrap(send)("(+ 1 2)", lambda response: None, conn)

    assert result == "sent:(+ 1 2)"
    assert seen == [True]
    assert renders == [True]


def test_response_calls_original_then_marks_idle() -> None:
    registry, interceptor, transport, renders = _setup()
    conn = Connection("a", "repl")
    received: list[object] = []

    def on_response(response):  # type: ignore[no-untyped-def]
        received.append((response, registry.is_busy(conn)))
        return "handled"

    interceptor.attach()
    interceptor.channel.send({"op": "eval"}, on_response, conn)
    assert registry.is_busy(conn) is True

    response = {"value": "3"}
    result = transport.callbacks[0](response)

    assert result == "handled"
    assert received == [(response, True)]
    assert received[0][0] is response
    assert registry.is_busy(conn) is False
    assert renders == [True, False]


def test_extra_arguments_pass_through() -> None:
    _, interceptor, transport, _ = _setup()
    conn = Connection("a", "repl")

    interceptor.attach()
    interceptor.channel.send("req", None, conn, "ns", tool=True)

    assert transport.calls == [("req", conn, ("ns",), {"tool": True})]


def test_only_first_response_drives_idle_transition() -> None:
    registry, interceptor, transport, renders = _setup()
    conn = Connection("a", "repl")
    responses: list[str] = []

    interceptor.attach()
    interceptor.channel.send("req", responses.append, conn)
    callback = transport.callbacks[0]

    callback("out")
    registry.set_busy(conn)
    callback("done")

    assert responses == ["out", "done"]
    assert registry.is_busy(conn) is True
    assert len(renders) == 2


def test_overlapping_requests_idle_on_first_response() -> None:
    registry, interceptor, transport, _ = _setup()
    conn = Connection("a", "repl")

    interceptor.attach()
    interceptor.channel.send("first", None, conn)
    interceptor.channel.send("second", None, conn)
    transport.callbacks[0]("first-response")

    assert registry.is_busy(conn) is False


def test_missing_callback_still_idles() -> None:
    registry, interceptor, transport, _ = _setup()
    conn = Connection("a", "repl")

    interceptor.attach()
    interceptor.channel.send("req", None, conn)

    assert transport.callbacks[0] is not None
    assert transport.callbacks[0]("response") is None
    assert registry.is_busy(conn) is False


def test_unanswered_request_stays_busy() -> None:
    registry, interceptor, _, _ = _setup()
    conn = Connection("a", "repl")

    interceptor.attach()
    interceptor.channel.send("req", None, conn)

    assert registry.is_busy(conn) is True


def test_callback_error_propagates_and_still_idles() -> None:
    registry, interceptor, transport, _ = _setup()
    conn = Connection("a", "repl")

    def broken(response):  # type: ignore[no-untyped-def]
        raise RuntimeError("callback failed")

    interceptor.attach()
    interceptor.channel.send("req", broken, conn)

    with pytest.raises(RuntimeError, match="callback failed"):
        transport.callbacks[0]("response")
    assert registry.is_busy(conn) is False


def test_transport_error_propagates_unchanged() -> None:
    registry = ConnectionRegistry()
    error = ConnectionError("socket closed")

    def send(request, callback, connection):  # type: ignore[no-untyped-def]
        raise error

    interceptor = RequestInterceptor(registry, lambda: None, RequestChannel(send))
    interceptor.attach()

    with pytest.raises(ConnectionError) as info:
        interceptor.channel.send("req", None, Connection("a", "repl"))
    assert info.value is error


def test_detach_restores_direct_calls() -> None:
    registry, interceptor, transport, renders = _setup()
    conn = Connection("a", "repl")
    callback = lambda response: None  # noqa: E731

    interceptor.attach()
    interceptor.attach()
    assert interceptor.attached is True

    interceptor.detach()
    interceptor.detach()
    assert interceptor.attached is False

    interceptor.channel.send("req", callback, conn)

    assert transport.callbacks == [callback]
    assert registry.is_busy(conn) is False
    assert renders == []


def test_attach_without_channel_fails() -> None:
    interceptor = RequestInterceptor(ConnectionRegistry(), lambda: None)

    with pytest.raises(RuntimeError):
        interceptor.attach()


def test_interceptors_sharing_a_channel_do_not_steal_each_other() -> None:
    transport = FakeTransport()
    channel = RequestChannel(transport)
    first_registry, second_registry = ConnectionRegistry(), ConnectionRegistry()
    first = RequestInterceptor(first_registry, lambda: None, channel)
    second = RequestInterceptor(second_registry, lambda: None, channel)
    conn = Connection("a", "repl")

    first.attach()
    with pytest.raises(RuntimeError, match="already intercepted"):
        second.attach()
    assert second.attached is False

    second.detach()
    assert first.attached is True

    channel.send("req", None, conn)
    assert first_registry.is_busy(conn) is True
    assert second_registry.is_busy(conn) is False

    first.detach()
    second.attach()
    assert second.attached is True
    assert first.attached is False
