"""Event bus for in-process notifications.

Events are declared once with a Pydantic model describing their properties
and delivered to every subscriber of that event type, in subscription
order. A failing subscriber is logged and does not stop delivery to the
others.

Example:
    class ContextChangedProps(BaseModel):
        pass

    ContextChanged = BusEvent.define("context.changed", ContextChangedProps)

    unsubscribe = Bus.subscribe(ContextChanged, lambda payload: ...)
    Bus.emit(ContextChanged, ContextChangedProps())
    unsubscribe()
"""

import inspect
import traceback
from contextvars import ContextVar, Token
from typing import Any, Awaitable, Callable, Dict, Generic, Iterator, List, Optional, Tuple, TypeVar, Union

from pydantic import BaseModel

T = TypeVar('T', bound=BaseModel)

# Lazy logger to avoid circular imports
_log: Optional[Any] = None


def _get_log():
    global _log
    if _log is None:
        from ..util.log import Log
        _log = Log.create({"service": "bus"})
    return _log


class BusEvent(Generic[T]):
    """Named event with the model its properties must satisfy."""

    def __init__(self, event_type: str, properties_type: type[T]):
        self.type = event_type
        self.properties_type = properties_type

    @staticmethod
    def define(event_type: str, properties_type: type[T]) -> 'BusEvent[T]':
        return BusEvent(event_type, properties_type)


class EventPayload(BaseModel):
    """Payload delivered to event subscribers."""
    type: str
    properties: Dict[str, Any]


SubscriptionCallback = Callable[[EventPayload], Union[None, Awaitable[None]]]


_bus_var: ContextVar['Bus'] = ContextVar('_bus_var')


class Bus:
    """Subscriptions for one StatusApp.

    The active instance lives in a ContextVar; the class methods resolve it,
    so callers never pass a bus around.
    """

    def __init__(self) -> None:
        self._subscriptions: Dict[str, List[SubscriptionCallback]] = {}

    @classmethod
    def _current(cls) -> 'Bus':
        try:
            return _bus_var.get()
        except LookupError:
            raise RuntimeError("No Bus is bound to the current context")

    @classmethod
    def provide(cls, bus: 'Bus') -> Token['Bus']:
        return _bus_var.set(bus)

    @classmethod
    def restore(cls, token: Token['Bus']) -> None:
        _bus_var.reset(token)

    @classmethod
    def _deliveries(cls, event: BusEvent[T], properties: Any) -> Iterator[Tuple[EventPayload, SubscriptionCallback]]:
        if not isinstance(properties, event.properties_type):
            if not isinstance(properties, dict):
                raise TypeError(
                    f"Properties must be instance of {event.properties_type.__name__}"
                )
            properties = event.properties_type(**properties)
        payload = EventPayload(type=event.type, properties=properties.model_dump())
        # Copy so a subscriber may unsubscribe while the event is delivered
        for callback in list(cls._current()._subscriptions.get(event.type, [])):
            yield payload, callback

    @staticmethod
    def _failed(event: BusEvent[T], error: Exception) -> None:
        _get_log().error("subscription callback failed", {
            "error": str(error),
            "type": event.type,
            "traceback": traceback.format_exc(),
        })

    @classmethod
    async def publish(cls, event: BusEvent[T], properties: T) -> None:
        """Deliver an event, awaiting coroutine subscribers in turn."""
        for payload, callback in cls._deliveries(event, properties):
            try:
                result = callback(payload)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                cls._failed(event, e)

    @classmethod
    def emit(cls, event: BusEvent[T], properties: T) -> None:
        """Deliver an event to synchronous subscribers from non-async code.

        Coroutine subscribers are skipped with a warning; use :meth:`publish`
        from a running event loop when subscribers are async.
        """
        for payload, callback in cls._deliveries(event, properties):
            try:
                result = callback(payload)
                if inspect.iscoroutine(result):
                    result.close()
                    _get_log().warn("async subscriber skipped by emit", {"type": event.type})
            except Exception as e:
                cls._failed(event, e)

    @classmethod
    def subscribe(cls, event: BusEvent[T], callback: SubscriptionCallback) -> Callable[[], None]:
        """Register ``callback`` for ``event``. Returns an idempotent unsubscribe."""
        subscribers = cls._current()._subscriptions.setdefault(event.type, [])
        subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in subscribers:
                subscribers.remove(callback)

        return unsubscribe

    def clear(self) -> None:
        self._subscriptions.clear()
