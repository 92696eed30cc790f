"""Connection busy/idle tracking and status line rendering."""

from .connection import Connection, ConnectionState, connection_name
from .errors import PublishError, StatusError
from .events import ContextChanged, ContextChangedProps
from .formatter import DisplayFormatter
from .interceptor import RequestChannel, RequestInterceptor
from .registry import ConnectionRegistry
from .service import StatusLine
from .tracker import ContextTracker

__all__ = [
    "Connection",
    "ConnectionRegistry",
    "ConnectionState",
    "ContextChanged",
    "ContextChangedProps",
    "ContextTracker",
    "DisplayFormatter",
    "PublishError",
    "RequestChannel",
    "RequestInterceptor",
    "StatusError",
    "StatusLine",
    "connection_name",
]
