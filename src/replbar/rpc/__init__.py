"""JSON-RPC request transport."""

from .transport import JsonRpcTransport, TransportError

__all__ = ["JsonRpcTransport", "TransportError"]
