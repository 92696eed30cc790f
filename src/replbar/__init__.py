"""replbar - busy/idle status of REPL and RPC connections for status bars.

Tracks request/response traffic per connection and renders a color-coded
status line in polybar markup.
"""

__version__ = "0.1.0"

# Lazy imports to avoid circular dependencies
def __getattr__(name: str):
    """Lazy import module components."""
    if name in ("Bus", "BusEvent", "GlobalPath"):
        from . import core
        return getattr(core, name)
    if name in (
        "Connection",
        "ConnectionRegistry",
        "ContextTracker",
        "DisplayFormatter",
        "RequestChannel",
        "RequestInterceptor",
        "StatusLine",
    ):
        from . import status
        return getattr(status, name)
    if name == "StatusApp":
        from .runtime import StatusApp
        return StatusApp
    if name == "Log":
        from .util.log import Log
        return Log
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "__version__",
    "Bus",
    "BusEvent",
    "GlobalPath",
    "Connection",
    "ConnectionRegistry",
    "ContextTracker",
    "DisplayFormatter",
    "RequestChannel",
    "RequestInterceptor",
    "StatusLine",
    "StatusApp",
    "Log",
]
