"""Core infrastructure: event bus, configuration and paths."""

from .bus import Bus, BusEvent, EventPayload
from .global_paths import GlobalPath

__all__ = ["Bus", "BusEvent", "EventPayload", "GlobalPath"]
