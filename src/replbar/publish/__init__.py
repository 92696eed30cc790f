"""Publish sinks for rendered status lines."""

from .sinks import FileSink, NullSink, PolybarSink, close_sink, sink_from_config

__all__ = ["FileSink", "NullSink", "PolybarSink", "close_sink", "sink_from_config"]
