"""Errors raised around status publishing."""


class StatusError(Exception):
    """Base class for replbar status errors."""


class PublishError(StatusError):
    """A publish sink could not deliver the status line."""

    def __init__(self, sink: str, message: str):
        self.sink = sink
        self.message = message
        super().__init__(f"{sink}: {message}")
