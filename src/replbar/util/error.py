"""Error formatting utilities.

Turns replbar's own errors into one-line messages suitable for logs and
CLI output.
"""

import json
import traceback
from typing import Any


def format_error(error: Any) -> str | None:
    """Format known replbar errors into user-friendly messages.

    Returns None if the error type is not recognized, allowing
    fallback to format_unknown_error.
    """
    from ..core.config import ConfigError
    from ..rpc.transport import TransportError
    from ..status.errors import PublishError

    if isinstance(error, PublishError):
        return f'Publishing to "{error.sink}" failed: {error.message}'
    if isinstance(error, TransportError):
        return f"Request failed ({error.code}): {error.message}"
    if isinstance(error, ConfigError):
        return str(error)
    return None


def format_unknown_error(error: Any) -> str:
    """Format any error into a string representation.

    Handles Exception objects, serializable objects, and primitives.
    """
    if isinstance(error, BaseException):
        if error.__traceback__:
            return "".join(traceback.format_exception(type(error), error, error.__traceback__))
        return f"{error.__class__.__name__}: {error}"

    if isinstance(error, (dict, list)):
        try:
            return json.dumps(error, indent=2)
        except (TypeError, ValueError):
            return "Unexpected error (unserializable)"

    return str(error)


def describe_error(error: Any) -> str:
    """Known-error message when available, otherwise the generic rendering."""
    return format_error(error) or format_unknown_error(error)
