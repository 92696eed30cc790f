"""Runtime context exports."""

from .app_context import StatusApp
from .logging import LogSettings, bootstrap_logging, resolve_log_settings

__all__ = ["LogSettings", "StatusApp", "bootstrap_logging", "resolve_log_settings"]
