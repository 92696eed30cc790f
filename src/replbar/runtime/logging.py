"""Process logging setup from the ``logging`` config section and CLI flags."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.config import Config, LoggingConfig
from ..util.log import Log, LogFormat, LogLevel


@dataclass(frozen=True)
class LogSettings:
    level: LogLevel
    format: LogFormat
    console: bool
    file: bool
    dev_file: bool


def resolve_log_settings(
    config: Config,
    *,
    level: Optional[str] = None,
    console: Optional[bool] = None,
) -> LogSettings:
    """Flags win over the config file; every sink is off unless asked for.

    Raises ValueError for an unknown level or format.
    """
    section = config.logging or LoggingConfig()
    return LogSettings(
        level=LogLevel.parse(level or section.level),
        format=LogFormat.parse(section.format),
        console=console if console is not None else bool(section.console),
        file=bool(section.file),
        dev_file=bool(section.dev_file),
    )


def bootstrap_logging(
    config: Config,
    *,
    level: Optional[str] = None,
    console: Optional[bool] = None,
) -> LogSettings:
    """Resolve settings and point the process logger at them."""
    settings = resolve_log_settings(config, level=level, console=console)
    Log.configure(
        level=settings.level,
        format=settings.format,
        console=settings.console,
        file=settings.file,
        dev=settings.dev_file,
    )
    return settings
