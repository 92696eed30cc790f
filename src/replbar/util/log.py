"""Structured key/value logging with optional stderr and file sinks.

Every module creates its own tagged logger::

    log = Log.create({"service": "status.registry"})
    log.debug("connection busy", {"connection": "cider-repl"})

Output goes nowhere until :meth:`Log.configure` enables a sink, which keeps
the status bar process quiet by default.
"""

import json
import sys
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, TextIO

from ..core.global_paths import GlobalPath


class LogLevel(str, Enum):
    """Log severity levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"

    @classmethod
    def parse(cls, value: str | None) -> "LogLevel":
        if value is None:
            return cls.INFO
        text = value.strip().lower()
        if text in {"warn", "warning"}:
            return cls.WARN
        for level in cls:
            if level.value.lower() == text:
                return level
        raise ValueError(f"invalid log level: {value}")


class LogFormat(str, Enum):
    """Log output format."""

    KV = "kv"
    JSON = "json"

    @classmethod
    def parse(cls, value: str | None) -> "LogFormat":
        if value is None:
            return cls.KV
        text = value.strip().lower()
        for fmt in cls:
            if fmt.value == text:
                return fmt
        raise ValueError(f"invalid log format: {value}")


LEVEL_PRIORITY = {
    LogLevel.DEBUG: 0,
    LogLevel.INFO: 1,
    LogLevel.WARN: 2,
    LogLevel.ERROR: 3,
}

# Timestamped files kept in the log directory
MAX_LOG_FILES = 5


@dataclass
class LogConfig:
    """Process-wide logging configuration."""

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.KV
    console: bool = False
    file: bool = False
    log_file_path: Optional[str] = None
    _file_handle: Optional[TextIO] = None


_config = LogConfig()
_last_timestamp = time.time()


class Logger:
    """Tagged logger writing one line per event."""

    def __init__(self, tags: Optional[Dict[str, Any]] = None):
        self.tags = tags or {}

    def _enabled(self, level: LogLevel) -> bool:
        if not (_config.console or _config.file):
            return False
        return LEVEL_PRIORITY[level] >= LEVEL_PRIORITY[_config.level]

    def _format_error(self, error: BaseException, depth: int = 0) -> str:
        result = str(error) or error.__class__.__name__
        if error.__cause__ and depth < 10:
            result += " Caused by: " + self._format_error(error.__cause__, depth + 1)
        return result

    def _normalize(self, value: Any) -> Any:
        if isinstance(value, BaseException):
            return self._format_error(value)
        if value is None or isinstance(value, (dict, list, tuple, int, float, bool)):
            return value
        return str(value)

    def _value(self, value: Any) -> str:
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, float)):
            return str(value)
        if isinstance(value, (dict, list, tuple)):
            return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
        text = str(value)
        if text == "" or any(ch.isspace() for ch in text) or "=" in text:
            return json.dumps(text, ensure_ascii=False)
        return text

    def _payload(self, level: LogLevel, message: Any, extra: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        global _last_timestamp

        now = time.time()
        delta_ms = int((now - _last_timestamp) * 1000)
        _last_timestamp = now

        fields = {**self.tags, **(extra or {})}
        return {
            "time": datetime.now(timezone.utc).isoformat(timespec="seconds"),
            "delta_ms": delta_ms,
            "level": level.value.lower(),
            "msg": self._normalize(message),
            **{k: self._normalize(v) for k, v in fields.items() if v is not None},
        }

    def _line(self, level: LogLevel, message: Any, extra: Optional[Dict[str, Any]]) -> str:
        payload = self._payload(level, message, extra)
        if _config.format == LogFormat.JSON:
            return json.dumps(payload, ensure_ascii=False, separators=(",", ":")) + "\n"

        head = [
            str(payload.pop("time")),
            f"+{payload.pop('delta_ms')}ms",
            f"level={payload.pop('level')}",
            f"msg={self._value(payload.pop('msg'))}",
        ]
        tail = [f"{k}={self._value(v)}" for k, v in payload.items()]
        return " ".join(head + tail) + "\n"

    def _emit(self, level: LogLevel, message: Any, extra: Optional[Dict[str, Any]]) -> None:
        if not self._enabled(level):
            return
        line = self._line(level, message, extra)
        if _config.console:
            sys.stderr.write(line)
            sys.stderr.flush()
        if _config.file and _config._file_handle:
            _config._file_handle.write(line)
            _config._file_handle.flush()

    def debug(self, message: Any = None, extra: Optional[Dict[str, Any]] = None) -> None:
        self._emit(LogLevel.DEBUG, message, extra)

    def info(self, message: Any = None, extra: Optional[Dict[str, Any]] = None) -> None:
        self._emit(LogLevel.INFO, message, extra)

    def warn(self, message: Any = None, extra: Optional[Dict[str, Any]] = None) -> None:
        self._emit(LogLevel.WARN, message, extra)

    def warning(self, message: Any = None, extra: Optional[Dict[str, Any]] = None) -> None:
        """Compatibility alias for warn()."""
        self.warn(message, extra)

    def error(self, message: Any = None, extra: Optional[Dict[str, Any]] = None) -> None:
        self._emit(LogLevel.ERROR, message, extra)

    def tag(self, key: str, value: Any) -> "Logger":
        """Add a tag to this logger instance."""
        self.tags[key] = value
        return self

    def clone(self) -> "Logger":
        return Logger(tags=self.tags.copy())


class Log:
    """Global logging interface and factory."""

    _loggers: Dict[str, Logger] = {}

    @classmethod
    def create(cls, tags: Optional[Dict[str, Any]] = None) -> Logger:
        """Create or retrieve a logger.

        Loggers carrying a string ``service`` tag are cached per service.
        """
        tags = tags or {}
        service = tags.get("service")
        if not isinstance(service, str) or not service:
            return Logger(tags=tags)

        logger = cls._loggers.get(service)
        if logger is None:
            logger = Logger(tags=tags)
            cls._loggers[service] = logger
        return logger

    @classmethod
    def configure(
        cls,
        *,
        level: LogLevel | None = None,
        format: LogFormat | None = None,
        console: bool | None = None,
        file: bool | None = None,
        dev: bool = False,
    ) -> None:
        """Configure logging sinks and output format."""
        if level is not None:
            _config.level = level
        if format is not None:
            _config.format = format
        if console is not None:
            _config.console = console
        if file is not None:
            _config.file = file

        cls.close()
        if not _config.file:
            _config.log_file_path = None
            return

        log_dir = Path(GlobalPath.log())
        log_dir.mkdir(parents=True, exist_ok=True)
        cls._cleanup_logs(log_dir)
        if dev:
            log_path = log_dir / "dev.log"
        else:
            stamp = datetime.now().isoformat().split(".")[0].replace(":", "")
            log_path = log_dir / f"{stamp}.log"

        _config.log_file_path = str(log_path)
        _config._file_handle = log_path.open("w", encoding="utf-8")

    @classmethod
    def file(cls) -> str:
        """Current log file path, or empty string when file logging is off."""
        return _config.log_file_path or ""

    @classmethod
    def _cleanup_logs(cls, log_dir: Path) -> None:
        files = sorted(log_dir.glob("????-??-??T??????.log"), key=lambda p: p.stat().st_mtime)
        # Leave room for the file about to be created
        for old in files[: max(0, len(files) - (MAX_LOG_FILES - 1))]:
            old.unlink(missing_ok=True)

    @classmethod
    def close(cls) -> None:
        if _config._file_handle:
            _config._file_handle.close()
            _config._file_handle = None

    @classmethod
    def reset(cls) -> None:
        """Disable all sinks and restore defaults."""
        cls.close()
        _config.level = LogLevel.INFO
        _config.format = LogFormat.KV
        _config.console = False
        _config.file = False
        _config.log_file_path = None
