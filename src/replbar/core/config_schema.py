"""Configuration schema: Pydantic models for replbar config files."""

from __future__ import annotations

import re
from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")

DEFAULT_MNEMONICS: List[Tuple[str, str]] = [
    ("cider-repl", "C"),
    ("sly-mrepl", "S"),
    ("slime-repl", "L"),
    ("inf-clojure", "IC"),
    ("Python", "Py"),
    ("ielm", "El"),
]


def _check_color(value: str) -> str:
    """Accept ``#rgb``, ``#rrggbb``, ``#aarrggbb`` or ``-`` (default color)."""
    text = value.strip()
    if text == "-" or _COLOR.match(text):
        return text
    raise ValueError(f"invalid color: {value!r}")


class StatusConfig(BaseModel):
    """Colors, separator and mnemonic table used to render the status line."""

    busy_color: str = Field("#d87e17", alias="busyColor")
    current_color: str = Field("#839496", alias="currentColor")
    idle_color: str = Field("#4a4e4f", alias="idleColor")
    indicator_color: str = Field("#2aa198", alias="indicatorColor")
    separator: str = " %{F#4a4e4f}|%{F-} "
    mnemonics: List[Tuple[str, str]] = Field(default_factory=lambda: list(DEFAULT_MNEMONICS))

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    @field_validator("busy_color", "current_color", "idle_color", "indicator_color")
    @classmethod
    def _validate_color(cls, value: str) -> str:
        return _check_color(value)

    @field_validator("mnemonics")
    @classmethod
    def _validate_mnemonics(cls, value: List[Tuple[str, str]]) -> List[Tuple[str, str]]:
        for pattern, _ in value:
            if not pattern:
                raise ValueError("mnemonic patterns must be non-empty")
        return value


class PublishConfig(BaseModel):
    """Where rendered status lines are delivered."""

    sink: Literal["polybar", "file", "none"] = "polybar"
    module: str = "replbar"
    command: List[str] = Field(default_factory=lambda: ["polybar-msg"])
    path: Optional[str] = None

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: Optional[str] = None
    format: Optional[Literal["kv", "json"]] = None
    console: Optional[bool] = None
    file: Optional[bool] = None
    dev_file: Optional[bool] = Field(None, alias="devFile")

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class Config(BaseModel):
    """Root configuration."""
    schema_: Optional[str] = Field(None, alias="$schema")
    status: StatusConfig = Field(default_factory=StatusConfig)
    publish: PublishConfig = Field(default_factory=PublishConfig)
    logging: Optional[LoggingConfig] = None

    model_config = ConfigDict(extra="forbid", populate_by_name=True)
