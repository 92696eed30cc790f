"""Configuration management.

Loads and merges configuration from multiple sources with proper precedence.
"""

import json
import os
from contextvars import ContextVar, Token
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from .config_loader import deep_merge, load_json_file
from .config_schema import Config, LoggingConfig, PublishConfig, StatusConfig
from .global_paths import GlobalPath
from ..util.log import Log

log = Log.create({"service": "config"})

__all__ = [
    "Config",
    "ConfigError",
    "ConfigManager",
    "LoggingConfig",
    "PublishConfig",
    "StatusConfig",
]

CONFIG_FILES = ("replbar.json", "replbar.jsonc")


class ConfigError(Exception):
    """Configuration error."""

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(f"Config error in {path}: {message}")


_config_var: ContextVar['ConfigManager'] = ContextVar('_config_var')


class ConfigManager:
    """Configuration management.

    Instance-based with ContextVar for scoping. Class methods delegate
    to the current instance.

    Sources, lowest precedence first:
    1. Global config (``~/.config/replbar/replbar.json``)
    2. Project configs (``replbar.json`` from filesystem root down to cwd)
    3. ``REPLBAR_CONFIG_CONTENT`` environment variable (inline JSON)
    """

    def __init__(self) -> None:
        self._cache: Optional[Config] = None
        self._sources: List[str] = []

    @classmethod
    def current(cls) -> 'ConfigManager':
        try:
            return _config_var.get()
        except LookupError:
            instance = cls()
            _config_var.set(instance)
            return instance

    @classmethod
    def provide(cls, instance: 'ConfigManager') -> Token['ConfigManager']:
        return _config_var.set(instance)

    @classmethod
    def restore(cls, token: Token['ConfigManager']) -> None:
        _config_var.reset(token)

    @classmethod
    def reset(cls) -> None:
        """Reset cached configuration."""
        inst = cls.current()
        inst._cache = None
        inst._sources = []

    @classmethod
    async def load(cls, directory: str = ".") -> Config:
        return cls.current()._load(directory)

    @classmethod
    async def get(cls) -> Config:
        inst = cls.current()
        if inst._cache is None:
            return inst._load()
        return inst._cache

    @classmethod
    def sources(cls) -> List[str]:
        """Files (and the env marker) that contributed to the cached config."""
        return cls.current()._sources.copy()

    def _load(self, directory: str = ".") -> Config:
        if self._cache is not None:
            return self._cache

        result: Dict[str, Any] = {}
        sources: List[str] = []

        def merge_file(filepath: str, kind: str) -> None:
            nonlocal result
            data = load_json_file(filepath)
            if data:
                result = deep_merge(result, data)
                sources.append(filepath)
                log.info(f"loaded {kind} config", {"path": filepath})

        # 1. Global config
        for filename in CONFIG_FILES:
            merge_file(os.path.join(GlobalPath.config(), filename), "global")

        # 2. Project config, root first so the closest file wins
        current = Path(directory).resolve()
        found: List[str] = []
        while True:
            for filename in CONFIG_FILES:
                candidate = current / filename
                if candidate.exists():
                    found.append(str(candidate))
            if current == current.parent:
                break
            current = current.parent

        for filepath in reversed(found):
            merge_file(filepath, "project")

        # 3. Environment variable config
        env_config = os.environ.get("REPLBAR_CONFIG_CONTENT")
        if env_config:
            origin = "env:REPLBAR_CONFIG_CONTENT"
            try:
                data = json.loads(env_config)
            except json.JSONDecodeError as e:
                raise ConfigError(origin, f"invalid JSON: {e}") from e
            if not isinstance(data, dict):
                raise ConfigError(origin, "expected a JSON object")
            result = deep_merge(result, data)
            sources.append(origin)
            log.info("loaded config from REPLBAR_CONFIG_CONTENT")

        try:
            config = Config.model_validate(result)
        except ValidationError as e:
            origin = sources[-1] if sources else "<defaults>"
            raise ConfigError(origin, str(e)) from e

        self._sources = sources
        self._cache = config
        return config
