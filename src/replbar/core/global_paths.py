"""Per-user directory locations for replbar.

Directories follow the platform conventions provided by ``platformdirs``.
Nothing is created on import; callers create what they write to.
"""

import os
from pathlib import Path

from platformdirs import user_config_dir, user_data_dir, user_state_dir

APP_NAME = "replbar"


class GlobalPath:
    """Global path management for replbar directories."""

    @classmethod
    def home(cls) -> str:
        """User home directory, overridable for tests."""
        return os.environ.get("REPLBAR_TEST_HOME", str(Path.home()))

    @classmethod
    def data(cls) -> str:
        return user_data_dir(APP_NAME)

    @classmethod
    def config(cls) -> str:
        return os.environ.get("REPLBAR_CONFIG_DIR") or user_config_dir(APP_NAME)

    @classmethod
    def state(cls) -> str:
        return user_state_dir(APP_NAME)

    @classmethod
    def log(cls) -> str:
        """Log file directory."""
        return str(Path(cls.state()) / "log")
