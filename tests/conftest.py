from collections.abc import Iterator
from pathlib import Path

import pytest

from replbar.core.bus import Bus
from replbar.core.config import ConfigManager
from replbar.util.log import Log


@pytest.fixture(autouse=True)
def bus_context() -> Iterator[None]:
    token = Bus.provide(Bus())
    try:
        yield
    finally:
        Bus.restore(token)


@pytest.fixture(autouse=True)
def config_context(monkeypatch, tmp_path: Path) -> Iterator[None]:  # type: ignore[no-untyped-def]
    monkeypatch.setenv("REPLBAR_CONFIG_DIR", str(tmp_path / "global"))
    monkeypatch.delenv("REPLBAR_CONFIG_CONTENT", raising=False)
    token = ConfigManager.provide(ConfigManager())
    try:
        yield
    finally:
        ConfigManager.restore(token)


@pytest.fixture(autouse=True)
def _log_teardown() -> Iterator[None]:
    yield
    Log.reset()
