"""Publish sinks delivering the rendered status line to a status bar."""

from __future__ import annotations

import os
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence

from ..core.config_schema import PublishConfig
from ..status.errors import PublishError
from ..status.service import Sink
from ..util.log import Log

log = Log.create({"service": "publish"})


class PolybarSink:
    """Send the text to a polybar ``custom/ipc`` module.

    Runs ``polybar-msg action "#<module>.send.<text>"`` without waiting for
    it. Finished invocations are reaped on the next publish; ``close`` waits
    for the rest.
    """

    name = "polybar"

    def __init__(self, module: str = "replbar", command: Optional[Sequence[str]] = None):
        self.module = module
        self.command: List[str] = list(command or ["polybar-msg"])
        self._running: List[subprocess.Popen] = []

    def argv(self, text: str) -> List[str]:
        return [*self.command, "action", f"#{self.module}.send.{text}"]

    def __call__(self, text: str) -> None:
        self._reap()
        try:
            process = subprocess.Popen(
                self.argv(text),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            raise PublishError(self.name, str(e)) from e
        self._running.append(process)

    def _reap(self) -> None:
        still_running = []
        for process in self._running:
            code = process.poll()
            if code is None:
                still_running.append(process)
            elif code != 0:
                log.warn("polybar-msg exited with error", {"code": code})
        self._running = still_running

    def close(self, timeout: float = 1.0) -> None:
        """Wait for outstanding invocations, killing any that hang."""
        for process in self._running:
            try:
                process.wait(timeout=timeout)
            except subprocess.TimeoutExpired:
                process.kill()
                process.wait()
        self._running = []


class FileSink:
    """Overwrite a file with the latest line, for polybar ``tail`` scripts."""

    name = "file"

    def __init__(self, path: str):
        self.path = Path(path)

    def __call__(self, text: str) -> None:
        tmp = self.path.with_name(f".{self.path.name}.tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(text + "\n", encoding="utf-8")
            os.replace(tmp, self.path)
        except OSError as e:
            raise PublishError(self.name, str(e)) from e


class NullSink:
    """Discard everything."""

    name = "none"

    def __call__(self, text: str) -> None:
        del text


def sink_from_config(config: PublishConfig) -> Sink:
    if config.sink == "polybar":
        return PolybarSink(module=config.module, command=config.command)
    if config.sink == "file":
        if not config.path:
            raise ValueError("publish.path is required for the file sink")
        return FileSink(config.path)
    return NullSink()


def close_sink(sink: Optional[Sink]) -> None:
    """Release whatever a sink holds; plain callables hold nothing."""
    close = getattr(sink, "close", None)
    if close is not None:
        close()
