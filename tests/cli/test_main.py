from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from replbar import __version__
from replbar.cli.main import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def _isolated_cwd(monkeypatch, tmp_path: Path) -> None:  # type: ignore[no-untyped-def]
    project = tmp_path / "project"
    project.mkdir()
    monkeypatch.chdir(project)


def test_version() -> None:
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert result.stdout.strip() == f"replbar {__version__}"


def test_preview_renders_busy_and_current() -> None:
    result = runner.invoke(app, ["preview", "cider-repl", "ielm", "--busy", "ielm", "--current", "cider-repl"])

    assert result.exit_code == 0
    assert result.stdout.strip() == (
        "%{F#2aa198}%{F#839496}C%{F-}%{F-} %{F#4a4e4f}|%{F-} %{F#d87e17}El%{F-}"
    )


def test_preview_uses_project_config(tmp_path: Path) -> None:
    (tmp_path / "project" / "replbar.json").write_text(
        '{\n  // plain separator\n  "status": {"separator": " / ", "mnemonics": []}\n}\n',
        encoding="utf-8",
    )

    result = runner.invoke(app, ["preview", "a", "b"])

    assert result.exit_code == 0
    assert result.stdout.strip() == "%{F#4a4e4f}a%{F-} / %{F#4a4e4f}b%{F-}"


def test_preview_rejects_unknown_connection() -> None:
    result = runner.invoke(app, ["preview", "ielm", "--busy", "nrepl"])

    assert result.exit_code == 1


def test_invalid_config_exits_with_error(monkeypatch) -> None:  # type: ignore[no-untyped-def]
    monkeypatch.setenv("REPLBAR_CONFIG_CONTENT", '{"status": {"busyColor": "orange"}}')

    result = runner.invoke(app, ["preview", "ielm"])

    assert result.exit_code == 1


def test_config_prints_merged_json(monkeypatch) -> None:  # type: ignore[no-untyped-def]
    monkeypatch.setenv("REPLBAR_CONFIG_CONTENT", '{"publish": {"module": "repls"}}')

    result = runner.invoke(app, ["config"])

    assert result.exit_code == 0
    start = result.stdout.index("{")
    end = result.stdout.rindex("}") + 1
    payload = json.loads(result.stdout[start:end])
    assert payload["publish"]["module"] == "repls"
    assert payload["status"]["busyColor"] == "#d87e17"


def test_publish_writes_file_sink(monkeypatch, tmp_path: Path) -> None:  # type: ignore[no-untyped-def]
    target = tmp_path / "status.txt"
    monkeypatch.setenv(
        "REPLBAR_CONFIG_CONTENT",
        json.dumps({"publish": {"sink": "file", "path": str(target)}}),
    )

    result = runner.invoke(app, ["publish", "ielm", "--busy", "ielm"])

    assert result.exit_code == 0
    assert target.read_text(encoding="utf-8") == "%{F#d87e17}El%{F-}\n"


def test_publish_file_sink_without_path_fails(monkeypatch) -> None:  # type: ignore[no-untyped-def]
    monkeypatch.setenv("REPLBAR_CONFIG_CONTENT", '{"publish": {"sink": "file"}}')

    result = runner.invoke(app, ["publish", "ielm"])

    assert result.exit_code == 1


def test_non_object_env_config_exits_with_error(monkeypatch) -> None:  # type: ignore[no-untyped-def]
    monkeypatch.setenv("REPLBAR_CONFIG_CONTENT", "[1, 2]")

    result = runner.invoke(app, ["preview", "a"])

    assert result.exit_code == 1
    assert not isinstance(result.exception, AttributeError)
