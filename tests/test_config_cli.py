"""CLI tests for configuration commands."""

import os
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from tagsort.cli import cli
from tagsort.config import ConfigManager


def _env_with_home(tmp_path: Path) -> dict[str, Any]:
    env = dict(os.environ)
    env["HOME"] = str(tmp_path)
    return env


def _config_path(tmp_path: Path) -> Path:
    return tmp_path / ".tagsort" / "config.yaml"


def test_config_view_creates_and_displays_config(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(cli, ["config", "view"], env=env)

    assert result.exit_code == 0
    assert "scheduler:" in result.output
    assert _config_path(tmp_path).exists()


def test_config_set_updates_value_and_writes_diff(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(
        cli, ["config", "set", "scheduler.interval_seconds", "--value", "42"], env=env
    )

    assert result.exit_code == 0
    assert "42" in result.output

    manager = ConfigManager(config_path=_config_path(tmp_path))
    config = manager.load(include_env=False)
    assert config.scheduler.interval_seconds == pytest.approx(42)


def test_config_set_rejects_invalid_value(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(
        cli, ["config", "set", "scheduler.interval_seconds", "--value=-1"], env=env
    )

    assert result.exit_code != 0
    assert "Invalid configuration values" in result.output

    manager = ConfigManager(config_path=_config_path(tmp_path))
    assert manager.load(include_env=False).scheduler.interval_seconds == pytest.approx(5.0)


def test_config_edit_applies_changes(tmp_path: Path, monkeypatch) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    manager = ConfigManager(config_path=_config_path(tmp_path))
    manager.ensure_exists()

    def _mock_edit(text: str, **_: Any) -> str:
        return text.replace("log_history_limit: 20", "log_history_limit: 7")

    monkeypatch.setattr("tagsort.cli.click.edit", _mock_edit)

    result = runner.invoke(cli, ["config", "edit"], env=env)

    assert result.exit_code == 0
    assert "updated" in result.output.lower()

    config = manager.load(include_env=False)
    assert config.cli.log_history_limit == 7


def test_config_view_env_prints_variables(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    env["TAGSORT__SCHEDULER__INTERVAL_SECONDS"] = "12"

    result = runner.invoke(cli, ["config", "view", "--env"], env=env)

    assert result.exit_code == 0
    lines = result.output.splitlines()
    assert "TAGSORT__SCHEDULER__INTERVAL_SECONDS=12.0" in lines
    assert "TAGSORT__LOGGING__LEVEL=WARNING" in lines
