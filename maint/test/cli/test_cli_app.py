from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from maint import __version__
from maint.cli.app import app

runner = CliRunner()


def test_version() -> None:
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_commands_are_registered() -> None:
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    for name in ("status", "create-patch", "add-patch", "apply-patch", "push", "deploy-rc", "deploy-production"):
        assert name in result.output


def test_invalid_workspace_option(tmp_path: Path) -> None:
    result = runner.invoke(app, ["--workspace", str(tmp_path), "status"])
    assert result.exit_code == 2


def test_status_in_workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MAINT_WORKSPACE", "unused")
    (tmp_path / "maint.toml").write_text("", encoding="utf-8")
    result = runner.invoke(app, ["--workspace", str(tmp_path), "status"])
    assert result.exit_code == 0
    assert "Release branches" in result.output
