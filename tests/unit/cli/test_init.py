"""Tests for infragraph init."""

from __future__ import annotations

from pathlib import Path

from typer.testing import CliRunner

from infragraph.cli.main import app

runner = CliRunner()


def test_init_creates_db_and_config(tmp_path: Path) -> None:
    project = tmp_path / "proj"
    result = runner.invoke(app, ["init", str(project)])

    assert result.exit_code == 0, result.output
    assert (project / ".infragraph.db").exists()
    assert (project / "infragraph.yaml").exists()
    assert "Catalogue initialized" in result.output


def test_init_custom_db_path(tmp_path: Path) -> None:
    db_path = tmp_path / "elsewhere.db"
    result = runner.invoke(app, ["init", str(tmp_path), "--db", str(db_path)])

    assert result.exit_code == 0, result.output
    assert db_path.exists()
    assert not (tmp_path / ".infragraph.db").exists()


def test_init_twice_keeps_existing(tmp_path: Path) -> None:
    runner.invoke(app, ["init", str(tmp_path)])
    config = tmp_path / "infragraph.yaml"
    config.write_text("graph:\n  view_mode: domains\n", encoding="utf-8")

    result = runner.invoke(app, ["init", str(tmp_path)])

    assert result.exit_code == 0
    assert "already exists" in result.output
    assert "domains" in config.read_text(encoding="utf-8")


def test_init_defaults_to_cwd(tmp_path: Path) -> None:
    result = runner.invoke(app, ["init"])
    assert result.exit_code == 0
    assert (tmp_path / ".infragraph.db").exists()
