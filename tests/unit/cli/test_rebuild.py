"""Tests for infragraph rebuild."""

from __future__ import annotations

import sqlite3
from pathlib import Path

from typer.testing import CliRunner

from infragraph.cli.main import app
from infragraph.db.connection import Database
from infragraph.db.models import Component, Connection
from infragraph.db.repository import Repository
from infragraph.db.schema import initialize

runner = CliRunner()


def _make_db(path: Path) -> tuple[sqlite3.Connection, Repository]:
    conn = Database(path).connect()
    initialize(conn)
    return conn, Repository(conn)


def _seed(path: Path) -> dict[str, int]:
    """Domain x with DB, API and APP plus a manual APP → API edge."""
    conn, repo = _make_db(path)
    ids = {
        kind: repo.add_component(
            Component(name=f"x{kind}", tag=f"x_{kind.lower()}", type=kind, domain="x")
        )
        for kind in ("DB", "API", "APP")
    }
    repo.add_connection(
        Connection(source_id=ids["APP"], target_id=ids["API"], domain="x", connection_type="direct")
    )
    conn.close()
    return ids


def test_rebuild_no_db_exits_1(tmp_path: Path) -> None:
    result = runner.invoke(app, ["rebuild", "--db", str(tmp_path / "missing.db")])
    assert result.exit_code == 1
    assert "infragraph init" in result.output


def test_rebuild_all(tmp_path: Path) -> None:
    db_path = tmp_path / "c.db"
    ids = _seed(db_path)

    result = runner.invoke(app, ["rebuild", "--db", str(db_path)])

    assert result.exit_code == 0, result.output
    assert "2 edge(s) created" in result.output
    conn, repo = _make_db(db_path)
    assert repo.get_connection(ids["DB"], ids["API"]) is not None
    assert repo.get_connection(ids["APP"], ids["API"]) is not None
    conn.close()


def test_rebuild_scoped(tmp_path: Path) -> None:
    db_path = tmp_path / "c.db"
    ids = _seed(db_path)

    result = runner.invoke(app, ["rebuild", "--component", str(ids["APP"]), "--db", str(db_path)])

    assert result.exit_code == 0, result.output
    assert f"component {ids['APP']}" in result.output
    assert "1 edge(s) created" in result.output


def test_rebuild_unknown_component_exits_1(tmp_path: Path) -> None:
    db_path = tmp_path / "c.db"
    _seed(db_path)
    result = runner.invoke(app, ["rebuild", "-c", "999", "--db", str(db_path)])
    assert result.exit_code == 1
    assert "not found" in result.output


def test_rebuild_without_preserve_warns_and_drops_manual(tmp_path: Path) -> None:
    db_path = tmp_path / "c.db"
    ids = _seed(db_path)
    (tmp_path / "infragraph.yaml").write_text(
        "builder:\n  preserve_manual_connections: false\n", encoding="utf-8"
    )

    result = runner.invoke(app, ["rebuild", "--db", str(db_path)])

    assert result.exit_code == 0, result.output
    assert "preserve_manual_connections" in result.output
    conn, repo = _make_db(db_path)
    assert repo.get_connection(ids["APP"], ids["API"]) is None
    conn.close()
