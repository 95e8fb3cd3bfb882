"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from infragraph.db.connection import Database
from infragraph.db.repository import Repository
from infragraph.db.schema import initialize


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path, monkeypatch):
    """Run every test in tmp_path with no global config and no INFRAGRAPH_* env."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(
        "infragraph.config._GLOBAL_CONFIG_PATH", tmp_path / "no-global" / "config.yaml"
    )
    monkeypatch.delenv("INFRAGRAPH_DB", raising=False)
    monkeypatch.delenv("INFRAGRAPH_LOG_LEVEL", raising=False)


@pytest.fixture
def tmp_db(tmp_path):
    """File-based DB in tmp_path with schema initialized, closed after test."""
    db = Database(tmp_path / ".infragraph.db")
    conn = db.connect()
    initialize(conn)
    yield conn
    conn.close()


@pytest.fixture
def repo(tmp_db):
    return Repository(tmp_db)
