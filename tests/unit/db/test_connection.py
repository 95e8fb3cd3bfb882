"""Tests for the Database connection layer."""

from __future__ import annotations

import sqlite3

from infragraph.db.connection import Database


def test_connect_creates_file(tmp_path):
    db_path = tmp_path / ".infragraph.db"
    db = Database(db_path)
    conn = db.connect()
    conn.close()
    assert db_path.exists()


def test_accepts_str_path(tmp_path):
    db = Database(str(tmp_path / "catalogue.db"))
    assert db.db_path == tmp_path / "catalogue.db"


def test_foreign_keys_enabled(tmp_path):
    db = Database(tmp_path / ".infragraph.db")
    conn = db.connect()
    result = conn.execute("PRAGMA foreign_keys").fetchone()[0]
    conn.close()
    assert result == 1


def test_wal_journal_mode(tmp_path):
    db = Database(tmp_path / ".infragraph.db")
    conn = db.connect()
    mode = conn.execute("PRAGMA journal_mode").fetchone()[0]
    conn.close()
    assert mode == "wal"


def test_row_factory_set(tmp_path):
    db = Database(tmp_path / ".infragraph.db")
    conn = db.connect()
    conn.execute("CREATE TABLE t (x INTEGER)")
    conn.execute("INSERT INTO t VALUES (42)")
    row = conn.execute("SELECT x FROM t").fetchone()
    conn.close()
    assert row["x"] == 42


def test_context_manager_closes(tmp_path):
    db = Database(tmp_path / ".infragraph.db")
    with db as conn:
        assert isinstance(conn, sqlite3.Connection)
        conn.execute("SELECT 1")
    assert db._conn is None
