"""Database schema initialization."""

from __future__ import annotations

import sqlite3

# Tables managed by the migration runner, in dependency order.
TABLES: tuple[str, ...] = (
    "domains",
    "components",
    "component_groups",
    "group_memberships",
    "connections",
)

CURRENT_VERSION = 1


def initialize(conn: sqlite3.Connection) -> None:
    """Initialize the database schema via the migration runner (idempotent)."""
    from infragraph.db.migrations import run_migrations

    run_migrations(conn)
