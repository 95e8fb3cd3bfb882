"""Forward-only migration runner for the infragraph database schema."""

from __future__ import annotations

import sqlite3

# schema_version is the bootstrap table, created before migrations run.
_CREATE_SCHEMA_VERSION = """
CREATE TABLE IF NOT EXISTS schema_version (
    version     INTEGER NOT NULL,
    applied_at  DATETIME NOT NULL DEFAULT (datetime('now'))
)
"""

_V1_SQL = """
CREATE TABLE IF NOT EXISTS domains (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    name            TEXT NOT NULL UNIQUE,
    description     TEXT,
    color           TEXT,
    metadata        TEXT NOT NULL DEFAULT '{}',
    is_active       INTEGER NOT NULL DEFAULT 1,
    created_at      DATETIME NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS components (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    name            TEXT NOT NULL CHECK (length(name) > 0),
    tag             TEXT NOT NULL,
    type            TEXT NOT NULL CHECK (type IN ('DB', 'API', 'APP', 'STORAGE', 'PIPES')),
    domain          TEXT,
    source          TEXT NOT NULL DEFAULT 'manual',
    description     TEXT,
    team            TEXT,
    metadata        TEXT NOT NULL DEFAULT '{}',
    is_active       INTEGER NOT NULL DEFAULT 1,
    last_seen       DATETIME NOT NULL DEFAULT (datetime('now')),
    created_at      DATETIME NOT NULL DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_components_domain ON components(domain);
CREATE INDEX IF NOT EXISTS idx_components_type ON components(type);

CREATE TABLE IF NOT EXISTS component_groups (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    name            TEXT NOT NULL,
    description     TEXT,
    group_type      TEXT NOT NULL DEFAULT 'LOGICAL'
                    CHECK (group_type IN ('LOGICAL', 'PHYSICAL', 'FUNCTIONAL', 'SERVICE')),
    domain          TEXT,
    domain_id       INTEGER REFERENCES domains(id) ON DELETE SET NULL,
    color           TEXT,
    position        TEXT NOT NULL DEFAULT '{"x": 0, "y": 0}',
    metadata        TEXT NOT NULL DEFAULT '{}',
    is_active       INTEGER NOT NULL DEFAULT 1,
    created_at      DATETIME NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS group_memberships (
    component_id    INTEGER NOT NULL REFERENCES components(id) ON DELETE CASCADE,
    group_id        INTEGER NOT NULL REFERENCES component_groups(id) ON DELETE CASCADE,
    role            TEXT NOT NULL DEFAULT 'MEMBER'
                    CHECK (role IN ('MEMBER', 'LEADER', 'BACKUP', 'DEPENDENCY')),
    is_active       INTEGER NOT NULL DEFAULT 1,
    added_at        DATETIME NOT NULL DEFAULT (datetime('now')),
    PRIMARY KEY (component_id, group_id)
);

CREATE TABLE IF NOT EXISTS connections (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    source_id       INTEGER NOT NULL REFERENCES components(id) ON DELETE CASCADE,
    target_id       INTEGER NOT NULL REFERENCES components(id) ON DELETE CASCADE,
    domain          TEXT NOT NULL,
    connection_type TEXT NOT NULL DEFAULT 'domain'
                    CHECK (connection_type IN ('domain', 'direct', 'inferred')),
    strength        REAL NOT NULL DEFAULT 1.0 CHECK (strength >= 0.0 AND strength <= 1.0),
    metadata        TEXT NOT NULL DEFAULT '{}',
    is_active       INTEGER NOT NULL DEFAULT 1,
    created_at      DATETIME NOT NULL DEFAULT (datetime('now')),
    UNIQUE (source_id, target_id)
);

CREATE INDEX IF NOT EXISTS idx_connections_domain ON connections(domain);
CREATE INDEX IF NOT EXISTS idx_connections_type ON connections(connection_type);
"""

# Append-only. Each entry: (version: int, sql: str).
# executescript() issues an implicit COMMIT before running.
MIGRATIONS: list[tuple[int, str]] = [
    (1, _V1_SQL),
]


def run_migrations(conn: sqlite3.Connection) -> None:
    """Apply all pending migrations in ascending version order.

    Idempotent: safe to call on a database at any version.
    """
    conn.execute(_CREATE_SCHEMA_VERSION)
    conn.commit()

    row = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
    current = row[0] if row[0] is not None else 0

    for version, sql in MIGRATIONS:
        if version > current:
            conn.executescript(sql)
            conn.execute(
                "INSERT INTO schema_version (version) VALUES (?)", (version,)
            )
            conn.commit()
