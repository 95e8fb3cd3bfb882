"""Repository pattern for all infragraph database operations.

Single interface for: domains, component groups, memberships, components and
connections. The graph engine only ever talks to storage through the
``list_active_*`` / ``list_domains`` / ``replace_connections`` methods.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterable
from typing import Any

from infragraph.db.models import (
    Component,
    ComponentGroup,
    Connection,
    Domain,
    GroupMembership,
)

_COMPONENT_COLUMNS = (
    "id, name, tag, type, domain, source, description, team, metadata, is_active, last_seen"
)
_CONNECTION_COLUMNS = (
    "c.id, c.source_id, c.target_id, c.domain, c.connection_type, c.strength, "
    "c.metadata, c.is_active"
)
_GROUP_COLUMNS = (
    "id, name, description, group_type, domain, domain_id, color, position, metadata, is_active"
)

# Scope value for a full rebuild in replace_connections().
SCOPE_ALL = "all"


class Repository:
    """Data access layer for all infragraph entities.

    Wraps an open sqlite3.Connection. The connection is owned by the caller
    and must be closed after use.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        """Initialise with an open database connection.

        Args:
            conn: An open sqlite3.Connection with the schema initialised
                (see infragraph.db.schema.initialize).
        """
        self._conn = conn

    # ------------------------------------------------------------------
    # Domains
    # ------------------------------------------------------------------

    def add_domain(self, domain: Domain) -> int:
        """Insert a domain and return its new id."""
        cur = self._conn.execute(
            """
            INSERT INTO domains (name, description, color, metadata, is_active)
            VALUES (?, ?, ?, ?, ?)
            """,
            (domain.name, domain.description, domain.color, domain.metadata, int(domain.is_active)),
        )
        self._conn.commit()
        return cur.lastrowid

    def get_domain_by_name(self, name: str) -> Domain | None:
        row = self._conn.execute(
            "SELECT id, name, description, color, metadata, is_active FROM domains WHERE name = ?",
            (name,),
        ).fetchone()
        return _row_to_domain(row) if row else None

    def list_domains(self) -> list[Domain]:
        """Return all active domains ordered by id."""
        rows = self._conn.execute(
            "SELECT id, name, description, color, metadata, is_active "
            "FROM domains WHERE is_active = 1 ORDER BY id"
        ).fetchall()
        return [_row_to_domain(r) for r in rows]

    # ------------------------------------------------------------------
    # Groups + memberships
    # ------------------------------------------------------------------

    def add_group(self, group: ComponentGroup) -> int:
        """Insert a component group and return its new id."""
        cur = self._conn.execute(
            """
            INSERT INTO component_groups
                (name, description, group_type, domain, domain_id, color, position, metadata, is_active)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                group.name,
                group.description,
                group.group_type,
                group.domain,
                group.domain_id,
                group.color,
                group.position,
                group.metadata,
                int(group.is_active),
            ),
        )
        self._conn.commit()
        return cur.lastrowid

    def get_group_by_name(self, name: str) -> ComponentGroup | None:
        row = self._conn.execute(
            f"SELECT {_GROUP_COLUMNS} FROM component_groups WHERE name = ? ORDER BY id LIMIT 1",
            (name,),
        ).fetchone()
        return _row_to_group(row) if row else None

    def add_membership(self, membership: GroupMembership) -> None:
        """Insert or refresh a component → group membership.

        Re-adding an existing membership updates its role and reactivates it.
        """
        self._conn.execute(
            """
            INSERT INTO group_memberships (component_id, group_id, role, is_active)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(component_id, group_id) DO UPDATE SET
                role = excluded.role,
                is_active = excluded.is_active
            """,
            (
                membership.component_id,
                membership.group_id,
                membership.role,
                int(membership.is_active),
            ),
        )
        self._conn.commit()

    def list_active_groups(self, with_components: bool = True) -> list[ComponentGroup]:
        """Return active groups ordered by id.

        Args:
            with_components: When True, populate ``component_ids`` with the ids
                of active members (active membership and active component).

        Returns:
            List of ComponentGroup instances (may be empty).
        """
        groups = [
            _row_to_group(r)
            for r in self._conn.execute(
                f"SELECT {_GROUP_COLUMNS} FROM component_groups WHERE is_active = 1 ORDER BY id"
            ).fetchall()
        ]
        if not with_components or not groups:
            return groups

        by_id = {g.id: g for g in groups}
        rows = self._conn.execute(
            """
            SELECT m.group_id, m.component_id
            FROM group_memberships m
            JOIN components c ON c.id = m.component_id
            WHERE m.is_active = 1 AND c.is_active = 1
            ORDER BY m.group_id, m.component_id
            """
        ).fetchall()
        for row in rows:
            group = by_id.get(row["group_id"])
            if group is not None:
                group.component_ids.append(row["component_id"])
        return groups

    # ------------------------------------------------------------------
    # Components
    # ------------------------------------------------------------------

    def add_component(self, component: Component) -> int:
        """Insert a component and return its new id."""
        cur = self._conn.execute(
            """
            INSERT INTO components
                (name, tag, type, domain, source, description, team, metadata, is_active)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                component.name,
                component.tag,
                component.type,
                component.domain,
                component.source,
                component.description,
                component.team,
                component.metadata,
                int(component.is_active),
            ),
        )
        self._conn.commit()
        return cur.lastrowid

    def get_component(self, component_id: int) -> Component | None:
        """Return a component by id (active or not), or None if not found."""
        row = self._conn.execute(
            f"SELECT {_COMPONENT_COLUMNS} FROM components WHERE id = ?", (component_id,)
        ).fetchone()
        return _row_to_component(row) if row else None

    def find_component(self, name: str, type_: str) -> Component | None:
        """Return the component identified by (name, type), or None.

        Tags are not unique, so discovery matches on name + type instead.
        """
        row = self._conn.execute(
            f"SELECT {_COMPONENT_COLUMNS} FROM components WHERE name = ? AND type = ? "
            "ORDER BY id LIMIT 1",
            (name, type_),
        ).fetchone()
        return _row_to_component(row) if row else None

    def refresh_component(self, component_id: int, *, tag: str, metadata: str) -> None:
        """Record a re-discovery: new tag + metadata, last_seen = now, reactivated."""
        self._conn.execute(
            """
            UPDATE components
            SET tag = ?, metadata = ?, last_seen = datetime('now'), is_active = 1
            WHERE id = ?
            """,
            (tag, metadata, component_id),
        )
        self._conn.commit()

    def set_component_active(self, component_id: int, active: bool) -> None:
        """Soft-delete (or restore) a component."""
        self._conn.execute(
            "UPDATE components SET is_active = ? WHERE id = ?", (int(active), component_id)
        )
        self._conn.commit()

    def delete_component(self, component_id: int) -> None:
        """Hard-delete a component. Connections and memberships cascade."""
        self._conn.execute("DELETE FROM components WHERE id = ?", (component_id,))
        self._conn.commit()

    def list_active_components(
        self, domain: str | None = None, component_id: int | None = None
    ) -> list[Component]:
        """Return active components ordered by id.

        Args:
            domain: Restrict to components whose explicit string domain equals
                this value. Tag-derived domains are not matched here.
            component_id: Restrict to a single component.

        Returns:
            List of Component instances (may be empty).
        """
        sql = f"SELECT {_COMPONENT_COLUMNS} FROM components WHERE is_active = 1"
        params: list[Any] = []
        if domain is not None:
            sql += " AND domain = ?"
            params.append(domain)
        if component_id is not None:
            sql += " AND id = ?"
            params.append(component_id)
        sql += " ORDER BY id"
        return [_row_to_component(r) for r in self._conn.execute(sql, params).fetchall()]

    def list_tags(self) -> set[str]:
        """Return every tag currently in use (active or not)."""
        return {r[0] for r in self._conn.execute("SELECT tag FROM components").fetchall()}

    def count_components_by_type(self) -> dict[str, int]:
        rows = self._conn.execute(
            "SELECT type, COUNT(*) AS n FROM components WHERE is_active = 1 "
            "GROUP BY type ORDER BY type"
        ).fetchall()
        return {r["type"]: r["n"] for r in rows}

    # ------------------------------------------------------------------
    # Connections
    # ------------------------------------------------------------------

    def add_connection(self, connection: Connection) -> int:
        """Insert a single connection and return its id.

        Raises:
            sqlite3.IntegrityError: if the ordered (source, target) pair exists.
        """
        cur = self._conn.execute(
            """
            INSERT INTO connections
                (source_id, target_id, domain, connection_type, strength, metadata, is_active)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            _connection_params(connection),
        )
        self._conn.commit()
        return cur.lastrowid

    def get_connection(self, source_id: int, target_id: int) -> Connection | None:
        row = self._conn.execute(
            f"SELECT {_CONNECTION_COLUMNS} FROM connections c "
            "WHERE c.source_id = ? AND c.target_id = ?",
            (source_id, target_id),
        ).fetchone()
        return _row_to_connection(row) if row else None

    def list_active_connections(self, domain: str | None = None) -> list[Connection]:
        """Return active connections whose endpoints are both active, ordered by id.

        Args:
            domain: Restrict to connections carrying this domain string.
        """
        sql = f"""
            SELECT {_CONNECTION_COLUMNS}
            FROM connections c
            JOIN components s ON s.id = c.source_id AND s.is_active = 1
            JOIN components t ON t.id = c.target_id AND t.is_active = 1
            WHERE c.is_active = 1
        """
        params: list[Any] = []
        if domain is not None:
            sql += " AND c.domain = ?"
            params.append(domain)
        sql += " ORDER BY c.id"
        return [_row_to_connection(r) for r in self._conn.execute(sql, params).fetchall()]

    def replace_connections(
        self,
        scope: str | int,
        edges: Iterable[Connection],
        connection_types: Iterable[str] | None = None,
    ) -> int:
        """Atomically delete the connections in *scope* and insert *edges*.

        Delete and insert run in one transaction: on any error the transaction
        is rolled back and previously stored connections are left untouched.

        Args:
            scope: ``"all"`` for every connection, or a component id to restrict
                the delete to connections touching that component.
            edges: Replacement connections. Duplicate (source, target) pairs
                are skipped; any other constraint violation raises.
            connection_types: Only delete connections of these types. None
                deletes regardless of type.

        Returns:
            Number of connections actually inserted.
        """
        where: list[str] = []
        params: list[Any] = []
        if scope != SCOPE_ALL:
            where.append("(source_id = ? OR target_id = ?)")
            params.extend([scope, scope])
        if connection_types is not None:
            types = sorted(connection_types)
            where.append(f"connection_type IN ({','.join('?' * len(types))})")
            params.extend(types)

        delete_sql = "DELETE FROM connections"
        if where:
            delete_sql += " WHERE " + " AND ".join(where)

        inserted = 0
        with self._conn:
            self._conn.execute(delete_sql, params)
            for edge in edges:
                cur = self._conn.execute(
                    """
                    INSERT INTO connections
                        (source_id, target_id, domain, connection_type, strength, metadata, is_active)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT (source_id, target_id) DO NOTHING
                    """,
                    _connection_params(edge),
                )
                inserted += cur.rowcount
        return inserted

    def count_connections(self) -> int:
        return self._conn.execute(
            "SELECT COUNT(*) FROM connections WHERE is_active = 1"
        ).fetchone()[0]

    def connection_stats(self) -> dict[str, Any]:
        """Return ``{"total": n, "by_domain": {...}, "by_type": {...}}`` for active connections.

        ``by_domain`` is ordered by descending count.
        """
        by_domain = self._conn.execute(
            "SELECT domain, COUNT(*) AS n FROM connections WHERE is_active = 1 "
            "GROUP BY domain ORDER BY n DESC, domain"
        ).fetchall()
        by_type = self._conn.execute(
            "SELECT connection_type, COUNT(*) AS n FROM connections WHERE is_active = 1 "
            "GROUP BY connection_type ORDER BY connection_type"
        ).fetchall()
        return {
            "total": self.count_connections(),
            "by_domain": {r["domain"]: r["n"] for r in by_domain},
            "by_type": {r["connection_type"]: r["n"] for r in by_type},
        }


# ------------------------------------------------------------------
# Row → model helpers
# ------------------------------------------------------------------

def _connection_params(connection: Connection) -> tuple:
    return (
        connection.source_id,
        connection.target_id,
        connection.domain,
        connection.connection_type,
        connection.strength,
        connection.metadata,
        int(connection.is_active),
    )


def _row_to_domain(row: sqlite3.Row) -> Domain:
    return Domain(
        id=row["id"],
        name=row["name"],
        description=row["description"],
        color=row["color"],
        metadata=row["metadata"],
        is_active=bool(row["is_active"]),
    )


def _row_to_group(row: sqlite3.Row) -> ComponentGroup:
    return ComponentGroup(
        id=row["id"],
        name=row["name"],
        description=row["description"],
        group_type=row["group_type"],
        domain=row["domain"],
        domain_id=row["domain_id"],
        color=row["color"],
        position=row["position"],
        metadata=row["metadata"],
        is_active=bool(row["is_active"]),
    )


def _row_to_component(row: sqlite3.Row) -> Component:
    return Component(
        id=row["id"],
        name=row["name"],
        tag=row["tag"],
        type=row["type"],
        domain=row["domain"],
        source=row["source"],
        description=row["description"],
        team=row["team"],
        metadata=row["metadata"],
        is_active=bool(row["is_active"]),
        last_seen=row["last_seen"],
    )


def _row_to_connection(row: sqlite3.Row) -> Connection:
    return Connection(
        id=row["id"],
        source_id=row["source_id"],
        target_id=row["target_id"],
        domain=row["domain"],
        connection_type=row["connection_type"],
        strength=row["strength"],
        metadata=row["metadata"],
        is_active=bool(row["is_active"]),
    )
