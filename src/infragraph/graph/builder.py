"""Hub-and-spoke connection builder.

Active components are grouped by resolved string domain (explicit ``domain``,
else the prefix of their legacy tag). In each domain with at least two
members the DB-kind component is the hub, and one ``domain`` edge is
synthesized from the hub to every other member, weighted by the strength
matrix. Domains without a DB component are left for manual wiring.

Every run replaces the builder-managed edges of its scope (all edges, or the
edges touching one component) in a single transaction. Runs are serialized
process-wide by ``_BUILD_LOCK``.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable

from infragraph.db.models import Component, Connection
from infragraph.db.repository import SCOPE_ALL, Repository
from infragraph.graph.strength import strength
from infragraph.graph.tags import resolve_domain

logger = logging.getLogger(__name__)

HUB_TYPE = "DB"
BUILDER_CONNECTION_TYPE = "domain"

_BUILD_LOCK = threading.Lock()


def component_domain(component: Component) -> str | None:
    """Explicit domain if set, else the domain encoded in the tag."""
    return component.domain or resolve_domain(component.tag)


def plan_connections(components: Iterable[Component]) -> list[Connection]:
    """Return the hub → member edges for *components* without touching storage.

    Components are grouped in input order, and the hub is the first DB-kind
    member of each domain. Pass components in id order for a stable hub.
    """
    by_domain: dict[str, list[Component]] = {}
    for component in components:
        domain = component_domain(component)
        if not domain:
            continue
        by_domain.setdefault(domain, []).append(component)

    edges: list[Connection] = []
    for domain, members in by_domain.items():
        if len(members) < 2:
            logger.debug("Domain %r has a single component; nothing to connect", domain)
            continue

        hub = next((c for c in members if c.type == HUB_TYPE), None)
        if hub is None:
            logger.info(
                "Domain %r has no %s component; skipping %d component(s)",
                domain,
                HUB_TYPE,
                len(members),
            )
            continue

        for member in members:
            if member.type == HUB_TYPE:
                continue
            edges.append(
                Connection(
                    source_id=hub.id,
                    target_id=member.id,
                    domain=domain,
                    connection_type=BUILDER_CONNECTION_TYPE,
                    strength=strength(HUB_TYPE, member.type),
                )
            )
    return edges


class ConnectionBuilder:
    """Rebuilds persisted ``domain`` connections from the component catalogue."""

    def __init__(self, repo: Repository, *, preserve_manual: bool = True) -> None:
        """
        Args:
            repo: Storage collaborator.
            preserve_manual: When True only ``domain`` edges are deleted before
                re-inserting, so ``direct``/``inferred`` edges survive a rebuild.
                When False every edge in scope is deleted.
        """
        self._repo = repo
        self.preserve_manual = preserve_manual

    def build(self, scope_component_id: int | None = None) -> int:
        """Rebuild connections for every component, or for a single component.

        Args:
            scope_component_id: Restrict the rebuild to edges touching this
                component. Its domain peers are read so that it can be wired
                to (or, as the hub, from) them.

        Returns:
            Number of edges created.

        Raises:
            sqlite3.Error: storage failure; previously stored edges are kept.
        """
        with _BUILD_LOCK:
            if scope_component_id is None:
                scope: str | int = SCOPE_ALL
                edges = plan_connections(self._repo.list_active_components())
            else:
                scope = scope_component_id
                edges = self._plan_scoped(scope_component_id)

            delete_types = (BUILDER_CONNECTION_TYPE,) if self.preserve_manual else None
            created = self._repo.replace_connections(scope, edges, connection_types=delete_types)

        logger.info("Built %d connection(s) (scope=%s)", created, scope)
        return created

    def _plan_scoped(self, component_id: int) -> list[Connection]:
        found = self._repo.list_active_components(component_id=component_id)
        if not found:
            # Inactive or deleted: the replace step just clears its edges.
            return []
        domain = component_domain(found[0])
        if not domain:
            return []

        peers = [
            c for c in self._repo.list_active_components() if component_domain(c) == domain
        ]
        return [
            e
            for e in plan_connections(peers)
            if component_id in (e.source_id, e.target_id)
        ]


def build_connections(
    repo: Repository,
    scope_component_id: int | None = None,
    *,
    preserve_manual: bool = True,
) -> int:
    """Convenience wrapper around ``ConnectionBuilder(repo).build()``."""
    return ConnectionBuilder(repo, preserve_manual=preserve_manual).build(scope_component_id)
