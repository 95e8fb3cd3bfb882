"""Graph projection: persisted catalogue → node/edge JSON for the graph renderer.

Three read-only views are produced from the same storage snapshot:

* ``full``    - component nodes plus every group node and domain node, with
  persisted component edges, PIPES → group edges and group → group edges.
* ``domains`` - one node per Domain, with inter-domain edges accumulated from
  the component edges that cross domain boundaries.
* single domain (``project_domain``) - components and connections carrying
  one string domain, no rollup layers.

Every node and edge uses the renderer's ``{"data": {...}}`` envelope. Ids are
derived only from entity ids and all inputs are read in id order, so repeated
projections of unchanged data are identical.

Group → group edges are deduplicated on the unordered group pair and keep the
strength of the first contributing connection. Domain → domain edges are
accumulated instead (count + summed strength, capped). Both behaviours are
relied on by the renderer and are kept as-is.
"""

from __future__ import annotations

import logging
from typing import Any

from infragraph.db.models import Component, ComponentGroup, Connection, Domain
from infragraph.db.repository import Repository

logger = logging.getLogger(__name__)

VIEW_FULL = "full"
VIEW_DOMAINS = "domains"
VIEW_MODES: tuple[str, ...] = (VIEW_FULL, VIEW_DOMAINS)

DEFAULT_DOMAIN_COLOR = "#409eff"
DEFAULT_DOMAIN_STRENGTH_CAP = 5.0

PIPES_TYPE = "PIPES"
GROUP_PIPE_STRENGTH = 1.0


class DomainNotFoundError(LookupError):
    """Raised when no active component carries the requested string domain."""

    def __init__(self, domain: str) -> None:
        super().__init__(f"Domain not found: {domain!r}")
        self.domain = domain


# ---------------------------------------------------------------------------
# Node / edge ids
# ---------------------------------------------------------------------------


def group_node_id(group_id: int) -> str:
    return f"group-{group_id}"


def domain_node_id(domain_id: int) -> str:
    return f"domain-{domain_id}"


def connection_edge_id(source_id: int, target_id: int) -> str:
    return f"{source_id}-{target_id}"


# ---------------------------------------------------------------------------
# Projector
# ---------------------------------------------------------------------------


class GraphProjector:
    """Builds renderer-ready graphs from a Repository. Holds no state between calls."""

    def __init__(
        self,
        repo: Repository,
        *,
        domain_color: str = DEFAULT_DOMAIN_COLOR,
        domain_strength_cap: float = DEFAULT_DOMAIN_STRENGTH_CAP,
    ) -> None:
        self._repo = repo
        self.domain_color = domain_color
        self.domain_strength_cap = domain_strength_cap

    def project(
        self,
        domain_filter: str | None = None,
        include_isolated: bool = False,
        view_mode: str = VIEW_FULL,
    ) -> dict[str, Any]:
        """Return ``{"nodes": [...], "edges": [...], "stats": {...}}``.

        Args:
            domain_filter: Only components and connections whose string
                ``domain`` equals this value (``full`` view only).
            include_isolated: Keep components that have no incident edge.
            view_mode: ``"full"`` or ``"domains"``.

        Raises:
            ValueError: unknown *view_mode*.
            sqlite3.Error: storage failure; no partial graph is returned.
        """
        if view_mode == VIEW_DOMAINS:
            return self._project_domains()
        if view_mode != VIEW_FULL:
            raise ValueError(
                f"Unknown view mode {view_mode!r}; expected one of: {', '.join(VIEW_MODES)}"
            )
        return self._project_full(domain_filter, include_isolated)

    def project_domain(self, domain: str) -> dict[str, Any]:
        """Return the graph of a single string domain, without group/domain layers.

        Raises:
            DomainNotFoundError: no active component carries *domain*.
        """
        components = self._repo.list_active_components(domain=domain)
        if not components:
            raise DomainNotFoundError(domain)
        connections = self._repo.list_active_connections(domain=domain)

        nodes = [_component_node(c) for c in components]
        edges = [_connection_edge(c) for c in connections]
        return {
            "domain": domain,
            "nodes": nodes,
            "edges": edges,
            "stats": {"nodeCount": len(nodes), "edgeCount": len(edges)},
        }

    # ------------------------------------------------------------------
    # Full (component) view
    # ------------------------------------------------------------------

    def _project_full(self, domain_filter: str | None, include_isolated: bool) -> dict[str, Any]:
        components = self._repo.list_active_components(domain=domain_filter)
        connections = self._repo.list_active_connections(domain=domain_filter)
        groups = self._repo.list_active_groups(with_components=True)
        domains = self._repo.list_domains()

        if not include_isolated:
            connected: set[int] = set()
            for conn in connections:
                connected.add(conn.source_id)
                connected.add(conn.target_id)
            components = [c for c in components if c.id in connected]

        component_nodes = [_component_node(c) for c in components]
        group_nodes = [_group_node(g) for g in groups]
        domain_nodes = [self._domain_node(d, groups) for d in domains]
        nodes = component_nodes + group_nodes + domain_nodes

        component_groups = _component_to_groups(groups)
        edges = (
            [_connection_edge(c) for c in connections]
            + _group_pipe_edges(components, connections, component_groups)
            + _group_to_group_edges(connections, component_groups)
        )

        logger.debug(
            "Projected full graph: %d node(s), %d edge(s) (domain=%s)",
            len(nodes),
            len(edges),
            domain_filter,
        )
        return {
            "nodes": nodes,
            "edges": edges,
            "stats": {
                "nodeCount": len(nodes),
                "componentCount": len(component_nodes),
                "groupCount": len(group_nodes),
                "domainCount": len(domain_nodes),
                "edgeCount": len(edges),
                "domains": len({c.domain for c in components if c.domain}),
            },
        }

    # ------------------------------------------------------------------
    # Domain rollup view
    # ------------------------------------------------------------------

    def _project_domains(self) -> dict[str, Any]:
        domains = self._repo.list_domains()
        connections = self._repo.list_active_connections()
        groups = self._repo.list_active_groups(with_components=True)

        nodes = [self._domain_node(d, groups) for d in domains]

        # Walk groups in id order; a component in several domains keeps the last.
        known = {d.id for d in domains}
        component_domain: dict[int, int] = {}
        for group in groups:
            if group.domain_id in known:
                for component_id in group.component_ids:
                    component_domain[component_id] = group.domain_id

        edges: list[dict[str, Any]] = []
        by_pair: dict[frozenset[int], dict[str, Any]] = {}
        for conn in connections:
            source_domain = component_domain.get(conn.source_id)
            target_domain = component_domain.get(conn.target_id)
            if source_domain is None or target_domain is None or source_domain == target_domain:
                continue

            weight = conn.strength or 1.0
            key = frozenset((source_domain, target_domain))
            existing = by_pair.get(key)
            if existing is None:
                edge = {
                    "data": {
                        "id": f"domain-connection-{source_domain}-{target_domain}",
                        "source": domain_node_id(source_domain),
                        "target": domain_node_id(target_domain),
                        "connectionType": "domain-to-domain",
                        "strength": weight,
                        "metadata": {
                            "type": "inter-domain",
                            "originalConnectionType": conn.connection_type,
                            "connectionCount": 1,
                        },
                    }
                }
                by_pair[key] = edge["data"]
                edges.append(edge)
            else:
                existing["metadata"]["connectionCount"] += 1
                existing["strength"] = min(
                    existing["strength"] + weight, self.domain_strength_cap
                )

        logger.debug("Projected domain graph: %d node(s), %d edge(s)", len(nodes), len(edges))
        return {
            "nodes": nodes,
            "edges": edges,
            "stats": {
                "nodeCount": len(nodes),
                "domainCount": len(nodes),
                "edgeCount": len(edges),
                "totalConnections": sum(
                    e["data"]["metadata"]["connectionCount"] for e in edges
                ),
            },
        }

    def _domain_node(self, domain: Domain, groups: list[ComponentGroup]) -> dict[str, Any]:
        owned = [g for g in groups if g.domain_id == domain.id]
        return {
            "data": {
                "id": domain_node_id(domain.id),
                "name": domain.name,
                "description": domain.description,
                "type": "domain",
                "color": domain.color or self.domain_color,
                "metadata": {
                    **domain.metadata_dict,
                    "groupCount": len(owned),
                    "componentCount": sum(len(g.component_ids) for g in owned),
                },
            }
        }


def project_graph(
    repo: Repository,
    domain_filter: str | None = None,
    include_isolated: bool = False,
    view_mode: str = VIEW_FULL,
) -> dict[str, Any]:
    """Convenience wrapper around ``GraphProjector(repo).project()``."""
    return GraphProjector(repo).project(
        domain_filter=domain_filter,
        include_isolated=include_isolated,
        view_mode=view_mode,
    )


# ---------------------------------------------------------------------------
# Node / edge builders
# ---------------------------------------------------------------------------


def _component_node(component: Component) -> dict[str, Any]:
    return {
        "data": {
            "id": str(component.id),
            "name": component.name,
            "tag": component.tag,
            "type": component.type,
            "domain": component.domain,
            "source": component.source,
            "metadata": component.metadata_dict,
        }
    }


def _group_node(group: ComponentGroup) -> dict[str, Any]:
    return {
        "data": {
            "id": group_node_id(group.id),
            "name": group.name,
            "description": group.description,
            "type": "group",
            "groupType": group.group_type,
            "domain": group.domain,
            "color": group.color,
            "position": group.position_dict,
            "metadata": {
                **group.metadata_dict,
                "domainId": group.domain_id,
                "componentCount": len(group.component_ids),
                "componentIds": [str(cid) for cid in group.component_ids],
            },
        }
    }


def _connection_edge(conn: Connection) -> dict[str, Any]:
    return {
        "data": {
            "id": connection_edge_id(conn.source_id, conn.target_id),
            "source": str(conn.source_id),
            "target": str(conn.target_id),
            "domain": conn.domain,
            "connectionType": conn.connection_type,
            "strength": conn.strength,
            "metadata": conn.metadata_dict,
        }
    }


def _component_to_groups(groups: list[ComponentGroup]) -> dict[int, list[str]]:
    """Map component id → group node ids, in group id order."""
    mapping: dict[int, list[str]] = {}
    for group in groups:
        for component_id in group.component_ids:
            mapping.setdefault(component_id, []).append(group_node_id(group.id))
    return mapping


def _group_pipe_edges(
    components: list[Component],
    connections: list[Connection],
    component_groups: dict[int, list[str]],
) -> list[dict[str, Any]]:
    """One PIPES → group edge per group holding a neighbour of the PIPES component."""
    edges: list[dict[str, Any]] = []
    for pipes in components:
        if pipes.type != PIPES_TYPE:
            continue

        touching = [
            c for c in connections if pipes.id in (c.source_id, c.target_id)
        ]
        # dict keeps first-seen order, giving stable edge order.
        linked_groups: dict[str, None] = {}
        for conn in touching:
            neighbour = conn.target_id if conn.source_id == pipes.id else conn.source_id
            for group_id in component_groups.get(neighbour, []):
                linked_groups[group_id] = None

        for group_id in linked_groups:
            edges.append(
                {
                    "data": {
                        "id": f"pipes-{pipes.id}-{group_id}",
                        "source": str(pipes.id),
                        "target": group_id,
                        "domain": pipes.domain,
                        "connectionType": "group-pipe",
                        "strength": GROUP_PIPE_STRENGTH,
                        "metadata": {
                            "type": "pipe-to-group",
                            "originalConnections": len(touching),
                        },
                    }
                }
            )
    return edges


def _group_to_group_edges(
    connections: list[Connection],
    component_groups: dict[int, list[str]],
) -> list[dict[str, Any]]:
    """Group → group edges from component edges; first connection per group pair wins."""
    edges: list[dict[str, Any]] = []
    seen: set[frozenset[str]] = set()
    for conn in connections:
        for source_group in component_groups.get(conn.source_id, []):
            for target_group in component_groups.get(conn.target_id, []):
                if source_group == target_group:
                    continue
                pair = frozenset((source_group, target_group))
                if pair in seen:
                    continue
                seen.add(pair)
                edges.append(
                    {
                        "data": {
                            "id": f"group-{source_group}-{target_group}",
                            "source": source_group,
                            "target": target_group,
                            "domain": conn.domain,
                            "connectionType": "group-to-group",
                            "strength": conn.strength or 1.0,
                            "metadata": {
                                "type": "inter-group",
                                "originalConnection": {
                                    "sourceComponentId": str(conn.source_id),
                                    "targetComponentId": str(conn.target_id),
                                    "connectionType": conn.connection_type,
                                },
                            },
                        }
                    }
                )
    return edges
