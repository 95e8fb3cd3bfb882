"""Connection inference and graph projection engine."""

from infragraph.graph.builder import ConnectionBuilder, build_connections, plan_connections
from infragraph.graph.projector import (
    VIEW_DOMAINS,
    VIEW_FULL,
    VIEW_MODES,
    DomainNotFoundError,
    GraphProjector,
    project_graph,
)
from infragraph.graph.strength import strength
from infragraph.graph.tags import generate_unique_tag, resolve_domain, validate_tag

__all__ = [
    "ConnectionBuilder",
    "build_connections",
    "plan_connections",
    "GraphProjector",
    "project_graph",
    "DomainNotFoundError",
    "VIEW_FULL",
    "VIEW_DOMAINS",
    "VIEW_MODES",
    "strength",
    "resolve_domain",
    "validate_tag",
    "generate_unique_tag",
]
