"""Discovered-inventory documents.

An inventory is a YAML (or JSON) document produced by a discovery run or
written by hand. Every section is optional:

    domains:
      - name: payments
        color: "#ff8800"
    groups:
      - name: payments-core
        group_type: SERVICE
        parent_domain: payments      # Domain row → groups.domain_id
    components:
      - name: payments_db
        type: DB
        domain: payments             # string domain used by the builder
        source: database
        groups: [payments-core, {name: ledger, role: LEADER}]
    connections:
      - source: reporting_app
        target: payments_api
        domain: payments
        strength: 0.4

Validation happens here, before anything reaches storage or the engine.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from infragraph.db.models import (
    COMPONENT_SOURCES,
    COMPONENT_TYPES,
    GROUP_TYPES,
    MANUAL_CONNECTION_TYPES,
    MEMBERSHIP_ROLES,
)
from infragraph.graph.tags import validate_tag

_KNOWN_SECTIONS: frozenset[str] = frozenset(["domains", "groups", "components", "connections"])


class InventoryError(ValueError):
    """Raised when an inventory document is malformed."""


@dataclass
class DomainEntry:
    name: str
    description: str | None = None
    color: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class GroupEntry:
    name: str
    group_type: str = "LOGICAL"
    description: str | None = None
    domain: str | None = None
    parent_domain: str | None = None  # Domain name; resolved to domain_id on ingest
    color: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class MembershipEntry:
    group: str
    role: str = "MEMBER"


@dataclass
class DiscoveredItem:
    """One component as reported by a discovery source."""

    name: str
    type: str | None = None          # inferred from name/source when missing
    source: str = "manual"
    tag: str | None = None           # generated when missing
    domain: str | None = None
    description: str | None = None
    team: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    groups: list[MembershipEntry] = field(default_factory=list)


@dataclass
class ConnectionEntry:
    source: str
    target: str
    domain: str
    source_type: str | None = None
    target_type: str | None = None
    connection_type: str = "direct"
    strength: float = 1.0
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class Inventory:
    domains: list[DomainEntry] = field(default_factory=list)
    groups: list[GroupEntry] = field(default_factory=list)
    components: list[DiscoveredItem] = field(default_factory=list)
    connections: list[ConnectionEntry] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.domains or self.groups or self.components or self.connections)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_inventory(path: Path) -> Inventory:
    """Read and validate an inventory file (.yaml, .yml or .json).

    Raises:
        InventoryError: unreadable file, bad syntax, or invalid entries.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise InventoryError(f"Cannot read inventory '{path}': {exc}") from exc

    try:
        if path.suffix.lower() == ".json":
            data = json.loads(text) if text.strip() else {}
        else:
            data = yaml.safe_load(text) or {}
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise InventoryError(f"Cannot parse inventory '{path}': {exc}") from exc

    return parse_inventory(data)


def parse_inventory(data: Any) -> Inventory:
    """Validate a decoded inventory document and return an *Inventory*."""
    if isinstance(data, list):
        # A bare list is a list of discovered components.
        data = {"components": data}
    if not isinstance(data, dict):
        raise InventoryError("Inventory must be a mapping or a list of components")

    unknown = sorted(set(data) - _KNOWN_SECTIONS)
    if unknown:
        raise InventoryError(f"Unknown inventory section(s): {', '.join(unknown)}")

    return Inventory(
        domains=[_parse_domain(e, i) for i, e in enumerate(_section(data, "domains"))],
        groups=[_parse_group(e, i) for i, e in enumerate(_section(data, "groups"))],
        components=[_parse_item(e, i) for i, e in enumerate(_section(data, "components"))],
        connections=[
            _parse_connection(e, i) for i, e in enumerate(_section(data, "connections"))
        ],
    )


# ---------------------------------------------------------------------------
# Section parsers
# ---------------------------------------------------------------------------


def _section(data: dict[str, Any], key: str) -> list[Any]:
    value = data.get(key) or []
    if not isinstance(value, list):
        raise InventoryError(f"'{key}' must be a list")
    return value


def _require_mapping(entry: Any, where: str) -> dict[str, Any]:
    if not isinstance(entry, dict):
        raise InventoryError(f"{where}: expected a mapping, got {type(entry).__name__}")
    return entry


def _require_name(entry: dict[str, Any], where: str, key: str = "name") -> str:
    value = str(entry.get(key) or "").strip()
    if not value:
        raise InventoryError(f"{where}: '{key}' is required")
    return value


def _metadata(entry: dict[str, Any], where: str) -> dict[str, Any]:
    value = entry.get("metadata") or {}
    if not isinstance(value, dict):
        raise InventoryError(f"{where}: 'metadata' must be a mapping")
    return value


def _choice(value: str, allowed: frozenset[str] | tuple[str, ...], where: str, key: str) -> str:
    if value not in allowed:
        raise InventoryError(
            f"{where}: invalid {key} '{value}'. Allowed: {', '.join(sorted(allowed))}"
        )
    return value


def _parse_domain(entry: Any, index: int) -> DomainEntry:
    where = f"domains[{index}]"
    entry = _require_mapping(entry, where)
    return DomainEntry(
        name=_require_name(entry, where),
        description=entry.get("description"),
        color=entry.get("color"),
        metadata=_metadata(entry, where),
    )


def _parse_group(entry: Any, index: int) -> GroupEntry:
    where = f"groups[{index}]"
    entry = _require_mapping(entry, where)
    return GroupEntry(
        name=_require_name(entry, where),
        group_type=_choice(
            str(entry.get("group_type", "LOGICAL")).upper(), GROUP_TYPES, where, "group_type"
        ),
        description=entry.get("description"),
        domain=entry.get("domain"),
        parent_domain=entry.get("parent_domain"),
        color=entry.get("color"),
        metadata=_metadata(entry, where),
    )


def _parse_membership(entry: Any, where: str) -> MembershipEntry:
    if isinstance(entry, str):
        return MembershipEntry(group=entry)
    entry = _require_mapping(entry, where)
    return MembershipEntry(
        group=_require_name(entry, where),
        role=_choice(str(entry.get("role", "MEMBER")).upper(), MEMBERSHIP_ROLES, where, "role"),
    )


def _parse_item(entry: Any, index: int) -> DiscoveredItem:
    where = f"components[{index}]"
    entry = _require_mapping(entry, where)

    type_ = entry.get("type")
    if type_ is not None:
        type_ = _choice(str(type_).upper(), COMPONENT_TYPES, where, "type")

    source = _choice(str(entry.get("source", "manual")), COMPONENT_SOURCES, where, "source")

    tag = entry.get("tag")
    if tag is not None and not validate_tag(str(tag)):
        raise InventoryError(
            f"{where}: invalid tag '{tag}'. "
            "Must end with _db, _api, _app, _storage, or _pipes"
        )

    groups = entry.get("groups") or []
    if not isinstance(groups, list):
        raise InventoryError(f"{where}: 'groups' must be a list")

    return DiscoveredItem(
        name=_require_name(entry, where),
        type=type_,
        source=source,
        tag=str(tag) if tag is not None else None,
        domain=entry.get("domain") or None,
        description=entry.get("description"),
        team=entry.get("team"),
        metadata=_metadata(entry, where),
        groups=[_parse_membership(g, f"{where}.groups[{j}]") for j, g in enumerate(groups)],
    )


def _parse_connection(entry: Any, index: int) -> ConnectionEntry:
    where = f"connections[{index}]"
    entry = _require_mapping(entry, where)

    try:
        strength = float(entry.get("strength", 1.0))
    except (TypeError, ValueError) as exc:
        raise InventoryError(f"{where}: 'strength' must be a number") from exc

    source_type = entry.get("source_type")
    target_type = entry.get("target_type")
    return ConnectionEntry(
        source=_require_name(entry, where, "source"),
        target=_require_name(entry, where, "target"),
        domain=_require_name(entry, where, "domain"),
        source_type=(
            _choice(str(source_type).upper(), COMPONENT_TYPES, where, "source_type")
            if source_type is not None
            else None
        ),
        target_type=(
            _choice(str(target_type).upper(), COMPONENT_TYPES, where, "target_type")
            if target_type is not None
            else None
        ),
        connection_type=_choice(
            str(entry.get("connection_type", "direct")),
            MANUAL_CONNECTION_TYPES,
            where,
            "connection_type",
        ),
        # Clamp into [0, 1]
        strength=min(max(strength, 0.0), 1.0),
        metadata=_metadata(entry, where),
    )
