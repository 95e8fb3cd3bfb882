"""Domain models for the infragraph database layer.

Two independent domain lenses exist and are never reconciled:

* ``Component.domain`` - free-form string (or derived from the legacy tag).
  Consumed by the connection builder and the string-domain graph filters.
* ``ComponentGroup.domain_id`` - reference to a ``Domain`` row. Consumed by
  the domain-rollup view (Domain → Group → Component).
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field

COMPONENT_TYPES: tuple[str, ...] = ("DB", "API", "APP", "STORAGE", "PIPES")
COMPONENT_SOURCES: frozenset[str] = frozenset(
    ["manual", "database", "swagger", "logs", "config_scan", "network", "csv-import"]
)
# Persisted connection types. Projection-only types (group-pipe,
# group-to-group, domain-to-domain) are never written to the database.
CONNECTION_TYPES: frozenset[str] = frozenset(["domain", "direct", "inferred"])
# Types a caller may enter by hand; "domain" edges belong to the connection builder.
MANUAL_CONNECTION_TYPES: frozenset[str] = CONNECTION_TYPES - {"domain"}
GROUP_TYPES: frozenset[str] = frozenset(["LOGICAL", "PHYSICAL", "FUNCTIONAL", "SERVICE"])
MEMBERSHIP_ROLES: frozenset[str] = frozenset(["MEMBER", "LEADER", "BACKUP", "DEPENDENCY"])


@dataclass
class Component:
    name: str
    tag: str
    type: str                       # DB | API | APP | STORAGE | PIPES
    domain: str | None = None       # explicit string domain; falls back to tag
    source: str = "manual"
    description: str | None = None
    team: str | None = None
    metadata: str = field(default_factory=lambda: "{}")
    is_active: bool = True
    last_seen: str | None = None
    id: int | None = None           # set after insert; None for unsaved components

    @property
    def metadata_dict(self) -> dict:
        return json.loads(self.metadata)


@dataclass
class Connection:
    source_id: int
    target_id: int
    domain: str
    connection_type: str = "domain"  # domain | direct | inferred
    strength: float = 1.0
    metadata: str = field(default_factory=lambda: "{}")
    is_active: bool = True
    id: int | None = None

    @property
    def metadata_dict(self) -> dict:
        return json.loads(self.metadata)


@dataclass
class ComponentGroup:
    name: str
    group_type: str = "LOGICAL"     # LOGICAL | PHYSICAL | FUNCTIONAL | SERVICE
    description: str | None = None
    domain: str | None = None
    domain_id: int | None = None
    color: str | None = None
    position: str = field(default_factory=lambda: '{"x": 0, "y": 0}')
    metadata: str = field(default_factory=lambda: "{}")
    is_active: bool = True
    id: int | None = None
    component_ids: list[int] = field(default_factory=list)  # active members, by id

    @property
    def metadata_dict(self) -> dict:
        return json.loads(self.metadata)

    @property
    def position_dict(self) -> dict:
        return json.loads(self.position)


@dataclass
class GroupMembership:
    component_id: int
    group_id: int
    role: str = "MEMBER"            # MEMBER | LEADER | BACKUP | DEPENDENCY
    is_active: bool = True


@dataclass
class Domain:
    name: str
    description: str | None = None
    color: str | None = None
    metadata: str = field(default_factory=lambda: "{}")
    is_active: bool = True
    id: int | None = None

    @property
    def metadata_dict(self) -> dict:
        return json.loads(self.metadata)
