"""Write a validated Inventory into the catalogue.

Components are matched on (name, type) since tags are not unique. A match is
a re-discovery: metadata is merged, last_seen refreshed and the component
reactivated. After each component is written a scoped connection rebuild
runs for it, the same way a discovery sync wires new components in.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from dataclasses import dataclass, field
from datetime import datetime, timezone

from infragraph.db.models import (
    Component,
    ComponentGroup,
    Connection,
    Domain,
    GroupMembership,
)
from infragraph.db.repository import Repository
from infragraph.graph.builder import ConnectionBuilder
from infragraph.graph.tags import generate_unique_tag, infer_component_type
from infragraph.ingest.inventory import (
    ConnectionEntry,
    DiscoveredItem,
    DomainEntry,
    GroupEntry,
    Inventory,
    InventoryError,
)

logger = logging.getLogger(__name__)


@dataclass
class IngestResult:
    domains: int = 0
    groups: int = 0
    created: int = 0
    updated: int = 0
    connections: int = 0
    edges_built: int = 0
    errors: list[tuple[str, str]] = field(default_factory=list)  # (item, message)


class InventoryIngester:
    """Upserts domains, groups, components and manual connections."""

    def __init__(self, repo: Repository, builder: ConnectionBuilder | None = None) -> None:
        self._repo = repo
        self._builder = builder if builder is not None else ConnectionBuilder(repo)

    def ingest(self, inventory: Inventory) -> IngestResult:
        """Write *inventory* and return per-kind counts.

        Invalid entries (unknown group, unresolvable connection endpoint,
        duplicate connection) are recorded in ``result.errors`` and skipped.

        Raises:
            sqlite3.Error: storage failure other than a constraint violation.
        """
        result = IngestResult()

        domain_ids: dict[str, int] = {}
        for entry in inventory.domains:
            domain_ids[entry.name] = self._upsert_domain(entry)
            result.domains += 1

        group_ids: dict[str, int] = {}
        for entry in inventory.groups:
            try:
                group_ids[entry.name] = self._upsert_group(entry, domain_ids)
                result.groups += 1
            except InventoryError as exc:
                self._record(result, f"group {entry.name}", exc)

        ingested: dict[str, list[Component]] = {}
        taken_tags = self._repo.list_tags()
        for item in inventory.components:
            try:
                component, created = self._upsert_component(item, taken_tags)
                result.edges_built += self._builder.build(component.id)
                self._add_memberships(component, item, group_ids)
            except (InventoryError, sqlite3.IntegrityError) as exc:
                self._record(result, f"component {item.name}", exc)
                continue
            ingested.setdefault(component.name, []).append(component)
            if created:
                result.created += 1
            else:
                result.updated += 1

        for entry in inventory.connections:
            try:
                self._add_connection(entry, ingested)
                result.connections += 1
            except (InventoryError, sqlite3.IntegrityError) as exc:
                self._record(result, f"connection {entry.source} -> {entry.target}", exc)

        return result

    # ------------------------------------------------------------------
    # Upserts
    # ------------------------------------------------------------------

    def _upsert_domain(self, entry: DomainEntry) -> int:
        existing = self._repo.get_domain_by_name(entry.name)
        if existing is not None:
            return existing.id
        return self._repo.add_domain(
            Domain(
                name=entry.name,
                description=entry.description,
                color=entry.color,
                metadata=json.dumps(entry.metadata),
            )
        )

    def _upsert_group(self, entry: GroupEntry, domain_ids: dict[str, int]) -> int:
        existing = self._repo.get_group_by_name(entry.name)
        if existing is not None:
            return existing.id

        domain_id = None
        if entry.parent_domain:
            domain_id = domain_ids.get(entry.parent_domain)
            if domain_id is None:
                found = self._repo.get_domain_by_name(entry.parent_domain)
                if found is None:
                    raise InventoryError(f"unknown parent domain '{entry.parent_domain}'")
                domain_id = found.id

        return self._repo.add_group(
            ComponentGroup(
                name=entry.name,
                group_type=entry.group_type,
                description=entry.description,
                domain=entry.domain,
                domain_id=domain_id,
                color=entry.color,
                metadata=json.dumps(entry.metadata),
            )
        )

    def _upsert_component(
        self, item: DiscoveredItem, taken_tags: set[str]
    ) -> tuple[Component, bool]:
        type_ = item.type or infer_component_type(item.name, item.source)

        existing = self._repo.find_component(item.name, type_)
        if existing is not None:
            metadata = {**existing.metadata_dict, **item.metadata}
            self._repo.refresh_component(
                existing.id, tag=item.tag or existing.tag, metadata=json.dumps(metadata)
            )
            return self._repo.get_component(existing.id), False

        tag = item.tag or generate_unique_tag(item.name, type_, taken_tags)
        taken_tags.add(tag)
        metadata = {
            "discoveredAt": datetime.now(timezone.utc).isoformat(),
            **item.metadata,
        }
        component = Component(
            name=item.name,
            tag=tag,
            type=type_,
            domain=item.domain,
            source=item.source,
            description=item.description,
            team=item.team,
            metadata=json.dumps(metadata),
        )
        component.id = self._repo.add_component(component)
        return component, True

    def _add_memberships(
        self, component: Component, item: DiscoveredItem, group_ids: dict[str, int]
    ) -> None:
        for membership in item.groups:
            group_id = group_ids.get(membership.group)
            if group_id is None:
                found = self._repo.get_group_by_name(membership.group)
                if found is None:
                    raise InventoryError(f"unknown group '{membership.group}'")
                group_id = found.id
            self._repo.add_membership(
                GroupMembership(
                    component_id=component.id, group_id=group_id, role=membership.role
                )
            )

    def _add_connection(
        self, entry: ConnectionEntry, ingested: dict[str, list[Component]]
    ) -> None:
        source = self._resolve(entry.source, entry.source_type, ingested)
        target = self._resolve(entry.target, entry.target_type, ingested)
        if self._repo.get_connection(source.id, target.id) is not None:
            raise InventoryError("connection already exists")
        self._repo.add_connection(
            Connection(
                source_id=source.id,
                target_id=target.id,
                domain=entry.domain,
                connection_type=entry.connection_type,
                strength=entry.strength,
                metadata=json.dumps(entry.metadata),
            )
        )

    def _resolve(
        self, name: str, type_: str | None, ingested: dict[str, list[Component]]
    ) -> Component:
        """Find a connection endpoint: by (name, type), else by name within this inventory."""
        if type_ is not None:
            found = self._repo.find_component(name, type_)
            if found is None:
                raise InventoryError(f"unknown component '{name}' ({type_})")
            return found

        candidates = ingested.get(name, [])
        if len(candidates) == 1:
            return candidates[0]
        if not candidates:
            raise InventoryError(
                f"unknown component '{name}' - add it to this inventory or give its type"
            )
        raise InventoryError(f"component name '{name}' is ambiguous - give its type")

    @staticmethod
    def _record(result: IngestResult, item: str, exc: Exception) -> None:
        logger.warning("Skipping %s: %s", item, exc)
        result.errors.append((item, str(exc)))
