"""Tests for the hub-and-spoke connection builder."""

from __future__ import annotations

import logging
import sqlite3
from concurrent.futures import ThreadPoolExecutor

import pytest

from infragraph.db.models import Component, Connection
from infragraph.db.repository import Repository
from infragraph.graph.builder import (
    ConnectionBuilder,
    build_connections,
    component_domain,
    plan_connections,
)


def _add(repo: Repository, name: str, type_: str, domain: str | None = None, tag=None) -> int:
    return repo.add_component(
        Component(name=name, tag=tag or f"{name}_{type_.lower()}", type=type_, domain=domain)
    )


def _tuples(repo: Repository) -> set[tuple[int, int, float]]:
    return {(e.source_id, e.target_id, e.strength) for e in repo.list_active_connections()}


# ---------------------------------------------------------------------------
# plan_connections (pure)
# ---------------------------------------------------------------------------


def _c(id, type_, domain=None, tag="x") -> Component:
    return Component(id=id, name=f"c{id}", tag=tag, type=type_, domain=domain)


def test_component_domain_prefers_explicit():
    assert component_domain(_c(1, "DB", domain="x", tag="user_db")) == "x"
    assert component_domain(_c(1, "DB", tag="user_db")) == "user"
    assert component_domain(_c(1, "DB", tag="loose")) is None


def test_plan_hub_to_members():
    edges = plan_connections([_c(1, "DB", "x"), _c(2, "API", "x"), _c(3, "APP", "x")])
    assert [(e.source_id, e.target_id, e.strength) for e in edges] == [
        (1, 2, 0.9),
        (1, 3, 0.8),
    ]
    assert all(e.connection_type == "domain" and e.domain == "x" for e in edges)


def test_plan_skips_components_without_domain():
    assert plan_connections([_c(1, "DB"), _c(2, "API")]) == []


def test_plan_single_db_no_edges():
    assert plan_connections([_c(1, "DB", "x")]) == []


def test_plan_no_hub_logged(caplog):
    with caplog.at_level(logging.INFO, logger="infragraph.graph.builder"):
        edges = plan_connections([_c(1, "API", "x"), _c(2, "APP", "x")])
    assert edges == []
    assert "no DB component" in caplog.text


def test_plan_first_db_is_hub():
    edges = plan_connections([_c(1, "DB", "x"), _c(2, "DB", "x"), _c(3, "API", "x")])
    assert [(e.source_id, e.target_id) for e in edges] == [(1, 3)]


# ---------------------------------------------------------------------------
# ConnectionBuilder - full rebuild
# ---------------------------------------------------------------------------


def test_build_scenario_three_components(repo):
    db = _add(repo, "x1", "DB", "x")
    api = _add(repo, "x2", "API", "x")
    app = _add(repo, "x3", "APP", "x")

    created = ConnectionBuilder(repo).build()

    assert (db, api, app) == (1, 2, 3)
    assert created == 2
    assert _tuples(repo) == {(1, 2, 0.9), (1, 3, 0.8)}


@pytest.mark.parametrize("members", [["API"], ["API", "APP"], ["API", "APP", "STORAGE", "PIPES"]])
def test_build_n_edges_from_single_db(repo, members):
    hub = _add(repo, "hub", "DB", "x")
    for i, kind in enumerate(members):
        _add(repo, f"m{i}", kind, "x")

    assert ConnectionBuilder(repo).build() == len(members)
    edges = repo.list_active_connections()
    assert len(edges) == len(members)
    assert {e.source_id for e in edges} == {hub}


def test_build_without_db_creates_nothing(repo):
    for i in range(4):
        _add(repo, f"m{i}", "API", "x")
    assert ConnectionBuilder(repo).build() == 0
    assert repo.count_connections() == 0


def test_build_lone_db_creates_nothing(repo):
    _add(repo, "solo", "DB", "x")
    assert ConnectionBuilder(repo).build() == 0


def test_build_idempotent(repo):
    _add(repo, "x1", "DB", "x")
    _add(repo, "x2", "API", "x")
    _add(repo, "y1", "DB", "y")
    _add(repo, "y2", "PIPES", "y")
    builder = ConnectionBuilder(repo)

    first = builder.build()
    before = _tuples(repo)
    second = builder.build()

    assert first == second == 2
    assert _tuples(repo) == before


def test_build_uses_tag_domain(repo):
    db = _add(repo, "users", "DB", tag="user_db")
    api = _add(repo, "users", "API", tag="user_api")
    _add(repo, "loose", "APP", tag="no-suffix")

    assert ConnectionBuilder(repo).build() == 1
    edge = repo.get_connection(db, api)
    assert edge.domain == "user"


def test_build_explicit_domain_wins_over_tag(repo):
    _add(repo, "a", "DB", domain="billing", tag="user_db")
    _add(repo, "b", "API", tag="user_api")
    assert ConnectionBuilder(repo).build() == 0


def test_build_domains_isolated(repo):
    x_db = _add(repo, "x1", "DB", "x")
    _add(repo, "x2", "API", "x")
    _add(repo, "y1", "APP", "y")
    ConnectionBuilder(repo).build()
    assert {e.source_id for e in repo.list_active_connections()} == {x_db}
    assert {e.domain for e in repo.list_active_connections()} == {"x"}


def test_build_lowest_id_db_is_hub(repo):
    first = _add(repo, "primary", "DB", "x")
    second = _add(repo, "replica", "DB", "x")
    api = _add(repo, "svc", "API", "x")

    ConnectionBuilder(repo).build()

    assert _tuples(repo) == {(first, api, 0.9)}
    assert repo.get_connection(first, second) is None


def test_build_excludes_inactive(repo):
    db = _add(repo, "x1", "DB", "x")
    api = _add(repo, "x2", "API", "x")
    app = _add(repo, "x3", "APP", "x")
    builder = ConnectionBuilder(repo)
    builder.build()

    repo.set_component_active(app, False)
    builder.build()

    assert _tuples(repo) == {(db, api, 0.9)}


def test_build_inactive_hub_drops_domain(repo):
    db = _add(repo, "x1", "DB", "x")
    _add(repo, "x2", "API", "x")
    builder = ConnectionBuilder(repo)
    builder.build()
    repo.set_component_active(db, False)
    assert builder.build() == 0
    assert repo.count_connections() == 0


# ---------------------------------------------------------------------------
# Manual connections
# ---------------------------------------------------------------------------


def _manual(repo, source, target):
    repo.add_connection(
        Connection(source_id=source, target_id=target, domain="x", connection_type="direct")
    )


def test_full_rebuild_preserves_manual_by_default(repo):
    _add(repo, "x1", "DB", "x")
    api = _add(repo, "x2", "API", "x")
    app = _add(repo, "x3", "APP", "x")
    _manual(repo, app, api)

    ConnectionBuilder(repo).build()

    types = {(e.source_id, e.target_id): e.connection_type for e in repo.list_active_connections()}
    assert types[(app, api)] == "direct"
    assert len(types) == 3


def test_full_rebuild_without_preserve_deletes_manual(repo):
    _add(repo, "x1", "DB", "x")
    api = _add(repo, "x2", "API", "x")
    app = _add(repo, "x3", "APP", "x")
    _manual(repo, app, api)

    ConnectionBuilder(repo, preserve_manual=False).build()

    assert repo.get_connection(app, api) is None
    assert repo.count_connections() == 2


def test_manual_edge_on_planned_pair_is_kept(repo):
    db = _add(repo, "x1", "DB", "x")
    api = _add(repo, "x2", "API", "x")
    _manual(repo, db, api)

    created = ConnectionBuilder(repo).build()

    assert created == 0
    assert repo.get_connection(db, api).connection_type == "direct"


# ---------------------------------------------------------------------------
# Scoped rebuild
# ---------------------------------------------------------------------------


def test_scoped_rebuild_wires_new_member(repo):
    db = _add(repo, "x1", "DB", "x")
    api = _add(repo, "x2", "API", "x")
    builder = ConnectionBuilder(repo)
    builder.build()

    app = _add(repo, "x3", "APP", "x")
    created = builder.build(app)

    assert created == 1
    assert _tuples(repo) == {(db, api, 0.9), (db, app, 0.8)}


def test_scoped_rebuild_leaves_other_domains(repo):
    _add(repo, "x1", "DB", "x")
    _add(repo, "x2", "API", "x")
    y_db = _add(repo, "y1", "DB", "y")
    y_app = _add(repo, "y2", "APP", "y")
    builder = ConnectionBuilder(repo)
    builder.build()

    repo.replace_connections(y_app, [])  # simulate drift in domain y
    builder.build(_add(repo, "x3", "APP", "x"))

    assert repo.get_connection(y_db, y_app) is None
    assert repo.count_connections() == 2


def test_scoped_rebuild_of_hub_rewires_domain(repo):
    db = _add(repo, "x1", "DB", "x")
    _add(repo, "x2", "API", "x")
    _add(repo, "x3", "APP", "x")
    assert ConnectionBuilder(repo).build(db) == 2


def test_scoped_rebuild_of_inactive_clears_edges(repo):
    db = _add(repo, "x1", "DB", "x")
    api = _add(repo, "x2", "API", "x")
    app = _add(repo, "x3", "APP", "x")
    builder = ConnectionBuilder(repo)
    builder.build()

    repo.set_component_active(app, False)
    assert builder.build(app) == 0

    assert repo.get_connection(db, app) is None
    assert repo.get_connection(db, api) is not None


def test_scoped_rebuild_unknown_component_is_noop(repo):
    _add(repo, "x1", "DB", "x")
    _add(repo, "x2", "API", "x")
    builder = ConnectionBuilder(repo)
    builder.build()
    assert builder.build(999) == 0
    assert repo.count_connections() == 1


def test_scoped_rebuild_preserves_manual(repo):
    db = _add(repo, "x1", "DB", "x")
    api = _add(repo, "x2", "API", "x")
    app = _add(repo, "x3", "APP", "x")
    _manual(repo, app, api)

    ConnectionBuilder(repo).build(app)

    assert repo.get_connection(app, api) is not None
    assert repo.get_connection(db, app) is not None


# ---------------------------------------------------------------------------
# Failure + concurrency
# ---------------------------------------------------------------------------


class _FailingRepo(Repository):
    def replace_connections(self, scope, edges, connection_types=None):
        raise sqlite3.OperationalError("disk I/O error")


def test_storage_failure_propagates_and_keeps_edges(tmp_db):
    repo = Repository(tmp_db)
    _add(repo, "x1", "DB", "x")
    _add(repo, "x2", "API", "x")
    ConnectionBuilder(repo).build()

    with pytest.raises(sqlite3.OperationalError):
        ConnectionBuilder(_FailingRepo(tmp_db)).build()

    assert repo.count_connections() == 1
    # the lock is released after a failure
    assert ConnectionBuilder(repo).build() == 1


def test_concurrent_builds_serialize(repo):
    _add(repo, "x1", "DB", "x")
    for i in range(5):
        _add(repo, f"m{i}", "APP", "x")
    builder = ConnectionBuilder(repo)

    with ThreadPoolExecutor(max_workers=4) as pool:
        results = list(pool.map(lambda _: builder.build(), range(8)))

    assert results == [5] * 8
    assert repo.count_connections() == 5


def test_build_connections_wrapper(repo):
    _add(repo, "x1", "DB", "x")
    _add(repo, "x2", "STORAGE", "x")
    assert build_connections(repo) == 1
    assert [e.strength for e in repo.list_active_connections()] == [0.7]
