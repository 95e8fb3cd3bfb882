"""Tests for infragraph rich error messages."""

from __future__ import annotations

import pytest

from infragraph.cli.errors import (
    err_component_not_found,
    err_config_invalid,
    err_domain_not_found,
    err_inventory_invalid,
    err_no_db,
    err_output_path_unsafe,
    err_storage,
    err_unknown_view,
    warn_manual_connections_deleted,
)


def _has_action(msg: str) -> bool:
    """Every error must contain a cause AND an actionable instruction."""
    lower = msg.lower()
    return any(kw in lower for kw in ["run:", "use ", "fix ", "set ", "retry"])


@pytest.mark.parametrize(
    "msg",
    [
        err_no_db(".infragraph.db"),
        err_config_invalid("graph.view_mode must be one of full, domains"),
        err_component_not_found(7),
        err_domain_not_found("payments"),
        err_unknown_view("groups"),
        err_inventory_invalid("inv.yaml", "components[0]: 'name' is required"),
        err_storage("database is locked"),
        err_output_path_unsafe("../x.json"),
    ],
)
def test_errors_have_cause_and_action(msg: str) -> None:
    assert msg.startswith("[red]Error:[/]")
    assert _has_action(msg)


def test_err_no_db_mentions_path_and_init() -> None:
    msg = err_no_db("/srv/catalogue.db")
    assert "/srv/catalogue.db" in msg
    assert "infragraph init" in msg


def test_err_component_not_found_has_id() -> None:
    assert "Component 42" in err_component_not_found(42)


def test_err_unknown_view_lists_modes() -> None:
    msg = err_unknown_view("groups")
    assert "'groups'" in msg
    assert "full" in msg and "domains" in msg


def test_err_inventory_invalid_reruns_ingest() -> None:
    msg = err_inventory_invalid("inv.yaml", "bad")
    assert "infragraph ingest inv.yaml" in msg


def test_err_storage_says_nothing_committed() -> None:
    assert "No changes were committed" in err_storage("disk I/O error")


def test_warn_manual_connections_deleted() -> None:
    msg = warn_manual_connections_deleted()
    assert "preserve_manual_connections" in msg
    assert not msg.startswith("[red]")
