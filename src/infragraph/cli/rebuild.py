"""infragraph rebuild - re-infer domain connections.

Full rebuild (default) replaces every builder-generated edge. With
--component only the edges touching that component are replaced.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from infragraph.cli.common import load_cli_config, open_existing_db, resolve_db_path
from infragraph.cli.errors import (
    err_component_not_found,
    err_storage,
    warn_manual_connections_deleted,
)
from infragraph.db.repository import Repository
from infragraph.graph.builder import ConnectionBuilder

console = Console()


def rebuild_cmd(
    component: Annotated[
        int | None,
        typer.Option("--component", "-c", help="Only rebuild edges touching this component id."),
    ] = None,
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Path to the catalogue database."),
    ] = None,
) -> None:
    """Rebuild hub-and-spoke connections from the component catalogue."""
    cfg = load_cli_config(console)
    conn = open_existing_db(resolve_db_path(db, cfg), console)

    try:
        repo = Repository(conn)
        if component is not None and repo.get_component(component) is None:
            console.print(err_component_not_found(component))
            raise typer.Exit(1)

        builder = ConnectionBuilder(
            repo, preserve_manual=cfg.builder.preserve_manual_connections
        )
        count = builder.build(component)
    except sqlite3.Error as exc:
        console.print(err_storage(str(exc)))
        raise typer.Exit(1)
    finally:
        conn.close()

    scope = f"component {component}" if component is not None else "all components"
    console.print(f"[green]✓[/] Connections rebuilt ({scope}): {count} edge(s) created")
    if not cfg.builder.preserve_manual_connections:
        console.print(warn_manual_connections_deleted())
