"""infragraph remove - component lifecycle management.

Soft-deletes a component (is_active = 0) by default. With --hard the row is
deleted and its connections and group memberships cascade away. Either way
a scoped rebuild runs afterwards so no builder edge keeps pointing at it.

Usage:
  infragraph remove --component 12
  infragraph remove --component 12 --hard --yes
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from infragraph.cli.common import load_cli_config, open_existing_db, resolve_db_path
from infragraph.cli.errors import err_component_not_found, err_storage
from infragraph.db.repository import Repository
from infragraph.graph.builder import ConnectionBuilder

console = Console()


def remove_cmd(
    component: Annotated[
        int,
        typer.Option("--component", "-c", help="Id of the component to remove."),
    ],
    hard: Annotated[
        bool,
        typer.Option("--hard", help="Delete the row instead of deactivating it."),
    ] = False,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
    ] = False,
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Path to the catalogue database."),
    ] = None,
) -> None:
    """Remove a component from the catalogue and rewire its domain."""
    cfg = load_cli_config(console)
    conn = open_existing_db(resolve_db_path(db, cfg), console)
    repo = Repository(conn)

    try:
        existing = repo.get_component(component)
        if existing is None:
            console.print(err_component_not_found(component))
            raise typer.Exit(1)

        action = "Delete" if hard else "Deactivate"
        console.print(
            f"\n{action} component: [bold]{existing.name}[/] "
            f"[dim]({existing.tag}, {existing.type})[/]"
        )

        if not yes:
            if not typer.confirm(f"Confirm {action.lower()}?", default=False):
                console.print("[dim]Cancelled.[/]")
                raise typer.Exit(0)

        if hard:
            repo.delete_component(existing.id)
        else:
            repo.set_component_active(existing.id, False)

        builder = ConnectionBuilder(
            repo, preserve_manual=cfg.builder.preserve_manual_connections
        )
        builder.build(existing.id)
    except sqlite3.Error as exc:
        console.print(err_storage(str(exc)))
        raise typer.Exit(1)
    finally:
        conn.close()

    verb = "Deleted" if hard else "Deactivated"
    console.print(f"\n[green]✓[/] {verb}: {existing.name}")
    console.print("  Builder connections touching it were removed.")
