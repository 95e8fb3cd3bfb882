"""infragraph ingest - load a discovered inventory into the catalogue.

The inventory file (.yaml / .yml / .json) may hold domains, groups,
components and manual connections; see infragraph.ingest.inventory for the
format. Each component is upserted by (name, type) and wired into its domain
by a scoped connection rebuild.

Usage:
  infragraph ingest inventory.yaml
  infragraph ingest discovered.json --rebuild
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from infragraph.cli.common import load_cli_config, open_db, resolve_db_path
from infragraph.cli.errors import err_inventory_invalid, err_storage
from infragraph.db.repository import Repository
from infragraph.graph.builder import ConnectionBuilder
from infragraph.ingest.ingester import IngestResult, InventoryIngester
from infragraph.ingest.inventory import Inventory, InventoryError, load_inventory

console = Console()


def ingest_cmd(
    inventory_path: Annotated[
        Path,
        typer.Argument(help="Inventory file (.yaml, .yml or .json).", metavar="INVENTORY"),
    ],
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Path to the catalogue database (created if missing)."),
    ] = None,
    rebuild: Annotated[
        bool,
        typer.Option("--rebuild", help="Run a full connection rebuild afterwards."),
    ] = False,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Validate and summarise without writing."),
    ] = False,
) -> None:
    """Load discovered domains, groups, components and connections."""
    cfg = load_cli_config(console)
    db_path = resolve_db_path(db, cfg)

    try:
        inventory = load_inventory(inventory_path)
    except InventoryError as exc:
        console.print(err_inventory_invalid(str(inventory_path), str(exc)))
        raise typer.Exit(1)

    if inventory.is_empty:
        console.print(f"[yellow]Nothing to ingest:[/] {inventory_path} is empty.")
        raise typer.Exit(0)

    if dry_run:
        _show_summary(inventory)
        console.print("[dim]Dry run - nothing written.[/]")
        raise typer.Exit(0)

    conn = open_db(db_path)
    try:
        repo = Repository(conn)
        builder = ConnectionBuilder(
            repo, preserve_manual=cfg.builder.preserve_manual_connections
        )
        result = InventoryIngester(repo, builder).ingest(inventory)
        _show_result(inventory_path, result)

        if rebuild:
            count = builder.build()
            console.print(f"[green]✓[/] Rebuilt connections: {count} domain edge(s)")
    except sqlite3.Error as exc:
        console.print(err_storage(str(exc)))
        raise typer.Exit(1)
    finally:
        conn.close()


def _show_summary(inventory: Inventory) -> None:
    table = Table(title="Inventory", show_header=True, header_style="bold")
    table.add_column("Section")
    table.add_column("Entries", justify="right")
    table.add_row("domains", str(len(inventory.domains)))
    table.add_row("groups", str(len(inventory.groups)))
    table.add_row("components", str(len(inventory.components)))
    table.add_row("connections", str(len(inventory.connections)))
    console.print(table)


def _show_result(inventory_path: Path, result: IngestResult) -> None:
    console.print(f"\n[green]✓[/] Ingested: {inventory_path}")
    console.print(
        f"  Components: {result.created} created, {result.updated} updated  |  "
        f"Domains: {result.domains}  |  Groups: {result.groups}  |  "
        f"Manual connections: {result.connections}  |  "
        f"Domain edges built: {result.edges_built}"
    )
    if result.errors:
        console.print(f"\n[yellow]⚠ {len(result.errors)} entr(y/ies) skipped:[/]")
        for item, message in result.errors:
            console.print(f"  [yellow]✗[/] {item}: {message}")
