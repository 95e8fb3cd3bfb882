"""infragraph status - catalogue overview.

Shows database location, components by type, connections by type and
string domain, and the group / domain layers.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from infragraph.cli.common import load_cli_config, open_db, resolve_db_path
from infragraph.config import InfragraphConfig
from infragraph.db.repository import Repository

console = Console()


def status_cmd(
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Path to the catalogue database."),
    ] = None,
) -> None:
    """Show catalogue status: components, connections, groups and domains."""
    cfg = load_cli_config(console)
    db_path = resolve_db_path(db, cfg)

    # ---- Panel 1: Project + Database ----
    _show_database_panel(db_path, cfg)

    if not db_path.exists():
        console.print(
            Panel(
                "[yellow]No database found.[/]\n"
                "  Run:  infragraph init",
                title="[bold]Catalogue[/]",
                expand=False,
            )
        )
        return

    conn = open_db(db_path)
    try:
        repo = Repository(conn)
        # ---- Panel 2: Components ----
        _show_components_panel(repo)
        # ---- Panel 3: Connections ----
        _show_connections_panel(repo)
        # ---- Panel 4: Groups + Domains ----
        _show_layers_panel(repo)
    finally:
        conn.close()


# ---------------------------------------------------------------------------
# Panel renderers
# ---------------------------------------------------------------------------


def _show_database_panel(db_path: Path, cfg: InfragraphConfig) -> None:
    db_info = f"{db_path}"
    if db_path.exists():
        size_kb = db_path.stat().st_size / 1024
        db_info = f"{db_path} ({size_kb:.1f} KB)"

    manual = (
        "[green]preserved[/]"
        if cfg.builder.preserve_manual_connections
        else "[yellow]replaced on rebuild[/]"
    )
    lines = [
        f"Database:            {db_info}",
        f"Default view:        {cfg.graph.view_mode}",
        f"Manual connections:  {manual}",
    ]
    console.print(Panel("\n".join(lines), title="[bold]Project[/]", expand=False))


def _show_components_panel(repo: Repository) -> None:
    by_type = repo.count_components_by_type()
    if not by_type:
        console.print(
            Panel(
                "[dim]No active components.[/]\n"
                "  Run:  infragraph ingest <inventory.yaml>",
                title="[bold]Components[/]",
                expand=False,
            )
        )
        return

    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column("Type", style="bold")
    table.add_column("Count", justify="right")
    for type_, n in by_type.items():
        table.add_row(type_, str(n))

    total = sum(by_type.values())
    console.print(
        Panel(table, title=f"[bold]Components[/] [dim]({total} active)[/]", expand=False)
    )


def _show_connections_panel(repo: Repository) -> None:
    stats = repo.connection_stats()
    if not stats["total"]:
        console.print(
            Panel(
                "[dim]No connections.[/]\n"
                "  Run:  infragraph rebuild",
                title="[bold]Connections[/]",
                expand=False,
            )
        )
        return

    table = Table(box=None, padding=(0, 1))
    table.add_column("Domain", style="bold")
    table.add_column("Edges", justify="right")
    for domain, n in stats["by_domain"].items():
        table.add_row(domain, str(n))

    by_type = "  ".join(f"{t}: {n}" for t, n in stats["by_type"].items())
    console.print(
        Panel(
            table,
            title=f"[bold]Connections[/] [dim]({stats['total']} total - {by_type})[/]",
            expand=False,
        )
    )


def _show_layers_panel(repo: Repository) -> None:
    groups = repo.list_active_groups()
    domains = repo.list_domains()
    if not groups and not domains:
        return

    domain_names = {d.id: d.name for d in domains}
    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column("Group", style="bold")
    table.add_column("Type", style="dim")
    table.add_column("Members", justify="right")
    table.add_column("Domain")
    for group in groups:
        table.add_row(
            group.name,
            group.group_type,
            str(len(group.component_ids)),
            domain_names.get(group.domain_id, "[dim]-[/]"),
        )

    console.print(
        Panel(
            table,
            title=f"[bold]Groups[/] [dim]({len(groups)} groups, {len(domains)} domains)[/]",
            expand=False,
        )
    )
