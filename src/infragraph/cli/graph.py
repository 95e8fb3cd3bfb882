"""infragraph graph / domain - emit renderer-ready graph JSON.

  infragraph graph                       component view (+ group and domain layers)
  infragraph graph --view domains        domain rollup view
  infragraph graph --domain payments     component view filtered to one string domain
  infragraph domain payments             single string-domain view, no rollup layers

Output goes to stdout unless --output is given. On any failure nothing is
written: a partial graph is never emitted.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console

from infragraph.cli.common import load_cli_config, open_existing_db, resolve_db_path
from infragraph.cli.errors import (
    err_domain_not_found,
    err_output_path_unsafe,
    err_storage,
    err_unknown_view,
)
from infragraph.config import InfragraphConfig
from infragraph.db.repository import Repository
from infragraph.export.writer import (
    OutputPathError,
    confirm_replace,
    render_graph_json,
    resolve_graph_path,
    write_graph,
)
from infragraph.graph.projector import VIEW_MODES, DomainNotFoundError, GraphProjector

# Messages go to stderr; stdout carries only the JSON document.
console = Console(stderr=True)


def graph_cmd(
    view: Annotated[
        str | None,
        typer.Option("--view", help="full | domains (default: graph.view_mode)."),
    ] = None,
    domain: Annotated[
        str | None,
        typer.Option("--domain", "-d", help="Only components/connections of this string domain."),
    ] = None,
    include_isolated: Annotated[
        bool,
        typer.Option(
            "--include-isolated",
            help="Keep components without connections (also: graph.include_isolated).",
        ),
    ] = False,
    output: Annotated[
        str | None,
        typer.Option("--output", "-o", help="Write JSON to this file instead of stdout."),
    ] = None,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Overwrite --output without asking."),
    ] = False,
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Path to the catalogue database."),
    ] = None,
) -> None:
    """Project the catalogue into graph JSON."""
    cfg = load_cli_config(console)
    view_mode = view or cfg.graph.view_mode
    if view_mode not in VIEW_MODES:
        console.print(err_unknown_view(view_mode))
        raise typer.Exit(1)
    isolated = include_isolated or cfg.graph.include_isolated

    conn = open_existing_db(resolve_db_path(db, cfg), console)
    try:
        graph = _projector(conn, cfg).project(
            domain_filter=domain, include_isolated=isolated, view_mode=view_mode
        )
    except sqlite3.Error as exc:
        console.print(err_storage(str(exc)))
        raise typer.Exit(1)
    finally:
        conn.close()

    _emit(graph, output, yes)


def domain_cmd(
    name: Annotated[
        str,
        typer.Argument(help="String domain (as stored on components)."),
    ],
    output: Annotated[
        str | None,
        typer.Option("--output", "-o", help="Write JSON to this file instead of stdout."),
    ] = None,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Overwrite --output without asking."),
    ] = False,
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Path to the catalogue database."),
    ] = None,
) -> None:
    """Emit the graph of a single string domain."""
    cfg = load_cli_config(console)
    conn = open_existing_db(resolve_db_path(db, cfg), console)
    try:
        graph = _projector(conn, cfg).project_domain(name)
    except DomainNotFoundError:
        console.print(err_domain_not_found(name))
        raise typer.Exit(1)
    except sqlite3.Error as exc:
        console.print(err_storage(str(exc)))
        raise typer.Exit(1)
    finally:
        conn.close()

    _emit(graph, output, yes)


def _projector(conn: sqlite3.Connection, cfg: InfragraphConfig) -> GraphProjector:
    return GraphProjector(
        Repository(conn),
        domain_color=cfg.graph.domain_color,
        domain_strength_cap=cfg.graph.domain_strength_cap,
    )


def _emit(graph: dict[str, Any], output: str | None, yes: bool) -> None:
    if output is None:
        typer.echo(render_graph_json(graph), nl=False)
        return

    try:
        path = resolve_graph_path(output)
    except OutputPathError as exc:
        console.print(err_output_path_unsafe(output, str(exc)))
        raise typer.Exit(1)

    if not confirm_replace(path, yes):
        console.print("[dim]Cancelled.[/]")
        raise typer.Exit(0)

    written = write_graph(path, graph)
    console.print(
        f"[green]✓[/] Wrote {written.path}  "
        f"({written.nodes} nodes, {written.edges} edges, {written.size} bytes)"
    )
