"""infragraph CLI entry point."""

from __future__ import annotations

import importlib.metadata
from typing import Annotated

import typer

from infragraph.cli.common import configure_logging
from infragraph.cli.graph import domain_cmd, graph_cmd
from infragraph.cli.ingest import ingest_cmd
from infragraph.cli.init import init_cmd
from infragraph.cli.rebuild import rebuild_cmd
from infragraph.cli.remove import remove_cmd
from infragraph.cli.status import status_cmd


def _version_callback(value: bool) -> None:
    if value:
        try:
            ver = importlib.metadata.version("infragraph")
        except importlib.metadata.PackageNotFoundError:
            ver = "dev"
        typer.echo(f"infragraph {ver}")
        raise typer.Exit()


app = typer.Typer(
    name="infragraph",
    help=(
        "infragraph - infrastructure catalogue and connection graph.\n\n"
        "  infragraph ingest   Load discovered components, groups and domains.\n"
        "  infragraph rebuild  Re-infer domain connections.\n"
        "  infragraph graph    Emit the renderer graph as JSON."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", help="Override logging.level (DEBUG, INFO, ...)."),
    ] = None,
) -> None:
    """infragraph - infrastructure catalogue and connection graph."""
    if log_level:
        configure_logging(log_level.upper(), force=True)


app.command("init")(init_cmd)
app.command("ingest")(ingest_cmd)
app.command("rebuild")(rebuild_cmd)
app.command("graph")(graph_cmd)
app.command("domain")(domain_cmd)
app.command("remove")(remove_cmd)
app.command("status")(status_cmd)


@app.command("version")
def version_cmd() -> None:
    """Show the installed infragraph version."""
    try:
        ver = importlib.metadata.version("infragraph")
    except importlib.metadata.PackageNotFoundError:
        ver = "dev"
    typer.echo(f"infragraph {ver}")


if __name__ == "__main__":
    app()
