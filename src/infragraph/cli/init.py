"""infragraph init - create an empty catalogue.

Creates:
  .infragraph.db     - empty catalogue with schema (path from --db or config)
  infragraph.yaml    - project config with commented defaults
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from infragraph.cli.common import open_db
from infragraph.config import DEFAULT_DB_PATH, ensure_project_config

console = Console()

_DEFAULT_PROJECT_DIR = Path(".")


def init_cmd(
    project_dir: Annotated[
        Path,
        typer.Argument(help="Directory to initialize. Defaults to current directory."),
    ] = _DEFAULT_PROJECT_DIR,
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Database path (default: <project_dir>/.infragraph.db)."),
    ] = None,
) -> None:
    """Initialize a new infragraph catalogue in PROJECT_DIR."""
    project_dir = project_dir.resolve()
    project_dir.mkdir(parents=True, exist_ok=True)
    db_path = db if db is not None else project_dir / DEFAULT_DB_PATH

    if db_path.exists():
        console.print(f"[yellow]⚠[/]  {db_path} already exists - schema upgraded, data kept.")

    conn = open_db(db_path)
    conn.close()
    console.print(f"  [green]✓[/] {db_path}")

    cfg_path = ensure_project_config(project_dir)
    console.print(f"  [green]✓[/] {cfg_path}")

    console.print("\n[bold green]✓ Catalogue initialized.[/]")
    console.print("\nNext steps:")
    console.print("  1. infragraph ingest inventory.yaml   (load discovered components)")
    console.print("  2. infragraph rebuild                 (infer domain connections)")
    console.print("  3. infragraph graph -o graph.json     (export the graph)")
