"""infragraph rich error messages - actionable feedback.

Every error shown to the user must contain:
  1. What went wrong (clear cause)
  2. The exact action the user should take to fix it

Usage:
    from infragraph.cli.errors import err_no_db
    console.print(err_no_db(".infragraph.db"))
    raise typer.Exit(1)
"""

from __future__ import annotations

from infragraph.graph.projector import VIEW_MODES


def err_no_db(db_path: str = ".infragraph.db") -> str:
    """No catalogue database at *db_path*."""
    return (
        f"[red]Error:[/] No database found at '{db_path}'.\n"
        "  Run:  infragraph init"
    )


def err_config_invalid(message: str) -> str:
    """infragraph.yaml (or the global config) holds an invalid value."""
    return (
        f"[red]Error:[/] Invalid configuration: {message}\n"
        "  Fix the value in infragraph.yaml or ~/.infragraph/config.yaml."
    )


def err_component_not_found(component_id: int) -> str:
    """No component with this id."""
    return (
        f"[red]Error:[/] Component {component_id} not found.\n"
        "  Run:  infragraph graph --include-isolated  to list component ids."
    )


def err_domain_not_found(domain: str) -> str:
    """No active component carries this string domain."""
    return (
        f"[red]Error:[/] Domain '{domain}' not found (no active components).\n"
        "  Run:  infragraph status  to see known domains."
    )


def err_unknown_view(view: str) -> str:
    """--view is not a supported projection."""
    return (
        f"[red]Error:[/] Unknown view '{view}'.\n"
        f"  Use one of:  {', '.join(VIEW_MODES)}"
    )


def err_inventory_invalid(path: str, message: str) -> str:
    """Inventory file could not be read or validated."""
    return (
        f"[red]Error:[/] Invalid inventory '{path}':\n"
        f"  {message}\n"
        "  Fix the entry and re-run:  infragraph ingest " + path
    )


def err_storage(message: str) -> str:
    """Storage failed mid-operation; nothing was committed."""
    return (
        f"[red]Error:[/] Storage failure: {message}\n"
        "  No changes were committed. Check the database file and retry."
    )


def err_output_path_unsafe(path: str, reason: str = "") -> str:
    """--output path fails validation."""
    detail = f"  {reason}\n" if reason else ""
    return (
        f"[red]Error:[/] Output path is not allowed: '{path}'\n"
        f"{detail}"
        "  Use a file path within the current working directory."
    )


def warn_manual_connections_deleted() -> str:
    """Shown when a rebuild runs with preserve_manual_connections: false."""
    return (
        "[yellow]⚠[/] builder.preserve_manual_connections is false - manually entered\n"
        "  connections in the rebuild scope were deleted as well.\n"
        "  Set it to true in infragraph.yaml to keep them."
    )
