"""Shared CLI plumbing: config loading, logging setup, database access."""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from infragraph.cli.errors import err_config_invalid, err_no_db
from infragraph.config import ConfigError, InfragraphConfig, load_config
from infragraph.db.connection import Database
from infragraph.db.schema import initialize

# Log records go to stderr so `infragraph graph` stdout stays valid JSON.
_log_console = Console(stderr=True)


def load_cli_config(console: Console) -> InfragraphConfig:
    """Load config or exit 1 with an actionable message. Configures logging."""
    try:
        cfg = load_config()
    except ConfigError as exc:
        console.print(err_config_invalid(str(exc)))
        raise typer.Exit(1)
    configure_logging(cfg.logging.level)
    return cfg


def configure_logging(level: str, force: bool = False) -> None:
    """Install a RichHandler on the root logger.

    Without *force* this is a no-op when the root logger already has handlers,
    so a --log-level given on the command line wins over the config file.
    """
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=_log_console, show_path=False)],
        force=force,
    )


def resolve_db_path(db: Path | None, cfg: InfragraphConfig) -> Path:
    return db if db is not None else Path(cfg.database.path)


def open_existing_db(db_path: Path, console: Console) -> sqlite3.Connection:
    """Open *db_path* (running pending migrations) or exit 1 if it is missing."""
    if not db_path.exists():
        console.print(err_no_db(str(db_path)))
        raise typer.Exit(1)
    return open_db(db_path)


def open_db(db_path: Path) -> sqlite3.Connection:
    conn = Database(db_path).connect()
    initialize(conn)
    return conn
