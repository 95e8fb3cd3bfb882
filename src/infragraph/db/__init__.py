"""infragraph database layer."""

from infragraph.db.connection import Database
from infragraph.db.migrations import MIGRATIONS, run_migrations
from infragraph.db.repository import SCOPE_ALL, Repository
from infragraph.db.schema import initialize

__all__ = [
    "Database",
    "Repository",
    "SCOPE_ALL",
    "initialize",
    "run_migrations",
    "MIGRATIONS",
]
