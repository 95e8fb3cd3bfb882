"""Write projected graphs to disk.

A graph file holds the same ``{"nodes", "edges", "stats"}`` document the
``graph`` command prints to stdout. Node and edge order is kept as projected;
the renderer matches successive graphs by position and id.

Relative output paths stay under the working directory; absolute paths are
taken as given. Existing files are only replaced after confirmation, and the
replacement is atomic so a reader never sees a half-written graph.
"""

from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import typer

GRAPH_FILE_SUFFIX = ".json"


class OutputPathError(ValueError):
    """Raised when a graph file location is not acceptable."""


@dataclass
class GraphFile:
    """Summary of a written graph file."""

    path: Path
    nodes: int
    edges: int
    size: int  # bytes


def render_graph_json(graph: dict[str, Any], indent: int | None = 2) -> str:
    """Return *graph* as JSON text, with a trailing newline."""
    return json.dumps(graph, indent=indent, ensure_ascii=False) + "\n"


def graph_counts(graph: dict[str, Any]) -> tuple[int, int]:
    """Return (nodes, edges) from the graph stats, counting the lists when absent."""
    stats = graph.get("stats") or {}
    nodes = stats.get("nodeCount", len(graph.get("nodes", [])))
    edges = stats.get("edgeCount", len(graph.get("edges", [])))
    return nodes, edges


# ------------------------------------------------------------------
# Output location
# ------------------------------------------------------------------


def resolve_graph_path(output: str, base: Path | None = None) -> Path:
    """Resolve *output* to the absolute path of a graph file.

    Relative paths must stay inside *base* (default: CWD), so
    ``../../etc/passwd`` is rejected. A path naming an existing directory
    is rejected too. A missing suffix gets ``.json``.

    Raises:
        OutputPathError: the path escapes *base* or is a directory.
    """
    path = Path(output)
    if not path.suffix:
        path = path.with_suffix(GRAPH_FILE_SUFFIX)

    if path.is_absolute():
        resolved = path.resolve()
    else:
        root = (base if base is not None else Path.cwd()).resolve()
        resolved = (root / path).resolve()
        if not resolved.is_relative_to(root):
            raise OutputPathError(
                f"Graph file '{output}' resolves outside '{root}'. "
                "Path traversal is not permitted."
            )

    if resolved.is_dir():
        raise OutputPathError(f"Graph file '{output}' is a directory.")
    return resolved


def confirm_replace(path: Path, yes: bool) -> bool:
    """True when *path* may be written: it is new, *yes* is set, or the user agrees."""
    if yes or not path.exists():
        return True
    return typer.confirm(f"  Graph file {path.name} exists. Replace it?", default=False)


# ------------------------------------------------------------------
# Write
# ------------------------------------------------------------------


def write_graph(path: Path, graph: dict[str, Any], indent: int | None = 2) -> GraphFile:
    """Write *graph* to *path* atomically and return what was written.

    Parent directories are created. The JSON goes to a temporary file in the
    target directory first and is moved into place with ``os.replace``; on
    failure the temporary file is removed and any existing graph file is left
    as it was.
    """
    content = render_graph_json(graph, indent=indent).encode("utf-8")
    path.parent.mkdir(parents=True, exist_ok=True)

    with tempfile.NamedTemporaryFile(
        dir=path.parent, prefix=f".{path.stem}.", suffix=".tmp", delete=False
    ) as tmp:
        tmp_path = Path(tmp.name)
        try:
            tmp.write(content)
        except OSError:
            tmp.close()
            tmp_path.unlink(missing_ok=True)
            raise

    try:
        os.replace(tmp_path, path)
    except OSError:
        tmp_path.unlink(missing_ok=True)
        raise

    nodes, edges = graph_counts(graph)
    return GraphFile(path=path, nodes=nodes, edges=edges, size=len(content))
