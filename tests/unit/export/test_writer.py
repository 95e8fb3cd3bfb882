"""Tests for the graph file writer."""

from __future__ import annotations

import json
import os
from pathlib import Path
from unittest.mock import patch

import pytest

from infragraph.export.writer import (
    GraphFile,
    OutputPathError,
    confirm_replace,
    graph_counts,
    render_graph_json,
    resolve_graph_path,
    write_graph,
)


_GRAPH = {
    "nodes": [{"data": {"id": "2", "name": "zürich"}}, {"data": {"id": "1"}}],
    "edges": [{"data": {"id": "1-2", "source": "1", "target": "2"}}],
    "stats": {"nodeCount": 2, "edgeCount": 1},
}


def _temp_files(directory: Path) -> list[str]:
    return [name for name in os.listdir(directory) if name.endswith(".tmp")]


# ------------------------------------------------------------------
# render_graph_json / graph_counts
# ------------------------------------------------------------------


def test_render_keeps_node_order_and_unicode():
    text = render_graph_json(_GRAPH)
    assert json.loads(text) == _GRAPH
    assert text.index('"2"') < text.index('"1"')
    assert "zürich" in text
    assert text.endswith("\n")


def test_render_compact():
    assert "\n" not in render_graph_json(_GRAPH, indent=None).rstrip("\n")


def test_graph_counts_from_stats():
    assert graph_counts(_GRAPH) == (2, 1)


def test_graph_counts_without_stats():
    graph = {"nodes": [{"data": {"id": "a"}}], "edges": []}
    assert graph_counts(graph) == (1, 0)


# ------------------------------------------------------------------
# resolve_graph_path
# ------------------------------------------------------------------


def test_resolve_relative_path_inside_base(tmp_path):
    result = resolve_graph_path("out/graph.json", base=tmp_path)
    assert result == (tmp_path / "out" / "graph.json").resolve()


def test_resolve_adds_json_suffix(tmp_path):
    assert resolve_graph_path("graph", base=tmp_path) == (tmp_path / "graph.json").resolve()


def test_resolve_keeps_other_suffix(tmp_path):
    assert resolve_graph_path("graph.txt", base=tmp_path).name == "graph.txt"


def test_resolve_traversal_rejected(tmp_path):
    with pytest.raises(OutputPathError, match="Path traversal"):
        resolve_graph_path("../../etc/passwd", base=tmp_path)


def test_resolve_directory_rejected(tmp_path):
    (tmp_path / "graphs.json").mkdir()
    with pytest.raises(OutputPathError, match="is a directory"):
        resolve_graph_path("graphs.json", base=tmp_path)


def test_resolve_absolute_path_accepted(tmp_path):
    target = tmp_path / "abs.json"
    assert resolve_graph_path(str(target)) == target.resolve()


def test_resolve_defaults_to_cwd(tmp_path):
    # tests run with tmp_path as CWD
    assert resolve_graph_path("graph.json") == (tmp_path / "graph.json").resolve()


def test_output_path_error_is_value_error():
    assert issubclass(OutputPathError, ValueError)


# ------------------------------------------------------------------
# confirm_replace
# ------------------------------------------------------------------


def test_confirm_replace_new_file(tmp_path):
    assert confirm_replace(tmp_path / "new.json", yes=False) is True


def test_confirm_replace_yes_skips_prompt(tmp_path):
    existing = tmp_path / "graph.json"
    existing.write_text("{}")
    with patch("infragraph.export.writer.typer.confirm") as confirm:
        assert confirm_replace(existing, yes=True) is True
    confirm.assert_not_called()


def test_confirm_replace_prompts(tmp_path):
    existing = tmp_path / "graph.json"
    existing.write_text("{}")
    with patch("infragraph.export.writer.typer.confirm", return_value=False) as confirm:
        assert confirm_replace(existing, yes=False) is False
    confirm.assert_called_once()
    assert "graph.json" in confirm.call_args.args[0]


# ------------------------------------------------------------------
# write_graph
# ------------------------------------------------------------------


def test_write_graph_creates_parents_and_reports(tmp_path):
    target = tmp_path / "a" / "b" / "graph.json"

    written = write_graph(target, _GRAPH)

    assert isinstance(written, GraphFile)
    assert written.path == target
    assert (written.nodes, written.edges) == (2, 1)
    assert written.size == len(target.read_bytes())
    assert json.loads(target.read_text(encoding="utf-8")) == _GRAPH


def test_write_graph_replaces_and_leaves_no_temp(tmp_path):
    target = tmp_path / "graph.json"
    target.write_text("old")

    write_graph(target, _GRAPH)

    assert json.loads(target.read_text(encoding="utf-8"))["stats"]["nodeCount"] == 2
    assert _temp_files(tmp_path) == []


def test_write_graph_failure_keeps_existing(tmp_path):
    target = tmp_path / "graph.json"
    target.write_text("old")
    with patch("infragraph.export.writer.os.replace", side_effect=OSError("disk full")):
        with pytest.raises(OSError):
            write_graph(target, _GRAPH)
    assert target.read_text() == "old"
    assert _temp_files(tmp_path) == []
