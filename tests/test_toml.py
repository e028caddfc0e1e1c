"""Tests for resgraph.toml."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import tomlkit
from pydantic import ValidationError

from resgraph.graph import ResourceGraph
from resgraph.models import ALL_EVENTS, EdgeLabel, SerializationFormat
from resgraph.toml import (
    dump_payload,
    load_document,
    load_graph,
    load_payload,
    save_document,
    save_graph,
)
from resgraph.serialize import to_data


@pytest.fixture
def service_graph() -> ResourceGraph:
    graph = ResourceGraph()
    graph.add_relationship("Package[nginx]", "File[nginx.conf]")
    label = EdgeLabel(event=ALL_EVENTS, callback="refresh")
    graph.add_relationship("File[nginx.conf]", "Service[nginx]", label)
    graph.add_vertex("User[deploy]")
    return graph


class TestLoadSaveDocument:
    def test_save_preserves_comments(self, tmp_pyproject: Path) -> None:
        tmp_pyproject.write_text("# keep me\n" + tmp_pyproject.read_text())
        doc = load_document(tmp_pyproject)
        doc["tool"]["resgraph"]["graph"] = False
        save_document(tmp_pyproject, doc)

        content = tmp_pyproject.read_text()
        assert content.startswith("# keep me\n")
        assert "graph = false" in content


class TestDumpPayload:
    def test_new_format_values_precede_tables(
        self, service_graph: ResourceGraph
    ) -> None:
        payload = to_data(service_graph, SerializationFormat.NEW)
        text = tomlkit.dumps(dump_payload(payload))
        assert text.index("vertices = ") < text.index("[[edges]]")
        parsed = tomlkit.parse(text).unwrap()
        assert parsed["vertices"] == [
            "Package[nginx]",
            "File[nginx.conf]",
            "Service[nginx]",
            "User[deploy]",
        ]

    def test_omits_missing_labels(self, service_graph: ResourceGraph) -> None:
        parsed = tomlkit.parse(
            tomlkit.dumps(dump_payload(to_data(service_graph, SerializationFormat.NEW)))
        ).unwrap()
        assert "label" not in parsed["edges"][0]
        label = parsed["edges"][1]["label"]
        assert label == {"event": ALL_EVENTS, "callback": "refresh"}

    def test_empty_graph(self) -> None:
        text = tomlkit.dumps(dump_payload(to_data(ResourceGraph())))
        parsed = tomlkit.parse(text).unwrap()
        assert parsed == {"edges": [], "vertices": {}}


class TestSaveLoadGraph:
    @pytest.mark.parametrize("fmt", list(SerializationFormat))
    @pytest.mark.parametrize("suffix", [".toml", ".json"])
    def test_round_trip(
        self,
        service_graph: ResourceGraph,
        tmp_path: Path,
        fmt: SerializationFormat,
        suffix: str,
    ) -> None:
        path = tmp_path / f"graph{suffix}"
        save_graph(path, service_graph, fmt)
        assert load_payload(path).format is fmt

        restored = load_graph(path)
        assert set(restored.vertices()) == set(service_graph.vertices())
        assert set(restored.edges()) == set(service_graph.edges())

    def test_json_is_plain_json(
        self, service_graph: ResourceGraph, tmp_path: Path
    ) -> None:
        path = tmp_path / "graph.json"
        save_graph(path, service_graph, SerializationFormat.NEW)
        data = json.loads(path.read_text())
        assert data["vertices"][0] == "Package[nginx]"

    def test_loads_hand_written_legacy_file(self, tmp_path: Path) -> None:
        path = tmp_path / "legacy.toml"
        path.write_text(
            """\
edges = []

[vertices."Notify[foo]"]
vertex = "Notify[foo]"

[vertices."Notify[foo]".adjacencies.in]
[vertices."Notify[foo]".adjacencies.out]
"""
        )
        assert load_graph(path).vertices() == ["Notify[foo]"]

    def test_rejects_non_graph_file(self, tmp_path: Path) -> None:
        path = tmp_path / "other.toml"
        path.write_text('vertices = "nope"\n')
        with pytest.raises(ValidationError):
            load_graph(path)
