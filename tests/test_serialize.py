"""Tests for resgraph.serialize."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from resgraph.graph import ResourceGraph
from resgraph.models import (
    ALL_EVENTS,
    EdgeLabel,
    GraphPayload,
    Relationship,
    SerializationFormat,
    SerializedEdge,
)
from resgraph.serialize import from_data, to_data

REFRESH = EdgeLabel(event=ALL_EVENTS, callback="refresh")


@pytest.fixture
def service_graph() -> ResourceGraph:
    graph = ResourceGraph()
    graph.add_relationship("Package[nginx]", "File[nginx.conf]")
    graph.add_relationship("File[nginx.conf]", "Service[nginx]", REFRESH)
    graph.add_vertex("User[deploy]")
    return graph


class TestToData:
    def test_new_format_lists_vertices(self, service_graph: ResourceGraph) -> None:
        payload = to_data(service_graph, SerializationFormat.NEW)
        assert payload.vertices == [
            "Package[nginx]",
            "File[nginx.conf]",
            "Service[nginx]",
            "User[deploy]",
        ]
        assert payload.edges == [
            SerializedEdge(source="Package[nginx]", target="File[nginx.conf]"),
            SerializedEdge(
                source="File[nginx.conf]", target="Service[nginx]", label=REFRESH
            ),
        ]

    def test_legacy_is_default(self, service_graph: ResourceGraph) -> None:
        payload = to_data(service_graph)
        assert payload.format is SerializationFormat.LEGACY
        assert isinstance(payload.vertices, dict)

    def test_legacy_adjacency_records(self, service_graph: ResourceGraph) -> None:
        vertices = to_data(service_graph).vertices
        assert isinstance(vertices, dict)
        record = vertices["File[nginx.conf]"]
        assert record.vertex == "File[nginx.conf]"
        assert record.adjacencies["in"] == {
            "Package[nginx]": [
                SerializedEdge(source="Package[nginx]", target="File[nginx.conf]")
            ]
        }
        assert record.adjacencies["out"] == {
            "Service[nginx]": [
                SerializedEdge(
                    source="File[nginx.conf]", target="Service[nginx]", label=REFRESH
                )
            ]
        }
        assert vertices["User[deploy]"].adjacencies == {"in": {}, "out": {}}

    def test_uses_display_names(self, resource) -> None:
        graph = ResourceGraph()
        graph.add_relationship(resource("notify", "bar"), resource("notify", "foo"))
        payload = to_data(graph, SerializationFormat.NEW)
        assert payload.vertices == ["Notify[bar]", "Notify[foo]"]
        assert payload.edges[0].source == "Notify[bar]"

    def test_accepts_format_string(self, service_graph: ResourceGraph) -> None:
        payload = to_data(service_graph, "new")  # type: ignore[arg-type]
        assert payload.format is SerializationFormat.NEW


class TestFromData:
    @pytest.mark.parametrize("fmt", list(SerializationFormat))
    def test_restores_graph(
        self, service_graph: ResourceGraph, fmt: SerializationFormat
    ) -> None:
        restored = from_data(to_data(service_graph, fmt))
        assert set(restored.vertices()) == set(service_graph.vertices())
        assert set(restored.edges()) == set(service_graph.edges())

    def test_legacy_mapping_keys_become_vertices(self) -> None:
        payload = {
            "edges": [],
            "vertices": {
                "Notify[foo]": {
                    "adjacencies": {"in": {}, "out": {}},
                    "vertex": "Notify[foo]",
                },
                "Notify[bar]": {
                    "adjacencies": {"in": {}, "out": {}},
                    "vertex": "Notify[bar]",
                },
            },
        }
        assert set(from_data(payload).vertices()) == {"Notify[foo]", "Notify[bar]"}

    def test_legacy_adjacency_contents_are_not_replayed(self) -> None:
        payload = {
            "vertices": {
                "a": {"adjacencies": {"out": {"b": [{"source": "a", "target": "b"}]}}},
            }
        }
        graph = from_data(payload)
        assert graph.vertices() == ["a"]
        assert graph.edges() == []

    def test_new_format_mapping(self) -> None:
        payload = {
            "edges": [{"source": "a", "target": "b"}],
            "vertices": ["a", "b", "c"],
        }
        graph = from_data(payload)
        assert graph.vertices() == ["a", "b", "c"]
        assert graph.edges() == [Relationship(source="a", target="b")]

    def test_edges_add_missing_vertices(self) -> None:
        graph = from_data({"edges": [{"source": "a", "target": "b"}]})
        assert set(graph.vertices()) == {"a", "b"}

    def test_resolve_maps_names_to_vertices(self, resource) -> None:
        resources = (resource("notify", "bar"), resource("notify", "foo"))
        catalog = {r.ref: r for r in resources}
        payload = GraphPayload(
            edges=[SerializedEdge(source="Notify[bar]", target="Notify[foo]")],
            vertices=["Notify[bar]", "Notify[foo]"],
        )
        graph = from_data(payload, resolve=catalog.__getitem__)
        assert graph.dependents(catalog["Notify[bar]"]) == [catalog["Notify[foo]"]]

    def test_rejects_malformed_payload(self) -> None:
        with pytest.raises(ValidationError):
            from_data({"edges": [{"source": "a"}]})
