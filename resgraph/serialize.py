"""Conversion between live graphs and their persisted form.

Two layouts exist for the ``vertices`` field. The legacy layout maps each
vertex name to a record of its in/out adjacencies; the new layout is a
plain list of names. Graphs are written in the legacy layout unless told
otherwise, and both layouts are always accepted when reading, so graphs
saved by older versions stay loadable.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Mapping
from typing import Any

from .graph import ResourceGraph
from .models import (
    AdjacencyKind,
    Direction,
    GraphPayload,
    SerializationFormat,
    SerializedEdge,
    VertexAdjacency,
    ref_of,
)

Resolver = Callable[[str], Hashable]


def _adjacency_record(graph: ResourceGraph, vertex: Any) -> VertexAdjacency:
    adjacencies: dict[str, dict[str, list[SerializedEdge]]] = {}
    for direction in (Direction.IN, Direction.OUT):
        by_neighbor: dict[str, list[SerializedEdge]] = {}
        for edge in graph.adjacent(vertex, direction, AdjacencyKind.EDGES):
            other = edge.source if direction is Direction.IN else edge.target
            serialized = SerializedEdge.from_relationship(edge)
            bucket = by_neighbor.setdefault(ref_of(other), [])
            if serialized not in bucket:
                bucket.append(serialized)
        adjacencies[direction.value] = by_neighbor
    return VertexAdjacency(adjacencies=adjacencies, vertex=ref_of(vertex))


def to_data(
    graph: ResourceGraph, fmt: SerializationFormat = SerializationFormat.LEGACY
) -> GraphPayload:
    """Capture a graph's vertices and edges as a ``GraphPayload``."""
    edges = [SerializedEdge.from_relationship(e) for e in graph.edges()]
    if SerializationFormat(fmt) is SerializationFormat.NEW:
        return GraphPayload(edges=edges, vertices=[ref_of(v) for v in graph.vertices()])
    return GraphPayload(
        edges=edges,
        vertices={ref_of(v): _adjacency_record(graph, v) for v in graph.vertices()},
    )


def from_data(
    payload: GraphPayload | Mapping[str, Any], resolve: Resolver | None = None
) -> ResourceGraph:
    """Rebuild a graph from either persisted layout.

    Only the keys of a legacy vertex mapping are used; edges are always
    replayed from the ``edges`` list.

    Args:
        payload: A ``GraphPayload`` or a plain mapping to validate into one.
        resolve: Maps a display name to the caller's vertex object.
                 Defaults to using the names themselves as vertices.

    Raises:
        pydantic.ValidationError: If a mapping payload is malformed.
    """
    if not isinstance(payload, GraphPayload):
        payload = GraphPayload.model_validate(dict(payload))
    resolve = resolve or str

    # Legacy payloads carry a mapping; only its keys name the vertices.
    if isinstance(payload.vertices, dict):
        names = list(payload.vertices)
    else:
        names = payload.vertices

    graph = ResourceGraph()
    for name in names:
        graph.add_vertex(resolve(name))
    for edge in payload.edges:
        graph.add_relationship(resolve(edge.source), resolve(edge.target), edge.label)
    return graph
