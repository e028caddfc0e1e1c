"""Data models for resgraph.

These Pydantic models represent the core data structures shared by the
graph, the cycle reporter and the serializer: relationships (edges) and
their labels, the persisted payload shapes, and cycle reports.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

ALL_EVENTS = "ALL_EVENTS"
NO_EVENTS = "NONE"


class Direction(str, Enum):
    """Traversal direction: ``OUT`` follows edges forward, ``IN`` backward."""

    IN = "in"
    OUT = "out"


class AdjacencyKind(str, Enum):
    VERTICES = "vertices"
    EDGES = "edges"


class SerializationFormat(str, Enum):
    """Shape of the persisted ``vertices`` field.

    ``LEGACY`` maps each vertex name to its adjacency record and is the
    default so that older readers keep working. ``NEW`` is a plain list.
    """

    LEGACY = "legacy"
    NEW = "new"


def ref_of(vertex: Any) -> str:
    """Return the display name of a vertex.

    Vertices that carry a string ``ref`` attribute (e.g. ``Notify[foo]``)
    use it; anything else falls back to ``str(vertex)``.
    """
    ref = getattr(vertex, "ref", None)
    return ref if isinstance(ref, str) else str(vertex)


class EdgeLabel(BaseModel):
    """Event-propagation criteria attached to a relationship.

    Attributes:
        event: Event name that travels along the edge, ``ALL_EVENTS`` to
               forward everything, or ``NONE`` to forward nothing.
        callback: Name of the method invoked on the target when a matching
                  event arrives. Required for any event other than ``NONE``.
    """

    model_config = ConfigDict(frozen=True)

    event: str | None = None
    callback: str | None = None

    @model_validator(mode="after")
    def _require_callback(self) -> EdgeLabel:
        if self.event is not None and self.event != NO_EVENTS and not self.callback:
            raise ValueError("You must pass a callback for non-NONE events")
        return self

    def matches(self, event: str) -> bool:
        """Whether an event of the given name should travel along this edge."""
        if self.event is None or event == NO_EVENTS or self.event == NO_EVENTS:
            return False
        return self.event == ALL_EVENTS or self.event == event


class Relationship(BaseModel):
    """A directed, optionally labeled edge between two vertices.

    Relationships compare and hash by value, so adding an equal
    relationship twice to a graph stores it only once.

    Attributes:
        source: Vertex the edge leaves (applied first).
        target: Vertex the edge enters.
        label: Optional event-propagation criteria.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    source: Any
    target: Any
    label: EdgeLabel | None = None

    @field_validator("source", "target")
    @classmethod
    def _not_none(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("relationship endpoints must not be None")
        return value

    @property
    def ref(self) -> str:
        return f"{ref_of(self.source)} => {ref_of(self.target)}"

    def matches(self, event: str) -> bool:
        return self.label is not None and self.label.matches(event)

    def reversed(self) -> Relationship:
        """Return a new relationship with source and target swapped."""
        return Relationship(source=self.target, target=self.source, label=self.label)

    def __str__(self) -> str:
        return self.ref


class SerializedEdge(BaseModel):
    """Persisted form of a relationship, with endpoints as display names."""

    source: str
    target: str
    label: EdgeLabel | None = None

    @classmethod
    def from_relationship(cls, edge: Relationship) -> SerializedEdge:
        return cls(
            source=ref_of(edge.source), target=ref_of(edge.target), label=edge.label
        )


class VertexAdjacency(BaseModel):
    """Legacy per-vertex record.

    Attributes:
        adjacencies: ``{"in": {...}, "out": {...}}`` where each direction maps
                     a neighbor's display name to the serialized edges
                     between the two vertices.
        vertex: Display name of the vertex itself.
    """

    adjacencies: dict[str, dict[str, list[SerializedEdge]]] = Field(
        default_factory=dict
    )
    vertex: str = ""


class GraphPayload(BaseModel):
    """Persisted graph: edges plus vertices in either serialization format.

    ``vertices`` is a plain list of names (new format) or a mapping from
    name to ``VertexAdjacency`` (legacy format).
    """

    edges: list[SerializedEdge] = Field(default_factory=list)
    vertices: list[str] | dict[str, VertexAdjacency] = Field(default_factory=list)

    @property
    def format(self) -> SerializationFormat:
        if isinstance(self.vertices, dict):
            return SerializationFormat.LEGACY
        return SerializationFormat.NEW


class CycleReport(BaseModel):
    """Outcome of a cycle check.

    Attributes:
        cycles: Normalized cycles (each a sorted list of vertices).
        paths: One example path per cycle, rendered ``(a => b => a)``.
        graph_file: Where the cycle graph was written, if it was.
        message: Operator-facing diagnostic; empty when the graph is a DAG.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    cycles: list[list[Any]] = Field(default_factory=list)
    paths: list[str] = Field(default_factory=list)
    graph_file: Path | None = None
    message: str = ""

    @property
    def count(self) -> int:
        return len(self.cycles)

    def __bool__(self) -> bool:
        return bool(self.cycles)
