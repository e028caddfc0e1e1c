"""Resource dependency graph.

A directed multigraph of managed resources and the ordering relationships
between them. Vertices are opaque hashable objects supplied by the caller;
edges are ``Relationship`` values. The graph answers adjacency and
transitive-closure queries used to decide what must be applied before what.

The graph is meant to hold a DAG, but every traversal here terminates on
cyclic input as well: the graph is queried before it has been validated.
Nothing recurses over graph depth.

Not thread-safe: mutations must be serialized by the caller. Read-only
queries on an unchanging graph may run concurrently.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable, Hashable, Iterator
from typing import Any

from .edges import EdgeStore
from .models import AdjacencyKind, Direction, EdgeLabel, Relationship, ref_of

logger = logging.getLogger(__name__)

Visitor = Callable[[Any, Any], None]


class ResourceGraph:
    """Vertices, labeled edges and memoized dependency closures.

    Example:
        If ``Notify[foo]`` requires ``Notify[bar]``:

        >>> graph = ResourceGraph()
        >>> _ = graph.add_relationship("Notify[bar]", "Notify[foo]")
        >>> graph.dependents("Notify[bar]")
        ['Notify[foo]']
    """

    directed = True

    def __init__(self) -> None:
        self._store = EdgeStore()
        # vertex → {reachable vertex: None}, dicts used as ordered sets
        self._upstream_from: dict[Any, dict[Any, None]] = {}
        self._downstream_from: dict[Any, dict[Any, None]] = {}

    def __len__(self) -> int:
        return len(self._store)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._store.vertices())

    def __contains__(self, vertex: object) -> bool:
        return self.has_vertex(vertex)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} vertices={len(self)} edges={len(self.edges())}>"

    def clear(self) -> None:
        self._store.clear()
        self._invalidate()

    def _invalidate(self) -> None:
        # Any structural change can alter arbitrarily many closures.
        if self._upstream_from or self._downstream_from:
            logger.debug("Dropping cached dependency closures")
        self._upstream_from.clear()
        self._downstream_from.clear()

    # -- vertices ---------------------------------------------------------

    def add_vertex(self, vertex: Hashable) -> None:
        """Add a vertex; adding one that is already present does nothing."""
        if vertex is None:
            raise ValueError("None is not a valid vertex")
        if vertex not in self._store:
            self._store.add_vertex(vertex)
            self._invalidate()

    def remove_vertex(self, vertex: Hashable) -> None:
        """Remove a vertex with all its incident edges (no-op if absent)."""
        if self._store.remove_vertex(vertex):
            self._invalidate()

    def has_vertex(self, vertex: object) -> bool:
        return vertex in self._store

    def vertices(self) -> list[Any]:
        """Return all vertices, in insertion order."""
        return self._store.vertices()

    # -- edges ------------------------------------------------------------

    def add_edge(self, edge: Relationship) -> Relationship:
        """Add a relationship, adding its endpoints as vertices if needed.

        Adding a relationship equal to one already present is a no-op.

        Raises:
            TypeError: If ``edge`` is not a ``Relationship``. Use
                ``add_relationship`` to build one from its parts.
        """
        if not isinstance(edge, Relationship):
            raise TypeError(
                f"add_edge expects a Relationship, got {type(edge).__name__}; "
                "use add_relationship(source, target, label) instead"
            )
        if self._store.add(edge):
            self._invalidate()
        return edge

    def add_relationship(
        self,
        source: Hashable,
        target: Hashable,
        label: EdgeLabel | None = None,
    ) -> Relationship:
        """Build a relationship from its parts and add it."""
        return self.add_edge(Relationship(source=source, target=target, label=label))

    def remove_edge(self, edge: Relationship) -> None:
        """Remove one occurrence of an edge (no-op if absent)."""
        if self._store.discard(edge):
            self._invalidate()

    def edges(self) -> list[Relationship]:
        return list(self._store)

    def each_edge(self) -> Iterator[Relationship]:
        return iter(self._store)

    def edges_between(self, source: Hashable, target: Hashable) -> list[Relationship]:
        return list(self._store.between(source, target))

    def has_edge(self, source: Hashable, target: Hashable) -> bool:
        return bool(self._store.between(source, target))

    # -- adjacency --------------------------------------------------------

    def adjacent(
        self,
        vertex: Hashable,
        direction: Direction | str = Direction.OUT,
        kind: AdjacencyKind | str = AdjacencyKind.VERTICES,
    ) -> list[Any]:
        """Return the neighbors of a vertex, or the edges to them.

        Args:
            vertex: Vertex to inspect. Unknown vertices yield ``[]``.
            direction: ``OUT`` for targets of outgoing edges, ``IN`` for
                       sources of incoming edges.
            kind: ``VERTICES`` for neighbor vertices, ``EDGES`` for the
                  flattened list of connecting edges.
        """
        slots = self._store.neighbors(vertex, Direction(direction))
        if AdjacencyKind(kind) is AdjacencyKind.EDGES:
            return [edge for slot in slots.values() for edge in slot]
        return list(slots)

    def direct_dependencies_of(self, vertex: Hashable) -> list[Any]:
        return self.adjacent(vertex, Direction.IN)

    def direct_dependents_of(self, vertex: Hashable) -> list[Any]:
        return self.adjacent(vertex, Direction.OUT)

    def matching_edges(self, event: str, source: Hashable) -> list[Relationship]:
        """Return the outgoing edges of ``source`` that forward ``event``."""
        if source not in self:
            logger.warning("Got an event from invalid vertex %s", ref_of(source))
            return []
        edges = self.adjacent(source, kind=AdjacencyKind.EDGES)
        return [e for e in edges if e.matches(event)]

    # -- closures ---------------------------------------------------------

    def dependencies(self, vertex: Hashable) -> list[Any]:
        """Every vertex the given vertex transitively depends on."""
        if vertex not in self:
            return []
        return list(self._closure(vertex, Direction.IN, self._upstream_from))

    def dependents(self, vertex: Hashable) -> list[Any]:
        """Every vertex that transitively depends on the given vertex."""
        if vertex not in self:
            return []
        return list(self._closure(vertex, Direction.OUT, self._downstream_from))

    def _closure(
        self,
        vertex: Hashable,
        direction: Direction,
        cache: dict[Any, dict[Any, None]],
    ) -> dict[Any, None]:
        cached = cache.get(vertex)
        if cached is not None:
            return cached

        result: dict[Any, None] = {}
        queue = deque(self.adjacent(vertex, direction))
        expanded = {vertex}
        while queue:
            node = queue.popleft()
            result[node] = None
            if node in expanded:
                continue
            expanded.add(node)
            known = cache.get(node)
            if known is not None:
                # Reuse a closure computed by an earlier query.
                result.update(known)
                expanded.update(known)
                continue
            queue.extend(self.adjacent(node, direction))

        cache[vertex] = result
        return result

    # -- traversal --------------------------------------------------------

    def pairs(
        self, source: Hashable, direction: Direction | str = Direction.OUT
    ) -> Iterator[tuple[Any, Any]]:
        """Breadth-first traversal yielding ``(node, neighbor)`` pairs.

        Each reachable node is expanded at most once, so every distinct pair
        is produced exactly once and cycles cannot cause non-termination.
        """
        direction = Direction(direction)
        queue = deque([source])
        seen: set[Any] = set()
        while queue:
            node = queue.popleft()
            if node in seen:
                continue
            seen.add(node)
            connected = self.adjacent(node, direction)
            for neighbor in connected:
                yield node, neighbor
            queue.extend(connected)

    def walk(
        self,
        source: Hashable,
        direction: Direction | str,
        visit: Visitor,
    ) -> None:
        """Call ``visit(node, neighbor)`` for every pair reached from ``source``.

        Runs the whole traversal before returning; use ``pairs`` to consume
        the same sequence lazily.
        """
        for node, neighbor in self.pairs(source, direction):
            visit(node, neighbor)

    def tree_from_vertex(
        self, start: Hashable, direction: Direction | str = Direction.OUT
    ) -> dict[Any, Any]:
        """Return the BFS predecessor map (child → parent) rooted at ``start``."""
        predecessor: dict[Any, Any] = {}
        for parent, child in self.pairs(start, direction):
            predecessor[child] = parent
        return predecessor

    def leaves(
        self, vertex: Hashable, direction: Direction | str = Direction.OUT
    ) -> list[Any]:
        """Return every reachable vertex with no further adjacency in ``direction``.

        The start vertex counts when it is itself a leaf.
        """
        if vertex not in self:
            return []
        reachable = [vertex, *self.tree_from_vertex(vertex, direction)]
        found: dict[Any, None] = {}
        for node in reachable:
            if not self.adjacent(node, direction):
                found[node] = None
        return list(found)

    def path_between(
        self, start: Hashable, end: Hashable
    ) -> list[list[Relationship]] | None:
        """Return the edge groups along a path from ``start`` to ``end``.

        The i-th group holds every edge between the i-th and (i+1)-th vertex
        of a shortest (fewest hops) connecting path. Intended for tests and
        diagnostics.

        Returns:
            ``[]`` if ``start == end``, ``None`` if ``end`` is unreachable.
        """
        if start == end:
            return []
        predecessor: dict[Any, Any] = {}
        for parent, child in self.pairs(start):
            if child not in predecessor:
                predecessor[child] = parent
            if child == end:
                break
        if end not in predecessor:
            return None

        hops = [end]
        while hops[-1] != start:
            hops.append(predecessor[hops[-1]])
        hops.reverse()
        return [self.edges_between(a, b) for a, b in zip(hops, hops[1:])]

    def reversal(self) -> ResourceGraph:
        """Return a new graph with every edge pointing the other way."""
        result = type(self)()
        for vertex in self.vertices():
            result.add_vertex(vertex)
        for edge in self.edges():
            result.add_edge(edge.reversed())
        return result
