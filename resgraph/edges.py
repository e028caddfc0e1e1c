"""Adjacency storage for the resource graph.

The store keeps two maps in lockstep:

    out_from[u][v]  -- edges leaving u towards v
    in_to[v][u]     -- edges entering v from u

Both entries for a vertex pair point at the *same* list object, so the two
views can never disagree about which edges connect u and v. The key sets of
both maps always equal the vertex set, and removing the last edge between a
pair drops the pair's keys while leaving both vertices in place.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterator
from typing import Any

from .models import Direction, Relationship

Slots = dict[Any, list[Relationship]]


class EdgeStore:
    """Owns vertex membership and the labeled edges between vertices."""

    def __init__(self) -> None:
        self.in_to: dict[Any, Slots] = {}
        self.out_from: dict[Any, Slots] = {}

    def __len__(self) -> int:
        return len(self.in_to)

    def __contains__(self, vertex: Hashable) -> bool:
        return vertex in self.in_to

    def clear(self) -> None:
        self.in_to.clear()
        self.out_from.clear()

    def vertices(self) -> list[Any]:
        return list(self.in_to)

    def add_vertex(self, vertex: Hashable) -> None:
        if vertex not in self.in_to:
            self.in_to[vertex] = {}
            self.out_from[vertex] = {}

    def remove_vertex(self, vertex: Hashable) -> bool:
        """Drop a vertex and every edge touching it.

        Returns:
            False if the vertex was not present, True otherwise.
        """
        if vertex not in self.in_to:
            return False
        incident = [e for slot in self.in_to[vertex].values() for e in slot]
        incident += [e for slot in self.out_from[vertex].values() for e in slot]
        for edge in incident:
            self.discard(edge)
        del self.in_to[vertex]
        del self.out_from[vertex]
        return True

    def add(self, edge: Relationship) -> bool:
        """Store an edge, adding its endpoints as vertices when needed.

        A linear scan of the (source, target) slot rejects duplicates; slots
        hold the edges between a single pair and stay small in practice.

        Returns:
            True if the edge was stored, False if an equal edge already was.
        """
        self.add_vertex(edge.source)
        self.add_vertex(edge.target)
        slot = self.out_from[edge.source].get(edge.target)
        if slot is None:
            slot = []
            self.out_from[edge.source][edge.target] = slot
            self.in_to[edge.target][edge.source] = slot
        elif edge in slot:
            return False
        slot.append(edge)
        return True

    def discard(self, edge: Relationship) -> bool:
        """Remove one occurrence of an edge.

        Returns:
            False if the edge was not present, True otherwise.
        """
        slot = self.between(edge.source, edge.target)
        if edge not in slot:
            return False
        slot.remove(edge)
        if not slot:
            del self.out_from[edge.source][edge.target]
            del self.in_to[edge.target][edge.source]
        return True

    def between(self, source: Hashable, target: Hashable) -> list[Relationship]:
        """Return the live slot of edges from source to target (empty if none)."""
        return self.out_from.get(source, {}).get(target, [])

    def neighbors(
        self, vertex: Hashable, direction: Direction = Direction.OUT
    ) -> Slots:
        """Return the neighbor → edges map of a vertex in one direction."""
        side = self.in_to if direction is Direction.IN else self.out_from
        return side.get(vertex, {})

    def __iter__(self) -> Iterator[Relationship]:
        for slots in self.out_from.values():
            for slot in slots.values():
                yield from slot
