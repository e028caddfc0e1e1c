"""Strongly connected components and cycle detection.

Implements Tarjan's algorithm with an explicit frame stack instead of
recursion: resource graphs can be deep enough that one Python frame per
vertex would hit the interpreter's recursion limit.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from collections.abc import Hashable
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Protocol

from .models import ref_of

logger = logging.getLogger(__name__)


class AdjacencyView(Protocol):
    """The part of a graph the detector needs."""

    def vertices(self) -> list[Any]: ...

    def adjacent(self, vertex: Hashable) -> list[Any]: ...


class CycleSearchCancelled(RuntimeError):
    """Raised when a cycle search is cancelled through its event."""


class _Step(Enum):
    """Where a suspended DFS frame resumes."""

    ENTER = auto()  # first visit
    CHILDREN = auto()  # working through pending children
    AFTER_CHILD = auto()  # a child frame just completed


@dataclass
class _Frame:
    vertex: Any
    step: _Step = _Step.ENTER
    children: deque[Any] = field(default_factory=deque)
    child: Any = None


@dataclass
class _TarjanState:
    counter: int = 0
    index: dict[Any, int] = field(default_factory=dict)
    lowlink: dict[Any, int] = field(default_factory=dict)
    stack: list[Any] = field(default_factory=list)
    on_stack: set[Any] = field(default_factory=set)
    components: list[list[Any]] = field(default_factory=list)


def _check(cancel: threading.Event | None) -> None:
    if cancel is not None and cancel.is_set():
        raise CycleSearchCancelled("cycle search cancelled")


def _tarjan(
    view: AdjacencyView,
    root: Any,
    s: _TarjanState,
    cancel: threading.Event | None,
) -> None:
    frames = [_Frame(root)]
    while frames:
        _check(cancel)
        frame = frames[-1]
        vertex = frame.vertex

        if frame.step is _Step.ENTER:
            s.index[vertex] = s.lowlink[vertex] = s.counter
            s.counter += 1
            s.stack.append(vertex)
            s.on_stack.add(vertex)
            frame.children = deque(view.adjacent(vertex))
            frame.step = _Step.CHILDREN

        elif frame.step is _Step.CHILDREN:
            if frame.children:
                child = frame.children.popleft()
                if child not in s.index:
                    frame.step = _Step.AFTER_CHILD
                    frame.child = child
                    frames.append(_Frame(child))
                elif child in s.on_stack:
                    s.lowlink[vertex] = min(s.lowlink[vertex], s.index[child])
                # otherwise the child already belongs to a finished component
            else:
                if s.lowlink[vertex] == s.index[vertex]:
                    component = []
                    while True:
                        top = s.stack.pop()
                        s.on_stack.discard(top)
                        component.append(top)
                        if top == vertex:
                            break
                    s.components.append(component)
                frames.pop()

        else:  # AFTER_CHILD
            s.lowlink[vertex] = min(s.lowlink[vertex], s.lowlink[frame.child])
            frame.step = _Step.CHILDREN


def strongly_connected_components(
    view: AdjacencyView, cancel: threading.Event | None = None
) -> list[list[Any]]:
    """Return every strongly connected component, singletons included.

    Components come back in the order Tarjan's algorithm completes them,
    which is a reverse topological order of the condensed graph.

    Args:
        view: Anything exposing ``vertices()`` and ``adjacent(vertex)``.
        cancel: Optional event checked once per frame step.

    Raises:
        CycleSearchCancelled: If ``cancel`` becomes set during the search.
    """
    state = _TarjanState()
    # Resource graphs are usually disconnected, so every vertex is a root.
    for vertex in view.vertices():
        if vertex not in state.index:
            _tarjan(view, vertex, state, cancel)
    logger.debug(
        "Found %d strongly connected components over %d vertices",
        len(state.components),
        state.counter,
    )
    return state.components


def _is_cycle(view: AdjacencyView, component: list[Any]) -> bool:
    if len(component) > 1:
        return True
    vertex = component[0]
    return vertex in view.adjacent(vertex)


def _sort_key(component: list[Any]) -> list[str]:
    return [ref_of(v) for v in component]


def find_cycles(
    view: AdjacencyView, cancel: threading.Event | None = None
) -> list[list[Any]]:
    """Find every dependency cycle in a graph.

    A cycle is a strongly connected component with more than one vertex,
    or a single vertex with an edge to itself. The result is normalized
    (vertices sorted by display name within each cycle, then the cycles
    sorted) so that identical graphs always produce identical reports.

    Returns:
        List of cycles; empty if the graph is a DAG.

    Example:
        A → B → C → A, C → D gives ``[["A", "B", "C"]]``.
    """
    cycles = [
        sorted(component, key=ref_of)
        for component in strongly_connected_components(view, cancel)
        if _is_cycle(view, component)
    ]
    return sorted(cycles, key=_sort_key)
