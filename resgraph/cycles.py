"""Cycle reporting: turn detected cycles into readable example paths.

Enumerating every path through a dense cycle is intractable, so each cycle
is explored breadth-first and only the first few closed paths are kept.
BFS finds the shortest loops first, which tend to be the ones an operator
can act on.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from collections.abc import Collection
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .config import GraphSettings
from .dot import write_cycles_to_graph
from .models import CycleReport, ref_of
from .scc import CycleSearchCancelled, find_cycles

if TYPE_CHECKING:
    from .graph import ResourceGraph

logger = logging.getLogger(__name__)

GRAPH_PATHS_PER_CYCLE = 10
GRAPH_HINT = (
    "Try the '--graph' option and opening the resulting '.dot' file "
    "in OmniGraffle or GraphViz"
)


def _path_key(path: list[Any]) -> list[str]:
    return [ref_of(v) for v in path]


def paths_in_cycle(
    graph: ResourceGraph, cycle: Collection[Any], max_paths: int = 1
) -> list[list[Any]]:
    """Find example closed paths through a cycle.

    Only edges with both ends inside the cycle are followed. The search
    starts at the cycle member with the smallest display name and stops
    once ``max_paths`` closed paths have been found.

    Args:
        graph: Graph the cycle was found in.
        cycle: Vertices of one strongly connected component.
        max_paths: Number of paths to collect; must be at least 1.

    Returns:
        Sorted list of paths, each ending at a vertex already on it,
        e.g. ``["A", "B", "C", "A"]``.

    Raises:
        ValueError: If ``max_paths`` is zero or negative.
    """
    if max_paths < 1:
        raise ValueError("negative or zero max_paths")
    if not cycle:
        return []

    members = set(cycle)
    adj = {v: [n for n in graph.adjacent(v) if n in members] for v in cycle}

    found: list[list[Any]] = []
    # frontier entries: (vertex, path leading up to it)
    frontier: deque[tuple[Any, list[Any]]] = deque([(min(cycle, key=ref_of), [])])
    while frontier:
        vertex, path = frontier.popleft()
        if vertex in path:
            found.append([*path, vertex])
            if len(found) >= max_paths:
                break
        else:
            for to in adj[vertex]:
                frontier.append((to, [*path, vertex]))

    return sorted(found, key=_path_key)


def format_path(path: list[Any]) -> str:
    return "(" + " => ".join(ref_of(v) for v in path) + ")"


def format_cycle_report(
    graph: ResourceGraph, cycles: list[list[Any]], graph_file: Path | None = None
) -> str:
    """Build the operator-facing message for a set of cycles."""
    examples = [paths_in_cycle(graph, cycle) for cycle in cycles]
    return _render_report(examples, graph_file)


def _render_report(examples: list[list[list[Any]]], graph_file: Path | None) -> str:
    count = len(examples)
    noun = "cycle" if count == 1 else "cycles"
    message = f"Found {count} dependency {noun}:\n"
    for paths in examples:
        message += "\n".join(format_path(p) for p in paths) + "\n"
    if graph_file is not None:
        message += f"Cycle graph written to {graph_file}."
    else:
        message += GRAPH_HINT
    return message


def report_cycles(
    graph: ResourceGraph,
    settings: GraphSettings | None = None,
    cycles: list[list[Any]] | None = None,
    log: bool = True,
) -> CycleReport:
    """Check a graph for cycles and report any that are found.

    When cycles exist, the message is logged at ERROR level and, if
    ``settings.graph`` is enabled, ``cycles.dot`` is written to
    ``settings.graphdir``.

    Args:
        graph: Graph to check.
        settings: Diagnostic options; defaults apply when omitted.
        cycles: Previously detected cycles, to skip running detection again.
        log: Log the message at ERROR level. Callers that show the message
             themselves turn this off.

    Returns:
        A ``CycleReport``; falsy when the graph is a DAG.
    """
    settings = settings or GraphSettings()
    if cycles is None:
        cycles = find_cycles(graph)
    if not cycles:
        return CycleReport()

    graph_file = None
    if settings.graph:
        paths = [
            p for c in cycles for p in paths_in_cycle(graph, c, GRAPH_PATHS_PER_CYCLE)
        ]
        graph_file = write_cycles_to_graph(paths, settings.graphdir)

    examples = [paths_in_cycle(graph, c) for c in cycles]
    message = _render_report(examples, graph_file)
    if log:
        logger.error(message)
    return CycleReport(
        cycles=cycles,
        paths=[format_path(p) for paths in examples for p in paths],
        graph_file=graph_file,
        message=message,
    )


def find_cycles_with_timeout(
    graph: ResourceGraph, timeout: float | None
) -> list[list[Any]]:
    """Run cycle detection on a worker thread with a time limit.

    On timeout the search is told to stop at its next step.

    Raises:
        CycleSearchCancelled: If the search does not finish in ``timeout``
            seconds.
    """
    if timeout is None:
        return find_cycles(graph)

    cancel = threading.Event()
    with ThreadPoolExecutor(max_workers=1) as pool:
        future = pool.submit(find_cycles, graph, cancel)
        try:
            return future.result(timeout=timeout)
        except FutureTimeoutError:
            cancel.set()
            raise CycleSearchCancelled(
                f"cycle search did not finish within {timeout} seconds"
            ) from None
