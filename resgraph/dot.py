"""DOT (GraphViz) output for resource graphs and their cycles.

The markup is written directly rather than through a graph library; the
output only needs to be readable by ``dot`` and similar tools. DOT files
are UTF-8 by default, so that is what gets written.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .config import GraphSettings
from .models import ref_of

if TYPE_CHECKING:
    from .graph import ResourceGraph

logger = logging.getLogger(__name__)


def _quote(vertex: Any) -> str:
    name = ref_of(vertex).replace('"', '\\"')
    return f'"{name}"'


def to_dot(
    graph: ResourceGraph, name: str = "ResourceGraph", fontsize: str = "8"
) -> str:
    """Render a graph as a DOT digraph.

    Emits one node statement per vertex and one edge statement per edge.
    """
    lines = [f"digraph {name} {{"]
    for vertex in graph.vertices():
        node = _quote(vertex)
        lines.append(f"    {node} [fontsize = {fontsize}, label = {node}];")
    for edge in graph.edges():
        source, target = _quote(edge.source), _quote(edge.target)
        lines.append(f"    {source} -> {target} [fontsize = {fontsize}];")
    lines.append("}")
    return "\n".join(lines) + "\n"


def cycles_to_dot(paths: list[list[Any]]) -> str:
    """Render example cycle paths as ``"a" -> "b" -> "a"`` chains."""
    lines = ["digraph Resource_Cycles {", '  label = "Resource Cycles"']
    for path in paths:
        lines.append(" -> ".join(_quote(v) for v in path))
    lines.append("}")
    return "\n".join(lines) + "\n"


def _write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    logger.info("Wrote %s", path)
    return path


def write_graph(
    graph: ResourceGraph, name: str, settings: GraphSettings
) -> Path | None:
    """Write ``<graphdir>/<name>.dot`` if graph output is enabled.

    Returns:
        Path of the written file, or None when ``settings.graph`` is off.
    """
    if not settings.graph:
        return None
    return _write(settings.graphdir / f"{name}.dot", to_dot(graph, name.capitalize()))


def write_cycles_to_graph(paths: list[list[Any]], graphdir: Path) -> Path:
    """Write ``<graphdir>/cycles.dot`` and return its path."""
    return _write(graphdir / "cycles.dot", cycles_to_dot(paths))
