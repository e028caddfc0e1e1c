"""TOML reading and writing utilities.

Uses tomlkit for both the settings file and persisted graphs. Reading a
document keeps its formatting and comments, so settings files can be
round-tripped without noisy diffs. Persisted graphs use the same
representation, with ``.json`` files written through pydantic instead.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import tomlkit

from .graph import ResourceGraph
from .models import GraphPayload, SerializationFormat
from .serialize import from_data, to_data


def load_document(path: Path) -> tomlkit.TOMLDocument:
    """Read a settings file or persisted graph as a tomlkit document.

    Comments and key order survive, so a graph file edited by hand can be
    re-saved without reshuffling it.
    """
    return tomlkit.parse(path.read_text(encoding="utf-8"))


def save_document(path: Path, doc: tomlkit.TOMLDocument) -> None:
    """Write a graph document (see ``dump_payload``) as UTF-8 TOML."""
    path.write_text(tomlkit.dumps(doc), encoding="utf-8")


def _is_table(value: Any) -> bool:
    if isinstance(value, dict):
        return True
    if not isinstance(value, list) or not value:
        return False
    return all(isinstance(v, dict) for v in value)


def dump_payload(payload: GraphPayload) -> tomlkit.TOMLDocument:
    """Build a TOML document for a graph payload.

    Plain values go first: TOML attaches any key that follows a table
    header to that table.
    """
    data = payload.model_dump(mode="json", exclude_none=True)
    doc = tomlkit.document()
    for key, value in data.items():
        if not _is_table(value):
            doc[key] = value
    for key, value in data.items():
        if _is_table(value):
            doc[key] = value
    return doc


def save_graph(
    path: Path,
    graph: ResourceGraph,
    fmt: SerializationFormat = SerializationFormat.LEGACY,
) -> None:
    """Persist a graph to ``path`` (TOML, or JSON for a ``.json`` suffix)."""
    payload = to_data(graph, fmt)
    if path.suffix == ".json":
        text = payload.model_dump_json(indent=2, exclude_none=True)
        path.write_text(text, encoding="utf-8")
    else:
        save_document(path, dump_payload(payload))


def load_payload(path: Path) -> GraphPayload:
    """Read a persisted graph payload in either vertex layout.

    Raises:
        pydantic.ValidationError: If the file does not describe a graph.
    """
    if path.suffix == ".json":
        return GraphPayload.model_validate_json(path.read_text(encoding="utf-8"))
    return GraphPayload.model_validate(load_document(path).unwrap())


def load_graph(path: Path) -> ResourceGraph:
    """Load a graph written by ``save_graph`` (or by an older version)."""
    return from_data(load_payload(path))
