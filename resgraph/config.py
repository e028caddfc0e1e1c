"""Settings for graph diagnostics and persistence.

Settings live in the ``[tool.resgraph]`` table of a pyproject-style TOML
file, e.g.::

    [tool.resgraph]
    graph = true
    graphdir = "build/graphs"
    serialization_format = "new"
    cycle_timeout = 30
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from .models import SerializationFormat
from .toml import load_document


class GraphSettings(BaseModel):
    """Diagnostic and persistence options.

    Attributes:
        graph: Write ``.dot`` files for graphs and detected cycles.
        graphdir: Directory the ``.dot`` files are written to.
        serialization_format: Vertex layout used when saving graphs.
        cycle_timeout: Seconds a cycle search may run before it is
                       cancelled. ``None`` means no limit.
    """

    graph: bool = False
    graphdir: Path = Path("graphs")
    serialization_format: SerializationFormat = SerializationFormat.LEGACY
    cycle_timeout: float | None = Field(default=None, gt=0)


def load_settings(path: Path) -> GraphSettings:
    """Read ``[tool.resgraph]`` from a TOML file.

    A missing file or table yields the defaults.

    Raises:
        pydantic.ValidationError: If the table holds invalid values.
    """
    if not path.exists():
        return GraphSettings()
    doc = load_document(path)
    table = doc.get("tool", {}).get("resgraph", {})
    return GraphSettings.model_validate(dict(table))
