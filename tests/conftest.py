"""Shared test fixtures."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import pytest

from resgraph.graph import ResourceGraph


@dataclass(frozen=True, order=True)
class Resource:
    """Minimal stand-in for a managed resource: a type and a title."""

    type: str
    title: str

    @property
    def ref(self) -> str:
        return f"{self.type.capitalize()}[{self.title}]"


@pytest.fixture
def resource() -> type[Resource]:
    return Resource


@pytest.fixture
def chain_graph() -> ResourceGraph:
    """A → B → C."""
    graph = ResourceGraph()
    graph.add_relationship("A", "B")
    graph.add_relationship("B", "C")
    return graph


@pytest.fixture
def cycle_graph() -> ResourceGraph:
    """A → B → C → A, with C → D hanging off the cycle."""
    graph = ResourceGraph()
    graph.add_relationship("A", "B")
    graph.add_relationship("B", "C")
    graph.add_relationship("C", "A")
    graph.add_relationship("C", "D")
    return graph


@pytest.fixture
def notify_graph() -> ResourceGraph:
    """notify { foo: require => Notify[bar] } inside class main."""
    graph = ResourceGraph()
    graph.add_relationship("Notify[bar]", "Notify[foo]")
    graph.add_relationship("Notify[foo]", "Class[main]")
    return graph


@pytest.fixture
def tmp_pyproject(tmp_path: Path) -> Path:
    """Create a temporary pyproject.toml with a [tool.resgraph] table."""
    content = """\
[project]
name = "site-catalog"
version = "1.0.0"

[tool.resgraph]
graph = true
graphdir = "out/graphs"
serialization_format = "new"
cycle_timeout = 5
"""
    pyproject = tmp_path / "pyproject.toml"
    pyproject.write_text(content)
    return pyproject
