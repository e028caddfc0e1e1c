"""CLI entry point for resgraph."""

from __future__ import annotations

import logging
from pathlib import Path

import click
from pydantic import ValidationError

from resgraph.config import GraphSettings, load_settings
from resgraph.cycles import find_cycles_with_timeout, report_cycles
from resgraph.dot import to_dot
from resgraph.graph import ResourceGraph
from resgraph.models import SerializationFormat
from resgraph.scc import CycleSearchCancelled
from resgraph.toml import load_graph, save_graph

GRAPH_FILE = click.Path(exists=True, dir_okay=False, path_type=Path)


def _load(path: Path) -> ResourceGraph:
    try:
        return load_graph(path)
    except ValidationError as exc:
        raise click.ClickException(f"{path} is not a persisted graph:\n{exc}") from exc


@click.group()
@click.version_option(package_name="resgraph")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """Resource dependency graph tools: cycle checks, DOT output, conversion."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.argument("graph_file", type=GRAPH_FILE)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default="pyproject.toml",
    show_default=True,
    help="TOML file holding a [tool.resgraph] table.",
)
@click.option(
    "--graph/--no-graph", default=None, help="Write cycles.dot for any cycles found."
)
@click.option(
    "--graphdir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory for .dot files (overrides the config file).",
)
@click.option(
    "--timeout", type=float, default=None, help="Give up after this many seconds."
)
def cycles(
    graph_file: Path,
    config_path: Path,
    graph: bool | None,
    graphdir: Path | None,
    timeout: float | None,
) -> None:
    """Check a persisted graph for dependency cycles."""
    try:
        settings = load_settings(config_path)
        overrides = {"graph": graph, "graphdir": graphdir, "cycle_timeout": timeout}
        given = {k: v for k, v in overrides.items() if v is not None}
        settings = GraphSettings.model_validate(settings.model_dump() | given)
    except ValidationError as exc:
        raise click.ClickException(f"Invalid settings:\n{exc}") from exc

    resources = _load(graph_file)
    try:
        found = find_cycles_with_timeout(resources, settings.cycle_timeout)
    except CycleSearchCancelled as exc:
        raise click.ClickException(str(exc)) from exc

    report = report_cycles(resources, settings, cycles=found, log=False)
    if not report:
        click.echo("No dependency cycles found.")
        return
    raise click.ClickException(report.message)


@cli.command()
@click.argument("graph_file", type=GRAPH_FILE)
@click.option(
    "--name", default="ResourceGraph", show_default=True, help="Digraph name."
)
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write to this file instead of stdout.",
)
def dot(graph_file: Path, name: str, output: Path | None) -> None:
    """Render a persisted graph as GraphViz DOT."""
    content = to_dot(_load(graph_file), name)
    if output is None:
        click.echo(content, nl=False)
        return
    output.write_text(content, encoding="utf-8")
    click.echo(f"✓ Wrote {output}")


@cli.command()
@click.argument("source", type=GRAPH_FILE)
@click.argument("dest", type=click.Path(dir_okay=False, path_type=Path))
@click.option(
    "--format",
    "fmt",
    type=click.Choice([f.value for f in SerializationFormat]),
    default=SerializationFormat.LEGACY.value,
    show_default=True,
    help="Vertex layout of the written file.",
)
def convert(source: Path, dest: Path, fmt: str) -> None:
    """Re-save a persisted graph, optionally switching layout or TOML/JSON."""
    save_graph(dest, _load(source), SerializationFormat(fmt))
    click.echo(f"✓ Wrote {dest} ({fmt} format)")
