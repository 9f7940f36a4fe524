# src/flowlanes/cli.py
"""flowlanes Command Line Interface.

Entry point for the flowlanes CLI tool.
"""

from __future__ import annotations

from pathlib import Path

import typer
import yaml
from dynaconf.vendor.ruamel.yaml.parser import ParserError as YamlParserError
from dynaconf.vendor.ruamel.yaml.scanner import ScannerError as YamlScannerError
from pydantic import ValidationError

from flowlanes import __version__
from flowlanes.cli_formatters import (
    build_branch_tree,
    format_branch_json,
    format_layers_json,
    format_layers_text,
)
from flowlanes.contracts.branch import nesting_depth
from flowlanes.contracts.enums import FailureCause, OutputFormat
from flowlanes.core.config import FlowlanesSettings, load_graph, load_settings
from flowlanes.core.dag import FlowGraph, GraphNode, GraphValidationError, decompose

__all__ = [
    "app",
]

app = typer.Typer(
    name="flowlanes",
    help="flowlanes: nested flow-diagram layout for single-source DAGs.",
    no_args_is_help=True,
)

_GRAPH_ERROR_HINTS: dict[FailureCause, str] = {
    FailureCause.MALFORMED_GRAPH: "Check that node ids are unique and every nextIds entry names a node.",
    FailureCause.CYCLE_DETECTED: "Remove the edge that closes the cycle; flow graphs must be acyclic.",
    FailureCause.INVALID_SOURCE_COUNT: "Exactly one node may have no incoming edges.",
    FailureCause.UNRESOLVED_DIVERGENCE: "Every divergence must reconverge on a single join node before the graph ends.",
    FailureCause.AMBIGUOUS_RECONVERGENCE: "Two joins close after the same divergence; nest one diamond inside the other.",
}


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"flowlanes version {__version__}")
        raise typer.Exit()


def _load_dotenv(env_file: Path | None = None) -> bool:
    """Load environment variables from .env file.

    Args:
        env_file: Explicit path to .env file. If None, searches for .env
                 in current directory and parent directories.

    Returns:
        True if .env was found and loaded, False otherwise.

    Raises:
        typer.Exit: If explicit env_file path doesn't exist.
    """
    from dotenv import load_dotenv

    if env_file is not None:
        if not env_file.exists():
            typer.secho(
                f"Error: .env file not found: {env_file}",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(1)
        return load_dotenv(env_file, override=False)

    return load_dotenv(override=False)  # Don't override existing env vars


def _format_validation_error(
    title: str,
    message: str,
    hint: str | None = None,
    details: list[str] | None = None,
) -> None:
    """Display a formatted validation error with optional hint and details."""
    from rich.console import Console
    from rich.panel import Panel
    from rich.text import Text

    console = Console(stderr=True)

    content = Text()
    content.append(message, style="white")

    if details:
        content.append("\n\n")
        for detail in details:
            content.append(f"  • {detail}\n", style="dim")

    if hint:
        content.append("\n")
        content.append("Hint: ", style="yellow bold")
        content.append(hint, style="yellow")

    panel = Panel(
        content,
        title=f"[red bold]❌ {title}[/]",
        border_style="red",
        padding=(0, 1),
    )
    console.print(panel)


def _validation_details(error: ValidationError) -> list[str]:
    details = []
    for item in error.errors():
        loc = ".".join(str(x) for x in item["loc"])
        details.append(f"{loc}: {item['msg']}" if loc else item["msg"])
    return details


@app.callback()
def main(
    ctx: typer.Context,
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    settings: Path | None = typer.Option(
        None,
        "--settings",
        "-s",
        help="Path to settings YAML file (FLOWLANES_* env vars override it).",
    ),
    no_dotenv: bool = typer.Option(
        False,
        "--no-dotenv",
        help="Skip loading .env file.",
    ),
    env_file: Path | None = typer.Option(
        None,
        "--env-file",
        help="Path to .env file (skips automatic search).",
        exists=False,  # We handle existence check ourselves for better error message
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose/debug logging.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output structured JSON logs (for machine processing).",
    ),
) -> None:
    """flowlanes: nested flow-diagram layout for single-source DAGs."""
    from flowlanes.core.logging import configure_logging

    # .env first so FLOWLANES_* values from it reach the settings loader
    if not no_dotenv:
        _load_dotenv(env_file=env_file)
    elif env_file is not None:
        typer.secho(
            "Warning: --env-file ignored because --no-dotenv is set.",
            fg=typer.colors.YELLOW,
            err=True,
        )

    try:
        config = load_settings(settings.expanduser() if settings is not None else None)
    except (YamlParserError, YamlScannerError) as e:
        _format_validation_error(
            title="YAML Syntax Error",
            message=f"Failed to parse settings file {settings}",
            details=[str(e.problem)] if hasattr(e, "problem") else None,
            hint="Check for unclosed brackets, incorrect indentation, or invalid characters.",
        )
        raise typer.Exit(1) from None
    except FileNotFoundError:
        _format_validation_error(
            title="File Not Found",
            message=f"Settings file does not exist: {settings}",
            hint="Check the path and ensure the file exists.",
        )
        raise typer.Exit(1) from None
    except ValidationError as e:
        _format_validation_error(
            title="Settings Validation Failed",
            message="Invalid flowlanes settings",
            details=_validation_details(e),
            hint="Check field names, types, and allowed values.",
        )
        raise typer.Exit(1) from None

    configure_logging(
        json_output=json_logs or config.json_logs,
        level="DEBUG" if verbose else config.log_level,
    )
    ctx.obj = config


def _settings(ctx: typer.Context) -> FlowlanesSettings:
    # Callback always runs first; the fallback covers direct command invocation
    if isinstance(ctx.obj, FlowlanesSettings):
        return ctx.obj
    return FlowlanesSettings()


def _load_nodes(graph_path: Path) -> list[GraphNode]:
    """Load a graph document, turning every failure into an error panel and exit 1."""
    try:
        return load_graph(graph_path).to_nodes()
    except FileNotFoundError:
        _format_validation_error(
            title="File Not Found",
            message=f"Graph file does not exist: {graph_path}",
            hint="Check the path and ensure the file exists.",
        )
        raise typer.Exit(1) from None
    except (OSError, UnicodeDecodeError) as e:
        _format_validation_error(
            title="Cannot Read Graph File",
            message=f"Failed to read {graph_path}",
            details=[str(e)],
            hint="Graph files are UTF-8 text (YAML or JSON), not directories or binary files.",
        )
        raise typer.Exit(1) from None
    except yaml.YAMLError as e:
        _format_validation_error(
            title="YAML Syntax Error",
            message=f"Failed to parse {graph_path.name}",
            details=[str(e)],
            hint="Graph files are YAML or JSON with a top-level 'nodes' list.",
        )
        raise typer.Exit(1) from None
    except ValidationError as e:
        _format_validation_error(
            title="Graph Document Invalid",
            message=f"Invalid graph document {graph_path.name}",
            details=_validation_details(e),
            hint="Each node needs an 'id' and an optional 'nextIds' list.",
        )
        raise typer.Exit(1) from None


def _report_graph_error(error: GraphValidationError) -> None:
    _format_validation_error(
        title=f"Graph Error ({error.cause})",
        message=str(error),
        details=[f"node: {node_id}" for node_id in error.node_ids] or None,
        hint=_GRAPH_ERROR_HINTS[error.cause],
    )


@app.command()
def validate(
    graph: Path = typer.Argument(..., help="Path to graph document (YAML or JSON)."),
) -> None:
    """Check that a graph decomposes cleanly, without printing the structure."""
    nodes = _load_nodes(graph.expanduser())

    try:
        flow_graph = FlowGraph.from_nodes(nodes)
        branch = decompose(nodes)
        layers = flow_graph.topological_layers()
    except GraphValidationError as e:
        _report_graph_error(e)
        raise typer.Exit(1) from None

    typer.echo("✅ Graph valid!")
    typer.echo(f"  Graph: {flow_graph.node_count} nodes, {flow_graph.edge_count} edges")
    typer.echo(f"  Source: {flow_graph.get_sources()[0]}")
    typer.echo(f"  Sinks: {', '.join(flow_graph.get_sinks())}")
    typer.echo(f"  Layers: {len(layers)}")
    typer.echo(f"  Nesting depth: {nesting_depth(branch)}")


@app.command(name="decompose")
def decompose_command(
    ctx: typer.Context,
    graph: Path = typer.Argument(..., help="Path to graph document (YAML or JSON)."),
    output_format: OutputFormat | None = typer.Option(
        None,
        "--format",
        "-f",
        help="Output format (defaults to the output_format setting).",
    ),
) -> None:
    """Print the nested branch structure of a graph."""
    config = _settings(ctx)
    nodes = _load_nodes(graph.expanduser())

    try:
        branch = decompose(nodes)
    except GraphValidationError as e:
        _report_graph_error(e)
        raise typer.Exit(1) from None

    if (output_format or config.output_format) == OutputFormat.TREE:
        from rich.console import Console

        Console().print(build_branch_tree(branch, label=graph.stem))
    else:
        typer.echo(format_branch_json(branch, indent=config.json_indent))


@app.command()
def layers(
    ctx: typer.Context,
    graph: Path = typer.Argument(..., help="Path to graph document (YAML or JSON)."),
    output_format: OutputFormat | None = typer.Option(
        None,
        "--format",
        "-f",
        help="Output format: json, or tree for one line per layer.",
    ),
) -> None:
    """Print the topological layers of a graph."""
    config = _settings(ctx)
    nodes = _load_nodes(graph.expanduser())

    try:
        result = FlowGraph.from_nodes(nodes).topological_layers()
    except GraphValidationError as e:
        _report_graph_error(e)
        raise typer.Exit(1) from None

    if (output_format or config.output_format) == OutputFormat.TREE:
        for line in format_layers_text(result):
            typer.echo(line)
    else:
        typer.echo(format_layers_json(result, indent=config.json_indent))


if __name__ == "__main__":
    app()
