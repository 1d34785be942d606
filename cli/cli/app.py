"""SchemaSync CLI application -- Typer-based developer interface.

Provides commands to render a schema graph as DDL, parse DDL back into a
graph, and repair or validate hand-edited DDL.  Human-readable output goes
to *stderr* via Rich; machine-readable artefacts (DDL, graph JSON) go to
*stdout* or to files on disk so that pipelines can compose cleanly.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console

from cli.display import (
    display_generation_warnings,
    display_graph_summary,
    display_validation_warnings,
)
from sync_engine.config import load_settings
from sync_engine.dialects.type_map import Dialect
from sync_engine.errors import SqlParseError
from sync_engine.generator.ddl_generator import download_filename, generate_for_graph
from sync_engine.logging_config import configure_logging
from sync_engine.models.schema_graph import SchemaGraph
from sync_engine.parser.ddl_parser import parse as parse_ddl
from sync_engine.repair.rules import repair as repair_ddl
from sync_engine.repair.validation import validate_sql_syntax

# ---------------------------------------------------------------------------
# App & global state
# ---------------------------------------------------------------------------

app = typer.Typer(
    name="schemasync",
    help="SchemaSync - keep a schema graph and its DDL in sync",
    no_args_is_help=True,
)
console = Console(stderr=True)

# Mutable global options populated by the Typer callback.
_json_output: bool = False


# ---------------------------------------------------------------------------
# Callback -- global options
# ---------------------------------------------------------------------------


@app.callback()
def _global_options(
    json_mode: bool = typer.Option(
        False,
        "--json/--no-json",
        help="Emit structured JSON to stdout instead of human-readable output.",
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        help="Log level for engine diagnostics (DEBUG, INFO, WARNING, ...).",
        envvar="SCHEMASYNC_LOG_LEVEL",
    ),
) -> None:
    """Global options applied to every command."""
    global _json_output  # noqa: PLW0603
    _json_output = json_mode
    overrides = {"log_level": log_level} if log_level else {}
    try:
        settings = load_settings(**overrides)
    except ValidationError as exc:
        console.print(f"[red]Invalid configuration: {exc}[/red]")
        raise typer.Exit(code=3) from exc
    configure_logging(settings)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        console.print(f"[red]Cannot read {path}: {exc}[/red]")
        raise typer.Exit(code=3) from exc


def _write_output(content: str, output: Path | None) -> None:
    """Write *content* to *output*, or to stdout when no path is given."""
    if output is None:
        sys.stdout.write(content)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(content, encoding="utf-8")
    console.print(f"Written to [bold]{output}[/bold]")


# ---------------------------------------------------------------------------
# generate
# ---------------------------------------------------------------------------


@app.command()
def generate(
    graph_path: Path = typer.Argument(
        ...,
        help="Path to a schema graph JSON file.",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
    dialect: Dialect | None = typer.Option(
        None,
        "--dialect",
        "-d",
        help="Target dialect. Defaults to SCHEMASYNC_DEFAULT_DIALECT.",
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the DDL to this file instead of stdout.",
    ),
    download: bool = typer.Option(
        False,
        "--download",
        help="Write the DDL to schema_<dialect>_<date>.sql in the current directory.",
    ),
    case_sensitive: bool | None = typer.Option(
        None,
        "--case-sensitive/--no-case-sensitive",
        help="Quote every identifier. Defaults to the graph's own setting.",
    ),
    inline: bool | None = typer.Option(
        None,
        "--inline/--no-inline",
        help="Emit foreign keys inside CREATE TABLE. Defaults to the graph's own setting.",
    ),
) -> None:
    """Render a schema graph as DDL."""
    if output is not None and download:
        console.print("[red]--output and --download cannot be combined.[/red]")
        raise typer.Exit(code=3)

    try:
        graph = SchemaGraph.model_validate_json(_read_text(graph_path))
    except ValidationError as exc:
        console.print(f"[red]Invalid schema graph: {exc}[/red]")
        raise typer.Exit(code=3) from exc

    overrides: dict[str, bool] = {}
    if case_sensitive is not None:
        overrides["case_sensitive_identifiers"] = case_sensitive
    if inline is not None:
        overrides["use_inline_constraints"] = inline
    if overrides:
        graph = graph.model_copy(update={"settings": graph.settings.model_copy(update=overrides)})

    target = dialect or load_settings().default_dialect
    result = generate_for_graph(target, graph)

    if download:
        output = Path(download_filename(target))

    if _json_output and output is None:
        sys.stdout.write(result.model_dump_json(indent=2) + "\n")
        return

    _write_output(result.sql, output)
    if not _json_output:
        display_generation_warnings(console, result.warnings)


# ---------------------------------------------------------------------------
# parse
# ---------------------------------------------------------------------------


@app.command()
def parse(
    sql_path: Path = typer.Argument(
        ...,
        help="Path to a DDL file.",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
    no_repair: bool = typer.Option(
        False,
        "--no-repair",
        help="Parse the text exactly as written, without heuristic repair.",
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the graph JSON to this file instead of stdout.",
    ),
) -> None:
    """Parse DDL into schema graph JSON."""
    sql = _read_text(sql_path)
    if not sql.strip():
        console.print("[red]SQL cannot be empty[/red]")
        raise typer.Exit(code=3)
    if not no_repair:
        sql = repair_ddl(sql)

    try:
        graph = parse_ddl(sql)
    except SqlParseError as exc:
        if _json_output:
            sys.stdout.write(json.dumps({"error": str(exc), "line": exc.line}) + "\n")
        else:
            console.print(f"[red]Failed to parse SQL: {exc}[/red]")
        raise typer.Exit(code=3) from exc

    _write_output(graph.model_dump_json(indent=2, by_alias=True) + "\n", output)
    if not _json_output:
        display_graph_summary(console, graph)


# ---------------------------------------------------------------------------
# repair
# ---------------------------------------------------------------------------


@app.command()
def repair(
    sql_path: Path = typer.Argument(
        ...,
        help="Path to a DDL file.",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the repaired DDL to this file instead of stdout.",
    ),
) -> None:
    """Apply the heuristic fixes for common hand-editing mistakes."""
    original = _read_text(sql_path)
    repaired = repair_ddl(original)
    _write_output(repaired, output)
    if not _json_output and repaired != original:
        console.print("[dim]Repairs applied.[/dim]")


# ---------------------------------------------------------------------------
# validate
# ---------------------------------------------------------------------------


@app.command()
def validate(
    sql_path: Path = typer.Argument(
        ...,
        help="Path to a DDL file.",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
) -> None:
    """Report structural problems in DDL.  Advisory only: always exits 0."""
    warnings = validate_sql_syntax(_read_text(sql_path))
    if _json_output:
        sys.stdout.write(json.dumps([w.model_dump(mode="json") for w in warnings], indent=2) + "\n")
        return
    display_validation_warnings(console, warnings)
