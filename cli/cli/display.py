"""Rich output formatting for the SchemaSync CLI.

All functions write to a :class:`rich.console.Console` instance (typically
bound to *stderr*) so that machine-readable output on *stdout* is never
polluted with human-readable decoration.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

if TYPE_CHECKING:
    from sync_engine.models.diagnostics import GenerationWarning, SqlValidationWarning
    from sync_engine.models.schema_graph import SchemaGraph


# ---------------------------------------------------------------------------
# Constraint colour mapping
# ---------------------------------------------------------------------------

_CONSTRAINT_COLOURS: dict[str, str] = {
    "primary": "bold yellow",
    "unique": "cyan",
    "notnull": "dim",
    "index": "magenta",
    "foreign-key": "green",
}


def _coloured_constraint(tag: str) -> str:
    """Return a Rich markup string with the constraint tag colour-coded."""
    colour = _CONSTRAINT_COLOURS.get(tag, "white")
    return f"[{colour}]{tag}[/{colour}]"


# ---------------------------------------------------------------------------
# Graph summary
# ---------------------------------------------------------------------------


def display_graph_summary(console: Console, graph: SchemaGraph) -> None:
    """Render a parsed graph: one table per schema table, then relations.

    Parameters
    ----------
    console:
        Rich console to write to (typically stderr).
    graph:
        The schema graph to display.
    """
    header_lines = [
        f"[bold]Tables:[/bold]      {len(graph.tables)}",
        f"[bold]Relations:[/bold]   {len(graph.edges)}",
        f"[bold]Enum types:[/bold]  {len(graph.enum_types)}",
    ]
    console.print(Panel("\n".join(header_lines), title="Schema Graph", border_style="blue"))

    for schema_table in graph.tables:
        table = Table(title=schema_table.label, show_lines=False, pad_edge=True, expand=False)
        table.add_column("Column", style="bold")
        table.add_column("Type")
        table.add_column("Constraints")
        for column in schema_table.columns:
            type_label = f"enum {column.enum_name}" if column.enum_name else column.type.value
            table.add_row(
                column.title,
                type_label,
                ", ".join(_coloured_constraint(tag.value) for tag in column.constraints) or "-",
            )
        console.print(table)

    if graph.edges:
        relations = Table(title="Foreign Keys", show_lines=False, pad_edge=True, expand=False)
        relations.add_column("Constraint", style="bold")
        relations.add_column("From")
        relations.add_column("To")
        relations.add_column("On Delete", justify="center")
        relations.add_column("On Update", justify="center")
        for edge in graph.edges:
            relations.add_row(
                edge.constraint_name,
                f"{edge.source_table}.{edge.source_column}",
                f"{edge.target_table}.{edge.target_column}",
                edge.on_delete.value if edge.on_delete else "-",
                edge.on_update.value if edge.on_update else "-",
            )
        console.print(relations)


# ---------------------------------------------------------------------------
# Diagnostics
# ---------------------------------------------------------------------------


def display_generation_warnings(console: Console, warnings: list[GenerationWarning]) -> None:
    """Render generation warnings; prints nothing when there are none."""
    if not warnings:
        return
    table = Table(title="Generation Warnings", show_lines=False, pad_edge=True, expand=False)
    table.add_column("Kind", style="yellow")
    table.add_column("Subject", style="bold")
    table.add_column("Message")
    for warning in warnings:
        table.add_row(warning.kind.value, warning.subject or "-", warning.message)
    console.print(table)


def display_validation_warnings(console: Console, warnings: list[SqlValidationWarning]) -> None:
    """Render advisory validation findings."""
    if not warnings:
        console.print("[green]No structural problems found.[/green]")
        return
    table = Table(title="Validation Warnings", show_lines=False, pad_edge=True, expand=False)
    table.add_column("Line", style="dim", width=6, justify="right")
    table.add_column("Issue", style="yellow")
    table.add_column("Message")
    for warning in warnings:
        table.add_row(
            str(warning.line) if warning.line is not None else "-",
            warning.issue.value,
            warning.message,
        )
    console.print(table)
