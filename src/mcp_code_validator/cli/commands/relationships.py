"""Relationship analysis command."""

import asyncio

import typer
from loguru import logger
from rich.markup import escape

from ...config.defaults import ANALYSIS_TYPES
from ...core.exceptions import CodeValidatorError
from ..output import console, print_counts, print_error, print_json
from ._common import branch_option, open_components, project_option, resolve_scope

# Edges shown before truncating the listing
MAX_LISTED = 20


def relationships_command(
    ctx: typer.Context,
    project: str | None = project_option(),
    branch: str | None = branch_option(),
    analysis_type: str = typer.Option(
        "all", "--type", "-t", help=f"One of: {', '.join(ANALYSIS_TYPES)}"
    ),
    element: str | None = typer.Option(
        None, "--element", "-e", help="Only relationships touching this element"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Analyze the relationships of a project branch."""

    async def _analyze():
        components = open_components(ctx)
        try:
            project_name, branch_name = resolve_scope(components, project, branch)
            return await components.analyzer.analyze(
                project_name, branch_name, analysis_type=analysis_type, element_name=element
            )
        finally:
            components.close()

    try:
        report = asyncio.run(_analyze())
    except CodeValidatorError as e:
        logger.error(f"Relationship analysis failed: {e}")
        print_error(f"Relationship analysis failed: {e}")
        raise typer.Exit(1)

    if json_output:
        print_json(report.to_dict(), title="Relationship Analysis")
        return

    console.print(f"[bold]🔗 Relationship analysis for {report.context}[/bold]\n")
    print_counts("Nodes", report.node_counts)
    print_counts("Relationships", report.counts_by_type)

    if not report.relationships:
        console.print("[dim]No relationships found[/dim]")
    for rel in report.relationships[:MAX_LISTED]:
        details = f" ({', '.join(rel.details)})" if rel.details else ""
        console.print(escape(f"  {rel.source} --[{rel.rel_type}]--> {rel.target}{details}"))
    if len(report.relationships) > MAX_LISTED:
        console.print(f"  ... and {len(report.relationships) - MAX_LISTED} more")

    if report.orphans:
        console.print("\n[yellow]Elements without relationships:[/yellow]")
        for label, name in report.orphans:
            console.print(f"  {label}: {name}")
