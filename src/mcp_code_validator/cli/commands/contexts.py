"""Context and branch administration commands."""

import asyncio

import typer
from loguru import logger
from rich.table import Table

from ...core.exceptions import CodeValidatorError
from ..output import console, print_error, print_info, print_json, print_success
from ._common import open_components

contexts_app = typer.Typer(help="🌿 Manage project/branch contexts")


def _run(ctx: typer.Context, action: str, operation):
    """Run one admin coroutine against a freshly opened store."""

    async def _execute():
        components = open_components(ctx)
        try:
            return await operation(components)
        finally:
            components.close()

    try:
        return asyncio.run(_execute())
    except CodeValidatorError as e:
        logger.error(f"Failed to {action} context: {e}")
        print_error(f"Failed to {action} context: {e}")
        raise typer.Exit(1)


def _summary_table(title: str, summaries) -> Table:
    table = Table(title=title, show_header=True)
    table.add_column("Project", style="cyan")
    table.add_column("Branch", style="magenta")
    table.add_column("Files", justify="right")
    table.add_column("Functions", justify="right")
    table.add_column("Classes", justify="right")
    table.add_column("Components", justify="right")
    table.add_column("Nodes", justify="right", style="green")
    for s in summaries:
        table.add_row(
            s.project,
            s.branch,
            str(s.files),
            str(s.functions),
            str(s.classes),
            str(s.components),
            str(s.nodes),
        )
    return table


@contexts_app.command("list")
def list_contexts(
    ctx: typer.Context,
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """List every context in the graph."""
    contexts = _run(ctx, "list", lambda c: c.admin.list_contexts())

    if json_output:
        print_json([s.to_dict() for s in contexts], title="Contexts")
    elif not contexts:
        print_info("No contexts found in the database")
    else:
        console.print(_summary_table("Contexts", contexts))


@contexts_app.command("branches")
def list_branches(
    ctx: typer.Context,
    project: str = typer.Argument(..., help="Project name"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """List the branches of a project."""
    branches = _run(ctx, "list-branches", lambda c: c.admin.list_branches(project))

    if json_output:
        print_json([s.to_dict() for s in branches], title=f"Branches of {project}")
    elif not branches:
        print_info(f"No branches found for project '{project}'")
    else:
        console.print(_summary_table(f"Branches of {project}", branches))


@contexts_app.command("create")
def create_context(
    ctx: typer.Context,
    project: str = typer.Argument(..., help="Project name"),
    branch: str = typer.Argument(..., help="Branch name"),
) -> None:
    """Check that a context is ready for indexing."""
    existing = _run(ctx, "create", lambda c: c.admin.create(project, branch))

    if existing:
        print_info(f"Context '{project}:{branch}' already exists with {existing} nodes")
    else:
        print_success(f"Context '{project}:{branch}' is ready; index files to populate it")


@contexts_app.command("delete")
def delete_context(
    ctx: typer.Context,
    project: str = typer.Argument(..., help="Project name"),
    branch: str = typer.Argument(..., help="Branch name"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete a context and everything indexed in it."""
    if not yes:
        typer.confirm(f"Delete every node of '{project}:{branch}'?", abort=True)

    deleted = _run(ctx, "delete", lambda c: c.admin.delete(project, branch))
    print_success(f"Deleted context '{project}:{branch}' ({deleted} nodes)")


@contexts_app.command("clear")
def clear_context(
    ctx: typer.Context,
    project: str = typer.Argument(..., help="Project name"),
    branch: str = typer.Argument(..., help="Branch name"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Remove every node of a context."""
    if not yes:
        typer.confirm(f"Clear every node of '{project}:{branch}'?", abort=True)

    cleared = _run(ctx, "clear", lambda c: c.admin.clear(project, branch))
    print_success(f"Cleared {cleared} nodes from '{project}:{branch}'")


@contexts_app.command("compare")
def compare_branches(
    ctx: typer.Context,
    project: str = typer.Argument(..., help="Project name"),
    source_branch: str = typer.Argument(..., help="Source branch"),
    target_branch: str = typer.Argument(..., help="Target branch"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Compare the functions and classes of two branches."""
    comparison = _run(
        ctx,
        "compare-branches",
        lambda c: c.comparator.compare(project, source_branch, target_branch),
    )

    if json_output:
        print_json(comparison.to_dict(), title="Branch Comparison")
        return

    console.print(f"[bold]Branch comparison: {source_branch} vs {target_branch}[/bold]")
    console.print(f"  {comparison.source_count} elements in {source_branch}")
    console.print(f"  {comparison.target_count} elements in {target_branch}")
    console.print(f"  {len(comparison.in_both)} common")

    for title, style, elements in (
        (f"Only in {source_branch}", "red", comparison.only_in_source),
        (f"Only in {target_branch}", "blue", comparison.only_in_target),
    ):
        if elements:
            console.print(f"\n[{style}]{title}:[/{style}]")
            for element in elements:
                console.print(f"  • {element.kind}: {element.name}")
