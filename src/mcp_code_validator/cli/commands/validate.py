"""Validation commands: whole-file diff, snippet existence check and quality review."""

import asyncio
from pathlib import Path

import typer
from loguru import logger
from rich.markup import escape
from rich.table import Table

from ...config.defaults import language_for_extension
from ...core.exceptions import CodeValidatorError
from ...core.models import ValidationStatus
from ..output import console, print_error, print_json
from ._common import (
    branch_option,
    open_components,
    project_option,
    read_source,
    resolve_scope,
)

STATUS_STYLES = {
    ValidationStatus.MATCH: "green",
    ValidationStatus.FOUND: "green",
    ValidationStatus.MODIFIED: "yellow",
    ValidationStatus.NEW: "cyan",
    ValidationStatus.NOT_FOUND: "red",
}


def _results_table(title: str, results) -> Table:
    table = Table(title=title, show_header=True)
    table.add_column("Element", style="bold")
    table.add_column("Type")
    table.add_column("Status")
    for result in results:
        style = STATUS_STYLES.get(result.status, "white")
        table.add_row(
            result.name, result.element_type, f"[{style}]{result.status.value}[/{style}]"
        )
    return table


def validate_command(
    ctx: typer.Context,
    file_path: Path = typer.Argument(
        ..., help="File to diff against the index", exists=True, dir_okay=False, readable=True
    ),
    project: str | None = project_option(),
    branch: str | None = branch_option(),
    language: str | None = typer.Option(None, "--language", "-l", help="Language of the file"),
    json_output: bool = typer.Option(False, "--json", help="Output results as JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Include indexed bodies"),
) -> None:
    """Diff a file against its indexed version (MATCH / MODIFIED / NEW)."""

    async def _validate():
        components = open_components(ctx)
        try:
            project_name, branch_name = resolve_scope(components, project, branch)
            parsed = components.parser.parse(read_source(file_path), str(file_path))
            return await components.validator.validate_file(
                str(file_path),
                parsed,
                language or language_for_extension(str(file_path)),
                project_name,
                branch_name,
            )
        finally:
            components.close()

    try:
        report = asyncio.run(_validate())
    except CodeValidatorError as e:
        logger.error(f"Validation failed: {e}")
        print_error(f"Validation failed: {e}")
        raise typer.Exit(1)

    if json_output:
        print_json(report.to_dict(verbose), title="File Validation")
        return

    console.print(_results_table(f"{file_path} in {report.context}", report.results))
    console.print(
        f"[bold]{report.status}[/bold] "
        f"({report.matching} match / {report.modified} modified / {report.new} new)"
    )


def check_command(
    ctx: typer.Context,
    file_path: Path = typer.Argument(
        ..., help="Snippet file to check", exists=True, dir_okay=False, readable=True
    ),
    project: str | None = project_option(),
    branch: str | None = branch_option(),
    language: str | None = typer.Option(None, "--language", "-l", help="Language of the snippet"),
    json_output: bool = typer.Option(False, "--json", help="Output results as JSON"),
) -> None:
    """Check that the functions and classes of a snippet exist in the index.

    Exits with code 2 when any element is not found.
    """

    async def _check():
        components = open_components(ctx)
        try:
            project_name, branch_name = resolve_scope(components, project, branch)
            parsed = components.parser.parse(read_source(file_path), str(file_path))
            return await components.validator.validate_snippet(
                parsed,
                language or language_for_extension(str(file_path)),
                project_name,
                branch_name,
            )
        finally:
            components.close()

    try:
        report = asyncio.run(_check())
    except CodeValidatorError as e:
        logger.error(f"Snippet check failed: {e}")
        print_error(f"Snippet check failed: {e}")
        raise typer.Exit(1)

    if json_output:
        print_json(report.to_dict(), title="Snippet Validation")
    else:
        console.print(_results_table(f"{file_path} in {report.context}", report.results))
        console.print(f"{report.found} found, {report.not_found} not found")

    if report.not_found:
        raise typer.Exit(2)


SEVERITY_STYLES = {"HIGH": "red", "MEDIUM": "yellow", "LOW": "dim"}


def quality_command(
    ctx: typer.Context,
    file_path: Path = typer.Argument(
        ..., help="Source file to review", exists=True, dir_okay=False, readable=True
    ),
    project: str | None = project_option(),
    branch: str | None = branch_option(),
    language: str | None = typer.Option(None, "--language", "-l", help="Language of the file"),
    json_output: bool = typer.Option(False, "--json", help="Output results as JSON"),
) -> None:
    """Review a file's functions for naming drift and duplicated logic.

    Exits with code 2 when a medium or high severity issue is found.
    """

    async def _review():
        components = open_components(ctx)
        try:
            project_name, branch_name = resolve_scope(components, project, branch)
            parsed = components.parser.parse(read_source(file_path), str(file_path))
            return await components.quality.check(
                parsed,
                language or language_for_extension(str(file_path)),
                project_name,
                branch_name,
            )
        finally:
            components.close()

    try:
        report = asyncio.run(_review())
    except CodeValidatorError as e:
        logger.error(f"Quality check failed: {e}")
        print_error(f"Quality check failed: {e}")
        raise typer.Exit(1)

    if json_output:
        print_json(report.to_dict(), title="Code Quality")
    elif not report.issues:
        console.print(f"[green]No issues in {report.functions_checked} functions[/green]")
    else:
        table = Table(title=f"{file_path} in {report.context}", show_header=True)
        table.add_column("Element", style="bold")
        table.add_column("Issue")
        table.add_column("Severity")
        table.add_column("Details")
        for issue in report.issues:
            style = SEVERITY_STYLES[issue.severity.value]
            table.add_row(
                issue.element,
                issue.kind,
                f"[{style}]{issue.severity.value}[/{style}]",
                escape(issue.message),
            )
        console.print(table)

    if not report.passed:
        raise typer.Exit(2)
