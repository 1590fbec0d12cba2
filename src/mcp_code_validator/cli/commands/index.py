"""Indexing commands: source files and package.json dependencies."""

import asyncio
from pathlib import Path

import typer
from loguru import logger
from rich.table import Table

from ...config.defaults import SUPPORTED_EXTENSIONS
from ...core.exceptions import CodeValidatorError
from ..output import console, print_error, print_json, print_success, print_warning
from ._common import (
    branch_option,
    open_components,
    project_option,
    read_source,
    resolve_scope,
)


def _collect_files(paths: list[Path]) -> list[Path]:
    files: list[Path] = []
    for path in paths:
        if path.is_dir():
            files.extend(
                sorted(
                    p
                    for p in path.rglob("*")
                    if p.suffix in SUPPORTED_EXTENSIONS and "node_modules" not in p.parts
                )
            )
        else:
            files.append(path)
    return files


def index_command(
    ctx: typer.Context,
    paths: list[Path] = typer.Argument(
        ..., help="Source files or directories to index", exists=True, readable=True
    ),
    project: str | None = project_option(),
    branch: str | None = branch_option(),
    language: str | None = typer.Option(
        None, "--language", "-l", help="Language stamped on elements (derived from extension)"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output results as JSON"),
) -> None:
    """Index JavaScript/TypeScript files into a project branch."""

    async def _index() -> list[dict]:
        components = open_components(ctx)
        try:
            project_name, branch_name = resolve_scope(components, project, branch)
            results = []
            for file_path in _collect_files(paths):
                result = await components.indexer.index_file(
                    file_path=str(file_path),
                    content=read_source(file_path),
                    language=language,
                    project=project_name,
                    branch=branch_name,
                )
                results.append(result.to_dict())
            return results
        finally:
            components.close()

    try:
        results = asyncio.run(_index())
    except CodeValidatorError as e:
        logger.error(f"Indexing failed: {e}")
        print_error(f"Indexing failed: {e}")
        raise typer.Exit(1)

    if json_output:
        print_json(results, title="Index Results")
        return

    table = Table(title="Indexed Files", show_header=True)
    table.add_column("File", style="cyan")
    table.add_column("Elements", justify="right", style="green")
    table.add_column("Relationships", justify="right")
    table.add_column("Failures", justify="right", style="red")
    for result in results:
        table.add_row(
            result["file_path"],
            str(result["total_indexed"]),
            str(sum(result["relationships"].values())),
            str(len(result["failures"])),
        )
    console.print(table)

    failed = sum(len(r["failures"]) for r in results)
    if failed:
        print_warning(f"{failed} elements could not be indexed")
    else:
        print_success(f"Indexed {len(results)} files")


def deps_command(
    ctx: typer.Context,
    package_json: Path = typer.Argument(
        ..., help="Path to package.json", exists=True, dir_okay=False, readable=True
    ),
    project: str | None = project_option(),
    branch: str | None = branch_option(),
    json_output: bool = typer.Option(False, "--json", help="Output results as JSON"),
) -> None:
    """Index the known APIs of a project's npm dependencies."""

    async def _index():
        components = open_components(ctx)
        try:
            project_name, branch_name = resolve_scope(components, project, branch)
            return await components.indexer.index_dependencies(
                read_source(package_json),
                project=project_name,
                branch=branch_name,
                project_path=str(package_json.parent.resolve()),
            )
        finally:
            components.close()

    try:
        result = asyncio.run(_index())
    except CodeValidatorError as e:
        logger.error(f"Dependency indexing failed: {e}")
        print_error(f"Dependency indexing failed: {e}")
        raise typer.Exit(1)

    if json_output:
        print_json(result.to_dict(), title="Dependency Index")
        return

    print_success(
        f"Indexed {result.indexed_libraries}/{result.total_dependencies} libraries "
        f"({result.indexed_apis} APIs) into {result.context}"
    )
    if result.unsupported:
        console.print(f"[dim]Unsupported: {', '.join(result.unsupported)}[/dim]")
