"""Shared helpers for CLI commands."""

from pathlib import Path
from typing import Any

import typer

from ...config.settings import Settings
from ...core.factory import ComponentFactory, GraphComponents


def get_settings(ctx: typer.Context) -> Settings:
    """Settings resolved by the root callback."""
    settings = (ctx.obj or {}).get("settings")
    if settings is None:
        settings = Settings.load()
    return settings


def open_components(ctx: typer.Context) -> GraphComponents:
    """Open the graph store for one command; the caller closes it."""
    return ComponentFactory.create_components(get_settings(ctx))


def resolve_scope(
    components: GraphComponents, project: str | None, branch: str | None
) -> tuple[str, str]:
    """Fill in the configured default project and branch."""
    settings = components.settings
    return project or settings.default_project, branch or settings.default_branch


def read_source(path: Path) -> str:
    with open(path, encoding="utf-8", errors="replace") as f:
        return f.read()


def project_option() -> Any:
    return typer.Option(
        None, "--project", "-p", help="Project name (defaults to the configured project)"
    )


def branch_option() -> Any:
    return typer.Option(
        None, "--branch", "-b", help="Branch name (defaults to the configured branch)"
    )
