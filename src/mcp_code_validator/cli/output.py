"""Rich console output helpers for the CLI."""

import json
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

console = Console()


def print_success(message: str) -> None:
    console.print(f"[green]✓[/green] {message}")


def print_error(message: str) -> None:
    console.print(f"[red]✗[/red] {message}")


def print_warning(message: str) -> None:
    console.print(f"[yellow]⚠[/yellow] {message}")


def print_info(message: str) -> None:
    console.print(f"[blue]ℹ[/blue] {message}")


def print_json(data: Any, title: str | None = None) -> None:
    """Print data as highlighted JSON."""
    syntax = Syntax(json.dumps(data, indent=2, default=str), "json", theme="monokai")
    if title:
        console.print(Panel(syntax, title=title))
    else:
        console.print(syntax)


def print_counts(title: str, counts: dict[str, int]) -> None:
    """Print a two-column table of counts."""
    table = Table(title=title, show_header=True)
    table.add_column("Type", style="cyan")
    table.add_column("Count", justify="right", style="green")
    for name, count in counts.items():
        table.add_row(name, str(count))
    console.print(table)
