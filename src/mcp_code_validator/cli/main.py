"""Main CLI application for MCP Code Validator."""

import sys
from pathlib import Path

import typer
from loguru import logger

from .. import __version__
from ..config.settings import Settings
from ..core.exceptions import ConfigError
from .commands.contexts import contexts_app
from .commands.index import deps_command, index_command
from .commands.relationships import relationships_command
from .commands.serve import serve_command
from .commands.validate import check_command, quality_command, validate_command
from .output import console, print_error

app = typer.Typer(
    name="mcv",
    help="🧭 Branch-scoped code knowledge graph for validating generated code",
    add_completion=False,
    rich_markup_mode="rich",
    no_args_is_help=True,
)


def setup_logging(level: str) -> None:
    """Route all logging to a single stderr sink; stdout stays clean for MCP stdio."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
    )


@app.callback()
def main(
    ctx: typer.Context,
    db_path: Path | None = typer.Option(
        None,
        "--db-path",
        help="Graph database directory (overrides MCV_DB_PATH and the settings file)",
    ),
    log_level: str | None = typer.Option(
        None, "--log-level", help="Log level (DEBUG, INFO, WARNING, ERROR)"
    ),
    config_file: Path | None = typer.Option(
        None, "--config", help="YAML settings file", exists=True, dir_okay=False
    ),
) -> None:
    """Index, validate and compare code across project branches."""
    try:
        settings = Settings.load(config_file=config_file, db_path=db_path, log_level=log_level)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(1)

    setup_logging(settings.log_level)
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


app.command("index")(index_command)
app.command("deps")(deps_command)
app.command("validate")(validate_command)
app.command("check")(check_command)
app.command("quality")(quality_command)
app.command("relationships")(relationships_command)
app.command("serve")(serve_command)
app.add_typer(contexts_app, name="contexts")


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"mcp-code-validator {__version__}")


def cli_main() -> None:
    """Entry point for the ``mcv`` script."""
    app()


if __name__ == "__main__":
    cli_main()
