"""Run the MCP stdio server."""

import asyncio

import typer
from loguru import logger

from ...core.exceptions import CodeValidatorError
from ...mcp.server import run_mcp_server
from ..output import print_error
from ._common import get_settings


def serve_command(ctx: typer.Context) -> None:
    """Start the MCP server on stdio (logs go to stderr)."""
    settings = get_settings(ctx)
    logger.info(f"Starting MCP server with graph at {settings.db_path}")
    try:
        asyncio.run(run_mcp_server(settings))
    except KeyboardInterrupt:
        logger.info("MCP server stopped")
    except CodeValidatorError as e:
        logger.error(f"MCP server failed: {e}")
        print_error(f"MCP server failed: {e}")
        raise typer.Exit(1)
