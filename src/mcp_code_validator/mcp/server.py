"""MCP server implementation for MCP Code Validator."""

import asyncio
import sys
from typing import Any

from loguru import logger
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import CallToolResult, TextContent, Tool

from ..config.settings import Settings
from ..core.factory import ComponentFactory, GraphComponents
from .graph_handlers import GraphHandlers
from .tool_schemas import get_tool_schemas


class MCPCodeValidatorServer:
    """MCP server exposing the code graph tools."""

    def __init__(self, settings: Settings | None = None):
        """Initialize the MCP server.

        Args:
            settings: Runtime settings. If None, loaded from file and environment.
        """
        self.settings = settings or Settings.load()
        self.components: GraphComponents | None = None
        self.handlers: GraphHandlers | None = None
        self._initialized = False

    async def initialize(self) -> None:
        """Open the graph store and wire the handlers."""
        if self._initialized:
            return

        try:
            self.components = ComponentFactory.create_components(self.settings)
            self.handlers = GraphHandlers(self.components)
            self._initialized = True
            logger.info(f"MCP server initialized with graph at {self.settings.db_path}")
        except Exception as e:
            logger.error(f"Failed to initialize MCP server: {e}")
            raise

    async def cleanup(self) -> None:
        """Close the graph store."""
        if self.components is not None:
            self.components.close()
            self.components = None
        self.handlers = None
        self._initialized = False

    def get_tools(self) -> list[Tool]:
        """Get available MCP tools."""
        return get_tool_schemas()

    async def call_tool(self, name: str, arguments: dict[str, Any] | None) -> CallToolResult:
        """Dispatch a tool call to its handler."""
        if not self._initialized:
            await self.initialize()

        handlers = {
            "index_file": self.handlers.handle_index_file,
            "index_functions": self.handlers.handle_index_functions,
            "validate_code": self.handlers.handle_validate_code,
            "validate_file": self.handlers.handle_validate_file,
            "check_code_quality": self.handlers.handle_check_code_quality,
            "manage_contexts": self.handlers.handle_manage_contexts,
            "analyze_relationships": self.handlers.handle_analyze_relationships,
            "index_dependencies": self.handlers.handle_index_dependencies,
        }

        handler = handlers.get(name)
        if handler is None:
            return CallToolResult(
                content=[TextContent(type="text", text=f"Unknown tool: {name}")],
                isError=True,
            )

        try:
            return await handler(arguments or {})
        except Exception as e:
            logger.error(f"Tool call {name} failed: {e}")
            return CallToolResult(
                content=[TextContent(type="text", text=f"Tool execution failed: {e}")],
                isError=True,
            )


def create_mcp_server(settings: Settings | None = None) -> tuple[Server, MCPCodeValidatorServer]:
    """Create and configure the MCP server."""
    server = Server("mcp-code-validator")
    validator_server = MCPCodeValidatorServer(settings)

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        """List available tools."""
        return validator_server.get_tools()

    @server.call_tool()
    async def call_tool(name: str, arguments: dict[str, Any]) -> CallToolResult:
        """Handle tool calls."""
        return await validator_server.call_tool(name, arguments)

    return server, validator_server


async def run_mcp_server(settings: Settings | None = None) -> None:
    """Run the MCP server using stdio transport."""
    server, validator_server = create_mcp_server(settings)
    await validator_server.initialize()

    try:
        async with stdio_server() as (read_stream, write_stream):
            await server.run(read_stream, write_stream, server.create_initialization_options())
    finally:
        await validator_server.cleanup()


if __name__ == "__main__":
    # stdout carries the protocol; logs go to stderr
    logger.remove()
    logger.add(sys.stderr, level="INFO")
    asyncio.run(run_mcp_server())
