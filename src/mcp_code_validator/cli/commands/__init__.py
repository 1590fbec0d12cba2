"""CLI commands for MCP Code Validator."""
