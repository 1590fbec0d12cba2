"""Command-line interface for MCP Code Validator."""
