"""MCP server integration for MCP Code Validator."""
