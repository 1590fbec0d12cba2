"""Configuration for MCP Code Validator."""
