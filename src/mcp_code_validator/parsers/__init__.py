"""Source parsers for MCP Code Validator."""

from .javascript import JavaScriptParser

__all__ = ["JavaScriptParser"]
