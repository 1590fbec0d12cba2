"""MCP Code Validator - branch-scoped code knowledge graph for validating generated code."""

__version__ = "0.3.0"
__author__ = "Robert Matsuoka"

from .core.exceptions import CodeValidatorError

__all__ = ["CodeValidatorError", "__version__"]
