"""Core functionality for MCP Code Validator."""

from .context import (
    DEFAULT_BRANCH,
    DEFAULT_PROJECT,
    BranchContext,
    parse_context,
    resolve_context,
)
from .exceptions import (
    CodeValidatorError,
    ConfigError,
    ContextError,
    IndexingError,
    MissingParameterError,
    ParsingError,
    StoreError,
    StoreNotInitializedError,
    StoreQueryError,
    StoreUnavailableError,
)
from .graph_store import GraphSession, GraphStore

__all__ = [
    "DEFAULT_BRANCH",
    "DEFAULT_PROJECT",
    "BranchContext",
    "CodeValidatorError",
    "ConfigError",
    "ContextError",
    "GraphSession",
    "GraphStore",
    "IndexingError",
    "MissingParameterError",
    "ParsingError",
    "StoreError",
    "StoreNotInitializedError",
    "StoreQueryError",
    "StoreUnavailableError",
    "parse_context",
    "resolve_context",
]
