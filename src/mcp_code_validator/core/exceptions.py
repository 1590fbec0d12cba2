"""Typed exception hierarchy for mcp-code-validator.

Hierarchy
---------
CodeValidatorError (base)
├── StoreError                 – Kuzu / graph storage errors
│   ├── StoreUnavailableError
│   ├── StoreNotInitializedError
│   └── StoreQueryError
├── IndexingError              – indexing-time failures
│   └── ParsingError           – source parsing subset of indexing errors
├── ContextError               – malformed project/branch context
│   └── MissingParameterError  – required admin parameter absent
└── ConfigError                – configuration / validation errors

Classification outcomes (FOUND / NOT_FOUND, MATCH / MODIFIED / NEW) are
results, never exceptions.
"""

from typing import Any


class CodeValidatorError(Exception):
    """Base exception for MCP Code Validator."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.context = context or {}


# ── Storage layer ───────────────────────────────────────────────────────


class StoreError(CodeValidatorError):
    """Graph store errors (Kuzu layer)."""

    pass


class StoreUnavailableError(StoreError):
    """The graph database could not be opened."""

    pass


class StoreNotInitializedError(StoreError):
    """Operation attempted before the store was initialized."""

    pass


class StoreQueryError(StoreError):
    """A Cypher statement failed inside the store."""

    pass


# ── Indexing layer ──────────────────────────────────────────────────────


class IndexingError(CodeValidatorError):
    """Indexing operation failed."""

    pass


class ParsingError(IndexingError):
    """Source parsing errors (subset of indexing errors)."""

    pass


# ── Context layer ───────────────────────────────────────────────────────


class ContextError(CodeValidatorError):
    """Project/branch context could not be resolved."""

    pass


class MissingParameterError(ContextError):
    """A required admin parameter was not supplied."""

    pass


# ── Configuration layer ─────────────────────────────────────────────────


class ConfigError(CodeValidatorError):
    """Configuration / validation errors."""

    pass
