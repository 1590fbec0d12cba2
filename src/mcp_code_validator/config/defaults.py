"""Default configurations for MCP Code Validator."""

from pathlib import Path

# Graph database directory when nothing else is configured
DEFAULT_DB_PATH = Path.home() / ".mcp-code-validator" / "graph"

# Optional YAML settings file looked up in the working directory
DEFAULT_CONFIG_FILE = ".mcp-code-validator.yaml"

DEFAULT_LOG_LEVEL = "WARNING"

VALID_LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")

# Language stamped on indexed elements, by file extension
LANGUAGE_MAPPINGS: dict[str, str] = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
}

# tree-sitter grammar used for each extension
GRAMMAR_MAPPINGS: dict[str, str] = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".tsx": "tsx",
}

SUPPORTED_EXTENSIONS = tuple(LANGUAGE_MAPPINGS)

ANALYSIS_TYPES = ("all", "function-calls", "class-inheritance", "imports", "dependencies")

# Orphan listing cap in relationship analysis
MAX_ORPHANS = 10

# Token overlap above which two function bodies count as near-duplicates
DUPLICATE_SIMILARITY = 0.7

# Name prefix length used to look up similarly named functions
SIMILAR_NAME_PREFIX = 5

# Cap on related names listed per quality issue
MAX_RELATED_NAMES = 5


def normalize_extension(file_extension: str | None) -> str:
    """Return ``.ext`` for ``ext``, ``.ext`` or a file name."""
    if not file_extension:
        return ".ts"
    # Anything with a dot past the first character is a file name
    if "/" in file_extension or "." in file_extension.lstrip("."):
        file_extension = Path(file_extension).suffix or ".ts"
    if not file_extension.startswith("."):
        file_extension = f".{file_extension}"
    return file_extension.lower()


def language_for_extension(file_extension: str | None) -> str:
    """Language name for a file extension, ``typescript`` when unknown."""
    return LANGUAGE_MAPPINGS.get(normalize_extension(file_extension), "typescript")


def grammar_for_extension(file_extension: str | None) -> str:
    """tree-sitter grammar for a file extension, ``typescript`` when unknown."""
    return GRAMMAR_MAPPINGS.get(normalize_extension(file_extension), "typescript")
