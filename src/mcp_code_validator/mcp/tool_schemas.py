"""MCP tool schema definitions for code graph indexing and validation."""

from mcp.types import Tool

from ..config.defaults import ANALYSIS_TYPES

MANAGE_CONTEXT_ACTIONS = ("list", "list-branches", "create", "delete", "clear", "compare-branches")

_PROJECT_PROPERTY = {
    "type": "string",
    "description": "Project name (e.g. 'my-app'). Defaults to 'default'.",
}
_BRANCH_PROPERTY = {
    "type": "string",
    "description": "Git branch name. Defaults to 'main'.",
}
_LANGUAGE_PROPERTY = {
    "type": "string",
    "description": "Language stamped on indexed elements (e.g. 'typescript', 'javascript')",
}
_EXTENSION_PROPERTY = {
    "type": "string",
    "description": "File extension selecting the grammar: ts, tsx, js or jsx",
    "default": "ts",
}


def get_tool_schemas() -> list[Tool]:
    """Get all MCP tool schema definitions.

    Returns:
        List of Tool objects defining available MCP tools
    """
    return [
        _get_index_file_schema(),
        _get_index_functions_schema(),
        _get_validate_code_schema(),
        _get_validate_file_schema(),
        _get_check_code_quality_schema(),
        _get_manage_contexts_schema(),
        _get_analyze_relationships_schema(),
        _get_index_dependencies_schema(),
    ]


def _get_index_file_schema() -> Tool:
    """Get index_file tool schema."""
    return Tool(
        name="index_file",
        description="Parse a source file and index its functions, classes, React components, hooks, Next.js patterns, styled elements, imports and exports into the knowledge graph for one project branch. Re-indexing updates elements in place.",
        inputSchema={
            "type": "object",
            "properties": {
                "file_path": {
                    "type": "string",
                    "description": "Path identifying the file in the graph",
                },
                "content": {
                    "type": "string",
                    "description": "Full source text of the file",
                },
                "language": _LANGUAGE_PROPERTY,
                "project": _PROJECT_PROPERTY,
                "branch": _BRANCH_PROPERTY,
                "file_extension": _EXTENSION_PROPERTY,
            },
            "required": ["file_path", "content"],
        },
    )


def _get_index_functions_schema() -> Tool:
    """Get index_functions tool schema."""
    return Tool(
        name="index_functions",
        description="Index individual functions without a full file. Functions with a file_path are linked to that file.",
        inputSchema={
            "type": "object",
            "properties": {
                "functions": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "name": {"type": "string"},
                            "body": {"type": "string"},
                            "file_path": {"type": "string"},
                        },
                        "required": ["name", "body"],
                    },
                    "description": "Functions to index",
                },
                "language": _LANGUAGE_PROPERTY,
                "project": _PROJECT_PROPERTY,
                "branch": _BRANCH_PROPERTY,
            },
            "required": ["functions"],
        },
    )


def _get_validate_code_schema() -> Tool:
    """Get validate_code tool schema."""
    return Tool(
        name="validate_code",
        description="Check whether the functions and classes in a code snippet exist in the knowledge graph for a project branch. Reports FOUND or NOT_FOUND per element; bodies are not compared.",
        inputSchema={
            "type": "object",
            "properties": {
                "code": {
                    "type": "string",
                    "description": "The code snippet to validate",
                },
                "language": _LANGUAGE_PROPERTY,
                "project": _PROJECT_PROPERTY,
                "branch": _BRANCH_PROPERTY,
                "file_extension": _EXTENSION_PROPERTY,
                "verbose": {
                    "type": "boolean",
                    "description": "Include per-element messages",
                    "default": False,
                },
            },
            "required": ["code"],
        },
    )


def _get_validate_file_schema() -> Tool:
    """Get validate_file tool schema."""
    return Tool(
        name="validate_file",
        description="Diff a whole file against what is indexed for the same path. Each function and class is MATCH (identical body), MODIFIED (body changed) or NEW (not indexed for this file).",
        inputSchema={
            "type": "object",
            "properties": {
                "file_path": {
                    "type": "string",
                    "description": "The file path to validate",
                },
                "content": {
                    "type": "string",
                    "description": "Current content of the file",
                },
                "language": _LANGUAGE_PROPERTY,
                "project": _PROJECT_PROPERTY,
                "branch": _BRANCH_PROPERTY,
                "file_extension": {
                    "type": "string",
                    "description": "File extension selecting the grammar; derived from file_path when omitted",
                },
                "verbose": {
                    "type": "boolean",
                    "description": "Include the indexed body of changed elements",
                    "default": False,
                },
            },
            "required": ["file_path", "content"],
        },
    )


def _get_check_code_quality_schema() -> Tool:
    """Get check_code_quality tool schema."""
    return Tool(
        name="check_code_quality",
        description="Review new code against a project branch: flags functions whose naming style departs from the indexed functions, bodies nearly identical to an indexed function, and names resembling existing functions.",
        inputSchema={
            "type": "object",
            "properties": {
                "code": {
                    "type": "string",
                    "description": "The code to review",
                },
                "file_extension": _EXTENSION_PROPERTY,
                "language": _LANGUAGE_PROPERTY,
                "project": _PROJECT_PROPERTY,
                "branch": _BRANCH_PROPERTY,
            },
            "required": ["code"],
        },
    )


def _get_manage_contexts_schema() -> Tool:
    """Get manage_contexts tool schema."""
    return Tool(
        name="manage_contexts",
        description="List, create, delete or clear project/branch contexts, or compare the functions and classes of two branches. delete and clear remove every node of the context.",
        inputSchema={
            "type": "object",
            "properties": {
                "action": {
                    "type": "string",
                    "enum": list(MANAGE_CONTEXT_ACTIONS),
                    "description": "Action to perform",
                },
                "project": {
                    "type": "string",
                    "description": "Project name (required for every action except list)",
                },
                "branch": {
                    "type": "string",
                    "description": "Branch name (required for create, delete, clear and compare-branches)",
                },
                "target_branch": {
                    "type": "string",
                    "description": "Branch compared against (compare-branches only)",
                },
            },
            "required": ["action"],
        },
    )


def _get_analyze_relationships_schema() -> Tool:
    """Get analyze_relationships tool schema."""
    return Tool(
        name="analyze_relationships",
        description="Report relationships (calls, inheritance, imports, instantiations) in a project branch, with node counts per type and elements that have no relationships.",
        inputSchema={
            "type": "object",
            "properties": {
                "project": _PROJECT_PROPERTY,
                "branch": _BRANCH_PROPERTY,
                "analysis_type": {
                    "type": "string",
                    "enum": list(ANALYSIS_TYPES),
                    "description": "Relationship family to report",
                    "default": "all",
                },
                "element_name": {
                    "type": "string",
                    "description": "Only report relationships touching this element",
                },
            },
            "required": [],
        },
    )


def _get_index_dependencies_schema() -> Tool:
    """Get index_dependencies tool schema."""
    return Tool(
        name="index_dependencies",
        description="Index the known public APIs of the libraries declared in a package.json (dependencies, devDependencies, peerDependencies). Unknown libraries are reported as unsupported.",
        inputSchema={
            "type": "object",
            "properties": {
                "package_json": {
                    "type": "string",
                    "description": "Content of package.json",
                },
                "project": _PROJECT_PROPERTY,
                "branch": _BRANCH_PROPERTY,
                "project_path": {
                    "type": "string",
                    "description": "Path of the project the package.json belongs to",
                    "default": "unknown",
                },
            },
            "required": ["package_json"],
        },
    )
