"""MCP handlers for code graph indexing, validation and administration."""

import json
from typing import Any

from loguru import logger
from mcp.types import CallToolResult, TextContent

from ..config.defaults import language_for_extension
from ..core.exceptions import CodeValidatorError, MissingParameterError
from ..core.factory import GraphComponents
from ..core.models import FunctionInput


def _success(result: dict[str, Any], status: str = "success") -> CallToolResult:
    result = {"status": status, **result}
    return CallToolResult(
        content=[TextContent(type="text", text=json.dumps(result, indent=2))],
        isError=False,
    )


def _failure(message: str) -> CallToolResult:
    return CallToolResult(
        content=[TextContent(type="text", text=message)],
        isError=True,
    )


class GraphHandlers:
    """MCP handlers for code graph operations."""

    def __init__(self, components: GraphComponents):
        """Initialize graph handlers.

        Args:
            components: Engine components sharing one graph store
        """
        self.components = components

    def _scope(self, args: dict[str, Any]) -> tuple[str, str]:
        settings = self.components.settings
        return (
            args.get("project") or settings.default_project,
            args.get("branch") or settings.default_branch,
        )

    async def handle_index_file(self, args: dict[str, Any]) -> CallToolResult:
        """Handle index_file tool call.

        Args:
            args: Tool arguments containing:
                - file_path (str): Path identifying the file
                - content (str): Source text
                - language (str | None): Language of the file
                - project / branch (str | None): Target context
                - file_extension (str | None): Grammar selector

        Returns:
            CallToolResult with per-kind counts and any element failures
        """
        file_path = args.get("file_path")
        content = args.get("content")
        if not file_path or content is None:
            return _failure("file_path and content are required")

        project, branch = self._scope(args)
        try:
            result = await self.components.indexer.index_file(
                file_path=file_path,
                content=content,
                language=args.get("language"),
                project=project,
                branch=branch,
                file_extension=args.get("file_extension") or file_path,
            )
        except CodeValidatorError as e:
            logger.error(f"Indexing {file_path} failed: {e}")
            return _failure(f"Failed to index file: {e}")

        return _success(result.to_dict(), "success" if result.success else "partial")

    async def handle_index_functions(self, args: dict[str, Any]) -> CallToolResult:
        """Handle index_functions tool call."""
        raw = args.get("functions") or []
        if not raw:
            return _failure("At least one function is required")

        project, branch = self._scope(args)
        try:
            functions = [
                FunctionInput(name=f["name"], body=f["body"], file_path=f.get("file_path"))
                for f in raw
            ]
            result = await self.components.indexer.index_functions(
                functions,
                language=args.get("language") or "typescript",
                project=project,
                branch=branch,
            )
        except (KeyError, TypeError) as e:
            return _failure(f"Invalid function entry: {e}")
        except CodeValidatorError as e:
            logger.error(f"Indexing functions failed: {e}")
            return _failure(f"Failed to index functions: {e}")

        return _success(result.to_dict(), "success" if result.success else "partial")

    async def handle_validate_code(self, args: dict[str, Any]) -> CallToolResult:
        """Handle validate_code tool call (snippet mode)."""
        code = args.get("code")
        if code is None:
            return _failure("code is required")

        extension = args.get("file_extension") or "ts"
        language = args.get("language") or language_for_extension(extension)
        project, branch = self._scope(args)

        try:
            parsed = self.components.parser.parse(code, extension)
            report = await self.components.validator.validate_snippet(
                parsed, language, project, branch
            )
        except CodeValidatorError as e:
            logger.error(f"Snippet validation failed: {e}")
            return _failure(f"Failed to validate code: {e}")

        data = report.to_dict(verbose=bool(args.get("verbose")))
        data["summary"] = (
            f"{report.found} found, {report.not_found} not found in {report.context}"
        )
        return _success(data)

    async def handle_validate_file(self, args: dict[str, Any]) -> CallToolResult:
        """Handle validate_file tool call (file diff mode)."""
        file_path = args.get("file_path")
        content = args.get("content")
        if not file_path or content is None:
            return _failure("file_path and content are required")

        extension = args.get("file_extension") or file_path
        language = args.get("language") or language_for_extension(extension)
        project, branch = self._scope(args)

        try:
            parsed = self.components.parser.parse(content, extension)
            report = await self.components.validator.validate_file(
                file_path, parsed, language, project, branch
            )
        except CodeValidatorError as e:
            logger.error(f"File validation for {file_path} failed: {e}")
            return _failure(f"Failed to validate file: {e}")

        data = report.to_dict(verbose=bool(args.get("verbose")))
        data["file_status"] = data.pop("status")
        data["summary_line"] = (
            f"{file_path}: {report.status} "
            f"({report.matching} match / {report.modified} modified / {report.new} new)"
        )
        return _success(data)

    async def handle_check_code_quality(self, args: dict[str, Any]) -> CallToolResult:
        """Handle check_code_quality tool call.

        Args:
            args: Tool arguments containing:
                - code (str): Source text to review
                - file_extension (str | None): Grammar selector
                - language (str | None): Language of the code
                - project / branch (str | None): Context to compare against

        Returns:
            CallToolResult with naming, duplicate and similar-name issues
        """
        code = args.get("code")
        if code is None:
            return _failure("code is required")

        extension = args.get("file_extension") or "ts"
        language = args.get("language") or language_for_extension(extension)
        project, branch = self._scope(args)

        try:
            parsed = self.components.parser.parse(code, extension)
            report = await self.components.quality.check(parsed, language, project, branch)
        except CodeValidatorError as e:
            logger.error(f"Quality check failed: {e}")
            return _failure(f"Failed to check code quality: {e}")

        data = report.to_dict()
        data["summary"] = (
            f"{len(report.issues)} issues in {report.functions_checked} functions "
            f"against {report.context}"
        )
        return _success(data)

    async def handle_manage_contexts(self, args: dict[str, Any]) -> CallToolResult:
        """Handle manage_contexts tool call."""
        action = args.get("action")
        project = args.get("project")
        branch = args.get("branch")
        admin = self.components.admin

        try:
            if action == "list":
                contexts = await admin.list_contexts()
                return _success(
                    {
                        "action": action,
                        "total": len(contexts),
                        "contexts": [c.to_dict() for c in contexts],
                    }
                )
            elif action == "list-branches":
                branches = await admin.list_branches(project)
                return _success(
                    {
                        "action": action,
                        "project": project,
                        "total": len(branches),
                        "branches": [b.to_dict() for b in branches],
                    }
                )
            elif action == "create":
                existing = await admin.create(project, branch)
                message = (
                    f"Context '{project}:{branch}' already exists with {existing} nodes"
                    if existing
                    else f"Context '{project}:{branch}' is ready; index files to populate it"
                )
                return _success(
                    {"action": action, "existing_nodes": existing, "message": message}
                )
            elif action in ("delete", "clear"):
                handler = admin.delete if action == "delete" else admin.clear
                removed = await handler(project, branch)
                return _success(
                    {
                        "action": action,
                        "context": f"{project}:{branch}",
                        "nodes_removed": removed,
                    }
                )
            elif action == "compare-branches":
                target_branch = args.get("target_branch")
                if not project or not branch or not target_branch:
                    raise MissingParameterError(
                        "project, branch and target_branch are required for compare-branches"
                    )
                comparison = await self.components.comparator.compare(
                    project, branch, target_branch
                )
                return _success({"action": action, **comparison.to_dict()})
            else:
                return _failure(f"Unknown action: {action}")

        except CodeValidatorError as e:
            logger.error(f"manage_contexts {action} failed: {e}")
            return _failure(f"Failed to {action} context: {e}")

    async def handle_analyze_relationships(self, args: dict[str, Any]) -> CallToolResult:
        """Handle analyze_relationships tool call."""
        project, branch = self._scope(args)
        try:
            report = await self.components.analyzer.analyze(
                project,
                branch,
                analysis_type=args.get("analysis_type") or "all",
                element_name=args.get("element_name"),
            )
        except CodeValidatorError as e:
            logger.error(f"Relationship analysis failed: {e}")
            return _failure(f"Failed to analyze relationships: {e}")

        return _success(report.to_dict())

    async def handle_index_dependencies(self, args: dict[str, Any]) -> CallToolResult:
        """Handle index_dependencies tool call."""
        package_json = args.get("package_json")
        if not package_json:
            return _failure("package_json is required")

        project, branch = self._scope(args)
        try:
            result = await self.components.indexer.index_dependencies(
                package_json,
                project=project,
                branch=branch,
                project_path=args.get("project_path") or "unknown",
            )
        except CodeValidatorError as e:
            logger.error(f"Dependency indexing failed: {e}")
            return _failure(f"Failed to index dependencies: {e}")

        return _success(result.to_dict())
