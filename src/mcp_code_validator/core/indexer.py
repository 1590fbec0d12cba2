"""Indexing orchestration: parse, upsert, then infer relationships."""

from dataclasses import replace

from loguru import logger

from ..config.defaults import language_for_extension
from ..config.library_apis import get_library_api, parse_package_json_dependencies
from ..parsers.javascript import JavaScriptParser
from .context import resolve_context
from .exceptions import ParsingError
from .graph_store import GraphStore
from .models import (
    DependencyIndexResult,
    FunctionInput,
    IndexResult,
    ParsedCode,
    ParsedFunction,
)
from .relationships import RelationshipExtractor
from .upsert import EntityUpsertEngine


class CodeGraphIndexer:
    """Indexes source files, loose functions and dependencies into a context."""

    def __init__(
        self,
        store: GraphStore,
        parser: JavaScriptParser | None = None,
        upsert_engine: EntityUpsertEngine | None = None,
        extractor: RelationshipExtractor | None = None,
    ):
        """Initialize the indexer.

        Args:
            store: Initialized graph store
            parser: Source parser (JavaScript/TypeScript by default)
            upsert_engine: Entity writer
            extractor: Relationship extractor sharing the same writer
        """
        self.store = store
        self.parser = parser or JavaScriptParser()
        self.upsert_engine = upsert_engine or EntityUpsertEngine()
        self.extractor = extractor or RelationshipExtractor(self.upsert_engine)

    async def index_file(
        self,
        file_path: str,
        content: str,
        language: str | None = None,
        project: str | None = None,
        branch: str | None = None,
        file_extension: str | None = None,
    ) -> IndexResult:
        """Parse a source file and index everything it declares.

        Args:
            file_path: Path identifying the File node
            content: Source text
            language: Language stamped on elements; derived from the extension if omitted
            project: Project name
            branch: Branch name
            file_extension: Grammar selector; derived from ``file_path`` if omitted

        Returns:
            IndexResult with element and relationship counts

        Raises:
            ParsingError: If the source could not be parsed at all
        """
        extension = file_extension or file_path
        language = language or language_for_extension(extension)

        try:
            parsed = self.parser.parse(content, extension)
        except ParsingError:
            raise
        except Exception as e:
            raise ParsingError(
                f"Failed to parse {file_path}: {e}", context={"file_path": file_path}
            ) from e

        return await self.index_parsed(parsed, file_path, language, project, branch)

    async def index_parsed(
        self,
        parsed: ParsedCode,
        file_path: str,
        language: str,
        project: str | None = None,
        branch: str | None = None,
    ) -> IndexResult:
        """Index already-parsed elements for a file."""
        context = resolve_context(project, branch)

        with self.store.session() as session:
            result = self.upsert_engine.index_parsed_code(
                session, parsed, file_path, language, context
            )

            # Only successfully written functions and classes are relationship sources
            failed = {(f.kind, f.name) for f in result.failures}
            if failed:
                parsed = replace(
                    parsed,
                    functions=[f for f in parsed.functions if ("Function", f.name) not in failed],
                    classes=[c for c in parsed.classes if ("Class", c.name) not in failed],
                )
            stats = self.extractor.extract(session, parsed, language, context)

        result.relationships = stats.counts
        result.failures.extend(stats.failures)

        logger.info(
            f"Indexed {file_path} in {context}: {result.total_indexed} elements, "
            f"{sum(stats.counts.values())} relationships, {len(result.failures)} failures"
        )
        return result

    async def index_functions(
        self,
        functions: list[FunctionInput],
        language: str = "typescript",
        project: str | None = None,
        branch: str | None = None,
    ) -> IndexResult:
        """Index loose functions, with CALLS/INSTANTIATES inferred from their bodies."""
        context = resolve_context(project, branch)
        parsed = ParsedCode()

        with self.store.session() as session:
            result = self.upsert_engine.index_functions(session, functions, language, context)

            # Only successfully written functions are relationship sources
            failed = {f.name for f in result.failures}
            parsed.functions = [
                ParsedFunction(name=f.name, body=f.body)
                for f in functions
                if f.name not in failed
            ]
            stats = self.extractor.extract(session, parsed, language, context)

        result.relationships = stats.counts
        result.failures.extend(stats.failures)

        logger.info(f"Indexed {result.total_indexed} functions in {context}")
        return result

    async def index_dependencies(
        self,
        package_json: str,
        project: str | None = None,
        branch: str | None = None,
        project_path: str = "unknown",
    ) -> DependencyIndexResult:
        """Index the known APIs of every dependency declared in package.json.

        Dependencies without a known API table are reported as unsupported.
        """
        context = resolve_context(project, branch)
        dependencies = parse_package_json_dependencies(package_json)
        result = DependencyIndexResult(context=context, total_dependencies=len(dependencies))

        with self.store.session() as session:
            for name in dependencies:
                api = get_library_api(name)
                if api is None:
                    result.unsupported.append(name)
                    continue

                outcome = self.upsert_engine.index_library(session, api, context, project_path)
                result.supported.append(name)
                result.indexed_libraries += 1
                result.indexed_apis += outcome.members
                result.failures.extend(outcome.failures)

        logger.info(
            f"Indexed {result.indexed_libraries}/{result.total_dependencies} libraries "
            f"({result.indexed_apis} APIs) in {context}"
        )
        return result
