"""Validation of parsed code against the indexed state of a context.

Two modes:

- snippet: does each function/class exist in the context? Bodies are not
  compared.
- file: diff a whole file against what is indexed for that file path,
  classifying each element as MATCH, MODIFIED or NEW by exact body equality.

Classification outcomes are results, never exceptions.
"""

from loguru import logger

from .context import resolve_context
from .graph_store import GraphSession, GraphStore, node_id, quote
from .models import (
    ElementValidation,
    FileValidationReport,
    ParsedCode,
    SnippetValidationReport,
    ValidationStatus,
)


class ValidationEngine:
    """Classifies parsed elements against one context."""

    def __init__(self, store: GraphStore):
        self.store = store

    async def validate_snippet(
        self,
        parsed: ParsedCode,
        language: str,
        project: str | None = None,
        branch: str | None = None,
    ) -> SnippetValidationReport:
        """Report FOUND / NOT_FOUND for every function and class in ``parsed``.

        Stub nodes (referenced but never indexed) count as NOT_FOUND.
        """
        context = resolve_context(project, branch)
        report = SnippetValidationReport(context=context)

        elements = [("Function", f.name) for f in parsed.functions]
        elements += [("Class", c.name) for c in parsed.classes]

        with self.store.session() as session:
            for label, name in elements:
                found = self._is_indexed(session, label, name, language, context)
                report.results.append(
                    ElementValidation(
                        name=name,
                        element_type=label,
                        status=ValidationStatus.FOUND if found else ValidationStatus.NOT_FOUND,
                        message=(
                            f"{label} exists in {context}"
                            if found
                            else f"{label} not found in {context}"
                        ),
                    )
                )

        logger.debug(
            f"Snippet validation in {context}: {report.found} found, {report.not_found} missing"
        )
        return report

    async def validate_file(
        self,
        file_path: str,
        parsed: ParsedCode,
        language: str,
        project: str | None = None,
        branch: str | None = None,
    ) -> FileValidationReport:
        """Diff a file's functions and classes against the indexed file.

        Only elements contained by the File node at ``file_path`` are
        considered. Repeated parser entries collapse by name with the last
        body winning, as they would on indexing.
        """
        context = resolve_context(project, branch)
        file_id = node_id("File", {"path": file_path}, context)

        functions = {f.name: f.body for f in parsed.functions}
        classes = {c.name: c.body for c in parsed.classes}

        with self.store.session() as session:
            file_exists = bool(
                session.run("MATCH (f:`File` {id: $id}) RETURN f.id AS id", {"id": file_id})
            )
            report = FileValidationReport(
                file_path=file_path, context=context, file_exists=file_exists
            )

            indexed_functions = self._contained_functions(
                session, file_id, list(functions), language
            )
            for name, body in functions.items():
                report.results.append(
                    self._classify("Function", name, body, indexed_functions.get(name))
                )

            for name, body in classes.items():
                indexed_body = self._contained_class(session, file_id, name, language)
                report.results.append(self._classify("Class", name, body, indexed_body))

        logger.debug(
            f"File validation for {file_path} in {context}: {report.status} "
            f"({report.matching} match, {report.modified} modified, {report.new} new)"
        )
        return report

    @staticmethod
    def _is_indexed(
        session: GraphSession, label: str, name: str, language: str, context: str
    ) -> bool:
        nid = node_id(label, {"name": name, "language": language}, context)
        rows = session.run(
            f"MATCH (n:{quote(label)} {{id: $id}}) RETURN n.is_stub AS is_stub", {"id": nid}
        )
        return bool(rows) and not rows[0]["is_stub"]

    @staticmethod
    def _contained_functions(
        session: GraphSession, file_id: str, names: list[str], language: str
    ) -> dict[str, str]:
        """Bodies of the named functions contained by the file, in one query."""
        if not names:
            return {}

        rows = session.run(
            "MATCH (file:`File` {id: $file_id})-[:`CONTAINS`]->(f:`Function`) "
            "WHERE f.name IN $names AND f.language = $language "
            "RETURN f.name AS name, f.body AS body",
            {"file_id": file_id, "names": names, "language": language},
        )
        return {row["name"]: row["body"] for row in rows}

    @staticmethod
    def _contained_class(
        session: GraphSession, file_id: str, name: str, language: str
    ) -> str | None:
        rows = session.run(
            "MATCH (file:`File` {id: $file_id})-[:`CONTAINS`]->(c:`Class`) "
            "WHERE c.name = $name AND c.language = $language "
            "RETURN c.body AS body",
            {"file_id": file_id, "name": name, "language": language},
        )
        return rows[0]["body"] if rows else None

    @staticmethod
    def _classify(
        label: str, name: str, body: str, indexed_body: str | None
    ) -> ElementValidation:
        kind = label.lower()
        if indexed_body is None:
            return ElementValidation(
                name=name,
                element_type=label,
                status=ValidationStatus.NEW,
                message=f"{label} is new and not in the knowledge graph",
            )
        if indexed_body == body:
            return ElementValidation(
                name=name,
                element_type=label,
                status=ValidationStatus.MATCH,
                message=f"{label} exists and matches exactly",
                indexed_body=indexed_body,
            )
        return ElementValidation(
            name=name,
            element_type=label,
            status=ValidationStatus.MODIFIED,
            message=f"{label} exists but the {kind} body has changed",
            indexed_body=indexed_body,
        )
