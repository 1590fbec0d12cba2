"""Relationship analysis for a single context."""

from typing import NamedTuple

from loguru import logger

from ..config.defaults import ANALYSIS_TYPES, MAX_ORPHANS
from .context import resolve_context
from .exceptions import CodeValidatorError
from .graph_store import NODE_SCHEMAS, GraphSession, GraphStore, decode_list, quote
from .models import RelationshipRecord, RelationshipReport


class _EdgeQuery(NamedTuple):
    rel_type: str
    source_label: str
    target_label: str
    detail_property: str | None = None


# Edges reported by each analysis type
ANALYSIS_EDGES: dict[str, tuple[_EdgeQuery, ...]] = {
    "function-calls": (_EdgeQuery("CALLS", "Function", "Function"),),
    "class-inheritance": (
        _EdgeQuery("EXTENDS", "Class", "Class"),
        _EdgeQuery("IMPLEMENTS", "Class", "Interface"),
    ),
    "imports": (_EdgeQuery("IMPORTS", "File", "Module", "imports"),),
    "dependencies": (_EdgeQuery("INSTANTIATES", "Function", "Class"),),
}


class RelationshipAnalyzer:
    """Lists relationships, node counts and orphaned nodes of a context."""

    def __init__(self, store: GraphStore):
        self.store = store

    async def analyze(
        self,
        project: str | None = None,
        branch: str | None = None,
        analysis_type: str = "all",
        element_name: str | None = None,
    ) -> RelationshipReport:
        """Analyze one context.

        Args:
            project: Project name
            branch: Branch name
            analysis_type: One of ``all``, ``function-calls``,
                ``class-inheritance``, ``imports``, ``dependencies``
            element_name: Only report edges touching an element of this name

        Returns:
            RelationshipReport with edges, node counts per label and up to
            ten nodes without any edge
        """
        if analysis_type not in ANALYSIS_TYPES:
            raise CodeValidatorError(
                f"Unknown analysis type '{analysis_type}'",
                context={"valid": list(ANALYSIS_TYPES)},
            )

        context = resolve_context(project, branch)
        report = RelationshipReport(context=context, analysis_type=analysis_type)

        edge_queries = [
            query
            for kind, queries in ANALYSIS_EDGES.items()
            if analysis_type in ("all", kind)
            for query in queries
        ]

        with self.store.session() as session:
            for query in edge_queries:
                report.relationships.extend(
                    self._edges(session, query, context, element_name)
                )
            report.node_counts = self._node_counts(session, context)
            report.orphans = self._orphans(session, context)

        logger.debug(
            f"Analyzed {context} ({analysis_type}): {len(report.relationships)} relationships, "
            f"{len(report.orphans)} orphans"
        )
        return report

    @staticmethod
    def _edges(
        session: GraphSession,
        query: _EdgeQuery,
        context: str,
        element_name: str | None,
    ) -> list[RelationshipRecord]:
        source_field = NODE_SCHEMAS[query.source_label].display_field
        target_field = NODE_SCHEMAS[query.target_label].display_field

        where = "r.context = $context"
        params = {"context": context}
        if element_name:
            where += f" AND (a.{source_field} = $element OR b.{target_field} = $element)"
            params["element"] = element_name

        detail = f", r.{query.detail_property} AS details" if query.detail_property else ""
        rows = session.run(
            f"MATCH (a:{quote(query.source_label)})-[r:{quote(query.rel_type)}]->"
            f"(b:{quote(query.target_label)}) WHERE {where} "
            f"RETURN a.{source_field} AS source, b.{target_field} AS target{detail}",
            params,
        )
        return [
            RelationshipRecord(
                source=row["source"],
                target=row["target"],
                rel_type=query.rel_type,
                details=decode_list(row["details"]) if query.detail_property else None,
            )
            for row in rows
        ]

    @staticmethod
    def _node_counts(session: GraphSession, context: str) -> dict[str, int]:
        counts = {}
        for label in NODE_SCHEMAS:
            count = session.scalar(
                f"MATCH (n:{quote(label)}) WHERE n.context = $context RETURN count(n)",
                {"context": context},
            )
            if count:
                counts[label] = count
        return dict(sorted(counts.items(), key=lambda item: item[1], reverse=True))

    @staticmethod
    def _orphans(session: GraphSession, context: str) -> list[tuple[str, str]]:
        orphans: list[tuple[str, str]] = []
        for label, schema in NODE_SCHEMAS.items():
            remaining = MAX_ORPHANS - len(orphans)
            if remaining <= 0:
                break
            rows = session.run(
                f"MATCH (n:{quote(label)}) WHERE n.context = $context "
                "OPTIONAL MATCH (n)-[r]-() "
                "WITH n, count(r) AS degree WHERE degree = 0 "
                f"RETURN n.{schema.display_field} AS name LIMIT {remaining}",
                {"context": context},
            )
            orphans.extend((label, row["name"]) for row in rows)
        return orphans
