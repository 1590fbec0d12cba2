"""Idempotent entity writes.

Every write is an explicit upsert: read the node by its natural-key id, then
either create it (stamping ``created_at``) or overwrite its mutable attributes
(advancing ``updated_at``). Containment edges are merged alongside, inside the
same per-element transaction. A batch of elements is not atomic: a failing
element is recorded and the rest are still attempted.
"""

from dataclasses import dataclass, field
from typing import Any, NamedTuple

from loguru import logger

from .exceptions import StoreError
from .graph_store import (
    NODE_SCHEMAS,
    REL_SCHEMAS,
    GraphSession,
    encode_list,
    node_id,
    now_ms,
    quote,
)
from .models import (
    ElementFailure,
    FunctionInput,
    IndexResult,
    LibraryAPI,
    ParsedCode,
)

# LibraryAPI attribute -> member node label
LIBRARY_MEMBER_LABELS = {
    "functions": "LibraryFunction",
    "classes": "LibraryClass",
    "constants": "LibraryConstant",
    "hooks": "LibraryHook",
    "types": "LibraryType",
}


@dataclass
class UpsertOutcome:
    """Result of a single node upsert."""

    node_id: str
    created: bool


@dataclass
class LibraryIndexOutcome:
    """Result of indexing one library's API surface."""

    library: str
    members: int = 0
    failures: list[ElementFailure] = field(default_factory=list)


class _PlannedElement(NamedTuple):
    label: str
    rel_type: str
    key: dict[str, Any]
    attributes: dict[str, Any]
    rel_properties: dict[str, Any] | None = None


class EntityUpsertEngine:
    """Creates and updates graph nodes and their containment edges."""

    def upsert(
        self,
        session: GraphSession,
        label: str,
        key: dict[str, Any],
        attributes: dict[str, Any],
        context: str,
    ) -> UpsertOutcome:
        """Create or update one node.

        Absent nodes are created with ``created_at``; present nodes (including
        stubs) get their attributes overwritten, ``is_stub`` cleared and
        ``updated_at`` advanced. ``updated_at`` never moves backwards.

        Args:
            session: Open graph session
            label: Node label
            key: Natural key fields
            attributes: Mutable attributes
            context: Partition key

        Returns:
            UpsertOutcome with the node id and whether it was created
        """
        schema = NODE_SCHEMAS[label]
        nid = node_id(label, key, context)
        values = self._normalize(schema.attributes, schema.boolean_fields, attributes)

        with session.transaction():
            rows = session.run(
                f"MATCH (n:{quote(label)} {{id: $id}}) RETURN n.updated_at AS updated_at",
                {"id": nid},
            )
            timestamp = now_ms()

            if not rows:
                params: dict[str, Any] = {
                    "id": nid,
                    "context": context,
                    "is_stub": False,
                    "ts": timestamp,
                }
                params.update({f: str(key[f]) for f in schema.key_fields})
                for column in schema.attributes:
                    params[column] = values.get(
                        column, False if column in schema.boolean_fields else ""
                    )
                assignments = ", ".join(
                    f"{column}: ${column}"
                    for column in ("id", "context", *schema.columns, "is_stub")
                )
                session.run(
                    f"CREATE (n:{quote(label)} {{{assignments}, "
                    "created_at: $ts, updated_at: $ts})",
                    params,
                )
                logger.debug(f"Created {label} {key} in {context}")
                return UpsertOutcome(node_id=nid, created=True)

            previous = rows[0]["updated_at"] or 0
            params = {"id": nid, "ts": max(timestamp, previous), **values}
            updates = [f"n.{column} = ${column}" for column in values]
            updates += ["n.is_stub = false", "n.updated_at = $ts"]
            session.run(
                f"MATCH (n:{quote(label)} {{id: $id}}) SET {', '.join(updates)}",
                params,
            )
            logger.debug(f"Updated {label} {key} in {context}")
            return UpsertOutcome(node_id=nid, created=False)

    def ensure_node(
        self,
        session: GraphSession,
        label: str,
        key: dict[str, Any],
        context: str,
    ) -> str:
        """Return the id of a node, creating a key-only stub if it is absent.

        Existing nodes are left untouched.
        """
        schema = NODE_SCHEMAS[label]
        nid = node_id(label, key, context)

        with session.transaction():
            exists = session.run(
                f"MATCH (n:{quote(label)} {{id: $id}}) RETURN n.id AS id", {"id": nid}
            )
            if not exists:
                params: dict[str, Any] = {"id": nid, "context": context, "ts": now_ms()}
                params.update({f: str(key[f]) for f in schema.key_fields})
                assignments = ", ".join(
                    f"{column}: ${column}"
                    for column in ("id", "context", *schema.key_fields)
                )
                session.run(
                    f"CREATE (n:{quote(label)} {{{assignments}, is_stub: true, "
                    "created_at: $ts, updated_at: $ts})",
                    params,
                )
                logger.debug(f"Created stub {label} {key} in {context}")

        return nid

    def link(
        self,
        session: GraphSession,
        rel_type: str,
        source: tuple[str, str],
        target: tuple[str, str],
        context: str,
        properties: dict[str, Any] | None = None,
    ) -> None:
        """Merge one edge; the same (source, type, target) is always one edge.

        Args:
            session: Open graph session
            rel_type: Relationship type
            source: (label, node id) of the source
            target: (label, node id) of the target
            context: Partition key stamped on the edge
            properties: Edge properties, overwritten on re-link
        """
        src_label, src_id = source
        dst_label, dst_id = target
        rel = REL_SCHEMAS[rel_type]
        if (src_label, dst_label) not in rel.endpoints:
            raise ValueError(f"{rel_type} does not connect {src_label} to {dst_label}")

        properties = properties or {}
        params: dict[str, Any] = {
            "src": src_id,
            "dst": dst_id,
            "context": context,
            "ts": now_ms(),
            **properties,
        }
        on_create = ["r.context = $context", "r.created_at = $ts"]
        on_create += [f"r.{prop} = ${prop}" for prop in properties]
        query = (
            f"MATCH (a:{quote(src_label)} {{id: $src}}), (b:{quote(dst_label)} {{id: $dst}}) "
            f"MERGE (a)-[r:{quote(rel_type)}]->(b) "
            f"ON CREATE SET {', '.join(on_create)}"
        )
        if properties:
            query += " ON MATCH SET " + ", ".join(f"r.{prop} = ${prop}" for prop in properties)

        with session.transaction():
            session.run(query, params)

    def index_parsed_code(
        self,
        session: GraphSession,
        parsed: ParsedCode,
        file_path: str,
        language: str,
        context: str,
    ) -> IndexResult:
        """Upsert every element of a parsed file and link it to its File node.

        Args:
            session: Open graph session
            parsed: Parser output for the file
            file_path: Path identifying the File node
            language: Language stamped on language-keyed elements
            context: Partition key

        Returns:
            IndexResult with per-kind counts and itemized failures
        """
        result = IndexResult(file_path=file_path, context=context)
        file_id = self.upsert(session, "File", {"path": file_path}, {}, context).node_id

        for element in self._plan_elements(parsed, language):
            name = element.key.get("name", "")
            try:
                with session.transaction():
                    outcome = self.upsert(
                        session, element.label, element.key, element.attributes, context
                    )
                    self.link(
                        session,
                        element.rel_type,
                        ("File", file_id),
                        (element.label, outcome.node_id),
                        context,
                        element.rel_properties,
                    )
                result.record(element.label)
            except StoreError as e:
                logger.warning(f"Failed to index {element.label} '{name}' in {file_path}: {e}")
                result.failures.append(ElementFailure(element.label, name, str(e)))

        return result

    def index_functions(
        self,
        session: GraphSession,
        functions: list[FunctionInput],
        language: str,
        context: str,
    ) -> IndexResult:
        """Upsert loose functions; a CONTAINS edge is added only when a path is given."""
        result = IndexResult(file_path=None, context=context)

        for func in functions:
            try:
                with session.transaction():
                    outcome = self.upsert(
                        session,
                        "Function",
                        {"name": func.name, "language": language},
                        {"body": func.body},
                        context,
                    )
                    if func.file_path:
                        file_id = self.upsert(
                            session, "File", {"path": func.file_path}, {}, context
                        ).node_id
                        self.link(
                            session,
                            "CONTAINS",
                            ("File", file_id),
                            ("Function", outcome.node_id),
                            context,
                        )
                result.record("Function")
            except StoreError as e:
                logger.warning(f"Failed to index function '{func.name}': {e}")
                result.failures.append(ElementFailure("Function", func.name, str(e)))

        return result

    def index_library(
        self,
        session: GraphSession,
        api: LibraryAPI,
        context: str,
        project_path: str = "unknown",
    ) -> LibraryIndexOutcome:
        """Upsert a Library node and a PROVIDES edge per known member."""
        outcome = LibraryIndexOutcome(library=api.name)
        library_id = self.upsert(
            session,
            "Library",
            {"name": api.name},
            {"version": api.version, "project_path": project_path},
            context,
        ).node_id

        for attribute, label in LIBRARY_MEMBER_LABELS.items():
            for member in getattr(api, attribute):
                try:
                    with session.transaction():
                        member_id = self.upsert(
                            session, label, {"name": member, "library": api.name}, {}, context
                        ).node_id
                        self.link(
                            session,
                            "PROVIDES",
                            ("Library", library_id),
                            (label, member_id),
                            context,
                        )
                    outcome.members += 1
                except StoreError as e:
                    logger.warning(f"Failed to index {label} '{api.name}.{member}': {e}")
                    outcome.failures.append(ElementFailure(label, member, str(e)))

        return outcome

    @staticmethod
    def _normalize(
        columns: tuple[str, ...],
        boolean_fields: tuple[str, ...],
        attributes: dict[str, Any],
    ) -> dict[str, Any]:
        """Coerce attribute values to their stored representation."""
        values: dict[str, Any] = {}
        for column in columns:
            if column not in attributes:
                continue
            value = attributes[column]
            if column in boolean_fields:
                values[column] = bool(value)
            elif isinstance(value, list | tuple):
                values[column] = encode_list(list(value))
            else:
                values[column] = "" if value is None else str(value)
        return values

    @staticmethod
    def _plan_elements(parsed: ParsedCode, language: str) -> list[_PlannedElement]:
        """Flatten parser output into (label, edge, key, attributes) writes."""
        plan: list[_PlannedElement] = []

        for func in parsed.functions:
            plan.append(
                _PlannedElement(
                    "Function",
                    "CONTAINS",
                    {"name": func.name, "language": language},
                    {"body": func.body},
                )
            )
        for cls in parsed.classes:
            plan.append(
                _PlannedElement(
                    "Class",
                    "CONTAINS",
                    {"name": cls.name, "language": language},
                    {"body": cls.body},
                )
            )
        for component in parsed.react_components:
            plan.append(
                _PlannedElement(
                    "ReactComponent",
                    "CONTAINS",
                    {"name": component.name, "language": language},
                    {
                        "component_type": component.component_type,
                        "props": component.props,
                        "hooks": component.hooks,
                        "body": component.body,
                        "is_default_export": component.is_default_export,
                    },
                )
            )
        for hook in parsed.react_hooks:
            plan.append(
                _PlannedElement(
                    "ReactHook",
                    "USES",
                    {"name": hook.name, "hook_type": hook.hook_type, "language": language},
                    {"dependencies": hook.dependencies, "body": hook.body},
                )
            )
        for pattern in parsed.nextjs_patterns:
            plan.append(
                _PlannedElement(
                    "NextJsPattern",
                    "IMPLEMENTS",
                    {
                        "name": pattern.name,
                        "pattern_type": pattern.pattern_type,
                        "language": language,
                    },
                    {"exports": pattern.exports, "body": pattern.body},
                )
            )
        for element in parsed.frontend_elements:
            plan.append(
                _PlannedElement(
                    "FrontendElement",
                    "STYLES",
                    {
                        "name": element.name,
                        "element_type": element.element_type,
                        "language": language,
                    },
                    {"styles": element.styles, "body": element.body},
                )
            )
        for imp in parsed.imports:
            plan.append(
                _PlannedElement(
                    "Module",
                    "IMPORTS",
                    {"name": imp.source},
                    {},
                    {"imports": encode_list(imp.imports)},
                )
            )
        for exp in parsed.exports:
            plan.append(
                _PlannedElement(
                    "ExportedItem",
                    "EXPORTS",
                    {"name": exp.name, "export_type": exp.export_type},
                    {},
                )
            )

        return plan
