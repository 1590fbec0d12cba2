"""Relationship inference between indexed code elements.

Inference sits behind :class:`RelationshipStrategy` so the lexical heuristic can
be replaced by real static analysis without touching the writers. The
lexical strategy both over-reports (method names that coincide with built-ins)
and under-reports (``this.x()``, destructuring, dynamic dispatch); that is the
accepted trade-off.

Targets that have not been indexed yet are created as stub nodes carrying
only their key fields. Indexing the real element later fills the stub in
place.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from loguru import logger

from .exceptions import StoreError
from .graph_store import GraphSession, node_id, quote
from .models import ElementFailure, ParsedCode
from .upsert import EntityUpsertEngine

# Tokens that look like calls but are control flow or common globals
CALL_STOPLIST = frozenset(
    {"if", "for", "while", "return", "console", "typeof", "instanceof"}
)

CALL_PATTERN = re.compile(r"(\w+)\s*\(")
INSTANTIATION_PATTERN = re.compile(r"new\s+(\w+)\s*\(")
EXTENDS_PATTERN = re.compile(
    r"class\s+[\w$]+(?:\s*<[^{]*?>)?\s+extends\s+([\w$]+(?:\.[\w$]+)*)"
)
IMPLEMENTS_PATTERN = re.compile(r"implements\s+([\w$]+(?:\s*,\s*[\w$]+)*)")


@dataclass(frozen=True)
class InferredRelationship:
    """An edge proposed by a strategy, named by endpoint labels and names."""

    rel_type: str
    source_label: str
    source_name: str
    target_label: str
    target_name: str


@dataclass
class RelationshipStats:
    """Edges written by one extraction pass."""

    counts: dict[str, int] = field(default_factory=dict)
    stubs_created: int = 0
    failures: list[ElementFailure] = field(default_factory=list)


class RelationshipStrategy(ABC):
    """Infers relationships from parsed elements."""

    @abstractmethod
    def infer(self, parsed: ParsedCode) -> list[InferredRelationship]:
        """Return the relationships expressed by ``parsed``."""


class LexicalRelationshipStrategy(RelationshipStrategy):
    """Token-level inference over element source text."""

    def __init__(self, stoplist: frozenset[str] = CALL_STOPLIST):
        self.stoplist = stoplist

    def infer(self, parsed: ParsedCode) -> list[InferredRelationship]:
        inferred: dict[InferredRelationship, None] = {}

        for func in parsed.functions:
            for called in self.find_calls(func.body):
                inferred[
                    InferredRelationship("CALLS", "Function", func.name, "Function", called)
                ] = None
            for class_name in INSTANTIATION_PATTERN.findall(func.body):
                inferred[
                    InferredRelationship(
                        "INSTANTIATES", "Function", func.name, "Class", class_name
                    )
                ] = None

        for cls in parsed.classes:
            parent = self.find_superclass(cls.body)
            if parent:
                inferred[
                    InferredRelationship("EXTENDS", "Class", cls.name, "Class", parent)
                ] = None
            for interface in self.find_interfaces(cls.body):
                inferred[
                    InferredRelationship(
                        "IMPLEMENTS", "Class", cls.name, "Interface", interface
                    )
                ] = None

        return list(inferred)

    def find_calls(self, body: str) -> list[str]:
        """Names of ``identifier(`` tokens outside the stoplist, in order."""
        calls: dict[str, None] = {}
        for name in CALL_PATTERN.findall(body):
            if name not in self.stoplist:
                calls[name] = None
        return list(calls)

    @staticmethod
    def find_superclass(text: str) -> str | None:
        """First ``extends X`` of a class declaration; single inheritance only."""
        match = EXTENDS_PATTERN.search(text)
        if not match:
            return None
        # React.Component -> Component
        return match.group(1).rsplit(".", 1)[-1]

    @staticmethod
    def find_interfaces(text: str) -> list[str]:
        """Names listed after ``implements`` in the class header."""
        header = text.split("{", 1)[0]
        match = IMPLEMENTS_PATTERN.search(header)
        if not match:
            return []
        return [name.strip() for name in match.group(1).split(",") if name.strip()]


class RelationshipExtractor:
    """Writes strategy-inferred edges into the graph."""

    def __init__(
        self,
        upsert_engine: EntityUpsertEngine,
        strategy: RelationshipStrategy | None = None,
    ):
        self.upsert_engine = upsert_engine
        self.strategy = strategy or LexicalRelationshipStrategy()

    def extract(
        self,
        session: GraphSession,
        parsed: ParsedCode,
        language: str,
        context: str,
    ) -> RelationshipStats:
        """Infer and persist relationships for one parsed unit.

        Each edge (with any stub endpoint) is its own transaction; a failing
        edge is recorded and extraction continues.
        """
        stats = RelationshipStats()

        for rel in self.strategy.infer(parsed):
            try:
                with session.transaction():
                    source_id = node_id(
                        rel.source_label,
                        self._key(rel.source_label, rel.source_name, language),
                        context,
                    )
                    target_id, created = self._resolve_target(
                        session, rel.target_label, rel.target_name, language, context
                    )
                    self.upsert_engine.link(
                        session,
                        rel.rel_type,
                        (rel.source_label, source_id),
                        (rel.target_label, target_id),
                        context,
                    )
                stats.counts[rel.rel_type] = stats.counts.get(rel.rel_type, 0) + 1
                stats.stubs_created += int(created)
            except StoreError as e:
                logger.warning(
                    f"Failed to write {rel.rel_type} {rel.source_name} -> {rel.target_name}: {e}"
                )
                stats.failures.append(
                    ElementFailure(rel.rel_type, f"{rel.source_name}->{rel.target_name}", str(e))
                )

        return stats

    def _resolve_target(
        self,
        session: GraphSession,
        label: str,
        name: str,
        language: str,
        context: str,
    ) -> tuple[str, bool]:
        """Find the target node by name, or create a stub for it.

        Language-keyed targets prefer the caller's language, then any
        language indexed under the same name.

        Returns:
            (node id, whether a stub was created)
        """
        if label == "Interface":
            key = {"name": name}
            nid = node_id(label, key, context)
            exists = session.run(
                f"MATCH (n:{quote(label)} {{id: $id}}) RETURN n.id AS id", {"id": nid}
            )
            if exists:
                return nid, False
            return self.upsert_engine.ensure_node(session, label, key, context), True

        rows = session.run(
            f"MATCH (n:{quote(label)}) WHERE n.name = $name AND n.context = $context "
            "RETURN n.id AS id, n.language AS language",
            {"name": name, "context": context},
        )
        for row in rows:
            if row["language"] == language:
                return row["id"], False
        if rows:
            return rows[0]["id"], False

        key = self._key(label, name, language)
        return self.upsert_engine.ensure_node(session, label, key, context), True

    @staticmethod
    def _key(label: str, name: str, language: str) -> dict[str, str]:
        if label == "Interface":
            return {"name": name}
        return {"name": name, "language": language}
