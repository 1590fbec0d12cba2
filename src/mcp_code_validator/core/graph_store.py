"""Kuzu-backed property graph for branch-scoped code entities.

The store owns the database handle (opened once, health-checked, closed on
shutdown) and hands out short-lived sessions. Each external operation works
inside one session and each entity write inside one transaction; nothing
batches writes across entities.

Every node table carries ``id`` (primary key), ``context``, ``is_stub``,
``created_at`` and ``updated_at``. The ``id`` is a digest of label, context and
natural key, which makes (label, natural key, context) unique at the storage
level.
"""

import hashlib
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import kuzu
import orjson
from loguru import logger

from .exceptions import (
    StoreNotInitializedError,
    StoreQueryError,
    StoreUnavailableError,
)


@dataclass(frozen=True)
class NodeSchema:
    """Shape of one node label."""

    label: str
    key_fields: tuple[str, ...]
    attributes: tuple[str, ...] = ()
    boolean_fields: tuple[str, ...] = ()
    display_field: str = "name"

    @property
    def columns(self) -> tuple[str, ...]:
        return self.key_fields + self.attributes


@dataclass(frozen=True)
class RelSchema:
    """Shape of one relationship type."""

    rel_type: str
    endpoints: tuple[tuple[str, str], ...]
    properties: tuple[str, ...] = ()


_LANG_KEY = ("name", "language")

NODE_SCHEMAS: dict[str, NodeSchema] = {
    schema.label: schema
    for schema in (
        NodeSchema("File", ("path",), display_field="path"),
        NodeSchema("Function", _LANG_KEY, ("body",)),
        NodeSchema("Class", _LANG_KEY, ("body",)),
        NodeSchema(
            "ReactComponent",
            _LANG_KEY,
            ("component_type", "props", "hooks", "body", "is_default_export"),
            boolean_fields=("is_default_export",),
        ),
        NodeSchema("ReactHook", ("name", "hook_type", "language"), ("dependencies", "body")),
        NodeSchema("NextJsPattern", ("name", "pattern_type", "language"), ("exports", "body")),
        NodeSchema("FrontendElement", ("name", "element_type", "language"), ("styles", "body")),
        NodeSchema("Module", ("name",)),
        NodeSchema("ExportedItem", ("name", "export_type")),
        NodeSchema("Library", ("name",), ("version", "project_path")),
        NodeSchema("LibraryFunction", ("name", "library")),
        NodeSchema("LibraryClass", ("name", "library")),
        NodeSchema("LibraryConstant", ("name", "library")),
        NodeSchema("LibraryHook", ("name", "library")),
        NodeSchema("LibraryType", ("name", "library")),
        NodeSchema("Interface", ("name",)),
    )
}

REL_SCHEMAS: dict[str, RelSchema] = {
    schema.rel_type: schema
    for schema in (
        RelSchema(
            "CONTAINS",
            (("File", "Function"), ("File", "Class"), ("File", "ReactComponent")),
        ),
        RelSchema("USES", (("File", "ReactHook"),)),
        RelSchema("IMPLEMENTS", (("File", "NextJsPattern"), ("Class", "Interface"))),
        RelSchema("STYLES", (("File", "FrontendElement"),)),
        RelSchema("IMPORTS", (("File", "Module"),), ("imports",)),
        RelSchema("EXPORTS", (("File", "ExportedItem"),)),
        RelSchema("CALLS", (("Function", "Function"),)),
        RelSchema("INSTANTIATES", (("Function", "Class"),)),
        RelSchema("EXTENDS", (("Class", "Class"),)),
        RelSchema(
            "PROVIDES",
            tuple(
                ("Library", member)
                for member in (
                    "LibraryFunction",
                    "LibraryClass",
                    "LibraryConstant",
                    "LibraryHook",
                    "LibraryType",
                )
            ),
        ),
    )
}


def quote(identifier: str) -> str:
    """Backtick-quote a label or relationship type (``CONTAINS`` is a keyword)."""
    return f"`{identifier}`"


def node_id(label: str, key: dict[str, Any], context: str) -> str:
    """Deterministic primary key for (label, natural key, context)."""
    schema = NODE_SCHEMAS[label]
    payload = orjson.dumps([label, context, *(str(key[f]) for f in schema.key_fields)])
    return f"{label}:{hashlib.sha1(payload).hexdigest()}"


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def encode_list(values: list[str] | None) -> str:
    """Store list attributes as JSON strings."""
    return orjson.dumps(list(values or [])).decode()


def decode_list(raw: str | None) -> list[str]:
    if not raw:
        return []
    return orjson.loads(raw)


class GraphSession:
    """One Kuzu connection scoped to a single external operation."""

    def __init__(self, conn: kuzu.Connection):
        self._conn = conn
        self._in_transaction = False

    def run(self, query: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        """Execute a Cypher statement and return rows as dictionaries.

        Raises:
            StoreQueryError: If Kuzu rejects or fails the statement
        """
        try:
            result = self._conn.execute(query, params or {})
        except RuntimeError as e:
            raise StoreQueryError(f"Query failed: {e}", context={"query": query}) from e

        columns = result.get_column_names()
        rows = []
        while result.has_next():
            rows.append(dict(zip(columns, result.get_next(), strict=False)))
        return rows

    def scalar(self, query: str, params: dict[str, Any] | None = None) -> Any:
        """Execute a statement returning a single value (or None)."""
        rows = self.run(query, params)
        if not rows:
            return None
        return next(iter(rows[0].values()))

    @contextmanager
    def transaction(self) -> Iterator["GraphSession"]:
        """Run the enclosed statements as one transaction.

        Nested use joins the outer transaction.
        """
        if self._in_transaction:
            yield self
            return

        self.run("BEGIN TRANSACTION")
        self._in_transaction = True
        try:
            yield self
        except BaseException:
            self._in_transaction = False
            try:
                self.run("ROLLBACK")
            except StoreQueryError as rollback_error:
                logger.warning(f"Rollback failed: {rollback_error}")
            raise
        self._in_transaction = False
        self.run("COMMIT")

    def close(self) -> None:
        self._conn.close()


class GraphStore:
    """Kuzu database handle shared by every component.

    Created once at process start, injected into the components, and closed
    explicitly on shutdown.
    """

    def __init__(self, db_path: Path):
        """Initialize the store handle.

        Args:
            db_path: Directory holding the Kuzu database
        """
        self.db_path = db_path
        self.db: kuzu.Database | None = None
        self._initialized = False

    @property
    def database_file(self) -> Path:
        return self.db_path / "code_graph"

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> None:
        """Open the database and create the schema (idempotent)."""
        if self._initialized:
            return

        # Let Kuzu create the database itself; only the parent must exist
        self.db_path.mkdir(parents=True, exist_ok=True)

        try:
            self.db = kuzu.Database(str(self.database_file))
        except RuntimeError as e:
            raise StoreUnavailableError(
                f"Failed to open graph database at {self.database_file}: {e}"
            ) from e

        self._initialized = True
        with self.session() as session:
            self._create_schema(session)

        logger.info(f"✓ Code graph initialized at {self.database_file}")

    def _create_schema(self, session: GraphSession) -> None:
        """Create node and relationship tables."""
        for schema in NODE_SCHEMAS.values():
            columns = ["id STRING", "context STRING"]
            for column in schema.columns:
                kind = "BOOLEAN" if column in schema.boolean_fields else "STRING"
                columns.append(f"{column} {kind}")
            columns += [
                "is_stub BOOLEAN",
                "created_at INT64",
                "updated_at INT64",
                "PRIMARY KEY (id)",
            ]
            session.run(
                f"CREATE NODE TABLE IF NOT EXISTS {quote(schema.label)} "
                f"({', '.join(columns)})"
            )
            logger.debug(f"Created {schema.label} node table")

        for rel in REL_SCHEMAS.values():
            parts = [f"FROM {quote(src)} TO {quote(dst)}" for src, dst in rel.endpoints]
            parts += ["context STRING", "created_at INT64"]
            parts += [f"{prop} STRING" for prop in rel.properties]
            session.run(
                f"CREATE REL TABLE IF NOT EXISTS {quote(rel.rel_type)} ({', '.join(parts)})"
            )
            logger.debug(f"Created {rel.rel_type} relationship table")

    @contextmanager
    def session(self) -> Iterator[GraphSession]:
        """Acquire a session; it is released on every exit path."""
        if not self._initialized or self.db is None:
            raise StoreNotInitializedError("Graph store is not initialized")

        try:
            conn = kuzu.Connection(self.db)
        except RuntimeError as e:
            raise StoreUnavailableError(f"Failed to open connection: {e}") from e

        session = GraphSession(conn)
        try:
            yield session
        finally:
            session.close()

    def health_check(self) -> bool:
        """Return True when the database answers a trivial query."""
        try:
            with self.session() as session:
                return session.scalar("RETURN 1") == 1
        except Exception as e:
            logger.warning(f"Graph store health check failed: {e}")
            return False

    def close(self) -> None:
        """Close the database handle."""
        if self.db is not None:
            self.db.close()
            self.db = None
        self._initialized = False

        logger.debug("Code graph connection closed")
