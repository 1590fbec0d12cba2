"""Context and branch administration."""

from loguru import logger

from .context import branch_context, parse_context, project_prefix
from .exceptions import MissingParameterError
from .graph_store import NODE_SCHEMAS, GraphSession, GraphStore, quote
from .models import ContextSummary

# Summary field per counted label
_SUMMARY_FIELDS = {
    "File": "files",
    "Function": "functions",
    "Class": "classes",
    "ReactComponent": "components",
}


def _require(action: str, **params: str | None) -> None:
    missing = [name for name, value in params.items() if not value]
    if missing:
        raise MissingParameterError(
            f"{' and '.join(missing)} required for {action}",
            context={"action": action, "missing": missing},
        )


class ContextAdmin:
    """Lists, creates and removes project/branch contexts."""

    def __init__(self, store: GraphStore):
        self.store = store

    async def list_contexts(self) -> list[ContextSummary]:
        """Every context holding at least one node, ordered by name."""
        with self.store.session() as session:
            return self._summaries(session)

    async def list_branches(self, project: str | None) -> list[ContextSummary]:
        """Contexts of one project, ordered by branch."""
        _require("list-branches", project=project)
        prefix = project_prefix(project)

        with self.store.session() as session:
            return [s for s in self._summaries(session) if s.context.startswith(prefix)]

    async def create(self, project: str | None, branch: str | None) -> int:
        """Make sure a context can be used; nothing is written.

        Contexts come into existence when the first node is indexed into them.

        Returns:
            Number of nodes already in the context (0 when it is new)
        """
        _require("create", project=project, branch=branch)
        context = branch_context(project, branch).key

        with self.store.session() as session:
            return self._count(session, context)

    async def delete(self, project: str | None, branch: str | None) -> int:
        """Remove every node and edge of one context.

        Returns:
            Number of nodes deleted
        """
        _require("delete", project=project, branch=branch)
        context = branch_context(project, branch).key

        with self.store.session() as session:
            deleted = self._detach_delete(session, context)

        logger.info(f"Deleted context {context} ({deleted} nodes)")
        return deleted

    async def clear(self, project: str | None, branch: str | None) -> int:
        """Empty one context; same effect as :meth:`delete`."""
        _require("clear", project=project, branch=branch)
        context = branch_context(project, branch).key

        with self.store.session() as session:
            cleared = self._detach_delete(session, context)

        logger.info(f"Cleared {cleared} nodes from context {context}")
        return cleared

    @staticmethod
    def _count(session: GraphSession, context: str) -> int:
        total = 0
        for label in NODE_SCHEMAS:
            total += session.scalar(
                f"MATCH (n:{quote(label)}) WHERE n.context = $context RETURN count(n)",
                {"context": context},
            ) or 0
        return total

    @staticmethod
    def _detach_delete(session: GraphSession, context: str) -> int:
        deleted = 0
        with session.transaction():
            for label in NODE_SCHEMAS:
                count = session.scalar(
                    f"MATCH (n:{quote(label)}) WHERE n.context = $context RETURN count(n)",
                    {"context": context},
                ) or 0
                if count:
                    session.run(
                        f"MATCH (n:{quote(label)}) WHERE n.context = $context DETACH DELETE n",
                        {"context": context},
                    )
                    deleted += count
        return deleted

    @staticmethod
    def _summaries(session: GraphSession) -> list[ContextSummary]:
        summaries: dict[str, ContextSummary] = {}

        for label in NODE_SCHEMAS:
            rows = session.run(
                f"MATCH (n:{quote(label)}) RETURN n.context AS context, count(n) AS count"
            )
            for row in rows:
                context = row["context"]
                if context is None:
                    continue
                summary = summaries.get(context)
                if summary is None:
                    parsed = parse_context(context)
                    summary = ContextSummary(
                        context=context, project=parsed.project, branch=parsed.branch
                    )
                    summaries[context] = summary
                summary.nodes += row["count"]
                field_name = _SUMMARY_FIELDS.get(label)
                if field_name:
                    setattr(summary, field_name, getattr(summary, field_name) + row["count"])

        return [summaries[key] for key in sorted(summaries)]
