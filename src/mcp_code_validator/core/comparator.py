"""Presence-only comparison of two branches of the same project."""

from loguru import logger

from .context import resolve_context
from .graph_store import GraphSession, GraphStore, quote
from .models import BranchComparison, ComparedElement

# Labels whose presence is compared across branches
COMPARED_LABELS = ("Function", "Class")


class BranchComparator:
    """Set difference of the functions and classes of two branch contexts.

    Elements are identified by (kind, name), so a Function and a Class that
    share a name are distinct. Bodies are not compared. Stub nodes are
    references, not indexed code, and are left out.
    """

    def __init__(self, store: GraphStore):
        self.store = store

    async def compare(
        self, project: str, source_branch: str, target_branch: str
    ) -> BranchComparison:
        """Compare ``source_branch`` against ``target_branch``.

        Swapping the branches swaps ``only_in_source`` and ``only_in_target``
        and leaves ``in_both`` unchanged.
        """
        source_context = resolve_context(project, source_branch)
        target_context = resolve_context(project, target_branch)

        with self.store.session() as session:
            source = self._elements(session, source_context)
            target = self._elements(session, target_context)

        comparison = BranchComparison(
            project=project,
            source_branch=source_branch,
            target_branch=target_branch,
            source_count=len(source),
            target_count=len(target),
            only_in_source=sorted(source - target),
            only_in_target=sorted(target - source),
            in_both=sorted(source & target),
        )

        logger.debug(
            f"Compared {source_context} with {target_context}: "
            f"{len(comparison.only_in_source)} only in source, "
            f"{len(comparison.only_in_target)} only in target, "
            f"{len(comparison.in_both)} common"
        )
        return comparison

    @staticmethod
    def _elements(session: GraphSession, context: str) -> set[ComparedElement]:
        elements: set[ComparedElement] = set()
        for label in COMPARED_LABELS:
            rows = session.run(
                f"MATCH (n:{quote(label)}) "
                "WHERE n.context = $context AND n.is_stub = false "
                "RETURN DISTINCT n.name AS name",
                {"context": context},
            )
            elements.update(
                ComparedElement(kind=label, name=row["name"])
                for row in rows
                if row["name"] is not None
            )
        return elements
