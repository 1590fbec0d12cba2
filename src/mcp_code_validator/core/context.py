"""Project/branch context resolution.

A context is the string ``"<project>:<branch>"`` carried by every node and edge
in the graph. It is the only isolation mechanism between projects and
branches, so two distinct context strings never share graph state.

``:`` is reserved in project names. Branch names may contain it (for example
``release:2024``), which keeps a first-colon split of the context string
unambiguous.
"""

from dataclasses import dataclass

from .exceptions import ContextError

DEFAULT_PROJECT = "default"
DEFAULT_BRANCH = "main"
CONTEXT_SEPARATOR = ":"


@dataclass(frozen=True)
class BranchContext:
    """A resolved project/branch pair."""

    project: str
    branch: str

    @property
    def key(self) -> str:
        """Composite partition key stored on nodes and edges."""
        return f"{self.project}{CONTEXT_SEPARATOR}{self.branch}"

    def __str__(self) -> str:
        return self.key


def resolve_context(project: str | None = None, branch: str | None = None) -> str:
    """Build the partition key for a project and branch.

    Missing or empty inputs fall back to ``"default"`` and ``"main"``.

    Args:
        project: Project name (must not contain ``:``)
        branch: Branch name (free-form)

    Returns:
        Context string ``"<project>:<branch>"``

    Raises:
        ContextError: If the project name contains the reserved separator
    """
    return branch_context(project, branch).key


def branch_context(project: str | None = None, branch: str | None = None) -> BranchContext:
    """Same as :func:`resolve_context` but returns the structured pair."""
    project = project or DEFAULT_PROJECT
    branch = branch or DEFAULT_BRANCH

    if CONTEXT_SEPARATOR in project:
        raise ContextError(
            f"Project name '{project}' must not contain '{CONTEXT_SEPARATOR}'",
            context={"project": project, "branch": branch},
        )

    return BranchContext(project=project, branch=branch)


def parse_context(context: str) -> BranchContext:
    """Recover project and branch from a stored context string.

    Splits on the first separator only, so branches containing ``:`` survive.
    A string without a separator is treated as a project on the default branch.
    """
    project, sep, branch = context.partition(CONTEXT_SEPARATOR)
    if not sep:
        return BranchContext(project=project or DEFAULT_PROJECT, branch=DEFAULT_BRANCH)
    return BranchContext(project=project or DEFAULT_PROJECT, branch=branch or DEFAULT_BRANCH)


def project_prefix(project: str) -> str:
    """Prefix shared by every context of ``project``."""
    return f"{project}{CONTEXT_SEPARATOR}"
