"""Data models shared by the parser, the graph engine and its outer surfaces."""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Parser output
# ---------------------------------------------------------------------------


@dataclass
class ParsedFunction:
    """A function, method or function-valued binding."""

    name: str
    body: str


@dataclass
class ParsedClass:
    """A class declaration; ``body`` holds the full declaration text."""

    name: str
    body: str


@dataclass
class ReactComponent:
    """A functional or class React component."""

    name: str
    component_type: str  # functional, class
    props: list[str] = field(default_factory=list)
    hooks: list[str] = field(default_factory=list)
    body: str = ""
    is_default_export: bool = False


@dataclass
class ReactHook:
    """A call to a React hook (``useState``, ``useEffect``, custom ``useX``)."""

    name: str
    hook_type: str  # state, effect, callback, memo, ref, context, reducer, custom
    dependencies: list[str] = field(default_factory=list)
    body: str = ""


@dataclass
class NextJsPattern:
    """A Next.js convention (API handler, data fetching, app router export)."""

    name: str
    pattern_type: str  # page, api, middleware, layout, app-router
    exports: list[str] = field(default_factory=list)
    body: str = ""


@dataclass
class FrontendElement:
    """A CSS-in-JS element (styled-components, emotion)."""

    name: str
    element_type: str  # styled-component, emotion
    styles: str = ""
    body: str = ""


@dataclass
class ImportInfo:
    """An import statement: target module plus imported names."""

    source: str
    imports: list[str] = field(default_factory=list)


@dataclass
class ExportInfo:
    """An exported name."""

    name: str
    export_type: str  # default, named


@dataclass
class ParsedCode:
    """Typed element lists extracted from one source unit.

    The lists are unordered and not deduplicated; the graph's identity-based
    upsert collapses repeated entries.
    """

    functions: list[ParsedFunction] = field(default_factory=list)
    classes: list[ParsedClass] = field(default_factory=list)
    react_components: list[ReactComponent] = field(default_factory=list)
    react_hooks: list[ReactHook] = field(default_factory=list)
    nextjs_patterns: list[NextJsPattern] = field(default_factory=list)
    frontend_elements: list[FrontendElement] = field(default_factory=list)
    imports: list[ImportInfo] = field(default_factory=list)
    exports: list[ExportInfo] = field(default_factory=list)

    @property
    def total_elements(self) -> int:
        return (
            len(self.functions)
            + len(self.classes)
            + len(self.react_components)
            + len(self.react_hooks)
            + len(self.nextjs_patterns)
            + len(self.frontend_elements)
        )


@dataclass
class FunctionInput:
    """A loose function submitted for indexing without a parsed file."""

    name: str
    body: str
    file_path: str | None = None


@dataclass
class LibraryAPI:
    """Known public surface of a library."""

    name: str
    functions: list[str] = field(default_factory=list)
    classes: list[str] = field(default_factory=list)
    constants: list[str] = field(default_factory=list)
    types: list[str] = field(default_factory=list)
    hooks: list[str] = field(default_factory=list)
    version: str = "unknown"

    @property
    def member_count(self) -> int:
        return (
            len(self.functions)
            + len(self.classes)
            + len(self.constants)
            + len(self.types)
            + len(self.hooks)
        )


# ---------------------------------------------------------------------------
# Engine results
# ---------------------------------------------------------------------------


class ValidationStatus(str, Enum):
    """Classification of a parsed element against stored state."""

    FOUND = "FOUND"
    NOT_FOUND = "NOT_FOUND"
    MATCH = "MATCH"
    MODIFIED = "MODIFIED"
    NEW = "NEW"


@dataclass
class ElementFailure:
    """An element whose write failed inside an indexing batch."""

    kind: str
    name: str
    message: str


@dataclass
class IndexResult:
    """Itemized outcome of one indexing call.

    The call is not atomic: everything counted here was committed even when
    ``failures`` is non-empty.
    """

    file_path: str | None
    context: str
    counts: dict[str, int] = field(default_factory=dict)
    relationships: dict[str, int] = field(default_factory=dict)
    failures: list[ElementFailure] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.failures

    @property
    def total_indexed(self) -> int:
        return sum(self.counts.values())

    def record(self, kind: str) -> None:
        self.counts[kind] = self.counts.get(kind, 0) + 1

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["success"] = self.success
        data["total_indexed"] = self.total_indexed
        return data


@dataclass
class DependencyIndexResult:
    """Outcome of indexing package.json dependencies."""

    context: str
    total_dependencies: int = 0
    indexed_libraries: int = 0
    indexed_apis: int = 0
    supported: list[str] = field(default_factory=list)
    unsupported: list[str] = field(default_factory=list)
    failures: list[ElementFailure] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ElementValidation:
    """Classification of one parsed element."""

    name: str
    element_type: str  # Function, Class
    status: ValidationStatus
    message: str = ""
    indexed_body: str | None = None

    def to_dict(self, verbose: bool = False) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "type": self.element_type,
            "status": self.status.value,
            "message": self.message,
        }
        if verbose and self.indexed_body is not None:
            data["indexed_body"] = self.indexed_body
        return data


@dataclass
class SnippetValidationReport:
    """Snippet-mode existence report."""

    context: str
    results: list[ElementValidation] = field(default_factory=list)

    @property
    def found(self) -> int:
        return sum(1 for r in self.results if r.status == ValidationStatus.FOUND)

    @property
    def not_found(self) -> int:
        return sum(1 for r in self.results if r.status == ValidationStatus.NOT_FOUND)

    def to_dict(self, verbose: bool = False) -> dict[str, Any]:
        return {
            "context": self.context,
            "found": self.found,
            "not_found": self.not_found,
            "results": [r.to_dict(verbose) for r in self.results],
        }


@dataclass
class FileValidationReport:
    """File-mode diff report."""

    file_path: str
    context: str
    file_exists: bool
    results: list[ElementValidation] = field(default_factory=list)

    def _count(self, status: ValidationStatus) -> int:
        return sum(1 for r in self.results if r.status == status)

    @property
    def matching(self) -> int:
        return self._count(ValidationStatus.MATCH)

    @property
    def modified(self) -> int:
        return self._count(ValidationStatus.MODIFIED)

    @property
    def new(self) -> int:
        return self._count(ValidationStatus.NEW)

    @property
    def status(self) -> str:
        """Overall file status."""
        if not self.file_exists:
            return "new file"
        if self.modified:
            return "modified"
        if self.new:
            return "updated"
        return "unchanged"

    def to_dict(self, verbose: bool = False) -> dict[str, Any]:
        return {
            "file_path": self.file_path,
            "context": self.context,
            "file_exists": self.file_exists,
            "status": self.status,
            "summary": {
                "total": len(self.results),
                "matching": self.matching,
                "modified": self.modified,
                "new": self.new,
            },
            "results": [r.to_dict(verbose) for r in self.results],
        }


@dataclass(frozen=True, order=True)
class ComparedElement:
    """An element identity used by the branch comparator."""

    kind: str
    name: str


@dataclass
class BranchComparison:
    """Presence-only set difference between two branch contexts."""

    project: str
    source_branch: str
    target_branch: str
    source_count: int
    target_count: int
    only_in_source: list[ComparedElement] = field(default_factory=list)
    only_in_target: list[ComparedElement] = field(default_factory=list)
    in_both: list[ComparedElement] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ContextSummary:
    """Per-context node counts."""

    context: str
    project: str
    branch: str
    files: int = 0
    functions: int = 0
    classes: int = 0
    components: int = 0
    nodes: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class RelationshipRecord:
    """One edge as reported by the relationship analyzer."""

    source: str
    target: str
    rel_type: str
    details: list[str] | None = None


@dataclass
class RelationshipReport:
    """Relationship analysis of a single context."""

    context: str
    analysis_type: str
    relationships: list[RelationshipRecord] = field(default_factory=list)
    node_counts: dict[str, int] = field(default_factory=dict)
    orphans: list[tuple[str, str]] = field(default_factory=list)

    @property
    def counts_by_type(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for rel in self.relationships:
            counts[rel.rel_type] = counts.get(rel.rel_type, 0) + 1
        return counts

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["counts_by_type"] = self.counts_by_type
        data["orphans"] = [{"label": label, "name": name} for label, name in self.orphans]
        return data


# ---------------------------------------------------------------------------
# Code quality
# ---------------------------------------------------------------------------


class IssueSeverity(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


@dataclass
class QualityIssue:
    """A finding about one parsed function, relative to the indexed code."""

    kind: str  # NAMING_CONVENTION, DUPLICATE_CODE, SIMILAR_NAME
    element: str
    severity: IssueSeverity
    message: str
    related: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["severity"] = self.severity.value
        return data


@dataclass
class QualityReport:
    """Code quality of new code measured against one context."""

    context: str
    language: str
    naming_convention: str | None = None
    functions_checked: int = 0
    issues: list[QualityIssue] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not any(i.severity != IssueSeverity.LOW for i in self.issues)

    def to_dict(self) -> dict[str, Any]:
        return {
            "context": self.context,
            "language": self.language,
            "naming_convention": self.naming_convention,
            "functions_checked": self.functions_checked,
            "passed": self.passed,
            "issues": [i.to_dict() for i in self.issues],
        }
