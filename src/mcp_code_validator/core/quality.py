"""Code quality checks of new code against what a context already holds.

Three checks run per parsed function:

- naming convention: the dominant style (camelCase or snake_case) of the
  functions indexed in the context, inferred from names that clearly follow
  one style; a new name that clearly follows the other one is flagged
- near-duplicate bodies: token-set Jaccard similarity against every indexed
  function body of the same language
- similar names: indexed functions whose name contains the first few
  characters of the new one
"""

import re

from loguru import logger

from ..config.defaults import DUPLICATE_SIMILARITY, MAX_RELATED_NAMES, SIMILAR_NAME_PREFIX
from .context import resolve_context
from .graph_store import GraphStore, quote
from .models import IssueSeverity, ParsedCode, QualityIssue, QualityReport

CAMEL_CASE = re.compile(r"^[a-z][a-z0-9]*(?:[A-Z][a-z0-9]*)+$")
SNAKE_CASE = re.compile(r"^[a-z][a-z0-9]*(?:_[a-z0-9]+)+$")

_TOKEN_SPLIT = re.compile(r"\W+")


def naming_style(name: str) -> str | None:
    """``camelCase``, ``snake_case`` or None for names fitting neither or both."""
    if CAMEL_CASE.match(name):
        return "camelCase"
    if SNAKE_CASE.match(name):
        return "snake_case"
    return None


def body_tokens(body: str) -> set[str]:
    """Lowercased word tokens longer than two characters."""
    return {token for token in _TOKEN_SPLIT.split(body.lower()) if len(token) > 2}


def similarity(first: str, second: str) -> float:
    """Jaccard similarity of the token sets of two bodies."""
    a, b = body_tokens(first), body_tokens(second)
    if not a or not b:
        return 0.0
    return len(a & b) / len(a | b)


def infer_convention(names: list[str]) -> str | None:
    """Dominant naming style among ``names``; None on a tie or no evidence."""
    camel = sum(1 for name in names if naming_style(name) == "camelCase")
    snake = sum(1 for name in names if naming_style(name) == "snake_case")
    if camel == snake:
        return None
    return "camelCase" if camel > snake else "snake_case"


class CodeQualityAnalyzer:
    """Checks parsed functions for naming drift and duplicated logic."""

    def __init__(self, store: GraphStore):
        self.store = store

    async def check(
        self,
        parsed: ParsedCode,
        language: str,
        project: str | None = None,
        branch: str | None = None,
    ) -> QualityReport:
        """Check every parsed function against the indexed functions of a context.

        Stub functions are ignored; only indexed declarations count as evidence.

        Args:
            parsed: Parser output for the new code
            language: Language the new code is written in
            project: Project name
            branch: Branch name

        Returns:
            QualityReport listing one issue per finding
        """
        context = resolve_context(project, branch)
        with self.store.session() as session:
            rows = session.run(
                f"MATCH (f:{quote('Function')}) WHERE f.context = $context "
                "AND f.language = $language AND f.is_stub = false "
                "RETURN f.name AS name, f.body AS body",
                {"context": context, "language": language},
            )
        indexed = {row["name"]: row["body"] or "" for row in rows}

        report = QualityReport(
            context=context,
            language=language,
            naming_convention=infer_convention(list(indexed)),
            functions_checked=len(parsed.functions),
        )

        for func in parsed.functions:
            others = {name: body for name, body in indexed.items() if name != func.name}
            report.issues.extend(self._naming(func.name, report.naming_convention))
            report.issues.extend(self._duplicates(func.name, func.body, others))
            report.issues.extend(self._similar_names(func.name, others))

        logger.debug(
            f"Quality check in {context}: {report.functions_checked} functions, "
            f"{len(report.issues)} issues"
        )
        return report

    @staticmethod
    def _naming(name: str, convention: str | None) -> list[QualityIssue]:
        style = naming_style(name)
        if convention is None or style is None or style == convention:
            return []
        return [
            QualityIssue(
                kind="NAMING_CONVENTION",
                element=name,
                severity=IssueSeverity.MEDIUM,
                message=f"'{name}' is {style}; indexed functions use {convention}",
            )
        ]

    @staticmethod
    def _duplicates(name: str, body: str, others: dict[str, str]) -> list[QualityIssue]:
        scored = sorted(
            ((similarity(body, other_body), other) for other, other_body in others.items()),
            reverse=True,
        )
        matches = [other for score, other in scored if score > DUPLICATE_SIMILARITY]
        if not matches:
            return []
        return [
            QualityIssue(
                kind="DUPLICATE_CODE",
                element=name,
                severity=IssueSeverity.HIGH,
                message=f"'{name}' is nearly identical to {len(matches)} indexed function(s)",
                related=matches[:MAX_RELATED_NAMES],
            )
        ]

    @staticmethod
    def _similar_names(name: str, others: dict[str, str]) -> list[QualityIssue]:
        if len(name) < SIMILAR_NAME_PREFIX:
            return []
        prefix = name[:SIMILAR_NAME_PREFIX].lower()
        matches = sorted(other for other in others if prefix in other.lower())
        if not matches:
            return []
        related = matches[:MAX_RELATED_NAMES]
        return [
            QualityIssue(
                kind="SIMILAR_NAME",
                element=name,
                severity=IssueSeverity.LOW,
                message=f"'{name}' resembles existing function(s): {', '.join(related)}",
                related=related,
            )
        ]
