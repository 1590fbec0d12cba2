"""Tests for relationship analysis."""

import pytest

from mcp_code_validator.core.exceptions import CodeValidatorError
from mcp_code_validator.core.models import ImportInfo, ParsedCode


@pytest.fixture
async def indexed(components, sample_parsed):
    sample_parsed.imports = [ImportInfo("./api", ["fetch", "post"])]
    await components.indexer.index_parsed(
        sample_parsed, "src/user.ts", "typescript", project="web", branch="main"
    )
    return components


class TestRelationshipAnalyzer:
    async def test_function_calls(self, indexed):
        report = await indexed.analyzer.analyze("web", "main", "function-calls")

        pairs = {(r.source, r.target) for r in report.relationships}
        assert ("loadUser", "fetchUser") in pairs
        assert {r.rel_type for r in report.relationships} == {"CALLS"}

    async def test_class_inheritance(self, indexed):
        report = await indexed.analyzer.analyze("web", "main", "class-inheritance")

        assert report.counts_by_type == {"EXTENDS": 1, "IMPLEMENTS": 1}

    async def test_imports_carry_names(self, indexed):
        report = await indexed.analyzer.analyze("web", "main", "imports")

        assert len(report.relationships) == 1
        record = report.relationships[0]
        assert record.source == "src/user.ts"
        assert record.target == "./api"
        assert record.details == ["fetch", "post"]

    async def test_dependencies(self, indexed):
        report = await indexed.analyzer.analyze("web", "main", "dependencies")

        assert [(r.source, r.target) for r in report.relationships] == [("loadUser", "User")]

    async def test_all_combines_types(self, indexed):
        report = await indexed.analyzer.analyze("web", "main")

        assert {"CALLS", "EXTENDS", "IMPLEMENTS", "IMPORTS", "INSTANTIATES"} <= set(
            report.counts_by_type
        )

    async def test_element_filter(self, indexed):
        report = await indexed.analyzer.analyze("web", "main", "all", element_name="fetchUser")

        assert report.relationships
        for record in report.relationships:
            assert "fetchUser" in (record.source, record.target)

    async def test_node_counts_sorted_descending(self, indexed):
        report = await indexed.analyzer.analyze("web", "main")

        counts = list(report.node_counts.values())
        assert counts == sorted(counts, reverse=True)
        assert report.node_counts["File"] == 1

    async def test_orphans(self, components):
        await components.indexer.index_parsed(
            ParsedCode(), "src/empty.ts", "typescript", project="web", branch="main"
        )

        report = await components.analyzer.analyze("web", "main")

        assert report.orphans == [("File", "src/empty.ts")]

    async def test_other_context_is_empty(self, indexed):
        report = await indexed.analyzer.analyze("web", "dev")

        assert report.relationships == []
        assert report.node_counts == {}

    async def test_unknown_type_rejected(self, indexed):
        with pytest.raises(CodeValidatorError):
            await indexed.analyzer.analyze("web", "main", "everything")
