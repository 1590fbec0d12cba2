"""Tests for snippet and file validation."""

from mcp_code_validator.core.models import (
    ParsedClass,
    ParsedCode,
    ParsedFunction,
    ValidationStatus,
)


async def _index(components, parsed, file_path="src/user.ts", branch="main"):
    return await components.indexer.index_parsed(
        parsed, file_path, "typescript", project="web", branch=branch
    )


class TestSnippetValidation:
    async def test_found_and_not_found(self, components, sample_parsed):
        await _index(components, sample_parsed)

        snippet = ParsedCode(
            functions=[ParsedFunction("loadUser", "{ different }"), ParsedFunction("ghost", "{}")],
            classes=[ParsedClass("User", "class User {}")],
        )
        report = await components.validator.validate_snippet(
            snippet, "typescript", project="web", branch="main"
        )

        statuses = {r.name: r.status for r in report.results}
        assert statuses == {
            "loadUser": ValidationStatus.FOUND,
            "ghost": ValidationStatus.NOT_FOUND,
            "User": ValidationStatus.FOUND,
        }
        assert report.found == 2
        assert report.not_found == 1

    async def test_stub_counts_as_not_found(self, components, sample_parsed):
        await _index(components, sample_parsed)

        snippet = ParsedCode(classes=[ParsedClass("BaseModel", "class BaseModel {}")])
        report = await components.validator.validate_snippet(
            snippet, "typescript", project="web", branch="main"
        )

        assert report.results[0].status == ValidationStatus.NOT_FOUND

    async def test_other_branch_sees_nothing(self, components, sample_parsed):
        await _index(components, sample_parsed, branch="feature")

        report = await components.validator.validate_snippet(
            sample_parsed, "typescript", project="web", branch="main"
        )
        assert report.found == 0

    async def test_language_is_part_of_identity(self, components, sample_parsed):
        await _index(components, sample_parsed)

        report = await components.validator.validate_snippet(
            sample_parsed, "javascript", project="web", branch="main"
        )
        assert report.found == 0


class TestFileValidation:
    async def test_unchanged_file(self, components, sample_parsed):
        await _index(components, sample_parsed)

        report = await components.validator.validate_file(
            "src/user.ts", sample_parsed, "typescript", project="web", branch="main"
        )

        assert report.file_exists
        assert report.status == "unchanged"
        assert report.matching == 3
        assert all(r.status == ValidationStatus.MATCH for r in report.results)

    async def test_modified_and_new_elements(self, components, sample_parsed):
        await _index(components, sample_parsed)

        changed = ParsedCode(
            functions=[
                ParsedFunction("loadUser", "{ return null; }"),
                ParsedFunction("fetchUser", "{ return api.get(id); }"),
                ParsedFunction("saveUser", "{}"),
            ],
        )
        report = await components.validator.validate_file(
            "src/user.ts", changed, "typescript", project="web", branch="main"
        )

        statuses = {r.name: r.status for r in report.results}
        assert statuses == {
            "loadUser": ValidationStatus.MODIFIED,
            "fetchUser": ValidationStatus.MATCH,
            "saveUser": ValidationStatus.NEW,
        }
        assert report.status == "modified"
        modified = next(r for r in report.results if r.name == "loadUser")
        assert modified.indexed_body == sample_parsed.functions[0].body

    async def test_only_new_elements_is_updated(self, components, sample_parsed):
        await _index(components, sample_parsed)

        added = ParsedCode(functions=[ParsedFunction("brandNew", "{}")])
        report = await components.validator.validate_file(
            "src/user.ts", added, "typescript", project="web", branch="main"
        )
        assert report.status == "updated"

    async def test_unknown_file_is_new(self, components, sample_parsed):
        await _index(components, sample_parsed)

        report = await components.validator.validate_file(
            "src/other.ts", sample_parsed, "typescript", project="web", branch="main"
        )

        assert not report.file_exists
        assert report.status == "new file"
        assert report.new == 3

    async def test_elements_of_other_files_are_new(self, components, sample_parsed):
        await _index(components, sample_parsed, file_path="src/a.ts")
        await _index(components, ParsedCode(), file_path="src/b.ts")

        report = await components.validator.validate_file(
            "src/b.ts", sample_parsed, "typescript", project="web", branch="main"
        )
        assert report.file_exists
        assert report.new == 3

    async def test_duplicate_entries_collapse_to_last(self, components):
        await _index(components, ParsedCode(functions=[ParsedFunction("f", "{ 2 }")]))

        parsed = ParsedCode(
            functions=[ParsedFunction("f", "{ 1 }"), ParsedFunction("f", "{ 2 }")]
        )
        report = await components.validator.validate_file(
            "src/user.ts", parsed, "typescript", project="web", branch="main"
        )

        assert len(report.results) == 1
        assert report.results[0].status == ValidationStatus.MATCH

    async def test_report_serialization(self, components, sample_parsed):
        await _index(components, sample_parsed)

        report = await components.validator.validate_file(
            "src/user.ts", sample_parsed, "typescript", project="web", branch="main"
        )
        data = report.to_dict(verbose=True)

        assert data["summary"] == {"total": 3, "matching": 3, "modified": 0, "new": 0}
        assert data["results"][0]["indexed_body"]
