"""Tests for the mcv command line interface."""

import json

import pytest
from typer.testing import CliRunner

from mcp_code_validator import __version__
from mcp_code_validator.cli.main import app

USER_SOURCE = """
export function loadUser(id) { return fetchUser(id); }
export function fetchUser(id) { return api.get(id); }
"""


class TestCLICommands:
    """Commands run against a throwaway graph in a scratch directory."""

    @pytest.fixture
    def cli_runner(self):
        return CliRunner()

    @pytest.fixture(autouse=True)
    def workspace(self, tmp_path, monkeypatch):
        """Work inside tmp_path with no MCV_* variables leaking in."""
        for var in ("MCV_DB_PATH", "MCV_DEFAULT_PROJECT", "MCV_DEFAULT_BRANCH", "MCV_LOG_LEVEL"):
            monkeypatch.delenv(var, raising=False)
        monkeypatch.chdir(tmp_path)
        (tmp_path / "src").mkdir()
        (tmp_path / "src" / "user.js").write_text(USER_SOURCE)
        return tmp_path

    @pytest.fixture
    def invoke(self, cli_runner, tmp_path):
        db_path = str(tmp_path / "graph")

        def _invoke(*args: str, **kwargs):
            return cli_runner.invoke(app, ["--db-path", db_path, *args], **kwargs)

        return _invoke

    def test_version(self, cli_runner):
        result = cli_runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_invalid_log_level(self, invoke):
        result = invoke("--log-level", "LOUD", "contexts", "list")
        assert result.exit_code == 1

    def test_index_then_validate_unchanged(self, invoke):
        indexed = invoke("index", "src", "-p", "web")
        assert indexed.exit_code == 0, indexed.output
        assert "Indexed 1 files" in indexed.output

        validated = invoke("validate", "src/user.js", "-p", "web")
        assert validated.exit_code == 0, validated.output
        assert "unchanged" in validated.output

    def test_validate_reports_modification(self, invoke, workspace):
        invoke("index", "src/user.js")
        (workspace / "src" / "user.js").write_text(USER_SOURCE.replace("api.get", "api.fetch"))

        result = invoke("validate", "src/user.js")

        assert result.exit_code == 0
        assert "modified" in result.output

    def test_check_exits_2_on_missing_element(self, invoke, workspace):
        invoke("index", "src/user.js")
        snippet = workspace / "snippet.js"
        snippet.write_text("function loadUser() {}\nfunction invented() {}")

        result = invoke("check", "snippet.js")

        assert result.exit_code == 2
        assert "1 found, 1 not found" in result.output

    def test_check_passes_when_everything_exists(self, invoke, workspace):
        invoke("index", "src/user.js")
        snippet = workspace / "snippet.js"
        snippet.write_text("function fetchUser() {}")

        assert invoke("check", "snippet.js").exit_code == 0

    def test_quality_flags_naming_drift(self, invoke, workspace):
        invoke("index", "src/user.js")
        (workspace / "draft.js").write_text("function save_user(u) { return api.put(u); }")

        result = invoke("quality", "draft.js")

        assert result.exit_code == 2
        assert "NAMING_CONVENTION" in result.output

    def test_quality_passes_clean_code(self, invoke, workspace):
        invoke("index", "src/user.js")
        (workspace / "draft.js").write_text("function saveUser(u) { return db.put(u); }")

        result = invoke("quality", "draft.js")

        assert result.exit_code == 0
        assert "No issues" in result.output

    def test_contexts_lifecycle(self, invoke):
        invoke("index", "src", "-p", "web", "-b", "main")
        invoke("index", "src", "-p", "web", "-b", "dev")

        listed = invoke("contexts", "list")
        assert listed.exit_code == 0
        assert "web" in listed.output
        assert "dev" in listed.output

        deleted = invoke("contexts", "delete", "web", "dev", "--yes")
        assert deleted.exit_code == 0
        assert "Deleted context" in deleted.output

        branches = invoke("contexts", "branches", "web")
        assert "main" in branches.output
        assert "dev" not in branches.output

    def test_delete_aborts_without_confirmation(self, invoke):
        invoke("index", "src", "-p", "web")

        result = invoke("contexts", "delete", "web", "main", input="n\n")

        assert result.exit_code != 0
        assert "web" in invoke("contexts", "list").output

    def test_empty_graph(self, invoke):
        result = invoke("contexts", "list")

        assert result.exit_code == 0
        assert "No contexts found" in result.output

    def test_compare(self, invoke, workspace):
        invoke("index", "src", "-p", "web", "-b", "main")
        (workspace / "src" / "user.js").write_text(USER_SOURCE + "\nexport function saveUser() {}\n")
        invoke("index", "src", "-p", "web", "-b", "feature")

        result = invoke("contexts", "compare", "web", "feature", "main")

        assert result.exit_code == 0
        assert "Function: saveUser" in result.output

    def test_relationships(self, invoke):
        invoke("index", "src")

        result = invoke("relationships", "--type", "function-calls")

        assert result.exit_code == 0
        assert "loadUser --[CALLS]--> fetchUser" in result.output

    def test_relationships_unknown_type(self, invoke):
        result = invoke("relationships", "--type", "bogus")
        assert result.exit_code == 1

    def test_deps(self, invoke, workspace):
        package_json = workspace / "package.json"
        package_json.write_text(json.dumps({"dependencies": {"react": "18", "mystery": "1"}}))

        result = invoke("deps", "package.json")

        assert result.exit_code == 0
        assert "Indexed 1/2 libraries" in result.output
        assert "mystery" in result.output
