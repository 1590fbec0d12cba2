"""Tests for the MCP tool handlers and server dispatch."""

import json

import pytest

from mcp_code_validator.config.settings import Settings
from mcp_code_validator.mcp.graph_handlers import GraphHandlers
from mcp_code_validator.mcp.server import MCPCodeValidatorServer
from mcp_code_validator.mcp.tool_schemas import MANAGE_CONTEXT_ACTIONS, get_tool_schemas

SOURCE = """
export function loadUser(id) { return fetchUser(id); }
export function fetchUser(id) { return api.get(id); }
"""


def _payload(result):
    assert not result.isError, result.content[0].text
    return json.loads(result.content[0].text)


@pytest.fixture
def handlers(components):
    return GraphHandlers(components)


class TestIndexing:
    async def test_index_file(self, handlers):
        result = await handlers.handle_index_file(
            {"file_path": "src/user.js", "content": SOURCE, "project": "web", "branch": "main"}
        )

        data = _payload(result)
        assert data["status"] == "success"
        assert data["context"] == "web:main"
        assert data["counts"]["Function"] == 2
        assert data["relationships"]["CALLS"] >= 1

    async def test_index_file_requires_path_and_content(self, handlers):
        result = await handlers.handle_index_file({"content": SOURCE})
        assert result.isError

    async def test_scope_falls_back_to_settings(self, handlers):
        data = _payload(
            await handlers.handle_index_file({"file_path": "a.ts", "content": "function a() {}"})
        )
        assert data["context"] == "default:main"

    async def test_index_functions(self, handlers):
        result = await handlers.handle_index_functions(
            {
                "functions": [
                    {"name": "a", "body": "{ b(); }"},
                    {"name": "b", "body": "{}", "file_path": "lib/b.ts"},
                ],
                "branch": "dev",
            }
        )

        data = _payload(result)
        assert data["counts"] == {"Function": 2}
        assert data["context"] == "default:dev"

    async def test_index_functions_rejects_malformed_entries(self, handlers):
        result = await handlers.handle_index_functions({"functions": [{"name": "a"}]})
        assert result.isError

    async def test_index_dependencies(self, handlers):
        package_json = json.dumps({"dependencies": {"axios": "1.0.0", "mystery": "0.0.1"}})
        data = _payload(await handlers.handle_index_dependencies({"package_json": package_json}))

        assert data["supported"] == ["axios"]
        assert data["unsupported"] == ["mystery"]


class TestValidation:
    async def test_validate_code(self, handlers):
        await handlers.handle_index_file(
            {"file_path": "src/user.js", "content": SOURCE, "project": "web"}
        )

        data = _payload(
            await handlers.handle_validate_code(
                {
                    "code": "function loadUser() {}\nfunction invented() {}",
                    "file_extension": "js",
                    "project": "web",
                }
            )
        )

        assert data["found"] == 1
        assert data["not_found"] == 1
        assert data["summary"] == "1 found, 1 not found in web:main"

    async def test_validate_file(self, handlers):
        await handlers.handle_index_file({"file_path": "src/user.js", "content": SOURCE})

        changed = SOURCE.replace("api.get(id)", "api.get(id, { cache: true })")
        data = _payload(
            await handlers.handle_validate_file({"file_path": "src/user.js", "content": changed})
        )

        assert data["file_status"] == "modified"
        assert data["summary"]["matching"] == 1
        assert data["summary"]["modified"] == 1
        assert data["summary_line"].startswith("src/user.js: modified")

    async def test_validate_code_requires_code(self, handlers):
        assert (await handlers.handle_validate_code({})).isError

    async def test_check_code_quality(self, handlers):
        await handlers.handle_index_file({"file_path": "src/user.js", "content": SOURCE})

        data = _payload(
            await handlers.handle_check_code_quality(
                {"code": "function save_user(u) { return api.put(u); }", "file_extension": "js"}
            )
        )

        assert data["naming_convention"] == "camelCase"
        assert data["passed"] is False
        assert [i["kind"] for i in data["issues"]] == ["NAMING_CONVENTION"]
        assert data["summary"] == "1 issues in 1 functions against default:main"

    async def test_check_code_quality_requires_code(self, handlers):
        assert (await handlers.handle_check_code_quality({})).isError


class TestManageContexts:
    async def test_list_and_branches(self, handlers):
        await handlers.handle_index_file(
            {"file_path": "a.ts", "content": "function a() {}", "project": "web", "branch": "dev"}
        )

        listed = _payload(await handlers.handle_manage_contexts({"action": "list"}))
        assert listed["total"] == 1
        assert listed["contexts"][0]["context"] == "web:dev"

        branches = _payload(
            await handlers.handle_manage_contexts({"action": "list-branches", "project": "web"})
        )
        assert [b["branch"] for b in branches["branches"]] == ["dev"]

    async def test_create_and_delete(self, handlers):
        created = _payload(
            await handlers.handle_manage_contexts(
                {"action": "create", "project": "web", "branch": "fresh"}
            )
        )
        assert created["existing_nodes"] == 0

        await handlers.handle_index_file(
            {"file_path": "a.ts", "content": "function a() {}", "project": "web", "branch": "fresh"}
        )
        deleted = _payload(
            await handlers.handle_manage_contexts(
                {"action": "delete", "project": "web", "branch": "fresh"}
            )
        )
        assert deleted["nodes_removed"] == 2

    async def test_compare_branches(self, handlers):
        for branch, name in (("main", "a"), ("feature", "b")):
            await handlers.handle_index_file(
                {
                    "file_path": "x.ts",
                    "content": f"function {name}() {{}}",
                    "project": "web",
                    "branch": branch,
                }
            )

        data = _payload(
            await handlers.handle_manage_contexts(
                {
                    "action": "compare-branches",
                    "project": "web",
                    "branch": "feature",
                    "target_branch": "main",
                }
            )
        )

        assert data["only_in_source"] == [{"kind": "Function", "name": "b"}]
        assert data["only_in_target"] == [{"kind": "Function", "name": "a"}]

    @pytest.mark.parametrize(
        "args",
        [
            {"action": "delete", "project": "web"},
            {"action": "list-branches"},
            {"action": "compare-branches", "project": "web", "branch": "main"},
            {"action": "explode"},
        ],
    )
    async def test_invalid_requests(self, handlers, args):
        assert (await handlers.handle_manage_contexts(args)).isError


class TestAnalyzeRelationships:
    async def test_function_calls(self, handlers):
        await handlers.handle_index_file({"file_path": "src/user.js", "content": SOURCE})

        data = _payload(
            await handlers.handle_analyze_relationships({"analysis_type": "function-calls"})
        )

        assert {"source": "loadUser", "target": "fetchUser", "rel_type": "CALLS", "details": None} in data[
            "relationships"
        ]

    async def test_unknown_analysis_type(self, handlers):
        result = await handlers.handle_analyze_relationships({"analysis_type": "bogus"})
        assert result.isError


class TestToolSchemas:
    def test_tool_names(self):
        names = {tool.name for tool in get_tool_schemas()}
        assert names == {
            "index_file",
            "index_functions",
            "validate_code",
            "validate_file",
            "check_code_quality",
            "manage_contexts",
            "analyze_relationships",
            "index_dependencies",
        }

    def test_manage_contexts_actions(self):
        tool = next(t for t in get_tool_schemas() if t.name == "manage_contexts")
        assert tool.inputSchema["properties"]["action"]["enum"] == list(MANAGE_CONTEXT_ACTIONS)


class TestServerDispatch:
    @pytest.fixture
    async def server(self, tmp_path):
        server = MCPCodeValidatorServer(Settings(db_path=tmp_path / "server-graph"))
        yield server
        await server.cleanup()

    async def test_call_tool_initializes_lazily(self, server):
        result = await server.call_tool("manage_contexts", {"action": "list"})

        assert not result.isError
        assert json.loads(result.content[0].text)["contexts"] == []

    async def test_unknown_tool(self, server):
        result = await server.call_tool("drop_database", {})

        assert result.isError
        assert "Unknown tool" in result.content[0].text
