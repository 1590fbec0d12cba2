"""Tests for the known library API tables."""

import json

from mcp_code_validator.config.library_apis import (
    KNOWN_LIBRARY_APIS,
    get_library_api,
    parse_package_json_dependencies,
)


class TestLookup:
    def test_exact_match(self):
        api = get_library_api("react")

        assert api is not None
        assert api.name == "react"
        assert "useState" in api.hooks
        assert api.member_count > 0

    def test_submodule_falls_back_to_base(self):
        api = get_library_api("lodash/fp")
        assert api is not None
        assert api.name == "lodash"

    def test_subpath_entry_wins_over_base(self):
        api = get_library_api("next/router")
        assert api.name == "next/router"
        assert "useRouter" in api.functions

    def test_scoped_packages_match_exactly(self):
        assert get_library_api("@emotion/react") is not None
        assert get_library_api("@emotion/styled") is None

    def test_unknown_library(self):
        assert get_library_api("left-pad") is None

    def test_lookups_do_not_share_lists(self):
        get_library_api("uuid").functions.append("v9")
        assert "v9" not in KNOWN_LIBRARY_APIS["uuid"]["functions"]


class TestPackageJson:
    def test_sections_merged_in_order(self):
        content = json.dumps(
            {
                "dependencies": {"react": "18", "axios": "1"},
                "devDependencies": {"zod": "3", "react": "18"},
                "peerDependencies": {"react-dom": "18"},
            }
        )
        assert parse_package_json_dependencies(content) == ["react", "axios", "zod", "react-dom"]

    def test_missing_sections(self):
        assert parse_package_json_dependencies('{"name": "app"}') == []

    def test_invalid_json(self):
        assert parse_package_json_dependencies("{ nope") == []

    def test_non_object(self):
        assert parse_package_json_dependencies("[1, 2]") == []
