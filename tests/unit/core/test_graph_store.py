"""Tests for the Kuzu graph store: lifecycle, sessions and transactions."""

import pytest

from mcp_code_validator.core.exceptions import StoreNotInitializedError, StoreQueryError
from mcp_code_validator.core.graph_store import (
    NODE_SCHEMAS,
    REL_SCHEMAS,
    GraphStore,
    decode_list,
    encode_list,
    node_id,
)


class TestLifecycle:
    def test_session_before_initialize_raises(self, tmp_path):
        store = GraphStore(tmp_path / "graph")
        with pytest.raises(StoreNotInitializedError):
            with store.session():
                pass

    def test_initialize_is_idempotent(self, store):
        store.initialize()
        assert store.is_initialized
        assert store.health_check()

    def test_health_check_after_close(self, tmp_path):
        store = GraphStore(tmp_path / "graph")
        store.initialize()
        store.close()
        assert not store.health_check()

    def test_schema_survives_reopen(self, tmp_path):
        store = GraphStore(tmp_path / "graph")
        store.initialize()
        store.close()

        reopened = GraphStore(tmp_path / "graph")
        reopened.initialize()
        try:
            assert reopened.health_check()
        finally:
            reopened.close()


class TestSession:
    def test_run_returns_dict_rows(self, store):
        with store.session() as session:
            assert session.run("RETURN 1 AS one") == [{"one": 1}]

    def test_scalar(self, store):
        with store.session() as session:
            assert session.scalar("RETURN 42") == 42

    def test_invalid_query_raises_store_query_error(self, store):
        with store.session() as session:
            with pytest.raises(StoreQueryError):
                session.run("THIS IS NOT CYPHER")

    def test_transaction_rolls_back_on_error(self, store, engine, query):
        with store.session() as session:
            with pytest.raises(RuntimeError):
                with session.transaction():
                    engine.upsert(
                        session,
                        "Function",
                        {"name": "doomed", "language": "typescript"},
                        {"body": "{}"},
                        "default:main",
                    )
                    raise RuntimeError("abort")

        assert query("MATCH (n:`Function`) RETURN n.name AS name") == []

    def test_nested_transaction_joins_outer(self, store, engine, query):
        with store.session() as session:
            with session.transaction():
                with session.transaction():
                    engine.upsert(
                        session, "Module", {"name": "react"}, {}, "default:main"
                    )

        assert query("MATCH (n:`Module`) RETURN n.name AS name") == [{"name": "react"}]


class TestHelpers:
    def test_node_id_is_stable(self):
        key = {"name": "f", "language": "typescript"}
        assert node_id("Function", key, "a:main") == node_id("Function", key, "a:main")

    def test_node_id_differs_by_context(self):
        key = {"name": "f", "language": "typescript"}
        assert node_id("Function", key, "a:main") != node_id("Function", key, "a:dev")

    def test_node_id_differs_by_language(self):
        ts = node_id("Function", {"name": "f", "language": "typescript"}, "a:main")
        js = node_id("Function", {"name": "f", "language": "javascript"}, "a:main")
        assert ts != js

    def test_list_encoding(self):
        assert decode_list(encode_list(["a", "b"])) == ["a", "b"]
        assert decode_list(encode_list(None)) == []
        assert decode_list(None) == []

    def test_every_edge_endpoint_is_a_known_label(self):
        for rel in REL_SCHEMAS.values():
            for source, target in rel.endpoints:
                assert source in NODE_SCHEMAS
                assert target in NODE_SCHEMAS
