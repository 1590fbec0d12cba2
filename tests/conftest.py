"""Shared fixtures: a throwaway Kuzu graph per test."""

from pathlib import Path

import pytest

from mcp_code_validator.config.settings import Settings
from mcp_code_validator.core.factory import ComponentFactory
from mcp_code_validator.core.graph_store import GraphStore
from mcp_code_validator.core.models import ParsedClass, ParsedCode, ParsedFunction
from mcp_code_validator.core.upsert import EntityUpsertEngine


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "graph"


@pytest.fixture
def store(db_path: Path):
    """Initialized graph store, closed after the test."""
    graph = GraphStore(db_path)
    graph.initialize()
    yield graph
    graph.close()


@pytest.fixture
def settings(db_path: Path) -> Settings:
    return Settings(db_path=db_path)


@pytest.fixture
def components(settings: Settings, store: GraphStore):
    return ComponentFactory.create_components(settings, store=store)


@pytest.fixture
def engine() -> EntityUpsertEngine:
    return EntityUpsertEngine()


@pytest.fixture
def sample_parsed() -> ParsedCode:
    """A caller, a callee and a small class hierarchy."""
    return ParsedCode(
        functions=[
            ParsedFunction(name="loadUser", body="{ const r = fetchUser(id); return new User(r); }"),
            ParsedFunction(name="fetchUser", body="{ return api.get(id); }"),
        ],
        classes=[
            ParsedClass(name="User", body="class User extends BaseModel implements Serializable { }"),
        ],
    )


@pytest.fixture
def query(store: GraphStore):
    """Run a read query in its own session."""

    def _query(cypher: str, params: dict | None = None) -> list[dict]:
        with store.session() as session:
            return session.run(cypher, params)

    return _query
