"""Component factory wiring the graph store into the engine components."""

from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from ..config.settings import Settings
from ..parsers.javascript import JavaScriptParser
from .admin import ContextAdmin
from .analysis import RelationshipAnalyzer
from .comparator import BranchComparator
from .graph_store import GraphStore
from .indexer import CodeGraphIndexer
from .quality import CodeQualityAnalyzer
from .relationships import RelationshipExtractor, RelationshipStrategy
from .upsert import EntityUpsertEngine
from .validation import ValidationEngine


@dataclass
class GraphComponents:
    """Bundle of components sharing one graph store."""

    settings: Settings
    store: GraphStore
    parser: JavaScriptParser
    indexer: CodeGraphIndexer
    validator: ValidationEngine
    comparator: BranchComparator
    admin: ContextAdmin
    analyzer: RelationshipAnalyzer
    quality: CodeQualityAnalyzer

    def close(self) -> None:
        """Release the store; call once at shutdown."""
        self.store.close()


class ComponentFactory:
    """Factory for creating commonly used components."""

    @staticmethod
    def create_store(db_path: Path) -> GraphStore:
        """Create and initialize the graph store."""
        store = GraphStore(db_path)
        store.initialize()
        return store

    @staticmethod
    def create_components(
        settings: Settings,
        store: GraphStore | None = None,
        strategy: RelationshipStrategy | None = None,
    ) -> GraphComponents:
        """Create the standard component set.

        Args:
            settings: Runtime settings (database location)
            store: Existing store to share instead of opening one
            strategy: Relationship inference strategy (lexical by default)

        Returns:
            GraphComponents bound to a single initialized store
        """
        store = store or ComponentFactory.create_store(settings.db_path)
        if not store.health_check():
            logger.warning(f"Graph store at {store.database_file} failed its health check")

        parser = JavaScriptParser()
        upsert_engine = EntityUpsertEngine()
        extractor = RelationshipExtractor(upsert_engine, strategy)

        return GraphComponents(
            settings=settings,
            store=store,
            parser=parser,
            indexer=CodeGraphIndexer(store, parser, upsert_engine, extractor),
            validator=ValidationEngine(store),
            comparator=BranchComparator(store),
            admin=ContextAdmin(store),
            analyzer=RelationshipAnalyzer(store),
            quality=CodeQualityAnalyzer(store),
        )
