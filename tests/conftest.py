"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest

from equipment_indexer.projection import ProjectionEngine
from fakes import ALLOWED_SPECIFICATIONS, COLLECTION, FakeSearchEngine, InMemoryEventStore


@pytest.fixture
def event_store() -> InMemoryEventStore:
    """Create an empty in-memory event store."""
    return InMemoryEventStore()


@pytest.fixture
def search_engine() -> FakeSearchEngine:
    """Create an in-memory search engine holding the test collection."""
    engine = FakeSearchEngine()
    engine.collections[COLLECTION] = {}
    return engine


@pytest.fixture
def projection(
    event_store: InMemoryEventStore,
    search_engine: FakeSearchEngine,
) -> ProjectionEngine:
    """Create a projection subscribed to the test event store."""
    return ProjectionEngine(
        event_store,
        search_engine,
        collection_name=COLLECTION,
        specification_names=ALLOWED_SPECIFICATIONS,
    )
