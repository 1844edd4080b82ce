"""Pytest configuration and fixtures."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from contextdojo.config import Settings, get_test_settings
from contextdojo.graph import GraphStore, LayoutConfig, LayoutEngine
from contextdojo.ingestion.llm_client import LLMClient
from contextdojo.ingestion.topic_extractor import TopicExtractor
from contextdojo.models import TopicGraph, TopicProposal
from contextdojo.session import ConversationSession


def proposal(
    label: str,
    status: str = "active",
    parent: str = "Context",
    type: str = "concept",
    description: str | None = None,
) -> TopicProposal:
    """Shorthand for building proposals in tests."""
    return TopicProposal(
        label=label,
        type=type,  # type: ignore[arg-type]
        status=status,  # type: ignore[arg-type]
        parent_label=parent,
        description=description,
    )


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with defaults."""
    return get_test_settings()


@pytest.fixture
def initial_graph() -> TopicGraph:
    """Graph holding only the root."""
    return TopicGraph.initial()


@pytest.fixture
def travel_graph() -> TopicGraph:
    """Context -> Travel -> {Japan, Budget}, Context -> Food (potential)."""
    store = GraphStore()
    store.merge([
        proposal("Travel", description="Trips and places"),
        proposal("Japan", parent="Travel", type="entity"),
        proposal("Budget", status="potential", parent="Travel"),
        proposal("Food", status="potential", type="concept"),
    ])
    return store.graph


@pytest.fixture
def layout_config() -> LayoutConfig:
    """Layout config that ticks without delay."""
    return LayoutConfig(tick_interval=0.0, seed=7)


@pytest.fixture
def mock_llm_client() -> LLMClient:
    """Mock LLM client for testing without actual LLM."""
    client = MagicMock(spec=LLMClient)

    async def mock_generate_json(*args, **kwargs):
        return {
            "nodes": [
                {
                    "label": "Travel",
                    "type": "concept",
                    "status": "active",
                    "parent": "Context",
                    "description": "Trips the user has taken",
                },
                {
                    "label": "Japan",
                    "type": "entity",
                    "status": "potential",
                    "parent": "Travel",
                    "description": "Ask about the trip to Japan",
                },
            ]
        }

    client.generate_json = AsyncMock(side_effect=mock_generate_json)
    client.generate = AsyncMock(return_value="{}")
    client.close = AsyncMock()

    return client


@pytest.fixture
def mock_extractor() -> TopicExtractor:
    """Mock topic extractor returning no proposals unless configured."""
    extractor = MagicMock(spec=TopicExtractor)
    extractor.extract = AsyncMock(return_value=[])
    return extractor


@pytest.fixture
def session(mock_extractor: TopicExtractor, test_settings: Settings, layout_config: LayoutConfig) -> ConversationSession:
    """Session wired to a mock extractor and an instant-tick layout."""
    return ConversationSession(
        extractor=mock_extractor,
        layout=LayoutEngine(layout_config),
        settings=test_settings,
    )
