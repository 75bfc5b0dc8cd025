"""Fixtures for service tests.

Services are pure and synchronous, so fixtures are plain function-scoped
instances and fixed clocks.
"""

import pytest

from nexus_core.config import MemorySearchConfig
from nexus_core.services import ContextBuilder, MemoryRetriever, UpstreamGraphResolver

# Fixed reference time: 2024-01-01T00:00:00Z
NOW_MS = 1_704_067_200_000


@pytest.fixture
def now_ms() -> int:
    """Fixed 'now' for recency scoring."""
    return NOW_MS


@pytest.fixture
def retriever() -> MemoryRetriever:
    """Retriever with default search settings."""
    return MemoryRetriever(config=MemorySearchConfig())


@pytest.fixture
def resolver() -> UpstreamGraphResolver:
    """Stateless graph resolver."""
    return UpstreamGraphResolver()


@pytest.fixture
def builder() -> ContextBuilder:
    """Stateless context builder."""
    return ContextBuilder()


@pytest.fixture
def canvas_graph() -> dict:
    """
    Small canvas: prompt text F and reference image S both feed image config C.

    Extra nodes: a second text node T feeding C, and an unrelated text node U.
    """
    return {
        "nodes": [
            {"id": "F", "type": "text", "data": {"content": "a cat on a sofa", "label": "Prompt"}},
            {"id": "C", "type": "imageConfig", "data": {}},
            {"id": "S", "type": "image", "data": {"url": "https://cdn.example.com/s.png", "label": "Style"}},
            {"id": "T", "type": "text", "data": {"content": "watercolor style"}},
            {"id": "U", "type": "text", "data": {"content": "unrelated"}},
        ],
        "edges": [
            {"source": "F", "target": "C"},
            {"source": "S", "target": "C", "data": {"imageRole": "style_reference"}},
            {"source": "T", "target": "C"},
        ],
    }
