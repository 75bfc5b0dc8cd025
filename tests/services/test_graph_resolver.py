"""
Tests for UpstreamGraphResolver.

Covers sink discovery, focus exclusion, de-duplication, truncation,
inline URL suppression and role propagation.
"""

import pytest

from nexus_core.models import GraphEdge, GraphNode
from nexus_core.services import collect_upstream_inputs
from nexus_core.services.graph_resolver import (
    DEFAULT_IMAGE_LABEL,
    DEFAULT_IMAGE_ROLE,
    DEFAULT_TEXT_LABEL,
    MAX_TEXT_CHARS,
    MAX_URL_CHARS,
)
from nexus_core.utils.text import ELLIPSIS


@pytest.mark.unit
class TestBasicResolution:
    """Tests for the common focus -> config <- inputs shape."""

    def test_focus_excluded_image_collected(self, resolver):
        """Test F->C, S->C with focus F yields only the image."""
        nodes = [
            GraphNode(id="F", type="text", data={"content": "prompt"}),
            GraphNode(id="C", type="imageConfig"),
            GraphNode(id="S", type="image", data={"url": "https://x.test/s.png"}),
        ]
        edges = [GraphEdge(source="F", target="C"), GraphEdge(source="S", target="C")]

        result = resolver.collect_upstream_inputs("F", nodes, edges)

        assert result.text == []
        assert len(result.images) == 1
        image = result.images[0]
        assert image.id == "S"
        assert image.target == "C"
        assert image.url == "https://x.test/s.png"
        assert image.label == DEFAULT_IMAGE_LABEL
        assert image.role == DEFAULT_IMAGE_ROLE

    def test_sibling_text_and_image(self, resolver, canvas_graph):
        """Test sibling inputs of the sink are collected with labels and roles."""
        result = resolver.collect_upstream_inputs("F", canvas_graph["nodes"], canvas_graph["edges"])

        assert [(t.id, t.label, t.text, t.target) for t in result.text] == [
            ("T", DEFAULT_TEXT_LABEL, "watercolor style", "C"),
        ]
        assert [(i.id, i.label, i.role) for i in result.images] == [
            ("S", "Style", "style_reference"),
        ]

    def test_unrelated_nodes_ignored(self, resolver, canvas_graph):
        """Test nodes not wired into a sink are not collected."""
        result = resolver.collect_upstream_inputs("F", canvas_graph["nodes"], canvas_graph["edges"])
        assert "U" not in {t.id for t in result.text}

    def test_video_config_is_sink(self, resolver):
        """Test videoConfig nodes act as sinks too."""
        nodes = [
            {"id": "F", "type": "text", "data": {"content": "go"}},
            {"id": "V", "type": "videoConfig", "data": {}},
            {"id": "T", "type": "text", "data": {"content": "slow pan"}},
        ]
        edges = [{"source": "F", "target": "V"}, {"source": "T", "target": "V"}]

        result = resolver.collect_upstream_inputs("F", nodes, edges)

        assert [t.target for t in result.text] == ["V"]

    def test_non_config_targets_ignored(self, resolver):
        """Test only config node types count as sinks."""
        nodes = [
            {"id": "F", "type": "text", "data": {"content": "go"}},
            {"id": "X", "type": "text", "data": {"content": "x"}},
            {"id": "T", "type": "text", "data": {"content": "t"}},
        ]
        edges = [{"source": "F", "target": "X"}, {"source": "T", "target": "X"}]

        assert resolver.collect_upstream_inputs("F", nodes, edges).is_empty()

    def test_module_level_shortcut(self, canvas_graph):
        """Test the module function matches the resolver method."""
        result = collect_upstream_inputs("F", canvas_graph["nodes"], canvas_graph["edges"])
        assert [i.id for i in result.images] == ["S"]


@pytest.mark.unit
class TestDeduplication:
    """Tests for emitting each source once."""

    def test_source_feeding_two_sinks_emitted_once(self, resolver):
        """Test the first sink in edge order wins."""
        nodes = [
            {"id": "F", "type": "text", "data": {"content": "go"}},
            {"id": "C1", "type": "imageConfig"},
            {"id": "C2", "type": "videoConfig"},
            {"id": "S", "type": "image", "data": {"url": "https://x.test/s.png"}},
            {"id": "T", "type": "text", "data": {"content": "shared"}},
        ]
        edges = [
            {"source": "F", "target": "C1"},
            {"source": "F", "target": "C2"},
            {"source": "S", "target": "C2"},
            {"source": "S", "target": "C1"},
            {"source": "T", "target": "C2"},
            {"source": "T", "target": "C1"},
        ]

        result = resolver.collect_upstream_inputs("F", nodes, edges)

        assert [(i.id, i.target) for i in result.images] == [("S", "C1")]
        assert [(t.id, t.target) for t in result.text] == [("T", "C1")]

    def test_duplicate_node_ids_last_wins(self, resolver):
        """Test later nodes replace earlier ones with the same id."""
        nodes = [
            {"id": "F", "type": "text", "data": {"content": "go"}},
            {"id": "C", "type": "imageConfig"},
            {"id": "T", "type": "text", "data": {"content": "old"}},
            {"id": "T", "type": "text", "data": {"content": "new"}},
        ]
        edges = [{"source": "F", "target": "C"}, {"source": "T", "target": "C"}]

        result = resolver.collect_upstream_inputs("F", nodes, edges)

        assert [t.text for t in result.text] == ["new"]


@pytest.mark.unit
class TestPayloadHandling:
    """Tests for reading free-form node and edge data."""

    def _graph(self, source: dict, edge_data: dict | None = None) -> tuple[list, list]:
        nodes = [
            {"id": "F", "type": "text", "data": {"content": "go"}},
            {"id": "C", "type": "imageConfig"},
            source,
        ]
        edges = [
            {"source": "F", "target": "C"},
            {"source": source["id"], "target": "C", "data": edge_data},
        ]
        return nodes, edges

    def test_long_text_truncated(self, resolver):
        """Test text is cut to 520 characters plus an ellipsis."""
        nodes, edges = self._graph({"id": "T", "type": "text", "data": {"content": "字" * 600}})

        block = resolver.collect_upstream_inputs("F", nodes, edges).text[0]

        assert block.text == "字" * MAX_TEXT_CHARS + ELLIPSIS

    def test_text_normalized(self, resolver):
        """Test CRLF and surrounding whitespace are normalized."""
        nodes, edges = self._graph({"id": "T", "type": "text", "data": {"content": "  a\r\nb  "}})

        assert resolver.collect_upstream_inputs("F", nodes, edges).text[0].text == "a\nb"

    @pytest.mark.parametrize("data", [{}, {"content": "   "}, {"content": 42}, None, "not a map"])
    def test_blank_or_invalid_text_skipped(self, resolver, data):
        """Test text nodes without usable content are skipped."""
        nodes, edges = self._graph({"id": "T", "type": "text", "data": data})

        assert resolver.collect_upstream_inputs("F", nodes, edges).text == []

    def test_data_url_suppressed(self, resolver):
        """Test inline data: URLs are emitted empty."""
        nodes, edges = self._graph(
            {"id": "S", "type": "image", "data": {"url": "data:image/png;base64,AAAA"}}
        )

        image = resolver.collect_upstream_inputs("F", nodes, edges).images[0]

        assert image.url == ""

    def test_long_url_truncated(self, resolver):
        """Test remote URLs are cut to 240 characters plus an ellipsis."""
        url = "https://x.test/" + "a" * 400
        nodes, edges = self._graph({"id": "S", "type": "image", "data": {"url": url}})

        image = resolver.collect_upstream_inputs("F", nodes, edges).images[0]

        assert image.url == url[:MAX_URL_CHARS] + ELLIPSIS

    def test_image_without_url_still_emitted(self, resolver):
        """Test image nodes are emitted even with no URL."""
        nodes, edges = self._graph({"id": "S", "type": "image", "data": {}})

        images = resolver.collect_upstream_inputs("F", nodes, edges).images

        assert [(i.id, i.url) for i in images] == [("S", "")]

    def test_role_from_edge_data(self, resolver):
        """Test the contributing edge's imageRole is propagated."""
        nodes, edges = self._graph(
            {"id": "S", "type": "image", "data": {"url": "https://x.test/s.png"}},
            edge_data={"imageRole": "first_frame"},
        )

        assert resolver.collect_upstream_inputs("F", nodes, edges).images[0].role == "first_frame"


@pytest.mark.unit
class TestDegenerateInput:
    """Tests for inputs that resolve to nothing."""

    @pytest.mark.parametrize("focus", ["", "   ", "missing"])
    def test_unknown_or_blank_focus(self, resolver, canvas_graph, focus):
        """Test unknown focus ids produce an empty result."""
        result = resolver.collect_upstream_inputs(focus, canvas_graph["nodes"], canvas_graph["edges"])
        assert result.is_empty()

    def test_edges_with_empty_endpoints_dropped(self, resolver):
        """Test edges missing a source or target are ignored."""
        nodes = [
            {"id": "F", "type": "text", "data": {"content": "go"}},
            {"id": "C", "type": "imageConfig"},
            {"id": "S", "type": "image", "data": {"url": "https://x.test/s.png"}},
        ]
        edges = [
            {"source": "F", "target": "C"},
            {"source": "", "target": "C"},
            {"source": "S", "target": " "},
        ]

        assert resolver.collect_upstream_inputs("F", nodes, edges).is_empty()

    def test_edge_to_missing_node(self, resolver):
        """Test edges referencing unknown nodes are skipped."""
        nodes = [
            {"id": "F", "type": "text", "data": {"content": "go"}},
            {"id": "C", "type": "imageConfig"},
        ]
        edges = [{"source": "F", "target": "C"}, {"source": "ghost", "target": "C"}]

        assert resolver.collect_upstream_inputs("F", nodes, edges).is_empty()
