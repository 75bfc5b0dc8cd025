"""
Upstream input resolution for generation nodes.

Given a focus node, finds the config nodes it feeds (imageConfig /
videoConfig) and collects every other text and image node wired into those
configs. The result is what a generation request built from the focus node
should see as its inputs.
"""

from collections import defaultdict
from collections.abc import Iterable, Mapping
from typing import Any

from nexus_core.models.graph import (
    GraphEdge,
    GraphNode,
    NodeKind,
    UpstreamImageBlock,
    UpstreamInputs,
    UpstreamTextBlock,
)
from nexus_core.utils.logger import get_logger
from nexus_core.utils.text import safe_slice, value_string

logger = get_logger(__name__)

MAX_TEXT_CHARS = 520
MAX_URL_CHARS = 240

DEFAULT_TEXT_LABEL = "文本节点"
DEFAULT_IMAGE_LABEL = "参考图"
DEFAULT_IMAGE_ROLE = "input_reference"
IMAGE_ROLE_KEY = "imageRole"


def _as_node(raw: GraphNode | Mapping[str, Any]) -> GraphNode:
    return raw if isinstance(raw, GraphNode) else GraphNode.model_validate(raw)


def _as_edge(raw: GraphEdge | Mapping[str, Any]) -> GraphEdge:
    return raw if isinstance(raw, GraphEdge) else GraphEdge.model_validate(raw)


class UpstreamGraphResolver:
    """
    Stateless resolver over a snapshot of canvas nodes and edges.

    Usage:
        resolver = UpstreamGraphResolver()
        inputs = resolver.collect_upstream_inputs("focus", nodes, edges)
    """

    def collect_upstream_inputs(
        self,
        focus_node_id: str,
        nodes: Iterable[GraphNode | Mapping[str, Any]],
        edges: Iterable[GraphEdge | Mapping[str, Any]],
    ) -> UpstreamInputs:
        """
        Collect text and image inputs wired into the focus node's config sinks.

        Args:
            focus_node_id: Node the generation is launched from
            nodes: Canvas nodes (duplicate ids: last one wins)
            edges: Canvas edges (edges with an empty endpoint are ignored)

        Returns:
            UpstreamInputs in sink order, then incoming-edge order. Empty when
            the focus id is blank or unknown.
        """
        focus_id = (focus_node_id or "").strip()
        if not focus_id:
            return UpstreamInputs()

        node_by_id: dict[str, GraphNode] = {}
        for raw in nodes:
            node = _as_node(raw)
            if node.id.strip():
                node_by_id[node.id] = node
        if focus_id not in node_by_id:
            logger.debug(f"Focus node {focus_id} not found among {len(node_by_id)} nodes")
            return UpstreamInputs()

        incoming: dict[str, list[GraphEdge]] = defaultdict(list)
        outgoing: dict[str, list[GraphEdge]] = defaultdict(list)
        for raw in edges:
            edge = _as_edge(raw)
            if not edge.source.strip() or not edge.target.strip():
                continue
            incoming[edge.target].append(edge)
            outgoing[edge.source].append(edge)

        sinks = self._config_sinks(focus_id, node_by_id, outgoing)

        result = UpstreamInputs()
        seen_text: set[str] = set()
        seen_images: set[str] = set()

        for sink_id in sinks:
            for edge in incoming.get(sink_id, []):
                source = node_by_id.get(edge.source)
                if source is None:
                    continue

                if source.type == NodeKind.TEXT:
                    if source.id == focus_id or source.id in seen_text:
                        continue
                    block = self._text_block(source, sink_id)
                    if block is None:
                        continue
                    result.text.append(block)
                    seen_text.add(source.id)

                elif source.type == NodeKind.IMAGE:
                    if source.id in seen_images:
                        continue
                    result.images.append(self._image_block(source, edge, sink_id))
                    seen_images.add(source.id)

        return result

    @staticmethod
    def _config_sinks(
        focus_id: str,
        node_by_id: dict[str, GraphNode],
        outgoing: dict[str, list[GraphEdge]],
    ) -> list[str]:
        """Config nodes directly downstream of the focus node, in edge order."""
        sinks: list[str] = []
        for edge in outgoing.get(focus_id, []):
            target = node_by_id.get(edge.target)
            if target is not None and target.type in NodeKind.CONFIG_TYPES:
                sinks.append(target.id)
        return sinks

    @staticmethod
    def _text_block(source: GraphNode, sink_id: str) -> UpstreamTextBlock | None:
        content = value_string(source.data, "content")
        if not content:
            return None
        label = value_string(source.data, "label")
        return UpstreamTextBlock(
            id=source.id,
            label=label or DEFAULT_TEXT_LABEL,
            text=safe_slice(content, MAX_TEXT_CHARS),
            target=sink_id,
        )

    @staticmethod
    def _image_block(source: GraphNode, edge: GraphEdge, sink_id: str) -> UpstreamImageBlock:
        label = value_string(source.data, "label")
        url = value_string(source.data, "url")
        role = value_string(edge.data, IMAGE_ROLE_KEY)
        return UpstreamImageBlock(
            id=source.id,
            label=label or DEFAULT_IMAGE_LABEL,
            role=role or DEFAULT_IMAGE_ROLE,
            # Inline data URLs would flood the request payload
            url="" if url.startswith("data:") else safe_slice(url, MAX_URL_CHARS),
            target=sink_id,
        )


def collect_upstream_inputs(
    focus_node_id: str,
    nodes: Iterable[GraphNode | Mapping[str, Any]],
    edges: Iterable[GraphEdge | Mapping[str, Any]],
) -> UpstreamInputs:
    """Module-level shortcut for UpstreamGraphResolver().collect_upstream_inputs."""
    return UpstreamGraphResolver().collect_upstream_inputs(focus_node_id, nodes, edges)
