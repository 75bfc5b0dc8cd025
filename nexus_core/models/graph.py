"""
Canvas graph models.

Nodes and edges carry free-form data payloads straight from the canvas;
upstream blocks are read-only projections built by the graph resolver.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class NodeKind:
    """Node type tags the resolver understands."""

    TEXT = "text"
    IMAGE = "image"
    IMAGE_CONFIG = "imageConfig"
    VIDEO_CONFIG = "videoConfig"

    CONFIG_TYPES = frozenset({IMAGE_CONFIG, VIDEO_CONFIG})


class GraphNode(BaseModel):
    """Canvas node."""

    model_config = ConfigDict(extra="ignore")

    id: str
    type: str = ""
    data: Any = Field(default_factory=dict)


class GraphEdge(BaseModel):
    """Directed canvas edge from source node to target node."""

    model_config = ConfigDict(extra="ignore")

    source: str
    target: str
    data: Any | None = None


class UpstreamTextBlock(BaseModel):
    """Text node feeding a config node reachable from the focus node."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    label: str
    text: str
    target: str


class UpstreamImageBlock(BaseModel):
    """Image node feeding a config node reachable from the focus node."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    label: str
    role: str
    url: str
    target: str


class UpstreamInputs(BaseModel):
    """Result of upstream input collection."""

    text: list[UpstreamTextBlock] = Field(default_factory=list)
    images: list[UpstreamImageBlock] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.text and not self.images
