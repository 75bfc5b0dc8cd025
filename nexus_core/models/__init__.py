"""
Data models for Nexus Core.

Shared by the five core services:
- MemoryItem: long-term memory snippet owned by the caller
- ChatMessage, Role: context builder output
- GraphNode, GraphEdge: canvas graph input
- UpstreamTextBlock, UpstreamImageBlock, UpstreamInputs: resolver output
- ContextConfig, ContextBudget: context window budget
- AssetKind: asset cache kind
"""

from nexus_core.models.asset import AssetKind
from nexus_core.models.chat import ChatMessage, Role
from nexus_core.models.context import BUDGET_LIMITS, ContextBudget, ContextConfig
from nexus_core.models.graph import (
    GraphEdge,
    GraphNode,
    NodeKind,
    UpstreamImageBlock,
    UpstreamInputs,
    UpstreamTextBlock,
)
from nexus_core.models.memory import MemoryItem

__all__ = [
    # Memory
    "MemoryItem",
    # Chat
    "ChatMessage",
    "Role",
    # Graph
    "GraphNode",
    "GraphEdge",
    "NodeKind",
    "UpstreamTextBlock",
    "UpstreamImageBlock",
    "UpstreamInputs",
    # Context
    "ContextConfig",
    "ContextBudget",
    "BUDGET_LIMITS",
    # Assets
    "AssetKind",
]
