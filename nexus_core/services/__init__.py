"""
Services for Nexus Core.

Pure, synchronous computations shared by the command API:
- MemoryRetriever: Lexical long-term memory ranking
- UpstreamGraphResolver: Upstream inputs feeding a generation node
- ContextBuilder: Tiered, size-bounded chat context assembly
"""

from nexus_core.services.context_builder import ContextBuilder
from nexus_core.services.graph_resolver import UpstreamGraphResolver, collect_upstream_inputs
from nexus_core.services.memory_retriever import MemoryRetriever

__all__ = [
    "MemoryRetriever",
    "UpstreamGraphResolver",
    "collect_upstream_inputs",
    "ContextBuilder",
]
