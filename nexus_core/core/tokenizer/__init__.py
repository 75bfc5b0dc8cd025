"""
Tokenizer module for lexical memory matching.

Produces token sets (CJK per character, other scripts per word) and a
token-overlap similarity score used by the memory retriever.
"""

from nexus_core.core.tokenizer.tokenizer import Tokenizer, is_cjk

__all__ = ["Tokenizer", "is_cjk"]
