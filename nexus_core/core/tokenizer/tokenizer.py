"""
Lexical tokenization and token-overlap scoring.

CJK ideographs are matched at character granularity, everything else at
word granularity, so mixed Chinese/Latin text scores sensibly without a
segmenter.
"""

import math

from nexus_core.utils.text import normalize_text

CJK_START = "\u4e00"
CJK_END = "\u9fff"


def is_cjk(ch: str) -> bool:
    """True for characters in the CJK Unified Ideographs block."""
    return CJK_START <= ch <= CJK_END


def _is_word_char(ch: str) -> bool:
    return ch.isascii() and ch.isalnum()


class Tokenizer:
    """
    Token-set tokenizer with overlap similarity.

    Usage:
        tokenizer = Tokenizer()
        tokens = tokenizer.tokenize("Hello 世界")   # ["hello", "世", "界"]
        score = tokenizer.score("机器学习", "机器学习笔记")
    """

    def tokenize(self, text: str | None) -> list[str]:
        """
        Split text into lower-case tokens.

        Each CJK ideograph is its own token. Other characters are collected
        into runs and split on every non-ASCII-alphanumeric character.

        Args:
            text: Text to tokenize

        Returns:
            Tokens in order of appearance (duplicates kept)
        """
        normalized = normalize_text(text).lower()
        if not normalized:
            return []

        tokens: list[str] = []
        word: list[str] = []
        for ch in normalized:
            if is_cjk(ch):
                if word:
                    tokens.append("".join(word))
                    word = []
                tokens.append(ch)
            elif _is_word_char(ch):
                word.append(ch)
            elif word:
                tokens.append("".join(word))
                word = []
        if word:
            tokens.append("".join(word))
        return tokens

    def token_set(self, text: str | None) -> set[str]:
        """Distinct tokens of text."""
        return set(self.tokenize(text))

    def score(self, query: str | None, document: str | None) -> float:
        """
        Token-overlap similarity normalized by the geometric mean of set sizes.

        Args:
            query: Query text
            document: Document text

        Returns:
            Score in [0, 1]; 0 when either side has no tokens
        """
        query_tokens = self.token_set(query)
        doc_tokens = self.token_set(document)
        if not query_tokens or not doc_tokens:
            return 0.0

        hits = len(query_tokens & doc_tokens)
        denom = max(1.0, math.sqrt(len(query_tokens) * len(doc_tokens)))
        return hits / denom
