"""
Lexical long-term memory retrieval.

Ranks caller-owned memory items against a query by combining token overlap
with importance and recency:

    score = 0.7 * lexical + 0.2 * importance + 0.1 * recency_boost
"""

import time
from collections.abc import Iterable, Mapping
from typing import Any

from nexus_core.config import MemorySearchConfig
from nexus_core.core.tokenizer import Tokenizer
from nexus_core.models.memory import MemoryItem
from nexus_core.utils.logger import get_logger
from nexus_core.utils.text import normalize_text

logger = get_logger(__name__)

LEXICAL_WEIGHT = 0.7
IMPORTANCE_WEIGHT = 0.2
RECENCY_WEIGHT = 0.1

RECENCY_WINDOW_DAYS = 30.0
MS_PER_DAY = 1000.0 * 60.0 * 60.0 * 24.0


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _now_ms() -> int:
    return int(time.time() * 1000)


class MemoryRetriever:
    """
    Pure, synchronous memory ranking.

    Holds no mutable state, so a single instance can serve concurrent callers.
    """

    def __init__(
        self,
        tokenizer: Tokenizer | None = None,
        config: MemorySearchConfig | None = None,
    ):
        """
        Initialize retriever.

        Args:
            tokenizer: Tokenizer used for lexical scoring
            config: Default limit and minimum score
        """
        self.tokenizer = tokenizer or Tokenizer()
        self.config = config or MemorySearchConfig()

    def recency_boost(self, updated_at: int, now_ms: int) -> float:
        """
        Linear recency boost over a 30-day window.

        Items without a timestamp (updated_at <= 0) count as 30 days old.

        Returns:
            1.0 for brand-new items, falling to 0.0 at 30 days and beyond
        """
        if updated_at > 0:
            age_days = (now_ms - updated_at) / MS_PER_DAY
        else:
            age_days = RECENCY_WINDOW_DAYS
        return 1.0 - _clamp(age_days / RECENCY_WINDOW_DAYS, 0.0, 1.0)

    def score_item(self, query: str, item: MemoryItem, now_ms: int) -> float:
        """Composite score of one item against an already normalized query."""
        lexical = self.tokenizer.score(query, normalize_text(item.content))
        importance = _clamp(item.importance, 0.0, 1.0)
        recency = self.recency_boost(item.updated_at, now_ms)
        return (
            lexical * LEXICAL_WEIGHT
            + importance * IMPORTANCE_WEIGHT
            + recency * RECENCY_WEIGHT
        )

    def search(
        self,
        query: str,
        items: Iterable[MemoryItem | Mapping[str, Any]],
        limit: int | None = None,
        min_score: float | None = None,
        now_ms: int | None = None,
    ) -> list[MemoryItem]:
        """
        Rank memory items for a query.

        Args:
            query: Free-text query
            items: Candidate items (models or camelCase dicts)
            limit: Maximum results (at least 1; default from config)
            min_score: Items scoring below this are dropped (default from config)
            now_ms: Reference time in epoch millis (default: now)

        Returns:
            Items ordered by descending composite score; ties keep input order
        """
        normalized_query = normalize_text(query)
        if not normalized_query:
            return []

        limit = max(1, limit if limit is not None else self.config.limit)
        min_score = min_score if min_score is not None else self.config.min_score
        now_ms = now_ms if now_ms is not None else _now_ms()

        scored: list[tuple[float, MemoryItem]] = []
        for raw in items:
            item = raw if isinstance(raw, MemoryItem) else MemoryItem.model_validate(raw)
            score = self.score_item(normalized_query, item, now_ms)
            if score >= min_score:
                scored.append((score, item))

        # Stable sort: equal scores keep their input order
        scored.sort(key=lambda pair: pair[0], reverse=True)

        logger.bind(limit=limit, min_score=min_score).debug(
            f"Memory search matched {len(scored)} items, returning {min(limit, len(scored))}"
        )
        return [item for _, item in scored[:limit]]
