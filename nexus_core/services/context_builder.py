"""
Tiered context window assembly for assistant conversations.

Builds the message list sent to the language model from the system prompt,
long-term memory, canvas context, recent history and the user's message,
degrading in three tiers until the total character count fits the budget:

1. Full: everything, each part capped by its own budget
2. Reduced: no retrieved memory items, half the history, 360-char caps
3. Minimal: system prompt and user message only

The user's message is never truncated or dropped, so tier 3 may still
exceed the budget.
"""

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from nexus_core.models.chat import ChatMessage, Role
from nexus_core.models.context import ContextBudget, ContextConfig
from nexus_core.models.memory import MemoryItem
from nexus_core.utils.logger import get_logger
from nexus_core.utils.text import normalize_text, take_chars

logger = get_logger(__name__)

SUMMARY_HEADING = "【长期记忆摘要】"
MEMORY_ITEMS_HEADING = "【长期记忆（检索命中）】"
CANVAS_HEADING = "【当前项目上下文】"

MEMORY_SNIPPET_CHARS = 260
REDUCED_SECTION_CHARS = 360
MIN_REDUCED_HISTORY = 2


def total_chars(messages: Sequence[ChatMessage]) -> int:
    """Sum of message content lengths in characters."""
    return sum(len(m.content) for m in messages)


def compact_lines(lines: Iterable[str], max_chars: int) -> str:
    """
    Join lines until the next one would push the total past max_chars.

    Lines are normalized and empty ones skipped. Separating newlines do not
    count against the budget. Lines are never cut mid-way.
    """
    kept: list[str] = []
    used = 0
    for line in lines:
        text = normalize_text(line)
        if not text:
            continue
        if used + len(text) > max_chars:
            break
        used += len(text)
        kept.append(text)
    return "\n".join(kept)


def _system(content: str) -> ChatMessage:
    return ChatMessage(role=Role.SYSTEM, content=content)


def _section(heading: str, body: str) -> ChatMessage:
    return _system(f"{heading}\n{body}")


def _as_message(raw: ChatMessage | Mapping[str, Any]) -> ChatMessage:
    return raw if isinstance(raw, ChatMessage) else ChatMessage.model_validate(raw)


def _as_memory(raw: MemoryItem | Mapping[str, Any]) -> MemoryItem:
    return raw if isinstance(raw, MemoryItem) else MemoryItem.model_validate(raw)


class ContextBuilder:
    """
    Pure context window assembler.

    Output depends only on the inputs; repeated calls with the same inputs
    produce identical message lists.
    """

    def build(
        self,
        user_text: str,
        system_prompt: str = "",
        conversation: Iterable[ChatMessage | Mapping[str, Any]] = (),
        memory_summary: str = "",
        memory_items: Iterable[MemoryItem | Mapping[str, Any]] = (),
        canvas_context: str = "",
        config: ContextConfig | Mapping[str, Any] | None = None,
    ) -> list[ChatMessage]:
        """
        Assemble the message list for one assistant turn.

        Args:
            user_text: The user's current message
            system_prompt: Base system prompt (omitted when blank)
            conversation: Prior turns; system turns and blank turns are ignored
            memory_summary: Rolling long-term memory summary
            memory_items: Retrieved memory items, best first
            canvas_context: Description of the current canvas project
            config: Budget options (defaults applied to missing values)

        Returns:
            Ordered chat messages ending with the user turn
        """
        if config is None:
            config = ContextConfig()
        elif not isinstance(config, ContextConfig):
            config = ContextConfig.model_validate(config)
        budget = config.resolve()

        user_query = normalize_text(user_text)
        system = normalize_text(system_prompt)
        summary = normalize_text(memory_summary)
        canvas = normalize_text(canvas_context)
        history = self._history(conversation)
        items = [_as_memory(m) for m in memory_items]

        full = self._full_tier(budget, user_query, system, summary, items, canvas, history)
        if total_chars(full) <= budget.max_chars:
            return full

        reduced = self._reduced_tier(budget, user_query, system, summary, canvas, history)
        if total_chars(reduced) <= budget.max_chars:
            logger.debug(
                f"Context over budget ({total_chars(full)} > {budget.max_chars}), using reduced tier"
            )
            return reduced

        logger.debug(
            f"Reduced context still over budget ({total_chars(reduced)} > {budget.max_chars}), "
            "using minimal tier"
        )
        return self._minimal_tier(user_query, system)

    @staticmethod
    def _history(conversation: Iterable[ChatMessage | Mapping[str, Any]]) -> list[ChatMessage]:
        """Non-system turns with content, normalized, in original order."""
        turns: list[ChatMessage] = []
        for raw in conversation:
            message = _as_message(raw)
            if not message.role or message.role == Role.SYSTEM:
                continue
            content = normalize_text(message.content)
            if not content:
                continue
            turns.append(ChatMessage(role=message.role, content=content))
        return turns

    @staticmethod
    def _tail(history: list[ChatMessage], keep: int) -> list[ChatMessage]:
        if keep <= 0:
            return []
        return history[-keep:]

    @staticmethod
    def _memory_items_message(items: list[MemoryItem], budget: ContextBudget) -> ChatMessage | None:
        if not items or budget.max_memory_items <= 0 or budget.max_memory_chars <= 0:
            return None

        lines: list[str] = []
        for item in items[: budget.max_memory_items]:
            content = normalize_text(item.content)
            if not content:
                continue
            lines.append(f"- {take_chars(content, MEMORY_SNIPPET_CHARS)}")

        packed = compact_lines(lines, budget.max_memory_chars)
        if not packed:
            return None
        return _section(MEMORY_ITEMS_HEADING, packed)

    def _full_tier(
        self,
        budget: ContextBudget,
        user_query: str,
        system: str,
        summary: str,
        items: list[MemoryItem],
        canvas: str,
        history: list[ChatMessage],
    ) -> list[ChatMessage]:
        messages: list[ChatMessage] = []
        if system:
            messages.append(_system(system))
        if summary and budget.max_summary_chars > 0:
            messages.append(_section(SUMMARY_HEADING, take_chars(summary, budget.max_summary_chars)))

        memory_message = self._memory_items_message(items, budget)
        if memory_message is not None:
            messages.append(memory_message)

        if canvas and budget.max_canvas_chars > 0:
            messages.append(_section(CANVAS_HEADING, take_chars(canvas, budget.max_canvas_chars)))

        messages.extend(self._tail(history, budget.max_history))
        messages.append(ChatMessage(role=Role.USER, content=user_query))
        return messages

    def _reduced_tier(
        self,
        budget: ContextBudget,
        user_query: str,
        system: str,
        summary: str,
        canvas: str,
        history: list[ChatMessage],
    ) -> list[ChatMessage]:
        keep_history = max(MIN_REDUCED_HISTORY, min(budget.max_history, budget.max_history // 2))

        messages: list[ChatMessage] = []
        if system:
            messages.append(_system(system))
        if summary and budget.max_summary_chars > 0:
            summary_cap = min(budget.max_summary_chars, REDUCED_SECTION_CHARS)
            messages.append(_section(SUMMARY_HEADING, take_chars(summary, summary_cap)))
        if canvas:
            messages.append(_section(CANVAS_HEADING, take_chars(canvas, REDUCED_SECTION_CHARS)))

        messages.extend(self._tail(history, keep_history))
        messages.append(ChatMessage(role=Role.USER, content=user_query))
        return messages

    @staticmethod
    def _minimal_tier(user_query: str, system: str) -> list[ChatMessage]:
        messages: list[ChatMessage] = []
        if system:
            messages.append(_system(system))
        messages.append(ChatMessage(role=Role.USER, content=user_query))
        return messages
