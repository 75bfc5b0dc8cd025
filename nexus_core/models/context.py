"""
Context window budget models.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

# (default, minimum, maximum) for each budget option
BUDGET_LIMITS: dict[str, tuple[int, int, int]] = {
    "max_chars": (12000, 2000, 50000),
    "max_history": (16, 4, 64),
    "max_memory_items": (6, 0, 30),
    "max_canvas_chars": (1200, 0, 8000),
    "max_memory_chars": (1200, 0, 8000),
    "max_summary_chars": (600, 0, 4000),
}


def _resolve(name: str, value: int | None) -> int:
    default, low, high = BUDGET_LIMITS[name]
    chosen = value if value is not None and value > 0 else default
    return max(low, min(high, chosen))


class ContextBudget(BaseModel):
    """Resolved, clamped budget used by the context builder."""

    model_config = ConfigDict(frozen=True)

    max_chars: int
    max_history: int
    max_memory_items: int
    max_canvas_chars: int
    max_memory_chars: int
    max_summary_chars: int


class ContextConfig(BaseModel):
    """
    Caller-supplied context budget.

    Every option is optional. Missing or non-positive values fall back to
    their defaults, then all values are clamped to their allowed range.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    max_chars: int | None = None
    max_history: int | None = None
    max_memory_items: int | None = None
    max_canvas_chars: int | None = None
    max_memory_chars: int | None = None
    max_summary_chars: int | None = None

    def resolve(self) -> ContextBudget:
        """Apply defaults and clamps."""
        return ContextBudget(**{name: _resolve(name, getattr(self, name)) for name in BUDGET_LIMITS})
