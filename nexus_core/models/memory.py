"""
Long-term memory item as supplied by the canvas front end.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class MemoryItem(BaseModel):
    """
    A single long-term memory snippet.

    Owned by the caller: the retriever and context builder only read and
    reorder items. Importance is not validated here; it is clamped to
    [0, 1] when scored.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(default="", description="Caller-assigned memory ID")
    content: str = Field(default="", description="Memory text")
    importance: float = Field(default=0.0, description="Importance weight, nominally 0-1")
    updated_at: int = Field(default=0, description="Last update as epoch milliseconds (0 = unknown)")
