"""Chat message model produced by the context builder."""

from pydantic import BaseModel, ConfigDict, Field


class Role:
    """Well-known chat roles. Other non-empty role strings are passed through."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class ChatMessage(BaseModel):
    """A single chat turn. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    role: str = Field(..., description="Message role (system, user, assistant, ...)")
    content: str = Field(default="", description="Message text")
