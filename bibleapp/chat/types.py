"""Chat message types."""

from datetime import datetime, timezone
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class ChatRole(StrEnum):
    USER = "user"
    ASSISTANT = "assistant"
    ERROR = "error"
    INFO = "info"


class ChatMessage(BaseModel):
    """One entry of a chat history.

    Attributes:
        role: Who (or what) produced the message
        content: Message text
        timestamp: Client-side creation time (UTC)
    """

    model_config = ConfigDict(frozen=True)

    role: ChatRole
    content: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ChatUsage(BaseModel):
    """Daily chat counters reported by the backend when rate limiting is on."""

    usage_today: int
    daily_limit: int


class ChatAnswer(BaseModel):
    """Response body of the chat endpoint."""

    answer: str
    usage_today: int | None = None
    daily_limit: int | None = None

    @property
    def usage(self) -> ChatUsage | None:
        if self.usage_today is None or self.daily_limit is None:
            return None
        return ChatUsage(usage_today=self.usage_today, daily_limit=self.daily_limit)
