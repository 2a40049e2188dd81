"""Provider-neutral types for chat-completion LLMs."""
from abc import ABC, abstractmethod
from typing import Any, Literal

from pydantic import BaseModel, Field


class Message(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: str


class LLMConfig(BaseModel):
    model: str | None = None
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int | None = None


class LLMResponse(BaseModel):
    content: str
    usage: dict[str, Any] = Field(default_factory=dict)
    model: str | None = None
    finish_reason: str | None = None


class LLMProvider(ABC):
    """Black-box text generator behind the assistant."""

    @abstractmethod
    async def chat(self, messages: list[Message], config: LLMConfig) -> LLMResponse: ...

    @abstractmethod
    async def health_check(self) -> bool: ...

    async def close(self) -> None:
        """Release transport resources."""
