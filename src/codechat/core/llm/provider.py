"""LLM provider protocol and base types."""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol, runtime_checkable


class Role(Enum):
    """Message role in a conversation."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True, slots=True)
class Message:
    """A message in an LLM conversation."""

    role: Role
    content: str

    def to_dict(self) -> dict[str, str]:
        """Wire format for chat-completions requests."""
        return {"role": self.role.value, "content": self.content}


@dataclass(slots=True)
class StreamChunk:
    """A chunk from a streaming LLM response.

    The final chunk of a stream may carry no text and only usage.
    """

    text: str
    is_final: bool = False
    finish_reason: str | None = None
    usage: dict[str, int] | None = None


@dataclass(slots=True)
class CompletionResult:
    """Result from a non-streaming completion."""

    content: str
    finish_reason: str | None = None
    usage: dict[str, int] = field(default_factory=dict)


@runtime_checkable
class LLMProvider(Protocol):
    """Protocol for chat-completions providers.

    Implementations raise codechat.errors.RemoteCallFailed for any transport
    or API failure.
    """

    async def complete(
        self,
        messages: list[Message],
        *,
        model: str,
        temperature: float | None = None,
        max_tokens: int = 2048,
    ) -> CompletionResult:
        """Generate a completion (non-streaming)."""
        ...

    def stream(
        self,
        messages: list[Message],
        *,
        model: str,
        temperature: float | None = None,
        max_tokens: int = 2048,
    ) -> AsyncIterator[StreamChunk]:
        """Generate a streaming completion."""
        ...
