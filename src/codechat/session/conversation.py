"""Conversation state: message log, model selection and token usage."""

from __future__ import annotations

import math
from dataclasses import dataclass

from codechat.core.llm.provider import Message, Role

# Rough estimate used when the endpoint reports no usage
CHARS_PER_TOKEN = 4


@dataclass
class TokenUsage:
    """Cumulative token counts for a session."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    def add(self, prompt: int, completion: int, total: int | None = None) -> None:
        self.prompt_tokens += prompt
        self.completion_tokens += completion
        self.total_tokens += prompt + completion if total is None else total


def estimate_tokens(text: str) -> int:
    return math.ceil(len(text) / CHARS_PER_TOKEN)


class ConversationState:
    """Ordered message log plus the parameters of the next model call.

    Message 0 is always the system prompt. reset() returns to exactly that
    one message; nothing else ever removes it.

    When sampling is locked (code assistant), temperature and max_tokens are
    fixed at construction.
    """

    def __init__(
        self,
        system_prompt: str,
        *,
        model: str,
        temperature: float,
        max_tokens: int,
        lock_sampling: bool = False,
    ) -> None:
        self._messages: list[Message] = [Message(Role.SYSTEM, system_prompt)]
        self.model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._sampling_locked = lock_sampling
        self.usage = TokenUsage()

    @property
    def messages(self) -> list[Message]:
        """Snapshot of the message log."""
        return list(self._messages)

    @property
    def system_prompt(self) -> str:
        return self._messages[0].content

    @property
    def temperature(self) -> float:
        return self._temperature

    @property
    def max_tokens(self) -> int:
        return self._max_tokens

    @property
    def sampling_locked(self) -> bool:
        return self._sampling_locked

    def __len__(self) -> int:
        return len(self._messages)

    @property
    def last(self) -> Message:
        return self._messages[-1]

    def add_user(self, content: str) -> None:
        self._messages.append(Message(Role.USER, content))

    def add_assistant(self, content: str) -> None:
        self._messages.append(Message(Role.ASSISTANT, content))

    def add_system(self, content: str) -> None:
        """Inject context (tool results, file contents) for the model."""
        self._messages.append(Message(Role.SYSTEM, content))

    def reset(self) -> None:
        """Drop everything but the system prompt."""
        del self._messages[1:]

    def clear_history(self) -> None:
        """Drop user and assistant messages, keeping all system messages."""
        self._messages = [m for m in self._messages if m.role is Role.SYSTEM]

    def exchange_count(self) -> int:
        """Number of user and assistant messages."""
        return sum(1 for m in self._messages if m.role is not Role.SYSTEM)

    def set_temperature(self, value: float) -> None:
        if self._sampling_locked:
            raise ValueError("Sampling parameters are fixed for this session")
        if not 0 <= value <= 2:
            raise ValueError("Temperature must be between 0 and 2")
        self._temperature = value

    def set_max_tokens(self, value: int) -> None:
        if self._sampling_locked:
            raise ValueError("Sampling parameters are fixed for this session")
        if value < 1:
            raise ValueError("Max tokens must be at least 1")
        self._max_tokens = value

    def record_usage(self, usage: dict[str, int] | None, reply: str = "") -> None:
        """Add one call's usage to the running totals.

        Without reported usage, estimate from character counts: the reply
        for completion tokens, every non-assistant message for prompt tokens.
        """
        if usage:
            self.usage.add(
                usage.get("prompt_tokens", 0),
                usage.get("completion_tokens", 0),
                usage.get("total_tokens"),
            )
            return
        prompt_chars = sum(len(m.content) for m in self._messages if m.role is not Role.ASSISTANT)
        self.usage.add(math.ceil(prompt_chars / CHARS_PER_TOKEN), estimate_tokens(reply))
