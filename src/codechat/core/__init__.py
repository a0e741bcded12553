"""Core runtime modules."""

from codechat.core.llm import (
    LiteLLMProvider,
    LLMProvider,
    Message,
    ModelRegistry,
    Role,
)

__all__ = [
    "LLMProvider",
    "LiteLLMProvider",
    "Message",
    "ModelRegistry",
    "Role",
]
