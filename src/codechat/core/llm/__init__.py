"""LLM provider abstraction and model registry."""

from codechat.core.llm.litellm_provider import LiteLLMProvider, create_provider
from codechat.core.llm.provider import (
    CompletionResult,
    LLMProvider,
    Message,
    Role,
    StreamChunk,
)
from codechat.core.llm.registry import CATEGORIES, ModelData, ModelRegistry

__all__ = [
    # Provider protocol and implementation
    "LLMProvider",
    "LiteLLMProvider",
    "create_provider",
    # Message types
    "Message",
    "Role",
    "CompletionResult",
    "StreamChunk",
    # Registry
    "ModelRegistry",
    "ModelData",
    "CATEGORIES",
]
