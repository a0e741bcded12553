"""LiteLLM provider implementation.

Talks to any OpenAI-chat-completions-compatible endpoint through litellm:
- With base_url set, requests go to that endpoint as an OpenAI-compatible API
  ("gateway" mode), with the model identifier passed through unchanged.
- Without base_url, litellm routes by model name ("gpt-4o", "claude-...",
  "ollama/llama3", ...).

See https://docs.litellm.ai/docs/providers for the full list.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Any

import litellm

from codechat.config.secrets import API_KEY_ENV, get_api_key
from codechat.core.llm.provider import (
    CompletionResult,
    Message,
    StreamChunk,
)
from codechat.errors import RemoteCallFailed, SetupFailed
from codechat.logging import get_logger

if TYPE_CHECKING:
    from codechat.config.schema import Config
    from codechat.config.store import ConfigStore

log = get_logger("llm")

# litellm prints help banners to stdout on errors; codechat renders its own.
litellm.suppress_debug_info = True


def _usage_dict(usage: Any) -> dict[str, int]:
    if not usage:
        return {}
    return {
        "prompt_tokens": getattr(usage, "prompt_tokens", 0) or 0,
        "completion_tokens": getattr(usage, "completion_tokens", 0) or 0,
        "total_tokens": getattr(usage, "total_tokens", 0) or 0,
    }


class LiteLLMProvider:
    """Chat-completions client backed by litellm.

    Usage:
        # OpenAI-compatible gateway
        provider = LiteLLMProvider(api_key="sk-...", api_base="https://gateway/v1")
        result = await provider.complete(messages, model="claude-sonnet-4-5-20250929")

        # Direct provider routing
        provider = LiteLLMProvider(api_key="sk-...")
        result = await provider.complete(messages, model="gpt-4o")
    """

    def __init__(
        self,
        *,
        api_key: str | None = None,
        api_base: str | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize the provider.

        Args:
            api_key: Bearer credential attached to every request.
            api_base: OpenAI-compatible endpoint URL.
            **kwargs: Additional litellm options (e.g. timeout).
        """
        self._api_key = api_key
        self._api_base = api_base
        self._kwargs = kwargs

    @property
    def api_base(self) -> str | None:
        return self._api_base

    def _build_kwargs(
        self,
        messages: list[Message],
        *,
        model: str,
        temperature: float | None,
        max_tokens: int,
        stream: bool,
    ) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": model,
            "messages": [m.to_dict() for m in messages],
            "max_tokens": max_tokens,
            "stream": stream,
            **self._kwargs,
        }
        if temperature is not None:
            kwargs["temperature"] = temperature
        if self._api_key:
            kwargs["api_key"] = self._api_key
        if self._api_base:
            kwargs["api_base"] = self._api_base
            kwargs["custom_llm_provider"] = "openai"
        if stream:
            kwargs["stream_options"] = {"include_usage": True}
        return kwargs

    async def complete(
        self,
        messages: list[Message],
        *,
        model: str,
        temperature: float | None = None,
        max_tokens: int = 2048,
    ) -> CompletionResult:
        """Generate a completion (non-streaming).

        Raises:
            RemoteCallFailed: On any network or API error.
        """
        kwargs = self._build_kwargs(
            messages,
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
            stream=False,
        )
        log.debug("completion request model=%s messages=%d", model, len(messages))

        try:
            response = await litellm.acompletion(**kwargs)
        except Exception as e:
            log.warning("completion failed model=%s: %s", model, e)
            raise RemoteCallFailed(str(e), model=model) from e

        if not response.choices:
            raise RemoteCallFailed("Response contained no choices", model=model)

        choice = response.choices[0]
        usage = _usage_dict(getattr(response, "usage", None))
        log.debug("completion done model=%s usage=%s", model, usage)

        return CompletionResult(
            content=choice.message.content or "",
            finish_reason=choice.finish_reason,
            usage=usage,
        )

    async def stream(
        self,
        messages: list[Message],
        *,
        model: str,
        temperature: float | None = None,
        max_tokens: int = 2048,
    ) -> AsyncIterator[StreamChunk]:
        """Generate a streaming completion.

        Yields text chunks as they arrive; the chunk carrying usage (sent last
        by the endpoint) is yielded with is_final set.

        Raises:
            RemoteCallFailed: On any network or API error, including mid-stream.
        """
        kwargs = self._build_kwargs(
            messages,
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
            stream=True,
        )
        log.debug("stream request model=%s messages=%d", model, len(messages))

        try:
            response = await litellm.acompletion(**kwargs)
            async for chunk in response:
                usage = _usage_dict(getattr(chunk, "usage", None)) or None
                text = ""
                finish_reason = None
                if chunk.choices:
                    delta = chunk.choices[0].delta
                    text = (delta.content if delta else None) or ""
                    finish_reason = chunk.choices[0].finish_reason
                if not text and usage is None and finish_reason is None:
                    continue
                yield StreamChunk(
                    text=text,
                    is_final=usage is not None,
                    finish_reason=finish_reason,
                    usage=usage,
                )
        except RemoteCallFailed:
            raise
        except Exception as e:
            log.warning("stream failed model=%s: %s", model, e)
            raise RemoteCallFailed(str(e), model=model) from e


def create_provider(config: Config, store: ConfigStore | None = None) -> LiteLLMProvider:
    """Build the provider for a session.

    Raises:
        SetupFailed: If no API credential is configured.
    """
    api_key = get_api_key(store)
    if not api_key:
        raise SetupFailed(
            "No API key configured",
            hint=f"Run 'codechat auth login' or set {API_KEY_ENV}",
        )
    return LiteLLMProvider(api_key=api_key, api_base=config.llm.base_url)
