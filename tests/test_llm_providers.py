"""Tests for the LiteLLM provider and the model registry.

Tests coverage for:
- src/codechat/core/llm/litellm_provider.py
- src/codechat/core/llm/provider.py
- src/codechat/core/llm/registry.py
"""

from __future__ import annotations

import pytest
from unittest.mock import AsyncMock, patch

from codechat.config.schema import Config, LLMConfig
from codechat.core.llm.litellm_provider import LiteLLMProvider, create_provider
from codechat.core.llm.provider import (
    CompletionResult,
    LLMProvider,
    Message,
    Role,
    StreamChunk,
)
from codechat.core.llm.registry import CATEGORIES, ModelData, ModelRegistry
from codechat.errors import RemoteCallFailed, SetupFailed
from tests.utils import (
    FakeProvider,
    MockStream,
    create_mock_llm_response,
    create_mock_llm_stream_chunk,
)


# =============================================================================
# Provider Types
# =============================================================================


class TestProviderTypes:
    def test_message_wire_format(self):
        message = Message(Role.ASSISTANT, "hi")
        assert message.to_dict() == {"role": "assistant", "content": "hi"}

    def test_protocol_conformance(self):
        assert isinstance(LiteLLMProvider(api_key="k"), LLMProvider)
        assert isinstance(FakeProvider(), LLMProvider)


# =============================================================================
# LiteLLM Provider
# =============================================================================


class TestLiteLLMProvider:
    """Tests for LiteLLMProvider with litellm mocked out."""

    @pytest.mark.asyncio
    async def test_complete_success(self):
        """Test successful completion."""
        provider = LiteLLMProvider(api_key="sk-test")
        mock_response = create_mock_llm_response("This is the response!")

        with patch("litellm.acompletion", new_callable=AsyncMock) as mock_acompletion:
            mock_acompletion.return_value = mock_response

            messages = [
                Message(role=Role.SYSTEM, content="Be brief"),
                Message(role=Role.USER, content="Test prompt"),
            ]
            result = await provider.complete(
                messages, model="gpt-4o-mini", max_tokens=100, temperature=0.7
            )

            assert isinstance(result, CompletionResult)
            assert result.content == "This is the response!"
            assert result.finish_reason == "stop"
            assert result.usage == {"prompt_tokens": 10, "completion_tokens": 20, "total_tokens": 30}

            mock_acompletion.assert_called_once()
            call_kwargs = mock_acompletion.call_args.kwargs
            assert call_kwargs["model"] == "gpt-4o-mini"
            assert call_kwargs["max_tokens"] == 100
            assert call_kwargs["temperature"] == 0.7
            assert call_kwargs["stream"] is False
            assert call_kwargs["api_key"] == "sk-test"
            assert call_kwargs["messages"] == [
                {"role": "system", "content": "Be brief"},
                {"role": "user", "content": "Test prompt"},
            ]
            assert "api_base" not in call_kwargs

    @pytest.mark.asyncio
    async def test_gateway_mode(self):
        """A base URL routes through the OpenAI-compatible adapter."""
        provider = LiteLLMProvider(api_key="k", api_base="https://gateway.example/v1")

        with patch("litellm.acompletion", new_callable=AsyncMock) as mock_acompletion:
            mock_acompletion.return_value = create_mock_llm_response()
            await provider.complete([Message(Role.USER, "x")], model="claude-sonnet-4-5-20250929")

            call_kwargs = mock_acompletion.call_args.kwargs
            assert call_kwargs["api_base"] == "https://gateway.example/v1"
            assert call_kwargs["custom_llm_provider"] == "openai"
            assert call_kwargs["model"] == "claude-sonnet-4-5-20250929"

    @pytest.mark.asyncio
    async def test_temperature_omitted_when_none(self):
        provider = LiteLLMProvider()

        with patch("litellm.acompletion", new_callable=AsyncMock) as mock_acompletion:
            mock_acompletion.return_value = create_mock_llm_response()
            await provider.complete([Message(Role.USER, "x")], model="m")

            call_kwargs = mock_acompletion.call_args.kwargs
            assert "temperature" not in call_kwargs
            assert "api_key" not in call_kwargs

    @pytest.mark.asyncio
    async def test_complete_no_usage(self):
        """Test completion when usage data is not provided."""
        provider = LiteLLMProvider(api_key="k")

        with patch("litellm.acompletion", new_callable=AsyncMock) as mock_acompletion:
            mock_acompletion.return_value = create_mock_llm_response("Response text", usage=False)
            result = await provider.complete([Message(Role.USER, "Test")], model="m")

            assert result.content == "Response text"
            assert result.usage == {}

    @pytest.mark.asyncio
    async def test_complete_null_content(self):
        provider = LiteLLMProvider(api_key="k")
        response = create_mock_llm_response()
        response.choices[0].message.content = None

        with patch("litellm.acompletion", new_callable=AsyncMock) as mock_acompletion:
            mock_acompletion.return_value = response
            result = await provider.complete([Message(Role.USER, "Test")], model="m")

            assert result.content == ""

    @pytest.mark.asyncio
    async def test_complete_error_wrapped(self):
        """Transport errors surface as RemoteCallFailed."""
        provider = LiteLLMProvider(api_key="k")

        with patch("litellm.acompletion", new_callable=AsyncMock) as mock_acompletion:
            mock_acompletion.side_effect = ConnectionError("connection refused")

            with pytest.raises(RemoteCallFailed) as exc_info:
                await provider.complete([Message(Role.USER, "Test")], model="gpt-4o")

            assert exc_info.value.message == "connection refused"
            assert exc_info.value.model == "gpt-4o"
            assert str(exc_info.value) == "gpt-4o: connection refused"

    @pytest.mark.asyncio
    async def test_complete_no_choices(self):
        provider = LiteLLMProvider(api_key="k")
        response = create_mock_llm_response()
        response.choices = []

        with patch("litellm.acompletion", new_callable=AsyncMock) as mock_acompletion:
            mock_acompletion.return_value = response
            with pytest.raises(RemoteCallFailed, match="no choices"):
                await provider.complete([Message(Role.USER, "Test")], model="m")

    @pytest.mark.asyncio
    async def test_stream_success(self):
        """Test successful streaming completion."""
        provider = LiteLLMProvider(api_key="k")
        chunks = [
            create_mock_llm_stream_chunk("Hello", False),
            create_mock_llm_stream_chunk(" world", False),
            create_mock_llm_stream_chunk("!", True),
            create_mock_llm_stream_chunk(usage=True),
        ]

        with patch("litellm.acompletion", new_callable=AsyncMock) as mock_acompletion:
            mock_acompletion.return_value = MockStream(chunks)

            collected = [
                chunk
                async for chunk in provider.stream(
                    [Message(Role.USER, "Test")], model="m", max_tokens=50
                )
            ]

            assert all(isinstance(c, StreamChunk) for c in collected)
            assert "".join(c.text for c in collected) == "Hello world!"
            assert collected[2].finish_reason == "stop"
            assert collected[2].is_final is False
            assert collected[-1].is_final is True
            assert collected[-1].usage["total_tokens"] == 30

            call_kwargs = mock_acompletion.call_args.kwargs
            assert call_kwargs["stream"] is True
            assert call_kwargs["stream_options"] == {"include_usage": True}

    @pytest.mark.asyncio
    async def test_stream_skips_empty_chunks(self):
        provider = LiteLLMProvider(api_key="k")
        chunks = [
            create_mock_llm_stream_chunk(None),
            create_mock_llm_stream_chunk("text"),
            create_mock_llm_stream_chunk(""),
        ]

        with patch("litellm.acompletion", new_callable=AsyncMock) as mock_acompletion:
            mock_acompletion.return_value = MockStream(chunks)
            collected = [c async for c in provider.stream([Message(Role.USER, "x")], model="m")]

            assert [c.text for c in collected] == ["text"]

    @pytest.mark.asyncio
    async def test_stream_error_mid_stream(self):
        provider = LiteLLMProvider(api_key="k")
        stream = MockStream([create_mock_llm_stream_chunk("partial")], error=TimeoutError("read timeout"))

        with patch("litellm.acompletion", new_callable=AsyncMock) as mock_acompletion:
            mock_acompletion.return_value = stream
            collected = []
            with pytest.raises(RemoteCallFailed, match="read timeout"):
                async for chunk in provider.stream([Message(Role.USER, "x")], model="m"):
                    collected.append(chunk.text)

            assert collected == ["partial"]

    @pytest.mark.asyncio
    async def test_stream_error_on_connect(self):
        provider = LiteLLMProvider(api_key="k")

        with patch("litellm.acompletion", new_callable=AsyncMock) as mock_acompletion:
            mock_acompletion.side_effect = RuntimeError("401 Unauthorized")
            with pytest.raises(RemoteCallFailed, match="401"):
                async for _ in provider.stream([Message(Role.USER, "x")], model="m"):
                    pass


class TestCreateProvider:
    def test_no_key(self, store):
        with pytest.raises(SetupFailed) as exc_info:
            create_provider(Config(), store)
        assert str(exc_info.value) == "No API key configured"
        assert "codechat auth login" in exc_info.value.hint

    def test_key_from_env(self, monkeypatch, store):
        monkeypatch.setenv("CODECHAT_API_KEY", "sk-env")
        config = Config(llm=LLMConfig(base_url="https://gw.example/v1"))
        provider = create_provider(config, store)
        assert isinstance(provider, LiteLLMProvider)
        assert provider.api_base == "https://gw.example/v1"

    def test_key_from_store(self, store):
        store.set("llm.api_key", "sk-stored")
        provider = create_provider(Config(), store)
        assert provider.api_base is None


# =============================================================================
# Model Registry
# =============================================================================


class TestModelRegistry:
    """Tests for the bundled model list."""

    @pytest.fixture
    def registry(self):
        return ModelRegistry.load()

    def test_loads_bundled_models(self, registry):
        ids = [m.id for m in registry.all_models()]
        assert "gpt-4o-mini" in ids
        assert "claude-sonnet-4-5-20250929" in ids
        assert len(ids) == len(set(ids))

    def test_categories_are_known(self, registry):
        assert {m.category for m in registry.all_models()} <= set(CATEGORIES)

    def test_exact_id(self, registry):
        assert registry.get_model("gpt-4o").id == "gpt-4o"

    def test_case_insensitive_id(self, registry):
        assert registry.get_model("GPT-4O").id == "gpt-4o"

    @pytest.mark.parametrize(
        "alias, model_id",
        [
            ("mini", "gpt-4o-mini"),
            ("Sonnet", "claude-sonnet-4-5-20250929"),
            ("claude-sonnet", "claude-sonnet-4-5-20250929"),
            ("qwen-coder", "qwen3-coder-480b"),
        ],
    )
    def test_alias(self, registry, alias, model_id):
        assert registry.resolve_model_id(alias) == model_id
        assert registry.has_model(alias)

    def test_unknown(self, registry):
        assert registry.get_model("no-such-model") is None
        assert registry.resolve_model_id("no-such-model") is None
        assert registry.display_name("no-such-model") == "no-such-model"

    def test_display_name(self, registry):
        assert registry.display_name("gpt-4o") == "GPT-4o (OpenAI)"

    def test_by_category(self, registry):
        fast = registry.by_category("fast")
        assert fast
        assert all(m.category == "fast" for m in fast)

    def test_by_provider_case_insensitive(self, registry):
        anthropic = registry.by_provider("anthropic")
        assert {m.provider for m in anthropic} == {"Anthropic"}
        assert len(anthropic) == 3

    def test_search(self, registry):
        assert [m.id for m in registry.search("coder")] == ["qwen3-coder-480b"]
        assert "claude-haiku-4-5-20251001" in [m.id for m in registry.search("HAIKU")]
        assert registry.search("zzz") == []

    def test_default_model(self, registry):
        assert registry.default_model().id == "claude-sonnet-4-5-20250929"

    def test_default_falls_back_to_first(self):
        models = [ModelData("a", "A", "X"), ModelData("b", "B", "Y")]
        assert ModelRegistry(models, default_alias="missing").default_model().id == "a"
        assert ModelRegistry([]).default_model() is None
