"""Shared test utilities and fixtures for codechat tests."""

from __future__ import annotations

import io
from collections.abc import AsyncIterator
from typing import Any
from unittest.mock import Mock

from rich.console import Console

from codechat.core.llm.provider import CompletionResult, Message, StreamChunk
from codechat.errors import CommandFailed
from codechat.terminal.result import CommandResult
from codechat.ui.console import Renderer

USAGE = {"prompt_tokens": 10, "completion_tokens": 20, "total_tokens": 30}


def make_renderer() -> Renderer:
    """Renderer writing plain text to an in-memory buffer."""
    console = Console(file=io.StringIO(), width=120, color_system=None, highlight=False)
    return Renderer(console)


def rendered(renderer: Renderer) -> str:
    """Everything the renderer has printed so far."""
    return renderer.console.file.getvalue()


def create_mock_llm_response(content: str = "Test response", usage: bool = True) -> Any:
    """Create a mock LiteLLM response object.

    Args:
        content: Response content
        usage: Attach usage counts (10/20/30)

    Returns:
        Mock mimicking litellm response structure
    """
    response = Mock()
    response.choices = [Mock()]
    response.choices[0].message = Mock()
    response.choices[0].message.content = content
    response.choices[0].finish_reason = "stop"

    if usage:
        response.usage = Mock()
        response.usage.prompt_tokens = 10
        response.usage.completion_tokens = 20
        response.usage.total_tokens = 30
    else:
        response.usage = None

    return response


def create_mock_llm_stream_chunk(
    text: str | None = "chunk",
    is_final: bool = False,
    usage: bool = False,
) -> Any:
    """Create a mock streaming chunk from LiteLLM.

    Args:
        text: Chunk text content
        is_final: Whether this is the final content chunk
        usage: Make this the trailing usage-only chunk (no choices)
    """
    chunk = Mock()
    if usage:
        chunk.choices = []
        chunk.usage = Mock()
        chunk.usage.prompt_tokens = 10
        chunk.usage.completion_tokens = 20
        chunk.usage.total_tokens = 30
        return chunk

    chunk.choices = [Mock()]
    chunk.choices[0].delta = Mock()
    chunk.choices[0].delta.content = text
    chunk.choices[0].finish_reason = "stop" if is_final else None
    chunk.usage = None
    return chunk


class MockStream:
    """Async iterator over prepared chunks, like litellm's CustomStreamWrapper."""

    def __init__(self, chunks: list[Any], error: Exception | None = None) -> None:
        self._chunks = list(chunks)
        self._error = error

    def __aiter__(self) -> MockStream:
        return self

    async def __anext__(self) -> Any:
        if self._chunks:
            return self._chunks.pop(0)
        if self._error is not None:
            error, self._error = self._error, None
            raise error
        raise StopAsyncIteration


class FakeProvider:
    """LLMProvider that returns scripted replies and records every call.

    Each queued reply is either a string or an exception to raise (KeyboardInterrupt included).
    """

    def __init__(self, *replies: str | BaseException, usage: dict[str, int] | None = USAGE) -> None:
        self.replies: list[str | BaseException] = list(replies)
        self.usage = usage
        self.calls: list[dict[str, Any]] = []

    def queue(self, *replies: str | BaseException) -> None:
        self.replies.extend(replies)

    def _next(self, messages: list[Message], **kwargs: Any) -> str:
        self.calls.append({"messages": list(messages), **kwargs})
        reply = self.replies.pop(0) if self.replies else "ok"
        if isinstance(reply, BaseException):
            raise reply
        return reply

    async def complete(
        self,
        messages: list[Message],
        *,
        model: str,
        temperature: float | None = None,
        max_tokens: int = 2048,
    ) -> CompletionResult:
        reply = self._next(messages, model=model, temperature=temperature, max_tokens=max_tokens)
        return CompletionResult(content=reply, finish_reason="stop", usage=dict(self.usage or {}))

    async def stream(
        self,
        messages: list[Message],
        *,
        model: str,
        temperature: float | None = None,
        max_tokens: int = 2048,
    ) -> AsyncIterator[StreamChunk]:
        reply = self._next(messages, model=model, temperature=temperature, max_tokens=max_tokens)
        for i in range(0, len(reply), 5):
            yield StreamChunk(text=reply[i : i + 5])
        if self.usage:
            yield StreamChunk(text="", is_final=True, usage=dict(self.usage))


class ScriptedInput:
    """InputSource that replays prepared lines and answers.

    read() raises EOFError once the lines run out. A line given as an
    exception instance is raised instead of returned.
    """

    def __init__(self, *lines: str | BaseException, confirm: bool = True) -> None:
        self.lines: list[str | BaseException] = list(lines)
        self.confirm_answer = confirm
        self.prompts: list[str] = []
        self.questions: list[str] = []

    async def read(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self.lines:
            raise EOFError
        line = self.lines.pop(0)
        if isinstance(line, BaseException):
            raise line
        return line

    async def confirm(self, question: str) -> bool:
        self.questions.append(question)
        return self.confirm_answer

    async def secret(self, prompt: str) -> str:
        return await self.read(prompt)


class SpyExecutor:
    """CommandExecutor stand-in that records commands without running them."""

    def __init__(self, outputs: dict[str, str | CommandFailed] | None = None) -> None:
        self.outputs = outputs or {}
        self.commands: list[str] = []

    async def execute(self, command: str) -> CommandResult:
        self.commands.append(command)
        output = self.outputs.get(command, "")
        if isinstance(output, CommandFailed):
            raise output
        return CommandResult(
            command=command,
            stdout=output,
            stderr="",
            exit_code=0,
            truncated=False,
            duration_ms=1.0,
        )
