"""Line input for the interactive sessions."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from prompt_toolkit import PromptSession
from prompt_toolkit.auto_suggest import AutoSuggestFromHistory
from prompt_toolkit.history import FileHistory, InMemoryHistory
from prompt_toolkit.shortcuts import create_confirm_session


class InputSource(Protocol):
    """Where the sessions read user input from.

    read() raises EOFError on end of input and KeyboardInterrupt on Ctrl-C.
    """

    async def read(self, prompt: str) -> str: ...

    async def confirm(self, question: str) -> bool: ...

    async def secret(self, prompt: str) -> str: ...


class PromptInput:
    """prompt_toolkit-backed input with persistent history."""

    def __init__(self, history_file: Path | None = None) -> None:
        if history_file:
            history_file.parent.mkdir(parents=True, exist_ok=True)
            history = FileHistory(str(history_file))
        else:
            history = InMemoryHistory()
        self.session: PromptSession[str] = PromptSession(
            history=history,
            auto_suggest=AutoSuggestFromHistory(),
        )

    async def read(self, prompt: str) -> str:
        return await self.session.prompt_async(prompt)

    async def confirm(self, question: str) -> bool:
        return await create_confirm_session(question).prompt_async()

    async def secret(self, prompt: str) -> str:
        # Separate session so the key never lands in the history file
        session: PromptSession[str] = PromptSession()
        return await session.prompt_async(prompt, is_password=True)
