"""Plain chat session: conversation only, no tools and no trust gate."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from codechat.config.schema import DEFAULT_MAX_TOKENS, DEFAULT_TEMPERATURE
from codechat.core.llm.registry import CATEGORIES
from codechat.errors import RemoteCallFailed
from codechat.logging import get_logger
from codechat.prompts import CHAT_SYSTEM_PROMPT
from codechat.session.conversation import ConversationState

if TYPE_CHECKING:
    from codechat.core.llm.provider import LLMProvider
    from codechat.core.llm.registry import ModelRegistry
    from codechat.ui.console import Renderer
    from codechat.ui.prompts import InputSource

log = get_logger("chat")

HELP_ROWS = [
    ("/exit, /quit", "Exit chat"),
    ("/clear", "Clear conversation history"),
    ("/models", "List all known models"),
    ("/switch <model>", "Change to a different model"),
    ("/temperature <0-2>", "Change the sampling temperature"),
    ("/info", "Show current settings and stats"),
    ("/help", "Show this help message"),
]


class ChatSession:
    """Interactive chat with streaming or whole replies."""

    def __init__(
        self,
        *,
        provider: LLMProvider,
        renderer: Renderer,
        input: InputSource,
        model: str,
        registry: ModelRegistry | None = None,
        system_prompt: str | None = None,
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        streaming: bool = True,
    ) -> None:
        self._provider = provider
        self._renderer = renderer
        self._input = input
        self._registry = registry
        self.streaming = streaming
        self.conversation = ConversationState(
            system_prompt or CHAT_SYSTEM_PROMPT,
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
        )
        self._exited = False

        self._commands: dict[str, Callable[[str], Awaitable[None]]] = {
            "exit": self._cmd_exit,
            "quit": self._cmd_exit,
            "clear": self._cmd_clear,
            "models": self._cmd_models,
            "switch": self._cmd_switch,
            "temperature": self._cmd_temperature,
            "help": self._cmd_help,
            "info": self._cmd_info,
        }

    @property
    def exited(self) -> bool:
        return self._exited

    def _display(self, model_id: str) -> str:
        return self._registry.display_name(model_id) if self._registry else model_id

    async def start(self) -> None:
        """Run until /exit, end of input or Ctrl-C."""
        self.show_welcome()
        try:
            while not self._exited:
                try:
                    text = await self._input.read("You: ")
                except (EOFError, KeyboardInterrupt):
                    break
                await self.handle_input(text)
        finally:
            self._exited = True
            self.show_goodbye()

    async def handle_input(self, text: str) -> None:
        text = text.strip()
        if not text:
            return
        if text.startswith("/"):
            verb, _, args = text[1:].partition(" ")
            handler = self._commands.get(verb.lower())
            if handler is None:
                self._renderer.error(f"Unknown command: {text}", "Type /help for available commands")
                return
            await handler(args.strip())
            return
        await self.send_message(text)

    async def send_message(self, text: str) -> bool:
        """One user turn. On failure the user message is kept for a resend."""
        conv = self.conversation
        conv.add_user(text)
        try:
            if self.streaming:
                reply, usage = await self._stream_reply()
            else:
                reply, usage = await self._complete_reply()
        except RemoteCallFailed as e:
            log.warning("Chat call failed: %s", e)
            self._renderer.error("API Error", str(e))
            return False

        conv.add_assistant(reply)
        conv.record_usage(usage, reply)
        return True

    async def _complete_reply(self) -> tuple[str, dict[str, int] | None]:
        conv = self.conversation
        with self._renderer.status("Thinking..."):
            result = await self._provider.complete(
                conv.messages,
                model=conv.model,
                temperature=conv.temperature,
                max_tokens=conv.max_tokens,
            )
        self._renderer.assistant_header()
        self._renderer.line(result.content)
        self._renderer.line()
        return result.content, result.usage or None

    async def _stream_reply(self) -> tuple[str, dict[str, int] | None]:
        conv = self.conversation
        parts: list[str] = []
        usage: dict[str, int] | None = None

        self._renderer.assistant_header()
        async for chunk in self._provider.stream(
            conv.messages,
            model=conv.model,
            temperature=conv.temperature,
            max_tokens=conv.max_tokens,
        ):
            if chunk.text:
                self._renderer.stream_text(chunk.text)
                parts.append(chunk.text)
            if chunk.usage:
                usage = chunk.usage
        self._renderer.line()
        self._renderer.line()
        return "".join(parts), usage

    # -- presentation ------------------------------------------------------

    def show_welcome(self) -> None:
        conv = self.conversation
        self._renderer.panel(
            "🤖 [bold]Interactive Chat Mode[/bold]\n\n"
            f"Model: [cyan]{self._display(conv.model)}[/cyan]\n"
            f"Temperature: [yellow]{conv.temperature}[/yellow] | "
            f"Max Tokens: [yellow]{conv.max_tokens}[/yellow]",
            title="codechat",
        )
        self._renderer.dim("Type /help for commands, /exit to leave")

    def show_goodbye(self) -> None:
        self._renderer.line()
        self._renderer.rule()
        self._renderer.markup("[green]👋 Thanks for using codechat![/green]")
        self._renderer.label("Total tokens used", self.conversation.usage.total_tokens)

    # -- slash commands ----------------------------------------------------

    async def _cmd_exit(self, args: str) -> None:
        self._exited = True

    async def _cmd_clear(self, args: str) -> None:
        self.conversation.clear_history()
        self._renderer.success("Conversation history cleared")

    async def _cmd_models(self, args: str) -> None:
        if self._registry is None:
            self._renderer.info("No model registry loaded")
            return
        current = self.conversation.model
        for category in CATEGORIES:
            models = self._registry.by_category(category)
            if not models:
                continue
            self._renderer.markup(f"\n[bold]{category.upper()}:[/bold]")
            for model in models:
                marker = "[green]→[/green]" if model.id == current else " "
                self._renderer.markup(f"{marker} [cyan]{model.id}[/cyan] - {model.display_name}")
        self._renderer.line()
        self._renderer.dim("Use /switch <model-id> to change models")

    async def _cmd_switch(self, args: str) -> None:
        if not args:
            self._renderer.error("Usage: /switch <model>")
            return
        if self._registry is None:
            model_id: str | None = args
        else:
            model_id = self._registry.resolve_model_id(args)
        if model_id is None:
            self._renderer.error(f"Model not found: {args}", "Use /models to see available models")
            return
        self.conversation.model = model_id
        self._renderer.success(f"Switched to {self._display(model_id)}")

    async def _cmd_temperature(self, args: str) -> None:
        if not args:
            self._renderer.label("Temperature", self.conversation.temperature)
            return
        try:
            value = float(args)
        except ValueError:
            self._renderer.error(f"Invalid temperature: {args}", "Usage: /temperature <0-2>")
            return
        try:
            self.conversation.set_temperature(value)
        except ValueError as e:
            self._renderer.error(str(e))
            return
        self._renderer.success(f"Temperature set to {self.conversation.temperature}")

    async def _cmd_help(self, args: str) -> None:
        self._renderer.table(["Command", "Description"], HELP_ROWS, title="Available Commands")

    async def _cmd_info(self, args: str) -> None:
        conv = self.conversation
        self._renderer.markup("[bold]Current Session Info[/bold]")
        self._renderer.label("Model", self._display(conv.model))
        self._renderer.label("Temperature", conv.temperature)
        self._renderer.label("Max Tokens", conv.max_tokens)
        self._renderer.label("Messages", conv.exchange_count())
        self._renderer.label("Tokens Used", conv.usage.total_tokens)
