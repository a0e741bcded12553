"""Agentic code assistant session.

The assistant exchanges messages with a model, pulls <write_file> and
<execute_command> tags out of each reply, runs them against the workspace
and feeds the outcome back into the conversation as system messages:

    user text
      -> slash command, handled locally
      -> model call -> parse_reply()
           -> file writes (all of them, in order)
           -> commands (all of them, in order)
           -> raw reply appended as the assistant message

Per-operation failures (a write outside the root, a failing command, an
unreachable endpoint) are rendered as one line, told to the model, and never
leave the loop.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import TYPE_CHECKING

from codechat.config.schema import CODE_MAX_TOKENS, DEFAULT_CONTEXT_OUTPUT_CHARS
from codechat.errors import CodechatError, CommandFailed, RemoteCallFailed, WorkspaceNotTrusted
from codechat.logging import get_logger
from codechat.prompts import CODE_SYSTEM_PROMPT
from codechat.session.activity import SessionLog
from codechat.session.conversation import ConversationState
from codechat.session.tags import CommandIntent, FileWriteIntent, parse_reply
from codechat.terminal.classify import is_quiet_command
from codechat.workspace.analyzer import ProjectAnalyzer

if TYPE_CHECKING:
    from codechat.core.llm.provider import LLMProvider
    from codechat.core.llm.registry import ModelRegistry
    from codechat.session.trust import TrustGate
    from codechat.terminal.executor import CommandExecutor
    from codechat.ui.console import Renderer
    from codechat.ui.prompts import InputSource
    from codechat.workspace.files import ScopedFileAccessor

log = get_logger("session")

SEARCH_PATTERN = "**/*.{py,pyi,ts,tsx,js,jsx,md,toml,json,yaml,yml}"
SEARCH_MAX_FILES = 10
SEARCH_MAX_MATCHES = 3
TREE_DEPTH = 3
FILES_SHOWN = 20

HELP_ROWS = [
    ("/read <file>", "Read a file and add it to the conversation"),
    ("/search <text>", "Search for text across source files"),
    ("/tree", "Show project file tree"),
    ("/files", "List all source files"),
    ("/model [id]", "Show or switch the current model"),
    ("/reset", "Reset conversation history"),
    ("/clear", "Clear the screen"),
    ("/help", "Show this help"),
    ("/exit", "Exit code assistant"),
]


class SessionState(Enum):
    IDLE = "idle"
    AWAITING_INPUT = "awaiting_input"
    SLASH_COMMAND = "slash_command"
    MODEL_CALL = "model_call"
    RESPONSE_HANDLING = "response_handling"
    EXITED = "exited"


class CodeAssistant:
    """Interactive or one-shot coding session over one workspace."""

    def __init__(
        self,
        *,
        provider: LLMProvider,
        files: ScopedFileAccessor,
        executor: CommandExecutor,
        trust: TrustGate,
        renderer: Renderer,
        input: InputSource,
        model: str,
        temperature: float = 0.7,
        max_tokens: int = CODE_MAX_TOKENS,
        registry: ModelRegistry | None = None,
        context_output_chars: int = DEFAULT_CONTEXT_OUTPUT_CHARS,
    ) -> None:
        self._provider = provider
        self._files = files
        self._executor = executor
        self._trust = trust
        self._renderer = renderer
        self._input = input
        self._registry = registry
        self._analyzer = ProjectAnalyzer(files)
        self._context_output_chars = context_output_chars

        self.conversation = ConversationState(
            CODE_SYSTEM_PROMPT,
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
            lock_sampling=True,
        )
        self.activity = SessionLog()
        self.state = SessionState.IDLE

        self._commands: dict[str, Callable[[str], Awaitable[None]]] = {
            "exit": self._cmd_exit,
            "quit": self._cmd_exit,
            "clear": self._cmd_clear,
            "read": self._cmd_read,
            "write": self._cmd_write,
            "search": self._cmd_search,
            "tree": self._cmd_tree,
            "files": self._cmd_files,
            "reset": self._cmd_reset,
            "model": self._cmd_model,
            "help": self._cmd_help,
        }

    @property
    def root(self) -> str:
        return str(self._files.root)

    # -- entry points ------------------------------------------------------

    async def start_interactive(self) -> bool:
        """Run the REPL until /exit, end of input or Ctrl-C.

        Returns False if the user declined to trust the workspace.
        """
        if not await self._open():
            return False

        self.show_welcome()
        await self.inject_project_context()

        try:
            while self.state is not SessionState.EXITED:
                self.state = SessionState.AWAITING_INPUT
                try:
                    text = await self._input.read("You: ")
                except (EOFError, KeyboardInterrupt):
                    break
                await self.handle_input(text)
        finally:
            self.state = SessionState.EXITED
            self.show_summary()
            self._renderer.markup("\n[yellow]Goodbye! 👋[/yellow]")
        return True

    async def run_task(self, task: str) -> bool:
        """One model call and its tool calls, then a summary.

        Returns True if the model call succeeded.
        """
        if not await self._open():
            return False

        await self.inject_project_context()
        try:
            ok = await self.process_message(task)
        finally:
            self.state = SessionState.EXITED
            self.show_summary()
        return ok

    async def _open(self) -> bool:
        """Pass the trust gate; a refusal ends the session before any tool runs."""
        try:
            await self._trust.require_trusted(self.root)
        except WorkspaceNotTrusted as e:
            log.info("Session refused: %s", e)
            self._renderer.warning("Workspace not trusted. Exiting...")
            self.state = SessionState.EXITED
            return False
        return True

    # -- loop steps --------------------------------------------------------

    async def handle_input(self, text: str) -> None:
        text = text.strip()
        if not text:
            return
        if text.startswith("/"):
            await self.dispatch_command(text)
        else:
            await self.process_message(text)

    async def dispatch_command(self, text: str) -> None:
        self.state = SessionState.SLASH_COMMAND
        verb, _, args = text[1:].partition(" ")
        handler = self._commands.get(verb.lower())
        if handler is None:
            self._renderer.error(f"Unknown command: /{verb}", "Type /help for available commands")
        else:
            await handler(args.strip())
        if self.state is not SessionState.EXITED:
            self.state = SessionState.IDLE

    async def process_message(self, text: str) -> bool:
        """Send one user turn to the model and act on the reply.

        On a failed call the user message stays in the conversation so the
        next turn resends it.
        """
        self.state = SessionState.MODEL_CALL
        conv = self.conversation
        conv.add_user(text)

        try:
            with self._renderer.status("Thinking..."):
                result = await self._provider.complete(
                    conv.messages,
                    model=conv.model,
                    temperature=conv.temperature,
                    max_tokens=conv.max_tokens,
                )
        except RemoteCallFailed as e:
            log.warning("Model call failed: %s", e)
            self._renderer.error("Failed to get response", str(e))
            self.state = SessionState.IDLE
            return False

        conv.record_usage(result.usage, result.content)
        await self.handle_response(result.content)
        return True

    async def handle_response(self, reply: str) -> None:
        self.state = SessionState.RESPONSE_HANDLING
        parsed = parse_reply(reply)

        if not parsed.has_intents:
            self._renderer.reply(reply)
        else:
            if parsed.display:
                self._renderer.reply(parsed.display)
            for write in parsed.file_writes:
                await self.apply_write(write)
            for command in parsed.commands:
                await self.run_command(command)

        self.conversation.add_assistant(reply)
        self._renderer.line()
        self.state = SessionState.IDLE

    async def apply_write(self, intent: FileWriteIntent) -> None:
        self._renderer.tool_start("Writing", intent.path)
        try:
            await asyncio.to_thread(self._files.write, intent.path, intent.content)
        except (CodechatError, OSError, ValueError) as e:
            log.info("Write failed %s: %s", intent.path, e)
            self._renderer.tool_failed("Write failed", str(e))
            self.conversation.add_system(f"File write failed for {intent.path}: {e}")
            return

        self._renderer.tool_ok("File written")
        self.activity.record_write(intent.path)
        self.conversation.add_system(f"File written: {intent.path}")

    async def run_command(self, intent: CommandIntent) -> None:
        command = intent.command
        quiet = is_quiet_command(command)
        if not quiet:
            self._renderer.tool_start("Running", command)

        try:
            result = await self._executor.execute(command)
        except CommandFailed as e:
            log.info("Command failed %r: %s", command, e)
            self._renderer.error("Command failed:")
            self._renderer.line(e.message, style="red")
            self.conversation.add_system(
                f"Command failed: {command}\nError: {e.message[: self._context_output_chars]}"
            )
            return

        output = result.stdout
        if not quiet:
            if output.strip():
                self._renderer.command_output(output)
            else:
                self._renderer.tool_ok("Done")

        self.activity.record_command(command, output)
        self.conversation.add_system(
            f"Command executed: {command}\nOutput: {output[: self._context_output_chars]}"
        )

    async def inject_project_context(self) -> None:
        """Add the project summary as a system message. Failure is not fatal."""
        try:
            with self._renderer.status("Analyzing project structure..."):
                context = await asyncio.to_thread(self._analyzer.build_context)
        except Exception as e:
            # Analysis reads arbitrary user files; the session starts without it.
            log.warning("Project analysis failed: %s", e, exc_info=True)
            self._renderer.warning("Could not analyze project")
            return
        self.conversation.add_system(f"Current project context:\n{context}")
        self._renderer.success("Project analyzed")

    # -- presentation ------------------------------------------------------

    def show_welcome(self) -> None:
        self._renderer.panel(
            "[bold]🤖 Code Assistant Mode[/bold]\n\n"
            "[dim]I can help you:[/dim]\n"
            "  • Read and analyze your code\n"
            "  • Execute shell commands\n"
            "  • Suggest improvements\n"
            "  • Write new features\n"
            "  • Refactor existing code\n\n"
            "[dim]Type /help for commands[/dim]"
        )

    def show_summary(self) -> None:
        files = self.activity.files_modified
        commands = self.activity.commands_executed
        if files:
            self._renderer.success(f"Modified {len(files)} file(s)")
            self._renderer.dim("Files changed:")
            for path in files:
                self._renderer.dim(f"  - {path}")
        if commands:
            self._renderer.success(f"Executed {len(commands)} command(s)")
            self._renderer.dim("Commands run:")
            for record in commands:
                self._renderer.dim(f"  - {record.command}")

    # -- slash commands ----------------------------------------------------

    async def _cmd_exit(self, args: str) -> None:
        self.state = SessionState.EXITED

    async def _cmd_clear(self, args: str) -> None:
        self._renderer.clear()
        self.show_welcome()

    async def _cmd_read(self, args: str) -> None:
        if not args:
            self._renderer.error("Usage: /read <file-path>")
            return
        try:
            content = await asyncio.to_thread(self._files.read, args)
        except (CodechatError, OSError, ValueError) as e:
            self._renderer.error(f"Could not read file: {e}")
            return

        self._renderer.line(f"\n=== {args} ===", style="cyan")
        self._renderer.line(content)
        self._renderer.line("=" * (len(args) + 8), style="cyan")
        self.conversation.add_system(f"File content of {args}:\n```\n{content}\n```")

    async def _cmd_write(self, args: str) -> None:
        self._renderer.info("Use natural language to ask me to write files")

    async def _cmd_search(self, args: str) -> None:
        if not args:
            self._renderer.error("Usage: /search <text>")
            return
        with self._renderer.status("Searching..."):
            results = await asyncio.to_thread(self._files.search_in_files, SEARCH_PATTERN, args)

        if not results:
            self._renderer.info("No results found")
            return

        self._renderer.line(f"\nFound {len(results)} file(s):\n", style="cyan")
        for result in results[:SEARCH_MAX_FILES]:
            self._renderer.line(result.path, style="bold")
            for match in result.matches[:SEARCH_MAX_MATCHES]:
                self._renderer.dim(f"  Line {match.line}: {match.content}")
            self._renderer.line()
        if len(results) > SEARCH_MAX_FILES:
            self._renderer.dim(f"... and {len(results) - SEARCH_MAX_FILES} more")

    async def _cmd_tree(self, args: str) -> None:
        with self._renderer.status("Building tree..."):
            tree = await asyncio.to_thread(self._analyzer.file_tree, ".", TREE_DEPTH)
        self._renderer.line(f"\n{tree}\n")

    async def _cmd_files(self, args: str) -> None:
        with self._renderer.status("Finding source files..."):
            files = await asyncio.to_thread(self._analyzer.find_source_files)

        self._renderer.line(f"\nFound {len(files)} source file(s):\n", style="cyan")
        for path in files[:FILES_SHOWN]:
            self._renderer.dim(f"  {path}")
        if len(files) > FILES_SHOWN:
            self._renderer.dim(f"  ... and {len(files) - FILES_SHOWN} more")

    async def _cmd_reset(self, args: str) -> None:
        self.conversation.reset()
        self._renderer.success("Conversation reset")

    async def _cmd_model(self, args: str) -> None:
        current = self.conversation.model
        display = self._registry.display_name(current) if self._registry else current
        if not args:
            self._renderer.label("Model", display)
            return

        if self._registry is None:
            self.conversation.model = args
        else:
            model_id = self._registry.resolve_model_id(args)
            if model_id is None:
                self._renderer.error(f"Model not found: {args}", "Run 'codechat models list' to see known models")
                return
            self.conversation.model = model_id
        new_display = (
            self._registry.display_name(self.conversation.model)
            if self._registry
            else self.conversation.model
        )
        self._renderer.success(f"Switched to {new_display}")

    async def _cmd_help(self, args: str) -> None:
        self._renderer.table(["Command", "Description"], HELP_ROWS, title="Available Commands")
        self._renderer.dim("Just describe what you want to do in natural language!")
