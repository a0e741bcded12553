"""Command-line interface for codechat."""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import yaml

from codechat import __version__
from codechat.config import (
    Config,
    ConfigStore,
    canonical_key,
    get_api_key,
    get_history_path,
    load_config,
    mask_secret,
)
from codechat.config.secrets import API_KEY_ENV
from codechat.core.llm import CATEGORIES, ModelData, ModelRegistry, create_provider
from codechat.errors import CodechatError, SetupFailed
from codechat.logging import DEFAULT_VERBOSITY, get_logger, setup_logging
from codechat.ui import PromptInput, Renderer

log = get_logger("cli")


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="codechat",
        description="Chat with LLMs from the terminal, or let one work on your project",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (can be repeated)",
    )
    parser.add_argument(
        "--workspace",
        type=Path,
        help="Project directory (default: current directory)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="User config file (default: ~/.config/codechat/config.yaml)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command")

    # Code assistant
    code_parser = subparsers.add_parser("code", help="Start the coding assistant")
    code_parser.add_argument("-t", "--task", help="Run one task and exit")

    # Chat
    chat_parser = subparsers.add_parser("chat", help="Start an interactive chat")
    chat_parser.add_argument("-m", "--model", help="Model to use (ID or alias)")
    chat_parser.add_argument("-s", "--system", help="System prompt")
    chat_parser.add_argument("-t", "--temperature", type=float, help="Temperature (0-2)")
    chat_parser.add_argument("--max-tokens", type=int, help="Maximum tokens in a reply")
    chat_parser.add_argument(
        "--no-stream",
        action="store_true",
        help="Wait for whole replies instead of streaming",
    )

    # Models
    models_parser = subparsers.add_parser("models", help="Explore known models")
    models_sub = models_parser.add_subparsers(dest="action")
    list_parser = models_sub.add_parser("list", help="List known models")
    list_parser.add_argument("-p", "--provider", help="Filter by provider")
    list_parser.add_argument("-c", "--category", choices=CATEGORIES, help="Filter by category")
    info_parser = models_sub.add_parser("info", help="Show details for a model")
    info_parser.add_argument("model")
    search_parser = models_sub.add_parser("search", help="Search models")
    search_parser.add_argument("query")

    # Auth
    auth_parser = subparsers.add_parser("auth", help="Manage the API credential")
    auth_sub = auth_parser.add_subparsers(dest="action")
    login_parser = auth_sub.add_parser("login", help="Save an API key")
    login_parser.add_argument("-k", "--key", help="API key (prompted if omitted)")
    logout_parser = auth_sub.add_parser("logout", help="Remove the saved API key")
    logout_parser.add_argument("-y", "--yes", action="store_true", help="Do not ask")
    auth_sub.add_parser("status", help="Show authentication status")

    # Config
    config_parser = subparsers.add_parser("config", help="Inspect or change settings")
    config_sub = config_parser.add_subparsers(dest="action")
    config_sub.add_parser("show", help="Show the effective configuration")
    get_parser = config_sub.add_parser("get", help="Print one stored value")
    get_parser.add_argument("key")
    set_parser = config_sub.add_parser("set", help="Store a value")
    set_parser.add_argument("key")
    set_parser.add_argument("value", help="Parsed as YAML (0.2, true, [a, b])")
    reset_parser = config_sub.add_parser("reset", help="Delete all stored settings and trust")
    reset_parser.add_argument("-y", "--yes", action="store_true", help="Do not ask")
    config_sub.add_parser("path", help="Print the config file location")

    return parser


@dataclasses.dataclass
class _App:
    """Objects built once per invocation and passed to each command."""

    args: argparse.Namespace
    workspace: Path
    config: Config
    store: ConfigStore
    renderer: Renderer

    def registry(self) -> ModelRegistry:
        return ModelRegistry.load()

    def resolve_model(self, requested: str | None, registry: ModelRegistry) -> str:
        """Canonical ID for a model name. Unknown names pass through unchanged."""
        name = requested or self.config.llm.default_model
        model_id = registry.resolve_model_id(name)
        if model_id is None:
            log.info("Model %s is not in the registry, using as-is", name)
            return name
        return model_id

    def input(self) -> PromptInput:
        return PromptInput(get_history_path())


# -- code / chat -------------------------------------------------------------


def _run_code(app: _App) -> int:
    from codechat.session import CodeAssistant, TrustGate
    from codechat.terminal import CommandExecutor
    from codechat.workspace import ScopedFileAccessor

    config = app.config
    provider = create_provider(config, app.store)
    registry = app.registry()
    prompt_input = app.input()

    assistant = CodeAssistant(
        provider=provider,
        files=ScopedFileAccessor(app.workspace, ignore=config.workspace.ignore),
        executor=CommandExecutor(
            app.workspace,
            timeout=config.session.command_timeout,
            output_limit=config.session.output_limit,
        ),
        trust=TrustGate(app.store, prompt_input.confirm, app.renderer),
        renderer=app.renderer,
        input=prompt_input,
        model=app.resolve_model(None, registry),
        temperature=config.llm.temperature,
        registry=registry,
        context_output_chars=config.session.context_output_chars,
    )

    if app.args.task:
        ok = asyncio.run(assistant.run_task(app.args.task))
    else:
        app.renderer.clear()
        ok = asyncio.run(assistant.start_interactive())
    return 0 if ok else 1


def _run_chat(app: _App) -> int:
    from codechat.session import ChatSession

    args, config, renderer = app.args, app.config, app.renderer

    if args.temperature is not None and not 0 <= args.temperature <= 2:
        renderer.error("Invalid temperature", "Temperature must be between 0 and 2")
        return 1
    if args.max_tokens is not None and args.max_tokens < 1:
        renderer.error("Invalid max tokens", "Max tokens must be at least 1")
        return 1

    provider = create_provider(config, app.store)
    registry = app.registry()

    session = ChatSession(
        provider=provider,
        renderer=renderer,
        input=app.input(),
        model=app.resolve_model(args.model, registry),
        registry=registry,
        system_prompt=args.system,
        temperature=config.llm.temperature if args.temperature is None else args.temperature,
        max_tokens=args.max_tokens or config.llm.max_tokens,
        streaming=config.llm.streaming and not args.no_stream,
    )
    asyncio.run(session.start())
    return 0


# -- models ------------------------------------------------------------------


def _print_model_rows(renderer: Renderer, models: list[ModelData], title: str) -> None:
    renderer.table(
        ["Model ID", "Name", "Provider", "Aliases"],
        [(m.id, m.name, m.provider, ", ".join(m.aliases) or "-") for m in models],
        title=title,
    )


def _run_models(app: _App) -> int:
    args, renderer = app.args, app.renderer
    registry = app.registry()

    if args.action == "info":
        model = registry.get_model(args.model)
        if model is None:
            renderer.error(f"Model not found: {args.model}", "Run 'codechat models list' to see known models")
            return 1
        renderer.markup(f"[bold]{model.name}[/bold]")
        renderer.label("ID", model.id)
        renderer.label("Provider", model.provider)
        renderer.label("Category", (model.category or "standard").capitalize())
        if model.aliases:
            renderer.label("Aliases", ", ".join(model.aliases))
        if model.description:
            renderer.label("Description", model.description)
        renderer.line()
        renderer.label("Chat", f"codechat chat -m {model.aliases[0] if model.aliases else model.id}")
        renderer.label("Switch in chat", f"/switch {model.id}")
        return 0

    if args.action == "search":
        results = registry.search(args.query)
        if not results:
            renderer.error(f'No models found matching: "{args.query}"', "Try a different search term")
            return 1
        _print_model_rows(renderer, results, f'Search results for "{args.query}"')
        return 0

    # list (default)
    provider = getattr(args, "provider", None)
    category = getattr(args, "category", None)
    models = registry.by_provider(provider) if provider else registry.all_models()
    if category:
        models = [m for m in models if m.category == category]
    if not models:
        renderer.error("No models found", "Try different filters")
        return 1
    for name in CATEGORIES:
        group = [m for m in models if m.category == name]
        if group:
            _print_model_rows(renderer, group, f"{name.upper()} ({len(group)})")
    renderer.dim("Tip: codechat models info <model-id> shows details")
    return 0


# -- auth --------------------------------------------------------------------


def _run_auth(app: _App) -> int:
    args, store, renderer = app.args, app.store, app.renderer

    if args.action == "login":
        key = args.key
        if not key:
            try:
                key = asyncio.run(app.input().secret("Enter your API key: "))
            except (EOFError, KeyboardInterrupt):
                renderer.dim("Login cancelled")
                return 1
        key = key.strip()
        if not key:
            renderer.error("API key is required")
            return 1
        store.set("llm.api_key", key)
        renderer.success("Authentication configured!")
        renderer.label("Saved to", store.path)
        return 0

    if args.action == "logout":
        if not store.get("llm.api_key"):
            renderer.info("You are not logged in")
            return 0
        if not args.yes:
            try:
                confirmed = asyncio.run(
                    app.input().confirm("Are you sure you want to remove your API key?")
                )
            except (EOFError, KeyboardInterrupt):
                confirmed = False
            if not confirmed:
                renderer.dim("Logout cancelled")
                return 0
        store.delete("llm.api_key")
        renderer.success("Logged out successfully")
        return 0

    # status (default)
    key = get_api_key(store)
    if not key:
        renderer.error("Not authenticated", f"Run 'codechat auth login' or set {API_KEY_ENV}")
        return 1
    config = app.config
    renderer.success("Authenticated")
    renderer.label("API Key", mask_secret(key))
    renderer.label("Config", store.path)
    renderer.label("Base URL", config.llm.base_url or "default")
    renderer.label("Default Model", config.llm.default_model)
    renderer.label("Temperature", config.llm.temperature)
    renderer.label("Streaming", "enabled" if config.llm.streaming else "disabled")
    return 0


# -- config ------------------------------------------------------------------


def _run_config(app: _App) -> int:
    args, store, renderer = app.args, app.store, app.renderer

    if args.action == "path":
        renderer.line(str(store.path))
        return 0

    if args.action == "get":
        value = store.get(args.key)
        if value is None:
            renderer.dim("Not set")
            return 1
        if canonical_key(args.key) == "llm.api_key":
            value = mask_secret(value)
        if isinstance(value, (dict, list)):
            renderer.line(yaml.safe_dump(value, default_flow_style=False, sort_keys=False).rstrip())
        else:
            renderer.line(str(value))
        return 0

    if args.action == "set":
        value: Any = yaml.safe_load(args.value)
        previous = store.get(args.key)
        store.set(args.key, value)
        errors = _try_validate(app)
        if errors:
            if previous is None:
                store.delete(args.key)
            else:
                store.set(args.key, previous)
            for error in errors:
                renderer.error(error)
            return 1
        renderer.success(f"{canonical_key(args.key)} = {value!r}")
        return 0

    if args.action == "reset":
        if not args.yes:
            try:
                confirmed = asyncio.run(
                    app.input().confirm("Delete all settings, the API key and trusted folders?")
                )
            except (EOFError, KeyboardInterrupt):
                confirmed = False
            if not confirmed:
                renderer.dim("Reset cancelled")
                return 0
        store.reset()
        renderer.success("Configuration reset")
        return 0

    # show (default)
    data = dataclasses.asdict(app.config)
    data.pop("extra", None)
    renderer.line(yaml.safe_dump(data, default_flow_style=False, sort_keys=False).rstrip())
    return 0


def _try_validate(app: _App) -> list[str]:
    try:
        config = load_config(app.workspace, user_config_path=app.store.path)
    except (TypeError, ValueError) as e:
        return [f"Invalid value: {e}"]
    return config.validate()


# -- entry point -------------------------------------------------------------

_HANDLERS = {
    "code": _run_code,
    "chat": _run_chat,
    "models": _run_models,
    "auth": _run_auth,
    "config": _run_config,
}


def run_cli(argv: Sequence[str]) -> int:
    """Run the CLI with the given arguments."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    renderer = Renderer()
    workspace = (args.workspace or Path.cwd()).expanduser().resolve()
    if not workspace.is_dir():
        renderer.error(f"Not a directory: {workspace}")
        return 1

    try:
        config = load_config(workspace, user_config_path=args.config)
        store = ConfigStore(args.config)
    except (TypeError, ValueError, yaml.YAMLError) as e:
        renderer.error("Invalid configuration", str(e))
        return 1

    if args.verbose:
        config.logging.verbose = DEFAULT_VERBOSITY + args.verbose
    setup_logging(config.logging)
    log.debug("codechat %s command=%s workspace=%s", __version__, args.command, workspace)

    problems = config.validate()
    if problems and args.command in ("code", "chat"):
        for problem in problems:
            renderer.error(problem)
        renderer.dim("Fix with 'codechat config set <key> <value>'")
        return 1

    app = _App(args=args, workspace=workspace, config=config, store=store, renderer=renderer)
    try:
        return _HANDLERS[args.command](app)
    except SetupFailed as e:
        renderer.error(e.message, e.hint)
        return 1
    except CodechatError as e:
        renderer.error(str(e))
        return 1
    except KeyboardInterrupt:
        # The sessions say goodbye themselves on the way out.
        renderer.line()
        return 130


def main(argv: Sequence[str] | None = None) -> int:
    return run_cli(sys.argv[1:] if argv is None else argv)


if __name__ == "__main__":
    raise SystemExit(main())
