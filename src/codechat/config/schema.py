"""Configuration schema dataclasses for codechat.

Defines the structure of configuration at all levels (system, user, project).
Defaults live here so a partial YAML file only has to name what it changes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 2048

# The code assistant asks for short answers
CODE_MAX_TOKENS = 1024

DEFAULT_OUTPUT_LIMIT = 10 * 1024 * 1024  # bytes per captured stream
DEFAULT_COMMAND_TIMEOUT = 120.0  # seconds
DEFAULT_CONTEXT_OUTPUT_CHARS = 1000

DEFAULT_IGNORE = [
    "node_modules",
    "dist",
    "build",
    ".git",
    ".hg",
    ".svn",
    "__pycache__",
    ".venv",
]


@dataclass
class LLMConfig:
    """Remote model endpoint settings.

    The API key is deliberately absent: it is fetched through
    codechat.config.secrets or the user store, never merged from project files.
    """

    base_url: str | None = None  # OpenAI-compatible endpoint; None lets litellm route
    default_model: str = DEFAULT_MODEL
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS
    streaming: bool = True  # Chat variant only


@dataclass
class SessionConfig:
    """Tool execution limits for the code assistant."""

    command_timeout: float | None = DEFAULT_COMMAND_TIMEOUT  # None waits forever
    output_limit: int = DEFAULT_OUTPUT_LIMIT
    context_output_chars: int = DEFAULT_CONTEXT_OUTPUT_CHARS


@dataclass
class WorkspaceConfig:
    """File discovery settings.

    Trust is not part of the merged config; ConfigStore owns the trust list.
    """

    ignore: list[str] = field(default_factory=lambda: list(DEFAULT_IGNORE))


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str | None = None  # DEBUG, INFO, WARNING, ERROR
    verbose: int | None = None  # 0-4, wins over level
    file: str | None = None  # Log file path


@dataclass
class Config:
    """Root configuration object."""

    llm: LLMConfig = field(default_factory=LLMConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    workspace: WorkspaceConfig = field(default_factory=WorkspaceConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Unknown top-level sections are kept for forward compatibility
    extra: dict[str, Any] = field(default_factory=dict)

    def validate(self) -> list[str]:
        """Check value ranges. Returns a list of human-readable problems."""
        errors: list[str] = []

        base_url = self.llm.base_url
        if base_url and not base_url.startswith(("http://", "https://")):
            errors.append("Invalid base URL")

        if not 0 <= self.llm.temperature <= 2:
            errors.append("Temperature must be between 0 and 2")

        if self.llm.max_tokens < 1:
            errors.append("Max tokens must be at least 1")

        if self.session.output_limit < 1:
            errors.append("Output limit must be at least 1 byte")

        timeout = self.session.command_timeout
        if timeout is not None and timeout <= 0:
            errors.append("Command timeout must be positive")

        return errors
