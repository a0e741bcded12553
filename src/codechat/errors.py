"""Error taxonomy for codechat.

Every failure the session loop knows how to report is one of these. They are
raised by the leaf components (file accessor, executor, model client, config)
and caught at the operation boundary inside the session loops, where they are
rendered for the user and injected into the conversation for the model.
"""

from __future__ import annotations

from dataclasses import dataclass


class CodechatError(Exception):
    """Base class for all codechat errors."""


@dataclass
class AccessDenied(CodechatError):
    """A path resolved outside the sandboxed workspace root."""

    path: str  # Path as requested
    root: str  # Workspace root it escaped from

    def __str__(self) -> str:
        return f"Access denied: '{self.path}' is outside the working directory"


@dataclass
class NotFound(CodechatError):
    """A requested file does not exist."""

    path: str

    def __str__(self) -> str:
        return f"File not found: {self.path}"


@dataclass
class CommandFailed(CodechatError):
    """A shell command exited non-zero or could not be launched.

    Attributes:
        command: The command string as requested.
        message: Captured stderr, or a generic description when stderr is empty.
        exit_code: Process exit code, or None if the process never finished.
        stdout: Whatever stdout was captured before the failure.
    """

    command: str
    message: str
    exit_code: int | None = None
    stdout: str = ""

    def __str__(self) -> str:
        return self.message


@dataclass
class CommandTimeout(CommandFailed):
    """A shell command exceeded the configured wait and was killed."""

    timeout: float = 0.0


@dataclass
class RemoteCallFailed(CodechatError):
    """The model endpoint could not be reached or returned an error."""

    message: str
    model: str | None = None

    def __str__(self) -> str:
        if self.model:
            return f"{self.model}: {self.message}"
        return self.message


@dataclass
class SetupFailed(CodechatError):
    """Session construction failed (e.g. no credential configured)."""

    message: str
    hint: str | None = None

    def __str__(self) -> str:
        return self.message


@dataclass
class WorkspaceNotTrusted(CodechatError):
    """Tool execution was attempted in a workspace the user has not trusted."""

    path: str

    def __str__(self) -> str:
        return f"Workspace not trusted: {self.path}"
