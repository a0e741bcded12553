"""Classification of model-issued commands for terminal echo.

Reading a file or listing a directory is how the model looks around before
answering; echoing that output would bury the reply. Such commands run
quietly. Classification only affects what the user sees: the model always
receives the (budgeted) output.
"""

from __future__ import annotations

from enum import Enum

CONTENT_COMMANDS = frozenset({"cat", "type", "get-content", "gc"})
LISTING_COMMANDS = frozenset({"ls", "dir", "get-childitem", "gci"})

# Any of these turns a command into a pipeline or compound statement
_SHELL_OPERATORS = ("|", ";", "&", ">", "<", "`", "$(")


class CommandKind(Enum):
    CONTENT = "content"
    LISTING = "listing"
    OTHER = "other"


def classify_command(command: str) -> CommandKind:
    """Classify a command by its program name.

    Pipelines, redirections and compound commands are always OTHER.
    """
    stripped = command.strip()
    if not stripped or any(op in stripped for op in _SHELL_OPERATORS):
        return CommandKind.OTHER
    program = stripped.split()[0].lower()
    if program in CONTENT_COMMANDS:
        return CommandKind.CONTENT
    if program in LISTING_COMMANDS:
        return CommandKind.LISTING
    return CommandKind.OTHER


def is_quiet_command(command: str) -> bool:
    """True if the command's output should not be echoed to the terminal."""
    return classify_command(command) is not CommandKind.OTHER
