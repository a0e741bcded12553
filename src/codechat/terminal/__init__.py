"""Shell command execution for the code assistant."""

from codechat.terminal.classify import CommandKind, classify_command, is_quiet_command
from codechat.terminal.executor import CommandExecutor, shell_argv
from codechat.terminal.result import CommandResult

__all__ = [
    "CommandExecutor",
    "CommandResult",
    "CommandKind",
    "classify_command",
    "is_quiet_command",
    "shell_argv",
]
