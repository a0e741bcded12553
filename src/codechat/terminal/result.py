"""Command execution result dataclass."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class CommandResult:
    """Result of a successful shell command execution.

    Attributes:
        command: The command string as requested.
        stdout: Captured standard output (capped at the executor's output_limit).
        stderr: Captured standard error (same cap).
        exit_code: Process exit code; always 0 for a returned result.
        truncated: True if either stream exceeded the cap and was cut.
        duration_ms: Execution duration in milliseconds.
    """

    command: str
    stdout: str
    stderr: str
    exit_code: int
    truncated: bool
    duration_ms: float

    @property
    def success(self) -> bool:
        """True if command completed with exit code 0."""
        return self.exit_code == 0

    def __repr__(self) -> str:
        lines = self.stdout.count("\n") + 1 if self.stdout else 0
        suffix = ", truncated" if self.truncated else ""
        return f"<CommandResult exit={self.exit_code}, {lines} lines{suffix}>"
