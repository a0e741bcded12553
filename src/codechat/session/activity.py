"""Record of what a code assistant session changed."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class CommandRecord:
    command: str
    output: str


@dataclass
class SessionLog:
    """Files written and commands run during one session.

    Only successful operations are recorded.
    """

    files_modified: list[str] = field(default_factory=list)
    commands_executed: list[CommandRecord] = field(default_factory=list)

    def record_write(self, path: str) -> None:
        if path not in self.files_modified:
            self.files_modified.append(path)

    def record_command(self, command: str, output: str) -> None:
        self.commands_executed.append(CommandRecord(command, output))

    @property
    def is_empty(self) -> bool:
        return not self.files_modified and not self.commands_executed
