"""Tool-call tag parser for model replies.

The code assistant's model requests actions with two tags embedded in its
free-text reply:

    <write_file path="src/app.py">
    ...complete file content...
    </write_file>

    <execute_command>git status</execute_command>

parse_reply() extracts them as intents in document order and produces the
human-visible remainder of the text. It is a pure function: nothing here
touches the filesystem or the shell.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Union

WRITE_FILE_RE = re.compile(
    r"""<write_file\s+path\s*=\s*(["'])(.*?)\1\s*>(.*?)</write_file>""",
    re.DOTALL,
)
EXECUTE_COMMAND_RE = re.compile(r"<execute_command>(.*?)</execute_command>", re.DOTALL)


@dataclass(frozen=True)
class FileWriteIntent:
    path: str
    content: str


@dataclass(frozen=True)
class CommandIntent:
    command: str


Intent = Union[FileWriteIntent, CommandIntent]


@dataclass(frozen=True)
class ParsedReply:
    """A model reply split into intents and display text."""

    raw: str
    intents: tuple[Intent, ...]
    display: str  # Tag-free text when intents were found, else the raw reply

    @property
    def file_writes(self) -> list[FileWriteIntent]:
        return [i for i in self.intents if isinstance(i, FileWriteIntent)]

    @property
    def commands(self) -> list[CommandIntent]:
        return [i for i in self.intents if isinstance(i, CommandIntent)]

    @property
    def has_intents(self) -> bool:
        return bool(self.intents)


def extract_intents(text: str) -> tuple[Intent, ...]:
    """All well-formed intents in the text, in document order.

    Write tags with an empty path and command tags with an empty body are
    dropped. Empty file content is valid.
    """
    found: list[tuple[int, Intent]] = []

    for m in WRITE_FILE_RE.finditer(text):
        path = m.group(2).strip()
        if path:
            found.append((m.start(), FileWriteIntent(path=path, content=m.group(3).strip())))

    for m in EXECUTE_COMMAND_RE.finditer(text):
        command = m.group(1).strip()
        if command:
            found.append((m.start(), CommandIntent(command=command)))

    found.sort(key=lambda item: item[0])
    return tuple(intent for _, intent in found)


def strip_tags(text: str) -> str:
    """Remove every tool tag span and trim.

    Removal repeats until nothing changes, so the result never contains a
    tag that a second pass would remove.
    """
    previous = None
    while previous != text:
        previous = text
        text = WRITE_FILE_RE.sub("", text)
        text = EXECUTE_COMMAND_RE.sub("", text)
    return text.strip()


def parse_reply(text: str) -> ParsedReply:
    intents = extract_intents(text)
    display = strip_tags(text) if intents else text
    return ParsedReply(raw=text, intents=intents, display=display)
