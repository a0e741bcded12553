"""Sandboxed file access for the code assistant.

All paths are interpreted relative to a fixed workspace root and checked
after normalization (including symlink resolution), so neither "../"
sequences, absolute paths nor links can reach outside the root.
"""

from __future__ import annotations

import fnmatch
import os
import re
import shutil
from dataclasses import dataclass, field
from pathlib import Path

from codechat.config.schema import DEFAULT_IGNORE
from codechat.errors import AccessDenied, CodechatError, NotFound
from codechat.logging import get_logger

log = get_logger("workspace")

_BRACE_RE = re.compile(r"\{([^{}]*)\}")


@dataclass(frozen=True)
class FileInfo:
    """Directory entry metadata."""

    name: str
    path: str  # Relative to the workspace root, POSIX separators
    extension: str
    size: int
    is_directory: bool


@dataclass(frozen=True)
class SearchMatch:
    line: int  # 1-based
    column: int  # 1-based
    content: str  # The matching line, stripped


@dataclass
class SearchResult:
    path: str
    matches: list[SearchMatch] = field(default_factory=list)


def expand_braces(pattern: str) -> list[str]:
    """Expand shell-style alternatives: "*.{ts,js}" -> ["*.ts", "*.js"]."""
    match = _BRACE_RE.search(pattern)
    if not match:
        return [pattern]
    head, tail = pattern[: match.start()], pattern[match.end() :]
    expanded: list[str] = []
    for option in match.group(1).split(","):
        expanded.extend(expand_braces(f"{head}{option}{tail}"))
    return expanded


def _glob_match(rel_path: str, pattern: str) -> bool:
    # fnmatch's "*" crosses "/", so "**/" only needs the zero-directory case
    if fnmatch.fnmatchcase(rel_path, pattern):
        return True
    if pattern.startswith("**/"):
        return _glob_match(rel_path, pattern[3:])
    return False


class ScopedFileAccessor:
    """Read, write and search files confined to a workspace root."""

    def __init__(
        self,
        root: str | os.PathLike[str],
        ignore: list[str] | None = None,
    ) -> None:
        self._root = Path(root).resolve()
        self._ignore = list(DEFAULT_IGNORE if ignore is None else ignore)

    @property
    def root(self) -> Path:
        return self._root

    def resolve(self, path: str | os.PathLike[str]) -> Path:
        """Resolve a workspace-relative path to an absolute one.

        Raises:
            AccessDenied: If the normalized path lies outside the root, or
                cannot name a file at all (an embedded NUL byte).
        """
        try:
            if "\x00" in os.fspath(path):
                raise ValueError("embedded null byte")
            resolved = (self._root / path).resolve()
        except ValueError:
            log.debug("Unusable path denied: %r", path)
            raise AccessDenied(str(path), str(self._root)) from None
        try:
            resolved.relative_to(self._root)
        except ValueError:
            log.debug("Path outside root denied: %s", resolved)
            raise AccessDenied(str(path), str(self._root)) from None
        return resolved

    def relative(self, absolute: Path) -> str:
        return absolute.relative_to(self._root).as_posix()

    def read(self, path: str) -> str:
        """Read a UTF-8 text file.

        Raises:
            AccessDenied: Path escapes the root.
            NotFound: The file does not exist.
            OSError: Any other I/O failure.
        """
        resolved = self.resolve(path)
        try:
            with open(resolved, encoding="utf-8", newline="") as f:
                return f.read()
        except FileNotFoundError:
            raise NotFound(path) from None

    def write(self, path: str, content: str) -> None:
        """Write a UTF-8 text file, creating parent directories.

        Existing content is replaced. Line endings are written as given.
        Content that is not encodable (lone surrogates) raises
        UnicodeEncodeError before anything is touched on disk.
        """
        resolved = self.resolve(path)
        data = content.encode("utf-8")
        resolved.parent.mkdir(parents=True, exist_ok=True)
        with open(resolved, "wb") as f:
            f.write(data)
        log.debug("Wrote %s (%d chars)", resolved, len(content))

    def exists(self, path: str) -> bool:
        """Check for a file or directory. Any failure counts as absent."""
        try:
            return self.resolve(path).exists()
        except (CodechatError, OSError, ValueError):
            return False

    def file_info(self, path: str) -> FileInfo:
        resolved = self.resolve(path)
        try:
            stat = resolved.stat()
        except FileNotFoundError:
            raise NotFound(path) from None
        return FileInfo(
            name=resolved.name,
            path=self.relative(resolved) or ".",
            extension=resolved.suffix,
            size=stat.st_size,
            is_directory=resolved.is_dir(),
        )

    def list(self, dir_path: str = ".") -> list[FileInfo]:
        """List a directory, skipping entries that cannot be stat'ed."""
        resolved = self.resolve(dir_path)
        entries: list[FileInfo] = []
        with os.scandir(resolved) as it:
            for entry in sorted(it, key=lambda e: e.name):
                try:
                    entries.append(self.file_info(self.relative(Path(entry.path))))
                except (CodechatError, OSError) as e:
                    log.debug("Skipping %s: %s", entry.path, e)
        return entries

    def find_files(self, pattern: str, ignore: list[str] | None = None) -> list[str]:
        """Find files matching a glob pattern.

        Supports "**/" prefixes and "{a,b}" alternatives. Directories whose
        name matches an ignore entry are not descended into.

        Returns:
            Sorted workspace-relative POSIX paths.
        """
        ignore = self._ignore if ignore is None else ignore
        patterns = expand_braces(pattern)
        found: list[str] = []

        for dirpath, dirnames, filenames in os.walk(self._root):
            dirnames[:] = [
                d for d in dirnames if not any(fnmatch.fnmatchcase(d, pat) for pat in ignore)
            ]
            base = Path(dirpath)
            for name in filenames:
                if any(fnmatch.fnmatchcase(name, pat) for pat in ignore):
                    continue
                rel = (base / name).relative_to(self._root).as_posix()
                if any(_glob_match(rel, p) for p in patterns):
                    found.append(rel)

        return sorted(found)

    def search_in_files(
        self,
        pattern: str,
        text: str,
        case_sensitive: bool = False,
        regex: bool = False,
    ) -> list[SearchResult]:
        """Search file contents line by line.

        Args:
            pattern: Glob selecting the files to search.
            text: Literal text, or a regular expression if regex is set.
            case_sensitive: Match case exactly.
            regex: Treat text as a regular expression.

        Files that cannot be read as text are skipped.
        """
        flags = 0 if case_sensitive else re.IGNORECASE
        compiled = re.compile(text if regex else re.escape(text), flags)
        results: list[SearchResult] = []

        for rel in self.find_files(pattern):
            try:
                content = self.read(rel)
            except (CodechatError, OSError, UnicodeDecodeError) as e:
                log.debug("Search skipped %s: %s", rel, e)
                continue

            matches = [
                SearchMatch(line=number, column=m.start() + 1, content=line.strip())
                for number, line in enumerate(content.split("\n"), start=1)
                for m in compiled.finditer(line)
            ]
            if matches:
                results.append(SearchResult(path=rel, matches=matches))

        return results

    def create_backup(self, path: str) -> Path:
        """Copy a file to "<file>.backup" beside it."""
        resolved = self.resolve(path)
        backup = resolved.with_name(resolved.name + ".backup")
        try:
            shutil.copyfile(resolved, backup)
        except FileNotFoundError:
            raise NotFound(path) from None
        return backup

    def delete(self, path: str) -> None:
        resolved = self.resolve(path)
        try:
            resolved.unlink()
        except FileNotFoundError:
            raise NotFound(path) from None
        log.debug("Deleted %s", resolved)
