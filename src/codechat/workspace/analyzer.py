"""Project analysis for the code assistant's opening context.

Detects the project type from its manifest files and builds a short
markdown summary that is injected as a system message before the first turn.
"""

from __future__ import annotations

import json
import tomllib
from dataclasses import dataclass, field
from typing import Any

from codechat.errors import CodechatError
from codechat.logging import get_logger
from codechat.workspace.files import ScopedFileAccessor

log = get_logger("workspace.analyzer")

SOURCE_DIRS = ("src", "lib", "app", "source")

SOURCE_PATTERNS = {
    "python": ["**/*.py"],
    "typescript": ["**/*.ts", "**/*.tsx"],
    "javascript": ["**/*.js", "**/*.jsx"],
    "unknown": ["**/*.py", "**/*.ts", "**/*.tsx", "**/*.js", "**/*.jsx"],
}

TREE_IGNORE = frozenset(
    {"node_modules", "dist", ".git", "build", ".next", "coverage", "__pycache__", ".venv"}
)

# Manifests quoted verbatim in the context block
_MANIFESTS = (
    ("pyproject.toml", "toml"),
    ("package.json", "json"),
    ("tsconfig.json", "json"),
)


@dataclass
class ProjectContext:
    """What the analyzer learned about the workspace."""

    type: str = "unknown"  # python | typescript | javascript | unknown
    name: str | None = None
    dependencies: list[str] = field(default_factory=list)
    dev_dependencies: list[str] = field(default_factory=list)
    scripts: dict[str, str] = field(default_factory=dict)
    source_directories: list[str] = field(default_factory=list)
    entry_points: list[str] = field(default_factory=list)
    manifests: list[str] = field(default_factory=list)


def _requirement_name(requirement: str) -> str:
    for sep in ("[", "=", "<", ">", "~", "!", ";", " "):
        requirement = requirement.split(sep, 1)[0]
    return requirement.strip()


# Manifests are user files; sections of the wrong shape are treated as absent.
def _table(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _strings(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


def _string(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _string_map(value: Any) -> dict[str, str]:
    return {k: v for k, v in _table(value).items() if isinstance(v, str)}


class ProjectAnalyzer:
    """Inspect a workspace through a ScopedFileAccessor."""

    def __init__(self, files: ScopedFileAccessor) -> None:
        self._files = files

    def analyze(self) -> ProjectContext:
        context = ProjectContext()

        if self._files.exists("pyproject.toml"):
            context.type = "python"
            context.manifests.append("pyproject.toml")
            self._read_pyproject(context)
        elif self._files.exists("setup.py") or self._files.exists("requirements.txt"):
            context.type = "python"

        if self._files.exists("requirements.txt"):
            context.manifests.append("requirements.txt")
            self._read_requirements(context)

        if self._files.exists("package.json"):
            context.manifests.append("package.json")
            self._read_package_json(context)
            if context.type == "unknown":
                context.type = "javascript"

        if self._files.exists("tsconfig.json"):
            context.manifests.append("tsconfig.json")
            if context.type in ("unknown", "javascript"):
                context.type = "typescript"

        context.source_directories = [d for d in SOURCE_DIRS if self._files.exists(d)]
        return context

    def _load(self, path: str) -> str | None:
        try:
            return self._files.read(path)
        except (CodechatError, OSError, UnicodeDecodeError) as e:
            log.debug("Could not read %s: %s", path, e)
            return None

    def _read_pyproject(self, context: ProjectContext) -> None:
        text = self._load("pyproject.toml")
        if text is None:
            return
        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as e:
            log.debug("Invalid pyproject.toml: %s", e)
            return
        project = _table(data.get("project"))
        context.name = _string(project.get("name"))
        context.dependencies.extend(
            _requirement_name(d) for d in _strings(project.get("dependencies"))
        )
        for extra in _table(project.get("optional-dependencies")).values():
            context.dev_dependencies.extend(_requirement_name(d) for d in _strings(extra))
        scripts = _string_map(project.get("scripts"))
        context.scripts.update(scripts)
        context.entry_points.extend(scripts.values())

    def _read_requirements(self, context: ProjectContext) -> None:
        text = self._load("requirements.txt") or ""
        for line in text.splitlines():
            line = line.strip()
            if line and not line.startswith(("#", "-")):
                name = _requirement_name(line)
                if name and name not in context.dependencies:
                    context.dependencies.append(name)

    def _read_package_json(self, context: ProjectContext) -> None:
        text = self._load("package.json")
        if text is None:
            return
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            log.debug("Invalid package.json: %s", e)
            return
        if not isinstance(data, dict):
            log.debug("package.json is not an object, skipped")
            return
        context.name = context.name or _string(data.get("name"))
        context.dependencies.extend(_table(data.get("dependencies")))
        context.dev_dependencies.extend(_table(data.get("devDependencies")))
        context.scripts.update(_string_map(data.get("scripts")))
        main = _string(data.get("main"))
        if main:
            context.entry_points.append(main)

    def summary(self, context: ProjectContext | None = None) -> str:
        """One fact per line: type, name, source dirs, dependencies, scripts."""
        context = context or self.analyze()
        lines = [f"Project Type: {context.type}"]
        if context.name:
            lines.append(f"Package: {context.name}")
        if context.source_directories:
            lines.append(f"Source Directories: {', '.join(context.source_directories)}")
        if context.dependencies:
            deps = context.dependencies
            more = "..." if len(deps) > 5 else ""
            lines.append(f"Dependencies ({len(deps)}): {', '.join(deps[:5])}{more}")
        if context.scripts:
            lines.append(f"Available Scripts: {', '.join(context.scripts)}")
        return "\n".join(lines)

    def find_source_files(self, context: ProjectContext | None = None) -> list[str]:
        context = context or self.analyze()
        found: set[str] = set()
        for pattern in SOURCE_PATTERNS.get(context.type, SOURCE_PATTERNS["unknown"]):
            found.update(self._files.find_files(pattern))
        return sorted(found)

    def build_context(self) -> str:
        """Markdown block describing the project, manifests included."""
        context = self.analyze()
        parts = ["# Project Context", "", self.summary(context), ""]
        for name, lang in _MANIFESTS:
            if name not in context.manifests:
                continue
            content = self._load(name)
            if content is None:
                continue
            parts += [f"## {name}", f"```{lang}", content.rstrip("\n"), "```", ""]
        return "\n".join(parts)

    def file_tree(self, dir_path: str = ".", depth: int = 2) -> str:
        """Indented tree of the workspace, `depth` levels deep."""
        return "\n".join(self._tree_lines(dir_path, depth, 0))

    def _tree_lines(self, dir_path: str, depth: int, level: int) -> list[str]:
        if level >= depth:
            return []
        try:
            entries = self._files.list(dir_path)
        except (CodechatError, OSError) as e:
            log.debug("Cannot list %s: %s", dir_path, e)
            return []

        lines: list[str] = []
        indent = "  " * level
        for entry in entries:
            if entry.name in TREE_IGNORE:
                continue
            marker = "/" if entry.is_directory else ""
            lines.append(f"{indent}{entry.name}{marker}")
            if entry.is_directory:
                lines.extend(self._tree_lines(entry.path, depth, level + 1))
        return lines
