"""User-level key-value configuration store.

The store is the only writer of configuration. It reads and rewrites the
user config.yaml, addressing values by dotted key ("llm.base_url"). The
camelCase names used by earlier releases ("baseUrl", "trustedWorkspaces")
are accepted as aliases.

Workspace trust lives here as well, under workspace.trusted, so a project
checkout can never mark itself as trusted.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

import yaml
from filelock import FileLock

from codechat.config.loader import load_yaml_file
from codechat.config.paths import get_user_config_path

_log = logging.getLogger("codechat.config.store")

KEY_ALIASES = {
    "apiKey": "llm.api_key",
    "baseUrl": "llm.base_url",
    "defaultModel": "llm.default_model",
    "temperature": "llm.temperature",
    "maxTokens": "llm.max_tokens",
    "streaming": "llm.streaming",
    "trustedWorkspaces": "workspace.trusted",
}

TRUSTED_KEY = "workspace.trusted"


def canonical_key(key: str) -> str:
    """Map a legacy alias to its dotted key."""
    return KEY_ALIASES.get(key, key)


def normalize_workspace(path: str | os.PathLike[str]) -> str:
    """Absolute, symlink-resolved form used for trust membership."""
    return str(Path(path).expanduser().resolve())


class ConfigStore:
    """Read/write access to the user config file.

    Every operation re-reads the file so concurrent codechat processes see
    each other's changes. Writes hold a file lock around the
    read-modify-write and replace the file through a temp file.
    """

    def __init__(self, path: Path | None = None) -> None:
        resolved = path or get_user_config_path()
        if resolved is None:
            raise ValueError("Cannot determine user config location")
        self._path = resolved

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, Any]:
        return load_yaml_file(self._path)

    @property
    def _lock_path(self) -> Path:
        return self._path.with_suffix(self._path.suffix + ".lock")

    def _save(self, data: dict[str, Any]) -> None:
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
        os.replace(tmp_path, self._path)
        _log.debug("Wrote %s", self._path)

    def _atomic_update(self, modifier: Callable[[dict[str, Any]], bool]) -> bool:
        """Read-modify-write under the config file lock.

        The modifier edits the document in place and returns whether it
        changed anything; unchanged documents are not rewritten.
        """
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with FileLock(self._lock_path, timeout=10):
            data = self._load()
            changed = modifier(data)
            if changed:
                self._save(data)
            return changed

    def all(self) -> dict[str, Any]:
        """Return the whole stored document."""
        return self._load()

    def get(self, key: str, default: Any = None) -> Any:
        node: Any = self._load()
        for part in canonical_key(key).split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def set(self, key: str, value: Any) -> None:
        parts = canonical_key(key).split(".")

        def assign(data: dict[str, Any]) -> bool:
            section = data
            for part in parts[:-1]:
                child = section.get(part)
                if not isinstance(child, dict):
                    child = {}
                    section[part] = child
                section = child
            section[parts[-1]] = value
            return True

        self._atomic_update(assign)

    def delete(self, key: str) -> bool:
        """Remove a key. Returns True if something was removed."""
        if not self._path.exists():
            return False
        parts = canonical_key(key).split(".")

        def remove(data: dict[str, Any]) -> bool:
            section: Any = data
            for part in parts[:-1]:
                section = section.get(part) if isinstance(section, dict) else None
                if section is None:
                    return False
            if not isinstance(section, dict) or parts[-1] not in section:
                return False
            del section[parts[-1]]
            return True

        return self._atomic_update(remove)

    def reset(self) -> None:
        """Delete the user config file, including the trust list."""
        if not self._path.parent.exists():
            return
        with FileLock(self._lock_path, timeout=10):
            try:
                self._path.unlink()
            except FileNotFoundError:
                pass
        _log.info("Config reset: %s", self._path)

    def trusted_workspaces(self) -> list[str]:
        trusted = self.get(TRUSTED_KEY, [])
        if not isinstance(trusted, list):
            return []
        return [p for p in trusted if isinstance(p, str)]

    def is_workspace_trusted(self, path: str | os.PathLike[str]) -> bool:
        return normalize_workspace(path) in self.trusted_workspaces()

    def trust_workspace(self, path: str | os.PathLike[str]) -> None:
        """Add a workspace to the trust list (idempotent)."""
        workspace = normalize_workspace(path)

        def add(data: dict[str, Any]) -> bool:
            section = data.get("workspace")
            if not isinstance(section, dict):
                section = {}
                data["workspace"] = section
            trusted = section.get("trusted")
            if not isinstance(trusted, list):
                trusted = []
            if workspace in trusted:
                return False
            section["trusted"] = [*trusted, workspace]
            return True

        if self._atomic_update(add):
            _log.info("Workspace trusted: %s", workspace)
