"""Workspace trust gate.

The code assistant may read, write and execute anything under the workspace
root. Before the first session in a directory the user is asked once;
approval is remembered in the user config (never in a project file).
"""

from __future__ import annotations

import os
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from codechat.config.store import normalize_workspace
from codechat.errors import WorkspaceNotTrusted
from codechat.logging import get_logger

if TYPE_CHECKING:
    from codechat.config.store import ConfigStore
    from codechat.ui.console import Renderer

log = get_logger("trust")

ConfirmFn = Callable[[str], Awaitable[bool]]

TRUST_QUESTION = "Do you trust the files in this folder?"
TRUST_RISK = (
    "The code assistant may read, write, or execute files in this directory.\n"
    "This can pose security risks, so only use files from trusted sources."
)


class TrustGate:
    """One-time, per-workspace consent before tools are enabled."""

    def __init__(self, store: ConfigStore, confirm: ConfirmFn, renderer: Renderer) -> None:
        self._store = store
        self._confirm = confirm
        self._renderer = renderer

    def is_trusted(self, path: str | os.PathLike[str]) -> bool:
        return self._store.is_workspace_trusted(path)

    def trust(self, path: str | os.PathLike[str]) -> None:
        self._store.trust_workspace(path)

    async def request_trust(self, path: str | os.PathLike[str]) -> bool:
        """Ask the user; remember a yes. Ctrl-C or end of input counts as no."""
        workspace = normalize_workspace(path)
        self._renderer.rule()
        self._renderer.markup(f"\n[bold yellow]{TRUST_QUESTION}[/bold yellow]\n")
        self._renderer.line(workspace)
        self._renderer.line()
        self._renderer.dim(TRUST_RISK)

        try:
            approved = await self._confirm("Trust this folder and proceed?")
        except (EOFError, KeyboardInterrupt):
            approved = False
        self._renderer.rule()

        if approved:
            self.trust(workspace)
            log.info("Workspace approved: %s", workspace)
        else:
            log.info("Workspace declined: %s", workspace)
        return approved

    async def ensure_trusted(self, path: str | os.PathLike[str]) -> bool:
        """True if the workspace is (now) trusted, prompting only if needed."""
        if self.is_trusted(path):
            return True
        return await self.request_trust(path)

    async def require_trusted(self, path: str | os.PathLike[str]) -> None:
        """Like ensure_trusted, but a refusal raises WorkspaceNotTrusted."""
        if not await self.ensure_trusted(path):
            raise WorkspaceNotTrusted(normalize_workspace(path))
