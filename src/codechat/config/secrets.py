"""Secret lookup for codechat.

The API credential is looked up in this order:
1. Environment variables (os.environ) - set by shell, IDE, or CI
2. A .env.secrets file in the current directory (python-dotenv, cached)
3. llm.api_key in the user-level config file (written by `codechat auth login`)
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING

from dotenv import dotenv_values

if TYPE_CHECKING:
    from codechat.config.store import ConfigStore

SECRETS_FILE = ".env.secrets"
API_KEY_ENV = "CODECHAT_API_KEY"


@lru_cache(maxsize=4)
def _load_secrets(secrets_path: Path | None = None) -> dict[str, str | None]:
    path = secrets_path or Path(SECRETS_FILE)
    if path.exists():
        return dotenv_values(path)
    return {}


def fetch_secret(
    key: str,
    default: str | None = None,
    secrets_path: Path | None = None,
) -> str | None:
    """Fetch a secret from the environment or .env.secrets.

    os.environ is checked first so tests can monkeypatch it.
    """
    value = os.environ.get(key)
    if value:
        return value

    secrets = _load_secrets(secrets_path)
    found = secrets.get(key)
    if found:
        return found

    return default


def clear_secret_cache() -> None:
    """Forget cached .env.secrets contents."""
    _load_secrets.cache_clear()


def get_api_key(store: ConfigStore | None = None, secrets_path: Path | None = None) -> str | None:
    """Resolve the API credential from env, .env.secrets, then the user store."""
    key = fetch_secret(API_KEY_ENV, secrets_path=secrets_path)
    if key:
        return key
    if store is not None:
        stored = store.get("llm.api_key")
        if isinstance(stored, str) and stored:
            return stored
    return None


def mask_secret(secret: str | None) -> str:
    """Mask a credential for display, keeping a short prefix and suffix."""
    if not secret:
        return "Not set"
    if len(secret) <= 12:
        return "*" * len(secret)
    return f"{secret[:7]}***{secret[-4:]}"
