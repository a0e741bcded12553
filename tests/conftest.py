"""Root pytest configuration for all tests."""

from __future__ import annotations

import pytest

from codechat.config.secrets import clear_secret_cache
from codechat.config.store import ConfigStore
from codechat.logging import reset_logging
from codechat.terminal import CommandExecutor
from codechat.workspace import ScopedFileAccessor
from tests.utils import FakeProvider, ScriptedInput, make_renderer

# Configure pytest-asyncio to use auto mode
# This is redundant with pyproject.toml but ensures it's set
pytest_plugins = ("pytest_asyncio",)


@pytest.fixture(autouse=True)
def isolated_env(tmp_path_factory, monkeypatch):
    """Keep tests away from the real user config, secrets and log file."""
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    monkeypatch.setenv("APPDATA", str(home / "AppData"))
    for var in ("CODECHAT_API_KEY", "CODECHAT_BASE_URL", "CODECHAT_MODEL", "CODECHAT_LOG"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(home)
    clear_secret_cache()
    yield
    clear_secret_cache()
    reset_logging()


@pytest.fixture
def workspace(tmp_path):
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture
def store(tmp_path):
    return ConfigStore(tmp_path / "user" / "config.yaml")


@pytest.fixture
def files(workspace):
    return ScopedFileAccessor(workspace)


@pytest.fixture
def executor(workspace):
    return CommandExecutor(workspace, timeout=10.0)


@pytest.fixture
def renderer():
    return make_renderer()


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def scripted_input():
    return ScriptedInput()
