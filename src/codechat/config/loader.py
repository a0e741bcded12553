"""Configuration file loading.

Handles:
- YAML file parsing
- Deep merging of the system -> user -> project cascade
- Environment variable overrides
- Conversion from dict to the typed Config dataclass

There is no module-level cache: the CLI loads one Config at startup and passes
it to everything that needs it.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from codechat.config.paths import (
    get_project_config_path,
    get_system_config_path,
    get_user_config_path,
)
from codechat.config.schema import (
    DEFAULT_IGNORE,
    Config,
    LLMConfig,
    LoggingConfig,
    SessionConfig,
    WorkspaceConfig,
)

_log = logging.getLogger("codechat.config")

_KNOWN_SECTIONS = {"llm", "session", "workspace", "logging"}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file, returning empty dict if not found or invalid."""
    if not path.exists():
        return {}

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
            return data if isinstance(data, dict) else {}
    except yaml.YAMLError as e:
        _log.warning("Invalid YAML in %s: %s", path, e)
        return {}
    except PermissionError:
        _log.debug("Permission denied reading %s", path)
        return {}
    except OSError as e:
        _log.warning("Error reading %s: %s", path, e)
        return {}


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge override into a copy of base.

    Nested dicts merge recursively, lists and scalars are replaced, and a None
    in override leaves the base value alone so partial files stay partial.
    """
    merged = dict(base)
    for key, value in override.items():
        if value is None:
            continue
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def merge_configs(*configs: dict[str, Any]) -> dict[str, Any]:
    """Merge several config dicts, later ones winning."""
    result: dict[str, Any] = {}
    for config in configs:
        if config:
            result = deep_merge(result, config)
    return result


def env_overrides() -> dict[str, Any]:
    """Build a config dict from environment variables (highest priority).

    API keys are NOT loaded here - use fetch_secret() for secrets.
    """
    overrides: dict[str, Any] = {}

    log_path = os.environ.get("CODECHAT_LOG")
    if log_path:
        overrides.setdefault("logging", {})["file"] = log_path

    base_url = os.environ.get("CODECHAT_BASE_URL")
    if base_url:
        overrides.setdefault("llm", {})["base_url"] = base_url

    model = os.environ.get("CODECHAT_MODEL")
    if model:
        overrides.setdefault("llm", {})["default_model"] = model

    return overrides


def _project_layer(workspace: str | os.PathLike[str]) -> dict[str, Any]:
    """Load project config, minus anything a project must not decide for itself."""
    data = load_yaml_file(get_project_config_path(workspace))
    workspace_section = data.get("workspace")
    if isinstance(workspace_section, dict) and "trusted" in workspace_section:
        _log.warning("Ignoring workspace.trusted in project config %s", workspace)
        data["workspace"] = {k: v for k, v in workspace_section.items() if k != "trusted"}
    llm_section = data.get("llm")
    if isinstance(llm_section, dict) and "api_key" in llm_section:
        _log.warning("Ignoring llm.api_key in project config %s", workspace)
        data["llm"] = {k: v for k, v in llm_section.items() if k != "api_key"}
    return data


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    value = data.get(name)
    return value if isinstance(value, dict) else {}


def dict_to_config(data: dict[str, Any]) -> Config:
    """Convert a merged dict to the typed Config dataclass."""
    llm_data = _section(data, "llm")
    defaults = LLMConfig()
    llm = LLMConfig(
        base_url=llm_data.get("base_url"),
        default_model=str(llm_data.get("default_model") or defaults.default_model),
        temperature=float(llm_data.get("temperature", defaults.temperature)),
        max_tokens=int(llm_data.get("max_tokens", defaults.max_tokens)),
        streaming=bool(llm_data.get("streaming", defaults.streaming)),
    )

    session_data = _section(data, "session")
    session_defaults = SessionConfig()
    timeout = session_data.get("command_timeout", session_defaults.command_timeout)
    session = SessionConfig(
        command_timeout=float(timeout) if timeout is not None else None,
        output_limit=int(session_data.get("output_limit", session_defaults.output_limit)),
        context_output_chars=int(
            session_data.get("context_output_chars", session_defaults.context_output_chars)
        ),
    )

    workspace_data = _section(data, "workspace")
    ignore = workspace_data.get("ignore", DEFAULT_IGNORE)
    workspace = WorkspaceConfig(ignore=[str(p) for p in ignore if isinstance(p, str)])

    log_data = _section(data, "logging")
    verbose = log_data.get("verbose")
    logging_config = LoggingConfig(
        level=log_data.get("level"),
        verbose=int(verbose) if verbose is not None else None,
        file=log_data.get("file"),
    )

    extra = {k: v for k, v in data.items() if k not in _KNOWN_SECTIONS}

    return Config(
        llm=llm,
        session=session,
        workspace=workspace,
        logging=logging_config,
        extra=extra,
    )


def load_config(
    workspace: str | os.PathLike[str] | None = None,
    *,
    user_config_path: Path | None = None,
) -> Config:
    """Load and merge config from all sources.

    Priority order (highest to lowest):
    1. Environment variables
    2. Project config ($workspace/.codechat/config.yaml)
    3. User config
    4. System config

    Args:
        workspace: Project directory for project-level config.
        user_config_path: Override the user config location (tests, --config).

    Returns:
        Merged Config object.
    """
    layers: list[dict[str, Any]] = []

    system_path = get_system_config_path()
    if system_path:
        layers.append(load_yaml_file(system_path))

    user_path = user_config_path or get_user_config_path()
    if user_path:
        user_data = load_yaml_file(user_path)
        if user_data:
            _log.debug("Loaded config from %s", user_path)
        layers.append(user_data)

    if workspace is not None:
        layers.append(_project_layer(workspace))

    layers.append(env_overrides())

    return dict_to_config(merge_configs(*layers))
