"""Configuration management for codechat.

Provides hierarchical YAML-based configuration with:
- System-level config (/etc/codechat/ or %PROGRAMDATA%)
- User-level config (~/.config/codechat/, ~/.codechat/ or %APPDATA%)
- Project-level config ($workspace/.codechat/)
- Environment variable overrides (highest priority)

Example usage:
    from codechat.config import ConfigStore, load_config

    config = load_config(workspace="/path/to/project")
    print(config.llm.default_model)

    store = ConfigStore()
    store.set("llm.temperature", 0.2)
"""

from codechat.config.loader import deep_merge, load_config, merge_configs
from codechat.config.paths import (
    get_config_paths,
    get_history_path,
    get_project_config_path,
    get_system_config_path,
    get_user_config_path,
)
from codechat.config.schema import (
    Config,
    LLMConfig,
    LoggingConfig,
    SessionConfig,
    WorkspaceConfig,
)
from codechat.config.secrets import (
    API_KEY_ENV,
    clear_secret_cache,
    fetch_secret,
    get_api_key,
    mask_secret,
)
from codechat.config.store import ConfigStore, canonical_key

__all__ = [
    # Main API
    "Config",
    "ConfigStore",
    "load_config",
    "deep_merge",
    "merge_configs",
    "canonical_key",
    # Schema types
    "LLMConfig",
    "SessionConfig",
    "WorkspaceConfig",
    "LoggingConfig",
    # Secrets
    "API_KEY_ENV",
    "fetch_secret",
    "get_api_key",
    "mask_secret",
    "clear_secret_cache",
    # Paths
    "get_config_paths",
    "get_system_config_path",
    "get_user_config_path",
    "get_project_config_path",
    "get_history_path",
]
