"""codechat: terminal LLM chat and an agentic code assistant."""

__version__ = "0.1.0"

# Public API
from codechat.config import Config, ConfigStore, load_config
from codechat.core import LiteLLMProvider, LLMProvider, Message, ModelRegistry, Role
from codechat.errors import (
    AccessDenied,
    CodechatError,
    CommandFailed,
    CommandTimeout,
    NotFound,
    RemoteCallFailed,
    SetupFailed,
    WorkspaceNotTrusted,
)
from codechat.session import ChatSession, CodeAssistant, ConversationState, TrustGate
from codechat.terminal import CommandExecutor, CommandResult
from codechat.workspace import ProjectAnalyzer, ScopedFileAccessor

__all__ = [
    "__version__",
    # Sessions
    "CodeAssistant",
    "ChatSession",
    "ConversationState",
    "TrustGate",
    # Workspace and shell
    "ScopedFileAccessor",
    "ProjectAnalyzer",
    "CommandExecutor",
    "CommandResult",
    # LLM
    "LLMProvider",
    "LiteLLMProvider",
    "Message",
    "Role",
    "ModelRegistry",
    # Config
    "Config",
    "ConfigStore",
    "load_config",
    # Errors
    "CodechatError",
    "AccessDenied",
    "NotFound",
    "CommandFailed",
    "CommandTimeout",
    "RemoteCallFailed",
    "SetupFailed",
    "WorkspaceNotTrusted",
]
