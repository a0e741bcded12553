"""Session loops and the pieces they are built from."""

from codechat.session.activity import CommandRecord, SessionLog
from codechat.session.assistant import CodeAssistant, SessionState
from codechat.session.chat import ChatSession
from codechat.session.conversation import ConversationState, TokenUsage
from codechat.session.tags import (
    CommandIntent,
    FileWriteIntent,
    ParsedReply,
    parse_reply,
    strip_tags,
)
from codechat.session.trust import TrustGate

__all__ = [
    # Loops
    "CodeAssistant",
    "ChatSession",
    "SessionState",
    # State
    "ConversationState",
    "TokenUsage",
    "SessionLog",
    "CommandRecord",
    # Tags
    "parse_reply",
    "strip_tags",
    "ParsedReply",
    "FileWriteIntent",
    "CommandIntent",
    # Trust
    "TrustGate",
]
