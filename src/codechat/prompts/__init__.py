"""System prompts for the chat and code assistant sessions.

Prompts are loaded from markdown files in this package.
"""

from importlib.resources import files

_PROMPTS_PKG = files("codechat.prompts")


def load_prompt(name: str) -> str:
    """Load a prompt by name (without .md extension)."""
    return _PROMPTS_PKG.joinpath(f"{name}.md").read_text(encoding="utf-8").strip()


CODE_SYSTEM_PROMPT = load_prompt("code")
CHAT_SYSTEM_PROMPT = load_prompt("chat")

__all__ = [
    "load_prompt",
    "CODE_SYSTEM_PROMPT",
    "CHAT_SYSTEM_PROMPT",
]
