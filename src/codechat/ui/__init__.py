"""Terminal UI: rich rendering and prompt_toolkit input."""

from codechat.ui.console import Renderer
from codechat.ui.prompts import InputSource, PromptInput

__all__ = ["Renderer", "InputSource", "PromptInput"]
