"""Classification and tool orchestration for chat turns."""

from .orchestrator import ChatOrchestrator, ChatReply, InvalidInputError, SessionContext
from .prompt import (
    INVALID_KEY_RESPONSE,
    MISSING_INFO_RESPONSE,
    RATE_LIMIT_RESPONSE,
    PromptSet,
    build_prompts,
)

__all__ = [
    "INVALID_KEY_RESPONSE",
    "MISSING_INFO_RESPONSE",
    "RATE_LIMIT_RESPONSE",
    "ChatOrchestrator",
    "ChatReply",
    "InvalidInputError",
    "PromptSet",
    "SessionContext",
    "build_prompts",
]
