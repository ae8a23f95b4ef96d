"""The profile lookup tool exposed to the model."""

from .profile import (
    PROFILE_KEY_PATHS,
    PROFILE_TOOL_NAME,
    InvalidToolArgs,
    ParsedToolArgs,
    ProfileTool,
    ValidToolArgs,
)

__all__ = [
    "PROFILE_KEY_PATHS",
    "PROFILE_TOOL_NAME",
    "InvalidToolArgs",
    "ParsedToolArgs",
    "ProfileTool",
    "ValidToolArgs",
]
