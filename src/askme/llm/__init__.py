"""Upstream chat-completion access with credential rotation."""

from .client import CompletionClient, CompletionError, EmptyResponseError, is_rate_limit_error
from .rotation import CredentialPool, KeyRotator, RateLimitExhaustedError

__all__ = [
    "CompletionClient",
    "CompletionError",
    "CredentialPool",
    "EmptyResponseError",
    "KeyRotator",
    "RateLimitExhaustedError",
    "is_rate_limit_error",
]
