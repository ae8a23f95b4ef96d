"""Credential rotation across several Groq API keys."""

import logging
from dataclasses import dataclass
from typing import Any, Callable

from .client import CompletionClient, CompletionError, is_rate_limit_error

logger = logging.getLogger(__name__)

RATE_LIMIT_EXHAUSTED_MESSAGE = "Rate limit reached for all available API keys."


class RateLimitExhaustedError(CompletionError):
    """Every remaining credential was rate limited."""

    def __init__(self, message: str = RATE_LIMIT_EXHAUSTED_MESSAGE) -> None:
        super().__init__(message)


@dataclass(frozen=True)
class CredentialPool:
    """Ordered API keys, addressed with 1-based indexes."""

    keys: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.keys:
            raise ValueError("Credential pool needs at least one key")

    def __len__(self) -> int:
        return len(self.keys)

    def key_at(self, index: int) -> str:
        return self.keys[index - 1]

    def normalize_index(self, index: int | None) -> int:
        """Clamp a stored index hint to the pool, defaulting to 1."""
        if index is None or index < 1 or index > len(self.keys):
            return 1
        return index


class KeyRotator:
    """Runs completion calls, moving forward through the pool on rate limits.

    A rotator lives for one request. It starts at the index remembered in
    the caller's session and only ever moves forward, so a key that was
    rate limited is not tried again within the same request.
    """

    def __init__(
        self,
        pool: CredentialPool,
        client: CompletionClient,
        start_index: int | None = None,
        on_rotate: Callable[[int, int], None] | None = None,
    ) -> None:
        """Initialize the rotator.

        Args:
            pool: Credentials to rotate through.
            client: Client used for every attempt.
            start_index: 1-based index to try first; invalid values mean 1.
            on_rotate: Called with (from_index, to_index) when moving on.
        """
        self.pool = pool
        self.client = client
        self.current_index = pool.normalize_index(start_index)
        self._on_rotate = on_rotate

    async def complete(self, body: dict[str, Any]) -> dict[str, Any]:
        """Send one request, retrying on the next key after a rate limit.

        Raises:
            RateLimitExhaustedError: When the last key is rate limited too.
            CompletionError: Any other failure, without retrying.
        """
        index = self.current_index
        while index <= len(self.pool):
            try:
                response = await self.client.complete(self.pool.key_at(index), body)
            except CompletionError as e:
                if not is_rate_limit_error(e):
                    raise
                if index >= len(self.pool):
                    raise RateLimitExhaustedError() from e
                logger.info("Rate limit reached for API key #%d, trying #%d", index, index + 1)
                if self._on_rotate:
                    self._on_rotate(index, index + 1)
                index += 1
                continue

            self.current_index = index
            return response

        raise RateLimitExhaustedError()
