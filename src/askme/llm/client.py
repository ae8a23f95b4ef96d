"""Chat-completion client over the Groq SDK.

One request in, one parsed JSON dictionary out. Upstream failures are
normalised to CompletionError carrying the message the API embedded in
its error body, so callers can classify them by text alone.
"""

import logging
from typing import Any, Callable

from groq import APIConnectionError, APIResponseValidationError, APIStatusError, AsyncGroq

logger = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "Groq API request failed."


class CompletionError(Exception):
    """An upstream completion call failed."""


class EmptyResponseError(CompletionError):
    """The model returned no usable content."""


def is_rate_limit_error(error: BaseException) -> bool:
    """Return True when the error text mentions a rate limit."""
    return "rate limit" in str(error).lower()


def _embedded_message(body: object) -> str | None:
    """Pull ``error.message`` out of an upstream error body."""
    if not isinstance(body, dict):
        return None
    error = body.get("error", body)
    if isinstance(error, dict):
        message = error.get("message")
        if isinstance(message, str) and message.strip():
            return message
    return None


def _default_client_factory(api_key: str) -> AsyncGroq:
    return AsyncGroq(api_key=api_key, max_retries=0)


class CompletionClient:
    """Sends chat-completion requests with a caller-chosen credential.

    Example:
        client = CompletionClient()
        data = await client.complete(api_key, {"model": "...", "messages": [...]})
        text = data["choices"][0]["message"]["content"]
    """

    def __init__(
        self,
        client_factory: Callable[[str], AsyncGroq] | None = None,
    ) -> None:
        """Initialize the completion client.

        Args:
            client_factory: Builds an SDK client for an API key. Clients are
                cached per key. Defaults to AsyncGroq without SDK retries.
        """
        self._client_factory = client_factory or _default_client_factory
        self._clients: dict[str, AsyncGroq] = {}

    def _client_for(self, api_key: str) -> AsyncGroq:
        if api_key not in self._clients:
            self._clients[api_key] = self._client_factory(api_key)
        return self._clients[api_key]

    async def complete(self, api_key: str, body: dict[str, Any]) -> dict[str, Any]:
        """Perform a single completion call.

        Args:
            api_key: Credential to authenticate with.
            body: Request body: ``model``, ``messages`` and optionally
                ``tools``, ``tool_choice`` and ``response_format``.

        Returns:
            The response as a JSON-compatible dictionary.

        Raises:
            CompletionError: On a non-success status or transport failure.
        """
        client = self._client_for(api_key)
        try:
            response = await client.chat.completions.create(**body)
        except APIStatusError as e:
            message = _embedded_message(e.body) or DEFAULT_ERROR_MESSAGE
            logger.debug("Upstream returned status %s", e.status_code)
            raise CompletionError(message) from e
        except APIConnectionError as e:
            raise CompletionError(DEFAULT_ERROR_MESSAGE) from e
        except APIResponseValidationError:
            logger.warning("Upstream response body could not be parsed")
            return {}

        if response is None:
            return {}
        return response.model_dump(exclude_none=True)

    async def close(self) -> None:
        """Close every cached SDK client."""
        for client in self._clients.values():
            await client.close()
        self._clients.clear()


def first_message(response: dict[str, Any]) -> dict[str, Any]:
    """Return ``choices[0].message`` or an empty dict when absent."""
    choices = response.get("choices") if isinstance(response, dict) else None
    if not choices or not isinstance(choices[0], dict):
        return {}
    message = choices[0].get("message")
    return message if isinstance(message, dict) else {}


def message_text(message: dict[str, Any]) -> str:
    """Trimmed string content of a response message."""
    content = message.get("content")
    return content.strip() if isinstance(content, str) else ""
