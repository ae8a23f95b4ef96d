"""Tests for CompletionClient."""

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock

from groq import APIConnectionError, APIStatusError, RateLimitError

from askme.llm import CompletionClient, CompletionError, is_rate_limit_error
from askme.llm.client import first_message, message_text

URL = "https://api.groq.com/openai/v1/chat/completions"


def make_status_error(status: int, body: object, cls=APIStatusError) -> APIStatusError:
    request = httpx.Request("POST", URL)
    response = httpx.Response(status, request=request)
    return cls(f"Error code: {status}", response=response, body=body)


def make_sdk_client(create: AsyncMock) -> MagicMock:
    sdk = MagicMock()
    sdk.chat.completions.create = create
    sdk.close = AsyncMock()
    return sdk


def make_sdk_response(data: dict) -> MagicMock:
    response = MagicMock()
    response.model_dump.return_value = data
    return response


class TestCompletionClient:
    """Tests for the single-call client."""

    @pytest.mark.asyncio
    async def test_returns_dumped_response(self) -> None:
        data = {"choices": [{"message": {"role": "assistant", "content": "Hi"}}]}
        create = AsyncMock(return_value=make_sdk_response(data))
        client = CompletionClient(client_factory=lambda key: make_sdk_client(create))

        result = await client.complete("key-1", {"model": "m", "messages": []})

        assert result == data
        create.assert_called_once_with(model="m", messages=[])

    @pytest.mark.asyncio
    async def test_one_sdk_client_per_key(self) -> None:
        create = AsyncMock(return_value=make_sdk_response({}))
        built: list[str] = []

        def factory(key: str) -> MagicMock:
            built.append(key)
            return make_sdk_client(create)

        client = CompletionClient(client_factory=factory)
        await client.complete("key-1", {"model": "m", "messages": []})
        await client.complete("key-1", {"model": "m", "messages": []})
        await client.complete("key-2", {"model": "m", "messages": []})

        assert built == ["key-1", "key-2"]

    @pytest.mark.asyncio
    async def test_status_error_uses_embedded_message(self) -> None:
        error = make_status_error(
            429,
            {"error": {"message": "Rate limit reached for model", "type": "tokens"}},
            cls=RateLimitError,
        )
        client = CompletionClient(
            client_factory=lambda key: make_sdk_client(AsyncMock(side_effect=error))
        )

        with pytest.raises(CompletionError, match="Rate limit reached for model") as exc_info:
            await client.complete("key-1", {"model": "m", "messages": []})

        assert is_rate_limit_error(exc_info.value)

    @pytest.mark.asyncio
    async def test_status_error_with_unwrapped_body(self) -> None:
        error = make_status_error(401, {"message": "Invalid API Key"})
        client = CompletionClient(
            client_factory=lambda key: make_sdk_client(AsyncMock(side_effect=error))
        )

        with pytest.raises(CompletionError, match="Invalid API Key"):
            await client.complete("key-1", {"model": "m", "messages": []})

    @pytest.mark.asyncio
    async def test_status_error_without_body_uses_generic_message(self) -> None:
        error = make_status_error(500, None)
        client = CompletionClient(
            client_factory=lambda key: make_sdk_client(AsyncMock(side_effect=error))
        )

        with pytest.raises(CompletionError, match="Groq API request failed."):
            await client.complete("key-1", {"model": "m", "messages": []})

    @pytest.mark.asyncio
    async def test_connection_error(self) -> None:
        error = APIConnectionError(request=httpx.Request("POST", URL))
        client = CompletionClient(
            client_factory=lambda key: make_sdk_client(AsyncMock(side_effect=error))
        )

        with pytest.raises(CompletionError) as exc_info:
            await client.complete("key-1", {"model": "m", "messages": []})

        assert not is_rate_limit_error(exc_info.value)

    @pytest.mark.asyncio
    async def test_close_closes_cached_clients(self) -> None:
        sdk = make_sdk_client(AsyncMock(return_value=make_sdk_response({})))
        client = CompletionClient(client_factory=lambda key: sdk)
        await client.complete("key-1", {"model": "m", "messages": []})

        await client.close()

        sdk.close.assert_awaited_once()


class TestResponseHelpers:
    """Tests for reading the first message out of a response."""

    def test_first_message(self) -> None:
        message = {"role": "assistant", "content": "Hello"}
        assert first_message({"choices": [{"message": message}]}) == message

    def test_first_message_absent(self) -> None:
        assert first_message({}) == {}
        assert first_message({"choices": []}) == {}
        assert first_message({"choices": [{}]}) == {}

    def test_message_text_trims(self) -> None:
        assert message_text({"content": "  hi \n"}) == "hi"

    def test_message_text_non_string(self) -> None:
        assert message_text({"content": None}) == ""
        assert message_text({}) == ""


def test_is_rate_limit_error_is_case_insensitive() -> None:
    assert is_rate_limit_error(Exception("RATE LIMIT exceeded"))
    assert not is_rate_limit_error(Exception("Invalid API Key"))
