"""Chat turn orchestration: classify, answer, look up facts, follow up."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, ValidationError

from ..llm import CredentialPool, EmptyResponseError, KeyRotator, is_rate_limit_error
from ..llm.client import first_message, message_text
from ..tools import InvalidToolArgs, ProfileTool, ValidToolArgs
from .prompt import (
    INVALID_KEY_RESPONSE,
    MISSING_INFO_RESPONSE,
    RATE_LIMIT_RESPONSE,
    PromptSet,
    build_classifier_input,
    build_prompts,
    classifier_response_format,
)

if TYPE_CHECKING:
    from ..config import Settings
    from ..facts import FactStore
    from ..llm import CompletionClient
    from ..logging import JSONLLogger

logger = logging.getLogger(__name__)


class InvalidInputError(ValueError):
    """The caller's message cannot be processed."""


class _Classification(BaseModel):
    model_config = ConfigDict(strict=True)

    is_personal: bool


@dataclass(frozen=True)
class SessionContext:
    """Per-caller state carried between requests by the transport layer."""

    credential_index: int = 1


@dataclass(frozen=True)
class ChatReply:
    """Result of one chat turn."""

    response_text: str
    session: SessionContext


def failure_response(error: BaseException) -> str:
    """Map a failed turn to one of the fixed user-facing replies."""
    if is_rate_limit_error(error):
        return RATE_LIMIT_RESPONSE
    if "api key" in str(error).lower():
        return INVALID_KEY_RESPONSE
    return MISSING_INFO_RESPONSE


class ChatOrchestrator:
    """Answers one question per call; holds no per-conversation state.

    Each turn makes at most three sequential upstream calls: the
    classifier, the main completion, and a follow-up carrying tool output
    when the model asked for profile facts.
    """

    def __init__(
        self,
        *,
        pool: CredentialPool,
        client: CompletionClient,
        facts: FactStore,
        tool: ProfileTool,
        prompts: PromptSet,
        model: str,
        classifier_model: str,
        history_window: int = 8,
        trace_logger: JSONLLogger | None = None,
    ) -> None:
        self.pool = pool
        self.client = client
        self.facts = facts
        self.tool = tool
        self.prompts = prompts
        self.model = model
        self.classifier_model = classifier_model
        self.history_window = history_window
        self.trace_logger = trace_logger

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        facts: FactStore,
        client: CompletionClient,
        trace_logger: JSONLLogger | None = None,
    ) -> ChatOrchestrator:
        """Wire an orchestrator from process settings."""
        return cls(
            pool=CredentialPool(settings.require_api_keys()),
            client=client,
            facts=facts,
            tool=ProfileTool(settings.subject_name),
            prompts=build_prompts(settings.subject_name),
            model=settings.model,
            classifier_model=settings.classifier_model,
            history_window=settings.history_window,
            trace_logger=trace_logger,
        )

    def recent_history(self, history: list[Any] | None) -> list[dict[str, str]]:
        """Keep the newest window of history as user/assistant messages."""
        if not history:
            return []
        return [
            {
                "role": "user" if msg.get("role") == "user" else "assistant",
                "content": str(msg.get("content") or ""),
            }
            for msg in history[-self.history_window:]
            if isinstance(msg, dict)
        ]

    async def respond(
        self,
        history: list[Any] | None,
        new_message: str,
        session: SessionContext | None = None,
        debug: bool = False,
    ) -> ChatReply:
        """Answer a question given the prior conversation.

        Args:
            history: Earlier messages, oldest first.
            new_message: The user's question.
            session: Credential hint from the caller's previous turn.
            debug: Write trace events for this turn when a trace logger exists.

        Returns:
            ChatReply with the answer or a fixed fallback text, plus the
            session to hand back to the caller.

        Raises:
            InvalidInputError: If the message is empty.
        """
        message = new_message.strip() if isinstance(new_message, str) else ""
        if not message:
            raise InvalidInputError("Message is required.")

        session = session or SessionContext()
        trace = self.trace_logger if debug else None
        rotator = KeyRotator(
            self.pool,
            self.client,
            start_index=session.credential_index,
            on_rotate=trace.log_key_rotation if trace else None,
        )

        try:
            text = await self._run_turn(self.recent_history(history), message, rotator, trace)
        except Exception as e:
            logger.warning("Chat turn failed: %s", type(e).__name__)
            if trace:
                trace.log("turn_error", error=str(e))
            text = failure_response(e)

        return ChatReply(
            response_text=text,
            session=SessionContext(credential_index=rotator.current_index),
        )

    async def _complete(
        self,
        rotator: KeyRotator,
        stage: str,
        body: dict[str, Any],
        trace: JSONLLogger | None,
    ) -> dict[str, Any]:
        if trace:
            trace.log_llm_request(
                stage,
                key_index=rotator.current_index,
                model=body["model"],
                messages_count=len(body["messages"]),
                has_tools="tools" in body,
            )
        return await rotator.complete(body)

    async def classify(
        self,
        history: list[dict[str, str]],
        message: str,
        rotator: KeyRotator,
        trace: JSONLLogger | None = None,
    ) -> bool:
        """Ask the classifier whether the question is about the subject.

        Unparseable output counts as not personal. Empty output raises.
        """
        body = {
            "model": self.classifier_model,
            "messages": [
                {"role": "system", "content": self.prompts.classifier},
                {"role": "user", "content": build_classifier_input(history, message)},
            ],
            "response_format": classifier_response_format(),
        }
        response = await self._complete(rotator, "classifier", body, trace)

        content = message_text(first_message(response))
        if not content:
            raise EmptyResponseError("Empty classifier response from Groq.")

        try:
            is_personal = _Classification.model_validate_json(content).is_personal
        except ValidationError:
            logger.info("Classifier output unusable, answering in general mode")
            is_personal = False

        if trace:
            trace.log("classifier_output", is_personal=is_personal, raw=content)
        return is_personal

    async def _run_turn(
        self,
        history: list[dict[str, str]],
        message: str,
        rotator: KeyRotator,
        trace: JSONLLogger | None,
    ) -> str:
        is_personal = await self.classify(history, message, rotator, trace)

        messages: list[dict[str, Any]] = [
            {"role": "system", "content": self.prompts.for_mode(is_personal)},
            *history,
            {"role": "user", "content": message},
        ]
        response = await self._complete(
            rotator,
            "main",
            {
                "model": self.model,
                "messages": messages,
                "tools": [self.tool.get_schema()],
                "tool_choice": self.tool.forced_choice() if is_personal else "auto",
            },
            trace,
        )

        assistant = first_message(response)
        tool_calls = assistant.get("tool_calls") or []

        if not tool_calls:
            text = message_text(assistant)
            if not text:
                raise EmptyResponseError("Empty response from Groq.")
            return text

        tool_messages = self._answer_tool_calls(tool_calls, trace)
        if tool_messages is None:
            return MISSING_INFO_RESPONSE

        follow_up = await self._complete(
            rotator,
            "follow_up",
            {
                "model": self.model,
                "messages": [*messages, _echo_assistant(assistant), *tool_messages],
            },
            trace,
        )
        text = message_text(first_message(follow_up))
        if not text:
            raise EmptyResponseError("Empty response from Groq.")
        return text

    def _answer_tool_calls(
        self,
        tool_calls: list[Any],
        trace: JSONLLogger | None,
    ) -> list[dict[str, Any]] | None:
        """Build one tool message per call, or None to fall back.

        Every call must name the profile tool with allow-listed paths, and
        every path must resolve; otherwise the whole turn falls back.
        """
        validated: list[tuple[str, ValidToolArgs]] = []
        for call in tool_calls:
            function = call.get("function") if isinstance(call, dict) else None
            if not isinstance(function, dict):
                return self._fallback("malformed tool call", trace)

            name = function.get("name")
            raw_arguments = function.get("arguments")
            if trace:
                trace.log_tool_call(str(name), raw_arguments)

            if name != self.tool.name:
                return self._fallback(f"unknown tool {name!r}", trace)

            parsed = self.tool.parse_arguments(raw_arguments)
            if isinstance(parsed, InvalidToolArgs):
                return self._fallback(parsed.reason, trace)
            validated.append((call.get("id", ""), parsed))

        tool_messages = []
        for call_id, args in validated:
            results = self.tool.lookup(self.facts, args)
            if trace:
                trace.log_tool_result([r.to_dict() for r in results])
            if not all(result.found for result in results):
                return self._fallback("facts missing", trace)
            tool_messages.append({
                "role": "tool",
                "tool_call_id": call_id,
                "name": self.tool.name,
                "content": self.tool.format_results(results),
            })

        return tool_messages

    @staticmethod
    def _fallback(reason: str, trace: JSONLLogger | None) -> None:
        logger.info("Answering with missing-information reply: %s", reason)
        if trace:
            trace.log("turn_fallback", reason=reason)
        return None


def _echo_assistant(message: dict[str, Any]) -> dict[str, Any]:
    """Re-send the assistant's tool-calling message in request form."""
    return {
        "role": "assistant",
        "content": message.get("content") or "",
        "tool_calls": [
            {
                "id": call.get("id", ""),
                "type": "function",
                "function": {
                    "name": call["function"].get("name"),
                    "arguments": call["function"].get("arguments") or "{}",
                },
            }
            for call in message.get("tool_calls") or []
        ],
    }
