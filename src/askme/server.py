"""HTTP endpoint for the chat front-end."""

import json
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .agent import ChatOrchestrator, InvalidInputError, SessionContext
from .config import ConfigurationError, Settings
from .facts import FactStore
from .llm import CompletionClient
from .logging import configure_logger

logger = logging.getLogger(__name__)

CHAT_PATH = "/api/chat"


def read_session(request: Request, cookie_name: str) -> SessionContext:
    """Credential index from the session cookie; 1 when absent or unusable."""
    raw = request.cookies.get(cookie_name, "")
    try:
        index = int(raw)
    except ValueError:
        index = 1
    return SessionContext(credential_index=index)


def _json(
    body: dict,
    status_code: int = 200,
    cookie: tuple[str, int] | None = None,
) -> JSONResponse:
    response = JSONResponse(body, status_code=status_code)
    if cookie is not None:
        name, index = cookie
        response.set_cookie(name, str(index), path="/", httponly=True, samesite="lax")
    return response


def create_app(
    settings: Settings,
    orchestrator: ChatOrchestrator | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        settings: Process configuration.
        orchestrator: Pre-built orchestrator; built from settings when None.
            Stays None when no API keys are configured, in which case every
            chat request is answered with a configuration error.
    """
    config_error = None
    if orchestrator is None:
        facts = FactStore.from_file(settings.profile_path)
        try:
            orchestrator = ChatOrchestrator.from_settings(
                settings,
                facts,
                CompletionClient(),
                trace_logger=configure_logger(settings.log_dir),
            )
        except ConfigurationError as e:
            logger.error("%s", e)
            config_error = str(e)

    app = FastAPI(title="Ask Me Anything")
    app.state.orchestrator = orchestrator
    app.state.settings = settings

    @app.api_route(CHAT_PATH, methods=["GET", "PUT", "PATCH", "DELETE"])
    async def chat_method_not_allowed() -> JSONResponse:
        return _json({"error": "Method not allowed."}, 405)

    @app.post(CHAT_PATH)
    async def chat(request: Request) -> JSONResponse:
        orchestrator: ChatOrchestrator | None = request.app.state.orchestrator
        if orchestrator is None:
            return _json({"error": config_error or "Chat service is not configured."}, 500)

        try:
            payload = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            payload = None
        if not isinstance(payload, dict):
            return _json({"error": "Invalid request payload."}, 400)

        history = payload.get("history")
        if not isinstance(history, list):
            history = []
        new_message = payload.get("newMessage")
        session = read_session(request, settings.cookie_name)

        try:
            reply = await orchestrator.respond(
                history,
                new_message if isinstance(new_message, str) else "",
                session=session,
                debug=payload.get("debug") is True,
            )
        except InvalidInputError as e:
            return _json({"error": str(e)}, 400)

        cookie = None
        if reply.session.credential_index != orchestrator.pool.normalize_index(session.credential_index):
            cookie = (settings.cookie_name, reply.session.credential_index)
        return _json({"responseText": reply.response_text}, cookie=cookie)

    return app
