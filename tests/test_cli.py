"""Tests for the terminal chat."""

import json
from pathlib import Path

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from askme.agent import ChatOrchestrator, build_prompts
from askme.cli import CLI, run_cli
from askme.config import Settings
from askme.facts import FactStore
from askme.llm import CompletionError, CredentialPool
from askme.tools import ProfileTool


def make_response(content: str) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def general_turn(answer: str) -> list:
    return [make_response(json.dumps({"is_personal": False})), make_response(answer)]


@pytest.fixture
def completion_client() -> MagicMock:
    client = MagicMock()
    client.complete = AsyncMock()
    return client


@pytest.fixture
def cli(completion_client: MagicMock) -> CLI:
    orchestrator = ChatOrchestrator(
        pool=CredentialPool(("k1", "k2")),
        client=completion_client,
        facts=FactStore({}),
        tool=ProfileTool("Ronak Vimal"),
        prompts=build_prompts("Ronak Vimal"),
        model="m",
        classifier_model="c",
    )
    return CLI(orchestrator, "Ronak Vimal")


class TestCLIAsk:
    """Tests for sending messages."""

    @pytest.mark.asyncio
    async def test_ask_records_history(self, cli: CLI, completion_client: MagicMock) -> None:
        completion_client.complete.side_effect = general_turn("Paris.")

        response = await cli.ask("Capital of France?")

        assert response == "Paris."
        assert cli.history == [
            {"role": "user", "content": "Capital of France?"},
            {"role": "assistant", "content": "Paris."},
        ]

    @pytest.mark.asyncio
    async def test_history_sent_on_next_turn(self, cli: CLI, completion_client: MagicMock) -> None:
        completion_client.complete.side_effect = general_turn("Paris.") + general_turn("Berlin.")

        await cli.ask("Capital of France?")
        await cli.ask("And Germany?")

        main_body = completion_client.complete.call_args_list[3].args[1]
        assert [m["content"] for m in main_body["messages"][1:]] == [
            "Capital of France?",
            "Paris.",
            "And Germany?",
        ]

    @pytest.mark.asyncio
    async def test_session_carries_rotated_key(self, cli: CLI, completion_client: MagicMock) -> None:
        completion_client.complete.side_effect = (
            [CompletionError("rate limit")] + general_turn("One.") + general_turn("Two.")
        )

        await cli.ask("First")
        await cli.ask("Second")

        keys = [c.args[0] for c in completion_client.complete.call_args_list]
        assert keys == ["k1", "k2", "k2", "k2", "k2"]
        assert cli.session.credential_index == 2


class TestCLICommands:
    """Tests for slash commands."""

    def test_exit(self, cli: CLI) -> None:
        assert cli._handle_command("/exit") is False
        assert cli._handle_command("quit") is False

    def test_reset_clears_history(self, cli: CLI) -> None:
        cli.history = [{"role": "user", "content": "x"}]

        assert cli._handle_command("/reset") is True
        assert cli.history == []

    def test_help_prints_banner(self, cli: CLI, capsys) -> None:
        assert cli._handle_command("/help") is True
        assert "Ronak Vimal" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_run_until_exit(self, cli: CLI, completion_client: MagicMock, capsys) -> None:
        completion_client.complete.side_effect = general_turn("Paris.")

        with patch("builtins.input", side_effect=["", "Capital of France?", "/exit"]):
            await cli.run()

        out = capsys.readouterr().out
        assert "Paris." in out
        assert "Goodbye!" in out

    @pytest.mark.asyncio
    async def test_run_stops_on_eof(self, cli: CLI) -> None:
        with patch("builtins.input", side_effect=EOFError):
            await cli.run()


class TestRunCLI:
    """Tests for start-up checks."""

    @pytest.mark.asyncio
    async def test_missing_profile(self, tmp_path: Path, capsys) -> None:
        settings = Settings(api_keys=("k1",), profile_path=tmp_path / "absent.json")

        assert await run_cli(settings) == 1
        assert "profile document not found" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_missing_keys(self, tmp_path: Path, capsys) -> None:
        profile = tmp_path / "profile.json"
        profile.write_text("{}", encoding="utf-8")

        assert await run_cli(Settings(profile_path=profile)) == 1
        assert "Missing Groq API keys" in capsys.readouterr().out
