"""Tests for the AI collaborator."""

import asyncio
from unittest.mock import patch

import pytest
from claude_agent_sdk import CLINotFoundError, ProcessError
from claude_agent_sdk.types import AssistantMessage, ResultMessage, TextBlock

from stash.core.ai import (
    REWRITE_PROMPT,
    TRANSLATE_SYSTEM_PROMPT,
    AiClient,
    AiError,
    clean_query_output,
)
from stash.core.settings import BASE_REWRITE_INSTRUCTION, Settings
from stash.core.types import Note


def result_message(result: str | None = "Done", is_error: bool = False):
    return ResultMessage(
        subtype="success",
        duration_ms=10,
        duration_api_ms=5,
        is_error=is_error,
        num_turns=1,
        session_id="sess_1",
        result=result,
    )


def fake_query(*messages, calls: list | None = None):
    """Build a stand-in for claude_agent_sdk.query yielding messages."""

    async def _query(prompt, options):
        if calls is not None:
            calls.append((prompt, options))
        for message in messages:
            yield message

    return _query


@pytest.fixture
def client():
    return AiClient(Settings(api_key="sk-test", prompt_style="concise"))


class TestCleanQueryOutput:
    """Tests for clean_query_output."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("#rust", "#rust"),
            ("`#rust +webapp`", "#rust +webapp"),
            ("stash search #rust", "#rust"),
            ("search math", "math"),
            ('"#javascript -#old"', "#javascript -#old"),
            ("'--list-tags'", "--list-tags"),
            ("```\n#rust\n```", "#rust"),
            ("  #go  \n", "#go"),
        ],
    )
    def test_strips_decoration(self, raw, expected):
        assert clean_query_output(raw) == expected


class TestAiClientConfiguration:
    """Tests for credential handling."""

    def test_configured_from_settings(self):
        assert AiClient(Settings(api_key="sk")).is_configured()

    def test_configured_from_environment_key(self):
        assert AiClient(Settings(), fallback_api_key="sk-env").is_configured()

    def test_not_configured(self):
        assert not AiClient(Settings()).is_configured()

    def test_update_settings(self):
        client = AiClient(Settings())

        client.update_settings(Settings(api_key="sk"))

        assert client.is_configured()

    @pytest.mark.asyncio
    async def test_unconfigured_request_fails(self):
        with pytest.raises(AiError, match="not configured"):
            await AiClient(Settings()).rewrite(Note.from_content("x"))


class TestRewrite:
    """Tests for AiClient.rewrite."""

    @pytest.mark.asyncio
    async def test_returns_assistant_text(self, client):
        calls = []
        messages = (
            AssistantMessage(content=[TextBlock(text="Clean text")], model="claude"),
            result_message(result=None),
        )
        with patch("stash.core.ai.query", fake_query(*messages, calls=calls)):
            result = await client.rewrite(Note.from_content("messy text"))

        assert result == "Clean text"
        prompt, options = calls[0]
        assert prompt == REWRITE_PROMPT.format(content="messy text")
        assert options.system_prompt.startswith(BASE_REWRITE_INSTRUCTION)
        assert options.system_prompt.endswith("to the point.")
        assert options.max_turns == 1
        assert options.env == {"ANTHROPIC_API_KEY": "sk-test"}

    @pytest.mark.asyncio
    async def test_result_message_wins(self, client):
        messages = (
            AssistantMessage(content=[TextBlock(text="partial")], model="claude"),
            result_message(result="  Final text \n"),
        )
        with patch("stash.core.ai.query", fake_query(*messages)):
            assert await client.rewrite(Note.from_content("x")) == "Final text"

    @pytest.mark.asyncio
    async def test_error_result(self, client):
        messages = (result_message(result="rate limited\nretry later", is_error=True),)
        with patch("stash.core.ai.query", fake_query(*messages)):
            with pytest.raises(AiError, match="api error: rate limited retry later"):
                await client.rewrite(Note.from_content("x"))

    @pytest.mark.asyncio
    async def test_empty_response(self, client):
        with patch("stash.core.ai.query", fake_query(result_message(result=""))):
            with pytest.raises(AiError, match="invalid response format"):
                await client.rewrite(Note.from_content("x"))

    @pytest.mark.asyncio
    async def test_timeout(self):
        client = AiClient(Settings(api_key="sk"), rewrite_timeout=0.01)

        async def slow_query(prompt, options):
            await asyncio.sleep(1)
            yield result_message()

        with patch("stash.core.ai.query", slow_query):
            with pytest.raises(AiError, match="timeout error"):
                await client.rewrite(Note.from_content("x"))

    @pytest.mark.asyncio
    async def test_cli_not_found(self, client):
        async def failing_query(prompt, options):
            raise CLINotFoundError("missing")
            yield  # pragma: no cover

        with patch("stash.core.ai.query", failing_query):
            with pytest.raises(AiError, match="claude cli not found"):
                await client.rewrite(Note.from_content("x"))

    @pytest.mark.asyncio
    async def test_process_error(self, client):
        async def failing_query(prompt, options):
            raise ProcessError("boom", exit_code=2)
            yield  # pragma: no cover

        with patch("stash.core.ai.query", failing_query):
            with pytest.raises(AiError, match="exited with 2"):
                await client.rewrite(Note.from_content("x"))


class TestTranslateQuery:
    """Tests for AiClient.translate_query."""

    @pytest.mark.asyncio
    async def test_cleans_output(self, client):
        calls = []
        messages = (result_message(result="stash search #rust +webapp"),)
        with patch("stash.core.ai.query", fake_query(*messages, calls=calls)):
            result = await client.translate_query("rust notes in my webapp")

        assert result == "#rust +webapp"
        prompt, options = calls[0]
        assert "rust notes in my webapp" in prompt
        assert options.system_prompt == TRANSLATE_SYSTEM_PROMPT

    @pytest.mark.asyncio
    async def test_blank_after_cleaning(self, client):
        with patch("stash.core.ai.query", fake_query(result_message(result='""'))):
            with pytest.raises(AiError, match="invalid response format"):
                await client.translate_query("anything")
