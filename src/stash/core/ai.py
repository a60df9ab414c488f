"""AI collaborator: note rewriting and natural-language query translation.

Both operations are one-shot, tool-less Claude Agent SDK queries bounded by
``asyncio.wait_for``. Every failure surfaces as an AiError carrying a
single-line, lower-case message suitable for the status bar.
"""

import asyncio
import logging

from claude_agent_sdk import (
    ClaudeAgentOptions,
    ClaudeSDKError,
    CLIConnectionError,
    CLINotFoundError,
    ProcessError,
    query,
)
from claude_agent_sdk.types import AssistantMessage, ResultMessage, TextBlock

from stash.core.config import AI_COMMAND_TIMEOUT, AI_REWRITE_TIMEOUT
from stash.core.settings import Settings
from stash.core.types import Note

logger = logging.getLogger(__name__)

REWRITE_PROMPT = (
    "Please clean up and improve the following note content. Keep the same "
    "meaning and tone, but make it clearer, fix any grammar issues, and ensure "
    "proper markdown formatting:\n\n{content}"
)

TRANSLATE_SYSTEM_PROMPT = """\
You are a command parser for the 'stash' note-taking application. Your job is to convert natural language queries into valid stash search commands.

IMPORTANT: Return ONLY the search arguments, NOT the full command. Do not include 'stash search' in your response. Do not wrap your response in quotes.

Available search patterns:
- text search: just the search term (e.g., rust, async await)
- tag search: #tagname (e.g., #rust, #webdev)
- project search: +projectname (e.g., +myapp, +backend)
- combined: #tag +project text (e.g., #rust +webapp error handling)
- exclude: -#tagname or -+projectname (e.g., -#old)
- list options: --list-tags or --list-projects
- case sensitive: --case-sensitive followed by search term

Examples:
- find rust notes → #rust
- show me my webapp project → +webapp
- notes about rust in my webapp → #rust +webapp
- math notes → math
- find my old javascript code → #javascript
- list all my tags → --list-tags
- find notes with javascript but not old stuff → #javascript -#old

Return ONLY the search arguments that would come after 'stash search'. Do not use quotes around your response."""

TRANSLATE_PROMPT = (
    "Convert this natural language query to stash search arguments: {text}"
)

NOT_CONFIGURED_MESSAGE = "ai api key not configured"


class AiError(Exception):
    """Raised when an AI request fails. The message is display-ready."""

    pass


def _one_line(text: str) -> str:
    return " ".join(str(text).split())


def clean_query_output(raw: str) -> str:
    """
    Strip the decoration models like to add around search arguments.

    Removes code fences/backticks, a leading ``stash search`` or ``search``,
    and surrounding quotes. Only the first non-empty line is kept.
    """
    lines = [line for line in raw.strip().strip("`").splitlines() if line.strip()]
    cleaned = lines[0].strip() if lines else ""
    cleaned = cleaned.strip("`").strip()
    for prefix in ("stash search ", "search "):
        if cleaned.startswith(prefix):
            cleaned = cleaned[len(prefix) :]
            break
    return cleaned.strip().strip('"').strip("'").strip()


class AiClient:
    """Runs rewrite and translate requests through the Claude Agent SDK."""

    def __init__(
        self,
        settings: Settings,
        fallback_api_key: str | None = None,
        rewrite_timeout: float = AI_REWRITE_TIMEOUT,
        command_timeout: float = AI_COMMAND_TIMEOUT,
        model: str | None = None,
    ):
        """
        Initialize AI client.

        Args:
            settings: User settings (credential, style, model)
            fallback_api_key: Credential from the environment, used when
                settings hold none
            rewrite_timeout: Seconds before a rewrite fails
            command_timeout: Seconds before a translation fails
            model: Model override; settings.model wins when set
        """
        self.settings = settings
        self.fallback_api_key = fallback_api_key
        self.rewrite_timeout = rewrite_timeout
        self.command_timeout = command_timeout
        self.model = model

    def update_settings(self, settings: Settings) -> None:
        """Swap in freshly saved settings."""
        self.settings = settings

    @property
    def api_key(self) -> str | None:
        if self.settings.has_api_key:
            return self.settings.api_key
        return self.fallback_api_key or None

    def is_configured(self) -> bool:
        """True when a credential is available."""
        return bool(self.api_key)

    def _build_options(self, system_prompt: str) -> ClaudeAgentOptions:
        env = {"ANTHROPIC_API_KEY": self.api_key} if self.api_key else {}
        return ClaudeAgentOptions(
            system_prompt=system_prompt,
            max_turns=1,
            allowed_tools=[],
            model=self.settings.model or self.model,
            env=env,
        )

    async def _complete(self, system_prompt: str, prompt: str, timeout: float) -> str:
        if not self.is_configured():
            raise AiError(NOT_CONFIGURED_MESSAGE)

        options = self._build_options(system_prompt)

        async def _collect() -> str:
            text = ""
            async for message in query(prompt=prompt, options=options):
                if isinstance(message, AssistantMessage):
                    for block in message.content:
                        match block:
                            case TextBlock(text=chunk):
                                text += chunk
                elif isinstance(message, ResultMessage):
                    if message.is_error:
                        detail = _one_line(message.result or "request failed")
                        raise AiError(f"api error: {detail}")
                    if message.result:
                        text = message.result
            return text

        try:
            result = await asyncio.wait_for(_collect(), timeout)
        except asyncio.TimeoutError as e:
            logger.warning(f"AI request timed out after {timeout:g}s")
            raise AiError(
                f"timeout error: request took longer than {timeout:g} seconds"
            ) from e
        except CLINotFoundError as e:
            raise AiError("claude cli not found, please install claude-code") from e
        except CLIConnectionError as e:
            raise AiError(f"connection error: {_one_line(e)}") from e
        except ProcessError as e:
            raise AiError(f"api error: process exited with {e.exit_code}") from e
        except ClaudeSDKError as e:
            raise AiError(f"api error: {_one_line(e)}") from e

        result = result.strip()
        if not result:
            raise AiError("invalid response format")
        return result

    async def rewrite(self, note: Note) -> str:
        """
        Rewrite a note's content in the configured style.

        Returns:
            The rewritten content

        Raises:
            AiError: On any failure
        """
        logger.debug(f"Rewriting note {note.id} (style={self.settings.prompt_style})")
        return await self._complete(
            self.settings.rewrite_system_prompt(),
            REWRITE_PROMPT.format(content=note.content),
            self.rewrite_timeout,
        )

    async def translate_query(self, text: str) -> str:
        """
        Translate a natural-language request into search arguments.

        The output is untrusted; callers must validate it before use.

        Raises:
            AiError: On any failure
        """
        logger.debug(f"Translating query: {text!r}")
        raw = await self._complete(
            TRANSLATE_SYSTEM_PROMPT,
            TRANSLATE_PROMPT.format(text=text),
            self.command_timeout,
        )
        cleaned = clean_query_output(raw)
        if not cleaned:
            raise AiError("invalid response format")
        return cleaned
