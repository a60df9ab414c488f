"""Persisted user settings (AI credential and rewrite style).

Settings live in a YAML file (default ``~/.stash/config.yaml``) and load as a
typed Settings model. Missing file means defaults.
"""

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

logger = logging.getLogger(__name__)

BASE_REWRITE_INSTRUCTION = (
    "You are an expert writing assistant. Your task is to clean up and improve "
    "notes while preserving their original meaning and structure. Keep the same "
    "tone but make the text clearer, fix grammar, improve organization, and "
    "ensure proper markdown formatting. Do not add new information or change "
    "the core content. Return only the improved text without any additional "
    "commentary, introductions, or explanations."
)

# style -> (label, instruction appended to the base instruction)
PROMPT_STYLES: dict[str, tuple[str, str]] = {
    "professional": (
        "Professional",
        "Make the writing more professional and polished.",
    ),
    "casual": ("Casual", "Keep the writing casual and conversational."),
    "concise": ("Concise", "Make the writing more concise and to the point."),
    "detailed": (
        "Detailed",
        "Expand on ideas and add more detail where appropriate.",
    ),
    "technical": (
        "Technical",
        "Use more technical language and precise terminology.",
    ),
    "simple": ("Simple", "Simplify the language and make it easier to understand."),
    "custom": ("Custom", ""),
}

PROMPT_STYLE_NAMES = list(PROMPT_STYLES)
DEFAULT_PROMPT_STYLE = "professional"


class SettingsError(Exception):
    """Raised when settings cannot be read or written."""

    pass


class Settings(BaseModel):
    """User settings.

    Frozen; use ``model_copy(update=...)`` to change a value before saving.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    api_key: str | None = None
    prompt_style: str = DEFAULT_PROMPT_STYLE
    custom_prompt: str | None = None
    model: str | None = None

    @field_validator("prompt_style")
    @classmethod
    def _known_style(cls, value: str) -> str:
        if value not in PROMPT_STYLES:
            raise ValueError(
                f"unknown prompt style '{value}', "
                f"expected one of: {', '.join(PROMPT_STYLE_NAMES)}"
            )
        return value

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    def with_api_key(self, api_key: str) -> "Settings":
        """Store a credential; a blank one clears it."""
        return self.model_copy(update={"api_key": api_key.strip() or None})

    def rewrite_system_prompt(self) -> str:
        """Base rewrite instruction plus the selected style's instruction."""
        if self.prompt_style == "custom":
            if self.custom_prompt and self.custom_prompt.strip():
                return f"{BASE_REWRITE_INSTRUCTION} {self.custom_prompt.strip()}"
            return BASE_REWRITE_INSTRUCTION
        _, instruction = PROMPT_STYLES[self.prompt_style]
        return f"{BASE_REWRITE_INSTRUCTION} {instruction}"


def style_label(style: str) -> str:
    """Human label for a prompt style name."""
    label, _ = PROMPT_STYLES.get(style, (style, ""))
    return label


def cycle_style(style: str, step: int) -> str:
    """Return the style ``step`` positions away, wrapping around."""
    try:
        index = PROMPT_STYLE_NAMES.index(style)
    except ValueError:
        index = 0
    return PROMPT_STYLE_NAMES[(index + step) % len(PROMPT_STYLE_NAMES)]


class SettingsStore:
    """Loads and saves Settings as YAML.

    Example:
        store = SettingsStore("~/.stash/config.yaml")
        settings = store.load()
        store.save(settings.with_api_key("sk-..."))
    """

    def __init__(self, path: Path | str):
        self.path = Path(path).expanduser()

    def load(self) -> Settings:
        """
        Load settings from disk.

        Returns:
            Settings; defaults when the file is missing or empty.

        Raises:
            SettingsError: If the file is unreadable, invalid YAML or invalid values.
        """
        if not self.path.exists():
            logger.debug(f"No settings file at {self.path}")
            return Settings()

        try:
            with open(self.path, encoding="utf-8") as f:
                raw: Any = yaml.safe_load(f)
        except OSError as e:
            raise SettingsError(f"failed to read {self.path}: {e}") from e
        except yaml.YAMLError as e:
            logger.error(f"Invalid YAML in {self.path}: {e}")
            raise SettingsError(f"invalid yaml in {self.path}") from e

        if raw is None:
            return Settings()

        if not isinstance(raw, dict):
            raise SettingsError(
                f"{self.path.name} must be a mapping, got {type(raw).__name__}"
            )

        try:
            settings = Settings.model_validate(raw)
        except ValidationError as e:
            raise SettingsError(f"invalid settings in {self.path.name}: {e}") from e
        logger.debug(
            f"Settings loaded: style={settings.prompt_style}, "
            f"api_key={'set' if settings.has_api_key else 'not set'}"
        )
        return settings

    def save(self, settings: Settings) -> None:
        """
        Write settings to disk, creating the parent directory.

        Raises:
            SettingsError: On any filesystem failure.
        """
        data = settings.model_dump(mode="json")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                yaml.safe_dump(data, f, sort_keys=False)
        except OSError as e:
            raise SettingsError(f"failed to write {self.path}: {e}") from e
        logger.info(f"Settings saved to {self.path}")

    def __repr__(self) -> str:
        return f"SettingsStore({self.path})"
