"""Configuration management for stash."""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def get_env(key: str, default: str | None = None) -> str | None:
    """Get environment variable with optional default."""
    return os.getenv(key, default)


def get_env_int(key: str, default: int) -> int:
    """Get environment variable as integer."""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def get_env_float(key: str, default: float) -> float:
    """Get environment variable as float."""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


# Stash home directory (defaults to ~/.stash)
STASH_HOME = Path(
    get_env("STASH_HOME", os.path.expanduser("~/.stash"))
    or os.path.expanduser("~/.stash")
).expanduser()

NOTES_DIR = Path(get_env("STASH_NOTES_DIR") or STASH_HOME / "notes").expanduser()
CONFIG_FILE = Path(
    get_env("STASH_CONFIG_FILE") or STASH_HOME / "config.yaml"
).expanduser()
LOG_FILE = Path(get_env("STASH_LOG_FILE") or STASH_HOME / "stash.log").expanduser()

# AI settings
ANTHROPIC_API_KEY = get_env("ANTHROPIC_API_KEY")
AI_MODEL = get_env("STASH_AI_MODEL") or None
AI_REWRITE_TIMEOUT = get_env_float("STASH_REWRITE_TIMEOUT", 30.0)
AI_COMMAND_TIMEOUT = get_env_float("STASH_COMMAND_TIMEOUT", 10.0)

# Interactive loop
INPUT_POLL_SECONDS = 0.1

# Logging
LOG_LEVEL = get_env("LOG_LEVEL", "INFO") or "INFO"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    log_file: Path | None = None, level: str | None = None
) -> logging.Logger:
    """
    Configure and return logger.

    Args:
        log_file: Write records here instead of stderr. The interactive
            session uses this so log lines never land on the screen.
        level: Override LOG_LEVEL (e.g. "DEBUG" for --debug)
    """
    handlers: list[logging.Handler] | None = None
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers = [logging.FileHandler(log_file, encoding="utf-8")]
    logging.basicConfig(
        format=LOG_FORMAT,
        level=getattr(logging, (level or LOG_LEVEL).upper(), logging.INFO),
        handlers=handlers,
        force=True,
    )
    return logging.getLogger(__name__)


def validate_notes_environment(notes_dir: Path | None = None) -> tuple[bool, str]:
    """
    Validate that the notes directory is usable.

    Args:
        notes_dir: Folder to check (defaults to NOTES_DIR)

    Returns:
        (is_valid, message) - If not valid, message explains what's wrong.
    """
    notes_dir = notes_dir or NOTES_DIR
    if notes_dir.exists() and not notes_dir.is_dir():
        return False, f"notes path is not a directory: {notes_dir}"
    return True, ""
