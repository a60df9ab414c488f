"""Factory for wiring a Session with its collaborators."""

import logging
from pathlib import Path

from stash.core.ai import AiClient
from stash.core.config import ANTHROPIC_API_KEY, AI_MODEL
from stash.core.settings import Settings, SettingsError, SettingsStore
from stash.core.tasks import TaskOrchestrator
from stash.session.state import Session
from stash.vault.layout import get_config_file, get_notes_dir
from stash.vault.notes import NoteRepository

logger = logging.getLogger(__name__)


def load_settings(store: SettingsStore) -> tuple[Settings, str | None]:
    """Load settings, falling back to defaults. Returns (settings, error message)."""
    try:
        return store.load(), None
    except SettingsError as e:
        logger.warning(f"Using default settings: {e}")
        return Settings(), f"failed to load settings: {e}"


def build_ai_client(settings: Settings) -> AiClient:
    return AiClient(settings, fallback_api_key=ANTHROPIC_API_KEY, model=AI_MODEL)


def build_session(
    notes_dir: Path | str | None = None,
    config_file: Path | str | None = None,
    repository: NoteRepository | None = None,
    settings_store: SettingsStore | None = None,
    ai: AiClient | None = None,
    tasks: TaskOrchestrator | None = None,
) -> Session:
    """
    Build a Session with notes loaded from disk.

    Args:
        notes_dir: Notes folder (defaults to ~/.stash/notes)
        config_file: Settings file (defaults to ~/.stash/config.yaml)
        repository: Pre-built repository, overrides notes_dir
        settings_store: Pre-built settings store, overrides config_file
        ai: Pre-built AI client
        tasks: Pre-built task orchestrator

    Returns:
        A ready Session in Home mode
    """
    repository = repository or NoteRepository(notes_dir or get_notes_dir())
    settings_store = settings_store or SettingsStore(config_file or get_config_file())
    settings, error = load_settings(settings_store)

    session = Session(
        repository=repository,
        settings_store=settings_store,
        settings=settings,
        ai=ai or build_ai_client(settings),
        tasks=tasks or TaskOrchestrator(),
    )
    session.reload()
    if error:
        session.set_status(error)
    logger.info(
        f"Session ready: {len(session.all_notes)} notes in {repository.root}, "
        f"ai={'configured' if session.ai_configured else 'not configured'}"
    )
    return session
