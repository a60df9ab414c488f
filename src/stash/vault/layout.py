"""Stash directory layout and path helpers."""

from pathlib import Path
from uuid import UUID

from stash.core.config import CONFIG_FILE, NOTES_DIR, STASH_HOME

NOTE_SUFFIX = ".md"


def get_stash_home() -> Path:
    """
    Get the stash home directory.

    Returns:
        Path to stash home (default ~/.stash)
    """
    return STASH_HOME


def get_notes_dir() -> Path:
    """
    Get the notes folder path.

    Returns:
        Path to the notes folder
    """
    return NOTES_DIR


def get_config_file() -> Path:
    """
    Get the settings file path.

    Returns:
        Path to config.yaml
    """
    return CONFIG_FILE


def note_filename(note_id: UUID) -> str:
    """File name for a note: ``<uuid>.md``."""
    return f"{note_id}{NOTE_SUFFIX}"


def list_note_files(notes_dir: Path) -> list[Path]:
    """
    List all markdown files directly inside a notes folder.

    Args:
        notes_dir: Folder to scan

    Returns:
        Note paths sorted by name, empty if the folder doesn't exist
    """
    if not notes_dir.exists():
        return []
    return sorted(p for p in notes_dir.glob(f"*{NOTE_SUFFIX}") if p.is_file())
