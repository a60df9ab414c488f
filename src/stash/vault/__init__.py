"""Vault module: notes stored as markdown files with YAML frontmatter.

Every note lives in its own ``<uuid>.md`` file under the notes folder, so the
collection stays human-readable and editable outside the app.
"""

from stash.vault.frontmatter import NoteFormatError, parse_note, write_note
from stash.vault.layout import get_config_file, get_notes_dir, get_stash_home
from stash.vault.notes import NoteRepository, NoteStoreError

__all__ = [
    "NoteFormatError",
    "NoteRepository",
    "NoteStoreError",
    "get_config_file",
    "get_notes_dir",
    "get_stash_home",
    "parse_note",
    "write_note",
]
