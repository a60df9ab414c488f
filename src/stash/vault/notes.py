"""Note storage: one markdown file per note in the notes folder."""

import logging
from pathlib import Path
from uuid import UUID

from stash.core.types import Note, NoteSource
from stash.vault.frontmatter import NoteFormatError, parse_note, write_note
from stash.vault.layout import list_note_files, note_filename

logger = logging.getLogger(__name__)


class NoteStoreError(Exception):
    """Raised when a note file cannot be written or removed."""

    pass


class NoteRepository:
    """Loads and persists notes under a single directory.

    Example:
        repo = NoteRepository("~/.stash/notes")
        notes = repo.load_all()
    """

    def __init__(self, root: Path | str):
        """Initialize repository.

        Args:
            root: Notes directory (created lazily on first write)
        """
        self.root = Path(root).expanduser()

    def path_for(self, note_id: UUID) -> Path:
        """Storage location of a note."""
        return self.root / note_filename(note_id)

    def load(self, path: Path) -> Note:
        """
        Load a single note file.

        Raises:
            NoteFormatError: If the file isn't a valid note
            NoteStoreError: If the file can't be read
        """
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise NoteStoreError(f"failed to read {path}: {e}") from e
        return parse_note(text)

    def load_all(self) -> list[Note]:
        """
        Load every note in the directory, newest first.

        Files that fail to read or parse are logged and skipped.

        Returns:
            Notes sorted by creation time, descending
        """
        notes: list[Note] = []
        for path in list_note_files(self.root):
            try:
                notes.append(self.load(path))
            except (NoteFormatError, NoteStoreError) as e:
                logger.warning(f"Skipping unreadable note {path.name}: {e}")
        notes.sort(key=lambda note: note.created, reverse=True)
        logger.debug(f"Loaded {len(notes)} notes from {self.root}")
        return notes

    def save(self, note: Note) -> Path:
        """
        Write (or overwrite) a note file.

        Returns:
            Path the note was written to

        Raises:
            NoteStoreError: On any filesystem failure
        """
        path = self.path_for(note.id)
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            path.write_text(write_note(note), encoding="utf-8")
        except OSError as e:
            raise NoteStoreError(f"failed to write {path.name}: {e}") from e
        logger.debug(f"Saved note {note.id}")
        return path

    def delete(self, note_id: UUID) -> None:
        """
        Remove a note file.

        Raises:
            NoteStoreError: If the file is missing or can't be removed
        """
        path = self.path_for(note_id)
        try:
            path.unlink()
        except FileNotFoundError as e:
            raise NoteStoreError(f"note file not found: {path.name}") from e
        except OSError as e:
            raise NoteStoreError(f"failed to delete {path.name}: {e}") from e
        logger.info(f"Deleted note {note_id}")

    def create(
        self,
        content: str,
        title: str | None = None,
        source: NoteSource = NoteSource.QUICK_CAPTURE,
    ) -> Note:
        """
        Create and persist a new note from raw content.

        Returns:
            The saved note
        """
        note = Note.from_content(content, title=title, source=source)
        self.save(note)
        logger.info(f"Created note {note.id} ({source.value})")
        return note

    def __repr__(self) -> str:
        return f"NoteRepository({self.root})"
