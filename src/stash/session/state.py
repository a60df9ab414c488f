"""Session state for the interactive note browser.

One Session object holds everything the screen shows and the handlers change:
current mode, notes, filters, input buffers, AI state and status line. The
renderer only reads it.
"""

import logging
from dataclasses import dataclass, field
from uuid import UUID

from stash.core.ai import AiClient
from stash.core.extract import extract_projects, extract_tags
from stash.core.query import filter_notes
from stash.core.settings import Settings, SettingsStore
from stash.core.tasks import TaskOrchestrator
from stash.core.types import Note
from stash.session.editor import TextBuffer
from stash.session.modes import (
    ActiveField,
    AiState,
    AppMode,
    DeletionType,
    EditorMode,
    Home,
    SettingsField,
)
from stash.vault.notes import NoteRepository

logger = logging.getLogger(__name__)


@dataclass
class Session:
    """Mutable state of one interactive session."""

    repository: NoteRepository
    settings_store: SettingsStore
    settings: Settings
    ai: AiClient
    tasks: TaskOrchestrator = field(default_factory=TaskOrchestrator)

    mode: AppMode = field(default_factory=Home)
    all_notes: list[Note] = field(default_factory=list)
    notes: list[Note] = field(default_factory=list)
    selected: int | None = None

    search_filter: str | None = None
    search_case_sensitive: bool = False
    tag_filter: str | None = None
    project_filter: str | None = None

    # Add/edit screens
    editor_mode: EditorMode = EditorMode.NAVIGATION
    active_field: ActiveField = ActiveField.CONTENT
    title_input: str = ""
    content: TextBuffer = field(default_factory=TextBuffer)
    preview_tags: list[str] = field(default_factory=list)
    preview_projects: list[str] = field(default_factory=list)

    # Single-line inputs
    search_input: str = ""
    tag_input: str = ""
    project_input: str = ""
    ai_command_input: str = ""

    # Settings screen
    settings_field: SettingsField = SettingsField.API_KEY
    api_key_input: str = ""
    prompt_style_input: str = "professional"
    custom_prompt_input: str = ""

    deletion_preference: DeletionType = DeletionType.SOFT
    ai_state: AiState = field(default_factory=AiState.idle)
    status_message: str | None = None
    should_quit: bool = False

    # --- Notes and filters ---

    def reload(self) -> None:
        """Reload every note from disk and re-apply filters."""
        self.all_notes = self.repository.load_all()
        self.apply_filters()

    def apply_filters(self) -> None:
        """Recompute the visible list; selection returns to the first note."""
        self.notes = filter_notes(
            self.all_notes,
            search_filter=self.search_filter,
            tag_filter=self.tag_filter,
            project_filter=self.project_filter,
            case_sensitive=self.search_case_sensitive,
        )
        self.selected = 0 if self.notes else None

    def clear_filters(self) -> None:
        self.search_filter = None
        self.search_case_sensitive = False
        self.tag_filter = None
        self.project_filter = None
        self.apply_filters()

    @property
    def has_filters(self) -> bool:
        return bool(self.search_filter or self.tag_filter or self.project_filter)

    @property
    def selected_note(self) -> Note | None:
        if self.selected is None or not self.notes:
            return None
        return self.notes[self.selected]

    def select_next(self) -> None:
        if self.notes:
            current = self.selected if self.selected is not None else -1
            self.selected = (current + 1) % len(self.notes)

    def select_previous(self) -> None:
        if self.notes:
            current = self.selected if self.selected is not None else 0
            self.selected = (current - 1) % len(self.notes)

    def visible_note(self, note_id: UUID) -> Note | None:
        """Note by id from the filtered list."""
        return next((n for n in self.notes if n.id == note_id), None)

    def find_note(self, note_id: UUID) -> Note | None:
        """Note by id from the full list."""
        return next((n for n in self.all_notes if n.id == note_id), None)

    # --- Editor buffers ---

    def clear_editor(self) -> None:
        self.title_input = ""
        self.content.clear()
        self.active_field = ActiveField.CONTENT
        self.editor_mode = EditorMode.NAVIGATION
        self.refresh_preview()

    def load_editor(self, note: Note) -> None:
        self.title_input = note.title or ""
        self.content.set_text(note.content)
        self.active_field = ActiveField.CONTENT
        self.refresh_preview()

    def refresh_preview(self) -> None:
        """Re-derive tags and projects from the live content buffer."""
        text = self.content.text
        self.preview_tags = extract_tags(text)
        self.preview_projects = extract_projects(text)

    # --- Misc ---

    @property
    def ai_configured(self) -> bool:
        return self.ai.is_configured()

    def set_status(self, message: str) -> None:
        logger.debug(f"Status: {message}")
        self.status_message = message
